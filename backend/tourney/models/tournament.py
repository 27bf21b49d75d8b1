from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tourney.models.event import Event
    from tourney.models.fixture import Fixture
    from tourney.models.participant import Participant


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column_kwargs={"onupdate": lambda: datetime.now(timezone.utc)},
    )

    # Relationships
    events: List["Event"] = Relationship(back_populates="tournament")
    participants: List["Participant"] = Relationship(back_populates="tournament")
    fixtures: List["Fixture"] = Relationship(back_populates="tournament")
