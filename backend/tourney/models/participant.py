from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tourney.models.event import Event
    from tourney.models.tournament import Tournament


class Participant(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    # Null for tournament-level entries (classic teams not tied to an event)
    event_id: Optional[int] = Field(default=None, foreign_key="event.id", index=True)
    kind: str = Field(default="individual")  # "individual" | "pair"
    name: Optional[str] = Field(default=None)
    team_name: Optional[str] = Field(default=None)
    # Pair members: [{"name": "..."}, {"name": "..."}]
    members: Optional[List[Dict[str, Any]]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="participants")
    event: Optional["Event"] = Relationship(back_populates="participants")
