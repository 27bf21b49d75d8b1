from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tourney.models.fixture import Fixture
    from tourney.models.participant import Participant
    from tourney.models.tournament import Tournament


class ParticipantType(str, Enum):
    individual = "individual"
    group = "group"


class Event(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "name", name="uq_tournament_event"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    name: str
    # Free-form format string, e.g. "knockout", "round-robin", "round-robin-knockout"
    match_type: Optional[str] = Field(default=None)
    participant_type: ParticipantType = Field(default=ParticipantType.individual, sa_column=Column(String))
    notes: Optional[str] = None

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="events")
    participants: List["Participant"] = Relationship(back_populates="event")
    fixtures: List["Fixture"] = Relationship(back_populates="event")
