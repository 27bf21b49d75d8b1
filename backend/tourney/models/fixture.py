from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Index, func
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tourney.models.event import Event
    from tourney.models.tournament import Tournament

PHASE_ROUND_ROBIN = "rr"
PHASE_KNOCKOUT = "ko"

STATUS_SCHEDULED = "scheduled"
STATUS_ONGOING = "ongoing"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
FIXTURE_STATUSES = (STATUS_SCHEDULED, STATUS_ONGOING, STATUS_COMPLETED, STATUS_CANCELLED)


class Fixture(SQLModel, table=True):
    __table_args__ = (
        SAUniqueConstraint(
            "tournament_id", "event_id", "phase", "round", "match_index", name="uq_fixture_scope_slot"
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    event_id: Optional[int] = Field(default=None, foreign_key="event.id", index=True)

    # "rr" | "ko"; null on legacy rows, treated as "rr"
    phase: Optional[str] = Field(default=None)
    round: int  # 0-based, dense within a (tournament, event, phase) scope
    round_name: Optional[str] = Field(default=None)  # display only
    match_index: int  # 0-based; knockout parent is (round + 1, match_index // 2)

    # Null = bye or not yet determined
    team_a_id: Optional[int] = Field(default=None, foreign_key="participant.id")
    team_b_id: Optional[int] = Field(default=None, foreign_key="participant.id")

    scheduled_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: str = Field(default=STATUS_SCHEDULED)  # scheduled | ongoing | completed | cancelled
    score_a: Optional[int] = Field(default=None)
    score_b: Optional[int] = Field(default=None)
    winner_id: Optional[int] = Field(default=None, foreign_key="participant.id")
    notes: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column_kwargs={"onupdate": lambda: datetime.now(timezone.utc)},
    )

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="fixtures")
    event: Optional["Event"] = Relationship(back_populates="fixtures")

    @property
    def has_result(self) -> bool:
        return self.score_a is not None and self.score_b is not None


# NULL event_id/phase never collide under the constraint above, so
# tournament-level scopes and legacy rows get their slot uniqueness here
Index(
    "uq_fixture_slot_coalesced",
    Fixture.tournament_id,
    func.coalesce(Fixture.event_id, 0),
    func.coalesce(Fixture.phase, ""),
    Fixture.round,
    Fixture.match_index,
    unique=True,
)
