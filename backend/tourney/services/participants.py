"""
Participants as seen by the fixture engine.

Stored Participant rows become one of two variants:
- Individual: a single entrant (also used for tournament-level teams)
- Pair: a doubles/group entry with two members

Each variant owns its display name. The engine itself only uses ids.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from sqlmodel import Session, select

from tourney.models.event import Event, ParticipantType
from tourney.models.participant import Participant

KIND_INDIVIDUAL = "individual"
KIND_PAIR = "pair"


@dataclass(frozen=True)
class Member:
    name: Optional[str] = None


@dataclass(frozen=True)
class Individual:
    id: int
    name: str

    def display_name(self) -> str:
        return self.name


@dataclass(frozen=True)
class Pair:
    id: int
    team_name: str
    members: Tuple[Member, Member]

    def display_name(self) -> str:
        m1, m2 = self.members
        if m1.name and m2.name:
            return f"{m1.name} & {m2.name}"
        return self.team_name


Entrant = Union[Individual, Pair]


def to_entrant(row: Participant) -> Entrant:
    """Convert a stored Participant row into its variant."""
    if row.kind == KIND_PAIR:
        raw = list(row.members or [])[:2]
        while len(raw) < 2:
            raw.append({})
        members = tuple(Member(name=(m or {}).get("name")) for m in raw)
        return Pair(id=row.id, team_name=row.team_name or row.name or f"Team {row.id}", members=members)
    return Individual(id=row.id, name=row.name or row.team_name or f"Participant {row.id}")


def load_entrants(session: Session, tournament_id: int, event: Optional[Event]) -> List[Entrant]:
    """
    Ordered entrants for a scope.

    With an event: its individuals or pairs depending on participant_type.
    Falls back to tournament-level entries (event_id is null) when the event
    has none, or when no event is given. Order is registration (id) order.
    """
    rows: List[Participant] = []
    if event is not None:
        kind = KIND_PAIR if event.participant_type == ParticipantType.group else KIND_INDIVIDUAL
        rows = list(
            session.exec(
                select(Participant)
                .where(
                    Participant.tournament_id == tournament_id,
                    Participant.event_id == event.id,
                    Participant.kind == kind,
                )
                .order_by(Participant.id)
            ).all()
        )

    if not rows:
        rows = list(
            session.exec(
                select(Participant)
                .where(Participant.tournament_id == tournament_id, Participant.event_id.is_(None))
                .order_by(Participant.id)
            ).all()
        )

    return [to_entrant(r) for r in rows]


def load_participant_ids(session: Session, tournament_id: int, event: Optional[Event]) -> List[int]:
    return [e.id for e in load_entrants(session, tournament_id, event)]
