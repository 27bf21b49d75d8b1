"""
Standings Calculator

Aggregates scored fixtures into per-participant records.
Win = 3 points, draw = 1, loss = 0.
Sorted by points desc, then goal difference desc; further ties keep the order
in which participants first appear in the fixture list.
"""

from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy import or_
from sqlmodel import Session, select

from tourney.models.fixture import PHASE_ROUND_ROBIN, Fixture
from tourney.utils.scope import scope_filter

POINTS_WIN = 3
POINTS_DRAW = 1


@dataclass
class StandingsRow:
    team_id: int
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def to_dict(self):
        data = asdict(self)
        data["goal_difference"] = self.goal_difference
        return data


def compute_standings(fixtures: Iterable[Fixture]) -> List[StandingsRow]:
    """Standings from fixtures; only fixtures with both scores and both sides count."""
    rows: Dict[int, StandingsRow] = {}

    for fx in fixtures:
        if fx.score_a is None or fx.score_b is None:
            continue
        a, b = fx.team_a_id, fx.team_b_id
        if a is None or b is None:
            continue

        row_a = rows.setdefault(a, StandingsRow(team_id=a))
        row_b = rows.setdefault(b, StandingsRow(team_id=b))
        s_a, s_b = int(fx.score_a), int(fx.score_b)

        row_a.played += 1
        row_b.played += 1
        row_a.goals_for += s_a
        row_a.goals_against += s_b
        row_b.goals_for += s_b
        row_b.goals_against += s_a

        if s_a == s_b:
            row_a.drawn += 1
            row_b.drawn += 1
            row_a.points += POINTS_DRAW
            row_b.points += POINTS_DRAW
        elif s_a > s_b:
            row_a.won += 1
            row_b.lost += 1
            row_a.points += POINTS_WIN
        else:
            row_b.won += 1
            row_a.lost += 1
            row_b.points += POINTS_WIN

    return sorted(rows.values(), key=lambda r: (-r.points, -r.goal_difference))


def round_robin_phase_clause():
    """phase == "rr" or legacy rows without a phase"""
    return or_(Fixture.phase == PHASE_ROUND_ROBIN, Fixture.phase.is_(None))


def load_standings_fixtures(
    session: Session,
    tournament_id: int,
    event_id: Optional[int],
    round_robin_only: bool,
) -> List[Fixture]:
    query = select(Fixture).where(*scope_filter(tournament_id, event_id))
    if round_robin_only:
        query = query.where(round_robin_phase_clause())
    query = query.order_by(Fixture.round, Fixture.match_index, Fixture.id)
    return list(session.exec(query).all())
