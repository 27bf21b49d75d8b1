"""
Result entry and knockout advancement.

When a fixture gets a winner, the winner is placed into the next round:
(round, match_index) feeds (round + 1, match_index // 2), slot team_a for an
even match_index and team_b for an odd one. Advancement is single hop and
only applies to knockout fixtures.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

from sqlmodel import Session, func, select

from tourney.models.fixture import FIXTURE_STATUSES, PHASE_KNOCKOUT, STATUS_COMPLETED, Fixture
from tourney.services.errors import NotFoundError, PreconditionError
from tourney.utils.scope import require_valid_id, require_valid_scope, scope_filter

logger = logging.getLogger(__name__)

# Only these fields may change after a fixture is generated
MUTABLE_FIELDS = ("status", "score_a", "score_b", "winner_id", "scheduled_at", "notes")


@dataclass
class UpdateResult:
    fixture: Fixture
    advanced_count: int = 0


@dataclass
class ResolveByesResult:
    resolved: List[Fixture]
    advanced_count: int = 0


def derive_winner(
    score_a: Optional[int], score_b: Optional[int], team_a_id: Optional[int], team_b_id: Optional[int]
) -> Optional[int]:
    """Higher-scoring side, or None when a score is missing or the scores are level."""
    if score_a is None or score_b is None or score_a == score_b:
        return None
    return team_a_id if score_a > score_b else team_b_id


def ensure_derived_winner(fixture: Fixture) -> bool:
    """
    Align fixture.winner_id with unequal stored scores.
    Returns True if the fixture changed. Idempotent.
    """
    derived = derive_winner(fixture.score_a, fixture.score_b, fixture.team_a_id, fixture.team_b_id)
    if derived is None or fixture.winner_id == derived:
        return False
    fixture.winner_id = derived
    return True


def next_round_slot(round_number: int, match_index: int) -> Tuple[int, int, str]:
    """(round, match_index, slot attribute) that the winner of a knockout fixture moves into."""
    return round_number + 1, match_index // 2, "team_a_id" if match_index % 2 == 0 else "team_b_id"


def _first_knockout_round(session: Session, fixture: Fixture) -> Optional[int]:
    return session.exec(
        select(func.min(Fixture.round)).where(
            *scope_filter(fixture.tournament_id, fixture.event_id),
            Fixture.phase == PHASE_KNOCKOUT,
        )
    ).one()


def _lone_participant(fixture: Fixture) -> Optional[int]:
    if fixture.team_a_id is not None and fixture.team_b_id is None:
        return fixture.team_a_id
    if fixture.team_b_id is not None and fixture.team_a_id is None:
        return fixture.team_b_id
    return None


def apply_advancement(session: Session, fixture: Fixture) -> int:
    """
    Place fixture's winner into the next-round fixture of the same scope.
    Returns 1 if a downstream slot was written, 0 otherwise (no winner,
    not knockout, or no next round, e.g. the Final).
    """
    winner_id = fixture.winner_id
    if winner_id is None or fixture.phase != PHASE_KNOCKOUT:
        return 0

    next_round, next_index, slot = next_round_slot(fixture.round, fixture.match_index)
    downstream = session.exec(
        select(Fixture).where(
            *scope_filter(fixture.tournament_id, fixture.event_id),
            Fixture.phase == PHASE_KNOCKOUT,
            Fixture.round == next_round,
            Fixture.match_index == next_index,
        )
    ).first()
    if not downstream:
        return 0

    if getattr(downstream, slot) == winner_id:
        return 0
    setattr(downstream, slot, winner_id)
    session.add(downstream)
    session.commit()
    return 1


def _validate_changes(fixture: Fixture, changes: Dict[str, Any]) -> None:
    status = changes.get("status")
    if "status" in changes and status not in FIXTURE_STATUSES:
        raise PreconditionError(f"Invalid status: {status}")

    for key in ("score_a", "score_b"):
        value = changes.get(key)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 0):
            raise PreconditionError(f"{key} must be a non-negative integer")

    winner_id = changes.get("winner_id")
    if winner_id is not None and winner_id not in (fixture.team_a_id, fixture.team_b_id):
        raise PreconditionError("winner must be one of the fixture's participants")

    # An explicit winner cannot contradict unequal scores
    score_a = changes.get("score_a", fixture.score_a)
    score_b = changes.get("score_b", fixture.score_b)
    derived = derive_winner(score_a, score_b, fixture.team_a_id, fixture.team_b_id)
    if winner_id is not None and derived is not None and winner_id != derived:
        raise PreconditionError("winner contradicts the entered scores")


def update_fixture(session: Session, fixture_id: Any, changes: Dict[str, Any]) -> UpdateResult:
    """
    Apply a partial result update, derive the winner and advance it.

    Advancement failures are logged and swallowed: the fixture's own update
    is already committed by then.
    """
    fixture_id = require_valid_id(fixture_id, "fixture id")
    unknown = set(changes) - set(MUTABLE_FIELDS)
    if unknown:
        raise PreconditionError(f"Fields not updatable: {', '.join(sorted(unknown))}")

    fixture = session.get(Fixture, fixture_id, with_for_update=True)
    if not fixture:
        raise NotFoundError("Fixture not found")

    _validate_changes(fixture, changes)

    update_data = dict(changes)
    if (
        update_data.get("score_a") is not None
        and update_data.get("score_b") is not None
        and "winner_id" not in update_data
    ):
        derived = derive_winner(update_data["score_a"], update_data["score_b"], fixture.team_a_id, fixture.team_b_id)
        if derived is not None:
            update_data["winner_id"] = derived

    for field, value in update_data.items():
        setattr(fixture, field, value)
    session.add(fixture)
    session.commit()
    session.refresh(fixture)

    # Second pass on the persisted row
    changed = ensure_derived_winner(fixture)
    if (
        not changed
        and fixture.winner_id is None
        and fixture.status == STATUS_COMPLETED
        and not fixture.has_result
        and fixture.phase == PHASE_KNOCKOUT
        and _lone_participant(fixture) is not None
        and fixture.round == _first_knockout_round(session, fixture)
    ):
        fixture.winner_id = _lone_participant(fixture)
        changed = True
    if changed:
        session.add(fixture)
        session.commit()
        session.refresh(fixture)

    advanced_count = 0
    if fixture.winner_id is not None:
        try:
            advanced_count = apply_advancement(session, fixture)
        except Exception:
            session.rollback()
            logger.exception("Failed to advance winner of fixture %s", fixture.id)
        session.refresh(fixture)

    return UpdateResult(fixture=fixture, advanced_count=advanced_count)


def resolve_byes(session: Session, tournament_id: Any, event_id: Any = None) -> ResolveByesResult:
    """
    Auto-advance participants drawn against a BYE.

    First knockout round: a fixture with exactly one participant is won by it.
    A fixture with nobody in it is empty; in later rounds a slot fed only by
    an empty fixture counts as a BYE too, once the other side is known; until
    then the fixture stays scheduled. Resolved winners are placed into the
    next round as the rounds are walked in order. Idempotent.
    """
    tournament_id, event_id = require_valid_scope(tournament_id, event_id)
    fixtures = session.exec(
        select(Fixture)
        .where(*scope_filter(tournament_id, event_id), Fixture.phase == PHASE_KNOCKOUT)
        .order_by(Fixture.round, Fixture.match_index)
    ).all()
    if not fixtures:
        raise PreconditionError("No knockout fixtures found")

    by_slot = {(fx.round, fx.match_index): fx for fx in fixtures}
    first_round = fixtures[0].round
    empty: Set[Tuple[int, int]] = set()
    resolved: List[Fixture] = []
    advanced_count = 0

    for fx in fixtures:
        if fx.round == first_round:
            a_bye = fx.team_a_id is None
            b_bye = fx.team_b_id is None
        else:
            a_bye = fx.team_a_id is None and (fx.round - 1, 2 * fx.match_index) in empty
            b_bye = fx.team_b_id is None and (fx.round - 1, 2 * fx.match_index + 1) in empty

        if a_bye and b_bye:
            empty.add((fx.round, fx.match_index))
            continue
        if not (a_bye or b_bye):
            continue
        lone = fx.team_b_id if a_bye else fx.team_a_id
        if lone is None:
            # opponent of the bye not decided yet
            continue
        if fx.winner_id is None:
            fx.winner_id = lone
            fx.status = STATUS_COMPLETED
            session.add(fx)
            resolved.append(fx)

        if fx.winner_id is not None:
            next_round, next_index, slot = next_round_slot(fx.round, fx.match_index)
            downstream = by_slot.get((next_round, next_index))
            if downstream is not None and getattr(downstream, slot) != fx.winner_id:
                setattr(downstream, slot, fx.winner_id)
                session.add(downstream)
                advanced_count += 1

    session.commit()
    for fx in resolved:
        session.refresh(fx)
    logger.info(
        "Resolved %d byes for tournament %s event %s (%d slots advanced)",
        len(resolved),
        tournament_id,
        event_id,
        advanced_count,
    )
    return ResolveByesResult(resolved=resolved, advanced_count=advanced_count)
