"""
Fixture Generation - round robin, knockout and round-robin-into-knockout

Every generation call:
1. Validates the scope and resolves participants / event format
2. Takes the scope lock
3. Erases stale fixtures for the scope (and phase) being regenerated
4. Inserts the new fixtures
Steps 3 and 4 share one transaction, so a half-built bracket is never visible.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, func, select

from tourney.models.event import Event
from tourney.models.fixture import PHASE_KNOCKOUT, Fixture
from tourney.models.tournament import Tournament
from tourney.services.errors import (
    AlreadyExistsError,
    InsufficientParticipantsError,
    InvalidIdentifierError,
    NotFoundError,
    PreconditionError,
)
from tourney.services.knockout import build_knockout_fixtures
from tourney.services.participants import load_participant_ids
from tourney.services.round_robin import build_round_robin_fixtures
from tourney.services.seeding import balanced_seed_order, shuffled
from tourney.services.standings import compute_standings, load_standings_fixtures, round_robin_phase_clause
from tourney.utils.scope import require_valid_scope, scope_filter, scope_lock

logger = logging.getLogger(__name__)

DEFAULT_QUALIFIERS = 4


@dataclass
class GenerationResult:
    fixtures: List[Fixture] = field(default_factory=list)
    message: Optional[str] = None


# ----------------------------------------------------------------------------
# Lookups
# ----------------------------------------------------------------------------


def require_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise NotFoundError("Tournament not found")
    return tournament


def require_event(session: Session, tournament_id: int, event_id: int) -> Event:
    event = session.get(Event, event_id)
    if not event or event.tournament_id != tournament_id:
        raise NotFoundError("Event not found")
    return event


def classify_match_type(match_type: Optional[str]) -> Tuple[bool, bool]:
    """
    Returns (is_round_robin, is_hybrid) for an event's match_type string.

    Anything mentioning "round-robin" is scheduled round robin first; it is
    hybrid when it also mentions "knockout". Everything else is knockout.
    """
    mt = (match_type or "").lower()
    is_round_robin = "round-robin" in mt
    return is_round_robin, is_round_robin and "knockout" in mt


def is_hybrid_event(event: Optional[Event]) -> bool:
    return event is not None and classify_match_type(event.match_type)[1]


def list_scope_fixtures(session: Session, tournament_id: int, event_id: Optional[int]) -> List[Fixture]:
    return list(
        session.exec(
            select(Fixture)
            .where(*scope_filter(tournament_id, event_id))
            .order_by(Fixture.round, Fixture.phase, Fixture.match_index)
        ).all()
    )


def _delete_where(session: Session, *clauses) -> int:
    stale = session.exec(select(Fixture).where(*clauses)).all()
    for fx in stale:
        session.delete(fx)
    return len(stale)


def _replace_fixtures(session: Session, erase_clauses: List[list], new_fixtures: List[Fixture]) -> None:
    """Delete each clause group, then insert, in a single transaction."""
    try:
        deleted = sum(_delete_where(session, *clauses) for clauses in erase_clauses)
        # Deletes must reach the DB before inserts reuse the same (round, match_index) keys
        session.flush()
        session.add_all(new_fixtures)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Fixture generation failed, transaction rolled back")
        raise
    logger.info("Replaced fixtures: %d deleted, %d inserted", deleted, len(new_fixtures))


# ----------------------------------------------------------------------------
# generate
# ----------------------------------------------------------------------------


def generate_fixtures(
    session: Session,
    tournament_id: int,
    event_id: Optional[int] = None,
    force: bool = False,
    shuffle: bool = True,
    rng: Optional[random.Random] = None,
) -> GenerationResult:
    """
    Generate fixtures for a scope based on the event's match_type.

    - round robin: full replace of the scope
    - hybrid (round robin + knockout): replaces "rr"/legacy rows only; refuses
      when they exist unless force, and force also drops the "ko" rows
    - knockout: full replace; participants shuffled unless shuffle=False
    """
    tournament_id, event_id = require_valid_scope(tournament_id, event_id)
    require_tournament(session, tournament_id)
    event = require_event(session, tournament_id, event_id) if event_id is not None else None

    participants = load_participant_ids(session, tournament_id, event)
    if len(participants) < 2:
        raise InsufficientParticipantsError("Need at least 2 participants to generate fixtures")

    is_round_robin, is_hybrid = classify_match_type(event.match_type if event else None)
    scope = scope_filter(tournament_id, event_id)

    with scope_lock(tournament_id, event_id):
        if is_round_robin:
            erase: List[list] = []
            if is_hybrid:
                existing = session.exec(
                    select(func.count(Fixture.id)).where(*scope, round_robin_phase_clause())
                ).one()
                if existing and not force:
                    raise AlreadyExistsError("Round-robin fixtures already exist; pass force to regenerate")
                erase.append([*scope, round_robin_phase_clause()])
                if force:
                    erase.append([*scope, Fixture.phase == PHASE_KNOCKOUT])
            else:
                erase.append(scope)

            new_fixtures = build_round_robin_fixtures(participants, tournament_id, event_id)
            _replace_fixtures(session, erase, new_fixtures)
            logger.info(
                "Generated %d round-robin fixtures for tournament %s event %s (%d participants)",
                len(new_fixtures),
                tournament_id,
                event_id,
                len(participants),
            )
        else:
            order = shuffled(participants, rng) if shuffle else list(participants)
            new_fixtures = build_knockout_fixtures(order, tournament_id, event_id)
            _replace_fixtures(session, [scope], new_fixtures)
            logger.info(
                "Generated %d knockout fixtures for tournament %s event %s (%d participants)",
                len(new_fixtures),
                tournament_id,
                event_id,
                len(participants),
            )

    for fx in new_fixtures:
        session.refresh(fx)
    return GenerationResult(fixtures=new_fixtures)


# ----------------------------------------------------------------------------
# generateKnockoutFromStandings
# ----------------------------------------------------------------------------


def generate_knockout_from_standings(
    session: Session,
    tournament_id: int,
    event_id: Optional[int],
    qualifiers: int = DEFAULT_QUALIFIERS,
) -> GenerationResult:
    """
    Seed the top `qualifiers` of the round-robin table into a knockout bracket.

    Knockout rounds continue numbering after the last round-robin round;
    existing "ko" rows at or after that round are replaced, so the call can be
    repeated safely.
    """
    if event_id is None:
        raise InvalidIdentifierError("Invalid event id")
    tournament_id, event_id = require_valid_scope(tournament_id, event_id)
    if isinstance(qualifiers, bool) or not isinstance(qualifiers, int) or qualifiers < 1:
        raise PreconditionError("qualifiers must be a positive integer")

    require_tournament(session, tournament_id)
    event = require_event(session, tournament_id, event_id)
    if not is_hybrid_event(event):
        raise PreconditionError("Event is not round-robin + knockout")

    rr_fixtures = load_standings_fixtures(session, tournament_id, event_id, round_robin_only=True)
    if not rr_fixtures:
        raise PreconditionError("No round-robin fixtures found")
    if not any(fx.has_result for fx in rr_fixtures):
        raise PreconditionError("No round-robin results entered yet")

    standings = compute_standings(rr_fixtures)
    qualified = [row.team_id for row in standings[:qualifiers]]
    if len(qualified) < 2:
        raise InsufficientParticipantsError(f"Need at least 2 qualified teams, got {len(qualified)}")

    start_round = max(fx.round for fx in rr_fixtures) + 1
    seeded = balanced_seed_order(qualified)
    scope = scope_filter(tournament_id, event_id)

    with scope_lock(tournament_id, event_id):
        new_fixtures = build_knockout_fixtures(seeded, tournament_id, event_id, start_round=start_round)
        _replace_fixtures(
            session,
            [[*scope, Fixture.phase == PHASE_KNOCKOUT, Fixture.round >= start_round]],
            new_fixtures,
        )

    logger.info(
        "Generated knockout stage for tournament %s event %s: %d qualifiers from round %d",
        tournament_id,
        event_id,
        len(qualified),
        start_round,
    )
    for fx in new_fixtures:
        session.refresh(fx)
    return GenerationResult(fixtures=new_fixtures)
