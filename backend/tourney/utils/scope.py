"""
Scope guards and utilities

A scope is (tournament_id, event_id). event_id=None addresses the
tournament-level fixtures, never "all events".

Provides:
- Identifier validation (rejects before any data access)
- SQL filter clauses for a scope
- A per-scope FileLock so generation (delete-then-insert) has a single writer
"""

import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional

from filelock import FileLock, Timeout

from tourney.database import FIXTURE_LOCK_DIR, FIXTURE_LOCK_TIMEOUT
from tourney.models.fixture import Fixture
from tourney.services.errors import FixtureEngineError, InvalidIdentifierError

logger = logging.getLogger(__name__)


class ScopeBusyError(FixtureEngineError):
    """Another writer holds the scope lock"""

    code = "SCOPE_BUSY"
    status_code = 409


def require_valid_id(value: Any, label: str = "id") -> int:
    """
    Require a positive integer identifier, otherwise raise InvalidIdentifierError.

    bool is rejected even though it is an int subclass.
    """
    if isinstance(value, bool):
        raise InvalidIdentifierError(f"Invalid {label}")
    try:
        ident = int(value)
    except (TypeError, ValueError):
        raise InvalidIdentifierError(f"Invalid {label}")
    if ident < 1 or (isinstance(value, float) and value != ident):
        raise InvalidIdentifierError(f"Invalid {label}")
    return ident


def require_valid_scope(tournament_id: Any, event_id: Any = None) -> tuple:
    tid = require_valid_id(tournament_id, "tournament id")
    eid = require_valid_id(event_id, "event id") if event_id is not None else None
    return tid, eid


def scope_filter(tournament_id: int, event_id: Optional[int]) -> List:
    """WHERE clauses selecting exactly one scope's fixtures"""
    clauses = [Fixture.tournament_id == tournament_id]
    if event_id is None:
        clauses.append(Fixture.event_id.is_(None))
    else:
        clauses.append(Fixture.event_id == event_id)
    return clauses


def _lock_path(tournament_id: int, event_id: Optional[int]) -> str:
    suffix = event_id if event_id is not None else "all"
    return os.path.join(FIXTURE_LOCK_DIR, f"fixtures-t{tournament_id}-e{suffix}.lock")


@contextmanager
def scope_lock(tournament_id: int, event_id: Optional[int]) -> Iterator[None]:
    """Hold the scope's lock file for the duration of a generation call."""
    os.makedirs(FIXTURE_LOCK_DIR, exist_ok=True)
    lock = FileLock(_lock_path(tournament_id, event_id), timeout=FIXTURE_LOCK_TIMEOUT)
    try:
        with lock:
            yield
    except Timeout:
        logger.warning("Scope lock timeout for tournament %s event %s", tournament_id, event_id)
        raise ScopeBusyError("Fixture generation already in progress for this scope")
