"""
Tests for fixture table constraints and timestamp defaults.
"""
from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from tourney.models.fixture import Fixture
from tourney.models.tournament import Tournament
from tourney.routes.fixtures import FixtureUpdate


def _tournament(session):
    tournament = Tournament(name="Slots")
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament.id


def test_timestamps_default_to_utc():
    fx = Fixture(tournament_id=1, round=0, match_index=0)

    assert fx.created_at.tzinfo is not None
    assert fx.scheduled_at.utcoffset().total_seconds() == 0
    assert Tournament(name="Cup").updated_at.tzinfo is not None


def test_schedule_without_offset_is_read_as_utc():
    update = FixtureUpdate(scheduled_at="2026-05-01T10:30:00")

    assert update.scheduled_at == datetime(2026, 5, 1, 10, 30, tzinfo=timezone.utc)


def test_tournament_level_slot_is_unique(session):
    tid = _tournament(session)
    session.add(Fixture(tournament_id=tid, event_id=None, phase="ko", round=0, match_index=0))
    session.commit()

    session.add(Fixture(tournament_id=tid, event_id=None, phase="ko", round=0, match_index=0))
    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()


def test_legacy_slot_without_phase_is_unique(session):
    tid = _tournament(session)
    session.add(Fixture(tournament_id=tid, phase=None, round=1, match_index=2))
    session.commit()

    session.add(Fixture(tournament_id=tid, phase=None, round=1, match_index=2))
    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()


def test_same_slot_in_other_phase_is_allowed(session):
    tid = _tournament(session)
    session.add_all(
        [
            Fixture(tournament_id=tid, phase="rr", round=0, match_index=0),
            Fixture(tournament_id=tid, phase="ko", round=0, match_index=0),
            Fixture(tournament_id=tid, phase=None, round=0, match_index=0),
        ]
    )
    session.commit()
