import os
import tempfile

# Keep the app's own engine and lock files away from the working tree
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("FIXTURE_LOCK_DIR", os.path.join(tempfile.gettempdir(), "tourney-test-locks"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from tourney.database import get_session
from tourney.main import app

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. Use sqlite:///:memory: with StaticPool so ALL sessions share same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models MUST be imported before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables dropped after each test so every test starts empty
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session"""
    # Import all models to ensure they're registered BEFORE create_all
    from tourney.models.event import Event  # noqa: F401
    from tourney.models.fixture import Fixture  # noqa: F401
    from tourney.models.participant import Participant  # noqa: F401
    from tourney.models.tournament import Tournament  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place
    for the entire duration. This ensures the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_scope(session: Session):
    """
    Factory: tournament + optional event + participants.

    make_scope(match_type="round-robin", count=4) -> {"tournament_id", "event_id", "participant_ids"}
    match_type=None creates no event; participants are then tournament-level.
    """
    from tourney.models.event import Event
    from tourney.models.participant import Participant
    from tourney.models.tournament import Tournament

    def _make(match_type="knockout", count=4, participant_type="individual", name="Cup"):
        tournament = Tournament(name=name)
        session.add(tournament)
        session.commit()
        session.refresh(tournament)

        event = None
        if match_type is not None:
            event = Event(
                tournament_id=tournament.id,
                name=f"{name} Event",
                match_type=match_type,
                participant_type=participant_type,
            )
            session.add(event)
            session.commit()
            session.refresh(event)

        participants = []
        for i in range(count):
            if participant_type == "group":
                p = Participant(
                    tournament_id=tournament.id,
                    event_id=event.id if event else None,
                    kind="pair",
                    team_name=f"Pair {i + 1}",
                    members=[{"name": f"P{i + 1}a"}, {"name": f"P{i + 1}b"}],
                )
            else:
                p = Participant(
                    tournament_id=tournament.id,
                    event_id=event.id if event else None,
                    kind="individual",
                    name=f"Player {i + 1}",
                )
            session.add(p)
            participants.append(p)
        session.commit()
        for p in participants:
            session.refresh(p)

        return {
            "tournament_id": tournament.id,
            "event_id": event.id if event else None,
            "participant_ids": [p.id for p in participants],
        }

    return _make
