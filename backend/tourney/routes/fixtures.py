"""
Fixture endpoints: generation, result entry, standings, bracket.
Service errors become {"success": false, ...} through the app's exception handlers.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, field_validator
from sqlmodel import Session, select

from tourney.database import get_session
from tourney.models.fixture import FIXTURE_STATUSES, Fixture
from tourney.services.advancement_service import resolve_byes, update_fixture
from tourney.services.bracket_view import bracket_to_dict, build_bracket
from tourney.services.fixture_generation import (
    DEFAULT_QUALIFIERS,
    generate_fixtures,
    generate_knockout_from_standings,
    is_hybrid_event,
    list_scope_fixtures,
    require_event,
    require_tournament,
)
from tourney.services.participants import Pair, load_entrants
from tourney.services.standings import compute_standings, load_standings_fixtures
from tourney.utils.scope import require_valid_scope

router = APIRouter()


class GenerateRequest(BaseModel):
    event_id: Optional[int] = None
    force: bool = False
    # Knockout only: False keeps registration order instead of a random draw
    shuffle: bool = True


class KnockoutFromStandingsRequest(BaseModel):
    event_id: int
    qualifiers: int = DEFAULT_QUALIFIERS

    @field_validator("qualifiers")
    @classmethod
    def validate_qualifiers(cls, v):
        if v < 1:
            raise ValueError("qualifiers must be >= 1")
        return v


class FixtureUpdate(BaseModel):
    status: Optional[str] = None
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    winner_id: Optional[int] = None
    scheduled_at: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is not None and v not in FIXTURE_STATUSES:
            raise ValueError(f"status must be one of {', '.join(FIXTURE_STATUSES)}")
        return v

    @field_validator("score_a", "score_b")
    @classmethod
    def validate_score(cls, v):
        if v is not None and v < 0:
            raise ValueError("score must be >= 0")
        return v

    @field_validator("scheduled_at")
    @classmethod
    def validate_scheduled_at(cls, v):
        # Stored datetimes are UTC; a time without offset is taken as UTC
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class FixtureResponse(BaseModel):
    id: int
    tournament_id: int
    event_id: Optional[int] = None
    phase: Optional[str] = None
    round: int
    round_name: Optional[str] = None
    match_index: int
    team_a_id: Optional[int] = None
    team_b_id: Optional[int] = None
    scheduled_at: Optional[datetime] = None
    status: str
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    winner_id: Optional[int] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class FixturesEnvelope(BaseModel):
    success: bool = True
    fixtures: List[FixtureResponse]
    message: Optional[str] = None


class FixtureEnvelope(BaseModel):
    success: bool = True
    fixture: FixtureResponse
    advanced_count: int = 0


class StandingsEntry(BaseModel):
    team_id: int
    played: int
    won: int
    drawn: int
    lost: int
    goals_for: int
    goals_against: int
    goal_difference: int
    points: int


class StandingsEnvelope(BaseModel):
    success: bool = True
    standings: List[StandingsEntry]


class TeamEntry(BaseModel):
    id: int
    name: str
    kind: str
    team_name: Optional[str] = None
    members: Optional[List[Dict[str, Any]]] = None


class TeamsEnvelope(BaseModel):
    success: bool = True
    teams: List[TeamEntry]


class BracketEnvelope(BaseModel):
    success: bool = True
    rounds: List[Dict[str, Any]]


class ResolveByesEnvelope(BaseModel):
    success: bool = True
    fixtures: List[FixtureResponse]
    advanced_count: int = 0


def _to_response(fixtures) -> List[FixtureResponse]:
    return [FixtureResponse.model_validate(fx) for fx in fixtures]


def _resolve_scope(session: Session, tournament_id: Any, event_id: Any):
    tournament_id, event_id = require_valid_scope(tournament_id, event_id)
    require_tournament(session, tournament_id)
    event = require_event(session, tournament_id, event_id) if event_id is not None else None
    return tournament_id, event_id, event


@router.get("/fixtures/{tournament_id}/teams", response_model=TeamsEnvelope)
def get_teams(
    tournament_id: int,
    event_id: Optional[int] = Query(None),
    session: Session = Depends(get_session),
):
    """Participants for a tournament or event, with display names"""
    tournament_id, event_id, event = _resolve_scope(session, tournament_id, event_id)
    teams = []
    for entrant in load_entrants(session, tournament_id, event):
        if isinstance(entrant, Pair):
            teams.append(
                TeamEntry(
                    id=entrant.id,
                    name=entrant.display_name(),
                    kind="pair",
                    team_name=entrant.team_name,
                    members=[{"name": m.name} for m in entrant.members],
                )
            )
        else:
            teams.append(TeamEntry(id=entrant.id, name=entrant.display_name(), kind="individual"))
    return TeamsEnvelope(teams=teams)


@router.get("/fixtures/{tournament_id}", response_model=FixturesEnvelope)
def get_fixtures(
    tournament_id: int,
    event_id: Optional[int] = Query(None),
    session: Session = Depends(get_session),
):
    """Raw fixture listing. Without event_id, every fixture of the tournament."""
    tournament_id, event_id, _ = _resolve_scope(session, tournament_id, event_id)
    if event_id is None:
        fixtures = session.exec(
            select(Fixture)
            .where(Fixture.tournament_id == tournament_id)
            .order_by(Fixture.event_id, Fixture.round, Fixture.phase, Fixture.match_index)
        ).all()
    else:
        fixtures = list_scope_fixtures(session, tournament_id, event_id)
    return FixturesEnvelope(fixtures=_to_response(fixtures))


@router.post("/fixtures/{tournament_id}/generate", response_model=FixturesEnvelope)
def generate(
    tournament_id: int,
    payload: Optional[GenerateRequest] = None,
    session: Session = Depends(get_session),
):
    """Generate round-robin, knockout or hybrid first-phase fixtures for the event."""
    payload = payload or GenerateRequest()
    result = generate_fixtures(
        session,
        tournament_id,
        event_id=payload.event_id,
        force=payload.force,
        shuffle=payload.shuffle,
    )
    return FixturesEnvelope(fixtures=_to_response(result.fixtures), message=result.message)


@router.post("/fixtures/{tournament_id}/generate-knockout", response_model=FixturesEnvelope)
def generate_knockout(
    tournament_id: int,
    payload: KnockoutFromStandingsRequest,
    session: Session = Depends(get_session),
):
    """Knockout stage seeded from round-robin standings (hybrid events)."""
    result = generate_knockout_from_standings(
        session, tournament_id, payload.event_id, qualifiers=payload.qualifiers
    )
    return FixturesEnvelope(fixtures=_to_response(result.fixtures), message=result.message)


@router.get("/fixtures/{tournament_id}/standings", response_model=StandingsEnvelope)
def get_standings(
    tournament_id: int,
    event_id: Optional[int] = Query(None),
    session: Session = Depends(get_session),
):
    """Standings sorted by points, then goal difference. Hybrid events count round robin only."""
    tournament_id, event_id, event = _resolve_scope(session, tournament_id, event_id)
    fixtures = load_standings_fixtures(session, tournament_id, event_id, round_robin_only=is_hybrid_event(event))
    rows = compute_standings(fixtures)
    return StandingsEnvelope(standings=[StandingsEntry(**row.to_dict()) for row in rows])


@router.get("/fixtures/{tournament_id}/bracket", response_model=BracketEnvelope)
def get_bracket(
    tournament_id: int,
    event_id: Optional[int] = Query(None),
    session: Session = Depends(get_session),
):
    tournament_id, event_id, _ = _resolve_scope(session, tournament_id, event_id)
    bracket = build_bracket(list_scope_fixtures(session, tournament_id, event_id))
    return BracketEnvelope(rounds=bracket_to_dict(bracket))


@router.post("/fixtures/{tournament_id}/resolve-byes", response_model=ResolveByesEnvelope)
def post_resolve_byes(
    tournament_id: int,
    event_id: Optional[int] = Query(None),
    session: Session = Depends(get_session),
):
    """Advance participants drawn against a bye in the knockout stage."""
    tournament_id, event_id, _ = _resolve_scope(session, tournament_id, event_id)
    result = resolve_byes(session, tournament_id, event_id)
    return ResolveByesEnvelope(fixtures=_to_response(result.resolved), advanced_count=result.advanced_count)


@router.put("/fixtures/fixture/{fixture_id}", response_model=FixtureEnvelope)
def put_fixture(
    fixture_id: int,
    payload: FixtureUpdate,
    session: Session = Depends(get_session),
):
    """Update status/score/winner/schedule/notes; winners advance to the next knockout round."""
    result = update_fixture(session, fixture_id, payload.model_dump(exclude_unset=True))
    return FixtureEnvelope(fixture=FixtureResponse.model_validate(result.fixture), advanced_count=result.advanced_count)
