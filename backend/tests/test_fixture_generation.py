"""
Tests for POST /api/fixtures/{tournament_id}/generate and the fixture listing.
"""
import pytest
from sqlmodel import select

from tourney.models.fixture import Fixture


def _list(client, tid, event_id=None):
    params = {"event_id": event_id} if event_id is not None else {}
    response = client.get(f"/api/fixtures/{tid}", params=params)
    assert response.status_code == 200
    return response.json()["fixtures"]


def test_round_robin_generation(client, make_scope):
    scope = make_scope(match_type="round-robin", count=4)
    tid, eid = scope["tournament_id"], scope["event_id"]

    response = client.post(f"/api/fixtures/{tid}/generate", json={"event_id": eid})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert len(data["fixtures"]) == 6
    assert {f["phase"] for f in data["fixtures"]} == {"rr"}
    assert {f["round"] for f in data["fixtures"]} == {0, 1, 2}
    pairs = {frozenset((f["team_a_id"], f["team_b_id"])) for f in data["fixtures"]}
    assert len(pairs) == 6


def test_round_robin_regeneration_replaces_previous_schedule(client, make_scope):
    scope = make_scope(match_type="round-robin", count=5)
    tid, eid = scope["tournament_id"], scope["event_id"]

    first = client.post(f"/api/fixtures/{tid}/generate", json={"event_id": eid}).json()["fixtures"]
    second = client.post(f"/api/fixtures/{tid}/generate", json={"event_id": eid}).json()["fixtures"]

    listed = _list(client, tid, eid)
    assert len(first) == len(second) == len(listed) == 10
    assert {f["id"] for f in listed} == {f["id"] for f in second}


def test_knockout_generation_in_registration_order(client, make_scope):
    scope = make_scope(match_type="knockout", count=4)
    tid, eid = scope["tournament_id"], scope["event_id"]
    p1, p2, p3, p4 = scope["participant_ids"]

    response = client.post(f"/api/fixtures/{tid}/generate", json={"event_id": eid, "shuffle": False})

    assert response.status_code == 200
    fixtures = response.json()["fixtures"]
    assert [(f["round"], f["match_index"], f["team_a_id"], f["team_b_id"]) for f in fixtures] == [
        (0, 0, p1, p2),
        (0, 1, p3, p4),
        (1, 0, None, None),
    ]
    assert [f["round_name"] for f in fixtures] == ["Semi-Final", "Semi-Final", "Final"]
    assert {f["phase"] for f in fixtures} == {"ko"}


def test_knockout_generation_shuffles_by_default(client, make_scope):
    scope = make_scope(match_type="knockout", count=6)
    tid, eid = scope["tournament_id"], scope["event_id"]

    fixtures = client.post(f"/api/fixtures/{tid}/generate", json={"event_id": eid}).json()["fixtures"]

    first_round = [f for f in fixtures if f["round"] == 0]
    assert len(first_round) == 4
    entrants = [t for f in first_round for t in (f["team_a_id"], f["team_b_id"]) if t is not None]
    assert sorted(entrants) == sorted(scope["participant_ids"])
    assert len(fixtures) == 7


def test_tournament_level_generation_without_event(client, make_scope):
    scope = make_scope(match_type=None, count=3)
    tid = scope["tournament_id"]

    response = client.post(f"/api/fixtures/{tid}/generate")

    assert response.status_code == 200
    fixtures = response.json()["fixtures"]
    assert len(fixtures) == 3
    assert all(f["event_id"] is None for f in fixtures)
    assert len(_list(client, tid)) == 3


def test_event_scope_does_not_touch_other_events(client, make_scope, session):
    from tourney.models.event import Event

    scope = make_scope(match_type="round-robin", count=4)
    tid, eid = scope["tournament_id"], scope["event_id"]
    other = Event(tournament_id=tid, name="Plate", match_type="knockout")
    session.add(other)
    session.commit()
    session.refresh(other)

    # no entrants in "Plate" and no tournament-level entrants to fall back on
    response = client.post(f"/api/fixtures/{tid}/generate", json={"event_id": other.id})
    assert response.status_code == 422

    client.post(f"/api/fixtures/{tid}/generate", json={"event_id": eid})
    assert _list(client, tid, other.id) == []
    assert len(_list(client, tid, eid)) == 6


def test_hybrid_refuses_regeneration_without_force(client, make_scope):
    scope = make_scope(match_type="round-robin + knockout", count=4)
    tid, eid = scope["tournament_id"], scope["event_id"]

    assert client.post(f"/api/fixtures/{tid}/generate", json={"event_id": eid}).status_code == 200
    response = client.post(f"/api/fixtures/{tid}/generate", json={"event_id": eid})

    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "ALREADY_EXISTS"
    assert len(_list(client, tid, eid)) == 6


def test_hybrid_force_drops_knockout_stage(client, make_scope, session):
    scope = make_scope(match_type="round-robin + knockout", count=4)
    tid, eid = scope["tournament_id"], scope["event_id"]
    client.post(f"/api/fixtures/{tid}/generate", json={"event_id": eid})

    session.add(Fixture(tournament_id=tid, event_id=eid, phase="ko", round=3, match_index=0))
    session.commit()
    assert len(_list(client, tid, eid)) == 7

    response = client.post(f"/api/fixtures/{tid}/generate", json={"event_id": eid, "force": True})

    assert response.status_code == 200
    listed = _list(client, tid, eid)
    assert len(listed) == 6
    assert {f["phase"] for f in listed} == {"rr"}


@pytest.mark.parametrize(
    "match_type,count,expected",
    [("round-robin + knockout", 5, 10), ("round-robin", 4, 6), ("knockout", 5, 7), (None, 5, 7)],
)
def test_repeated_forced_generation_leaves_no_duplicate_slots(client, make_scope, match_type, count, expected):
    scope = make_scope(match_type=match_type, count=count)
    tid, eid = scope["tournament_id"], scope["event_id"]

    for _ in range(2):
        response = client.post(f"/api/fixtures/{tid}/generate", json={"event_id": eid, "force": True})
        assert response.status_code == 200

    listed = _list(client, tid, eid)
    slots = [(f["phase"], f["round"], f["match_index"]) for f in listed]
    assert len(listed) == expected
    assert len(slots) == len(set(slots))


def test_legacy_rows_without_phase_count_as_round_robin(client, make_scope, session):
    scope = make_scope(match_type="round-robin + knockout", count=4)
    tid, eid = scope["tournament_id"], scope["event_id"]
    p1, p2 = scope["participant_ids"][:2]
    session.add(Fixture(tournament_id=tid, event_id=eid, phase=None, round=0, match_index=0, team_a_id=p1, team_b_id=p2))
    session.commit()

    refused = client.post(f"/api/fixtures/{tid}/generate", json={"event_id": eid})
    assert refused.status_code == 409

    forced = client.post(f"/api/fixtures/{tid}/generate", json={"event_id": eid, "force": True})
    assert forced.status_code == 200

    session.expire_all()
    remaining = session.exec(select(Fixture).where(Fixture.event_id == eid)).all()
    assert len(remaining) == 6
    assert all(fx.phase == "rr" for fx in remaining)


def test_insufficient_participants(client, make_scope):
    scope = make_scope(match_type="knockout", count=1)

    response = client.post(
        f"/api/fixtures/{scope['tournament_id']}/generate", json={"event_id": scope["event_id"]}
    )

    assert response.status_code == 422
    assert response.json()["code"] == "INSUFFICIENT_PARTICIPANTS"
    assert _list(client, scope["tournament_id"], scope["event_id"]) == []


def test_invalid_identifiers(client, session):
    zero = client.get("/api/fixtures/0")
    assert zero.status_code == 400
    assert zero.json() == {"success": False, "code": "INVALID_IDENTIFIER", "message": "Invalid tournament id"}

    malformed = client.get("/api/fixtures/abc")
    assert malformed.status_code == 422
    assert malformed.json()["code"] == "INVALID_IDENTIFIER"

    negative_event = client.get("/api/fixtures/1", params={"event_id": -3})
    assert negative_event.status_code == 400


def test_unknown_tournament_and_event(client, make_scope):
    missing = client.post("/api/fixtures/999/generate")
    assert missing.status_code == 404
    assert missing.json()["code"] == "NOT_FOUND"

    scope = make_scope(match_type="knockout", count=2)
    other = make_scope(match_type="knockout", count=2, name="Other")
    # event belongs to a different tournament
    response = client.post(
        f"/api/fixtures/{scope['tournament_id']}/generate", json={"event_id": other["event_id"]}
    )
    assert response.status_code == 404


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
