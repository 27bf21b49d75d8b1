"""
Tests for the round-robin circle-method scheduler.
"""
from itertools import combinations

import pytest

from tourney.services.round_robin import (
    build_round_robin_fixtures,
    matchday_name,
    rr_match_count,
    rr_pairings_by_round,
    rr_round_count,
)


def test_four_participants_schedule():
    """A,B,C,D -> 3 rounds of 2 matches with the fixed-pivot rotation."""
    pairings = rr_pairings_by_round(["A", "B", "C", "D"])

    assert [(p.round, p.match_index, p.team_a, p.team_b) for p in pairings] == [
        (0, 0, "A", "D"),
        (0, 1, "B", "C"),
        (1, 0, "A", "C"),
        (1, 1, "D", "B"),
        (2, 0, "A", "B"),
        (2, 1, "C", "D"),
    ]


def test_odd_count_skips_bye_and_keeps_positional_index():
    pairings = rr_pairings_by_round(["A", "B", "C"])

    assert [(p.round, p.match_index, p.team_a, p.team_b) for p in pairings] == [
        (0, 1, "B", "C"),
        (1, 0, "A", "C"),
        (2, 0, "A", "B"),
    ]


@pytest.mark.parametrize("n", [2, 3, 4, 5, 6, 7, 8, 11, 16])
def test_every_pair_meets_exactly_once(n):
    teams = list(range(1, n + 1))
    pairings = rr_pairings_by_round(teams)

    seen = [frozenset((p.team_a, p.team_b)) for p in pairings]
    assert len(seen) == rr_match_count(n) == n * (n - 1) // 2
    assert set(seen) == {frozenset(c) for c in combinations(teams, 2)}

    rounds = {p.round for p in pairings}
    expected_rounds = n - 1 if n % 2 == 0 else n
    assert rounds == set(range(expected_rounds))
    assert rr_round_count(n) == expected_rounds


@pytest.mark.parametrize("n", [4, 5, 6, 9])
def test_nobody_plays_twice_in_a_round(n):
    pairings = rr_pairings_by_round(list(range(n)))
    by_round = {}
    for p in pairings:
        by_round.setdefault(p.round, []).extend([p.team_a, p.team_b])
    for players in by_round.values():
        assert len(players) == len(set(players))


def test_round_and_index_are_unique():
    pairings = rr_pairings_by_round(list(range(7)))
    keys = [(p.round, p.match_index) for p in pairings]
    assert len(keys) == len(set(keys))


def test_requires_two_participants():
    with pytest.raises(ValueError):
        rr_pairings_by_round(["solo"])


def test_build_fixtures_tags_phase_and_matchday_names():
    fixtures = build_round_robin_fixtures([11, 12, 13, 14], tournament_id=1, event_id=2)

    assert len(fixtures) == 6
    assert {fx.phase for fx in fixtures} == {"rr"}
    assert {fx.status for fx in fixtures} == {"scheduled"}
    assert fixtures[0].round_name == "Matchday 1"
    assert fixtures[-1].round_name == "Matchday 3"
    assert all(fx.tournament_id == 1 and fx.event_id == 2 for fx in fixtures)
    assert matchday_name(9) == "Matchday 10"
