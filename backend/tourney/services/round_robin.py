"""
Round-Robin Scheduler

Circle method: index 0 stays fixed, after every round the last entry moves to
position 1. An odd field gets one BYE slot; pairings against the BYE are
skipped, so match_index keeps the positional index of the pairing and may
have gaps.
"""

from typing import Hashable, List, NamedTuple, Optional, Sequence

from tourney.models.fixture import PHASE_ROUND_ROBIN, STATUS_SCHEDULED, Fixture

BYE = None


class RoundRobinPairing(NamedTuple):
    round: int
    match_index: int
    team_a: Hashable
    team_b: Hashable


def matchday_name(round_number: int) -> str:
    """Display label for a round-robin round (0-based)"""
    return f"Matchday {round_number + 1}"


def rr_round_count(participant_count: int) -> int:
    """N-1 rounds for even N, N rounds for odd N (one BYE slot added)."""
    n = participant_count + 1 if participant_count % 2 == 1 else participant_count
    return n - 1


def rr_match_count(participant_count: int) -> int:
    """Every unordered pair meets once: n * (n-1) / 2"""
    return (participant_count * (participant_count - 1)) // 2


def rr_pairings_by_round(participants: Sequence[Hashable]) -> List[RoundRobinPairing]:
    """
    Round-robin pairings for the given participants, in order.

    Returns list of (round, match_index, team_a, team_b); rounds are 0-based and
    match_index is the pairing position i (arr[i] vs arr[n-1-i]).
    """
    if len(participants) < 2:
        raise ValueError(f"round robin needs at least 2 participants, got {len(participants)}")

    arr: List[Optional[Hashable]] = list(participants)
    if len(arr) % 2 == 1:
        arr.append(BYE)

    n = len(arr)
    half = n // 2
    result: List[RoundRobinPairing] = []

    for round_num in range(n - 1):
        for i in range(half):
            a, b = arr[i], arr[n - 1 - i]
            if a is BYE or b is BYE:
                continue
            result.append(RoundRobinPairing(round_num, i, a, b))
        # rotate keeping arr[0] fixed
        arr.insert(1, arr.pop())

    return result


def build_round_robin_fixtures(
    participants: Sequence[int],
    tournament_id: int,
    event_id: Optional[int],
) -> List[Fixture]:
    """Unsaved Fixture rows (phase "rr") for a complete single round robin."""
    return [
        Fixture(
            tournament_id=tournament_id,
            event_id=event_id,
            phase=PHASE_ROUND_ROBIN,
            round=p.round,
            round_name=matchday_name(p.round),
            match_index=p.match_index,
            team_a_id=p.team_a,
            team_b_id=p.team_b,
            status=STATUS_SCHEDULED,
        )
        for p in rr_pairings_by_round(participants)
    ]
