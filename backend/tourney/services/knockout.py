"""
Knockout Bracket Builder

Single elimination over a field padded with BYEs (None) to the next power of
two. Only the first round carries participants; later rounds are created with
empty (TBD) slots and filled by advancement. The tree is implicit: the parent
of (round, match_index) is (round + 1, match_index // 2).
"""

import math
from typing import Hashable, List, NamedTuple, Optional, Sequence

from tourney.models.fixture import PHASE_KNOCKOUT, STATUS_SCHEDULED, Fixture


class KnockoutSlot(NamedTuple):
    round: int
    match_index: int
    round_name: str
    team_a: Optional[Hashable]
    team_b: Optional[Hashable]


def get_round_name(round_number: int, total_rounds: int) -> str:
    """Name a knockout round by its distance from the final (rounds are 0-based)."""
    rounds_from_end = total_rounds - 1 - round_number
    if rounds_from_end == 0:
        return "Final"
    if rounds_from_end == 1:
        return "Semi-Final"
    if rounds_from_end == 2:
        return "Quarter-Final"
    if rounds_from_end == 3:
        return "Round of 16"
    return f"Round {round_number + 1}"


def calculate_bracket_size(participant_count: int) -> int:
    """Next power of two >= participant_count."""
    if participant_count < 2:
        return 2
    return 2 ** math.ceil(math.log2(participant_count))


def calculate_total_rounds(participant_count: int) -> int:
    return int(math.log2(calculate_bracket_size(participant_count)))


def pad_with_byes(participants: Sequence[Optional[Hashable]]) -> List[Optional[Hashable]]:
    padded = list(participants)
    padded.extend([None] * (calculate_bracket_size(len(padded)) - len(padded)))
    return padded


def knockout_slots(participants: Sequence[Hashable], start_round: int = 0) -> List[KnockoutSlot]:
    """
    Bracket slots for participants in the given order (callers seed/shuffle).

    Round numbers start at start_round; names are computed from the bracket's
    relative round so a bracket that continues after round robin still ends
    with "Final".
    """
    if len(participants) < 2:
        raise ValueError(f"knockout needs at least 2 participants, got {len(participants)}")

    current = pad_with_byes(participants)
    total_rounds = int(math.log2(len(current)))
    slots: List[KnockoutSlot] = []
    rel_round = 0

    while len(current) > 1:
        for j in range(len(current) // 2):
            slots.append(
                KnockoutSlot(
                    round=start_round + rel_round,
                    match_index=j,
                    round_name=get_round_name(rel_round, total_rounds),
                    team_a=current[2 * j],
                    team_b=current[2 * j + 1],
                )
            )
        current = [None] * (len(current) // 2)
        rel_round += 1

    return slots


def build_knockout_fixtures(
    participants: Sequence[int],
    tournament_id: int,
    event_id: Optional[int],
    start_round: int = 0,
) -> List[Fixture]:
    """Unsaved Fixture rows (phase "ko") for a single-elimination bracket."""
    return [
        Fixture(
            tournament_id=tournament_id,
            event_id=event_id,
            phase=PHASE_KNOCKOUT,
            round=s.round,
            round_name=s.round_name,
            match_index=s.match_index,
            team_a_id=s.team_a,
            team_b_id=s.team_b,
            status=STATUS_SCHEDULED,
        )
        for s in knockout_slots(participants, start_round)
    ]
