"""
Bracket view - immutable rounds/matches derived from stored fixtures.

build_bracket() is recomputed from the fixture list on every request, and
apply_winner() returns a new bracket instead of mutating the old one.
"""

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Tuple

from tourney.models.fixture import PHASE_KNOCKOUT, Fixture
from tourney.services.knockout import get_round_name


@dataclass(frozen=True)
class BracketMatch:
    id: str
    round: int  # relative to the first bracket round
    match_index: int
    participant1: Optional[int] = None
    participant2: Optional[int] = None
    winner: Optional[int] = None
    fixture_id: Optional[int] = None


@dataclass(frozen=True)
class BracketRound:
    round_number: int
    round_name: str
    matches: Tuple[BracketMatch, ...]


Bracket = Tuple[BracketRound, ...]


def match_id(round_number: int, match_index: int) -> str:
    return f"round{round_number}_match{match_index}"


def _parse_match_id(value: str) -> Tuple[int, int]:
    try:
        round_part, match_part = value.split("_")
        return int(round_part[len("round"):]), int(match_part[len("match"):])
    except (ValueError, IndexError):
        raise KeyError(value)


def _find(bracket: Bracket, round_number: int, match_index: int) -> Optional[BracketMatch]:
    if not 0 <= round_number < len(bracket):
        return None
    for m in bracket[round_number].matches:
        if m.match_index == match_index:
            return m
    return None


def _replace_match(bracket: Bracket, new_match: BracketMatch) -> Bracket:
    rounds = list(bracket)
    rd = rounds[new_match.round]
    rounds[new_match.round] = replace(
        rd, matches=tuple(new_match if m.match_index == new_match.match_index else m for m in rd.matches)
    )
    return tuple(rounds)


def _clear_downstream(bracket: Bracket, match: BracketMatch) -> Bracket:
    """Drop winners (and the advanced participant) along match's path to the final."""
    next_match = _find(bracket, match.round + 1, match.match_index // 2)
    if next_match is None:
        return bracket
    if match.match_index % 2 == 0:
        cleared = replace(next_match, participant1=None, winner=None)
    else:
        cleared = replace(next_match, participant2=None, winner=None)
    bracket = _replace_match(bracket, cleared)
    if next_match.winner is not None:
        bracket = _clear_downstream(bracket, cleared)
    return bracket


def apply_winner(bracket: Bracket, selected_match_id: str, winner: Optional[int]) -> Bracket:
    """
    Return a new bracket with `winner` set on the selected match and moved into
    the next round. Selecting the current winner again clears it; changing or
    clearing a winner clears every winner further down that path.
    """
    round_number, match_index = _parse_match_id(selected_match_id)
    match = _find(bracket, round_number, match_index)
    if match is None:
        raise KeyError(selected_match_id)
    if winner is not None and winner not in (match.participant1, match.participant2):
        raise ValueError(f"{winner} is not a participant of {selected_match_id}")

    new_winner = None if winner == match.winner else winner
    if match.winner is not None and match.winner != new_winner:
        bracket = _clear_downstream(bracket, match)

    bracket = _replace_match(bracket, replace(match, winner=new_winner))
    if new_winner is None:
        return bracket

    next_match = _find(bracket, round_number + 1, match_index // 2)
    if next_match is not None:
        if match_index % 2 == 0:
            next_match = replace(next_match, participant1=new_winner)
        else:
            next_match = replace(next_match, participant2=new_winner)
        bracket = _replace_match(bracket, next_match)
    return bracket


def build_bracket(fixtures: Iterable[Fixture]) -> Bracket:
    """
    Bracket for a scope's fixtures: the knockout fixtures when any exist,
    otherwise everything. Knockout winners are folded in with apply_winner so
    later rounds show who advanced even before the DB slot was written.
    """
    fixtures = list(fixtures)
    knockout = [fx for fx in fixtures if fx.phase == PHASE_KNOCKOUT]
    selected = knockout or fixtures
    if not selected:
        return tuple()

    by_round: Dict[int, List[Fixture]] = {}
    for fx in selected:
        by_round.setdefault(fx.round, []).append(fx)

    round_numbers = sorted(by_round)
    total_rounds = len(round_numbers)
    rounds: List[BracketRound] = []
    for rel, rn in enumerate(round_numbers):
        matches = tuple(
            BracketMatch(
                id=match_id(rel, fx.match_index),
                round=rel,
                match_index=fx.match_index,
                participant1=fx.team_a_id,
                participant2=fx.team_b_id,
                fixture_id=fx.id,
            )
            for fx in sorted(by_round[rn], key=lambda f: f.match_index)
        )
        if knockout:
            name = get_round_name(rel, total_rounds)
        else:
            name = by_round[rn][0].round_name or f"Round {rn + 1}"
        rounds.append(BracketRound(round_number=rn, round_name=name, matches=matches))

    bracket: Bracket = tuple(rounds)
    if not knockout:
        # round-robin rounds are not a tree; show stored winners as-is
        return tuple(
            replace(
                rd,
                matches=tuple(
                    replace(m, winner=fx.winner_id)
                    for m, fx in zip(rd.matches, sorted(by_round[rd.round_number], key=lambda f: f.match_index))
                ),
            )
            for rd in bracket
        )

    for rel, rn in enumerate(round_numbers):
        for fx in sorted(by_round[rn], key=lambda f: f.match_index):
            if fx.winner_id is None:
                continue
            current = _find(bracket, rel, fx.match_index)
            if current is None or fx.winner_id not in (current.participant1, current.participant2):
                continue
            bracket = apply_winner(bracket, current.id, fx.winner_id)
    return bracket


def bracket_to_dict(bracket: Bracket) -> List[dict]:
    return [
        {
            "round_number": rd.round_number,
            "round_name": rd.round_name,
            "matches": [
                {
                    "id": m.id,
                    "fixture_id": m.fixture_id,
                    "round": m.round,
                    "match_index": m.match_index,
                    "participant1": m.participant1,
                    "participant2": m.participant2,
                    "winner": m.winner,
                }
                for m in rd.matches
            ],
        }
        for rd in bracket
    ]
