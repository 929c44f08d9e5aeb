from __future__ import annotations

from typing import Sequence

from dartscore.scoring.game import (
    CRICKET_NUMBERS,
    INNER_BULL,
    MARKS_TO_CLOSE,
    OUTER_BULL,
    CricketLedger,
    Dart,
    TurnOutcome,
)

LedgerPair = tuple[CricketLedger, CricketLedger]


def cricket_number(d: Dart) -> int | None:
    """
    The cricket number a dart counts towards, or None for a non-scoring bed.
    """
    number = OUTER_BULL if d.segment == INNER_BULL else d.segment
    return number if number in CRICKET_NUMBERS else None


def marks_awarded(d: Dart) -> int:
    if d.segment == INNER_BULL:
        return 2
    if d.segment == OUTER_BULL:
        return min(d.multiplier, 2)
    return d.multiplier


def is_cricket_winner(player: CricketLedger, opponent: CricketLedger) -> bool:
    # Equal points with everything closed goes to the player who just threw.
    return player.has_closed_all() and player.points >= opponent.points


def process_cricket_turn(ledgers: LedgerPair, thrower_index: int, darts: Sequence[Dart]) -> TurnOutcome:
    """
    Apply a visit to the thrower's ledger (mutated in place).

    ledgers is the pair for both players, indexed by position in the match's
    player order; thrower_index selects whose turn it is.

    For each dart on a cricket number, marks go towards closing it (capped at 3).
    Marks beyond the third score number x overflow (25 for the bull) as long as
    the opponent has not closed that number. The win check runs once, after the
    whole visit.
    """
    if thrower_index not in (0, 1):
        raise ValueError("thrower_index must be 0 or 1")

    player = ledgers[thrower_index]
    opponent = ledgers[1 - thrower_index]
    turn_points = 0

    for d in darts:
        number = cricket_number(d)
        if number is None:
            continue

        player_marks = player.marks_on(number)
        total_marks = player_marks + marks_awarded(d)
        overflow = max(total_marks - MARKS_TO_CLOSE, 0)

        if opponent.marks_on(number) >= MARKS_TO_CLOSE:
            overflow = 0

        player.marks[number] = min(total_marks, MARKS_TO_CLOSE)

        if overflow > 0:
            points = overflow * number
            player.points += points
            turn_points += points

    return TurnOutcome(
        total_scored=turn_points,
        was_bust=False,
        did_finish=is_cricket_winner(player, opponent),
    )
