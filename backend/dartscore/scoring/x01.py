from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from dartscore.scoring.game import Dart, Turn, TurnOutcome


@dataclass(frozen=True)
class X01PlayerState:
    """
    Derived per-player X01 state. Never stored; always recomputed from turns.
    """

    player_id: int
    remaining: int
    three_dart_average: float


def process_x01_turn(remaining: int, darts: Sequence[Dart], *, double_out: bool) -> TurnOutcome:
    """
    Score a visit against a player's remaining score.

    Darts are evaluated strictly in order. A bust stops evaluation and voids the
    whole visit (total_scored=0). Under double-out:
    - leaving exactly 1 is a bust regardless of the dart thrown
    - reaching 0 on anything other than a double (or inner bull) is a bust
    Darts after a finish are not evaluated.
    """
    current = remaining
    total = 0

    for d in darts:
        prospective = current - d.score_value

        if prospective < 0 or (double_out and prospective == 1):
            return TurnOutcome(total_scored=0, was_bust=True, did_finish=False)

        if prospective == 0:
            if double_out and not d.is_double:
                return TurnOutcome(total_scored=0, was_bust=True, did_finish=False)
            return TurnOutcome(total_scored=total + d.score_value, was_bust=False, did_finish=True)

        total += d.score_value
        current = prospective

    return TurnOutcome(total_scored=total, was_bust=False, did_finish=False)


def remaining_for(turns: Iterable[Turn], player_id: int, *, target_score: int) -> int:
    scored = sum(t.total_scored for t in turns if t.player_id == player_id and not t.was_bust)
    return target_score - scored


def x01_player_state(turns: Iterable[Turn], player_id: int, *, target_score: int) -> X01PlayerState:
    own = [t for t in turns if t.player_id == player_id]
    scored = sum(t.total_scored for t in own if not t.was_bust)
    darts_thrown = sum(len(t.darts) for t in own)
    average = 0.0 if darts_thrown == 0 else round(scored / darts_thrown * 3, 2)
    return X01PlayerState(
        player_id=player_id,
        remaining=target_score - scored,
        three_dart_average=average,
    )
