from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from dartscore.scoring.cricket import LedgerPair, process_cricket_turn
from dartscore.scoring.game import CricketLedger, Turn, TurnOutcome, ordered_turns
from dartscore.scoring.x01 import process_x01_turn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CricketReplay:
    ledgers: LedgerPair
    winner_player_id: int | None


def fresh_ledgers(player_ids: Sequence[int]) -> LedgerPair:
    if len(player_ids) != 2:
        raise ValueError("cricket ledgers need exactly two players")
    return (CricketLedger(player_ids[0]), CricketLedger(player_ids[1]))


def rebuild_cricket_ledgers(turns: Iterable[Turn], player_ids: Sequence[int]) -> CricketReplay:
    """
    Rebuild both players' cricket ledgers from the turn history.

    Ledgers start from zero and every turn is replayed in (turn_number, turn_id)
    order exactly as it was scored live. Per-turn totals are discarded; only the
    final ledgers and the winner (if the final state satisfies the win check on
    the last replayed turn) matter.
    """
    ledgers = fresh_ledgers(player_ids)
    winner: int | None = None

    replayed = 0
    for turn in ordered_turns(turns):
        thrower_index = player_ids.index(turn.player_id)
        outcome = process_cricket_turn(ledgers, thrower_index, turn.darts)
        winner = turn.player_id if outcome.did_finish else None
        replayed += 1

    logger.debug(
        "Replayed %d cricket turns: points %s/%s",
        replayed,
        ledgers[0].points,
        ledgers[1].points,
    )
    return CricketReplay(ledgers=ledgers, winner_player_id=winner)


def replay_x01_outcomes(
    turns: Iterable[Turn],
    player_ids: Sequence[int],
    *,
    target_score: int,
    double_out: bool,
) -> list[tuple[Turn, TurnOutcome]]:
    """
    Re-score every X01 turn from scratch, in order.

    Undo never needs this (remaining is a plain sum over retained turns), but it
    re-derives each stored outcome from its darts, so a caller can check that
    stored totals still agree with the rules.
    """
    remaining = {pid: target_score for pid in player_ids}
    results: list[tuple[Turn, TurnOutcome]] = []

    for turn in ordered_turns(turns):
        outcome = process_x01_turn(remaining[turn.player_id], turn.darts, double_out=double_out)
        if not outcome.was_bust:
            remaining[turn.player_id] -= outcome.total_scored
        results.append((turn, outcome))

    return results
