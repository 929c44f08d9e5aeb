from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Protocol, Sequence, Union

from dartscore.scoring.cricket import LedgerPair, process_cricket_turn
from dartscore.scoring.errors import (
    InvalidDartError,
    LegAlreadyFinishedError,
    LegNotFoundError,
    TurnNotFoundError,
    UnsupportedPlayerCountError,
)
from dartscore.scoring.game import (
    CricketLedger,
    Dart,
    Leg,
    LegContext,
    Match,
    MatchMode,
    Turn,
    TurnOutcome,
    normalize_dart,
    ordered_turns,
)
from dartscore.scoring.replay import rebuild_cricket_ledgers
from dartscore.scoring.stats import LegStats, compute_leg_stats
from dartscore.scoring.x01 import X01PlayerState, process_x01_turn, remaining_for, x01_player_state

logger = logging.getLogger(__name__)

MAX_DARTS_PER_TURN = 3

RawDart = Union[Dart, tuple[int, int]]


class LegRepository(Protocol):
    """
    Storage the scoring service reads legs from and writes results to.

    load_leg must return a copy: the service mutates what it loads while it
    computes, and only the save/append/remove calls are meant to persist.
    """

    def load_leg(self, leg_id: int) -> LegContext | None: ...

    def find_turn(self, turn_id: int) -> Turn | None: ...

    def append_turn(self, turn: Turn) -> Turn: ...

    def remove_turn(self, turn_id: int) -> None: ...

    def save_leg_result(
        self, leg_id: int, winner_player_id: int | None, finished_at: datetime | None
    ) -> None: ...

    def save_match_completion(
        self, match_id: int, *, completed: bool, finished_at: datetime | None
    ) -> None: ...

    def save_cricket_ledgers(self, leg_id: int, ledgers: Iterable[CricketLedger]) -> None: ...


@dataclass(frozen=True)
class CricketPlayerState:
    player_id: int
    marks: dict[int, int]
    points: int


@dataclass(frozen=True)
class LegState:
    leg_id: int
    leg_number: int
    mode: MatchMode
    starting_player_id: int
    active_player_id: int | None  # None once the leg is finished
    winner_player_id: int | None
    finished_at: datetime | None
    turns: tuple[Turn, ...]
    x01_state: tuple[X01PlayerState, ...] | None
    cricket_state: tuple[CricketPlayerState, ...] | None
    last_outcome: TurnOutcome | None = None


@dataclass(frozen=True)
class LegSummary:
    leg_id: int
    turns: tuple[Turn, ...]
    players: tuple[LegStats, ...]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def active_player_id(leg: Leg, player_ids: Sequence[int]) -> int:
    """
    Whose turn it is: the leg starter before any turn is thrown, otherwise the
    player after whoever threw the most recent turn (round-robin).
    """
    if not leg.turns:
        if leg.starting_player_id in player_ids:
            return leg.starting_player_id
        return player_ids[0]

    last = ordered_turns(leg.turns)[-1]
    last_index = player_ids.index(last.player_id) if last.player_id in player_ids else -1
    return player_ids[(last_index + 1) % len(player_ids)]


def _normalize_dart(raw: RawDart) -> Dart:
    if isinstance(raw, Dart):
        return normalize_dart(raw.multiplier, raw.segment)
    if not isinstance(raw, (tuple, list)) or len(raw) != 2:
        raise InvalidDartError(f"a dart is a (multiplier, segment) pair, got {raw!r}")
    return normalize_dart(*raw)


def _normalize_darts(raw_darts: Iterable[RawDart]) -> tuple[Dart, ...]:
    darts = tuple(_normalize_dart(d) for d in raw_darts)
    if not 1 <= len(darts) <= MAX_DARTS_PER_TURN:
        raise InvalidDartError("a turn must include 1 to 3 darts")
    return darts


def _ledger_pair(leg: Leg, match: Match) -> LedgerPair:
    # Ledgers are created lazily, one per player, the first time they are needed.
    for pid in match.player_ids:
        if pid not in leg.cricket_ledgers:
            leg.cricket_ledgers[pid] = CricketLedger(pid)
    first, second = match.player_ids
    return (leg.cricket_ledgers[first], leg.cricket_ledgers[second])


class ScoringService:
    """
    Records and retracts turns for two-player X01 and Cricket legs.

    This module intentionally contains no web/framework imports.

    Callers must serialize record_turn/undo_turn per leg: both read the current
    leg and then write derived state back through the repository.
    """

    def __init__(
        self, repository: LegRepository, *, clock: Callable[[], datetime] = _utcnow
    ) -> None:
        self._repository = repository
        self._clock = clock

    def _load(self, leg_id: int) -> LegContext:
        context = self._repository.load_leg(leg_id)
        if context is None:
            raise LegNotFoundError(leg_id)
        return context

    def record_turn(self, leg_id: int, raw_darts: Iterable[RawDart]) -> LegState:
        """
        Score a visit for the active player and persist it.

        Nothing is written unless the whole turn scores cleanly. A finishing
        turn closes the leg and completes the match.
        """
        context = self._load(leg_id)
        leg, match = context.leg, context.match

        if len(match.player_ids) != 2:
            raise UnsupportedPlayerCountError(len(match.player_ids))
        if leg.is_finished:
            raise LegAlreadyFinishedError(leg_id)

        darts = _normalize_darts(raw_darts)
        player_id = active_player_id(leg, match.player_ids)
        turn_number = max((t.turn_number for t in leg.turns), default=0) + 1

        ledgers: LedgerPair | None = None
        if match.config.mode == MatchMode.X01:
            remaining = remaining_for(leg.turns, player_id, target_score=match.config.target_score)
            outcome = process_x01_turn(remaining, darts, double_out=match.config.double_out)
        else:
            ledgers = _ledger_pair(leg, match)
            outcome = process_cricket_turn(ledgers, match.player_ids.index(player_id), darts)

        stored = self._repository.append_turn(
            Turn(
                leg_id=leg_id,
                player_id=player_id,
                turn_number=turn_number,
                darts=darts,
                total_scored=outcome.total_scored,
                was_bust=outcome.was_bust,
            )
        )
        if ledgers is not None:
            self._repository.save_cricket_ledgers(leg_id, ledgers)

        logger.info(
            "Turn %s recorded on leg %s: player=%s scored=%s bust=%s",
            stored.turn_id,
            leg_id,
            player_id,
            outcome.total_scored,
            outcome.was_bust,
        )

        if outcome.did_finish:
            now = self._clock()
            self._repository.save_leg_result(leg_id, player_id, now)
            self._repository.save_match_completion(
                match.match_id, completed=True, finished_at=match.finished_at or now
            )
            logger.info("Leg %s won by player %s", leg_id, player_id)

        return self._state(self._load(leg_id), last_outcome=outcome)

    def undo_turn(self, turn_id: int) -> LegState:
        """
        Remove a turn and rebuild whatever was derived from it.

        Undoing the finishing turn reopens the leg (and un-completes its
        match). Removing an earlier turn leaves a finished X01 leg finished;
        a finished Cricket leg keeps whatever result its replayed history
        produces. Cricket ledgers are replayed from the remaining turns; X01
        needs no replay because the remaining score is always summed from the
        retained turns.
        """
        turn = self._repository.find_turn(turn_id)
        if turn is None:
            raise TurnNotFoundError(turn_id)

        context = self._load(turn.leg_id)
        leg, match = context.leg, context.match

        is_cricket = match.config.mode == MatchMode.CRICKET
        if is_cricket and len(match.player_ids) != 2:
            raise UnsupportedPlayerCountError(len(match.player_ids))

        removed_latest = ordered_turns(leg.turns)[-1].turn_id == turn_id
        remaining_turns = [t for t in leg.turns if t.turn_id != turn_id]
        winner = leg.winner_player_id if not removed_latest else None

        self._repository.remove_turn(turn_id)

        if is_cricket and leg.cricket_ledgers:
            replay = rebuild_cricket_ledgers(remaining_turns, match.player_ids)
            self._repository.save_cricket_ledgers(leg.leg_id, replay.ledgers)
            if leg.is_finished:
                winner = replay.winner_player_id
            elif replay.winner_player_id is not None:
                # Only a recorded turn finishes a leg.
                logger.warning(
                    "Replayed history of leg %s ends in a win for player %s; leg left open",
                    leg.leg_id,
                    replay.winner_player_id,
                )

        if leg.is_finished:
            if winner is None:
                self._repository.save_leg_result(leg.leg_id, None, None)
                self._repository.save_match_completion(
                    match.match_id, completed=False, finished_at=None
                )
                logger.info("Leg %s reopened by undo of turn %s", leg.leg_id, turn_id)
            elif winner != leg.winner_player_id:
                self._repository.save_leg_result(leg.leg_id, winner, leg.finished_at)
                logger.info("Leg %s result re-derived: won by player %s", leg.leg_id, winner)

        logger.info("Turn %s undone on leg %s", turn_id, leg.leg_id)
        return self._state(self._load(leg.leg_id))

    def get_leg_state(self, leg_id: int) -> LegState:
        return self._state(self._load(leg_id))

    def get_leg_summary(self, leg_id: int) -> LegSummary:
        context = self._load(leg_id)
        leg, match = context.leg, context.match
        return LegSummary(
            leg_id=leg.leg_id,
            turns=tuple(ordered_turns(leg.turns)),
            players=tuple(compute_leg_stats(leg, match, pid) for pid in match.player_ids),
        )

    def _state(self, context: LegContext, *, last_outcome: TurnOutcome | None = None) -> LegState:
        leg, match = context.leg, context.match

        x01_state: tuple[X01PlayerState, ...] | None = None
        cricket_state: tuple[CricketPlayerState, ...] | None = None

        if match.config.mode == MatchMode.X01:
            x01_state = tuple(
                x01_player_state(leg.turns, pid, target_score=match.config.target_score)
                for pid in match.player_ids
            )
        else:
            cricket_state = tuple(
                _cricket_player_state(leg.cricket_ledgers.get(pid) or CricketLedger(pid))
                for pid in match.player_ids
            )

        return LegState(
            leg_id=leg.leg_id,
            leg_number=leg.leg_number,
            mode=match.config.mode,
            starting_player_id=leg.starting_player_id,
            active_player_id=None if leg.is_finished else active_player_id(leg, match.player_ids),
            winner_player_id=leg.winner_player_id,
            finished_at=leg.finished_at,
            turns=tuple(ordered_turns(leg.turns)),
            x01_state=x01_state,
            cricket_state=cricket_state,
            last_outcome=last_outcome,
        )


def _cricket_player_state(ledger: CricketLedger) -> CricketPlayerState:
    return CricketPlayerState(player_id=ledger.player_id, marks=dict(ledger.marks), points=ledger.points)
