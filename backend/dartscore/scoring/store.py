from __future__ import annotations

import copy
from dataclasses import replace
from datetime import datetime, timezone
from itertools import count
from threading import RLock
from typing import Iterable, Sequence

from dartscore.scoring.game import (
    CricketLedger,
    Leg,
    LegContext,
    Match,
    MatchConfig,
    MatchStatus,
    Turn,
)


class InMemoryScoringStore:
    """
    Minimal in-memory store for matches, legs and their turns.

    Implements the LegRepository the ScoringService expects. load_leg hands out
    deep copies; only the save/append/remove methods change stored state.
    Hold `lock` around a whole record/undo call to serialize them.
    """

    def __init__(self) -> None:
        self.lock = RLock()
        self._reset()

    def _reset(self) -> None:
        self._match_ids = count(1)
        self._leg_ids = count(1)
        self._turn_ids = count(1)
        self._matches: dict[int, Match] = {}
        self._legs: dict[int, Leg] = {}
        self._leg_id_by_turn_id: dict[int, int] = {}

    def clear(self) -> None:
        with self.lock:
            self._reset()

    # --- Host-side seeding (match lifecycle lives outside the scoring core) ---
    def create_match(
        self,
        *,
        player_ids: Sequence[int],
        config: MatchConfig | None = None,
        starting_player_id: int | None = None,
    ) -> tuple[Match, Leg]:
        """
        Create a match with its first leg. The starting player defaults to the
        first player when not given (or not part of the match).
        """
        ids = tuple(dict.fromkeys(player_ids))
        if not ids:
            raise ValueError("a match needs at least one player")
        starter = starting_player_id if starting_player_id in ids else ids[0]

        with self.lock:
            match = Match(
                match_id=next(self._match_ids),
                config=config or MatchConfig(),
                player_ids=ids,
                started_at=datetime.now(timezone.utc),
            )
            leg = Leg(leg_id=next(self._leg_ids), match_id=match.match_id, starting_player_id=starter)
            self._matches[match.match_id] = match
            self._legs[leg.leg_id] = leg
            return copy.deepcopy(match), copy.deepcopy(leg)

    def get_match(self, match_id: int) -> Match | None:
        with self.lock:
            match = self._matches.get(match_id)
            return copy.deepcopy(match) if match is not None else None

    # --- LegRepository ---
    def load_leg(self, leg_id: int) -> LegContext | None:
        with self.lock:
            leg = self._legs.get(leg_id)
            if leg is None:
                return None
            return LegContext(leg=leg, match=self._matches[leg.match_id]).clone()

    def find_turn(self, turn_id: int) -> Turn | None:
        with self.lock:
            leg_id = self._leg_id_by_turn_id.get(turn_id)
            if leg_id is None:
                return None
            return next(t for t in self._legs[leg_id].turns if t.turn_id == turn_id)

    def append_turn(self, turn: Turn) -> Turn:
        with self.lock:
            leg = self._legs.get(turn.leg_id)
            if leg is None:
                raise KeyError("leg not found")
            stored = replace(turn, turn_id=next(self._turn_ids))
            leg.turns.append(stored)
            self._leg_id_by_turn_id[stored.turn_id] = leg.leg_id
            return stored

    def remove_turn(self, turn_id: int) -> None:
        with self.lock:
            leg_id = self._leg_id_by_turn_id.pop(turn_id, None)
            if leg_id is None:
                raise KeyError("turn not found")
            leg = self._legs[leg_id]
            leg.turns = [t for t in leg.turns if t.turn_id != turn_id]

    def save_leg_result(
        self, leg_id: int, winner_player_id: int | None, finished_at: datetime | None
    ) -> None:
        with self.lock:
            leg = self._legs[leg_id]
            leg.winner_player_id = winner_player_id
            leg.finished_at = finished_at

    def save_match_completion(
        self, match_id: int, *, completed: bool, finished_at: datetime | None
    ) -> None:
        with self.lock:
            match = self._matches[match_id]
            match.status = MatchStatus.COMPLETED if completed else MatchStatus.IN_PROGRESS
            match.finished_at = finished_at

    def save_cricket_ledgers(self, leg_id: int, ledgers: Iterable[CricketLedger]) -> None:
        with self.lock:
            leg = self._legs[leg_id]
            for ledger in ledgers:
                leg.cricket_ledgers[ledger.player_id] = copy.deepcopy(ledger)


_STORE: InMemoryScoringStore | None = None


def get_store() -> InMemoryScoringStore:
    global _STORE
    if _STORE is None:
        _STORE = InMemoryScoringStore()
    return _STORE
