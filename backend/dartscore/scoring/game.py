from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable

from dartscore.scoring.errors import InvalidDartError

OUTER_BULL = 25
INNER_BULL = 50
VALID_SEGMENTS: tuple[int, ...] = (*range(1, 21), OUTER_BULL, INNER_BULL)

# Cricket numbers in board order; the bull is tracked under 25.
CRICKET_NUMBERS: tuple[int, ...] = (15, 16, 17, 18, 19, 20, OUTER_BULL)
MARKS_TO_CLOSE = 3


@dataclass(frozen=True)
class Dart:
    """
    A single dart hit.

    - multiplier: 1 (single), 2 (double), 3 (triple)
    - segment: 1-20 for standard beds, 25 for the outer bull, 50 for the inner bull

    The outer bull may be hit as a single or a double (2 x 25 counts the same as
    the inner bull). The inner bull is always recorded with multiplier 1.
    """

    multiplier: int
    segment: int

    def __post_init__(self) -> None:
        if self.multiplier not in (1, 2, 3):
            raise InvalidDartError("multiplier must be 1, 2, or 3")
        if self.segment not in VALID_SEGMENTS:
            raise InvalidDartError("segment must be 1-20, 25 (outer bull), or 50 (inner bull)")
        if self.segment == OUTER_BULL and self.multiplier > 2:
            raise InvalidDartError("bull can only be single or double")
        if self.segment == INNER_BULL and self.multiplier > 1:
            raise InvalidDartError("inner bull cannot have a multiplier greater than one")

    @property
    def score_value(self) -> int:
        if self.segment == INNER_BULL:
            return 50
        if self.segment == OUTER_BULL:
            return min(self.multiplier, 2) * 25
        return self.multiplier * self.segment

    @property
    def is_double(self) -> bool:
        return self.segment == INNER_BULL or self.multiplier == 2


def normalize_dart(multiplier: int, segment: int) -> Dart:
    """
    Validate a raw (multiplier, segment) pair and return the scored Dart.

    Raises InvalidDartError for impossible combinations.
    """
    for raw in (multiplier, segment):
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise InvalidDartError("multiplier and segment must be integers")
    return Dart(multiplier=multiplier, segment=segment)


def format_dart(d: Dart) -> str:
    if d.segment == INNER_BULL:
        return "Inner Bull"
    if d.segment == OUTER_BULL:
        return "Double Bull" if d.multiplier == 2 else "Outer Bull"
    prefix = {1: "S", 2: "D", 3: "T"}[d.multiplier]
    return f"{prefix}{d.segment}"


class MatchMode(str, Enum):
    X01 = "x01"
    CRICKET = "cricket"


class MatchStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class MatchConfig:
    mode: MatchMode = MatchMode.X01
    target_score: int = 501
    double_out: bool = True

    def __post_init__(self) -> None:
        # Cricket ignores target_score and double_out.
        if self.mode == MatchMode.X01 and self.target_score <= 0:
            raise ValueError("target_score must be > 0 for x01")

    @classmethod
    def cricket(cls) -> MatchConfig:
        return cls(mode=MatchMode.CRICKET, target_score=0, double_out=False)


@dataclass(frozen=True)
class TurnOutcome:
    total_scored: int
    was_bust: bool
    did_finish: bool


@dataclass(frozen=True)
class Turn:
    """
    A recorded visit of 1-3 darts. turn_id is assigned by the store on append.
    """

    leg_id: int
    player_id: int
    turn_number: int
    darts: tuple[Dart, ...]
    total_scored: int
    was_bust: bool
    turn_id: int | None = None

    @property
    def order_key(self) -> tuple[int, int]:
        return (self.turn_number, self.turn_id if self.turn_id is not None else 0)


def ordered_turns(turns: Iterable[Turn]) -> list[Turn]:
    return sorted(turns, key=lambda t: t.order_key)


@dataclass
class CricketLedger:
    """
    One player's marks (0-3 on each cricket number) and points for a leg.
    """

    player_id: int
    marks: dict[int, int] = field(default_factory=lambda: {n: 0 for n in CRICKET_NUMBERS})
    points: int = 0

    def marks_on(self, number: int) -> int:
        return self.marks.get(number, 0)

    def has_closed_all(self) -> bool:
        return all(self.marks_on(n) >= MARKS_TO_CLOSE for n in CRICKET_NUMBERS)

    def reset(self) -> None:
        self.marks = {n: 0 for n in CRICKET_NUMBERS}
        self.points = 0


@dataclass
class Match:
    match_id: int
    config: MatchConfig
    player_ids: tuple[int, ...]
    status: MatchStatus = MatchStatus.IN_PROGRESS
    started_at: datetime | None = None
    finished_at: datetime | None = None


@dataclass
class Leg:
    leg_id: int
    match_id: int
    starting_player_id: int
    leg_number: int = 1
    winner_player_id: int | None = None
    finished_at: datetime | None = None
    turns: list[Turn] = field(default_factory=list)
    # Keyed by player id; empty until the first cricket turn.
    cricket_ledgers: dict[int, CricketLedger] = field(default_factory=dict)

    @property
    def is_finished(self) -> bool:
        return self.winner_player_id is not None


@dataclass(frozen=True)
class LegContext:
    """
    Everything the scoring core needs to score a leg: the leg and its match.

    Stores hand out deep copies, so the core can compute freely and only
    write back through the store's save methods.
    """

    leg: Leg
    match: Match

    def clone(self) -> LegContext:
        return LegContext(leg=copy.deepcopy(self.leg), match=copy.deepcopy(self.match))
