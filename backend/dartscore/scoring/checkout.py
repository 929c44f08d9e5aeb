from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, Mapping

from dartscore.scoring.game import INNER_BULL, OUTER_BULL, Dart, format_dart

logger = logging.getLogger(__name__)

MAX_DOUBLE_OUT_CHECKOUT = 170
MAX_STRAIGHT_OUT_CHECKOUT = 180


@dataclass(frozen=True)
class CheckoutRoute:
    """
    A single checkout route (1-3 darts) that finishes exactly.
    """

    darts: tuple[Dart, ...]

    @property
    def total(self) -> int:
        return sum(d.score_value for d in self.darts)

    def as_strings(self) -> list[str]:
        return [format_dart(d) for d in self.darts]


@dataclass(frozen=True)
class CheckoutSuggestion:
    remaining: int
    double_out: bool
    routes: tuple[CheckoutRoute, ...]
    finishable: bool
    note: str


@dataclass(frozen=True)
class CheckoutTable:
    double_out: bool
    routes: Mapping[int, tuple[CheckoutRoute, ...]]

    @property
    def max_checkout(self) -> int:
        return MAX_DOUBLE_OUT_CHECKOUT if self.double_out else MAX_STRAIGHT_OUT_CHECKOUT

    def lookup(self, remaining: int) -> tuple[CheckoutRoute, ...]:
        return self.routes.get(remaining, tuple())


_SEGMENTS_HIGH_TO_LOW: tuple[int, ...] = tuple(range(20, 0, -1))

SINGLES: tuple[Dart, ...] = (*(Dart(1, s) for s in _SEGMENTS_HIGH_TO_LOW), Dart(1, OUTER_BULL))
DOUBLES: tuple[Dart, ...] = tuple(Dart(2, s) for s in _SEGMENTS_HIGH_TO_LOW)
TRIPLES: tuple[Dart, ...] = tuple(Dart(3, s) for s in _SEGMENTS_HIGH_TO_LOW)
BULLSEYE: Dart = Dart(1, INNER_BULL)

# Under double-out, doubles and the inner bull are kept for the finishing dart.
SETUP_SHOTS_DOUBLE_OUT: tuple[Dart, ...] = (*TRIPLES, *SINGLES)
SETUP_SHOTS_STRAIGHT_OUT: tuple[Dart, ...] = (*TRIPLES, *DOUBLES, *SINGLES, BULLSEYE)
FINISHING_SHOTS_DOUBLE_OUT: tuple[Dart, ...] = (BULLSEYE, *DOUBLES)
FINISHING_SHOTS_STRAIGHT_OUT: tuple[Dart, ...] = (BULLSEYE, *DOUBLES, *TRIPLES, *SINGLES)


def _shot_key(d: Dart) -> tuple[int, int, int]:
    """
    Sort key for a single shot. Lower is better: higher score, then higher
    multiplier, then higher segment.
    """
    return (-d.score_value, -d.multiplier, -d.segment)


def _route_key(route: CheckoutRoute) -> tuple[int, tuple[tuple[int, int, int], ...]]:
    # 1) fewer darts
    # 2) shot by shot, by _shot_key
    return (len(route.darts), tuple(_shot_key(d) for d in route.darts))


def _arrange(setups: Iterable[Dart], finisher: Dart, *, double_out: bool) -> tuple[Dart, ...]:
    """
    Display order for a route: biggest shots first. Under double-out the
    finishing double always stays last.
    """
    if double_out:
        return (*sorted(setups, key=_shot_key), finisher)
    return tuple(sorted((*setups, finisher), key=_shot_key))


def _build_table(double_out: bool) -> CheckoutTable:
    max_target = MAX_DOUBLE_OUT_CHECKOUT if double_out else MAX_STRAIGHT_OUT_CHECKOUT
    setups = SETUP_SHOTS_DOUBLE_OUT if double_out else SETUP_SHOTS_STRAIGHT_OUT
    finishers = FINISHING_SHOTS_DOUBLE_OUT if double_out else FINISHING_SHOTS_STRAIGHT_OUT

    # target -> multiset of shots -> route
    buckets: dict[int, dict[tuple[Dart, ...], CheckoutRoute]] = {}

    def add(route_setups: tuple[Dart, ...], finisher: Dart) -> None:
        target = sum(d.score_value for d in route_setups) + finisher.score_value
        if target <= 0 or target > max_target:
            return
        if double_out and target < 2:
            return
        darts = _arrange(route_setups, finisher, double_out=double_out)
        key = tuple(sorted(darts, key=_shot_key))
        buckets.setdefault(target, {}).setdefault(key, CheckoutRoute(darts=darts))

    for finisher in finishers:
        add((), finisher)
        for first in setups:
            add((first,), finisher)
        # Setup pairs are unordered; throw order inside a visit does not change the total.
        for i, first in enumerate(setups):
            for second in setups[i:]:
                add((first, second), finisher)

    routes = {
        target: tuple(sorted(bucket.values(), key=_route_key))
        for target, bucket in sorted(buckets.items())
    }
    logger.debug(
        "Built %s checkout table: %d finishable scores",
        "double-out" if double_out else "straight-out",
        len(routes),
    )
    return CheckoutTable(double_out=double_out, routes=MappingProxyType(routes))


@lru_cache(maxsize=2)
def get_checkout_table(double_out: bool = True) -> CheckoutTable:
    """
    The process-wide checkout table for an out-rule. Built on first use and
    never modified afterwards, so concurrent readers need no locking.
    """
    return _build_table(double_out)


def warm_checkout_tables() -> None:
    get_checkout_table(True)
    get_checkout_table(False)


def get_checkout_suggestion(
    remaining: int, double_out: bool = True, *, limit: int | None = None
) -> CheckoutSuggestion:
    """
    Ranked checkout routes for a remaining score.

    - remaining <= 0: the leg is already won; no routes, finishable=True
    - above 170 (double-out) / 180 (straight-out): no routes, finishable=False
    - otherwise the table's routes (optionally truncated to `limit`);
      finishable is True when at least one route exists
    """
    if limit is not None and limit < 0:
        raise ValueError("limit must be >= 0")

    def suggestion(routes: tuple[CheckoutRoute, ...], finishable: bool, note: str) -> CheckoutSuggestion:
        return CheckoutSuggestion(
            remaining=remaining,
            double_out=double_out,
            routes=routes,
            finishable=finishable,
            note=note,
        )

    if remaining <= 0:
        return suggestion(tuple(), True, "Leg complete.")

    table = get_checkout_table(double_out)
    if remaining > table.max_checkout:
        if double_out:
            return suggestion(tuple(), False, "No finish above 170. Keep scoring to leave a preferred double.")
        return suggestion(tuple(), False, "No finish above 180 in three darts. Keep scoring.")

    routes = table.lookup(remaining)
    if routes:
        if limit is not None:
            routes = routes[:limit]
        if double_out:
            return suggestion(routes, True, "Double-out routes available in three darts.")
        return suggestion(routes, True, "Straight-out finishes available in three darts.")

    if double_out:
        if remaining % 2 == 0:
            return suggestion(tuple(), False, "No checkout this visit. Set up a double for the next one.")
        return suggestion(tuple(), False, "No checkout this visit. Leave an even number or the bull.")
    return suggestion(tuple(), False, "No checkout this visit.")
