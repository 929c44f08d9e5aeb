from __future__ import annotations

from dataclasses import dataclass

from dartscore.scoring.cricket import cricket_number, marks_awarded
from dartscore.scoring.game import Leg, Match, MatchMode, Turn


@dataclass(frozen=True)
class LegStats:
    player_id: int
    turns: int
    darts_thrown: int
    scored_points: int
    busts: int
    # X01 only; a Cricket total is points, not a visit score.
    highest_turn: int | None
    count_180: int | None
    count_140_plus: int | None
    count_100_plus: int | None
    marks_hit: int
    remaining: int | None  # X01 only
    cricket_points: int | None  # Cricket only

    @property
    def three_dart_average(self) -> float:
        if self.darts_thrown == 0:
            return 0.0
        return round((self.scored_points / self.darts_thrown) * 3.0, 2)

    @property
    def marks_per_round(self) -> float:
        """
        Cricket marks per three darts. Marks count whether or not they scored.
        """
        if self.darts_thrown == 0:
            return 0.0
        return round((self.marks_hit / self.darts_thrown) * 3.0, 2)


def _marks_hit(turns: list[Turn]) -> int:
    return sum(marks_awarded(d) for t in turns for d in t.darts if cricket_number(d) is not None)


def compute_leg_stats(leg: Leg, match: Match, player_id: int) -> LegStats:
    own = [t for t in leg.turns if t.player_id == player_id]

    # Busted visits never count towards scored points.
    valid_totals = [t.total_scored for t in own if not t.was_bust]
    scored_points = sum(valid_totals)

    remaining: int | None = None
    cricket_points: int | None = None
    highest_turn: int | None = None
    count_180: int | None = None
    count_140_plus: int | None = None
    count_100_plus: int | None = None
    marks_hit = 0
    if match.config.mode == MatchMode.X01:
        remaining = match.config.target_score - scored_points
        highest_turn = max(valid_totals) if valid_totals else 0
        count_180 = sum(1 for total in valid_totals if total == 180)
        count_140_plus = sum(1 for total in valid_totals if total >= 140)
        count_100_plus = sum(1 for total in valid_totals if total >= 100)
    else:
        ledger = leg.cricket_ledgers.get(player_id)
        cricket_points = ledger.points if ledger is not None else 0
        marks_hit = _marks_hit(own)

    return LegStats(
        player_id=player_id,
        turns=len(own),
        darts_thrown=sum(len(t.darts) for t in own),
        scored_points=scored_points,
        busts=sum(1 for t in own if t.was_bust),
        highest_turn=highest_turn,
        count_180=count_180,
        count_140_plus=count_140_plus,
        count_100_plus=count_100_plus,
        marks_hit=marks_hit,
        remaining=remaining,
        cricket_points=cricket_points,
    )
