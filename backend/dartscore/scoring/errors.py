from __future__ import annotations


class ScoringError(Exception):
    """
    Base class for every error the scoring core raises.

    Each subclass also derives from the builtin exception the HTTP layer maps
    to a status code, so callers may catch either.
    """


class InvalidDartError(ScoringError, ValueError):
    """A dart (or a turn's dart list) that cannot exist on a standard board."""


class LegNotFoundError(ScoringError, LookupError):
    def __init__(self, leg_id: int) -> None:
        super().__init__(f"leg {leg_id} not found")
        self.leg_id = leg_id


class TurnNotFoundError(ScoringError, LookupError):
    def __init__(self, turn_id: int) -> None:
        super().__init__(f"turn {turn_id} not found")
        self.turn_id = turn_id


class LegAlreadyFinishedError(ScoringError, RuntimeError):
    def __init__(self, leg_id: int) -> None:
        super().__init__(f"leg {leg_id} has already finished")
        self.leg_id = leg_id


class UnsupportedPlayerCountError(ScoringError, RuntimeError):
    def __init__(self, player_count: int) -> None:
        super().__init__(f"exactly two players are supported, match has {player_count}")
        self.player_count = player_count
