from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    default_target_score: int = 501
    checkout_limit: int = 6

    def __post_init__(self) -> None:
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"unknown log level: {self.log_level}")
        if self.default_target_score <= 0:
            raise ValueError("default_target_score must be > 0")
        if self.checkout_limit <= 0:
            raise ValueError("checkout_limit must be > 0")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        return cls(
            log_level=env.get("DARTSCORE_LOG_LEVEL", "INFO").upper(),
            default_target_score=int(env.get("DARTSCORE_DEFAULT_TARGET_SCORE", "501")),
            checkout_limit=int(env.get("DARTSCORE_CHECKOUT_LIMIT", "6")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
