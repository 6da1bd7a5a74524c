"""Runtime settings for the booking engine, loaded from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping

from dotenv import load_dotenv

from hallbooking.services.intervals import time_to_minutes

_PREFIX = "HALLBOOKING_"


@dataclass(frozen=True)
class Settings:
    """Immutable snapshot of the scheduling policy."""

    buffer_minutes: int = 44
    day_start: str = "06:00"
    day_end: str = "23:00"
    min_duration_minutes: int = 30
    slot_step_minutes: int = 30
    max_suggestions: int = 5
    sweep_interval_seconds: int = 120
    log_level: str = "INFO"

    @property
    def day_floor(self) -> int:
        return time_to_minutes(self.day_start)

    @property
    def day_ceil(self) -> int:
        return time_to_minutes(self.day_end)


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{_PREFIX}{name} must be an integer, got {raw!r}") from exc


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build a Settings instance from *env* (``os.environ`` plus ``.env`` by default)."""
    if env is None:
        load_dotenv(override=False)
        env = os.environ

    defaults = Settings()
    return Settings(
        buffer_minutes=_int(env, "BUFFER_MINUTES", defaults.buffer_minutes),
        day_start=env.get(_PREFIX + "DAY_START", defaults.day_start),
        day_end=env.get(_PREFIX + "DAY_END", defaults.day_end),
        min_duration_minutes=_int(
            env, "MIN_DURATION_MINUTES", defaults.min_duration_minutes
        ),
        slot_step_minutes=_int(env, "SLOT_STEP_MINUTES", defaults.slot_step_minutes),
        max_suggestions=_int(env, "MAX_SUGGESTIONS", defaults.max_suggestions),
        sweep_interval_seconds=_int(
            env, "SWEEP_INTERVAL_SECONDS", defaults.sweep_interval_seconds
        ),
        log_level=env.get(_PREFIX + "LOG_LEVEL", defaults.log_level).upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def configure_logging(level: str = "INFO") -> None:
    """Attach a console handler to the package logger."""
    logger = logging.getLogger("hallbooking")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        logger.addHandler(handler)
