"""Centralized runtime settings for game pacing and randomness.

Environment-first, with defaults that match the browser game's pacing:
the computed opponent answers after 0.8 s and the coach corrects after 1.5 s.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import numpy as np

DEFAULT_AI_DELAY = 0.8
DEFAULT_COACH_DELAY = 1.5


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logging.warning("Ignoring %s=%r: not a number", name, raw)
        return default
    if value < 0:
        logging.warning("Ignoring %s=%r: must be >= 0", name, raw)
        return default
    return value


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        logging.warning("Ignoring %s=%r: not an integer", name, raw)
        return None


@dataclass
class GameConfig:
    ai_delay: float = DEFAULT_AI_DELAY
    coach_delay: float = DEFAULT_COACH_DELAY
    seed: Optional[int] = None

    @classmethod
    def from_env(cls) -> "GameConfig":
        """Build a config from XOPLAY_AI_DELAY, XOPLAY_COACH_DELAY and XOPLAY_SEED.

        Unset or malformed variables fall back to the defaults.
        """
        return cls(
            ai_delay=_env_float("XOPLAY_AI_DELAY", DEFAULT_AI_DELAY),
            coach_delay=_env_float("XOPLAY_COACH_DELAY", DEFAULT_COACH_DELAY),
            seed=_env_int("XOPLAY_SEED"),
        )


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    return np.random.default_rng(seed)
