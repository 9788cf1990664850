"""Randomized delays and keystroke cadence.

Inter-action delays use the caller's configured window; keystrokes use a
fixed small window independent of it.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Iterator

logger = logging.getLogger(__name__)

# Per-keystroke delay window (ms)
TYPING_DELAY_MIN_MS = 100
TYPING_DELAY_MAX_MS = 300


def random_delay(min_seconds: float, max_seconds: float) -> float:
    """Sleep for a uniformly distributed duration in ``[min_seconds, max_seconds]``.

    Returns:
        The number of seconds slept.
    """
    delay = random.uniform(min_seconds, max_seconds)
    time.sleep(delay)
    return delay


def typing_cadence(
    text: str,
    min_ms: int = TYPING_DELAY_MIN_MS,
    max_ms: int = TYPING_DELAY_MAX_MS,
) -> Iterator[tuple[str, float]]:
    """Yield ``(char, delay_seconds)`` for each character of *text*."""
    for char in text:
        yield char, random.uniform(min_ms, max_ms) / 1000
