"""Backoff — jittered exponential delay shared by both retry layers.

Invariants:
    - Delay for attempt n (0-based) is min(max_delay, base * 2**n) ±25%
    - Never negative, never above max_delay * 1.25

Design Decisions:
    - Random source injected: tests pass a seeded random.Random for reproducibility
    - ±25% jitter: racing transactions that conflicted once should not collide again in lockstep
"""

import random


def compute_backoff_ms(
    attempt: int,
    base_delay_ms: int,
    max_delay_ms: int,
    rng: random.Random | None = None,
) -> int:
    """Exponential backoff with ±25% jitter, in milliseconds."""
    source = rng or random
    delay = min(max_delay_ms, (2 ** attempt) * base_delay_ms)
    return max(0, int(delay * source.uniform(0.75, 1.25)))  # nosec B311
