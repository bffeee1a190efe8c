"""Backoff — jittered exponential delay.

Tests:
    - Delay doubles per attempt within the ±25% band
    - Capped at max_delay (plus jitter)
    - Seeded rng makes it reproducible
"""

import random

from pairqueue.core.backoff import compute_backoff_ms


def test_delay_doubles_within_jitter_band():
    for attempt, expected in [(0, 100), (1, 200), (2, 400), (3, 800)]:
        for _ in range(20):
            delay = compute_backoff_ms(attempt, 100, 100_000)
            assert int(expected * 0.75) <= delay <= int(expected * 1.25)


def test_delay_capped_at_max():
    for _ in range(20):
        assert compute_backoff_ms(30, 100, 1000) <= 1250


def test_zero_base_is_zero():
    assert compute_backoff_ms(5, 0, 1000) == 0


def test_seeded_rng_is_reproducible():
    first = compute_backoff_ms(3, 25, 1000, random.Random(42))
    second = compute_backoff_ms(3, 25, 1000, random.Random(42))
    assert first == second
