"""TriggerDispatcher — at-least-once redelivery with a bounded budget.

Invariants:
    - Store / abort failures redelivered until success or max_deliveries
    - Invariant violations delivered once, never again
    - deliver() reports, it does not raise
"""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from pairqueue.core.domain_types import Category, MatchResult
from pairqueue.core.errors import (
    MatchInvariantError, StoreUnavailableError, TransactionAbortedError,
)
from pairqueue.core.match_rules import MatchOutcome
from pairqueue.services.trigger_dispatch import TriggerDispatcher


class _FlakyHandler:
    """Fails `failures` times, then reports NO_CANDIDATE."""

    def __init__(self, failures: list[Exception]):
        self.failures = list(failures)
        self.calls = 0

    async def handle(self, entry_id):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return MatchOutcome(MatchResult.NO_CANDIDATE, entry_id)


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    sleep = AsyncMock()
    monkeypatch.setattr("asyncio.sleep", sleep)
    return sleep


async def test_first_delivery_succeeds(no_sleep):
    handler = _FlakyHandler([])
    entry_id = uuid4()

    report = await TriggerDispatcher(handler).deliver(entry_id)

    assert report.delivered
    assert report.deliveries == 1
    assert report.outcome.result is MatchResult.NO_CANDIDATE
    no_sleep.assert_not_awaited()


async def test_redelivers_after_store_failures(no_sleep):
    handler = _FlakyHandler([
        StoreUnavailableError("down", "transaction"),
        TransactionAbortedError(5),
    ])

    report = await TriggerDispatcher(handler, max_deliveries=5).deliver(uuid4())

    assert report.delivered
    assert report.deliveries == 3
    assert handler.calls == 3
    assert no_sleep.await_count == 2


async def test_dead_letters_after_budget(no_sleep, caplog):
    handler = _FlakyHandler([StoreUnavailableError("down", "transaction")] * 10)

    report = await TriggerDispatcher(handler, max_deliveries=3).deliver(uuid4())

    assert not report.delivered
    assert report.deliveries == 3
    assert report.error_code == "STORE_UNAVAILABLE"
    assert handler.calls == 3
    assert "dead-lettered" in caplog.text


async def test_invariant_violation_is_not_redelivered():
    handler = _FlakyHandler([MatchInvariantError("bad pair")])

    report = await TriggerDispatcher(handler).deliver(uuid4())

    assert not report.delivered
    assert report.deliveries == 1
    assert report.error_code == "MATCH_INVARIANT_VIOLATED"
    assert handler.calls == 1


async def test_redelivery_against_real_handler_is_idempotent(handler, enqueue, snapshot):
    """Delivering the same event twice end-to-end produces one match."""
    await enqueue("a1", Category.MALE, 0)
    b1 = await enqueue("b1", Category.FEMALE, 1)
    dispatcher = TriggerDispatcher(handler)

    first = await dispatcher.deliver(b1.entry_id)
    second = await dispatcher.deliver(b1.entry_id)

    assert first.outcome.result is MatchResult.MATCHED
    assert second.outcome.result is MatchResult.ALREADY_CONSUMED
    assert len((await snapshot())["matches"]) == 1
