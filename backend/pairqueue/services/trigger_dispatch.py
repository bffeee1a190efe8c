"""Trigger Dispatch — at-least-once delivery of "entry created" events to the match handler.

Invariants:
    - A delivery that raises StoreUnavailableError or TransactionAbortedError is redelivered
    - At most max_deliveries deliveries per event, jittered exponential backoff in between
    - MatchInvariantError is never redelivered: the same pair would fail the same way
    - deliver() never raises for handler failures; it reports them (dead-letter = log + report)

Design Decisions:
    - Redelivery is safe only because the handler is idempotent (re-reads everything)
    - Separate budget from TransactionRunner: conflicts are retried in the transaction
      layer first, this layer only sees what that one gave up on
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Protocol

from pairqueue.core.backoff import compute_backoff_ms
from pairqueue.core.domain_types import QueueEntryId
from pairqueue.core.errors import (
    MatchInvariantError, PairQueueError, StoreUnavailableError,
    TransactionAbortedError,
)
from pairqueue.core.match_rules import MatchOutcome

logger = logging.getLogger(__name__)

_REDELIVERABLE = (StoreUnavailableError, TransactionAbortedError)


class TriggerHandler(Protocol):
    async def handle(self, entry_id: QueueEntryId) -> MatchOutcome: ...


@dataclass(frozen=True)
class DeliveryReport:
    """How an event's deliveries ended."""
    entry_id: QueueEntryId
    delivered: bool
    deliveries: int
    outcome: MatchOutcome | None = None
    error_code: str | None = None


class TriggerDispatcher:
    """Delivers queue-entry events to the handler, redelivering on failure."""

    def __init__(
        self,
        handler: TriggerHandler,
        max_deliveries: int = 10,
        base_delay_ms: int = 500,
        max_delay_ms: int = 30_000,
        rng: random.Random | None = None,
    ):
        self.handler = handler
        self.max_deliveries = max_deliveries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self._rng = rng

    async def deliver(self, entry_id: QueueEntryId) -> DeliveryReport:
        last_error: PairQueueError | None = None
        for delivery in range(1, self.max_deliveries + 1):
            try:
                outcome = await self.handler.handle(entry_id)
                return DeliveryReport(entry_id, True, delivery, outcome)
            except MatchInvariantError as e:
                return DeliveryReport(
                    entry_id, False, delivery, error_code=e.code,
                )
            except _REDELIVERABLE as e:
                last_error = e
                if delivery >= self.max_deliveries:
                    break
                delay = compute_backoff_ms(
                    delivery - 1, self.base_delay_ms, self.max_delay_ms,
                    self._rng,
                )
                logger.warning(
                    f"Match trigger failed ({e.code}), redelivering in {delay}ms",
                    extra={
                        "entry_id": str(entry_id),
                        "delivery": delivery,
                        "error_code": e.code,
                    },
                )
                await asyncio.sleep(delay / 1000)

        logger.error(
            f"Match trigger dead-lettered after {self.max_deliveries} deliveries",
            extra={
                "entry_id": str(entry_id),
                "delivery": self.max_deliveries,
                "error_code": last_error.code if last_error else None,
            },
        )
        return DeliveryReport(
            entry_id, False, self.max_deliveries,
            error_code=last_error.code if last_error else None,
        )
