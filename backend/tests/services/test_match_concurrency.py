"""Concurrent match triggers — exactly-once consumption under racing transactions.

Invariants:
    - Two triggers racing for one candidate: exactly one match, the loser commits nothing
    - A consumer committing between our candidate read and our delete forces a retry;
      the retry sees the new state and ends as a no-op
    - Under a burst of concurrent triggers no entry lands in two matches, every match
      pairs opposite categories, and every match has its session
"""

import asyncio

from pairqueue.core.domain_types import Category, MatchResult, MatchStatus
from pairqueue.services.queue_store import QueueStore


async def test_racing_consumer_forces_retry_then_no_op(
    handler, enqueue, snapshot, monkeypatch,
):
    """A1(X), B1(Y), B2(Y): B1's transaction commits while B2's is mid-flight."""
    a1 = await enqueue("a1", Category.MALE, 0)
    b1 = await enqueue("b1", Category.FEMALE, 1)
    b2 = await enqueue("b2", Category.FEMALE, 2)

    original_get_entry = QueueStore.get_entry
    raced = False

    async def racing_get_entry(self, entry_id):
        nonlocal raced
        entry = await original_get_entry(self, entry_id)
        if entry_id == a1.entry_id and not raced:
            raced = True
            winner = await handler.handle(b1.entry_id)
            assert winner.result is MatchResult.MATCHED
        return entry

    monkeypatch.setattr(QueueStore, "get_entry", racing_get_entry)

    outcome = await handler.handle(b2.entry_id)

    assert raced
    assert outcome.result is MatchResult.NO_CANDIDATE
    assert outcome.attempts == 2
    state = await snapshot()
    [match] = state["matches"]
    assert (match.participant_a_id, match.participant_b_id) == ("b1", "a1")
    assert list(state["sessions"]) == [match.id]
    assert state["queued_users"] == ["b2"]


async def test_entry_deleted_mid_transaction_is_never_matched(
    handler, enqueue, snapshot, test_session_factory, monkeypatch,
):
    """Candidate removed by another transaction (e.g. the reaper) after our re-read."""
    a1 = await enqueue("a1", Category.MALE, 0)
    b1 = await enqueue("b1", Category.FEMALE, 1)

    original_get_entry = QueueStore.get_entry
    removed = False

    async def get_entry_then_remove(self, entry_id):
        nonlocal removed
        entry = await original_get_entry(self, entry_id)
        if entry_id == a1.entry_id and not removed:
            removed = True
            async with test_session_factory() as other:
                await QueueStore(other).delete_entries([a1.entry_id])
                await other.commit()
        return entry

    monkeypatch.setattr(QueueStore, "get_entry", get_entry_then_remove)

    outcome = await handler.handle(b1.entry_id)

    assert outcome.result is MatchResult.NO_CANDIDATE
    state = await snapshot()
    assert state["matches"] == []
    assert state["sessions"] == {}
    assert state["queued_users"] == ["b1"]


async def test_two_triggers_race_for_one_candidate(handler, enqueue, snapshot):
    await enqueue("a1", Category.MALE, 0)
    b1 = await enqueue("b1", Category.FEMALE, 1)
    b2 = await enqueue("b2", Category.FEMALE, 2)

    outcomes = await asyncio.gather(
        handler.handle(b1.entry_id), handler.handle(b2.entry_id),
    )

    results = sorted(o.result.value for o in outcomes)
    assert results.count(MatchResult.MATCHED.value) == 1
    state = await snapshot()
    assert len(state["matches"]) == 1
    assert len(state["queued_users"]) == 1
    assert state["queued_users"][0] in ("b1", "b2")


async def test_concurrent_burst_consumes_each_entry_once(handler, enqueue, snapshot):
    entries = []
    for i in range(6):
        entries.append(await enqueue(f"m{i}", Category.MALE, i))
        entries.append(await enqueue(f"f{i}", Category.FEMALE, i))

    outcomes = await asyncio.gather(
        *(handler.handle(e.entry_id) for e in entries),
    )

    state = await snapshot()
    matches = state["matches"]
    matched_outcomes = [o for o in outcomes if o.matched]
    assert len(matched_outcomes) == len(matches) >= 1

    users = [u for m in matches for u in (m.participant_a_id, m.participant_b_id)]
    assert len(users) == len(set(users))
    entry_ids = [e for m in matches for e in (m.entry_a_id, m.entry_b_id)]
    assert len(entry_ids) == len(set(entry_ids))

    for match in matches:
        assert match.participant_a_category != match.participant_b_category
        assert match.status == MatchStatus.SESSION_CREATED.value
        assert match.id in state["sessions"]

    # every user is either still waiting or in exactly one match
    assert sorted(state["queued_users"] + users) == sorted(e.user_id for e in entries)
