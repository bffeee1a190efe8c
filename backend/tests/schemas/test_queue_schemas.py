"""Queue and admin schemas — boundary validation."""

import pytest
from pydantic import ValidationError

from pairqueue.core.domain_types import Category
from pairqueue.schemas.match import ReapRequest
from pairqueue.schemas.queue import QueueEntryCreate


def test_user_id_is_stripped():
    body = QueueEntryCreate(user_id="  alice  ", category="female")
    assert body.user_id == "alice"
    assert body.category is Category.FEMALE


@pytest.mark.parametrize("user_id", ["", "   ", "x" * 129])
def test_bad_user_id_rejected(user_id):
    with pytest.raises(ValidationError):
        QueueEntryCreate(user_id=user_id, category="male")


def test_unknown_category_rejected():
    with pytest.raises(ValidationError):
        QueueEntryCreate(user_id="alice", category="robot")


def test_reap_request_ttl_optional():
    assert ReapRequest().ttl_seconds is None


@pytest.mark.parametrize("ttl", [0, -1, 8 * 24 * 3600])
def test_reap_request_ttl_bounds(ttl):
    with pytest.raises(ValidationError):
        ReapRequest(ttl_seconds=ttl)
