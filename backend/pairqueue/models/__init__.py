"""ORM Models — SQLAlchemy declarative models for the queue, matches and sessions.

Invariants:
    - All models inherit from Base (db/base.py)
    - QueueEntry rows are inserted and deleted, never updated
    - MatchRecord and SessionRecord share their primary key

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all / autogenerate
"""

from pairqueue.models.queue_entry import QueueEntry  # noqa: F401
from pairqueue.models.match_record import MatchRecord  # noqa: F401
from pairqueue.models.session_record import SessionRecord  # noqa: F401
