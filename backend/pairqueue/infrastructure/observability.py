"""Structured Logging — one JSON object per line, carrying matching context.

Invariants:
    - Every line has timestamp, level, logger, message
    - Matching context (entry_id, match_id, outcome, attempt, delivery, ...) appears only
      when the call site passed it in `extra`
    - setup_logging is idempotent: the API lifespan and the reaper CLI may both call it

Design Decisions:
    - stdlib logging + json: log shippers read the stream, nothing here needs more
    - SQLAlchemy engine logging pinned to WARNING: conflict retries already log at WARNING
      with their entry_id, the raw statements add nothing
"""

import json
import logging
from datetime import datetime, timezone

CONTEXT_FIELDS = (
    "entry_id", "match_id", "user_id", "category", "outcome",
    "attempt", "delivery", "error_code", "deleted", "cutoff", "path",
)

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_HANDLER_NAME = "pairqueue"


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        line = {
            "timestamp": datetime.fromtimestamp(
                record.created, timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        line.update(
            (key, getattr(record, key))
            for key in CONTEXT_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info:
            line["exception"] = self.formatException(record.exc_info)
        # UUIDs and datetimes in extra
        return json.dumps(line, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Install the pairqueue handler on the root logger, replacing a previous one."""
    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        JSONFormatter() if fmt == "json" else logging.Formatter(_TEXT_FORMAT),
    )
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
