"""Session Notifications — default observer of committed matches.

Invariants:
    - Called only after the match transaction committed
    - Never raises into the handler (handler also guards against it)

Design Decisions:
    - Push delivery is an external collaborator: this listener only records the event
      in the log stream that collaborator tails
"""

import logging

from pairqueue.core.match_rules import MatchOutcome

logger = logging.getLogger(__name__)


class LoggingSessionListener:
    """Logs one line per created session for the notification fan-out."""

    async def on_session_created(self, outcome: MatchOutcome) -> None:
        logger.info(
            f"Session created for {', '.join(outcome.participants)}",
            extra={
                "match_id": str(outcome.match_id),
                "entry_id": str(outcome.entry_id),
            },
        )
