"""
Activity Logger

Every mutation of the ledger document is logged as one structured line.
Logging is local only (stdlib logging via structlog); nothing here touches
the store.
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from kubera.models.activity import ActivityEvent, ActivityEventBuilder, ActivitySeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class ActivityLogger:
    """
    Central activity logging service.

    All events of one session share a session id so a log file
    covering several app launches can be split apart again.
    """

    def __init__(self, session_id: Optional[UUID] = None):
        self.session_id = session_id or create_session_id()
        self._logger = structlog.get_logger("kubera.activity")

    def log(self, event: ActivityEvent) -> ActivityEvent:
        """
        Log an activity event and return it (stamped with the session id).
        """
        if event.session_id is None:
            event = event.model_copy(update={"session_id": self.session_id})

        log_dict = event.to_log_dict()

        if event.severity == ActivitySeverity.ERROR:
            self._logger.error("activity_event", **log_dict)
        elif event.severity == ActivitySeverity.WARNING:
            self._logger.warning("activity_event", **log_dict)
        elif event.severity == ActivitySeverity.DEBUG:
            self._logger.debug("activity_event", **log_dict)
        else:
            self._logger.info("activity_event", **log_dict)

        return event

    def log_validation_failed(self, operation: str, issues: list[dict]) -> None:
        """Log rejected user input."""
        self.log(ActivityEventBuilder.validation_failed(operation, issues))

    def log_persistence_failed(self, operation: str, error_message: str) -> None:
        """Log a store failure."""
        self.log(ActivityEventBuilder.persistence_failed(operation, error_message))


def create_session_id() -> UUID:
    """
    Create a new session ID.

    Use this once per app launch and pass it to every logger of the session.
    """
    return uuid4()
