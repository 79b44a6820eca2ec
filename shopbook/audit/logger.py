"""
Audit Logger

DESIGN DECISION: Every change to the books is logged.
This provides:
1. Complete traceability of every balance change
2. Debugging capability when totals look wrong
3. The shop owner can see the history of a creditor's account

The audit logger:
- Is synchronous, like every other operation in the app
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from collections import deque
from typing import Optional
from uuid import UUID, uuid4

import structlog

from shopbook.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from shopbook.services.storage import AuditStorageInterface, StorageError


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


# Matches the default cap of the persisted audit collection.
DEFAULT_MAX_EVENTS = 2000


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit collection of the key-value store (for the shop owner)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
        max_events: int = DEFAULT_MAX_EVENTS,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
            max_events: How many events this instance keeps in memory;
                    older ones are dropped.
        """
        self._storage = storage
        self._logger = structlog.get_logger()
        self._events: deque[AuditEvent] = deque(maxlen=max_events)

    @property
    def events(self) -> list[AuditEvent]:
        """The last max_events events logged by this instance, oldest first."""
        return list(self._events)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        self._events.append(event)

        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except StorageError as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Most recent events, newest first.

        Read from audit storage when configured, so events from earlier
        sessions are included.
        """
        if self._storage:
            return self._storage.get_recent_events(limit=limit)
        return list(reversed(self._events))[:limit]

    def history(self, entity_type: str, entity_key: str) -> list[AuditEvent]:
        """Every event for one entity (e.g. a creditor's phone), oldest first."""
        if self._storage:
            return self._storage.get_events_by_entity(entity_type, entity_key)
        return [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_key == entity_key
        ]

    def log_storage_error(
        self,
        key: str,
        operation: str,
        error_message: str,
    ) -> None:
        """Log a collection that could not be persisted."""
        self.log(AuditEventBuilder.storage_error(
            key=key,
            operation=operation,
            error_message=error_message,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., saving a sale).
    Pass it through all subsequent operations.
    """
    return uuid4()
