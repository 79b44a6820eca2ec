"""Tests for the audit logger."""

from shopbook.audit import AuditLogger, create_correlation_id
from shopbook.models.audit import AuditEventBuilder, AuditEventType
from shopbook.services.storage import InMemoryKeyValueStore, KeyValueAuditStorage
from tests.conftest import ReadOnlyStore


class TestAuditLogger:

    def test_local_only(self):
        logger = AuditLogger()
        assert logger.log(AuditEventBuilder.expenses_deleted(count=1)) is True
        assert len(logger.events) == 1

    def test_persists_to_storage(self):
        store = InMemoryKeyValueStore()
        logger = AuditLogger(KeyValueAuditStorage(store))

        logger.log_storage_error(key="sales", operation="save", error_message="disk full")

        stored = KeyValueAuditStorage(store).get_recent_events()
        assert stored[0].event_type is AuditEventType.STORAGE_ERROR
        assert stored[0].error_message == "disk full"

    def test_storage_failure_does_not_raise(self):
        logger = AuditLogger(KeyValueAuditStorage(ReadOnlyStore()))

        assert logger.log(AuditEventBuilder.expenses_deleted(count=1)) is False
        assert len(logger.events) == 1

    def test_log_error(self):
        logger = AuditLogger()
        cid = create_correlation_id()

        logger.log_error("ImportError", "bad file", details={"line": 3}, correlation_id=cid)

        event = logger.events[0]
        assert event.event_type is AuditEventType.SYSTEM_ERROR
        assert event.correlation_id == cid

    def test_recent_events_from_storage(self):
        store = InMemoryKeyValueStore()
        AuditLogger(KeyValueAuditStorage(store)).log(AuditEventBuilder.expenses_deleted(count=2))

        fresh = AuditLogger(KeyValueAuditStorage(store))

        assert fresh.events == []
        assert fresh.recent_events()[0].details["count"] == 2

    def test_history(self):
        logger = AuditLogger()
        logger.log(AuditEventBuilder.creditor_balance_negative(phone="0300", balance=-5))
        logger.log(AuditEventBuilder.creditor_balance_negative(phone="0311", balance=-1))

        history = logger.history("creditor", "0300")

        assert len(history) == 1
        assert history[0].details["balance"] == -5

    def test_in_memory_events_are_capped(self):
        store = InMemoryKeyValueStore()
        logger = AuditLogger(KeyValueAuditStorage(store, max_events=10), max_events=10)

        for count in range(500):
            logger.log(AuditEventBuilder.expenses_deleted(count=count))

        assert len(logger.events) == 10
        assert [e.details["count"] for e in logger.events] == list(range(490, 500))
        assert len(KeyValueAuditStorage(store).get_recent_events(limit=1000)) == 10
