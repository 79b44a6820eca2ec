"""Tests for the password gate on privileged views."""

import pytest

from shopbook.access import AdminArea, AdminGate
from shopbook.audit import AuditLogger
from shopbook.config import AppSettings
from shopbook.models.audit import AuditEventType


@pytest.fixture
def gate_logger() -> AuditLogger:
    return AuditLogger()


@pytest.fixture
def gate(gate_logger) -> AdminGate:
    settings = AppSettings(dashboard_password="dash", reports_password="reports")
    return AdminGate(settings, audit_logger=gate_logger)


class TestAdminGate:

    def test_correct_passwords(self, gate):
        assert gate.check(AdminArea.DASHBOARD, "dash") is True
        assert gate.check(AdminArea.REPORTS, "reports") is True

    @pytest.mark.parametrize("password", ["", None, "Dash", "reports", "dash "])
    def test_wrong_dashboard_password(self, gate, password):
        assert gate.check(AdminArea.DASHBOARD, password) is False

    def test_attempts_are_audited(self, gate, gate_logger):
        gate.check(AdminArea.REPORTS, "nope")
        gate.check(AdminArea.REPORTS, "reports")

        types = [e.event_type for e in gate_logger.events]
        assert types == [
            AuditEventType.ADMIN_ACCESS_DENIED,
            AuditEventType.ADMIN_ACCESS_GRANTED,
        ]
        assert gate_logger.events[0].entity_key == "reports"

    def test_default_password(self, monkeypatch):
        monkeypatch.delenv("SHOPBOOK_DASHBOARD_PASSWORD", raising=False)
        gate = AdminGate(AppSettings(_env_file=None))
        assert gate.check(AdminArea.DASHBOARD, "cloudify") is True
