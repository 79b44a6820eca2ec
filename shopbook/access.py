"""
Admin Gate

The dashboard and the reports view ask for a password before showing
totals. This is a plaintext comparison against configured values and
is a UX gate, not access control: anyone who can read the data
directory can read the books.
"""

import hmac
from enum import Enum
from typing import Optional

from shopbook.audit import AuditLogger
from shopbook.config import AppSettings, get_settings
from shopbook.models.audit import AuditEventBuilder


class AdminArea(str, Enum):
    """Views that sit behind a password."""
    DASHBOARD = "dashboard"
    REPORTS = "reports"


class AdminGate:
    """Checks the password for a privileged view."""

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = settings or get_settings().app
        self._audit = audit_logger or AuditLogger()

    def _password_for(self, area: AdminArea) -> str:
        if area is AdminArea.DASHBOARD:
            return self._settings.dashboard_password
        return self._settings.reports_password

    def check(self, area: AdminArea, password: Optional[str]) -> bool:
        """True when the password matches. Every attempt is audited."""
        expected = self._password_for(area)
        granted = hmac.compare_digest(
            (password or "").encode("utf-8"),
            expected.encode("utf-8"),
        )
        self._audit.log(AuditEventBuilder.admin_access(
            area=area.value,
            granted=granted,
        ))
        return granted
