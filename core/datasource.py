"""Data-access contract.

SignalDataSource describes the six collaborator queries the engine consumes.
The engine depends only on this protocol and never on a concrete backend.
The hosted backend wrappers satisfy it in production, FixtureDataSource
satisfies it offline, and tests pass small hand-written stubs.

Every method is expected to return rows already scoped to ``organization_id``.
Failures are raised, not returned: the engine lets them propagate.
"""

from typing import Protocol

from schemas.records import (
    AttendanceRecord,
    CheckinRecord,
    ClassRecord,
    PendingReportRecord,
    SessionLogRecord,
    StudentRecord,
)


class SignalDataSource(Protocol):
    """Protocol for the collaborators that supply raw rows to the engine."""

    async def get_classes(self, organization_id: str) -> list[ClassRecord]:
        """Return every class of the organization."""

    async def get_students(self, organization_id: str) -> list[StudentRecord]:
        """Return every student of the organization."""

    async def get_attendance_all(self, organization_id: str) -> list[AttendanceRecord]:
        """Return every manual attendance row of the organization."""

    async def get_session_logs_by_range(
        self, from_iso: str, to_iso: str, organization_id: str
    ) -> list[SessionLogRecord]:
        """Return session logs created between ``from_iso`` and ``to_iso``."""

    async def list_admin_pending_session_logs(
        self, organization_id: str
    ) -> list[PendingReportRecord]:
        """Return the reporting status of every class."""

    async def list_checkins_by_range(
        self, organization_id: str, from_iso: str, to_iso: str
    ) -> list[CheckinRecord]:
        """Return NFC check-ins recorded between ``from_iso`` and ``to_iso``."""
