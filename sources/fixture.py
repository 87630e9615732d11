"""Fixture-backed data source.

FixtureDataSource satisfies SignalDataSource from a JSON file instead of the
hosted backend, so the whole pipeline can run offline: in the demo CLI, in
tests, and when reproducing a customer report from an exported snapshot.

File format:
    {
        "organizations": {
            "<organization_id>": {
                "classes": [...], "students": [...], "attendance": [...],
                "session_logs": [...], "pending_reports": [...], "checkins": [...]
            }
        }
    }

Each per-organization object is an OrganizationSnapshot. Range queries filter
on the parsed timestamp, inclusive at both ends. Rows whose timestamp cannot
be parsed are left out of range results, as a database range query would.
"""

import json
import logging
import pathlib
from datetime import datetime

from pydantic import BaseModel, Field, ValidationError

from schemas.records import (
    AttendanceRecord,
    CheckinRecord,
    ClassRecord,
    OrganizationSnapshot,
    PendingReportRecord,
    SessionLogRecord,
    StudentRecord,
)
from utils.timeframe import parse_datetime

logger = logging.getLogger(__name__)


class FixtureError(Exception):
    """Raised when a fixture file cannot be read or does not match the schema.

    Includes the path so callers can report it without re-wrapping.
    """

    def __init__(self, message: str, path: pathlib.Path):
        super().__init__(message)
        self.path = path


class UnknownOrganizationError(KeyError):
    """Raised when a query names an organization the fixture has no snapshot for."""

    def __init__(self, organization_id: str):
        super().__init__(f"No fixture data for organization '{organization_id}'.")
        self.organization_id = organization_id


class FixtureFile(BaseModel):
    """Top-level schema of a fixture file."""

    organizations: dict[str, OrganizationSnapshot] = Field(default_factory=dict)


def _in_range(value: str | None, start: datetime | None, end: datetime | None) -> bool:
    moment = parse_datetime(value)
    if moment is None:
        return False
    if start is not None and moment < start:
        return False
    if end is not None and moment > end:
        return False
    return True


class FixtureDataSource:
    """SignalDataSource implementation over in-memory organization snapshots.

    Every query for an organization that has no snapshot raises
    UnknownOrganizationError (a KeyError), mirroring a backend that rejects
    an unknown organization.

    Attributes:
        _snapshots: Organization id -> snapshot.
    """

    def __init__(self, snapshots: dict[str, OrganizationSnapshot]) -> None:
        self._snapshots = dict(snapshots)

    @classmethod
    def from_file(cls, path: str | pathlib.Path) -> "FixtureDataSource":
        """Load and validate a fixture file.

        Raises:
            FixtureError: If the file is missing, is not JSON, or does not
                match the fixture schema.
        """
        path = pathlib.Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                raw = json.load(f)
        except OSError as exc:
            raise FixtureError(f"Cannot read fixture {path}: {exc}", path) from exc
        except json.JSONDecodeError as exc:
            raise FixtureError(f"Fixture {path} is not valid JSON: {exc}", path) from exc

        try:
            fixture = FixtureFile.model_validate(raw)
        except ValidationError as exc:
            raise FixtureError(f"Fixture {path} does not match the schema: {exc}", path) from exc

        logger.debug("Loaded fixture %s with %d organizations.", path, len(fixture.organizations))
        return cls(fixture.organizations)

    @property
    def organization_ids(self) -> list[str]:
        return sorted(self._snapshots)

    async def get_classes(self, organization_id: str) -> list[ClassRecord]:
        return list(self._snapshot(organization_id).classes)

    async def get_students(self, organization_id: str) -> list[StudentRecord]:
        return list(self._snapshot(organization_id).students)

    async def get_attendance_all(self, organization_id: str) -> list[AttendanceRecord]:
        return list(self._snapshot(organization_id).attendance)

    async def get_session_logs_by_range(
        self, from_iso: str, to_iso: str, organization_id: str
    ) -> list[SessionLogRecord]:
        start, end = parse_datetime(from_iso), parse_datetime(to_iso)
        return [
            row for row in self._snapshot(organization_id).session_logs
            if _in_range(row.created_at, start, end)
        ]

    async def list_admin_pending_session_logs(self, organization_id: str) -> list[PendingReportRecord]:
        return list(self._snapshot(organization_id).pending_reports)

    async def list_checkins_by_range(
        self, organization_id: str, from_iso: str, to_iso: str
    ) -> list[CheckinRecord]:
        start, end = parse_datetime(from_iso), parse_datetime(to_iso)
        return [
            row for row in self._snapshot(organization_id).checkins
            if _in_range(row.checked_in_at, start, end)
        ]

    # ── Private ───────────────────────────────────────────────────────────────

    def _snapshot(self, organization_id: str) -> OrganizationSnapshot:
        try:
            return self._snapshots[organization_id]
        except KeyError:
            raise UnknownOrganizationError(organization_id) from None
