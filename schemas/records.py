"""Collaborator record schemas.

Defines the plain rows the signal engine receives from its data-access
collaborators. These are the contract between the backend wrappers (classes,
students, attendance, session logs, pending reports, NFC check-ins) and the
engine. The engine reads them and never writes them back.

Date and time fields are kept as raw, optional strings on purpose: a missing
or malformed value must reach the analyzers, which skip the row for that
computation instead of failing the whole run.
"""

from pydantic import BaseModel, Field


class ClassRecord(BaseModel):
    """A class (training group) in the organization. Used for labels only."""

    id: str
    name: str


class StudentRecord(BaseModel):
    """A student and the class they belong to. Used for labels and class lookup."""

    id: str
    name: str
    class_id: str | None = None


class AttendanceRecord(BaseModel):
    """One manually recorded attendance row.

    Attributes:
        student_id: Student the row refers to.
        class_id: Class the session belonged to.
        status: Recorded status. "faltou" marks an absence; every other
            value breaks an absence streak.
        date: Session date, usually "YYYY-MM-DD".
        created_at: Timestamp the row was written. Tie-breaker when two
            rows share a date.
    """

    student_id: str
    class_id: str | None = None
    status: str
    date: str | None = None
    created_at: str | None = None


class SessionLogRecord(BaseModel):
    """A per-session report written by the trainer.

    Attributes:
        class_id: Class the session belonged to.
        attendance: Fraction of enrolled students present, 0..1. A missing
            value counts as 0; non-finite values are excluded from averages.
        created_at: When the log was written. Drives window bucketing.
    """

    class_id: str
    attendance: float | None = None
    created_at: str | None = None


class PendingReportRecord(BaseModel):
    """Reporting status of one class as seen by the admin pending-reports view.

    Attributes:
        last_report_at: Timestamp of the most recent session log for the
            class, or None when the class has never reported.
    """

    class_id: str
    class_name: str
    unit: str | None = None
    period_start: str | None = None
    last_report_at: str | None = None


class CheckinRecord(BaseModel):
    """A single NFC tap recorded at the start of a session."""

    class_id: str | None = None
    checked_in_at: str | None = None


class OrganizationSnapshot(BaseModel):
    """Every row the engine needs for one organization, fetched in one run.

    Built by SignalEngine after all collaborator fetches resolve, and also the
    per-organization schema of the JSON fixture file read by FixtureDataSource.
    """

    classes: list[ClassRecord] = Field(default_factory=list)
    students: list[StudentRecord] = Field(default_factory=list)
    attendance: list[AttendanceRecord] = Field(default_factory=list)
    session_logs: list[SessionLogRecord] = Field(default_factory=list)
    pending_reports: list[PendingReportRecord] = Field(default_factory=list)
    checkins: list[CheckinRecord] = Field(default_factory=list)
