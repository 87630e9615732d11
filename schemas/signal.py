"""Signal schema.

Signals are derived, read-only facts about an organization's attendance and
reporting health. They are recomputed by the SignalEngine on every cache miss
and never persisted. The raw rows they describe belong to other modules.

Identity is deterministic: the id is built only from the signal type and its
scoping keys, so re-running the pipeline against evolving data updates a
signal instead of duplicating it.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

NONE_KEY = "__none__"


class SignalType(str, Enum):
    """The closed set of conditions the engine can detect."""

    ATTENDANCE_DROP = "attendance_drop"
    REPEATED_ABSENCE = "repeated_absence"
    REPORT_DELAY = "report_delay"
    UNUSUAL_PRESENCE_PATTERN = "unusual_presence_pattern"
    ENGAGEMENT_RISK = "engagement_risk"


class SignalSeverity(str, Enum):
    """Ordinal risk level. Used for ranking only, see SEVERITY_RANK."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SignalScope(str, Enum):
    """The entity granularity a signal is about."""

    ORGANIZATION = "organization"
    CLASS = "class"
    STUDENT = "student"


SEVERITY_RANK: dict[SignalSeverity, int] = {
    SignalSeverity.CRITICAL: 4,
    SignalSeverity.HIGH: 3,
    SignalSeverity.MEDIUM: 2,
    SignalSeverity.LOW: 1,
}


def make_signal_id(
    type_: SignalType,
    organization_id: str,
    class_id: str | None = None,
    student_id: str | None = None,
) -> str:
    """Return the canonical identity string for a signal.

    Shape: ``type:organization:class-or-__none__:student-or-__none__``.
    """
    return ":".join([
        SignalType(type_).value,
        organization_id,
        class_id or NONE_KEY,
        student_id or NONE_KEY,
    ])


class Signal(BaseModel):
    """One detected risk condition for an organization, class or student.

    Attributes:
        id: Deterministic key built by make_signal_id(). Never depends on
            detected_at or evidence.
        type: Which builder produced the signal.
        severity: Ordinal level used to rank signals.
        scope: The entity the signal is about. The scoping keys must agree
            with it, enforced by the model validator below.
        organization_id: Owning organization. Always present.
        class_id: Class the signal refers to. Required for class scope,
            optional for student scope, absent for organization scope.
        student_id: Student the signal refers to. Student scope only.
        title: Short human-readable label.
        summary: One-line explanation generated from the evidence.
        evidence: The numeric/date facts that justify the signal. Fields
            vary per type but are always populated.
        recommended_action_ids: Action catalog ids in priority order.
        detected_at: Normalized ISO-8601 timestamp of the most recent
            evidence point (the run's "now" for engagement_risk).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: SignalType
    severity: SignalSeverity
    scope: SignalScope
    organization_id: str
    class_id: str | None = None
    student_id: str | None = None
    title: str
    summary: str
    evidence: dict[str, Any]
    recommended_action_ids: list[str]
    detected_at: str

    @model_validator(mode="after")
    def _check_scope_keys(self) -> "Signal":
        if self.scope is SignalScope.ORGANIZATION and (self.class_id or self.student_id):
            raise ValueError("organization-scoped signals cannot carry class_id or student_id")
        if self.scope is SignalScope.CLASS and not self.class_id:
            raise ValueError("class-scoped signals require class_id")
        if self.scope is SignalScope.STUDENT and not self.student_id:
            raise ValueError("student-scoped signals require student_id")
        return self

    @property
    def rank(self) -> int:
        """Numeric severity rank (critical=4 down to low=1)."""
        return SEVERITY_RANK[self.severity]

    @property
    def dedupe_key(self) -> str:
        """Canonical key used by the aggregator. Same shape as id."""
        return make_signal_id(self.type, self.organization_id, self.class_id, self.student_id)
