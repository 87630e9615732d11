"""Shared analysis context.

AnalysisContext carries everything an analyzer needs besides its own slice of
rows: the organization, the run's time window, the engine config, and label
lookups. It also owns Signal construction so ids, scoping and recommended
actions are filled in identically by every analyzer.
"""

from dataclasses import dataclass, field

from schemas.config import EngineConfig
from schemas.records import ClassRecord, OrganizationSnapshot, StudentRecord
from schemas.signal import Signal, SignalScope, SignalSeverity, SignalType, make_signal_id
from signals.catalog import RECOMMENDED_ACTIONS
from utils.timeframe import TimeWindow


@dataclass
class AnalysisContext:
    """Per-run input shared by all analyzers.

    A dataclass rather than a Pydantic model because it is an internal
    pipeline object that never crosses a system boundary.

    Attributes:
        organization_id: Organization every emitted signal belongs to.
        window: The run's "now" and derived comparison windows.
        config: Thresholds in effect for this run.
        classes_by_id: Class lookup for labels.
        students_by_id: Student lookup for labels and class resolution.
    """

    organization_id: str
    window: TimeWindow
    config: EngineConfig = field(default_factory=EngineConfig)
    classes_by_id: dict[str, ClassRecord] = field(default_factory=dict)
    students_by_id: dict[str, StudentRecord] = field(default_factory=dict)

    @classmethod
    def from_snapshot(
        cls,
        organization_id: str,
        window: TimeWindow,
        snapshot: OrganizationSnapshot,
        config: EngineConfig | None = None,
    ) -> "AnalysisContext":
        return cls(
            organization_id=organization_id,
            window=window,
            config=config or EngineConfig(),
            classes_by_id={c.id: c for c in snapshot.classes},
            students_by_id={s.id: s for s in snapshot.students},
        )

    def class_name(self, class_id: str | None, default: str = "class") -> str:
        record = self.classes_by_id.get(class_id) if class_id else None
        return record.name if record else default

    def make_signal(
        self,
        type_: SignalType,
        severity: SignalSeverity,
        scope: SignalScope,
        *,
        title: str,
        summary: str,
        evidence: dict,
        detected_at: str,
        class_id: str | None = None,
        student_id: str | None = None,
    ) -> Signal:
        """Build a Signal with its id, organization and recommended actions filled in."""
        return Signal(
            id=make_signal_id(type_, self.organization_id, class_id, student_id),
            type=type_,
            severity=severity,
            scope=scope,
            organization_id=self.organization_id,
            class_id=class_id,
            student_id=student_id,
            title=title,
            summary=summary,
            evidence=evidence,
            recommended_action_ids=list(RECOMMENDED_ACTIONS[type_]),
            detected_at=detected_at,
        )
