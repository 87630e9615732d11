"""Engagement analyzer: the composite, second-phase signal.

Unlike the other analyzers this one never reads raw rows. It is a pure
reducer over the signals the first phase already produced in the same run,
and raises one organization-wide alert when several weak patterns line up:

    A: at least 2 medium/high attendance drops
    B: at least 5 repeated absences
    C: at least 1 attendance drop and at least 3 report delays

One condition met gives high severity; two or more give critical.
"""

from schemas.signal import Signal, SignalScope, SignalSeverity, SignalType
from signals.context import AnalysisContext

_COUNTED_DROP_SEVERITIES = {SignalSeverity.MEDIUM, SignalSeverity.HIGH}


class EngagementRiskAnalyzer:
    """Reduce first-phase signals into at most one engagement_risk signal."""

    def analyze(self, signals: list[Signal], context: AnalysisContext) -> list[Signal]:
        """Count first-phase signals by type and evaluate conditions A, B and C.

        Args:
            signals: Output of the first-phase analyzers for this run.
            context: Run context. detected_at is always the run's now.

        Returns:
            An empty list when no condition holds, otherwise one signal.
        """
        cfg = context.config
        drop_count = sum(
            1 for s in signals
            if s.type is SignalType.ATTENDANCE_DROP and s.severity in _COUNTED_DROP_SEVERITIES
        )
        absence_count = sum(1 for s in signals if s.type is SignalType.REPEATED_ABSENCE)
        report_count = sum(1 for s in signals if s.type is SignalType.REPORT_DELAY)

        conditions = (
            drop_count >= cfg.engagement_drop_count,
            absence_count >= cfg.engagement_absence_count,
            drop_count >= 1 and report_count >= cfg.engagement_report_count,
        )
        conditions_met = sum(conditions)
        if conditions_met == 0:
            return []

        critical = conditions_met >= 2
        summary = (
            "Critical risk: several attendance and reporting patterns line up."
            if critical
            else "Elevated risk: one strong drop or delay pattern was detected."
        )

        return [context.make_signal(
            SignalType.ENGAGEMENT_RISK,
            SignalSeverity.CRITICAL if critical else SignalSeverity.HIGH,
            SignalScope.ORGANIZATION,
            title="Overall engagement risk",
            summary=summary,
            evidence={
                "conditions_met": conditions_met,
                "attendance_drop_count": drop_count,
                "repeated_absence_count": absence_count,
                "report_delay_count": report_count,
            },
            detected_at=context.window.now_iso,
        )]
