"""Report analyzer: reporting cadence per class.

Detects:
- Report delay: a class with no session log at all, or whose last log is
  a week or more old.

No I/O involved. Same rows and window always produce the same output.
"""

import logging

from schemas.records import PendingReportRecord
from schemas.signal import Signal, SignalScope, SignalSeverity, SignalType
from signals.context import AnalysisContext
from utils.timeframe import parse_datetime, to_iso, whole_days_between

logger = logging.getLogger(__name__)


class ReportDelayAnalyzer:
    """Extract report_delay signals from the pending-reports summary."""

    def analyze(self, pending: list[PendingReportRecord], context: AnalysisContext) -> list[Signal]:
        """Return one signal per class that is overdue on its report.

        A class with no report history is always flagged at high severity.
        A class whose last_report_at cannot be parsed is skipped.
        """
        signals: list[Signal] = []
        for item in pending:
            signal = self._check_class(item, context)
            if signal is not None:
                signals.append(signal)
        return signals

    # ── Private ───────────────────────────────────────────────────────────────

    def _check_class(self, item: PendingReportRecord, context: AnalysisContext) -> Signal | None:
        cfg = context.config
        no_history = item.last_report_at is None

        days_without_report: int | None = None
        if not no_history:
            last_report = parse_datetime(item.last_report_at)
            if last_report is None:
                logger.debug(
                    "Skipping report delay for class %s: bad last_report_at %r",
                    item.class_id,
                    item.last_report_at,
                )
                return None
            days_without_report = whole_days_between(last_report, context.window.now)
            if days_without_report < cfg.report_delay_days:
                return None

        high = no_history or days_without_report >= cfg.report_delay_high_days
        summary = (
            "Class has no recorded report."
            if no_history
            else f"{days_without_report} days without a class report."
        )

        return context.make_signal(
            SignalType.REPORT_DELAY,
            SignalSeverity.HIGH if high else SignalSeverity.MEDIUM,
            SignalScope.CLASS,
            class_id=item.class_id,
            title=f"Overdue report: {item.class_name}",
            summary=summary,
            evidence={
                "class_name": item.class_name,
                "unit": item.unit,
                "period_start": item.period_start,
                "last_report_at": item.last_report_at,
                "days_without_report": days_without_report,
            },
            detected_at=context.window.now_iso if no_history else to_iso(last_report),
        )
