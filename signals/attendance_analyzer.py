"""Attendance analyzer: trend detection over trainer session logs.

Detects:
- Attendance drop: a class whose recent average attendance (last 14 days)
  fell into a low regime after a noticeably better previous period
  (days 15-28 back).

No I/O involved. Same rows and window always produce the same output.
"""

import logging
from collections import defaultdict

from schemas.records import SessionLogRecord
from schemas.signal import Signal, SignalScope, SignalSeverity, SignalType
from signals.context import AnalysisContext
from utils.stats import at_least, at_most, finite_values, mean, round3
from utils.timeframe import parse_datetime, to_iso

logger = logging.getLogger(__name__)


def _attendance_value(row: SessionLogRecord) -> float:
    """A log without an attendance figure counts as an empty session."""
    return 0.0 if row.attendance is None else row.attendance


class AttendanceDropAnalyzer:
    """Extract attendance_drop signals from session logs, one per class."""

    def analyze(self, logs: list[SessionLogRecord], context: AnalysisContext) -> list[Signal]:
        """Scan session logs grouped by class and return detected drops.

        Args:
            logs: Session logs for the long scan window.
            context: Run context (window, thresholds, class labels).

        Returns:
            Zero or one Signal per class.
        """
        by_class: dict[str, list[SessionLogRecord]] = defaultdict(list)
        for row in logs:
            by_class[row.class_id].append(row)

        signals: list[Signal] = []
        for class_id, rows in by_class.items():
            signal = self._check_class(class_id, rows, context)
            if signal is not None:
                signals.append(signal)
        return signals

    # ── Private ───────────────────────────────────────────────────────────────

    def _check_class(
        self,
        class_id: str,
        rows: list[SessionLogRecord],
        context: AnalysisContext,
    ) -> Signal | None:
        cfg = context.config
        window = context.window
        if len(rows) < cfg.attendance_min_logs:
            return None

        recent: list[float | None] = []
        previous: list[float | None] = []
        timestamps = []
        for row in rows:
            created = parse_datetime(row.created_at)
            if created is None:
                logger.debug("Skipping session log for class %s: bad created_at %r", class_id, row.created_at)
                continue
            timestamps.append(created)
            if created >= window.recent_from:
                recent.append(_attendance_value(row))
            elif created >= window.previous_from:
                previous.append(_attendance_value(row))

        recent_values = finite_values(recent)
        previous_values = finite_values(previous)
        if not recent_values or not previous_values:
            return None

        avg_recent = mean(recent_values)
        avg_prev = mean(previous_values)
        drop = avg_prev - avg_recent
        if not (
            at_most(avg_recent, cfg.attendance_recent_ceiling)
            and at_least(drop, cfg.attendance_min_drop)
        ):
            return None

        high = at_least(drop, cfg.attendance_high_drop) or avg_recent < cfg.attendance_high_floor
        class_name = context.class_name(class_id)

        return context.make_signal(
            SignalType.ATTENDANCE_DROP,
            SignalSeverity.HIGH if high else SignalSeverity.MEDIUM,
            SignalScope.CLASS,
            class_id=class_id,
            title=f"Attendance drop in class {class_name}",
            summary=(
                f"Recent average {round3(avg_recent)} vs previous {round3(avg_prev)} "
                f"(drop {round3(drop)})."
            ),
            evidence={
                "avg_recent": round3(avg_recent),
                "avg_prev": round3(avg_prev),
                "drop": round3(drop),
                "recent_samples": len(recent_values),
                "previous_samples": len(previous_values),
            },
            detected_at=to_iso(max(timestamps)),
        )
