"""Absence analyzer: streak detection over manual attendance rows.

Detects:
- Repeated absence: a student whose most recent attendance rows are an
  unbroken run of absences, long enough and recent enough to act on.

No I/O involved. Same rows and window always produce the same output.
"""

import logging
from collections import defaultdict
from datetime import timedelta

from schemas.records import AttendanceRecord
from schemas.signal import Signal, SignalScope, SignalSeverity, SignalType
from signals.context import AnalysisContext
from utils.timeframe import day_start, to_iso

logger = logging.getLogger(__name__)

ABSENT_STATUS = "faltou"


class RepeatedAbsenceAnalyzer:
    """Extract repeated_absence signals, at most one per student."""

    def analyze(self, rows: list[AttendanceRecord], context: AnalysisContext) -> list[Signal]:
        """Scan attendance rows grouped by student and return absence streaks.

        Args:
            rows: Every attendance row for the organization.
            context: Run context (window, thresholds, student lookup).

        Returns:
            Zero or one Signal per student.
        """
        by_student: dict[str, list[AttendanceRecord]] = defaultdict(list)
        for row in rows:
            if not row.date:
                logger.debug("Skipping attendance row for student %s: missing date", row.student_id)
                continue
            by_student[row.student_id].append(row)

        signals: list[Signal] = []
        for student_id, student_rows in by_student.items():
            signal = self._check_student(student_id, student_rows, context)
            if signal is not None:
                signals.append(signal)
        return signals

    # ── Private ───────────────────────────────────────────────────────────────

    def _check_student(
        self,
        student_id: str,
        rows: list[AttendanceRecord],
        context: AnalysisContext,
    ) -> Signal | None:
        cfg = context.config
        newest_first = sorted(rows, key=lambda r: (r.date or "", r.created_at or ""), reverse=True)

        streak = 0
        for row in newest_first:
            if row.status != ABSENT_STATUS:
                break
            streak += 1
        if streak < cfg.absence_min_streak:
            return None

        # The oldest absence that still counts toward the minimum must be recent.
        boundary = newest_first[cfg.absence_min_streak - 1]
        boundary_day = day_start(boundary.date)
        if boundary_day is None:
            logger.debug("Skipping absences for student %s: bad date %r", student_id, boundary.date)
            return None
        if context.window.now - boundary_day > timedelta(days=cfg.absence_stale_days):
            return None

        latest = newest_first[0]
        latest_day = day_start(latest.date)
        student = context.students_by_id.get(student_id)
        class_id = (student.class_id if student else None) or latest.class_id
        name = student.name if student else "student"

        return context.make_signal(
            SignalType.REPEATED_ABSENCE,
            SignalSeverity.HIGH if streak >= cfg.absence_high_streak else SignalSeverity.MEDIUM,
            SignalScope.STUDENT,
            class_id=class_id,
            student_id=student_id,
            title=f"Consecutive absences for {name}",
            summary=f"{streak} consecutive absences within {cfg.absence_stale_days} days.",
            evidence={
                "streak": streak,
                "latest_date": latest.date,
                "oldest_date_in_window": boundary.date,
            },
            detected_at=to_iso(latest_day) if latest_day else context.window.now_iso,
        )
