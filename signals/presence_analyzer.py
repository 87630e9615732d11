"""Presence analyzer: anomaly detection over NFC check-ins.

Detects:
- Unusual presence pattern: a class whose most recent day of check-ins is
  far below its median daily count over the recent window.

Classes with fewer than three days of data, or with a median below the noise
floor, are never flagged.

No I/O involved. Same rows always produce the same output.
"""

import logging
from collections import Counter, defaultdict

from schemas.records import CheckinRecord
from schemas.signal import Signal, SignalScope, SignalSeverity, SignalType
from signals.context import AnalysisContext
from utils.stats import at_most, median, round3
from utils.timeframe import day_start, to_iso, utc_day

logger = logging.getLogger(__name__)


class UnusualPresenceAnalyzer:
    """Extract unusual_presence_pattern signals, at most one per class."""

    def analyze(self, checkins: list[CheckinRecord], context: AnalysisContext) -> list[Signal]:
        """Bucket check-ins per class per UTC day and compare the latest day to the median.

        Args:
            checkins: NFC check-ins over the recent window.
            context: Run context (thresholds, class labels).

        Returns:
            Zero or one Signal per class.
        """
        daily: dict[str, Counter] = defaultdict(Counter)
        for row in checkins:
            if not row.class_id:
                continue
            day = utc_day(row.checked_in_at)
            if day is None:
                logger.debug("Skipping check-in for class %s: bad checked_in_at %r", row.class_id, row.checked_in_at)
                continue
            daily[row.class_id][day] += 1

        signals: list[Signal] = []
        for class_id, counts_by_day in daily.items():
            signal = self._check_class(class_id, counts_by_day, context)
            if signal is not None:
                signals.append(signal)
        return signals

    # ── Private ───────────────────────────────────────────────────────────────

    def _check_class(
        self,
        class_id: str,
        counts_by_day: Counter,
        context: AnalysisContext,
    ) -> Signal | None:
        cfg = context.config
        days = sorted(counts_by_day)
        counts = [counts_by_day[day] for day in days]
        if len(counts) < cfg.presence_min_days:
            return None

        typical = median(counts)
        if typical is None or typical < cfg.presence_min_median:
            return None

        latest_date = days[-1]
        latest_count = counts[-1]
        if at_most(latest_count, typical * cfg.presence_high_ratio):
            severity = SignalSeverity.HIGH
        elif at_most(latest_count, typical * cfg.presence_medium_ratio):
            severity = SignalSeverity.MEDIUM
        else:
            return None

        class_name = context.class_name(class_id)
        return context.make_signal(
            SignalType.UNUSUAL_PRESENCE_PATTERN,
            severity,
            SignalScope.CLASS,
            class_id=class_id,
            title=f"Unusual NFC presence pattern in {class_name}",
            summary=f"Latest day had {latest_count} check-ins vs median {round3(typical)}.",
            evidence={
                "latest_date": latest_date,
                "latest_count": latest_count,
                "median": round3(typical),
                "sample_days": len(counts),
            },
            detected_at=to_iso(day_start(latest_date)),
        )
