"""Signal extractor: runs every analyzer as a two-phase pipeline.

This is the only class the engine calls once data has been fetched. It:
1. Runs the four independent analyzers in a fixed order (phase 1), each
   against its own slice of the organization snapshot
2. Runs the engagement reducer over the phase-1 output (phase 2)
3. Hands the concatenation to the SignalAggregator for dedup and ranking
4. Returns the final, fully sorted signal list

Analyzers are pure and synchronous, so the whole extraction happens in one
pass with no suspension points. Phase 2 always sees the complete phase-1
output.
"""

import logging

from aggregation.aggregator import SignalAggregator
from schemas.records import OrganizationSnapshot
from schemas.signal import Signal
from signals.absence_analyzer import RepeatedAbsenceAnalyzer
from signals.attendance_analyzer import AttendanceDropAnalyzer
from signals.context import AnalysisContext
from signals.engagement_analyzer import EngagementRiskAnalyzer
from signals.presence_analyzer import UnusualPresenceAnalyzer
from signals.report_analyzer import ReportDelayAnalyzer

logger = logging.getLogger(__name__)


class SignalExtractor:
    """Orchestrates all analyzers and returns a deduplicated, ranked signal list."""

    def __init__(self) -> None:
        self._attendance = AttendanceDropAnalyzer()
        self._absence = RepeatedAbsenceAnalyzer()
        self._report = ReportDelayAnalyzer()
        self._presence = UnusualPresenceAnalyzer()
        self._engagement = EngagementRiskAnalyzer()
        self._aggregator = SignalAggregator()

    def extract(self, snapshot: OrganizationSnapshot, context: AnalysisContext) -> list[Signal]:
        """Run both phases against one organization snapshot.

        Args:
            snapshot: Every row fetched for the organization in this run.
            context: Organization, time window, thresholds and label lookups.

        Returns:
            Signals sorted by severity then detected_at, one per canonical key.
        """
        independent = self.extract_independent(snapshot, context)
        composite = self._engagement.analyze(independent, context)

        signals = self._aggregator.aggregate(independent + composite)
        logger.debug(
            "SignalExtractor produced %d signals (%d independent, %d composite) for %s.",
            len(signals),
            len(independent),
            len(composite),
            context.organization_id,
        )
        return signals

    def extract_independent(
        self, snapshot: OrganizationSnapshot, context: AnalysisContext
    ) -> list[Signal]:
        """Phase 1: the four analyzers that read raw rows, in fixed order."""
        signals: list[Signal] = []
        signals.extend(self._attendance.analyze(snapshot.session_logs, context))
        signals.extend(self._absence.analyze(snapshot.attendance, context))
        signals.extend(self._report.analyze(snapshot.pending_reports, context))
        signals.extend(self._presence.analyze(snapshot.checkins, context))
        return signals
