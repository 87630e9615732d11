"""Engine configuration.

Every threshold and window the analyzers use lives here rather than in the
analyzer code. The defaults are the product-tuned values the engine ships
with; callers that need different tuning construct their own EngineConfig
and pass it to SignalEngine (or to an individual analyzer in tests).
"""

from pydantic import BaseModel, ConfigDict, Field


class EngineConfig(BaseModel):
    """Windows, thresholds and cache lifetime for one SignalEngine.

    Attributes:
        long_window_days: Session-log scan window. Covers both comparison
            periods with room to spare.
        recent_window_days: Length of the "recent" comparison window. The
            "previous" window is the same length, immediately before it.
        cache_ttl_ms: Lifetime of a cached per-organization result.

        attendance_min_logs: Minimum session logs a class needs before its
            trend is evaluated.
        attendance_recent_ceiling: Recent average must be at or below this.
        attendance_min_drop: Previous minus recent average must reach this.
        attendance_high_drop: Drop at or above this is high severity.
        attendance_high_floor: Recent average below this is high severity.

        absence_min_streak: Consecutive absences needed for a signal.
        absence_high_streak: Streak length that raises severity to high.
        absence_stale_days: The streak's oldest counted absence must fall
            within this many days of now.

        report_delay_days: Days without a report before a class is flagged.
        report_delay_high_days: Days without a report for high severity.

        presence_min_days: Distinct check-in days needed per class.
        presence_min_median: Median daily check-ins below this is noise.
        presence_high_ratio: Latest count at or below median x ratio is high.
        presence_medium_ratio: Latest count at or below median x ratio is medium.

        engagement_drop_count: Attendance drops for condition A.
        engagement_absence_count: Repeated absences for condition B.
        engagement_report_count: Report delays (plus one drop) for condition C.
    """

    model_config = ConfigDict(frozen=True)

    long_window_days: int = Field(default=42, gt=0)
    recent_window_days: int = Field(default=14, gt=0)
    cache_ttl_ms: int = Field(default=60_000, ge=0)

    attendance_min_logs: int = 4
    attendance_recent_ceiling: float = 0.72
    attendance_min_drop: float = 0.10
    attendance_high_drop: float = 0.15
    attendance_high_floor: float = 0.65

    absence_min_streak: int = Field(default=3, ge=1)
    absence_high_streak: int = 4
    absence_stale_days: int = 30

    report_delay_days: int = 7
    report_delay_high_days: int = 14

    presence_min_days: int = 3
    presence_min_median: float = 6
    presence_high_ratio: float = 0.4
    presence_medium_ratio: float = 0.6

    engagement_drop_count: int = 2
    engagement_absence_count: int = 5
    engagement_report_count: int = 3
