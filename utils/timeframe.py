"""Date and time helpers for the signal analyzers.

All arithmetic happens on timezone-aware UTC datetimes so results do not drift
with the host timezone. Every timestamp the engine emits goes through to_iso(),
which always produces the same shape (``YYYY-MM-DDTHH:MM:SS.mmmZ``) so that
plain string comparison orders timestamps chronologically.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from schemas.config import EngineConfig

ONE_DAY = timedelta(days=1)


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 date or timestamp into an aware UTC datetime.

    Bare dates ("2026-02-18") are read as UTC midnight and naive timestamps
    are read as UTC. Returns None for empty or unparseable input rather than
    raising, so callers can skip the row.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso(moment: datetime) -> str:
    """Format a datetime as a normalized UTC timestamp with millisecond precision."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def utc_day(value: str | None) -> str | None:
    """Truncate a timestamp to its UTC calendar date ("YYYY-MM-DD")."""
    parsed = parse_datetime(value)
    return parsed.date().isoformat() if parsed else None


def day_start(value: str | None) -> datetime | None:
    """Return UTC midnight of the calendar date written in ``value``.

    Only the date part is read, so "2026-02-18" and "2026-02-18T23:00:00Z"
    both map to 2026-02-18T00:00:00Z.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        day = date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def whole_days_between(earlier: datetime, later: datetime) -> int:
    """Floor of the elapsed days from ``earlier`` to ``later``."""
    return (later - earlier) // ONE_DAY


@dataclass(frozen=True)
class TimeWindow:
    """The single "now" of one engine run and every window derived from it.

    Attributes:
        now: Reference instant for the run.
        long_from: Start of the session-log scan window.
        recent_from: Start of the recent comparison window.
        previous_from: Start of the previous comparison window, which ends
            where the recent window begins.
    """

    now: datetime
    long_from: datetime
    recent_from: datetime
    previous_from: datetime

    @classmethod
    def build(cls, now_iso: str | None = None, config: EngineConfig | None = None) -> "TimeWindow":
        """Derive all windows from ``now_iso``, falling back to the wall clock.

        An unparseable ``now_iso`` is treated the same as a missing one.
        """
        config = config or EngineConfig()
        now = parse_datetime(now_iso) or datetime.now(timezone.utc)
        recent = timedelta(days=config.recent_window_days)
        return cls(
            now=now,
            long_from=now - timedelta(days=config.long_window_days),
            recent_from=now - recent,
            previous_from=now - 2 * recent,
        )

    @property
    def now_iso(self) -> str:
        return to_iso(self.now)
