"""Signal aggregator.

The SignalAggregator takes the concatenated output of every analyzer in one
run and produces the final list the engine returns and caches. It handles two
concerns the analyzers do not:

1. Ordering: signals are ranked by severity (critical first), then by
   detected_at, most recent first. Every detected_at is a normalized UTC
   timestamp, so plain string comparison is chronological.

2. Deduplication: signals sharing a canonical key
   (type, organization, class, student) collapse to one. The first signal
   after sorting wins, i.e. the most severe and most recent instance.
   Each analyzer already emits at most one signal per key, so this is a
   safety net rather than the primary mechanism.
"""

from collections.abc import Iterable

from schemas.signal import Signal


def signal_sort_key(signal: Signal) -> tuple[int, str]:
    """Sort key for descending (severity rank, detected_at) order."""
    return signal.rank, signal.detected_at


def sort_signals(signals: Iterable[Signal]) -> list[Signal]:
    """Return a new list ordered by severity then recency, both descending.

    The sort is stable: signals with equal severity and detected_at keep
    their input order.
    """
    return sorted(signals, key=signal_sort_key, reverse=True)


class SignalAggregator:
    """Deduplicates and ranks the signals of one engine run."""

    def aggregate(self, signals: list[Signal]) -> list[Signal]:
        """Deduplicate by canonical key and return a fully sorted list.

        Args:
            signals: Every signal produced in the run, in analyzer order.

        Returns:
            A new list with one signal per canonical key, sorted by severity
            then detected_at, both descending. Empty input gives an empty list.
        """
        kept: dict[str, Signal] = {}
        for signal in sort_signals(signals):
            kept.setdefault(signal.dedupe_key, signal)
        return sort_signals(kept.values())
