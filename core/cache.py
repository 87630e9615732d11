"""Per-organization result cache.

The cache is the only shared mutable state of the signal engine. It maps an
organization id to the last computed signal list and the instant that list
stops being valid. The engine never reaches for a module-level cache. It is
handed one at construction time, so tests and callers own its lifecycle.

Entries are atomic: a whole per-organization list is stored or replaced at
once. There is no background eviction. An expired entry is simply ignored by
get() and overwritten by the next set().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from schemas.signal import Signal


@dataclass(frozen=True)
class CacheEntry:
    """One cached result.

    Attributes:
        expires_at: First instant at which the entry is no longer live.
        signals: The exact list returned by the run that produced it.
    """

    expires_at: datetime
    signals: list[Signal]

    def is_live(self, now: datetime) -> bool:
        return self.expires_at > now


class SignalCache(ABC):
    """Interface for TTL-aware signal caches.

    Implementations decide where entries live (process memory, a shared
    store). The engine only relies on these three operations.
    """

    @abstractmethod
    def get(self, organization_id: str, now: datetime) -> list[Signal] | None:
        """Return the cached list if a live entry exists at ``now``, else None."""
        ...

    @abstractmethod
    def set(self, organization_id: str, signals: list[Signal], expires_at: datetime) -> None:
        """Store or replace the entry for ``organization_id``."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry. Intended for test isolation."""
        ...


class InMemorySignalCache(SignalCache):
    """Dict-backed cache living in process memory.

    get() hands back the stored list object itself, not a copy, so repeated
    hits within the TTL return the identical list. Signals are frozen models;
    callers must treat the list as read-only.

    Attributes:
        _entries: Internal dict mapping organization id to its CacheEntry.
    """

    def __init__(self) -> None:
        """Initialise an empty cache."""
        self._entries: dict[str, CacheEntry] = {}

    def get(self, organization_id: str, now: datetime) -> list[Signal] | None:
        entry = self._entries.get(organization_id)
        if entry is None or not entry.is_live(now):
            return None
        return entry.signals

    def set(self, organization_id: str, signals: list[Signal], expires_at: datetime) -> None:
        self._entries[organization_id] = CacheEntry(expires_at=expires_at, signals=signals)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        """Return the number of stored entries, live or expired."""
        return len(self._entries)
