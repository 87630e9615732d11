"""Signal engine: the top-level query entry point.

SignalEngine is the single entry point for the whole subsystem. Callers build
it once with a data source (and optionally a cache and config), then call
get_signals() as many times as needed.

Pipeline order inside get_signals():
    1. Validate the organization id (blank -> empty result)
    2. Derive the run's time window from now_iso
    3. Return the cached list if a live entry exists
    4. Fetch all six row sets concurrently via the data source
    5. Build the analysis context (label lookups, thresholds)
    6. Run the two-phase SignalExtractor
    7. Cache the result for cache_ttl_ms and return it

The engine performs no error suppression. If any fetch raises, the exception
propagates to the caller unchanged and nothing is cached.
"""

import asyncio
import logging
from datetime import timedelta

from core.cache import InMemorySignalCache, SignalCache
from core.datasource import SignalDataSource
from schemas.config import EngineConfig
from schemas.records import OrganizationSnapshot
from schemas.signal import Signal
from signals.context import AnalysisContext
from signals.signal_extractor import SignalExtractor
from utils.timeframe import TimeWindow, to_iso

logger = logging.getLogger(__name__)


class SignalEngine:
    """Computes, caches and returns the ranked signals of an organization.

    Holds its collaborators (data source, cache, extractor) for its whole
    lifetime. Each get_signals() miss works on a fresh snapshot and context,
    so runs for different organizations never interfere.

    Attributes:
        _source: Supplies raw rows. Any object satisfying SignalDataSource.
        _cache: Per-organization result cache.
        _config: Windows, thresholds and cache TTL.
        _extractor: Runs the analyzers and the aggregator.
        _single_flight: When True, concurrent misses for one organization
            share a single in-progress computation.
        _inflight: Organization id -> running computation (single flight only).
    """

    def __init__(
        self,
        source: SignalDataSource,
        cache: SignalCache | None = None,
        config: EngineConfig | None = None,
        single_flight: bool = False,
    ) -> None:
        """Initialise the engine.

        Args:
            source: The data-access collaborator.
            cache: Cache to read and populate. Defaults to a private
                InMemorySignalCache owned by this engine.
            config: Engine tuning. Defaults to EngineConfig().
            single_flight: Coalesce concurrent misses for the same
                organization into one fetch. Off by default, in which case
                each concurrent miss recomputes independently.
        """
        self._source = source
        self._cache = cache if cache is not None else InMemorySignalCache()
        self._config = config or EngineConfig()
        self._extractor = SignalExtractor()
        self._single_flight = single_flight
        self._inflight: dict[str, asyncio.Task] = {}

    @property
    def cache(self) -> SignalCache:
        return self._cache

    async def get_signals(self, organization_id: str, now_iso: str | None = None) -> list[Signal]:
        """Return the organization's signals, most severe and most recent first.

        Args:
            organization_id: Organization to analyse. Surrounding whitespace
                is ignored; a blank id returns [] without touching the data
                source or the cache.
            now_iso: Reference instant as an ISO-8601 string. Missing or
                unparseable values fall back to the current UTC time. All
                windows and the cache expiry derive from this single value.

        Returns:
            The ranked signal list. A cache hit returns the stored list
            object itself.

        Raises:
            Exception: Whatever the data source raised. Never caught here.
        """
        organization_id = (organization_id or "").strip()
        if not organization_id:
            return []

        window = TimeWindow.build(now_iso, self._config)
        cached = self._cache.get(organization_id, window.now)
        if cached is not None:
            logger.debug("Cache hit for organization '%s' (%d signals).", organization_id, len(cached))
            return cached

        if not self._single_flight:
            return await self._compute(organization_id, window)

        task = self._inflight.get(organization_id)
        if task is None:
            task = asyncio.ensure_future(self._compute(organization_id, window))
            self._inflight[organization_id] = task
            task.add_done_callback(lambda _t: self._inflight.pop(organization_id, None))
        else:
            logger.debug("Joining in-flight computation for organization '%s'.", organization_id)
        return await asyncio.shield(task)

    def clear_cache(self) -> None:
        """Drop every cached result. Intended for test isolation only."""
        self._cache.clear()

    # ── Private helpers ───────────────────────────────────────────────────────

    async def _compute(self, organization_id: str, window: TimeWindow) -> list[Signal]:
        """Fetch, extract, cache and return signals for one organization."""
        snapshot = await self._fetch(organization_id, window)
        context = AnalysisContext.from_snapshot(organization_id, window, snapshot, self._config)
        signals = self._extractor.extract(snapshot, context)

        self._cache.set(
            organization_id,
            signals,
            expires_at=window.now + timedelta(milliseconds=self._config.cache_ttl_ms),
        )
        logger.info(
            "Computed %d signals for organization '%s' at %s.",
            len(signals),
            organization_id,
            window.now_iso,
        )
        return signals

    async def _fetch(self, organization_id: str, window: TimeWindow) -> OrganizationSnapshot:
        """Issue all six collaborator queries concurrently and bundle the rows.

        asyncio.gather re-raises the first failure as-is, so a single failing
        collaborator fails the whole call. There is no partial snapshot.
        """
        now_iso = window.now_iso
        (
            classes,
            students,
            attendance,
            session_logs,
            pending_reports,
            checkins,
        ) = await asyncio.gather(
            self._source.get_classes(organization_id),
            self._source.get_students(organization_id),
            self._source.get_attendance_all(organization_id),
            self._source.get_session_logs_by_range(to_iso(window.long_from), now_iso, organization_id),
            self._source.list_admin_pending_session_logs(organization_id),
            self._source.list_checkins_by_range(organization_id, to_iso(window.recent_from), now_iso),
        )
        return OrganizationSnapshot(
            classes=classes,
            students=students,
            attendance=attendance,
            session_logs=session_logs,
            pending_reports=pending_reports,
            checkins=checkins,
        )
