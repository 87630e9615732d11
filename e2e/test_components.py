"""Component tests for the engine layer.

Covers SignalAggregator, InMemorySignalCache and SignalEngine. The engine is
driven by a hand-written stub data source that records every call, so tests
can assert on fetch counts and inject upstream failures. No network.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from aggregation.aggregator import SignalAggregator, sort_signals
from core.cache import InMemorySignalCache
from core.engine import SignalEngine
from schemas.config import EngineConfig
from schemas.records import (
    AttendanceRecord,
    CheckinRecord,
    ClassRecord,
    PendingReportRecord,
    SessionLogRecord,
    StudentRecord,
)
from schemas.signal import Signal, SignalSeverity, SignalType, make_signal_id

NOW = "2026-02-19T12:00:00.000Z"
ORG = "org_1"


# ── Helpers ──────────────────────────────────────────────────────────────────

def make_signal(severity="medium", detected_at=NOW, class_id="c_1", type_="report_delay", title="t") -> Signal:
    return Signal(
        id=make_signal_id(type_, ORG, class_id),
        type=type_,
        severity=severity,
        scope="class",
        organization_id=ORG,
        class_id=class_id,
        title=title,
        summary="s",
        evidence={},
        recommended_action_ids=[],
        detected_at=detected_at,
    )


def _logs(class_id, previous, recent):
    rows = [
        SessionLogRecord(class_id=class_id, attendance=v, created_at=f"2026-01-{24 + i * 6:02d}T12:00:00.000Z")
        for i, v in enumerate(previous)
    ]
    rows += [
        SessionLogRecord(class_id=class_id, attendance=v, created_at=f"2026-02-{14 + i * 4:02d}T12:00:00.000Z")
        for i, v in enumerate(recent)
    ]
    return rows


class StubDataSource:
    """In-memory SignalDataSource that counts calls and can fail on demand.

    The default rows reproduce the combined acceptance scenario: two class
    attendance drops, one student absence streak, three overdue reports and
    one class with a collapsed check-in count.
    """

    def __init__(self, fail_with: Exception | None = None, delay: float = 0.0):
        self.fail_with = fail_with
        self.delay = delay
        self.calls: list[tuple] = []
        self.classes = [ClassRecord(id="c_1", name="Sub 12-14"), ClassRecord(id="c_2", name="Sub 17-19")]
        self.students = [StudentRecord(id="s_1", name="Student 1", class_id="c_1")]
        self.attendance = [
            AttendanceRecord(student_id="s_1", class_id="c_1", status="faltou", date=d, created_at=f"{d}T10:00:00.000Z")
            for d in ("2026-02-18", "2026-02-17", "2026-02-16", "2026-02-15")
        ]
        self.session_logs = _logs("c_1", [0.92, 0.9], [0.6, 0.58]) + _logs("c_2", [0.88, 0.86], [0.61, 0.59])
        self.pending_reports = [
            PendingReportRecord(class_id="c_1", class_name="Sub 12-14", last_report_at="2026-02-10T00:00:00.000Z"),
            PendingReportRecord(class_id="c_2", class_name="Sub 17-19", last_report_at="2026-02-10T00:00:00.000Z"),
            PendingReportRecord(class_id="c_3", class_name="Sub 10-12", last_report_at=None),
        ]
        self.checkins = [
            CheckinRecord(class_id="c_1", checked_in_at=f"{day}T10:{m:02d}:00.000Z")
            for day, count in (("2026-02-16", 6), ("2026-02-17", 6), ("2026-02-18", 2))
            for m in range(count)
        ]

    @property
    def fetch_count(self) -> int:
        """Number of get_signals() computations, counted on one representative call."""
        return sum(1 for name, *_ in self.calls if name == "get_classes")

    async def _record(self, name, *args):
        self.calls.append((name, *args))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None and name == "get_attendance_all":
            raise self.fail_with

    async def get_classes(self, organization_id):
        await self._record("get_classes", organization_id)
        return self.classes

    async def get_students(self, organization_id):
        await self._record("get_students", organization_id)
        return self.students

    async def get_attendance_all(self, organization_id):
        await self._record("get_attendance_all", organization_id)
        return self.attendance

    async def get_session_logs_by_range(self, from_iso, to_iso, organization_id):
        await self._record("get_session_logs_by_range", from_iso, to_iso, organization_id)
        return self.session_logs

    async def list_admin_pending_session_logs(self, organization_id):
        await self._record("list_admin_pending_session_logs", organization_id)
        return self.pending_reports

    async def list_checkins_by_range(self, organization_id, from_iso, to_iso):
        await self._record("list_checkins_by_range", organization_id, from_iso, to_iso)
        return self.checkins


@pytest.fixture
def source():
    return StubDataSource()


@pytest.fixture
def engine(source):
    return SignalEngine(source)


# ── SignalAggregator ──────────────────────────────────────────────────────────

class TestAggregator:
    def test_sorted_by_severity_then_recency(self):
        signals = [
            make_signal("medium", "2026-02-18T00:00:00.000Z", "c_1"),
            make_signal("critical", "2026-02-10T00:00:00.000Z", "c_2"),
            make_signal("medium", "2026-02-19T00:00:00.000Z", "c_3"),
            make_signal("high", "2026-02-01T00:00:00.000Z", "c_4"),
        ]
        ranked = SignalAggregator().aggregate(signals)
        assert [s.class_id for s in ranked] == ["c_2", "c_4", "c_3", "c_1"]

    def test_duplicate_key_keeps_most_severe(self):
        signals = [
            make_signal("medium", NOW, "c_1", title="weak"),
            make_signal("high", "2026-02-01T00:00:00.000Z", "c_1", title="strong"),
        ]
        ranked = SignalAggregator().aggregate(signals)
        assert len(ranked) == 1
        assert ranked[0].title == "strong"

    def test_duplicate_key_same_severity_keeps_most_recent(self):
        signals = [
            make_signal("high", "2026-02-01T00:00:00.000Z", "c_1", title="old"),
            make_signal("high", "2026-02-18T00:00:00.000Z", "c_1", title="new"),
        ]
        assert SignalAggregator().aggregate(signals)[0].title == "new"

    def test_same_class_different_type_not_merged(self):
        signals = [make_signal(type_="report_delay"), make_signal(type_="attendance_drop")]
        assert len(SignalAggregator().aggregate(signals)) == 2

    def test_empty_input(self):
        assert SignalAggregator().aggregate([]) == []

    def test_sort_is_stable_and_non_mutating(self):
        signals = [make_signal(class_id="c_1"), make_signal(class_id="c_2")]
        ranked = sort_signals(signals)
        assert ranked is not signals
        assert [s.class_id for s in ranked] == ["c_1", "c_2"]


# ── InMemorySignalCache ───────────────────────────────────────────────────────

class TestInMemorySignalCache:
    def test_get_returns_stored_list_object(self):
        cache = InMemorySignalCache()
        now = datetime(2026, 2, 19, tzinfo=timezone.utc)
        stored = [make_signal()]
        cache.set(ORG, stored, expires_at=now + timedelta(seconds=60))
        assert cache.get(ORG, now) is stored

    def test_expired_entry_is_a_miss(self):
        cache = InMemorySignalCache()
        now = datetime(2026, 2, 19, tzinfo=timezone.utc)
        cache.set(ORG, [], expires_at=now)
        assert cache.get(ORG, now) is None

    def test_unknown_org_is_a_miss(self):
        assert InMemorySignalCache().get(ORG, datetime.now(timezone.utc)) is None

    def test_clear_drops_everything(self):
        cache = InMemorySignalCache()
        cache.set(ORG, [], expires_at=datetime.max.replace(tzinfo=timezone.utc))
        assert len(cache) == 1
        cache.clear()
        assert len(cache) == 0


# ── SignalEngine ──────────────────────────────────────────────────────────────

class TestSignalEngine:
    async def test_blank_org_returns_empty_without_fetching(self, engine, source):
        assert await engine.get_signals("   ", NOW) == []
        assert await engine.get_signals("", NOW) == []
        assert source.calls == []
        assert len(engine.cache) == 0

    async def test_combined_scenario_engagement_first(self, engine):
        signals = await engine.get_signals(ORG, NOW)
        assert signals[0].type is SignalType.ENGAGEMENT_RISK
        assert signals[0].severity is SignalSeverity.CRITICAL
        assert signals[0].detected_at == NOW

    async def test_output_is_sorted_and_unique(self, engine):
        signals = await engine.get_signals(ORG, NOW)
        keys = [(s.rank, s.detected_at) for s in signals]
        assert keys == sorted(keys, reverse=True)
        assert len({s.dedupe_key for s in signals}) == len(signals)

    async def test_org_whitespace_is_stripped(self, engine, source):
        signals = await engine.get_signals(f"  {ORG}  ", NOW)
        assert all(s.organization_id == ORG for s in signals)
        assert ("get_classes", ORG) in source.calls

    async def test_fetch_windows_derive_from_now(self, engine, source):
        await engine.get_signals(ORG, NOW)
        logs_call = next(c for c in source.calls if c[0] == "get_session_logs_by_range")
        checkins_call = next(c for c in source.calls if c[0] == "list_checkins_by_range")
        assert logs_call[1:] == ("2026-01-08T12:00:00.000Z", NOW, ORG)
        assert checkins_call[1:] == (ORG, "2026-02-05T12:00:00.000Z", NOW)

    async def test_cache_hit_returns_same_list_without_refetch(self, engine, source):
        first = await engine.get_signals(ORG, NOW)
        second = await engine.get_signals(ORG, "2026-02-19T12:00:30.000Z")
        assert second is first
        assert source.fetch_count == 1

    async def test_cache_expires_after_ttl(self, engine, source):
        first = await engine.get_signals(ORG, NOW)
        second = await engine.get_signals(ORG, "2026-02-19T12:01:00.000Z")
        assert second is not first
        assert source.fetch_count == 2

    async def test_custom_ttl(self, source):
        engine = SignalEngine(source, config=EngineConfig(cache_ttl_ms=0))
        await engine.get_signals(ORG, NOW)
        await engine.get_signals(ORG, NOW)
        assert source.fetch_count == 2

    async def test_upstream_failure_propagates_and_is_not_cached(self, source):
        source.fail_with = RuntimeError("backend down")
        engine = SignalEngine(source)
        with pytest.raises(RuntimeError, match="backend down"):
            await engine.get_signals(ORG, NOW)
        assert len(engine.cache) == 0

        source.fail_with = None
        signals = await engine.get_signals(ORG, NOW)
        assert signals

    async def test_deterministic_for_same_input(self, source):
        first = await SignalEngine(source).get_signals(ORG, NOW)
        second = await SignalEngine(source).get_signals(ORG, NOW)
        assert [s.model_dump() for s in first] == [s.model_dump() for s in second]

    async def test_clear_cache_forces_recompute(self, engine, source):
        await engine.get_signals(ORG, NOW)
        engine.clear_cache()
        await engine.get_signals(ORG, NOW)
        assert source.fetch_count == 2

    async def test_shared_cache_is_used(self, source):
        cache = InMemorySignalCache()
        first = await SignalEngine(source, cache=cache).get_signals(ORG, NOW)
        second = await SignalEngine(source, cache=cache).get_signals(ORG, NOW)
        assert second is first

    async def test_organizations_cached_separately(self, engine, source):
        await engine.get_signals("org_a", NOW)
        await engine.get_signals("org_b", NOW)
        assert source.fetch_count == 2
        assert len(engine.cache) == 2

    async def test_plain_rows_with_null_timestamps_are_skipped(self, source):
        source.attendance = [{"student_id": "s_1", "status": "faltou", "date": None}]
        source.session_logs = [{"class_id": "c_1", "attendance": 0.1, "created_at": None}]
        source.pending_reports = []
        source.checkins = [{"class_id": "c_1", "checked_in_at": None}]
        assert await SignalEngine(source).get_signals(ORG, NOW) == []

    async def test_quiet_organization_returns_empty(self, source):
        source.session_logs = []
        source.attendance = []
        source.pending_reports = []
        source.checkins = []
        assert await SignalEngine(source).get_signals(ORG, NOW) == []

    async def test_concurrent_misses_recompute_by_default(self, source):
        source.delay = 0.01
        engine = SignalEngine(source)
        await asyncio.gather(engine.get_signals(ORG, NOW), engine.get_signals(ORG, NOW))
        assert source.fetch_count == 2

    async def test_single_flight_coalesces_concurrent_misses(self, source):
        source.delay = 0.01
        engine = SignalEngine(source, single_flight=True)
        first, second = await asyncio.gather(engine.get_signals(ORG, NOW), engine.get_signals(ORG, NOW))
        assert first is second
        assert source.fetch_count == 1

    async def test_single_flight_failure_reaches_every_waiter(self, source):
        source.delay = 0.01
        source.fail_with = RuntimeError("backend down")
        engine = SignalEngine(source, single_flight=True)
        results = await asyncio.gather(
            engine.get_signals(ORG, NOW), engine.get_signals(ORG, NOW), return_exceptions=True,
        )
        assert all(isinstance(r, RuntimeError) for r in results)
        assert source.fetch_count == 1
        assert len(engine.cache) == 0
