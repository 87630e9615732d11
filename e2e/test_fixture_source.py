"""FixtureDataSource tests.

Exercises file loading, schema errors, range filtering and a full engine run
over the shipped demo fixture. Files are written to tmp_path; nothing else
touches disk.
"""

import json
import pathlib

import pytest

from core.engine import SignalEngine
from schemas.signal import SignalSeverity, SignalType
from sources.fixture import FixtureDataSource, FixtureError, UnknownOrganizationError

NOW = "2026-02-19T12:00:00.000Z"
DEMO_FIXTURE = pathlib.Path(__file__).resolve().parent.parent / "fixtures" / "demo_org.json"


def write_fixture(tmp_path, organizations) -> pathlib.Path:
    path = tmp_path / "fixture.json"
    path.write_text(json.dumps({"organizations": organizations}), encoding="utf-8")
    return path


# ── Loading ───────────────────────────────────────────────────────────────────

class TestLoading:
    def test_missing_file_raises_fixture_error(self, tmp_path):
        missing = tmp_path / "nope.json"
        with pytest.raises(FixtureError) as exc_info:
            FixtureDataSource.from_file(missing)
        assert exc_info.value.path == missing

    def test_invalid_json_raises_fixture_error(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(FixtureError, match="not valid JSON"):
            FixtureDataSource.from_file(path)

    def test_schema_mismatch_raises_fixture_error(self, tmp_path):
        path = write_fixture(tmp_path, {"org_1": {"classes": [{"name": "no id"}]}})
        with pytest.raises(FixtureError, match="does not match"):
            FixtureDataSource.from_file(path)

    def test_organization_ids(self, tmp_path):
        path = write_fixture(tmp_path, {"org_b": {}, "org_a": {}})
        assert FixtureDataSource.from_file(path).organization_ids == ["org_a", "org_b"]


# ── Queries ───────────────────────────────────────────────────────────────────

class TestQueries:
    @pytest.fixture
    def source(self, tmp_path):
        return FixtureDataSource.from_file(write_fixture(tmp_path, {
            "org_1": {
                "classes": [{"id": "c_1", "name": "Sub 12"}],
                "session_logs": [
                    {"class_id": "c_1", "attendance": 0.9, "created_at": "2026-01-01T00:00:00.000Z"},
                    {"class_id": "c_1", "attendance": 0.8, "created_at": "2026-02-10T00:00:00.000Z"},
                    {"class_id": "c_1", "attendance": 0.7, "created_at": "2026-02-19T12:00:00.000Z"},
                    {"class_id": "c_1", "attendance": 0.6, "created_at": "garbage"},
                ],
                "checkins": [
                    {"class_id": "c_1", "checked_in_at": "2026-02-04T00:00:00.000Z"},
                    {"class_id": "c_1", "checked_in_at": "2026-02-05T12:00:00.000Z"},
                ],
            },
        }))

    async def test_session_log_range_is_inclusive(self, source):
        rows = await source.get_session_logs_by_range("2026-02-10T00:00:00.000Z", NOW, "org_1")
        assert [r.attendance for r in rows] == [0.8, 0.7]

    async def test_checkin_range_filters_start(self, source):
        rows = await source.list_checkins_by_range("org_1", "2026-02-05T12:00:00.000Z", NOW)
        assert len(rows) == 1

    async def test_plain_queries_return_all_rows(self, source):
        assert [c.id for c in await source.get_classes("org_1")] == ["c_1"]
        assert await source.get_students("org_1") == []
        assert await source.get_attendance_all("org_1") == []
        assert await source.list_admin_pending_session_logs("org_1") == []

    async def test_unknown_organization_raises_key_error(self, source):
        with pytest.raises(UnknownOrganizationError, match="org_x") as exc_info:
            await source.get_classes("org_x")
        assert isinstance(exc_info.value, KeyError)
        assert exc_info.value.organization_id == "org_x"

    async def test_engine_propagates_unknown_organization(self, source):
        with pytest.raises(UnknownOrganizationError):
            await SignalEngine(source).get_signals("org_x", NOW)


# ── Null timestamps ───────────────────────────────────────────────────────────

class TestNullTimestamps:
    async def test_null_timestamps_load_and_are_skipped(self, tmp_path):
        path = write_fixture(tmp_path, {
            "org_1": {
                "attendance": [{"student_id": "s_1", "status": "faltou", "date": None, "created_at": None}],
                "session_logs": [{"class_id": "c_1", "attendance": None, "created_at": None}],
                "pending_reports": [{"class_id": "c_1", "class_name": "Sub 12", "last_report_at": None}],
                "checkins": [{"class_id": "c_1", "checked_in_at": None}],
            },
        })
        source = FixtureDataSource.from_file(path)
        assert await source.list_checkins_by_range("org_1", "2026-02-05T12:00:00.000Z", NOW) == []

        signals = await SignalEngine(source).get_signals("org_1", NOW)
        assert [s.type for s in signals] == [SignalType.REPORT_DELAY]


# ── Demo fixture ──────────────────────────────────────────────────────────────

class TestDemoFixture:
    @pytest.fixture
    def engine(self):
        return SignalEngine(FixtureDataSource.from_file(DEMO_FIXTURE))

    async def test_demo_org_leads_with_critical_engagement_risk(self, engine):
        signals = await engine.get_signals("org_demo", NOW)
        assert signals[0].type is SignalType.ENGAGEMENT_RISK
        assert signals[0].severity is SignalSeverity.CRITICAL

    async def test_demo_org_covers_every_signal_type(self, engine):
        signals = await engine.get_signals("org_demo", NOW)
        assert {s.type for s in signals} == set(SignalType)

    async def test_demo_org_absence_streak_for_s1_only(self, engine):
        signals = await engine.get_signals("org_demo", NOW)
        absences = [s for s in signals if s.type is SignalType.REPEATED_ABSENCE]
        assert [s.student_id for s in absences] == ["s_1"]
        assert absences[0].severity is SignalSeverity.HIGH

    async def test_quiet_org_has_no_signals(self, engine):
        assert await engine.get_signals("org_quiet", NOW) == []
