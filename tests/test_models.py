"""Tests for the session data model."""

from datetime import datetime, timedelta, timezone

import pytest

from codetrace.models import (
    CommitEvent,
    FileChangeEvent,
    Session,
    SessionStats,
    build_timeline,
    duration_minutes,
    format_timestamp,
    parse_timestamp,
    truncate_ms,
)


class TestTimestamps:
    def test_format_uses_millisecond_z_form(self):
        value = datetime(2024, 5, 1, 9, 30, 0, 123456, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2024-05-01T09:30:00.123Z"

    def test_parse_z_suffix(self):
        parsed = parse_timestamp("2024-05-01T09:30:00.123Z")
        assert parsed == datetime(2024, 5, 1, 9, 30, 0, 123000, tzinfo=timezone.utc)

    def test_parse_offset_normalizes_to_utc(self):
        parsed = parse_timestamp("2024-05-01T11:30:00+02:00")
        assert parsed == datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
        assert parsed.tzinfo == timezone.utc

    def test_parse_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")

    @pytest.mark.parametrize("value", [None, 12345, ["2024-05-01T09:30:00Z"]])
    def test_parse_rejects_non_strings(self, value):
        with pytest.raises(ValueError):
            parse_timestamp(value)

    def test_naive_values_are_treated_as_utc(self):
        naive = datetime(2024, 5, 1, 9, 30)
        assert truncate_ms(naive).tzinfo == timezone.utc

    @pytest.mark.parametrize(
        "seconds,expected",
        [(0, 0), (29, 0), (30, 1), (149, 2), (150, 3), (300, 5)],
    )
    def test_duration_rounds_half_up(self, seconds, expected, t0):
        assert duration_minutes(t0, t0 + timedelta(seconds=seconds)) == expected


class TestSessionLifecycle:
    def test_new_session_has_uuid_and_is_open(self, t0):
        session = Session.new(start_time=t0)
        assert len(session.id) == 36
        assert session.end_time is None
        assert session.stats is None
        assert not session.is_finalized

    def test_new_sessions_get_distinct_ids(self, t0):
        assert Session.new(start_time=t0).id != Session.new(start_time=t0).id

    def test_finalize_computes_stats(self, t0):
        session = Session.new(start_time=t0)
        session.changes.append(FileChangeEvent("a.ts", t0 + timedelta(minutes=1), "x"))
        session.changes.append(FileChangeEvent("a.ts", t0 + timedelta(minutes=3), "y"))
        session.changes.append(FileChangeEvent("b.ts", t0 + timedelta(minutes=4), "z"))
        session.commits.append(CommitEvent("f" * 40, "init", "Ada", t0 + timedelta(minutes=2)))

        stats = session.finalize(t0 + timedelta(minutes=5))

        assert stats == SessionStats(files_changed=2, commits_count=1, duration=5)
        assert session.end_time == t0 + timedelta(minutes=5)
        assert session.is_finalized

    def test_finalize_twice_raises(self, t0):
        session = Session.new(start_time=t0)
        session.finalize(t0)
        with pytest.raises(ValueError):
            session.finalize(t0 + timedelta(minutes=1))

    def test_end_before_start_raises(self, t0):
        session = Session.new(start_time=t0)
        with pytest.raises(ValueError):
            session.finalize(t0 - timedelta(seconds=1))

    def test_unique_files_keep_first_save_order(self, t0):
        session = Session.new(start_time=t0)
        for name in ["b.ts", "a.ts", "b.ts", "c.ts"]:
            session.changes.append(FileChangeEvent(name, t0, ""))
        assert session.unique_files == ["b.ts", "a.ts", "c.ts"]


class TestSerialization:
    def test_round_trip(self, make_session):
        session = make_session(files=("src/a.ts", "src/b.ts"), commits=2)
        session.summary = {"suggestedTitle": "Widgets"}
        assert Session.from_dict(session.to_dict()) == session

    def test_document_layout(self, make_session):
        data = make_session(commits=1).to_dict()
        assert list(data) == [
            "sessionId",
            "startTime",
            "endTime",
            "repository",
            "changes",
            "commits",
            "stats",
        ]
        assert data["startTime"] == "2024-05-01T09:30:00.000Z"
        assert data["stats"] == {"filesChanged": 1, "commitsCount": 1, "duration": "5"}
        assert data["changes"][0] == {
            "file": "src/a.ts",
            "timestamp": "2024-05-01T09:30:01.000Z",
            "content": "// src/a.ts",
        }

    def test_open_session_omits_end_and_stats(self, t0):
        data = Session.new(start_time=t0).to_dict()
        assert "endTime" not in data
        assert "stats" not in data
        assert "repository" not in data

    def test_malformed_document_raises(self):
        with pytest.raises((KeyError, TypeError, ValueError)):
            Session.from_dict({"startTime": "2024-05-01T09:30:00.000Z"})

    def test_non_object_summary_rejected(self, make_session):
        data = make_session().to_dict()
        data["summary"] = "not an object"
        with pytest.raises(TypeError):
            Session.from_dict(data)


class TestTimeline:
    def test_merges_chronologically(self, t0):
        session = Session.new(start_time=t0)
        session.changes.append(FileChangeEvent("a.ts", t0 + timedelta(minutes=1), ""))
        session.changes.append(FileChangeEvent("a.ts", t0 + timedelta(minutes=3), ""))
        session.commits.append(CommitEvent("a" * 40, "feat: a", "Ada", t0 + timedelta(minutes=2)))

        timeline = build_timeline(session)

        assert [e.kind for e in timeline] == ["save", "commit", "save"]
        assert timeline[1].label == "Commit: feat: a"
        assert timeline[0].label == "Saved a.ts"

    def test_ties_put_saves_before_commits(self, t0):
        session = Session.new(start_time=t0)
        session.commits.append(CommitEvent("a" * 40, "c", "Ada", t0))
        session.changes.append(FileChangeEvent("a.ts", t0, ""))
        assert [e.kind for e in build_timeline(session)] == ["save", "commit"]

    def test_empty_session(self, t0):
        assert build_timeline(Session.new(start_time=t0)) == []
