"""Tests for JSON session persistence."""

import json
from datetime import timedelta

import pytest

from codetrace.models import FileChangeEvent, Session
from codetrace.storage import EventStore, record_key


class TestKeys:
    def test_key_from_start_time(self, t0):
        session = Session.new(start_time=t0 + timedelta(milliseconds=123))
        assert record_key(session) == "session-2024-05-01T09-30-00-123Z"

    def test_path_in_store_directory(self, store, make_session):
        session = make_session()
        assert store.path_for(session) == store.directory / f"{record_key(session)}.json"

    def test_rejects_invalid_max_sessions(self, tmp_path):
        with pytest.raises(ValueError):
            EventStore(tmp_path, max_sessions=0)


class TestSaveAndLoad:
    def test_round_trip(self, store, make_session):
        session = make_session(files=("src/a.ts", "src/b.ts"), commits=1)
        path = store.save(session)

        assert path is not None and path.exists()
        assert store.load(record_key(session)) == session

    def test_document_is_pretty_json(self, store, make_session):
        path = store.save(make_session())
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["stats"]["duration"] == "5"
        assert path.read_text(encoding="utf-8").startswith('{\n  "sessionId"')

    def test_load_missing(self, store):
        assert store.load("session-2030-01-01T00-00-00-000Z") is None

    def test_load_rejects_path_like_keys(self, store):
        assert store.load("../secrets") is None

    def test_load_corrupt(self, store):
        store.directory.mkdir(parents=True)
        (store.directory / "session-2024-05-01T09-30-00-000Z.json").write_text("{not json")
        assert store.load("session-2024-05-01T09-30-00-000Z") is None

    def test_save_failure_returns_none(self, tmp_path, make_session):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        assert EventStore(blocker).save(make_session()) is None

    def test_unencodable_content_returns_none(self, store, make_session):
        session = make_session()
        session.changes[0] = FileChangeEvent("a.ts", session.start_time, "\udcff")
        assert store.save(session) is None
        assert store.count() == 0

    def test_unserializable_summary_does_not_evict(self, tmp_path, make_session):
        store = EventStore(tmp_path / "store", max_sessions=1)
        kept = make_session(0)
        store.save(kept)
        broken = make_session(10)
        broken.summary = {"tags": {"not", "json"}}

        assert store.save(broken) is None
        assert store.keys() == [record_key(kept)]

    def test_get_by_id(self, store, make_session):
        first, second = make_session(0), make_session(10)
        store.save(first)
        store.save(second)
        assert store.get(second.id) == second
        assert store.get("no-such-id") is None


class TestLoadAll:
    def test_most_recent_first(self, store, make_session):
        sessions = [make_session(offset) for offset in (0, 20, 10)]
        for session in sessions:
            store.save(session)
        assert [s.start_time for s in store.load_all()] == sorted(
            (s.start_time for s in sessions), reverse=True
        )

    def test_skips_corrupt_documents(self, store, make_session):
        older, newer = make_session(0), make_session(30)
        store.save(older)
        store.save(newer)
        (store.directory / "session-2024-05-01T09-45-00-000Z.json").write_text("[]")

        assert [s.id for s in store.load_all()] == [newer.id, older.id]

    def test_skips_non_string_start_time(self, store, make_session):
        good = make_session(0)
        store.save(good)
        bad = make_session(30).to_dict()
        bad["startTime"] = 12345
        (store.directory / "session-2024-05-01T10-00-00-000Z.json").write_text(json.dumps(bad))

        assert [s.id for s in store.load_all()] == [good.id]
        assert store.latest() == good

    def test_skips_null_change_timestamp(self, store, make_session):
        good = make_session(0)
        store.save(good)
        bad = make_session(30).to_dict()
        bad["changes"][0]["timestamp"] = None
        (store.directory / "session-2024-05-01T10-00-00-000Z.json").write_text(json.dumps(bad))

        assert [s.id for s in store.load_all()] == [good.id]
        assert store.resolve(good.id[:8]) == good

    def test_ignores_unrelated_files(self, store, make_session):
        store.save(make_session())
        (store.directory / "notes.json").write_text("{}")
        assert len(store.load_all()) == 1
        assert store.count() == 1

    def test_empty_store(self, store):
        assert store.load_all() == []
        assert store.latest() is None


class TestRetention:
    def test_evicts_oldest_when_full(self, tmp_path, make_session):
        store = EventStore(tmp_path / "store", max_sessions=3)
        sessions = [make_session(offset) for offset in (0, 10, 20, 30)]
        for session in sessions:
            store.save(session)

        assert store.count() == 3
        assert store.keys() == [record_key(s) for s in sessions[1:]]

    def test_resave_does_not_evict(self, tmp_path, make_session):
        store = EventStore(tmp_path / "store", max_sessions=2)
        first, second = make_session(0), make_session(10)
        store.save(first)
        store.save(second)

        first.summary = {"suggestedTitle": "Updated"}
        store.save(first)

        assert store.count() == 2
        assert store.load(record_key(first)).summary == {"suggestedTitle": "Updated"}

    def test_cap_of_one(self, tmp_path, make_session):
        store = EventStore(tmp_path / "store", max_sessions=1)
        store.save(make_session(0))
        latest = make_session(10)
        store.save(latest)
        assert store.keys() == [record_key(latest)]


class TestDelete:
    def test_delete_existing(self, store, make_session):
        session = make_session()
        store.save(session)
        assert store.delete(record_key(session)) is True
        assert store.count() == 0

    def test_delete_missing_returns_false(self, store):
        assert store.delete("session-2030-01-01T00-00-00-000Z") is False

    def test_delete_accepts_file_name(self, store, make_session):
        session = make_session()
        store.save(session)
        assert store.delete(f"{record_key(session)}.json") is True


class TestResolve:
    @pytest.fixture
    def saved(self, store, make_session):
        sessions = [make_session(0), make_session(10)]
        for session in sessions:
            store.save(session)
        return sessions

    def test_latest(self, store, saved):
        assert store.resolve("latest") == saved[1]

    def test_by_key(self, store, saved):
        assert store.resolve(record_key(saved[0])) == saved[0]

    def test_by_full_id_and_prefix(self, store, saved):
        assert store.resolve(saved[0].id) == saved[0]
        assert store.resolve(saved[0].id[:8]) == saved[0]

    def test_unknown_and_empty(self, store, saved):
        assert store.resolve("zzzz") is None
        assert store.resolve("") is None
