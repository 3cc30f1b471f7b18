"""Shared fixtures and fakes for CodeTrace tests."""

import os
from datetime import datetime, timedelta, timezone

import pytest

from codetrace.exceptions import GitCommandError
from codetrace.models import CommitEvent, FileChangeEvent, Session
from codetrace.storage import EventStore
from codetrace.tracking import LogEntry

T0 = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path_factory, monkeypatch):
    """Keep the developer's ~/.codetrace.toml and CODETRACE_* vars out of tests."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    for key in list(os.environ):
        if key.startswith("CODETRACE_"):
            monkeypatch.delenv(key, raising=False)
    return home


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def set(self, **delta) -> datetime:
        """Move to T0 + delta."""
        self.now = T0 + timedelta(**delta)
        return self.now


class FakeInspector:
    """In-memory repository: ``history`` is oldest first."""

    def __init__(self, repo: bool = True, remote: str = "git@github.com:acme/widgets.git"):
        self.repo = repo
        self.remote = remote
        self.history: list[LogEntry] = []
        self.fail = False
        self.log_calls: list[int] = []

    def commit(self, message: str, when: datetime = T0, author: str = "Ada") -> LogEntry:
        entry = LogEntry(
            hash=f"{len(self.history) + 1:040x}",
            message=message,
            author=author,
            date=when,
        )
        self.history.append(entry)
        return entry

    def is_repo(self) -> bool:
        return self.repo

    def remote_url(self, name: str = "origin"):
        return self.remote

    def log(self, max_count: int) -> list[LogEntry]:
        self.log_calls.append(max_count)
        if self.fail:
            raise GitCommandError("log", "simulated failure", 128)
        return list(reversed(self.history))[:max_count]


class FakeSubscription:
    def __init__(self, callback):
        self.callback = callback
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakeSaveSource:
    """Save source driven by ``emit``."""

    def __init__(self):
        self.subscriptions: list[FakeSubscription] = []

    def subscribe(self, callback) -> FakeSubscription:
        subscription = FakeSubscription(callback)
        self.subscriptions.append(subscription)
        return subscription

    def emit(self, path, text: str = "") -> int:
        delivered = 0
        for subscription in self.subscriptions:
            if not subscription.closed:
                subscription.callback(str(path), text)
                delivered += 1
        return delivered


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def inspector():
    return FakeInspector()


@pytest.fixture
def save_source():
    return FakeSaveSource()


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "project"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def store(workspace):
    return EventStore(workspace / ".codetrace", max_sessions=50)


@pytest.fixture
def make_session():
    """Build a finalized session starting ``offset_minutes`` after T0."""

    def _make(offset_minutes: int = 0, files=("src/a.ts",), commits: int = 0, minutes: int = 5):
        start = T0 + timedelta(minutes=offset_minutes)
        session = Session.new(start_time=start, repository="widgets")
        for i, name in enumerate(files):
            session.changes.append(
                FileChangeEvent(file=name, timestamp=start + timedelta(seconds=i + 1), content=f"// {name}")
            )
        for i in range(commits):
            session.commits.append(
                CommitEvent(
                    hash=f"{i + 1:040x}",
                    message=f"commit {i + 1}",
                    author="Ada",
                    timestamp=start + timedelta(minutes=1, seconds=i),
                )
            )
        session.finalize(start + timedelta(minutes=minutes))
        return session

    return _make


@pytest.fixture
def t0():
    return T0
