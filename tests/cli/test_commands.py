"""Tests for the codetrace CLI."""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from codetrace import __version__
from codetrace.cli import app
from codetrace.exceptions import SummaryError
from codetrace.storage import record_key
from codetrace.summary import SessionSummary

runner = CliRunner()


@pytest.fixture
def saved(store, make_session):
    sessions = [make_session(0, commits=1), make_session(30, files=("src/b.ts", "src/c.ts"))]
    for session in sessions:
        store.save(session)
    return sessions


def invoke(workspace, *args, **kwargs):
    return runner.invoke(app, ["-C", str(workspace), *args], **kwargs)


class TestGlobalOptions:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_bad_config_file(self, workspace):
        (workspace / "codetrace.toml").write_text("max_sessions_to_keep = 0\n")
        result = invoke(workspace, "list")
        assert result.exit_code == 1
        assert "Configuration error" in result.output

    @pytest.mark.parametrize(
        "setting,verbose,quiet",
        [("verbose", True, False), ("quiet", False, True), ("normal", False, False)],
    )
    def test_verbosity_setting_drives_logging(self, workspace, setting, verbose, quiet):
        (workspace / "codetrace.toml").write_text(f'verbosity = "{setting}"\n')
        with patch("codetrace.cli.main.setup_logging") as setup:
            result = invoke(workspace, "list")

        assert result.exit_code == 0
        assert setup.call_args.kwargs["verbose"] is verbose
        assert setup.call_args.kwargs["quiet"] is quiet

    def test_flag_overrides_verbosity_setting(self, workspace, monkeypatch):
        monkeypatch.setenv("CODETRACE_VERBOSITY", "quiet")
        with patch("codetrace.cli.main.setup_logging") as setup:
            result = runner.invoke(app, ["-C", str(workspace), "-v", "list"])

        assert result.exit_code == 0
        assert setup.call_args.kwargs["verbose"] is True
        assert setup.call_args.kwargs["quiet"] is False


class TestList:
    def test_empty(self, workspace):
        result = invoke(workspace, "list")
        assert result.exit_code == 0
        assert "No sessions recorded yet" in result.output

    def test_table(self, workspace, saved):
        result = invoke(workspace, "list")
        assert result.exit_code == 0
        for session in saved:
            assert session.id[:8] in result.output
        assert "2 session(s)" in result.output

    def test_json(self, workspace, saved):
        result = invoke(workspace, "list", "--json")
        assert result.exit_code == 0
        rows = json.loads(result.stdout)
        assert [r["sessionId"] for r in rows] == [saved[1].id, saved[0].id]
        assert rows[0]["key"] == record_key(saved[1])
        assert "changes" not in rows[0]

    def test_limit(self, workspace, saved):
        rows = json.loads(invoke(workspace, "list", "--json", "-n", "1").stdout)
        assert len(rows) == 1


class TestShow:
    def test_latest_json(self, workspace, saved):
        result = invoke(workspace, "show", "--format", "json")
        assert result.exit_code == 0
        assert json.loads(result.stdout)["sessionId"] == saved[1].id

    def test_rich_by_prefix(self, workspace, saved):
        result = invoke(workspace, "show", saved[0].id[:8])
        assert result.exit_code == 0
        assert "Timeline" in result.output

    def test_unknown_ref(self, workspace, saved):
        result = invoke(workspace, "show", "zzzz")
        assert result.exit_code == 1
        assert "No session matches" in result.output

    def test_no_sessions(self, workspace):
        result = invoke(workspace, "show")
        assert result.exit_code == 1
        assert "No sessions recorded yet" in result.output

    def test_unknown_format(self, workspace, saved):
        assert invoke(workspace, "show", "--format", "xml").exit_code == 2


class TestStats:
    def test_latest(self, workspace, saved):
        result = invoke(workspace, "stats")
        assert result.exit_code == 0
        assert saved[1].id in result.output
        assert "Files changed" in result.output
        assert "5 min" in result.output


class TestExport:
    def test_stdout(self, workspace, saved):
        result = invoke(workspace, "export")
        assert result.exit_code == 0
        assert "# Coding Session Report" in result.stdout
        assert "`src/b.ts`" in result.stdout

    def test_to_file(self, workspace, saved, tmp_path):
        target = tmp_path / "out" / "session.md"
        result = invoke(workspace, "export", saved[0].id, "-o", str(target))
        assert result.exit_code == 0
        report = target.read_text(encoding="utf-8")
        assert "## Commits" in report


class TestDelete:
    def test_with_yes(self, workspace, saved, store):
        result = invoke(workspace, "delete", saved[0].id, "--yes")
        assert result.exit_code == 0
        assert store.keys() == [record_key(saved[1])]

    def test_declined(self, workspace, saved, store):
        result = invoke(workspace, "delete", "latest", input="n\n")
        assert result.exit_code == 1
        assert store.count() == 2

    def test_confirmed(self, workspace, saved, store):
        result = invoke(workspace, "delete", "latest", input="y\n")
        assert result.exit_code == 0
        assert store.keys() == [record_key(saved[0])]


class TestSummarize:
    @pytest.fixture
    def summarizer(self):
        with patch("codetrace.cli.summarize.OpenAISummarizer") as cls:
            cls.return_value.summarize.return_value = SessionSummary(
                what_was_built="Built widgets.",
                key_files_modified=["src/b.ts"],
                apparent_goal="Ship",
                suggested_title="Widgets",
                model="gpt-4o-mini",
            )
            yield cls

    def test_attaches_summary(self, workspace, saved, store, summarizer):
        result = invoke(workspace, "summarize")
        assert result.exit_code == 0
        assert "Widgets" in result.output
        assert store.latest().summary["suggestedTitle"] == "Widgets"
        assert store.count() == 2

    def test_existing_summary_kept(self, workspace, saved, store, summarizer):
        saved[1].summary = {"suggestedTitle": "Old"}
        store.save(saved[1])

        result = invoke(workspace, "summarize")

        assert result.exit_code == 0
        assert "already summarized" in result.output
        summarizer.return_value.summarize.assert_not_called()

    def test_force(self, workspace, saved, store, summarizer):
        saved[1].summary = {"suggestedTitle": "Old"}
        store.save(saved[1])

        assert invoke(workspace, "summarize", "--force").exit_code == 0
        assert store.latest().summary["suggestedTitle"] == "Widgets"

    def test_failure(self, workspace, saved, summarizer):
        summarizer.return_value.summarize.side_effect = SummaryError("Rate limit exceeded.", 429)
        result = invoke(workspace, "summarize")
        assert result.exit_code == 1
        assert "Rate limit exceeded." in result.output
