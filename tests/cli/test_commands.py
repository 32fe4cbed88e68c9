"""CLI command tests using Click CliRunner.

Strategy: patch get_components at each command module's import point with a
real scheduler over a temp store and a mocked remote client.
"""

import json
import sqlite3
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from cli.config_models import QuoteSyncConfig
from cli.main import cli
from errors import NetworkError
from records.models import Origin, Record
from sync.scheduler import SyncScheduler


@pytest.fixture
def runner():
    return CliRunner()


def _seed(store):
    store.save(
        [
            Record(id="1", text="A", category="X"),
            Record(id="2", text="Life is short", category="Life"),
        ]
    )


@pytest.fixture
def components(store, remote):
    _seed(store)
    scheduler = SyncScheduler(store, remote, sink=MagicMock(), timeout=2.0, lock_timeout=0.2)
    yield {"config": QuoteSyncConfig(), "store": store, "remote": remote, "scheduler": scheduler}
    scheduler.stop()


@pytest.fixture
def patched(components):
    targets = [
        "cli.commands.records.get_components",
        "cli.commands.daemon.get_components",
        "cli.commands.conflicts.get_components",
    ]
    patchers = [patch(t, return_value=components) for t in targets]
    patchers.append(patch("cli.main.load_config_model", return_value=QuoteSyncConfig()))
    patchers.append(patch("cli.main.setup_logging"))
    for p in patchers:
        p.start()
    yield components
    for p in reversed(patchers):
        p.stop()


def _conflict(components):
    """Drive one sync that leaves record 1 in conflict (local A vs remote B)."""
    components["remote"].fetch.return_value = [
        Record(id="1", text="B", category="X", version=2, origin=Origin.REMOTE, remote_id="1"),
        Record(id="2", text="Life is short", category="Life", origin=Origin.REMOTE, remote_id="2"),
    ]
    components["scheduler"].run_sync()


class TestRecordCommands:
    def test_add(self, runner, patched):
        result = runner.invoke(cli, ["add", "Be curious", "Wisdom"])
        assert result.exit_code == 0
        assert "Added" in result.output
        assert "Be curious" in [r.text for r in patched["store"].load()]

    def test_add_duplicate(self, runner, patched):
        result = runner.invoke(cli, ["add", "A", "X"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_add_blank(self, runner, patched):
        result = runner.invoke(cli, ["add", "  ", "X"])
        assert result.exit_code == 1
        assert "Please enter both" in result.output

    def test_list(self, runner, patched):
        result = runner.invoke(cli, ["list"])
        assert result.exit_code == 0
        assert "Quotes" in result.output
        assert "Life is short" in result.output

    def test_list_filtered_empty(self, runner, patched):
        result = runner.invoke(cli, ["list", "--category", "Nope"])
        assert result.exit_code == 0
        assert "No quotes found" in result.output

    def test_categories(self, runner, patched):
        result = runner.invoke(cli, ["categories"])
        assert result.exit_code == 0
        assert result.output.split() == ["X", "Life"]

    def test_random_in_category(self, runner, patched):
        result = runner.invoke(cli, ["random", "-c", "Life"])
        assert result.exit_code == 0
        assert "Life is short" in result.output

    def test_export_then_import(self, runner, patched, tmp_path):
        out = tmp_path / "export.json"
        result = runner.invoke(cli, ["export", str(out)])
        assert result.exit_code == 0
        assert "Exported 2 quotes" in result.output
        exported = json.loads(out.read_text())
        assert {e["text"] for e in exported} == {"A", "Life is short"}

        exported.append({"text": "Fresh", "category": "New"})
        out.write_text(json.dumps(exported))
        result = runner.invoke(cli, ["import", str(out)])
        assert result.exit_code == 0
        assert "Imported 1 new quotes" in result.output

    def test_import_invalid(self, runner, patched, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("not json")
        result = runner.invoke(cli, ["import", str(bad)])
        assert result.exit_code == 1
        assert "Error importing JSON" in result.output

    def test_reset(self, runner, patched):
        result = runner.invoke(cli, ["reset", "--yes"])
        assert result.exit_code == 0
        assert "Reset to 4 default quotes" in result.output
        assert "A" not in [r.text for r in patched["store"].load()]

    def test_reset_aborted_without_confirmation(self, runner, patched):
        result = runner.invoke(cli, ["reset"], input="n\n")
        assert result.exit_code == 1
        assert len(patched["store"].load()) == 2


class TestSyncCommand:
    def test_sync_reports_conflicts(self, runner, patched):
        patched["remote"].fetch.return_value = [
            Record(id="1", text="B", category="X", version=2, origin=Origin.REMOTE, remote_id="1"),
        ]
        result = runner.invoke(cli, ["sync"])
        assert result.exit_code == 0
        assert "1 conflict(s) pending" in result.output
        patched["remote"].close.assert_called_once()

    def test_sync_failure_exits_nonzero(self, runner, patched):
        patched["remote"].fetch.side_effect = NetworkError("unreachable")
        result = runner.invoke(cli, ["sync"])
        assert result.exit_code == 1
        assert len(patched["store"].load()) == 2

    def test_daemon_starts_and_stops(self, runner, patched):
        scheduler = MagicMock(interval_seconds=30.0)
        patched["scheduler"] = scheduler
        with patch("cli.commands.daemon.time.sleep", side_effect=KeyboardInterrupt):
            result = runner.invoke(cli, ["daemon", "--interval", "5"])
        assert result.exit_code == 0
        assert scheduler.interval_seconds == 5
        scheduler.start.assert_called_once()
        scheduler.request_sync.assert_called_once()
        scheduler.stop.assert_called_once()
        assert "Stopped" in result.output


class TestConflictCommands:
    def test_list_empty(self, runner, patched):
        result = runner.invoke(cli, ["conflicts", "list"])
        assert result.exit_code == 0
        assert "No pending conflicts" in result.output

    def test_list_pending(self, runner, patched):
        _conflict(patched)
        result = runner.invoke(cli, ["conflicts", "list"])
        assert result.exit_code == 0
        assert "Pending conflicts" in result.output

    def test_resolve_local_pushes(self, runner, patched):
        _conflict(patched)
        result = runner.invoke(cli, ["conflicts", "resolve", "0", "local"])
        assert result.exit_code == 0
        assert "Resolved" in result.output
        record = {r.id: r for r in patched["store"].load()}["1"]
        assert (record.text, record.version) == ("A", 3)
        pushed = patched["remote"].push.call_args[0][0]
        assert [(r.text, r.version) for r in pushed] == [("A", 3)]

    def test_resolve_no_sync(self, runner, patched):
        _conflict(patched)
        result = runner.invoke(cli, ["conflicts", "resolve", "0", "remote", "--no-sync"])
        assert result.exit_code == 0
        patched["remote"].push.assert_not_called()
        assert patched["scheduler"].sync_requested

    def test_resolve_unknown_index(self, runner, patched):
        result = runner.invoke(cli, ["conflicts", "resolve", "3", "local"])
        assert result.exit_code == 1
        assert "No pending conflict" in result.output

    def test_resolve_bad_choice(self, runner, patched):
        _conflict(patched)
        result = runner.invoke(cli, ["conflicts", "resolve", "0", "both"])
        assert result.exit_code == 2


class TestConsoleSink:
    def test_prints_status_and_detail(self):
        from io import StringIO

        from rich.console import Console

        from cli.utils import ConsoleSink
        from sync.sink import SyncStatus

        buf = StringIO()
        ConsoleSink(Console(file=buf, no_color=True)).notify(SyncStatus.PARTIAL, "push failed")
        assert buf.getvalue().strip() == "Partial push failed"


class TestRememberedPreferences:
    def test_list_remembers_category_filter(self, runner, patched):
        runner.invoke(cli, ["list", "-c", "Life"])
        result = runner.invoke(cli, ["list"])
        assert result.exit_code == 0
        assert "Life is short" in result.output
        assert " X " not in result.output
        assert patched["store"].get_setting("last_filter") == "Life"

    def test_all_clears_filter(self, runner, patched):
        runner.invoke(cli, ["list", "-c", "Life"])
        runner.invoke(cli, ["list", "-c", "all"])
        assert patched["store"].get_setting("last_filter") == "all"

    def test_random_uses_remembered_filter(self, runner, patched):
        runner.invoke(cli, ["list", "-c", "Life"])
        for _ in range(5):
            result = runner.invoke(cli, ["random"])
            assert "Life is short" in result.output

    def test_last_shows_previous_random(self, runner, patched):
        assert "No quote viewed yet" in runner.invoke(cli, ["last"]).output
        shown = runner.invoke(cli, ["random", "-c", "X"]).output
        result = runner.invoke(cli, ["last"])
        assert result.exit_code == 0
        assert result.output == shown


class TestGetComponents:
    def test_unreadable_store_exits_without_writing_defaults(self, tmp_path):
        from cli.utils import get_components

        config = QuoteSyncConfig.from_dict({"paths": {"db_path": str(tmp_path / "q.db")}})
        with patch("cli.config.load_config_model", return_value=config), patch(
            "records.store.transaction", side_effect=sqlite3.OperationalError("database is locked")
        ):
            with pytest.raises(SystemExit) as exc:
                get_components()
        assert exc.value.code == 1
