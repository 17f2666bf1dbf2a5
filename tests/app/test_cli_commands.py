from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import org_registry.app as app_module
from org_registry.app import AppState, app
from org_registry.orchestrator import SUCCESS_MESSAGE

runner = CliRunner()


class StubScheduler:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.scheduled = None

    def schedule_ingestion(self, schedule, callback) -> None:
        self.calls.append("schedule")
        self.scheduled = (schedule, callback)

    def start(self) -> None:
        self.calls.append("start")

    def shutdown(self) -> None:
        self.calls.append("shutdown")


@pytest.fixture
def install_state(monkeypatch: pytest.MonkeyPatch, temp_config_repository, storage, make_orchestrator):
    """Point the CLI at an orchestrator served by a canned archive."""

    def _install(payload: bytes = b"", **kwargs) -> AppState:
        orchestrator = make_orchestrator(payload, **kwargs)
        state = AppState(
            repository=temp_config_repository,
            orchestrator=orchestrator,
            scheduler=StubScheduler(),
            storage=storage,
        )
        monkeypatch.setattr(app_module, "build_state", lambda verbose: state)
        return state

    return _install


def _last_json(output: str) -> dict:
    return json.loads(output.strip().splitlines()[-1])


def test_ingest_run_json(install_state, dataset_archive, registry_lines) -> None:
    install_state(dataset_archive(registry_lines(42)))

    result = runner.invoke(app, ["ingest", "run", "--json"])

    assert result.exit_code == 0, result.output
    payload = _last_json(result.output)
    assert payload["success"] is True
    assert payload["message"] == SUCCESS_MESSAGE
    assert payload["summary"]["added"] == 42


def test_ingest_run_failure_exits_nonzero(install_state) -> None:
    install_state(b"upstream down", status_code=503)

    result = runner.invoke(app, ["ingest", "run", "--json"])

    assert result.exit_code == 1
    payload = _last_json(result.output)
    assert payload["success"] is False
    assert payload["errorKind"] == "network"


def test_ingest_run_quiet(install_state, dataset_archive, registry_lines) -> None:
    install_state(dataset_archive(registry_lines(3)))
    result = runner.invoke(app, ["ingest", "run", "--quiet"])
    assert result.exit_code == 0, result.output
    assert "(added 3)" in result.output


def test_org_list_and_show(install_state, dataset_archive, registry_lines) -> None:
    state = install_state(dataset_archive(registry_lines(15)))
    state.orchestrator.run_ingestion()

    listed = runner.invoke(app, ["org", "list", "--page", "2", "--page-size", "10", "--json"])
    assert listed.exit_code == 0, listed.output
    page = _last_json(listed.output)
    assert page["totalRecords"] == 15
    assert page["totalPages"] == 2
    assert len(page["items"]) == 5

    searched = runner.invoke(app, ["org", "list", "-s", "000000007", "--json"])
    assert [item["ein"] for item in _last_json(searched.output)["items"]] == ["000000007"]

    shown = runner.invoke(app, ["org", "show", "000000007"])
    assert shown.exit_code == 0, shown.output
    assert "Org 00007" in shown.output

    missing = runner.invoke(app, ["org", "show", "999999999"])
    assert missing.exit_code == 1


def test_org_list_empty_store(install_state) -> None:
    install_state()
    result = runner.invoke(app, ["org", "list"])
    assert result.exit_code == 0
    assert "No organizations stored" in result.output


def test_org_list_search_without_matches(install_state, dataset_archive, registry_lines) -> None:
    state = install_state(dataset_archive(registry_lines(3)))
    state.orchestrator.run_ingestion()
    result = runner.invoke(app, ["org", "list", "--search", "nomatch"])
    assert result.exit_code == 0
    assert "No organizations match 'nomatch'." in result.output
    assert "No organizations stored" not in result.output


def test_org_list_rejects_page_zero(install_state) -> None:
    install_state()
    result = runner.invoke(app, ["org", "list", "--page", "0"])
    assert result.exit_code != 0


def test_org_purge(install_state, dataset_archive, registry_lines) -> None:
    state = install_state(dataset_archive(registry_lines(4)))
    state.orchestrator.run_ingestion()

    cancelled = runner.invoke(app, ["org", "purge"], input="n\n")
    assert "Purge cancelled" in cancelled.output
    assert state.orchestrator.repository.count() == 4

    purged = runner.invoke(app, ["org", "purge", "--yes"])
    assert purged.exit_code == 0
    assert "Removed 4 organizations." in purged.output
    assert state.orchestrator.repository.count() == 0


def test_ingest_schedule_runs_until_interrupted(install_state, monkeypatch: pytest.MonkeyPatch) -> None:
    state = install_state()

    def interrupt(_seconds: float) -> None:
        raise KeyboardInterrupt

    monkeypatch.setattr(app_module.time, "sleep", interrupt)
    result = runner.invoke(app, ["ingest", "schedule"])

    assert result.exit_code == 0, result.output
    assert state.scheduler.calls == ["schedule", "start", "shutdown"]
    schedule, callback = state.scheduler.scheduled
    assert schedule.value == 86400
    assert callback == state.orchestrator.trigger_ingestion


def test_log_tail(install_state, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    install_state()
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    (log_dir / "registry.log").write_text("".join(f"line {i}\n" for i in range(10)), encoding="utf-8")
    monkeypatch.setattr(app_module, "current_log_dir", lambda: log_dir)

    result = runner.invoke(app, ["log", "tail", "-n", "3"])
    assert result.exit_code == 0
    assert result.output.splitlines() == ["line 7", "line 8", "line 9"]

    errors = runner.invoke(app, ["log", "tail", "--errors"])
    assert "Log is empty" in errors.output
