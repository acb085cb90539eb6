"""Tests for the CLI entrypoint and hook command."""

import json
import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from ccguard.cli import cli


@pytest.fixture(autouse=True)
def _restore_logger() -> Iterator[None]:
    logger = logging.getLogger("ccguard")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    root = (tmp_path / "project").resolve()
    root.mkdir()
    (root / "main.py").write_text("".join(f"x{i} = {i}\n" for i in range(5)), encoding="utf-8")
    return root


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = {key: value for key, value in os.environ.items() if not key.startswith("CCGUARD")}
    env["HOME"] = str(tmp_path)
    return env


def _payload(project: Path, event: str, **fields: Any) -> str:
    return json.dumps(
        {"session_id": "cli-session", "hook_event_name": event, "cwd": str(project), **fields}
    )


def _hook(runner: CliRunner, env: dict[str, Any], raw: str, args: list[str] | None = None) -> dict:
    result = runner.invoke(cli, ["hook"] if args is None else args, input=raw, env=env)
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "line-count budget" in result.output
    for command in ("hook", "snapshot", "status", "config"):
        assert command in result.output


def test_hook_round_trip_reverts_growth(tmp_path: Path, project: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    target = project / "main.py"
    original = target.read_bytes()
    edit = {"tool_name": "Write", "tool_input": {"file_path": str(target), "content": "..."}}

    started = _hook(runner, env, _payload(project, "UserPromptSubmit", prompt="hi"), args=[])
    assert started == {"decision": "approve", "reason": "Session initialized"}

    pre = _hook(runner, env, _payload(project, "PreToolUse", **edit))
    assert pre["decision"] == "approve"
    target.write_text(original.decode() + "extra = 1\n", encoding="utf-8")
    post = _hook(runner, env, _payload(project, "PostToolUse", **edit))

    assert post["decision"] == "block"
    assert "Exceeded by: 1 lines" in post["reason"]
    assert target.read_bytes() == original
    assert (tmp_path / ".ccguard" / "cli-session").is_dir()


def test_hook_accepts_malformed_input(tmp_path: Path) -> None:
    runner = CliRunner()

    decision = _hook(runner, _env_with_home(tmp_path), "definitely not json")

    assert decision == {"decision": "approve", "reason": "No validation required"}


def test_hook_with_broken_project_config_blocks(tmp_path: Path, project: Path) -> None:
    runner = CliRunner()
    (project / ".ccguard.yaml").write_text("thresholds: [unclosed", encoding="utf-8")

    decision = _hook(runner, _env_with_home(tmp_path), _payload(project, "PreToolUse"))

    assert decision["decision"] == "block"
    assert decision["reason"] == "Error processing hook data. Please try again."


def test_snapshot_and_status_json(tmp_path: Path, project: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    root_args = ["--session", "s1", "--root", str(project), "--json"]

    snap = runner.invoke(cli, ["snapshot", *root_args], env=env)
    assert snap.exit_code == 0, snap.output
    summary = json.loads(snap.stdout)
    assert summary["total_line_count"] == 5
    assert summary["file_count"] == 1

    status = runner.invoke(cli, ["status", *root_args], env=env)
    assert status.exit_code == 0, status.output
    payload = json.loads(status.stdout)
    assert payload["enabled"] is True
    assert payload["strategy"] == "cumulative"
    assert payload["baseline_line_count"] == 5
    assert payload["current_line_count"] == 5
    assert payload["stats"] is None


def test_status_table_renders(tmp_path: Path, project: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli, ["status", "--session", "s1", "--root", str(project)], env=_env_with_home(tmp_path)
    )

    assert result.exit_code == 0, result.output
    assert "ccguard status" in result.output
    assert "Enabled" in result.output


def test_on_off_and_reset_commands(tmp_path: Path, project: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    status_args = ["status", "--session", "s2", "--root", str(project), "--json"]

    off = runner.invoke(cli, ["off", "--session", "s2"], env=env)
    assert off.exit_code == 0
    assert "DISABLED" in off.output
    assert json.loads(runner.invoke(cli, status_args, env=env).stdout)["enabled"] is False

    on = runner.invoke(cli, ["on", "--session", "s2"], env=env)
    assert on.exit_code == 0
    assert json.loads(runner.invoke(cli, status_args, env=env).stdout)["enabled"] is True

    reset = runner.invoke(cli, ["reset", "--session", "s2"], env=env)
    assert reset.exit_code == 0
    stats = json.loads(runner.invoke(cli, status_args, env=env).stdout)["stats"]
    assert stats["net_change"] == 0
    assert stats["operation_count"] == 0


@pytest.mark.parametrize("command", ["snapshot", "status", "on", "off", "reset"])
def test_session_scoped_commands_require_session(tmp_path: Path, command: str) -> None:
    result = CliRunner().invoke(cli, [command], env=_env_with_home(tmp_path))

    assert result.exit_code == 2
    assert "--session" in result.output


def test_cli_checkpoint_is_the_hook_baseline(tmp_path: Path, project: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    (project / ".ccguard.yaml").write_text("enforcement:\n  strategy: snapshot\n", encoding="utf-8")
    target = project / "main.py"
    edit = {"tool_name": "Edit", "tool_input": {"file_path": str(target)}}

    snap = runner.invoke(
        cli, ["snapshot", "--session", "cli-session", "--root", str(project)], env=env
    )
    assert snap.exit_code == 0, snap.output
    # Out-of-band growth after the checkpoint must not move the baseline.
    target.write_text("".join(f"x{i} = {i}\n" for i in range(8)), encoding="utf-8")
    grown = target.read_bytes()

    _hook(runner, env, _payload(project, "PreToolUse", **edit))
    target.write_text(grown.decode() + "y = 9\n", encoding="utf-8")
    post = _hook(runner, env, _payload(project, "PostToolUse", **edit))

    assert post["decision"] == "block"
    assert "Baseline threshold: 5 lines" in post["reason"]
    assert "Exceeded by: 4 lines" in post["reason"]
    assert target.read_bytes() == grown
