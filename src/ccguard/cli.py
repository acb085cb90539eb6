"""Command line interface for ccguard."""

from __future__ import annotations

import difflib
import json
import logging
import threading
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from ccguard.config import ConfigError, ConfigManager, GuardConfig, resolve_with_precedence
from ccguard.diagnostics import configure_logging
from ccguard.guard import GuardManager
from ccguard.hooks import HookDecision, HookProcessor
from ccguard.hooks import messages
from ccguard.snapshot import ContentStore, SnapshotError
from ccguard.storage import FileStorage, StorageError

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0
BLOB_DIRNAME = "blobs"

console = Console()
err_console = Console(stderr=True)


def _load_config(root: Path, *, ensure_file: bool = False) -> GuardConfig:
    try:
        return ConfigManager(project_root=root).load(ensure_file=ensure_file)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _build_guard(root: Path, session_id: str | None, config: GuardConfig) -> GuardManager:
    """Wire storage and logging for one invocation."""
    state_dir = Path(config.storage.state_dir).expanduser()
    configure_logging(config.logging, state_dir)
    storage = FileStorage(state_dir, session_id)
    return GuardManager(storage, config, root)


def _read_stdin(timeout: float) -> str:
    """Read all of stdin, failing if nothing arrives within ``timeout`` seconds."""
    stream = click.get_text_stream("stdin")
    chunks: list[str] = []
    reader = threading.Thread(target=lambda: chunks.append(stream.read()), daemon=True)
    reader.start()
    reader.join(timeout)
    if reader.is_alive():
        err_console.print("ccguard: timeout waiting for input")
        raise SystemExit(1)
    return chunks[0] if chunks else ""


def _hook_context(raw: str) -> tuple[str | None, Path]:
    """Return the session id and project root named in a hook payload."""
    root = Path.cwd()
    try:
        data: Any = json.loads(raw)
    except json.JSONDecodeError:
        return None, root
    if not isinstance(data, dict):
        return None, root
    session_id = data.get("session_id") if isinstance(data.get("session_id"), str) else None
    cwd = data.get("cwd")
    if isinstance(cwd, str) and Path(cwd).is_dir():
        root = Path(cwd)
    return session_id or None, root


def _emit_decision(decision: HookDecision) -> None:
    click.echo(json.dumps(decision.model_dump()))


def _assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    node = target
    for segment in path[:-1]:
        existing = node.get(segment)
        if existing is None:
            existing = {}
            node[segment] = existing
        elif not isinstance(existing, dict):
            raise ConfigError(
                f"Cannot assign into '{segment}' because it is not a mapping in the config file."
            )
        node = existing
    node[path[-1]] = value


session_option = click.option(
    "--session",
    "session_id",
    type=str,
    required=True,
    help="Session identifier whose state to use, as sent in hook payloads.",
)
root_option = click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root. Defaults to the current directory.",
)


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(package_name="ccguard")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """ccguard keeps an assistant's coding session within a line-count budget.

    Invoked without a subcommand it acts as a hook: it reads the event JSON
    from stdin and prints the decision JSON.
    """
    if ctx.invoked_subcommand is None:
        ctx.invoke(hook)


@cli.command()
@click.option(
    "--timeout",
    type=float,
    default=DEFAULT_TIMEOUT,
    show_default=True,
    help="Seconds to wait for the event on stdin.",
)
def hook(timeout: float = DEFAULT_TIMEOUT) -> None:
    """Process one hook event from stdin."""
    raw = _read_stdin(timeout)
    session_id, root = _hook_context(raw)
    try:
        config = ConfigManager(project_root=root).load(ensure_file=False)
        guard = _build_guard(root, session_id, config)
    except (ConfigError, StorageError, OSError) as exc:
        err_console.print(f"ccguard: {exc}")
        _emit_decision(HookDecision.block(messages.PROCESSING_ERROR))
        return

    content_store = ContentStore(guard.storage.data_dir / BLOB_DIRNAME)
    processor = HookProcessor(guard, content_store=content_store)
    _emit_decision(processor.process_event(raw))


@cli.command()
@session_option
@root_option
@click.option("--json", "json_output", is_flag=True, help="Emit the snapshot summary as JSON.")
def snapshot(session_id: str, root: Path | None, json_output: bool) -> None:
    """Checkpoint the project as the fixed baseline for snapshot mode."""
    project = root or Path.cwd()
    config = _load_config(project)
    guard = _build_guard(project, session_id, config)
    try:
        summary = guard.take_snapshot(session_id)
    except (SnapshotError, StorageError, OSError) as exc:
        raise click.ClickException(f"Failed to take snapshot: {exc}") from exc

    if json_output:
        console.print_json(data=summary.model_dump(mode="json"))
        return
    console.print(
        f"[green]Baseline recorded: {summary.total_line_count} lines in "
        f"{summary.file_count} files under {guard.root}.[/green]"
    )


@cli.command()
@session_option
@root_option
@click.option("--json", "json_output", is_flag=True, help="Emit status information as JSON.")
def status(session_id: str, root: Path | None, json_output: bool) -> None:
    """Show whether the guard is active and the session's running totals."""
    project = root or Path.cwd()
    config = _load_config(project)
    guard = _build_guard(project, session_id, config)
    store = guard.snapshot_store()
    stats = guard.get_session_stats()

    payload: dict[str, Any] = {
        "enabled": guard.is_enabled(),
        "strategy": config.enforcement.strategy,
        "mode": config.enforcement.mode,
        "limit_type": config.enforcement.limit_type,
        "allowed_positive_lines": config.thresholds.allowed_positive_lines,
        "baseline_line_count": store.get_snapshot_baseline(session_id),
        "current_line_count": store.get_current_valid_line_count(session_id),
        "stats": stats.model_dump(mode="json") if stats else None,
    }
    if json_output:
        console.print_json(data=payload)
        return

    table = Table(title=f"ccguard status ({session_id})", show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("Enabled", "yes" if payload["enabled"] else "no")
    table.add_row("Strategy", f"{payload['strategy']} ({payload['mode']}, {payload['limit_type']})")
    table.add_row("Allowed growth", f"+{payload['allowed_positive_lines']} lines")
    for label, field in (("Baseline", "baseline_line_count"), ("Current", "current_line_count")):
        value = payload[field]
        table.add_row(label, "-" if value is None else f"{value} lines")
    if stats is not None:
        table.add_row("Lines added", str(stats.total_lines_added))
        table.add_row("Lines removed", str(stats.total_lines_removed))
        table.add_row("Net change", messages.signed(stats.net_change))
        table.add_row("Operations", str(stats.operation_count))
    console.print(table)


@cli.command("on")
@session_option
def enable(session_id: str) -> None:
    """Enable enforcement."""
    project = Path.cwd()
    _build_guard(project, session_id, _load_config(project)).enable()
    console.print(f"[green]{messages.guard_enabled()}[/green]")


@cli.command("off")
@session_option
def disable(session_id: str) -> None:
    """Disable enforcement."""
    project = Path.cwd()
    _build_guard(project, session_id, _load_config(project)).disable()
    console.print(f"[yellow]{messages.guard_disabled()}[/yellow]")


@cli.command()
@session_option
def reset(session_id: str) -> None:
    """Reset session statistics."""
    project = Path.cwd()
    _build_guard(project, session_id, _load_config(project)).reset_stats()
    console.print(f"[green]{messages.stats_reset()}[/green]")


@cli.group()
def config() -> None:
    """Manage ccguard configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager(project_root=Path.cwd())
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException(
            "KEY must specify a dotted path such as 'thresholds.allowed_positive_lines'."
        )

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        file_data = manager.load_file_overrides()
        _assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=GuardConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    diff = list(
        difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    if not diff:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
