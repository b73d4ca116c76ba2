#!/usr/bin/env python3
"""Operator CLI for the desktop shell's startup webview-cache guard."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from desktop_shell.cache_guard import ActivePurgeStrategy, StartupCacheGuard, select_strategy
from desktop_shell.guard_log import load_guard_records
from desktop_shell.schemas import GuardOutcome, GuardReport, GuardStatus, TargetStatus
from desktop_shell.settings import ShellSettings, get_settings
from desktop_shell.startup import record_guard_run, run_startup_guard
from desktop_shell.version_marker import VersionMarkerStore

console = Console()
cli = typer.Typer(help="Inspect and run the startup webview-cache guard")
log_cli = typer.Typer(help="Guard run log helpers.")
cli.add_typer(log_cli, name="log")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# --log-level from the callback; applied once the command has read its .env.
_cli_options: dict[str, Optional[str]] = {"log_level": None}


@cli.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL (DEBUG, INFO, ...)."),
) -> None:
    _cli_options["log_level"] = log_level


def _configure_logging(settings: ShellSettings) -> None:
    level = (_cli_options["log_level"] or settings.log_level).upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _resolve_settings(
    *,
    env_file: str = ".env",
    local_data_dir: Optional[Path] = None,
    cache_dir: Optional[Path] = None,
    platform: Optional[str] = None,
    app_version: Optional[str] = None,
    log_path: Optional[Path] = None,
) -> ShellSettings:
    settings = get_settings(env_file)
    _configure_logging(settings)
    return settings.with_overrides(
        local_data_dir=local_data_dir,
        cache_dir=cache_dir,
        platform=platform,
        app_version=app_version,
        guard_log_path=log_path,
    )


def _print_report(report: GuardReport, *, json_output: bool) -> None:
    if json_output:
        console.print_json(data=report.model_dump(mode="json"))
        return
    colour = {
        GuardOutcome.PURGED: "green",
        GuardOutcome.UNCHANGED: "cyan",
        GuardOutcome.SKIPPED: "dim",
        GuardOutcome.FAILED: "red",
    }[report.outcome]
    table = Table("Field", "Value", title="Webview cache guard")
    table.add_row("outcome", f"[{colour}]{report.outcome.value}[/]")
    table.add_row("platform", report.platform)
    table.add_row("version", report.app_version or "—")
    table.add_row("previous", report.previous_version or "—")
    table.add_row("removed", escape("\n".join(report.removed)) or "—")
    if report.error:
        table.add_row("error", f"[red]{escape(report.error)}[/]")
    console.print(table)


def _build_status(settings: ShellSettings) -> GuardStatus:
    config = settings.guard_config()
    strategy = select_strategy(config.platform)
    store = VersionMarkerStore(config.marker_filename)
    marker_path: str | None = None
    marker: str | None = None
    if config.local_data_dir is not None:
        marker_path = str(store.path(config.local_data_dir))
        marker = store.read(config.local_data_dir)

    targets: list[TargetStatus] = []
    for base, base_dir in (("local_data", config.local_data_dir), ("cache", config.cache_dir)):
        if base_dir is None:
            continue
        for name in config.cache_dir_names:
            target = base_dir / name
            targets.append(TargetStatus(base=base, path=str(target), exists=target.exists()))

    version = (config.app_version or "").strip() or None
    active = isinstance(strategy, ActivePurgeStrategy)
    blocked: str | None = None
    if active and version is None:
        blocked = "application version unresolved"
    elif active and config.local_data_dir is None:
        blocked = "local data directory unresolved"
    return GuardStatus(
        platform=config.platform,
        strategy=strategy.name,
        app_version=version,
        local_data_dir=str(config.local_data_dir) if config.local_data_dir else None,
        cache_dir=str(config.cache_dir) if config.cache_dir else None,
        marker_path=marker_path,
        marker=marker,
        purge_pending=active and blocked is None and marker != version,
        blocked=blocked,
        targets=targets,
    )


def _print_status(status: GuardStatus) -> None:
    table = Table("Field", "Value", title="Webview cache guard status")
    table.add_row("platform", f"{status.platform} ({status.strategy})")
    table.add_row("version", status.app_version or "[red]unresolved[/]")
    table.add_row("local data", status.local_data_dir or "[red]unresolved[/]")
    table.add_row("cache", status.cache_dir or "[dim]none[/]")
    table.add_row("marker", status.marker or "[dim]never cleared[/]")
    if status.blocked:
        table.add_row("purge pending", f"[red]startup would fail: {escape(status.blocked)}[/]")
    else:
        table.add_row("purge pending", "[yellow]yes[/]" if status.purge_pending else "no")
    console.print(table)
    if status.targets:
        targets = Table("Base", "Path", "Exists", title="Purge targets")
        for target in status.targets:
            targets.add_row(target.base, target.path, "[yellow]yes[/]" if target.exists else "[dim]no[/]")
        console.print(targets)


@cli.command()
def startup(
    env_file: str = typer.Option(".env", "--env-file", help="Path to the .env file."),
    local_data_dir: Optional[Path] = typer.Option(None, "--local-data-dir", help="Override LOCAL_DATA_DIR."),
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Override CACHE_DIR."),
    platform: Optional[str] = typer.Option(None, "--platform", help="Override SHELL_PLATFORM (e.g. win32)."),
    app_version: Optional[str] = typer.Option(None, "--app-version", help="Override APP_VERSION."),
    log_path: Optional[Path] = typer.Option(None, "--log-path", help="Override GUARD_LOG_PATH."),
    strict: bool = typer.Option(False, "--strict/--no-strict", help="Exit non-zero when the guard fails."),
    json_output: bool = typer.Option(False, "--json/--no-json", help="Emit JSON instead of a table."),
) -> None:
    """Run the guard exactly as the shell does during setup."""

    settings = _resolve_settings(
        env_file=env_file,
        local_data_dir=local_data_dir,
        cache_dir=cache_dir,
        platform=platform,
        app_version=app_version,
        log_path=log_path,
    )
    report = run_startup_guard(settings)
    _print_report(report, json_output=json_output)
    if strict and not report.ok:
        raise typer.Exit(1)


@cli.command()
def status(
    env_file: str = typer.Option(".env", "--env-file", help="Path to the .env file."),
    local_data_dir: Optional[Path] = typer.Option(None, "--local-data-dir", help="Override LOCAL_DATA_DIR."),
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Override CACHE_DIR."),
    platform: Optional[str] = typer.Option(None, "--platform", help="Override SHELL_PLATFORM (e.g. win32)."),
    app_version: Optional[str] = typer.Option(None, "--app-version", help="Override APP_VERSION."),
    json_output: bool = typer.Option(False, "--json/--no-json", help="Emit JSON instead of a table."),
) -> None:
    """Show the stored marker and which purge targets currently exist."""

    settings = _resolve_settings(
        env_file=env_file,
        local_data_dir=local_data_dir,
        cache_dir=cache_dir,
        platform=platform,
        app_version=app_version,
    )
    snapshot = _build_status(settings)
    if json_output:
        console.print_json(data=snapshot.model_dump(mode="json"))
        return
    _print_status(snapshot)


@cli.command()
def purge(
    env_file: str = typer.Option(".env", "--env-file", help="Path to the .env file."),
    local_data_dir: Optional[Path] = typer.Option(None, "--local-data-dir", help="Override LOCAL_DATA_DIR."),
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Override CACHE_DIR."),
    platform: Optional[str] = typer.Option(None, "--platform", help="Override SHELL_PLATFORM (e.g. win32)."),
    app_version: Optional[str] = typer.Option(None, "--app-version", help="Override APP_VERSION."),
    log_path: Optional[Path] = typer.Option(None, "--log-path", help="Override GUARD_LOG_PATH."),
    force_platform: bool = typer.Option(
        False,
        "--force-platform/--no-force-platform",
        help="Purge even on platforms where the guard is a no-op.",
    ),
    json_output: bool = typer.Option(False, "--json/--no-json", help="Emit JSON instead of a table."),
) -> None:
    """Purge the webview cache now and re-record the current version."""

    settings = _resolve_settings(
        env_file=env_file,
        local_data_dir=local_data_dir,
        cache_dir=cache_dir,
        platform=platform,
        app_version=app_version,
        log_path=log_path,
    )
    config = settings.guard_config()
    strategy = select_strategy(config.platform)
    if not isinstance(strategy, ActivePurgeStrategy):
        if not force_platform:
            detail = f"Webview cache guard is a no-op on {config.platform}; pass --force-platform to purge anyway."
            if json_output:
                console.print_json(data={"status": "error", "detail": detail})
            else:
                console.print(f"[yellow]{detail}[/]")
            raise typer.Exit(1)
        strategy = ActivePurgeStrategy()

    report = StartupCacheGuard(config, strategy=strategy).run(force=True)
    record_guard_run(report, settings.guard_log_file)
    _print_report(report, json_output=json_output)
    if not report.ok:
        raise typer.Exit(1)


def _format_removed(values: Any) -> str:
    if not values:
        return "—"
    if isinstance(values, list):
        return "\n".join(str(value) for value in values)
    return str(values)


def _log_rows(records: Iterable[dict[str, Any]]) -> Iterable[tuple[str, str, str, str, str]]:
    for record in records:
        versions = f"{record.get('previous_version') or 'none'} → {record.get('app_version') or '?'}"
        yield (
            str(record.get("timestamp", "-")),
            str(record.get("outcome", "-")),
            versions,
            _format_removed(record.get("removed")),
            str(record.get("error") or "—"),
        )


@log_cli.command("tail")
def log_tail(
    count: int = typer.Option(20, "--count", "-n", help="Number of entries to display."),
    json_output: bool = typer.Option(False, "--json", help="Emit raw JSON lines instead of a table."),
    log_path: Optional[Path] = typer.Option(None, "--log-path", help="Override GUARD_LOG_PATH."),
    local_data_dir: Optional[Path] = typer.Option(None, "--local-data-dir", help="Override LOCAL_DATA_DIR."),
    env_file: str = typer.Option(".env", "--env-file", help="Path to the .env file."),
) -> None:
    """Show the most recent guard runs that purged or failed."""

    settings = _resolve_settings(env_file=env_file, local_data_dir=local_data_dir, log_path=log_path)
    target_path = settings.guard_log_file
    if target_path is None:
        console.print("[yellow]Guard log location unresolved; set GUARD_LOG_PATH or LOCAL_DATA_DIR.[/]")
        return
    if not target_path.exists():
        console.print(f"[yellow]Guard log not found at {target_path}[/]")
        return
    records = load_guard_records(target_path, count)
    if not records:
        console.print("[dim]No guard runs recorded.[/]")
        return
    if json_output:
        for record in records:
            console.print(json.dumps(record), soft_wrap=True, markup=False, highlight=False)
        return
    table = Table("timestamp", "outcome", "version", "removed", "error", title="Guard Log")
    for row in _log_rows(records):
        table.add_row(*row)
    console.print(table)


if __name__ == "__main__":  # pragma: no cover
    cli()
