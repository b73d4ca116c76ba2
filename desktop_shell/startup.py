"""Shell setup hook that runs the webview cache guard before the UI is shown.

This is the one place the guard's result is handled. The result is advisory:
failures are logged and launching continues, so the only visible effect of a
failed run is that a stale cache may survive until the next start.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from desktop_shell.cache_guard import GuardState, StartupCacheGuard
from desktop_shell.guard_log import append_guard_log
from desktop_shell.schemas import GuardOutcome, GuardReport
from desktop_shell.settings import ShellSettings, get_settings

LOGGER = logging.getLogger(__name__)


def run_startup_guard(settings: ShellSettings | None = None, *, force: bool = False) -> GuardReport:
    """Run the cache guard once for this process start; never raises."""

    try:
        active_settings = settings or get_settings()
    except Exception as exc:  # noqa: BLE001 - unreadable .env
        LOGGER.warning("failed to clear webview cache on version change: settings unavailable: %s", exc)
        return GuardReport(
            outcome=GuardOutcome.FAILED,
            platform=sys.platform,
            error=f"{GuardState.INIT.value}: {exc}",
            failed_state=GuardState.INIT.value,
        )

    guard = StartupCacheGuard(active_settings.guard_config())
    report = guard.run(force=force)

    if report.outcome is GuardOutcome.FAILED:
        LOGGER.warning("failed to clear webview cache on version change: %s", report.error)
    elif report.outcome is GuardOutcome.PURGED:
        LOGGER.info(
            "Webview cache cleared for version %s (%d folder(s) removed)",
            report.app_version,
            len(report.removed),
        )

    record_guard_run(report, active_settings.guard_log_file)
    return report


def record_guard_run(report: GuardReport, log_path: Path | None) -> bool:
    """Append ``report`` to the guard log; write failures are only logged."""

    if log_path is None:
        LOGGER.debug("No guard log location resolved; %s run not recorded", report.outcome.value)
        return False
    try:
        return append_guard_log(report, log_path=log_path)
    except OSError as exc:
        LOGGER.warning("Could not append to guard log %s: %s", log_path, exc)
        return False
