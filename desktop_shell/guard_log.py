"""Helpers to append webview-cache guard runs to the ops log."""

from __future__ import annotations

from collections import deque
from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any

from desktop_shell.schemas import GuardOutcome, GuardReport


def append_guard_log(report: GuardReport, *, log_path: Path) -> bool:
    """Append a guard run for ops review.

    Writes a JSON line with the timestamp, platform, versions, removed folders
    and error. No-op for skipped and unchanged runs. Returns whether a record
    was written.
    """

    if report.outcome not in (GuardOutcome.PURGED, GuardOutcome.FAILED):
        return False

    record: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "outcome": report.outcome.value,
        "platform": report.platform,
        "app_version": report.app_version,
        "previous_version": report.previous_version,
        "removed": list(report.removed),
    }
    if report.error:
        record["error"] = report.error
        record["failed_state"] = report.failed_state

    log_path.parent.mkdir(parents=True, exist_ok=True)
    with log_path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(record))
        handle.write("\n")
    return True


def load_guard_records(path: Path, limit: int) -> list[dict[str, Any]]:
    """Return the last ``limit`` records; malformed lines are skipped."""

    if limit <= 0 or not path.exists():
        return []
    records: deque[dict[str, Any]] = deque(maxlen=limit)
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            line = line.strip()
            if not line:
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(payload, dict):
                records.append(payload)
    return list(records)
