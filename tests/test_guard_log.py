from __future__ import annotations

import json

from desktop_shell.guard_log import append_guard_log, load_guard_records
from desktop_shell.schemas import GuardOutcome, GuardReport


def _report(outcome: GuardOutcome, **extra) -> GuardReport:
    return GuardReport(outcome=outcome, platform="win32", app_version="1.2.0", **extra)


def test_append_guard_log_writes_file(tmp_path):
    log_path = tmp_path / "ops" / "webview-cache.jsonl"
    report = _report(GuardOutcome.PURGED, previous_version="1.1.0", removed=["C:/Local/EBWebView"])

    assert append_guard_log(report, log_path=log_path) is True

    record = json.loads(log_path.read_text(encoding="utf-8").strip())
    assert record["outcome"] == "purged"
    assert record["previous_version"] == "1.1.0"
    assert record["removed"] == ["C:/Local/EBWebView"]
    assert "error" not in record
    assert record["timestamp"]


def test_append_guard_log_records_failures(tmp_path):
    log_path = tmp_path / "webview-cache.jsonl"
    report = _report(GuardOutcome.FAILED, error="PURGE: Failed to remove x", failed_state="PURGE")

    append_guard_log(report, log_path=log_path)

    record = json.loads(log_path.read_text(encoding="utf-8"))
    assert record["error"] == "PURGE: Failed to remove x"
    assert record["failed_state"] == "PURGE"


def test_append_guard_log_skips_quiet_runs(tmp_path):
    log_path = tmp_path / "webview-cache.jsonl"

    assert append_guard_log(_report(GuardOutcome.UNCHANGED), log_path=log_path) is False
    assert append_guard_log(_report(GuardOutcome.SKIPPED), log_path=log_path) is False
    assert not log_path.exists()


def test_load_guard_records_returns_tail_and_skips_garbage(tmp_path):
    log_path = tmp_path / "webview-cache.jsonl"
    for version in ("1.0.0", "1.1.0", "1.2.0"):
        append_guard_log(_report(GuardOutcome.PURGED, previous_version=version), log_path=log_path)
    with log_path.open("a", encoding="utf-8") as handle:
        handle.write("not json\n\n[1, 2]\n")

    records = load_guard_records(log_path, 2)

    assert [record["previous_version"] for record in records] == ["1.1.0", "1.2.0"]
    assert load_guard_records(log_path, 0) == []
    assert load_guard_records(tmp_path / "missing.jsonl", 5) == []
