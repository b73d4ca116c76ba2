"""Pydantic DTOs describing a startup guard run."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class GuardOutcome(str, Enum):
    """How a single guard run ended."""

    SKIPPED = "skipped"
    UNCHANGED = "unchanged"
    PURGED = "purged"
    FAILED = "failed"


class GuardReport(BaseModel):
    """Advisory result handed back to the shell's setup hook; never raised."""

    outcome: GuardOutcome = Field(description="Terminal outcome of the run")
    platform: str = Field(description="Platform identifier the strategy was selected for")
    app_version: str | None = Field(default=None, description="Trimmed current application version")
    previous_version: str | None = Field(
        default=None,
        description="Trimmed marker content before the run (None when missing or unreadable)",
    )
    removed: list[str] = Field(default_factory=list, description="Cache folders deleted during PURGE")
    error: str | None = Field(default=None, description="Descriptive failure message when outcome=failed")
    failed_state: str | None = Field(default=None, description="Guard state that raised the failure")

    @property
    def ok(self) -> bool:
        return self.outcome is not GuardOutcome.FAILED


class TargetStatus(BaseModel):
    """Presence of a single purge target, used by the operator CLI."""

    base: str = Field(description="Base directory category (local_data or cache)")
    path: str
    exists: bool


class GuardStatus(BaseModel):
    """Read-only view of the guard inputs and the stored marker."""

    platform: str
    strategy: str
    app_version: str | None = None
    local_data_dir: str | None = None
    cache_dir: str | None = None
    marker_path: str | None = None
    marker: str | None = None
    purge_pending: bool = Field(description="True when the next startup on this platform would purge")
    blocked: str | None = Field(
        default=None,
        description="Why the next startup on this platform would fail before checking the marker",
    )
    targets: list[TargetStatus] = Field(default_factory=list)
