"""Error taxonomy for the startup webview-cache guard."""

from __future__ import annotations

from pathlib import Path


class CacheGuardError(Exception):
    """Single error value the guard hands back to the startup boundary.

    ``state`` names the guard step that failed (INIT, CHECK, PURGE, COMMIT).
    """

    def __init__(self, message: str, *, state: str | None = None) -> None:
        super().__init__(message)
        self.state = state

    def describe(self) -> str:
        if self.state:
            return f"{self.state}: {self}"
        return str(self)


class PathResolutionError(CacheGuardError):
    """A required input (local-data directory, application version) is missing."""


class CacheIOError(CacheGuardError):
    """Create/write/remove failed for a reason other than the target being absent."""

    def __init__(self, message: str, *, path: Path | None = None, state: str | None = None) -> None:
        super().__init__(message, state=state)
        self.path = path
