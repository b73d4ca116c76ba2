"""Persisted marker recording the last version the webview cache was purged for."""

from __future__ import annotations

import logging
from pathlib import Path

from desktop_shell.errors import CacheIOError

LOGGER = logging.getLogger(__name__)

MARKER_FILENAME = "last-webview-cache-version.txt"


class VersionMarkerStore:
    """Read/write the single-line version marker under a base directory."""

    def __init__(self, filename: str = MARKER_FILENAME) -> None:
        self.filename = filename

    def path(self, base_dir: Path) -> Path:
        return base_dir / self.filename

    def read(self, base_dir: Path) -> str | None:
        """Return the trimmed marker, or ``None`` when it is missing or unreadable.

        Never raises: an unreadable marker degrades to "never cleared".
        """

        marker = self.path(base_dir)
        try:
            return marker.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.debug("Ignoring unreadable version marker %s: %s", marker, exc)
            return None

    def write(self, base_dir: Path, version: str) -> Path:
        marker = self.path(base_dir)
        try:
            base_dir.mkdir(parents=True, exist_ok=True)
            marker.write_text(version.strip(), encoding="utf-8")
        except OSError as exc:
            raise CacheIOError(f"Failed to write version marker {marker}: {exc}", path=marker) from exc
        LOGGER.info("Recorded webview cache version %s in %s", version.strip(), marker)
        return marker
