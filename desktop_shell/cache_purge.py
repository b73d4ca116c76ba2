"""Removal of the embedded browser engine's on-disk cache folders."""

from __future__ import annotations

import logging
import shutil
import sys
from pathlib import Path
from typing import Iterator, Sequence

from desktop_shell.errors import CacheIOError

LOGGER = logging.getLogger(__name__)

# Folder names WebView2 uses for its user-data/render cache across runtime variants.
WEBVIEW_CACHE_DIRS: tuple[str, ...] = ("EBWebView", "WebView2", "webview2")


class CacheDirectoryPurger:
    """Delete known cache folders beneath a base directory, fail-fast."""

    def __init__(self, names: Sequence[str] = WEBVIEW_CACHE_DIRS) -> None:
        self.names = tuple(names)

    def purge(self, base_dir: Path, names: Sequence[str] | None = None) -> list[Path]:
        """Remove each ``base_dir/name`` that exists and return the removed paths.

        A target that disappears before it can be removed counts as removed
        by someone else and is skipped. Any other failure stops the purge and
        raises :class:`CacheIOError`.
        """

        return list(self.iter_purge(base_dir, names))

    def iter_purge(self, base_dir: Path, names: Sequence[str] | None = None) -> Iterator[Path]:
        """Yield each removed path as soon as it is gone."""

        for name in self.names if names is None else names:
            target = base_dir / name
            if not target.exists() and not target.is_symlink():
                continue
            try:
                _remove_tree(target)
            except FileNotFoundError:
                LOGGER.debug("Cache folder %s vanished before removal", target)
                continue
            except OSError as exc:
                raise CacheIOError(f"Failed to remove {target}: {exc}", path=target) from exc
            LOGGER.info("Removed webview cache folder %s", target)
            yield target


def _remove_tree(target: Path) -> None:
    if target.is_symlink() or not target.is_dir():
        target.unlink()
        return
    if sys.version_info >= (3, 12):
        shutil.rmtree(target, onexc=_ignore_missing)
    else:  # pragma: no cover - older interpreters
        shutil.rmtree(target, onerror=lambda func, path, exc_info: _ignore_missing(func, path, exc_info[1]))


def _ignore_missing(func, path, exc: BaseException) -> None:  # noqa: ANN001
    # Entries removed concurrently while rmtree walks the tree.
    if isinstance(exc, FileNotFoundError):
        return
    raise exc
