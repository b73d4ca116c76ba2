"""Version-gated purge of stale webview render caches at shell startup.

After an upgrade the embedded browser engine can pick up render/script cache
written by the previous binary and misbehave. The guard compares the running
version with the version recorded the last time the cache was purged and, when
they differ, deletes the engine's cache folders before recording the new
version. A run moves through ``INIT -> CHECK -> PURGE -> COMMIT -> DONE``.

Failures never escape :meth:`StartupCacheGuard.run`; they are folded into the
returned :class:`GuardReport` so the caller can log them and keep launching.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from desktop_shell.cache_purge import WEBVIEW_CACHE_DIRS, CacheDirectoryPurger
from desktop_shell.errors import CacheGuardError, CacheIOError, PathResolutionError
from desktop_shell.schemas import GuardOutcome, GuardReport
from desktop_shell.version_marker import MARKER_FILENAME, VersionMarkerStore

LOGGER = logging.getLogger(__name__)


class GuardState(str, Enum):
    """Lifecycle states of a single guard run."""

    INIT = "INIT"
    CHECK = "CHECK"
    PURGE = "PURGE"
    COMMIT = "COMMIT"
    DONE = "DONE"


@dataclass(frozen=True, slots=True)
class GuardConfig:
    """Explicit inputs for one guard run, resolved by the hosting shell."""

    app_version: str | None
    platform: str
    local_data_dir: Path | None
    cache_dir: Path | None = None
    cache_dir_names: tuple[str, ...] = WEBVIEW_CACHE_DIRS
    marker_filename: str = MARKER_FILENAME


@dataclass
class GuardRun:
    """Mutable progress of a run; turned into a report once the run ends."""

    config: GuardConfig
    state: GuardState = GuardState.INIT
    app_version: str | None = None
    previous_version: str | None = None
    removed: list[Path] = field(default_factory=list)
    outcome: GuardOutcome | None = None

    def advance(self, state: GuardState) -> None:
        LOGGER.debug("Webview cache guard %s -> %s", self.state.value, state.value)
        self.state = state

    def to_report(self, error: CacheGuardError | None = None) -> GuardReport:
        if error is not None:
            outcome = GuardOutcome.FAILED
        else:
            outcome = self.outcome or GuardOutcome.SKIPPED
        return GuardReport(
            outcome=outcome,
            platform=self.config.platform,
            app_version=self.app_version,
            previous_version=self.previous_version,
            removed=[str(path) for path in self.removed],
            error=error.describe() if error is not None else None,
            failed_state=error.state if error is not None else None,
        )


class PurgeStrategy:
    """Platform capability deciding whether the guard does any work."""

    name = "base"

    def execute(self, run: GuardRun, *, force: bool = False) -> None:
        raise NotImplementedError


class NoopStrategy(PurgeStrategy):
    """Platforms whose browser engine does not reuse stale render caches."""

    name = "noop"

    def execute(self, run: GuardRun, *, force: bool = False) -> None:
        LOGGER.debug("Webview cache guard disabled on platform %s", run.config.platform)
        run.outcome = GuardOutcome.SKIPPED
        run.advance(GuardState.DONE)


class ActivePurgeStrategy(PurgeStrategy):
    """Purge known cache folders whenever the recorded version differs."""

    name = "active"

    def __init__(
        self,
        *,
        marker_store: VersionMarkerStore | None = None,
        purger: CacheDirectoryPurger | None = None,
    ) -> None:
        self.marker_store = marker_store
        self.purger = purger

    def execute(self, run: GuardRun, *, force: bool = False) -> None:
        config = run.config
        store = self.marker_store or VersionMarkerStore(config.marker_filename)
        purger = self.purger or CacheDirectoryPurger(config.cache_dir_names)

        version = (config.app_version or "").strip()
        if not version:
            raise PathResolutionError("Application version could not be determined")
        run.app_version = version
        local_data_dir = config.local_data_dir
        if local_data_dir is None:
            raise PathResolutionError("Local data directory could not be resolved")
        try:
            local_data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheIOError(
                f"Failed to create local data directory {local_data_dir}: {exc}",
                path=local_data_dir,
            ) from exc

        run.advance(GuardState.CHECK)
        run.previous_version = store.read(local_data_dir)
        if run.previous_version == version and not force:
            LOGGER.debug("Webview cache already cleared for version %s", version)
            run.outcome = GuardOutcome.UNCHANGED
            run.advance(GuardState.DONE)
            return

        run.advance(GuardState.PURGE)
        LOGGER.info(
            "Clearing webview cache (recorded version %s, current version %s)",
            run.previous_version or "none",
            version,
        )
        for base_dir in (local_data_dir, config.cache_dir):
            if base_dir is None:
                continue
            for removed in purger.iter_purge(base_dir):
                run.removed.append(removed)

        run.advance(GuardState.COMMIT)
        store.write(local_data_dir, version)
        run.outcome = GuardOutcome.PURGED
        run.advance(GuardState.DONE)


ACTIVE_PLATFORMS = frozenset({"win32", "windows"})


def select_strategy(platform: str) -> PurgeStrategy:
    """Return the strategy for a ``sys.platform``-style identifier."""

    if platform.strip().lower() in ACTIVE_PLATFORMS:
        return ActivePurgeStrategy()
    return NoopStrategy()


class StartupCacheGuard:
    """Single-shot guard run once per process start, before the UI is shown."""

    def __init__(self, config: GuardConfig, *, strategy: PurgeStrategy | None = None) -> None:
        self.config = config
        self.strategy = strategy or select_strategy(config.platform)
        self._report: GuardReport | None = None

    @property
    def report(self) -> GuardReport | None:
        return self._report

    def run(self, *, force: bool = False) -> GuardReport:
        """Run the guard once and return its advisory report.

        Repeated calls return the first report without touching the disk.
        """

        if self._report is not None:
            return self._report
        progress = GuardRun(self.config)
        error: CacheGuardError | None = None
        try:
            self.strategy.execute(progress, force=force)
        except CacheGuardError as exc:
            if exc.state is None:
                exc.state = progress.state.value
            error = exc
        except Exception as exc:  # noqa: BLE001 - folded into the report
            error = CacheGuardError(f"{type(exc).__name__}: {exc}", state=progress.state.value)
        self._report = progress.to_report(error)
        return self._report
