"""Configuration helpers bound to python-decouple."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, replace
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Optional

from decouple import Config as DecoupleConfig, RepositoryEmpty, RepositoryEnv
from platformdirs import user_cache_dir, user_data_dir

from desktop_shell.cache_guard import GuardConfig

LOGGER = logging.getLogger(__name__)

DISTRIBUTION_NAME = "desktop-shell"
DEFAULT_APP_NAME = "desktop-shell"
GUARD_LOG_FILENAME = "webview-cache.jsonl"


def load_config(env_path: str = ".env") -> DecoupleConfig:
    """Return a decouple config object anchored to the repository .env file.

    Process environment variables win over the file; without a .env file only
    the environment and the defaults apply.
    """

    if Path(env_path).exists():
        return DecoupleConfig(RepositoryEnv(env_path))
    return DecoupleConfig(RepositoryEmpty())


@dataclass
class ShellSettings:
    """Inputs the shell resolves before invoking the startup cache guard."""

    app_name: str
    app_author: Optional[str]
    app_version: Optional[str]
    platform: str
    local_data_dir: Optional[Path]
    cache_dir: Optional[Path]
    guard_log_path: Optional[Path] = None
    log_level: str = "INFO"

    def guard_config(self) -> GuardConfig:
        return GuardConfig(
            app_version=self.app_version,
            platform=self.platform,
            local_data_dir=self.local_data_dir,
            cache_dir=self.cache_dir,
        )

    @property
    def guard_log_file(self) -> Optional[Path]:
        """Explicit GUARD_LOG_PATH, else ``<local data>/logs/webview-cache.jsonl``.

        None when neither is known; the run then goes unrecorded.
        """

        if self.guard_log_path is not None:
            return self.guard_log_path
        if self.local_data_dir is None:
            return None
        return self.local_data_dir / "logs" / GUARD_LOG_FILENAME

    def with_overrides(self, **overrides: Any) -> "ShellSettings":
        """Copy with the non-None overrides applied (CLI flags)."""

        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values)


def installed_version(distribution: str = DISTRIBUTION_NAME) -> Optional[str]:
    """Version from build metadata, or None when the distribution is not installed."""

    try:
        return metadata.version(distribution)
    except metadata.PackageNotFoundError:
        return None


def _optional_path(value: Optional[str]) -> Optional[Path]:
    return Path(value).expanduser() if value else None


def _resolve_dir(
    override: Optional[str],
    resolver: Callable[..., str],
    app_name: str,
    app_author: Optional[str],
    *,
    label: str,
) -> Optional[Path]:
    if override:
        return Path(override).expanduser()
    try:
        return Path(resolver(app_name, app_author or False))
    except Exception as exc:  # pragma: no cover - platform dependent
        LOGGER.warning("Could not resolve %s directory for %s: %s", label, app_name, exc)
        return None


def get_settings(env_path: str = ".env") -> ShellSettings:
    """Resolve shell settings from .env/environment with platform defaults."""

    config = load_config(env_path)
    app_name = config("APP_NAME", default=DEFAULT_APP_NAME)
    app_author = config("APP_AUTHOR", default=None)
    app_version = config("APP_VERSION", default=None) or installed_version()
    platform = config("SHELL_PLATFORM", default=sys.platform)
    local_data_dir = _resolve_dir(
        config("LOCAL_DATA_DIR", default=None),
        user_data_dir,
        app_name,
        app_author,
        label="local data",
    )
    cache_dir = _resolve_dir(
        config("CACHE_DIR", default=None),
        user_cache_dir,
        app_name,
        app_author,
        label="cache",
    )
    return ShellSettings(
        app_name=app_name,
        app_author=app_author,
        app_version=app_version,
        platform=platform,
        local_data_dir=local_data_dir,
        cache_dir=cache_dir,
        guard_log_path=_optional_path(config("GUARD_LOG_PATH", default=None)),
        log_level=config("LOG_LEVEL", default="INFO").upper(),
    )
