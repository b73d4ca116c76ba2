from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from desktop_shell import settings as settings_module
from desktop_shell.settings import get_settings, installed_version

ENV_KEYS = (
    "APP_NAME",
    "APP_AUTHOR",
    "APP_VERSION",
    "SHELL_PLATFORM",
    "LOCAL_DATA_DIR",
    "CACHE_DIR",
    "GUARD_LOG_PATH",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_env_file_values_are_used(tmp_path):
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "APP_NAME=invoice-desk",
                "APP_VERSION=1.2.0",
                "SHELL_PLATFORM=win32",
                f"LOCAL_DATA_DIR={tmp_path / 'local'}",
                f"CACHE_DIR={tmp_path / 'cache'}",
                "GUARD_LOG_PATH=logs/guard.jsonl",
                "LOG_LEVEL=debug",
            ]
        ),
        encoding="utf-8",
    )

    settings = get_settings(str(env_path))

    assert settings.app_name == "invoice-desk"
    assert settings.app_version == "1.2.0"
    assert settings.platform == "win32"
    assert settings.local_data_dir == tmp_path / "local"
    assert settings.cache_dir == tmp_path / "cache"
    assert settings.guard_log_path == Path("logs/guard.jsonl")
    assert settings.log_level == "DEBUG"


def test_environment_overrides_env_file(monkeypatch, tmp_path):
    env_path = tmp_path / ".env"
    env_path.write_text("APP_VERSION=1.0.0\n", encoding="utf-8")
    monkeypatch.setenv("APP_VERSION", "2.0.0")

    assert get_settings(str(env_path)).app_version == "2.0.0"


def test_platform_dirs_are_used_without_overrides(monkeypatch, tmp_path):
    calls = []

    def _fake_data_dir(app_name, app_author):
        calls.append(("data", app_name, app_author))
        return str(tmp_path / "data" / app_name)

    def _fake_cache_dir(app_name, app_author):
        calls.append(("cache", app_name, app_author))
        return str(tmp_path / "cache" / app_name)

    monkeypatch.setattr(settings_module, "user_data_dir", _fake_data_dir)
    monkeypatch.setattr(settings_module, "user_cache_dir", _fake_cache_dir)
    monkeypatch.setattr(settings_module, "installed_version", lambda: "9.9.9")
    monkeypatch.setenv("APP_NAME", "shell-demo")

    settings = get_settings(str(tmp_path / "missing.env"))

    assert settings.local_data_dir == tmp_path / "data" / "shell-demo"
    assert settings.cache_dir == tmp_path / "cache" / "shell-demo"
    assert settings.app_version == "9.9.9"
    assert ("data", "shell-demo", False) in calls
    assert ("cache", "shell-demo", False) in calls


def test_guard_config_carries_resolved_inputs(tmp_path):
    env_path = tmp_path / ".env"
    env_path.write_text(
        f"APP_VERSION=1.2.0\nSHELL_PLATFORM=win32\nLOCAL_DATA_DIR={tmp_path}\nCACHE_DIR={tmp_path / 'c'}\n",
        encoding="utf-8",
    )

    config = get_settings(str(env_path)).guard_config()

    assert config.app_version == "1.2.0"
    assert config.platform == "win32"
    assert config.local_data_dir == tmp_path
    assert config.cache_dir == tmp_path / "c"


def test_with_overrides_ignores_none(tmp_path):
    base = get_settings(str(tmp_path / "missing.env"))

    updated = base.with_overrides(platform="win32", app_version=None, local_data_dir=tmp_path)

    assert updated.platform == "win32"
    assert updated.app_version == base.app_version
    assert updated.local_data_dir == tmp_path
    assert base.local_data_dir != tmp_path


def test_installed_version_missing_distribution():
    assert installed_version("definitely-not-an-installed-distribution-xyz") is None


def test_guard_log_defaults_under_local_data_dir(tmp_path):
    env_path = tmp_path / ".env"
    env_path.write_text(f"LOCAL_DATA_DIR={tmp_path / 'local'}\n", encoding="utf-8")

    settings = get_settings(str(env_path))

    assert settings.guard_log_path is None
    assert settings.guard_log_file == tmp_path / "local" / "logs" / "webview-cache.jsonl"
    moved = settings.with_overrides(local_data_dir=tmp_path / "elsewhere")
    assert moved.guard_log_file == tmp_path / "elsewhere" / "logs" / "webview-cache.jsonl"


def test_guard_log_explicit_path_wins(tmp_path):
    env_path = tmp_path / ".env"
    env_path.write_text(
        f"LOCAL_DATA_DIR={tmp_path / 'local'}\nGUARD_LOG_PATH={tmp_path / 'ops.jsonl'}\n",
        encoding="utf-8",
    )

    assert get_settings(str(env_path)).guard_log_file == tmp_path / "ops.jsonl"


def test_guard_log_unresolved_without_local_data_dir(tmp_path):
    settings = get_settings(str(tmp_path / "missing.env"))

    assert replace(settings, local_data_dir=None).guard_log_file is None
