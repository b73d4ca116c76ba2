from __future__ import annotations

from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

PYPROJECT = Path(__file__).resolve().parents[1] / "pyproject.toml"


def test_only_the_application_package_is_installed():
    data = tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))

    find = data["tool"]["setuptools"]["packages"]["find"]
    assert find["include"] == ["desktop_shell*"]
    assert "scripts" not in data["project"]
