"""
Shared pytest fixtures for confstack tests.

This file is automatically loaded by pytest. Fixtures defined here are
available to all test files without explicit imports.
"""

import json as _json
import os as _os
import pathlib as _pathlib
import typing as _typing

import pytest as _pytest

# Library settings that would leak the developer's environment into tests
ENV_KEYS_TO_CLEAR = [
    "CONFSTACK_CONFIG_DIR",
    "CONFSTACK_DEFAULT_STRATEGY",
    "CONFSTACK_LOG_LEVEL",
    "CONFSTACK_SHOW_COLOR",
]


@_pytest.fixture(autouse=True)
def isolated_env(
    monkeypatch: _pytest.MonkeyPatch,
    tmp_path: _pathlib.Path,
) -> _pathlib.Path:
    """
    Isolate every test from the real environment and home directory.

    CONFSTACK_* variables are removed and HOME points at an empty
    temporary directory, so ~/.config lookups never see real files.

    Returns:
        The fake home directory.
    """
    for key in ENV_KEYS_TO_CLEAR:
        monkeypatch.delenv(key, raising=False)
    for key in list(_os.environ):
        if key.startswith("MYAPP_"):
            monkeypatch.delenv(key, raising=False)

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@_pytest.fixture
def fake_home(isolated_env: _pathlib.Path) -> _pathlib.Path:
    """The fake home directory created by isolated_env."""
    return isolated_env


@_pytest.fixture
def project_dir(tmp_path: _pathlib.Path) -> _pathlib.Path:
    """An empty working directory for local config files."""
    workspace = tmp_path / "project"
    workspace.mkdir()
    return workspace


@_pytest.fixture
def write_json() -> _typing.Callable[[_pathlib.Path, _typing.Any], _pathlib.Path]:
    """
    Return a helper that writes a value as JSON, creating parent dirs.

    Usage:
        def test_x(write_json, project_dir):
            write_json(project_dir / "myapp.json", {"port": 8080})
    """

    def _write(path: _pathlib.Path, data: _typing.Any) -> _pathlib.Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(_json.dumps(data), encoding="utf-8")
        return path

    return _write
