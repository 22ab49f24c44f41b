"""Root pytest configuration for all tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.utils import MockProvider

# Configure pytest-asyncio to use auto mode
# This is redundant with pyproject.toml but ensures it's set
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An initialized project directory."""
    root = tmp_path / "project"
    (root / ".waylog" / "history").mkdir(parents=True)
    return root


@pytest.fixture
def history_dir(project: Path) -> Path:
    return project / ".waylog" / "history"


@pytest.fixture
def provider(tmp_path: Path) -> MockProvider:
    return MockProvider(tmp_path / "mock-data")


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME and the config dirs at a scratch directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.delenv("CODEX_HOME", raising=False)
    monkeypatch.delenv("WAYLOG_LOG", raising=False)
    monkeypatch.delenv("WAYLOG_LOG_LEVEL", raising=False)
    monkeypatch.delenv("WAYLOG_POLL_INTERVAL", raising=False)
    return home
