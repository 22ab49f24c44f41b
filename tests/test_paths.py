"""Tests for path encodings and project discovery."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from waylog.errors import PathError
from waylog.paths import (
    encode_path_claude,
    encode_path_gemini,
    find_project_root,
    get_ai_data_dir,
    get_history_dir,
    home_dir,
    slugify,
)


class TestEncodePathClaude:
    """Claude Code's project folder naming."""

    def test_unix_path(self) -> None:
        assert encode_path_claude("/home/user/project") == "-home-user-project"

    def test_root(self) -> None:
        assert encode_path_claude("/") == "-"

    def test_dots_and_underscores(self) -> None:
        assert encode_path_claude("/Users/me/my_app.v2") == "-Users-me-my-app-v2"

    def test_keeps_dashes(self) -> None:
        assert encode_path_claude("/srv/my-app") == "-srv-my-app"

    def test_non_ascii_maps_per_character(self) -> None:
        assert encode_path_claude("/Users/名字/project") == "-Users----project"

    def test_symbols(self) -> None:
        assert encode_path_claude("/home/user@#$%") == "-home-user----"

    def test_windows_separators(self) -> None:
        assert encode_path_claude("C:\\Users\\dev\\app") == "C--Users-dev-app"


class TestEncodePathGemini:
    def test_is_sha256_hex(self) -> None:
        encoded = encode_path_gemini("/home/user/project")
        assert encoded == hashlib.sha256(b"/home/user/project").hexdigest()
        assert len(encoded) == 64

    def test_stable_for_path_objects(self) -> None:
        assert encode_path_gemini(Path("/a/b")) == encode_path_gemini("/a/b")


class TestHomeAndDataDirs:
    def test_data_dir_under_home(self, _isolated_home: Path) -> None:
        assert get_ai_data_dir("claude") == _isolated_home / ".claude"

    def test_unresolvable_home(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def no_home() -> Path:
            raise RuntimeError("no home")

        monkeypatch.setattr(Path, "home", staticmethod(no_home))
        with pytest.raises(PathError):
            home_dir()


class TestFindProjectRoot:
    def test_finds_marker_in_start_dir(self, project: Path) -> None:
        assert find_project_root(project) == project.resolve()

    def test_walks_upward(self, project: Path) -> None:
        nested = project / "src" / "pkg"
        nested.mkdir(parents=True)
        assert find_project_root(nested) == project.resolve()

    def test_none_when_absent(self, tmp_path: Path) -> None:
        bare = tmp_path / "elsewhere" / "deep"
        bare.mkdir(parents=True)
        assert find_project_root(bare) is None

    def test_stops_at_home(self, _isolated_home: Path) -> None:
        # A marker above the home directory must not be picked up
        (_isolated_home.parent / ".waylog").mkdir()
        work = _isolated_home / "work"
        work.mkdir()
        assert find_project_root(work) is None

    def test_history_dir_layout(self, project: Path) -> None:
        assert get_history_dir(project) == project / ".waylog" / "history"


class TestSlugify:
    def test_basic(self) -> None:
        assert slugify("Fix the Login Bug!") == "fix-the-login-bug"

    def test_truncates(self) -> None:
        assert len(slugify("word " * 40)) <= 50

    def test_empty(self) -> None:
        assert slugify("名字") == ""
