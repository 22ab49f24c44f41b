"""Tests for Claude Code transcript parsing."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from waylog.errors import ParseError
from waylog.paths import encode_path_claude
from waylog.providers import ClaudeProvider, MessageRole
from waylog.providers.claude import format_claude_xml

from tests.utils import set_mtime, write_jsonl

PROJECT = Path("/work/project")


def user(text: Any, uuid: str = "u1", ts: str = "2025-03-14T09:26:53.123Z", **extra: Any) -> dict[str, Any]:
    return {
        "type": "user",
        "uuid": uuid,
        "sessionId": "sess-1",
        "cwd": str(PROJECT),
        "timestamp": ts,
        "isSidechain": False,
        "message": {"role": "user", "content": text},
        **extra,
    }


def assistant(content: Any, uuid: str = "a1", ts: str = "2025-03-14T09:27:10Z", **message: Any) -> dict[str, Any]:
    return {
        "type": "assistant",
        "uuid": uuid,
        "sessionId": "sess-1",
        "timestamp": ts,
        "isSidechain": False,
        "message": {"role": "assistant", "content": content, **message},
    }


@pytest.fixture
def claude(tmp_path: Path) -> ClaudeProvider:
    return ClaudeProvider(data_dir=tmp_path / ".claude")


def session_file(claude: ClaudeProvider, name: str, records: list[dict[str, Any]]) -> Path:
    return write_jsonl(claude.locate_session_directory(PROJECT) / name, records)


class TestLocation:
    def test_session_directory(self, claude: ClaudeProvider, tmp_path: Path) -> None:
        assert claude.locate_session_directory(PROJECT) == (
            tmp_path / ".claude" / "projects" / "-work-project"
        )

    def test_default_data_dir(self, _isolated_home: Path) -> None:
        assert ClaudeProvider().data_dir() == _isolated_home / ".claude"

    def test_launch_command(self, claude: ClaudeProvider) -> None:
        assert claude.launch_command() == "claude"


class TestParseSession:
    def test_basic_conversation(self, claude: ClaudeProvider) -> None:
        path = session_file(claude, "s.jsonl", [
            {"type": "summary", "summary": "ignored"},
            user("How do I add a flag?"),
            assistant(
                [
                    {"type": "text", "text": "Use argparse."},
                    {"type": "tool_use", "name": "Read", "input": {}},
                ],
                model="claude-sonnet-4",
                usage={"input_tokens": 10, "output_tokens": 20, "cache_read_input_tokens": 5},
            ),
        ])

        session = claude.parse_session(path)
        assert session.session_id == "sess-1"
        assert session.provider == "claude"
        assert session.project_path == PROJECT
        assert [m.role for m in session.messages] == [MessageRole.USER, MessageRole.ASSISTANT]

        reply = session.messages[1]
        assert reply.content == "Use argparse."
        assert reply.metadata.model == "claude-sonnet-4"
        assert reply.metadata.tool_calls == ("Read",)
        assert reply.metadata.tokens is not None
        assert (reply.metadata.tokens.input, reply.metadata.tokens.output, reply.metadata.tokens.cached) == (10, 20, 5)

    def test_times_from_first_and_last_message(self, claude: ClaudeProvider) -> None:
        path = session_file(claude, "s.jsonl", [user("hi"), assistant("hello")])
        session = claude.parse_session(path)
        assert session.started_at.isoformat() == "2025-03-14T09:26:53.123000+00:00"
        assert session.updated_at.isoformat() == "2025-03-14T09:27:10+00:00"

    def test_skips_blank_lines(self, claude: ClaudeProvider) -> None:
        path = claude.locate_session_directory(PROJECT) / "s.jsonl"
        write_jsonl(path, [user("one")])
        with open(path, "a", encoding="utf-8") as f:
            f.write("\n   \n")
        assert len(claude.parse_session(path).messages) == 1

    def test_session_id_falls_back_to_stem(self, claude: ClaudeProvider) -> None:
        record = user("hi")
        del record["sessionId"]
        path = session_file(claude, "fallback-id.jsonl", [record])
        assert claude.parse_session(path).session_id == "fallback-id"

    def test_tool_only_messages_dropped(self, claude: ClaudeProvider) -> None:
        path = session_file(claude, "s.jsonl", [
            user("go"),
            assistant([{"type": "tool_use", "name": "Bash", "input": {}}]),
            user([{"type": "tool_result", "tool_use_id": "t", "content": "ok"}]),
        ])
        assert len(claude.parse_session(path).messages) == 1

    def test_ide_tags_stripped(self, claude: ClaudeProvider) -> None:
        path = session_file(claude, "s.jsonl", [
            user("<ide_opened_file>The user opened\nfoo.py</ide_opened_file>"),
            user("<ide_selection>x</ide_selection>  Explain this  ", uuid="u2"),
        ])
        messages = claude.parse_session(path).messages
        assert [m.content for m in messages] == ["Explain this"]

    def test_slash_command_formatting(self, claude: ClaudeProvider) -> None:
        path = session_file(claude, "s.jsonl", [
            user("<command-message>init</command-message>\n<command-name>/init</command-name>"),
            user("<local-command-stdout>Done</local-command-stdout>", uuid="u2"),
        ])
        assert [m.content for m in claude.parse_session(path).messages] == ["> /init", "> ⎿ Done"]

    def test_malformed_line(self, claude: ClaudeProvider) -> None:
        path = claude.locate_session_directory(PROJECT) / "s.jsonl"
        write_jsonl(path, [user("one")])
        with open(path, "a", encoding="utf-8") as f:
            f.write('{"type": "assistant", "mess')
        with pytest.raises(ParseError) as exc_info:
            claude.parse_session(path)
        assert exc_info.value.line == 2

    def test_invalid_record_shape(self, claude: ClaudeProvider) -> None:
        path = session_file(claude, "s.jsonl", [{"type": "user", "message": "not an object"}])
        with pytest.raises(ParseError):
            claude.parse_session(path)

    def test_reparse_is_monotonic(self, claude: ClaudeProvider) -> None:
        records = [user("one"), assistant("two")]
        path = session_file(claude, "s.jsonl", records)
        first = claude.parse_session(path).messages
        write_jsonl(path, records + [user("three", uuid="u3")])
        second = claude.parse_session(path).messages
        assert second[: len(first)] == first


class TestFormatClaudeXml:
    def test_non_slash_command_kept(self) -> None:
        text = "<command-name>My Custom Command</command-name>"
        assert format_claude_xml(text) == text

    def test_plain_text(self) -> None:
        assert format_claude_xml("hello") == "hello"


class TestCandidates:
    def test_newest_first(self, claude: ClaudeProvider) -> None:
        old = session_file(claude, "old.jsonl", [user("a")])
        new = session_file(claude, "new.jsonl", [user("b")])
        set_mtime(old, 0)
        set_mtime(new, 10)
        assert claude.list_session_candidates(PROJECT) == [new, old]
        assert claude.find_latest_session(PROJECT) == new

    def test_missing_directory(self, claude: ClaudeProvider) -> None:
        assert claude.list_session_candidates(Path("/nowhere")) == []
        assert claude.find_latest_session(Path("/nowhere")) is None

    def test_sidechain_excluded_even_when_newest(self, claude: ClaudeProvider) -> None:
        main = session_file(claude, "main.jsonl", [user("a")])
        side = session_file(claude, "agent-1.jsonl", [user("b", isSidechain=True)])
        set_mtime(main, 0)
        set_mtime(side, 10)
        assert claude.list_session_candidates(PROJECT) == [main]

    def test_sidechain_detected_with_spacing(self, claude: ClaudeProvider, tmp_path: Path) -> None:
        path = tmp_path / "spaced.jsonl"
        path.write_text('{"type": "user", "isSidechain": true}\n', encoding="utf-8")
        assert claude.is_main_session(path) is False

    def test_flag_beyond_probe_window_ignored(self, claude: ClaudeProvider, tmp_path: Path) -> None:
        path = tmp_path / "late.jsonl"
        lines = ['{"type": "summary"}'] * 10 + ['{"isSidechain":true}']
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        assert claude.is_main_session(path) is True

    def test_encoded_directory_name(self) -> None:
        assert encode_path_claude(PROJECT) == "-work-project"
