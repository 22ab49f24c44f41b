"""Tests for markdown rendering, creation and appends."""

from __future__ import annotations

from pathlib import Path

from waylog.exporter import (
    append_messages,
    create_markdown_file,
    extract_title,
    format_message,
    generate_markdown,
    markdown_filename,
    parse_frontmatter,
)
from waylog.exporter.markdown import UNTITLED
from waylog.providers.base import ChatSession, MessageRole, TokenUsage

from tests.utils import BASE_TIME, create_message, create_messages, create_session


def _count_blocks(text: str) -> int:
    return sum(1 for line in text.splitlines() if line.startswith("## "))


class TestFormatMessage:
    def test_user_message(self) -> None:
        message = create_message(0, content="Hello there")
        assert format_message(message) == "## 👤 User (2025-03-14 09:26:53 UTC)\n\nHello there\n"

    def test_assistant_with_tools_and_thoughts(self) -> None:
        message = create_message(
            1,
            content="Done.",
            tool_calls=("Read", "Edit"),
            thoughts=("Planning: read first",),
        )
        text = format_message(message)
        assert text.startswith("## 🤖 Assistant (2025-03-14 09:27:23 UTC)\n\nDone.\n")
        assert "\n**Tools Used:**\n- `Read`\n- `Edit`\n" in text
        assert "<summary>💭 Thoughts</summary>\n\n- Planning: read first\n\n</details>\n" in text

    def test_system_label(self) -> None:
        message = create_message(0, role=MessageRole.SYSTEM, content="note")
        assert format_message(message).startswith("## ⚙️ System")


class TestExtractTitle:
    def test_first_user_line(self) -> None:
        messages = [
            create_message(0, role=MessageRole.ASSISTANT, content="hi"),
            create_message(1, role=MessageRole.USER, content="Fix the bug\nmore detail"),
        ]
        assert extract_title(messages) == "Fix the bug"

    def test_truncates_long_titles(self) -> None:
        title = extract_title([create_message(0, content="x" * 80)])
        assert title == "x" * 60 + "..."

    def test_counts_characters_not_bytes(self) -> None:
        title = extract_title([create_message(0, content="名" * 61)])
        assert title == "名" * 60 + "..."

    def test_no_user_message(self) -> None:
        assert extract_title([create_message(1)]) == UNTITLED
        assert extract_title([]) == UNTITLED


class TestGenerateMarkdown:
    def test_header_and_body(self) -> None:
        session = create_session(2)
        text = generate_markdown(session)
        assert text.startswith(
            "---\nprovider: mock\nsession_id: session-1\nmessage_count: 2\nproject: /work/project\n"
        )
        assert "+00:00\n---\n\n# user message 0\n\n## 👤 User" in text
        assert _count_blocks(text) == 2
        assert text.endswith("assistant message 1\n\n\n")

    def test_total_tokens(self) -> None:
        messages = [
            create_message(0, tokens=TokenUsage(input=10, output=5, cached=100)),
            create_message(1, tokens=TokenUsage(input=1, output=2)),
        ]
        session = ChatSession.from_messages("s", "claude", Path("/p"), messages)
        assert "total_tokens: 18\n" in generate_markdown(session)

    def test_filename(self) -> None:
        session = create_session(2)
        assert markdown_filename(session) == "2025-03-14_09-26-53Z-mock-user-message-0.md"

    def test_filename_falls_back_to_session_id(self) -> None:
        session = ChatSession.from_messages(
            "Abc-123", "codex", None, [create_message(1, content="only assistant")]
        )
        assert markdown_filename(session).endswith("-codex-abc-123.md")


class TestCreateAndAppend:
    def test_create_then_append_equals_single_create(self, tmp_path: Path) -> None:
        full = create_session(8)
        partial = ChatSession.from_messages("session-1", "mock", full.project_path, full.messages[:5])

        incremental = tmp_path / "incremental.md"
        create_markdown_file(incremental, partial)
        append_messages(incremental, full.messages[5:], full)

        single = tmp_path / "single.md"
        create_markdown_file(single, full)

        assert incremental.read_bytes() == single.read_bytes()

    def test_append_updates_header(self, tmp_path: Path) -> None:
        path = tmp_path / "a.md"
        full = create_session(8)
        create_markdown_file(path, ChatSession.from_messages("session-1", "mock", None, full.messages[:5]))
        append_messages(path, full.messages[5:], full)

        header = parse_frontmatter(path)
        assert header is not None
        assert header.message_count == 8
        assert _count_blocks(path.read_text(encoding="utf-8")) == 8

    def test_append_tokens_accumulate(self, tmp_path: Path) -> None:
        messages = [
            create_message(i, tokens=TokenUsage(input=i, output=1)) for i in range(4)
        ]
        full = ChatSession.from_messages("s", "claude", Path("/p"), messages)

        path = tmp_path / "a.md"
        create_markdown_file(path, ChatSession.from_messages("s", "claude", Path("/p"), messages[:1]))
        append_messages(path, messages[1:3], full)
        append_messages(path, messages[3:], full)

        assert path.read_text(encoding="utf-8") == generate_markdown(full)

    def test_append_fills_untitled(self, tmp_path: Path) -> None:
        messages = [
            create_message(0, role=MessageRole.ASSISTANT, content="Welcome"),
            create_message(1, role=MessageRole.USER, content="Add dark mode"),
        ]
        full = ChatSession.from_messages("s", "gemini", Path("/p"), messages)

        path = tmp_path / "a.md"
        create_markdown_file(path, ChatSession.from_messages("s", "gemini", Path("/p"), messages[:1]))
        assert f"# {UNTITLED}\n" in path.read_text(encoding="utf-8")

        append_messages(path, messages[1:], full)
        assert path.read_text(encoding="utf-8") == generate_markdown(full)

    def test_append_creates_missing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "new.md"
        session = create_session(3)
        append_messages(path, session.messages, session)
        assert path.read_text(encoding="utf-8") == generate_markdown(session)

    def test_append_nothing_is_noop(self, tmp_path: Path) -> None:
        path = tmp_path / "a.md"
        session = create_session(2)
        create_markdown_file(path, session)
        before = path.read_bytes()
        append_messages(path, [], session)
        assert path.read_bytes() == before

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        out = tmp_path / "out"
        path = out / "a.md"
        session = create_session(4)
        create_markdown_file(path, ChatSession.from_messages("session-1", "mock", None, session.messages[:2]))
        append_messages(path, session.messages[2:], session)
        assert [p.name for p in out.iterdir()] == ["a.md"]

    def test_timestamps_in_header(self, tmp_path: Path) -> None:
        path = tmp_path / "a.md"
        create_markdown_file(path, ChatSession.from_messages("s", "mock", None, create_messages(3)))
        text = path.read_text(encoding="utf-8")
        assert f"started_at: {BASE_TIME.isoformat()}\n" in text
        assert "updated_at: 2025-03-14T09:27:53+00:00\n" in text
