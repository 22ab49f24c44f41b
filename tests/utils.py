"""Shared test utilities and fixtures for waylog tests."""

from __future__ import annotations

import json
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from waylog.providers.base import (
    ChatMessage,
    ChatSession,
    MessageMetadata,
    MessageRole,
    Provider,
    TokenUsage,
)

BASE_TIME = datetime(2025, 3, 14, 9, 26, 53, tzinfo=timezone.utc)


def create_message(
    index: int,
    role: MessageRole | None = None,
    content: str | None = None,
    tokens: TokenUsage | None = None,
    tool_calls: tuple[str, ...] = (),
    thoughts: tuple[str, ...] = (),
) -> ChatMessage:
    """Create a deterministic message.

    Args:
        index: Position in the conversation; drives id, timestamp and default role
        role: Override the alternating user/assistant role
        content: Override the generated text
        tokens: Optional token usage
        tool_calls: Tool names used by the message
        thoughts: Reasoning fragments

    Returns:
        ChatMessage instance
    """
    if role is None:
        role = MessageRole.USER if index % 2 == 0 else MessageRole.ASSISTANT
    return ChatMessage(
        id=f"msg-{index}",
        timestamp=BASE_TIME + timedelta(seconds=30 * index),
        role=role,
        content=content if content is not None else f"{role.value} message {index}",
        metadata=MessageMetadata(tokens=tokens, tool_calls=tool_calls, thoughts=thoughts),
    )


def create_messages(count: int, start: int = 0) -> list[ChatMessage]:
    return [create_message(i) for i in range(start, start + count)]


def create_session(
    count: int,
    session_id: str = "session-1",
    provider: str = "mock",
    project: Path | None = None,
) -> ChatSession:
    return ChatSession.from_messages(
        session_id=session_id,
        provider=provider,
        project_path=project or Path("/work/project"),
        messages=create_messages(count),
    )


def write_jsonl(path: Path, records: list[dict[str, Any]]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for record in records:
            f.write(json.dumps(record) + "\n")
    return path


def set_mtime(path: Path, offset: float) -> None:
    """Set a file's mtime relative to a fixed epoch so ordering is deterministic."""
    stamp = 1_700_000_000 + offset
    os.utime(path, (stamp, stamp))


class MockProvider(Provider):
    """In-memory provider whose transcripts are registered by the test.

    Each registered session is backed by an empty file so modification-time
    ordering works; parsing returns the registered session (or raises the
    registered exception).
    """

    name = "mock"
    command = "mock-agent"

    def __init__(self, root: Path, installed: bool = True) -> None:
        super().__init__(data_dir=root)
        self.installed = installed
        self.launch = sys.executable
        self.side_files: set[Path] = set()
        self._sessions: dict[Path, ChatSession | Exception] = {}
        self.parse_calls = 0

    def default_data_dir(self) -> Path:
        raise AssertionError("MockProvider always has a data_dir")

    def locate_session_directory(self, project_path: Path) -> Path:
        return self.data_dir() / "sessions"

    def _session_files(self, project_path: Path) -> list[Path]:
        return [p for p in self._sessions if p.exists()]

    def add_session(self, session: ChatSession, name: str | None = None, mtime: float = 0) -> Path:
        path = self.locate_session_directory(Path()) / (name or f"{session.session_id}.jsonl")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()
        set_mtime(path, mtime)
        self._sessions[path] = session
        return path

    def set_session(self, path: Path, session: ChatSession | Exception) -> None:
        self._sessions[path] = session

    def parse_session(self, path: Path) -> ChatSession:
        self.parse_calls += 1
        value = self._sessions[path]
        if isinstance(value, Exception):
            raise value
        # Hand out a copy, as a real re-parse would
        return ChatSession(
            session_id=value.session_id,
            provider=value.provider,
            project_path=value.project_path,
            started_at=value.started_at,
            updated_at=value.updated_at,
            messages=list(value.messages),
        )

    def is_main_session(self, path: Path) -> bool:
        return path not in self.side_files

    def is_installed(self) -> bool:
        return self.installed

    def launch_command(self) -> str:
        return self.launch
