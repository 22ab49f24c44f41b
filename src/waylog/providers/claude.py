"""Claude Code transcripts.

Claude Code writes one JSONL file per session under
``~/.claude/projects/<encoded project path>/``. Each line is an event;
only ``user`` and ``assistant`` events carry conversation turns.
"""

from __future__ import annotations

import json
import re
import uuid
from pathlib import Path
from typing import Any

from pydantic import Field

from waylog.paths import encode_path_claude, get_ai_data_dir
from waylog.providers.base import (
    ChatMessage,
    ChatSession,
    MessageMetadata,
    MessageRole,
    Provider,
    TokenUsage,
    iter_jsonl,
    parse_timestamp,
    utc_now,
)
from waylog.providers.records import TranscriptModel, validate_record

# IDE state echoes such as <ide_opened_file>...</ide_opened_file>
_IDE_TAG = re.compile(r"<ide_[a-z_]+>.*?</ide_[a-z_]+>", re.DOTALL)
_COMMAND_NAME = re.compile(r"<command-name>(.*?)</command-name>", re.DOTALL)
_COMMAND_STDOUT = re.compile(r"<local-command-stdout>(.*?)</local-command-stdout>", re.DOTALL)

# Leading records inspected when classifying a file
SIDECHAIN_PROBE_LINES = 10

_MESSAGE_TYPES = {"user": MessageRole.USER, "assistant": MessageRole.ASSISTANT}


class ClaudeUsage(TranscriptModel):
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_input_tokens: int | None = None


class ClaudeContentItem(TranscriptModel):
    type: str = ""
    text: str | None = None
    name: str | None = None


class ClaudeMessageBody(TranscriptModel):
    role: str | None = None
    content: str | list[ClaudeContentItem] | None = None
    model: str | None = None
    usage: ClaudeUsage | None = None


class ClaudeEvent(TranscriptModel):
    """A conversation event (``type`` is user or assistant)."""

    type: str
    uuid: str | None = None
    session_id: str | None = Field(default=None, alias="sessionId")
    cwd: str | None = None
    timestamp: str | None = None
    is_sidechain: bool = Field(default=False, alias="isSidechain")
    message: ClaudeMessageBody | None = None


def format_claude_xml(content: str) -> str:
    """Render Claude Code's slash-command echo tags as markdown quotes."""
    command = _COMMAND_NAME.search(content)
    if command and command.group(1).strip().startswith("/"):
        return f"> {command.group(1).strip()}"

    stdout = _COMMAND_STDOUT.search(content)
    if stdout:
        return f"> ⎿ {stdout.group(1).strip()}"

    return content


class ClaudeProvider(Provider):
    """Provider for Claude Code (``claude``)."""

    name = "claude"
    command = "claude"

    def default_data_dir(self) -> Path:
        return get_ai_data_dir("claude")

    def locate_session_directory(self, project_path: Path) -> Path:
        return self.data_dir() / "projects" / encode_path_claude(project_path)

    def _session_files(self, project_path: Path) -> list[Path]:
        return [p for p in self.locate_session_directory(project_path).glob("*.jsonl") if p.is_file()]

    def parse_session(self, path: Path) -> ChatSession:
        session_id: str | None = None
        project: str | None = None
        messages: list[ChatMessage] = []

        for lineno, record in iter_jsonl(path):
            if session_id is None and isinstance(record.get("sessionId"), str):
                session_id = record["sessionId"]
            if project is None and isinstance(record.get("cwd"), str):
                project = record["cwd"]

            record_type = record.get("type")
            role = _MESSAGE_TYPES.get(record_type) if isinstance(record_type, str) else None
            if role is None:
                continue  # summaries, system notices, file snapshots, ...

            event = validate_record(ClaudeEvent, record, path, lineno)
            message = self._to_message(event, role)
            if message is not None:
                messages.append(message)

        return ChatSession.from_messages(
            session_id=session_id or path.stem,
            provider=self.name,
            project_path=Path(project) if project else None,
            messages=messages,
        )

    def _to_message(self, event: ClaudeEvent, role: MessageRole) -> ChatMessage | None:
        body = event.message
        if body is None or body.content is None:
            return None

        if isinstance(body.content, str):
            content = body.content
            tool_calls: tuple[str, ...] = ()
        else:
            content = "\n".join(
                item.text for item in body.content if item.type == "text" and item.text is not None
            )
            tool_calls = tuple(
                item.name for item in body.content if item.type == "tool_use" and item.name
            )

        if not content:
            return None

        if role is MessageRole.USER:
            cleaned = _IDE_TAG.sub("", content).strip()
            if not cleaned:
                return None
            content = format_claude_xml(cleaned)

        tokens = None
        if body.usage is not None:
            tokens = TokenUsage(
                input=body.usage.input_tokens,
                output=body.usage.output_tokens,
                cached=body.usage.cache_read_input_tokens or 0,
            )

        return ChatMessage(
            id=event.uuid or str(uuid.uuid4()),
            timestamp=parse_timestamp(event.timestamp) or utc_now(),
            role=role,
            content=content,
            metadata=MessageMetadata(model=body.model, tokens=tokens, tool_calls=tool_calls),
        )

    def is_main_session(self, path: Path) -> bool:
        """Inspect the first few records for the ``isSidechain`` flag.

        Sub-agent transcripts mark every event with ``"isSidechain": true``.
        A plain substring test settles the common cases; only records that
        format the flag differently are decoded.
        """
        checked = 0
        with open(path, encoding="utf-8", errors="replace") as f:
            for line in f:
                if not line.strip():
                    continue
                if checked >= SIDECHAIN_PROBE_LINES:
                    break
                checked += 1

                if '"isSidechain":true' in line:
                    return False
                if '"isSidechain":false' in line:
                    return True
                try:
                    record: Any = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if isinstance(record, dict) and record.get("isSidechain") is True:
                    return False
        return True
