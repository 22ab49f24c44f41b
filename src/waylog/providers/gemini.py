"""Gemini CLI transcripts.

Gemini CLI keeps one JSON document per session in
``~/.gemini/tmp/<sha256 of project path>/chats/session-*.json`` and
rewrites the whole file after every turn.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Sequence
from pathlib import Path

from pydantic import Field

from waylog.errors import ParseError
from waylog.paths import encode_path_gemini, get_ai_data_dir
from waylog.providers.base import (
    ChatMessage,
    ChatSession,
    MessageMetadata,
    MessageRole,
    Provider,
    TokenUsage,
    parse_timestamp,
    utc_now,
)
from waylog.providers.records import TranscriptModel, validate_record

_MESSAGE_TYPES = {"user": MessageRole.USER, "gemini": MessageRole.ASSISTANT}


class GeminiPart(TranscriptModel):
    text: str | None = None


class GeminiThought(TranscriptModel):
    subject: str = ""
    description: str = ""


class GeminiTokens(TranscriptModel):
    input: int = 0
    output: int = 0
    cached: int = 0


class GeminiToolCall(TranscriptModel):
    name: str | None = None


class GeminiMessage(TranscriptModel):
    id: str | None = None
    timestamp: str | None = None
    type: str = ""
    content: str | list[GeminiPart] | None = None
    thoughts: list[GeminiThought] = Field(default_factory=list)
    tokens: GeminiTokens | None = None
    model: str | None = None
    tool_calls: list[GeminiToolCall] = Field(default_factory=list, alias="toolCalls")


class GeminiSessionFile(TranscriptModel):
    session_id: str | None = Field(default=None, alias="sessionId")
    project_hash: str | None = Field(default=None, alias="projectHash")
    start_time: str | None = Field(default=None, alias="startTime")
    last_updated: str | None = Field(default=None, alias="lastUpdated")
    messages: list[GeminiMessage] = Field(default_factory=list)


def _format_thought(thought: GeminiThought) -> str:
    if thought.subject and thought.description:
        return f"{thought.subject}: {thought.description}"
    return thought.subject or thought.description


class GeminiProvider(Provider):
    """Provider for Gemini CLI (``gemini``)."""

    name = "gemini"
    command = "gemini"

    def default_data_dir(self) -> Path:
        return get_ai_data_dir("gemini")

    def locate_session_directory(self, project_path: Path) -> Path:
        return self.data_dir() / "tmp" / encode_path_gemini(project_path) / "chats"

    def _session_files(self, project_path: Path) -> list[Path]:
        directory = self.locate_session_directory(project_path)
        return [p for p in directory.glob("session-*.json") if p.is_file()]

    def parse_session(self, path: Path) -> ChatSession:
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            raise ParseError(path, e.msg, line=e.lineno) from e

        document = validate_record(GeminiSessionFile, raw, path)

        messages: list[ChatMessage] = []
        # Tool calls and thoughts from reply turns with no text ride on the
        # next reply that has some
        pending_tools: list[str] = []
        pending_thoughts: list[str] = []
        for entry in document.messages:
            role = _MESSAGE_TYPES.get(entry.type)
            if role is None:
                continue  # info / error / warning notices
            if role is MessageRole.USER:
                pending_tools.clear()
                pending_thoughts.clear()
            else:
                pending_tools.extend(call.name for call in entry.tool_calls if call.name)
                pending_thoughts.extend(t for t in map(_format_thought, entry.thoughts) if t)
            message = self._to_message(entry, role, pending_tools, pending_thoughts)
            if message is not None:
                messages.append(message)
                pending_tools.clear()
                pending_thoughts.clear()

        # Gemini does not record the project path itself, only its hash
        return ChatSession.from_messages(
            session_id=document.session_id or path.stem,
            provider=self.name,
            project_path=None,
            messages=messages,
        )

    def _to_message(
        self,
        entry: GeminiMessage,
        role: MessageRole,
        tool_calls: Sequence[str],
        thoughts: Sequence[str],
    ) -> ChatMessage | None:
        if isinstance(entry.content, str):
            content = entry.content
        elif entry.content:
            content = "\n".join(part.text for part in entry.content if part.text)
        else:
            content = ""
        content = content.strip()
        if not content:
            return None

        tokens = None
        if entry.tokens is not None:
            tokens = TokenUsage(
                input=entry.tokens.input,
                output=entry.tokens.output,
                cached=entry.tokens.cached,
            )

        return ChatMessage(
            id=entry.id or str(uuid.uuid4()),
            timestamp=parse_timestamp(entry.timestamp) or utc_now(),
            role=role,
            content=content,
            metadata=MessageMetadata(
                model=entry.model,
                tokens=tokens,
                tool_calls=tuple(tool_calls),
                thoughts=tuple(thoughts),
            ),
        )
