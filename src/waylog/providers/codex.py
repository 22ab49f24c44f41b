"""Codex CLI transcripts.

Codex writes "rollout" files under ``$CODEX_HOME/sessions/YYYY/MM/DD/``
(``~/.codex`` by default). Rollouts are not grouped per project: the
leading ``session_meta`` record names the working directory, and that is
what ties a rollout to a project.

Each line is ``{"timestamp", "type", "payload"}``. Conversation turns are
``response_item`` records whose payload is a ``message``; tool calls and
reasoning summaries arrive as separate items before the assistant reply
they belong to.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from pydantic import Field

from waylog.errors import ParseError
from waylog.paths import get_ai_data_dir, is_same_path
from waylog.providers.base import (
    ChatMessage,
    ChatSession,
    MessageMetadata,
    MessageRole,
    Provider,
    iter_jsonl,
    parse_timestamp,
    utc_now,
)
from waylog.providers.records import TranscriptModel, validate_record

# Leading records searched for session_meta
META_PROBE_RECORDS = 10

# Context Codex injects as user messages
_INJECTED_BLOCKS = re.compile(
    r"<(environment_context|user_instructions|user_shell_command)>.*?</\1>",
    re.DOTALL,
)

_ROLES = {"user": MessageRole.USER, "assistant": MessageRole.ASSISTANT}
_TEXT_PARTS = {"input_text", "output_text", "text"}
_TOOL_ITEMS = {"function_call", "custom_tool_call", "local_shell_call"}


class CodexRecord(TranscriptModel):
    timestamp: str | None = None
    type: str = ""
    payload: dict[str, Any] = Field(default_factory=dict)


class CodexContentPart(TranscriptModel):
    type: str = ""
    text: str | None = None


class CodexMessageItem(TranscriptModel):
    type: str = "message"
    role: str = ""
    content: list[CodexContentPart] | str = Field(default_factory=list)


def _message_text(item: CodexMessageItem) -> str:
    if isinstance(item.content, str):
        return item.content
    return "\n".join(part.text for part in item.content if part.type in _TEXT_PARTS and part.text)


def _reasoning_summaries(payload: dict[str, Any]) -> list[str]:
    summary = payload.get("summary")
    if not isinstance(summary, list):
        return []
    return [
        part["text"].strip()
        for part in summary
        if isinstance(part, dict)
        and part.get("type") == "summary_text"
        and isinstance(part.get("text"), str)
        and part["text"].strip()
    ]


class CodexProvider(Provider):
    """Provider for the OpenAI Codex CLI (``codex``)."""

    name = "codex"
    command = "codex"

    def default_data_dir(self) -> Path:
        codex_home = os.environ.get("CODEX_HOME")
        if codex_home:
            return Path(codex_home).expanduser()
        return get_ai_data_dir("codex")

    def locate_session_directory(self, project_path: Path) -> Path:
        return self.data_dir() / "sessions"

    def _session_files(self, project_path: Path) -> list[Path]:
        files: list[Path] = []
        for path in self.locate_session_directory(project_path).rglob("rollout-*.jsonl"):
            if not path.is_file():
                continue
            meta = self.read_session_meta(path)
            if meta is None:
                continue
            cwd = meta.get("cwd")
            if isinstance(cwd, str) and is_same_path(cwd, project_path):
                files.append(path)
        return files

    def read_session_meta(self, path: Path) -> dict[str, Any] | None:
        """Return the ``session_meta`` payload from the head of a rollout.

        A rollout whose head cannot be decoded yet (still being written) is
        treated as having no metadata.
        """
        try:
            for _, record in iter_jsonl(path, limit=META_PROBE_RECORDS):
                payload = record.get("payload")
                if record.get("type") == "session_meta" and isinstance(payload, dict):
                    return payload
        except ParseError:
            return None
        return None

    def is_main_session(self, path: Path) -> bool:
        """Sub-agent rollouts (reviews, delegated tasks) name a subagent source."""
        meta = self.read_session_meta(path)
        if meta is None:
            return True
        source = meta.get("source")
        return not (isinstance(source, dict) and "subagent" in source)

    def parse_session(self, path: Path) -> ChatSession:
        session_id: str | None = None
        project: str | None = None
        model: str | None = None
        messages: list[ChatMessage] = []

        # Tool calls and reasoning wait for the assistant reply they precede
        pending_tools: list[str] = []
        pending_thoughts: list[str] = []

        for lineno, raw in iter_jsonl(path):
            record = validate_record(CodexRecord, raw, path, lineno)
            payload = record.payload

            if record.type == "session_meta":
                if session_id is None and isinstance(payload.get("id"), str):
                    session_id = payload["id"]
                if project is None and isinstance(payload.get("cwd"), str):
                    project = payload["cwd"]
                continue

            if record.type == "turn_context":
                if isinstance(payload.get("model"), str):
                    model = payload["model"]
                continue

            if record.type != "response_item":
                continue

            item_type = payload.get("type")
            if item_type in _TOOL_ITEMS:
                name = payload.get("name") or ("shell" if item_type == "local_shell_call" else None)
                if isinstance(name, str):
                    pending_tools.append(name)
                continue
            if item_type == "reasoning":
                pending_thoughts.extend(_reasoning_summaries(payload))
                continue
            if item_type != "message":
                continue

            item = validate_record(CodexMessageItem, payload, path, lineno)
            role = _ROLES.get(item.role)
            if role is None:
                continue  # developer / system prompts

            content = _message_text(item)
            if role is MessageRole.USER:
                content = _INJECTED_BLOCKS.sub("", content)
                # Anything buffered belonged to an interrupted turn
                pending_tools.clear()
                pending_thoughts.clear()
            content = content.strip()
            if not content:
                continue

            metadata = MessageMetadata()
            if role is MessageRole.ASSISTANT:
                metadata = MessageMetadata(
                    model=model,
                    tool_calls=tuple(pending_tools),
                    thoughts=tuple(pending_thoughts),
                )
                pending_tools.clear()
                pending_thoughts.clear()

            messages.append(
                ChatMessage(
                    id=f"{session_id or path.stem}:{lineno}",
                    timestamp=parse_timestamp(record.timestamp) or utc_now(),
                    role=role,
                    content=content,
                    metadata=metadata,
                )
            )

        return ChatSession.from_messages(
            session_id=session_id or path.stem,
            provider=self.name,
            project_path=Path(project) if project else None,
            messages=messages,
        )
