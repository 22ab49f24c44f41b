"""Markdown rendering of chat sessions.

An artifact is a header, a title line and one block per message. Appending
k messages to an artifact of n messages yields exactly the bytes a fresh
render of all n + k messages would: the header is re-rendered in the same
write so its ``message_count`` always matches the blocks in the body.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

from waylog.exporter.frontmatter import ArtifactHeader, split_header
from waylog.paths import slugify
from waylog.providers.base import ChatMessage, ChatSession, MessageRole, total_tokens

UNTITLED = "Untitled Session"
TITLE_MAX_CHARS = 60

_ROLE_LABELS = {
    MessageRole.USER: ("👤", "User"),
    MessageRole.ASSISTANT: ("🤖", "Assistant"),
    MessageRole.SYSTEM: ("⚙️", "System"),
}


def format_datetime(dt: datetime) -> str:
    """Human-readable UTC time used in message headings."""
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def format_timestamp(dt: datetime) -> str:
    """RFC 3339 time used in artifact headers."""
    return dt.astimezone(timezone.utc).isoformat()


def format_message(message: ChatMessage) -> str:
    emoji, label = _ROLE_LABELS[message.role]
    parts = [f"## {emoji} {label} ({format_datetime(message.timestamp)})\n\n{message.content}\n"]

    if message.metadata.tool_calls:
        parts.append("\n**Tools Used:**\n")
        parts.extend(f"- `{tool}`\n" for tool in message.metadata.tool_calls)

    if message.metadata.thoughts:
        parts.append("\n<details>\n<summary>💭 Thoughts</summary>\n\n")
        parts.extend(f"- {thought}\n" for thought in message.metadata.thoughts)
        parts.append("\n</details>\n")

    return "".join(parts)


def render_messages(messages: Sequence[ChatMessage]) -> str:
    """Body fragment for a run of messages, each followed by a blank line."""
    return "".join(format_message(m) + "\n\n" for m in messages)


def first_user_message(messages: Sequence[ChatMessage]) -> ChatMessage | None:
    return next((m for m in messages if m.role is MessageRole.USER), None)


def extract_title(messages: Sequence[ChatMessage]) -> str:
    """Title from the first line of the first user message.

    Lines longer than TITLE_MAX_CHARS characters are cut and get ``...``.
    """
    message = first_user_message(messages)
    if message is None:
        return UNTITLED
    lines = message.content.splitlines()
    first_line = lines[0] if lines else ""
    if not first_line:
        return UNTITLED
    if len(first_line) > TITLE_MAX_CHARS:
        return first_line[:TITLE_MAX_CHARS] + "..."
    return first_line


def markdown_filename(session: ChatSession) -> str:
    """File name for a new artifact: ``<started>-<provider>-<slug>.md``."""
    started = session.started_at.astimezone(timezone.utc).strftime("%Y-%m-%d_%H-%M-%SZ")
    message = first_user_message(session.messages)
    slug = slugify(message.content.splitlines()[0]) if message and message.content else ""
    if not slug:
        slug = slugify(session.session_id) or "session"
    return f"{started}-{session.provider}-{slug}.md"


def build_header(session: ChatSession) -> ArtifactHeader:
    return ArtifactHeader(
        provider=session.provider,
        session_id=session.session_id,
        project=str(session.project_path) if session.project_path else "",
        started_at=format_timestamp(session.started_at),
        updated_at=format_timestamp(session.updated_at),
        message_count=len(session.messages),
        total_tokens=session.total_tokens,
    )


def generate_markdown(session: ChatSession) -> str:
    """Full artifact text for a session."""
    header = build_header(session)
    title = extract_title(session.messages)
    return f"{header.render()}\n# {title}\n\n{render_messages(session.messages)}"


def _write_atomic(path: Path, content: str) -> None:
    """Write via a temp file in the same directory, then rename over the target."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise


def create_markdown_file(path: Path, session: ChatSession) -> None:
    """Write the full rendering of a session, replacing any existing file."""
    _write_atomic(path, generate_markdown(session))


def append_messages(path: Path, messages: Sequence[ChatMessage], session: ChatSession) -> None:
    """Append message blocks to an artifact and bring its header up to date.

    The file is created from scratch when it does not exist or has no
    readable header.

    Args:
        path: The markdown artifact.
        messages: New messages, in order, not yet present in the file.
        session: The session the messages belong to. Supplies identity when
            the file has to be created.
    """
    if not messages:
        return

    try:
        existing = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        existing = None

    split = split_header(existing) if existing is not None else None
    if split is None:
        create_markdown_file(path, session)
        return
    fields, rest = split

    try:
        count = int(fields.get("message_count", "0"))
        tokens = int(fields.get("total_tokens", "0"))
    except ValueError:
        create_markdown_file(path, session)
        return

    header = ArtifactHeader(
        provider=fields.get("provider", session.provider),
        session_id=fields.get("session_id", session.session_id),
        project=fields.get("project", ""),
        started_at=fields.get("started_at", format_timestamp(messages[0].timestamp)),
        updated_at=format_timestamp(messages[-1].timestamp),
        message_count=count + len(messages),
        total_tokens=tokens + total_tokens(messages),
    )

    title_line = f"\n# {UNTITLED}\n"
    if rest.startswith(title_line) and first_user_message(messages) is not None:
        rest = f"\n# {extract_title(messages)}\n" + rest[len(title_line):]

    _write_atomic(path, header.render() + rest + render_messages(messages))
