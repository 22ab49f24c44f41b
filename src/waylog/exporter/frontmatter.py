"""Markdown artifact headers.

Each artifact starts with a ``---`` delimited block of ``key: value`` lines.
The header doubles as waylog's only persisted state, so the identity keys
(``provider``, ``session_id``, ``message_count``) are always written first
and recovery reads no more than HEADER_WINDOW bytes. A long ``project``
path may push the closing delimiter past that window without losing them.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DELIMITER = "---"
HEADER_WINDOW = 2048


@dataclass
class Frontmatter:
    """Identity fields recovered from an artifact header."""

    session_id: str | None = None
    provider: str | None = None
    message_count: int | None = None


@dataclass
class ArtifactHeader:
    """Complete header of a markdown artifact, in render order."""

    provider: str
    session_id: str
    message_count: int
    project: str
    started_at: str
    updated_at: str
    total_tokens: int = 0

    def render(self) -> str:
        lines = [
            DELIMITER,
            f"provider: {self.provider}",
            f"session_id: {self.session_id}",
            f"message_count: {self.message_count}",
            f"project: {self.project}",
            f"started_at: {self.started_at}",
            f"updated_at: {self.updated_at}",
        ]
        if self.total_tokens > 0:
            lines.append(f"total_tokens: {self.total_tokens}")
        lines.append(DELIMITER)
        return "\n".join(lines) + "\n"


def _parse_lines(block: str) -> dict[str, str]:
    fields: dict[str, str] = {}
    for line in block.splitlines():
        key, sep, value = line.partition(":")
        if sep:
            fields[key.strip()] = value.strip()
    return fields


def split_header(text: str) -> tuple[dict[str, str], str] | None:
    """Split a document into its header fields and the text after the header.

    Returns:
        ``(fields, rest)`` where ``rest`` starts right after the closing
        delimiter line, or None if the text has no complete header.
    """
    if not text.startswith(DELIMITER):
        return None
    first_newline = text.find("\n")
    if first_newline == -1:
        return None
    end = text.find(f"\n{DELIMITER}", first_newline)
    if end == -1:
        return None

    fields = _parse_lines(text[first_newline + 1 : end + 1])

    rest_start = end + 1 + len(DELIMITER)
    if text.startswith("\n", rest_start):
        rest_start += 1
    return fields, text[rest_start:]


def parse_frontmatter_text(text: str, truncated: bool = False) -> Frontmatter | None:
    """Extract the identity fields from header text.

    Args:
        text: Start of an artifact.
        truncated: True when ``text`` is a window cut from a longer file.
            A header whose closing delimiter falls past the cut is then
            read from its complete lines, which always hold the identity
            keys since they are rendered first.

    Returns:
        The parsed fields, or None if there is no delimited header.
        Missing or malformed keys are left as None.
    """
    split = split_header(text)
    if split is not None:
        fields, _ = split
    elif truncated and text.startswith(f"{DELIMITER}\n"):
        body = text[len(DELIMITER) + 1 : text.rfind("\n") + 1]
        fields = _parse_lines(body)
    else:
        return None

    count: int | None
    try:
        count = int(fields["message_count"])
    except (KeyError, ValueError):
        count = None

    return Frontmatter(
        session_id=fields.get("session_id") or None,
        provider=fields.get("provider") or None,
        message_count=count,
    )


def parse_frontmatter(path: Path) -> Frontmatter | None:
    """Read the identity fields from the start of a markdown artifact.

    Only the first HEADER_WINDOW bytes are read; a multi-byte character cut
    at the boundary is replaced rather than rejected.

    Raises:
        OSError: If the file cannot be opened.
    """
    with open(path, "rb") as f:
        head = f.read(HEADER_WINDOW)
    text = head.decode("utf-8", errors="replace")
    return parse_frontmatter_text(text, truncated=len(head) == HEADER_WINDOW)
