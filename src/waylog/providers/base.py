"""Canonical chat model and the provider interface.

Every assistant tool stores its transcripts differently. A Provider knows
where one tool keeps them and how to turn a transcript file into a
ChatSession. Everything downstream (exporter, tracker, synchronizer) only
ever sees the canonical model defined here.
"""

from __future__ import annotations

import contextlib
import json
import re
import shutil
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from waylog.errors import ParseError
from waylog.logging import get_logger

log = get_logger("providers")


class MessageRole(Enum):
    """Speaker of a message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True)
class TokenUsage:
    input: int = 0
    output: int = 0
    cached: int = 0

    @property
    def total(self) -> int:
        return self.input + self.output


@dataclass(frozen=True)
class MessageMetadata:
    """Optional per-message details a provider may record."""

    model: str | None = None
    tokens: TokenUsage | None = None
    tool_calls: tuple[str, ...] = ()
    thoughts: tuple[str, ...] = ()


@dataclass(frozen=True)
class ChatMessage:
    """One conversation turn. Immutable once produced by a provider."""

    id: str
    timestamp: datetime
    role: MessageRole
    content: str
    metadata: MessageMetadata = field(default_factory=MessageMetadata)


@dataclass
class ChatSession:
    """A whole conversation parsed from one transcript file."""

    session_id: str
    provider: str
    project_path: Path | None
    started_at: datetime
    updated_at: datetime
    messages: list[ChatMessage] = field(default_factory=list)

    @classmethod
    def from_messages(
        cls,
        session_id: str,
        provider: str,
        project_path: Path | None,
        messages: list[ChatMessage],
    ) -> ChatSession:
        """Build a session whose time range spans its first and last message."""
        if messages:
            started_at = messages[0].timestamp
            updated_at = messages[-1].timestamp
        else:
            started_at = updated_at = utc_now()
        return cls(
            session_id=session_id,
            provider=provider,
            project_path=project_path,
            started_at=started_at,
            updated_at=updated_at,
            messages=messages,
        )

    @property
    def total_tokens(self) -> int:
        return total_tokens(self.messages)


def total_tokens(messages: Iterable[ChatMessage]) -> int:
    """Sum of input and output tokens across messages."""
    return sum(m.metadata.tokens.total for m in messages if m.metadata.tokens)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


_FRACTION = re.compile(r"\.(\d+)")


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an RFC 3339 timestamp into an aware UTC datetime.

    Accepts a trailing ``Z`` and fractional seconds of any precision, which
    ``datetime.fromisoformat`` rejects on older interpreters.

    Returns:
        The parsed instant, or None if the value is missing or malformed.
    """
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def iter_jsonl(path: Path, limit: int | None = None) -> Iterator[tuple[int, dict[str, Any]]]:
    """Yield ``(line_number, record)`` for each non-blank line of a JSONL file.

    Args:
        path: File to read.
        limit: Stop after this many non-blank records.

    Raises:
        ParseError: If a line is not a JSON object.
    """
    count = 0
    with open(path, encoding="utf-8", errors="replace") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            if limit is not None and count >= limit:
                return
            count += 1
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise ParseError(path, e.msg, line=lineno) from e
            if not isinstance(record, dict):
                raise ParseError(path, "expected a JSON object", line=lineno)
            yield lineno, record


def _mtime(path: Path) -> float | None:
    with contextlib.suppress(OSError):
        return path.stat().st_mtime
    return None


class Provider(ABC):
    """Adapter for one assistant tool's transcript storage and format.

    Subclasses set ``name`` and ``command`` and implement directory
    location, candidate discovery and parsing. The base class supplies the
    newest-first ordering and side-transcript filtering every provider
    shares.
    """

    name: str = ""
    command: str = ""

    def __init__(self, data_dir: Path | str | None = None) -> None:
        """Initialize the provider.

        Args:
            data_dir: Override for the tool's private data directory
                (e.g. ``~/.claude``). Used by config and tests.
        """
        self._data_dir = Path(data_dir).expanduser() if data_dir else None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(data_dir={self._data_dir!r})"

    # -- location -----------------------------------------------------------

    @abstractmethod
    def default_data_dir(self) -> Path:
        """The tool's data directory when no override is configured."""

    def data_dir(self) -> Path:
        """Raises PathError if the home directory cannot be resolved."""
        return self._data_dir if self._data_dir is not None else self.default_data_dir()

    @abstractmethod
    def locate_session_directory(self, project_path: Path) -> Path:
        """Directory holding this project's transcripts.

        Raises:
            PathError: If the tool's data directory cannot be resolved.
        """

    @abstractmethod
    def _session_files(self, project_path: Path) -> Iterable[Path]:
        """All transcript files for the project, in any order.

        Only called when the session directory exists.
        """

    def list_session_candidates(self, project_path: Path) -> list[Path]:
        """Main-thread transcript files, newest first by modification time.

        A missing session directory yields an empty list. Side transcripts
        are excluded no matter how recently they were modified.
        """
        directory = self.locate_session_directory(project_path)
        if not directory.is_dir():
            return []

        stamped: list[tuple[float, Path]] = []
        for path in self._session_files(project_path):
            mtime = _mtime(path)
            if mtime is None:
                continue  # vanished between listing and stat
            try:
                if not self.is_main_session(path):
                    log.debug("Skipping side transcript %s", path)
                    continue
            except OSError as e:
                log.debug("Cannot inspect %s: %s", path, e)
                continue
            stamped.append((mtime, path))

        stamped.sort(key=lambda item: (item[0], item[1].name), reverse=True)
        return [path for _, path in stamped]

    def find_latest_session(self, project_path: Path) -> Path | None:
        candidates = self.list_session_candidates(project_path)
        return candidates[0] if candidates else None

    # -- parsing ------------------------------------------------------------

    @abstractmethod
    def parse_session(self, path: Path) -> ChatSession:
        """Parse a transcript file into a ChatSession.

        Raises:
            ParseError: On a malformed record.
            OSError: If the file cannot be read.
        """

    def is_main_session(self, path: Path) -> bool:
        """Whether the file is a primary conversation rather than a side branch."""
        return True

    # -- process ------------------------------------------------------------

    def is_installed(self) -> bool:
        return shutil.which(self.command) is not None

    def launch_command(self) -> str:
        return self.command
