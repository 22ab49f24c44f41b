"""Assistant tool providers.

The set of providers is closed: one per supported CLI tool.

Example usage:
    from waylog.providers import get_provider

    provider = get_provider("claude")
    latest = provider.find_latest_session(Path.cwd())
"""

from __future__ import annotations

from pathlib import Path

from waylog.errors import ProviderNotFoundError
from waylog.providers.base import (
    ChatMessage,
    ChatSession,
    MessageMetadata,
    MessageRole,
    Provider,
    TokenUsage,
)
from waylog.providers.claude import ClaudeProvider
from waylog.providers.codex import CodexProvider
from waylog.providers.gemini import GeminiProvider

# Fixed order used by `pull` when no provider is named
PROVIDER_ORDER: tuple[str, ...] = ("claude", "gemini", "codex")

_PROVIDERS: dict[str, type[Provider]] = {
    "claude": ClaudeProvider,
    "claude-code": ClaudeProvider,
    "gemini": GeminiProvider,
    "codex": CodexProvider,
}


def get_provider(name: str, data_dir: Path | str | None = None) -> Provider:
    """Look up a provider by name (case-insensitive).

    Args:
        name: Provider or agent name, e.g. "claude" or "claude-code".
        data_dir: Optional override for the tool's data directory.

    Raises:
        ProviderNotFoundError: If no provider has that name.
    """
    cls = _PROVIDERS.get(name.lower())
    if cls is None:
        raise ProviderNotFoundError(name)
    return cls(data_dir=data_dir)


def canonical_name(name: str) -> str:
    """Canonical name for a provider or one of its aliases.

    Raises:
        ProviderNotFoundError: If no provider has that name.
    """
    cls = _PROVIDERS.get(name.lower())
    if cls is None:
        raise ProviderNotFoundError(name)
    return cls.name


def list_providers() -> list[str]:
    """Canonical provider names in pull order."""
    return list(PROVIDER_ORDER)


__all__ = [
    "ChatMessage",
    "ChatSession",
    "ClaudeProvider",
    "CodexProvider",
    "GeminiProvider",
    "MessageMetadata",
    "MessageRole",
    "PROVIDER_ORDER",
    "Provider",
    "TokenUsage",
    "canonical_name",
    "get_provider",
    "list_providers",
]
