"""Merging of layered configuration dicts.

The user file is loaded first, then the project file, then environment
overrides; each layer only needs to name the keys it changes.
"""

from __future__ import annotations

import logging
from typing import Any

_log = logging.getLogger("waylog.config")

# Top-level keys whose value must be a mapping of settings
SECTIONS = ("logging", "watch", "run", "providers")


def section(data: dict[str, Any], name: str, source: object = "config") -> dict[str, Any]:
    """Return ``data[name]`` if it is a mapping, else an empty one.

    A missing or empty section is silent; a scalar or list where a mapping
    belongs (``watch: 5``) is logged and ignored.
    """
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        _log.warning(
            "Ignoring %r section in %s: expected a mapping, got %s",
            name, source, type(value).__name__,
        )
        return {}
    return value


def clean_layer(layer: dict[str, Any], source: object) -> dict[str, Any]:
    """Drop malformed sections from one layer before it is merged.

    Done per layer so a bad section in the project file does not replace a
    valid one from the user file.

    Args:
        layer: Parsed contents of one config source.
        source: Where the layer came from, for log messages.

    Returns:
        A copy of ``layer`` without the malformed sections.
    """
    cleaned = dict(layer)
    for name in SECTIONS:
        if name in cleaned and cleaned[name] is not None:
            value = section(cleaned, name, source)
            if value:
                cleaned[name] = value
            else:
                del cleaned[name]
    return cleaned


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Overlay ``override`` on ``base`` without mutating either.

    Sections present in both are merged key by key. A ``None`` in
    ``override`` leaves the base value alone, so a YAML key written with no
    value does not erase a lower layer. Lists and scalars are taken whole.

    Returns:
        A new merged dictionary.
    """
    merged = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        existing = merged.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            merged[key] = deep_merge(existing, value)
        else:
            merged[key] = value
    return merged


def merge_configs(*layers: dict[str, Any]) -> dict[str, Any]:
    """Merge config layers, lowest priority first. Empty layers are skipped."""
    merged: dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged = deep_merge(merged, layer)
    return merged
