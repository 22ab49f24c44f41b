"""Shared pydantic base for provider transcript records."""

from __future__ import annotations

from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from waylog.errors import ParseError

M = TypeVar("M", bound="TranscriptModel")


class TranscriptModel(BaseModel):
    """Base model for transcript records.

    Field aliases carry the tools' camelCase names; unknown fields are
    ignored so newer tool versions keep parsing.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def validate_record(
    model: type[M],
    record: Any,
    path: Path,
    line: int | None = None,
) -> M:
    """Validate a decoded JSON value, converting failures to ParseError."""
    try:
        return model.model_validate(record)
    except ValidationError as e:
        errors = e.errors()
        detail = errors[0]["msg"] if errors else str(e)
        if errors and errors[0].get("loc"):
            detail = f"{'.'.join(str(p) for p in errors[0]['loc'])}: {detail}"
        raise ParseError(path, detail, line=line) from e
