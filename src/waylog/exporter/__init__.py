"""Markdown export of chat sessions."""

from waylog.exporter.frontmatter import (
    HEADER_WINDOW,
    ArtifactHeader,
    Frontmatter,
    parse_frontmatter,
    parse_frontmatter_text,
)
from waylog.exporter.markdown import (
    append_messages,
    create_markdown_file,
    extract_title,
    format_message,
    generate_markdown,
    markdown_filename,
)

__all__ = [
    "HEADER_WINDOW",
    "ArtifactHeader",
    "Frontmatter",
    "append_messages",
    "create_markdown_file",
    "extract_title",
    "format_message",
    "generate_markdown",
    "markdown_filename",
    "parse_frontmatter",
    "parse_frontmatter_text",
]
