"""Parse Markdown blog posts with YAML front matter and render them to HTML."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

import markdown
import yaml

from sanitizer.html_sanitizer import sanitize_html

logger = logging.getLogger(__name__)

# Front matter wrapped in a code fence: ```yaml\n---\n...\n---\n```
_FENCED_FRONT_MATTER = re.compile(
    r"\A```ya?ml\r?\n---\r?\n(.*?)\r?\n---\r?\n```[ \t]*(?:\r?\n|\Z)(.*)\Z",
    re.DOTALL,
)

# Standard front matter: ---\n...\n---\n
_FRONT_MATTER = re.compile(
    r"\A---\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)(.*)\Z",
    re.DOTALL,
)

_MARKDOWN_EXTENSIONS = ["tables", "fenced_code", "sane_lists"]


class PostParseError(ValueError):
    """Raised when a post's front matter cannot be read."""


@dataclass
class MarkdownPost:
    """A Markdown post split into front matter and body."""

    metadata: dict[str, Any] = field(default_factory=dict)
    body: str = ""


@dataclass
class RenderedPost:
    """A post ready for preview: metadata plus sanitized HTML."""

    metadata: dict[str, Any]
    html: str


def parse_markdown_post(text: str) -> MarkdownPost:
    """Split a Markdown document into front matter and body.

    Args:
        text: Full file contents.

    Returns:
        MarkdownPost. Metadata is empty when there is no front matter.

    Raises:
        PostParseError: If the front matter is not valid YAML or not a mapping.
    """
    text = text.lstrip("\ufeff")

    match = _FENCED_FRONT_MATTER.match(text) or _FRONT_MATTER.match(text)
    if not match:
        return MarkdownPost(metadata={}, body=text)

    yaml_text, body = match.group(1), match.group(2)
    try:
        data = yaml.safe_load(yaml_text)
    except yaml.YAMLError as e:
        raise PostParseError(f"Invalid YAML front matter: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise PostParseError(
            f"Front matter must be a mapping, got {type(data).__name__}"
        )

    logger.debug("Parsed front matter keys: %s", list(data))
    return MarkdownPost(metadata=data, body=body)


def render_markdown(body: str) -> str:
    """Convert Markdown to HTML. Raw HTML in the source passes through untouched."""
    return markdown.markdown(body, extensions=_MARKDOWN_EXTENSIONS)


def render_post(text: str, mode: str | None = None) -> RenderedPost:
    """Parse, render and sanitize a Markdown post.

    Args:
        text: Full Markdown file contents, optionally with front matter.
        mode: Sanitizer strategy override ("tree" or "text").

    Raises:
        PostParseError: If the front matter is invalid.
    """
    post = parse_markdown_post(text)
    raw_html = render_markdown(post.body)
    return RenderedPost(metadata=post.metadata, html=sanitize_html(raw_html, mode=mode))
