"""Sanitize untrusted HTML for preview and publishing.

This is the single entry point for callers. It picks the tree-based or the
text-based strategy; both enforce the tables in ``sanitizer.allowlist``.
"""

from __future__ import annotations

import logging
import os
import re

from sanitizer.text import sanitize_text
from sanitizer.tree import sanitize_tree

logger = logging.getLogger(__name__)


class SanitizerMode:
    """Names accepted for the ``mode`` argument and HTML_SANITIZER_MODE."""

    TREE = "tree"
    TEXT = "text"


_STRATEGIES = {
    SanitizerMode.TREE: sanitize_tree,
    SanitizerMode.TEXT: sanitize_text,
}

_DEFAULT_MODE = SanitizerMode.TREE


def resolve_mode(mode: str | None = None) -> str:
    """Pick the strategy name: explicit argument, then env var, then tree."""
    requested = (mode or os.environ.get("HTML_SANITIZER_MODE") or _DEFAULT_MODE).strip().lower()
    if requested not in _STRATEGIES:
        logger.warning(
            "Unknown sanitizer mode %r, using %r", requested, _DEFAULT_MODE
        )
        return _DEFAULT_MODE
    return requested


def sanitize_html(html: str | None, mode: str | None = None) -> str:
    """Clean untrusted HTML so it can be rendered or published.

    Removes:
    - Script/style elements with their content
    - Comments
    - Disallowed tags (their text content is kept)
    - Disallowed attributes, unsafe href/src URLs, javascript: values

    Adds:
    - rel="noopener noreferrer" on every link

    Args:
        html: Raw HTML, usually converted from user Markdown.
        mode: "tree" or "text". Defaults to HTML_SANITIZER_MODE, then "tree".

    Returns:
        Sanitized HTML string. Never raises.
    """
    if not html:
        return ""

    strategy = resolve_mode(mode)
    if strategy == SanitizerMode.TEXT:
        return sanitize_text(html)

    try:
        return sanitize_tree(html)
    except Exception:
        # Pathological input can break the parser; the text pipeline still strips
        logger.exception("Tree sanitizer failed, falling back to text sanitizer")
        return sanitize_text(html)


def strip_html(html: str) -> str:
    """Strip all HTML tags, returning plain text.

    Useful for fields that expect plain text (e.g. meta descriptions).
    """
    text = re.sub(r"<[^>]+>", "", html)
    text = re.sub(r"\s+", " ", text)
    return text.strip()
