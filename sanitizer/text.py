"""Text-based sanitizer: pattern rewrites applied directly to the HTML string.

Used where no node tree is built. Tag and attribute decisions come from the
same allowlist tables and URL validator as the tree strategy; the rules
before the allowlist pass remove whole constructs that a tag-by-tag filter
would otherwise leave behind (script bodies, handler attributes).
"""

from __future__ import annotations

import html as html_lib
import logging
import re

from sanitizer.allowlist import (
    DISCARD_CONTENT_TAGS,
    LINK_REL,
    UNWRAP_ONLY_TAGS,
    URL_ATTRIBUTES,
    VOID_BLOCKED_TAGS,
    allowed_attributes,
    is_tag_allowed,
)
from sanitizer.urls import contains_script_scheme, is_safe_url

logger = logging.getLogger(__name__)

# Upper bound on full pipeline passes before returning the last result
_MAX_PASSES = 5

# Comments (unterminated ones run to the end), declarations, processing instructions
_COMMENT = re.compile(r"<!--.*?(?:-->|\Z)", re.DOTALL)
_DECLARATION = re.compile(r"<[!?][^<>]*>")

# Attribute span of a tag token. Quoted values may contain ">" but never "<",
# so a scan from one "<" stops at the next one.
_ATTR_SPAN = r"""(?:[^<>"']|"[^"<]*"|'[^'<]*')*"""

# Elements dropped together with their content; unterminated blocks run to the end
_CONTENT_BLOCKS = [
    re.compile(rf"<{tag}\b{_ATTR_SPAN}>.*?(?:</{tag}\s*>|\Z)", re.DOTALL | re.IGNORECASE)
    for tag in sorted(DISCARD_CONTENT_TAGS, reverse=True)
]

# Event handler attributes, quoted first so unquoted never sees a quoted value.
# Matches start only where a whitespace run starts.
_HANDLER_QUOTED = re.compile(r"""(?<!\s)\s+on\w+\s*=\s*(?:"[^"]*"|'[^']*')""", re.IGNORECASE)
_HANDLER_UNQUOTED = re.compile(r"(?<!\s)\s+on\w+\s*=\s*[^\s>]+", re.IGNORECASE)

_SCRIPT_SCHEME = re.compile(r"javascript\s*:", re.IGNORECASE)
_DATA_URI = re.compile(r"""\bdata\s*:[^"'\s<>]+""", re.IGNORECASE)

_UNWRAP_TAGS = re.compile(
    rf"</?(?:{'|'.join(sorted(UNWRAP_ONLY_TAGS))})\b{_ATTR_SPAN}>",
    re.IGNORECASE,
)
_VOID_TAGS = re.compile(
    rf"<(?:{'|'.join(sorted(VOID_BLOCKED_TAGS))})\b{_ATTR_SPAN}>",
    re.IGNORECASE,
)

# A tag token, or a stray "<" (also one that opens a tag cut short by another "<")
_TAG_OR_BRACKET = re.compile(rf"<(/?)([a-zA-Z][\w:-]*)({_ATTR_SPAN})>|<")

# Individual attributes: name, optionally followed by a quoted/unquoted value
_ATTR_PATTERN = re.compile(
    r"""([^\s"'<>/=]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'=<>`]+)))?""",
)

_LINK_OPEN = re.compile(rf"<a\b({_ATTR_SPAN})>", re.IGNORECASE)
_ATTR_TOKEN = re.compile(
    r"""\s*([^\s"'<>/=]+)(?:\s*=\s*(?:"[^"]*"|'[^']*'|[^\s"'=<>`]+))?""",
)


def sanitize_text(html: str) -> str:
    """Sanitize HTML with string rewrites only.

    The pipeline is re-run until its output stops changing, so a removal can
    never splice together a new ``<script>`` or ``javascript:`` from the
    pieces around it.

    Args:
        html: Untrusted HTML fragment.

    Returns:
        Sanitized HTML string. Well-formedness is not checked.
    """
    text = html
    for _ in range(_MAX_PASSES):
        cleaned = _run_pipeline(text)
        if cleaned == text:
            return cleaned
        text = cleaned

    logger.warning("Text sanitizer did not settle after %d passes", _MAX_PASSES)
    return text


def _run_pipeline(text: str) -> str:
    """One pass of the ordered rewrite rules."""
    text = _COMMENT.sub("", text)
    text = _DECLARATION.sub("", text)

    # Script/style AND their content
    for pattern in _CONTENT_BLOCKS:
        text = pattern.sub("", text)

    text = _HANDLER_QUOTED.sub("", text)
    text = _HANDLER_UNQUOTED.sub("", text)

    text = _strip_until_stable(_SCRIPT_SCHEME, text)
    text = _strip_until_stable(_DATA_URI, text)

    # Wrapper tags only, content stays
    text = _UNWRAP_TAGS.sub("", text)
    text = _VOID_TAGS.sub("", text)

    text = _TAG_OR_BRACKET.sub(_filter_tag, text)
    return _LINK_OPEN.sub(_harden_link, text)


def _strip_until_stable(pattern: re.Pattern, text: str) -> str:
    """Remove ``pattern`` repeatedly; "javajavascript:script:" must not survive."""
    while True:
        stripped = pattern.sub("", text)
        if stripped == text:
            return stripped
        text = stripped


def _filter_tag(match: re.Match) -> str:
    """Filter a single tag token: keep allowed tags, strip the rest."""
    tag_name = match.group(2)
    if tag_name is None:
        # Bare "<" that does not open a tag
        return "&lt;"

    tag_name = tag_name.lower()
    if not is_tag_allowed(tag_name):
        return ""

    # For closing tags, no attributes needed
    if match.group(1):
        return f"</{tag_name}>"

    filtered_attrs = _filter_attributes(match.group(3) or "", allowed_attributes(tag_name))
    if filtered_attrs:
        return f"<{tag_name} {filtered_attrs}>"
    return f"<{tag_name}>"


def _filter_attributes(attrs_str: str, allowed: frozenset[str]) -> str:
    """Keep only allowed attributes with safe values, re-quoted."""
    parts: list[str] = []
    seen: set[str] = set()

    for match in _ATTR_PATTERN.finditer(attrs_str):
        attr_name = match.group(1).lower()
        raw_value = next((v for v in match.group(2, 3, 4) if v is not None), "")

        # Browsers keep the first occurrence of a repeated attribute
        if attr_name in seen:
            continue
        seen.add(attr_name)

        if attr_name not in allowed:
            continue

        decoded = html_lib.unescape(raw_value)
        if attr_name in URL_ATTRIBUTES and not is_safe_url(decoded):
            continue
        if contains_script_scheme(decoded):
            continue

        parts.append(f'{attr_name}="{_escape_value(raw_value)}"')

    return " ".join(parts)


def _escape_value(value: str) -> str:
    return value.replace('"', "&quot;").replace("<", "&lt;").replace(">", "&gt;")


def _harden_link(match: re.Match) -> str:
    """Replace any rel on an <a> opening tag with the hardened value."""
    kept = [
        token.group(0).strip()
        for token in _ATTR_TOKEN.finditer(match.group(1))
        if token.group(1).lower() != "rel"
    ]
    attrs = "".join(f" {token}" for token in kept)
    return f'<a{attrs} rel="{LINK_REL}">'
