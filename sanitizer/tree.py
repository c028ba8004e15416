"""Tree-based sanitizer: walks a parsed node tree and serializes what is allowed."""

from __future__ import annotations

import logging

from bs4 import (
    BeautifulSoup,
    CData,
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    PageElement,
    ProcessingInstruction,
    Tag,
)
from bs4.dammit import EntitySubstitution

from sanitizer.allowlist import (
    DISCARD_CONTENT_TAGS,
    LINK_REL,
    URL_ATTRIBUTES,
    allowed_attributes,
    is_tag_allowed,
)
from sanitizer.urls import contains_script_scheme, is_safe_url

logger = logging.getLogger(__name__)

# Non-text leaf nodes that never survive (IE conditional comments carry script)
_MARKUP_DECLARATIONS = (Comment, CData, Declaration, Doctype, ProcessingInstruction)

_DOCUMENT_TAGS = ("html", "body")


def sanitize_tree(html: str) -> str:
    """Sanitize HTML by parsing it into a tree and serializing allowed nodes.

    Disallowed elements are unwrapped (their start and end tags are skipped,
    their children are still emitted), except script/style which are dropped
    with their content. Comments are removed. Allowed elements keep only
    allowlisted attributes with safe URL values, and links always get
    ``rel="noopener noreferrer"``.

    The parsed tree is never modified, so every node is visited once.

    Args:
        html: Untrusted HTML fragment or document.

    Returns:
        Sanitized HTML. For full documents only the body content is kept.
    """
    soup = BeautifulSoup(
        html,
        "html.parser",
        multi_valued_attributes=None,
        on_duplicate_attribute="ignore",
    )
    root = _content_root(soup)

    # Explicit stack instead of recursion: input nesting depth is untrusted.
    # Items are nodes still to visit, or literal end tags to emit.
    out: list[str] = []
    stack: list[PageElement | str] = list(reversed(root.contents))
    while stack:
        item = stack.pop()
        if not isinstance(item, PageElement):
            out.append(item)
        elif isinstance(item, _MARKUP_DECLARATIONS):
            continue
        elif isinstance(item, Tag):
            name = item.name.lower()
            if name in DISCARD_CONTENT_TAGS:
                logger.debug("Dropping <%s> element with content", name)
                continue
            if is_tag_allowed(name):
                out.append(_start_tag(item, name))
                if item.is_empty_element:
                    continue
                stack.append(f"</{name}>")
            stack.extend(reversed(item.contents))
        elif isinstance(item, NavigableString):
            out.append(EntitySubstitution.substitute_xml(str(item)))

    return "".join(out)


def _content_root(soup: BeautifulSoup) -> Tag:
    """The body of a full document, otherwise the whole fragment.

    Input counts as a document only when its single top-level element is
    ``html`` or ``body``. A ``body`` nested anywhere else is an ordinary
    disallowed wrapper.
    """
    top_level = [
        child for child in soup.contents
        if not isinstance(child, _MARKUP_DECLARATIONS)
        and not (isinstance(child, NavigableString) and not child.strip())
    ]
    if len(top_level) != 1:
        return soup

    element = top_level[0]
    if not isinstance(element, Tag) or element.name.lower() not in _DOCUMENT_TAGS:
        return soup
    if element.name.lower() == "body":
        return element
    return element.find("body", recursive=False) or soup


def _start_tag(element: Tag, tag_name: str) -> str:
    parts = [tag_name]
    for name, value in _clean_attributes(element, tag_name).items():
        parts.append(f"{name}={EntitySubstitution.substitute_xml(value, True)}")
    close = "/" if element.is_empty_element else ""
    return f"<{' '.join(parts)}{close}>"


def _clean_attributes(element: Tag, tag_name: str) -> dict[str, str]:
    """Attributes of ``element`` that are allowlisted and carry safe values."""
    permitted = allowed_attributes(tag_name)
    kept: dict[str, str] = {}

    for name, value in element.attrs.items():
        attr = name.lower()
        value = "" if value is None else str(value)
        if attr not in permitted or attr in kept:
            continue
        if attr in URL_ATTRIBUTES and not is_safe_url(value):
            continue
        if contains_script_scheme(value):
            continue
        kept[attr] = value

    if tag_name == "a":
        # Always replace: a supplied rel could omit noopener
        kept.pop("rel", None)
        kept["rel"] = LINK_REL
    return kept
