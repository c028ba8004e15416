"""Tag and attribute allowlists shared by both sanitizer strategies."""

from __future__ import annotations

from types import MappingProxyType

# Tags allowed in preview / published content
ALLOWED_TAGS = frozenset({
    "h1", "h2", "h3", "h4", "h5", "h6",
    "p", "br", "hr",
    "strong", "b", "em", "i", "u", "s", "strike",
    "a", "img",
    "ul", "ol", "li",
    "blockquote", "pre", "code",
    "table", "thead", "tbody", "tr", "th", "td",
    "div", "span",
    "figure", "figcaption",
})

# Key applying to every allowed tag
GLOBAL_KEY = "*"

# Attributes allowed per tag
ALLOWED_ATTRIBUTES: MappingProxyType[str, frozenset[str]] = MappingProxyType({
    "a": frozenset({"href", "title", "target", "rel"}),
    "img": frozenset({"src", "alt", "title", "width", "height"}),
    "td": frozenset({"colspan", "rowspan"}),
    "th": frozenset({"colspan", "rowspan", "scope"}),
    GLOBAL_KEY: frozenset({"class", "id"}),
})

# Removed together with everything inside them
DISCARD_CONTENT_TAGS = frozenset({"script", "style"})

# Embedding / form wrappers: tags dropped, content kept
UNWRAP_ONLY_TAGS = frozenset({"iframe", "object", "embed", "form", "input", "button"})

# Document-level tags removed outright
VOID_BLOCKED_TAGS = frozenset({"base", "meta", "link"})

# Attributes whose value is checked with is_safe_url()
URL_ATTRIBUTES = frozenset({"href", "src"})

# Forced on every link
LINK_REL = "noopener noreferrer"


def is_tag_allowed(tag: str) -> bool:
    """Return True if the tag may appear in sanitized output."""
    return tag.lower() in ALLOWED_TAGS


def allowed_attributes(tag: str) -> frozenset[str]:
    """Attributes permitted on ``tag``: its own set plus the global set."""
    own = ALLOWED_ATTRIBUTES.get(tag.lower(), frozenset())
    return own | ALLOWED_ATTRIBUTES[GLOBAL_KEY]
