"""URL classification for href/src attribute values."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

# Relative references cannot execute script on their own
_RELATIVE_PREFIXES = ("/", "#", "./", "../")

# "/" never matches a parsed scheme; kept in the set on purpose
SAFE_URL_SCHEMES = frozenset({"http:", "https:", "mailto:", "/"})

# Literal prefixes checked when the value has no parseable scheme
_SAFE_LITERAL_PREFIXES = ("http://", "https://", "mailto:")

_SCRIPT_SCHEME = re.compile(r"javascript\s*:", re.IGNORECASE)


def is_safe_url(raw: str) -> bool:
    """Decide whether ``raw`` may be placed in an href/src attribute.

    Relative references are accepted as-is. Absolute URLs are accepted only
    for http, https and mailto. Anything that cannot be parsed as an absolute
    URL falls back to a case-sensitive prefix check and is otherwise rejected.
    """
    if raw.startswith(_RELATIVE_PREFIXES):
        return True

    try:
        scheme = urlsplit(raw).scheme
    except ValueError:
        scheme = ""

    if scheme:
        return f"{scheme}:" in SAFE_URL_SCHEMES

    return raw.startswith(_SAFE_LITERAL_PREFIXES)


def contains_script_scheme(value: str) -> bool:
    """True if ``value`` mentions a javascript: scheme anywhere."""
    return _SCRIPT_SCHEME.search(value) is not None
