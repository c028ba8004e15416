"""Adapt sanitized HTML to what a Webflow RichText field can render.

Runs after sanitize_html(); it narrows already-safe markup and never has to
make security decisions itself. Tables are kept: they look broken in the
Webflow Designer but render on the live site with custom CSS.
"""

from __future__ import annotations

import re

# Code blocks are not supported, quote them instead
_PRE_CODE_BLOCK = re.compile(
    r"<pre[^>]*>\s*<code[^>]*>(.*?)</code>\s*</pre>",
    re.DOTALL | re.IGNORECASE,
)
_PRE_BLOCK = re.compile(r"<pre[^>]*>(.*?)</pre>", re.DOTALL | re.IGNORECASE)

# Inline code becomes emphasized text (no backticks)
_INLINE_CODE = re.compile(r"<code[^>]*>(.*?)</code>", re.DOTALL | re.IGNORECASE)

_HORIZONTAL_RULE = re.compile(r"<hr\s*/?>", re.IGNORECASE)
_EMPTY_PARAGRAPH = re.compile(r"<p>\s*</p>", re.IGNORECASE)


def adapt_for_rich_text(html: str) -> str:
    """Rewrite sanitized HTML for a Webflow RichText field.

    Args:
        html: Output of sanitize_html().

    Returns:
        HTML using only constructs Webflow RichText supports.
    """
    text = _PRE_CODE_BLOCK.sub(r"<blockquote>\1</blockquote>", html)
    text = _PRE_BLOCK.sub(r"<blockquote>\1</blockquote>", text)
    text = _INLINE_CODE.sub(r"<em>\1</em>", text)

    # Horizontal rules are not supported
    text = _HORIZONTAL_RULE.sub("", text)

    text = _EMPTY_PARAGRAPH.sub("", text)
    return re.sub(r"\n{3,}", "\n\n", text)
