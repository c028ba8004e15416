"""Map blog post metadata to Webflow collection fields."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, fields
from datetime import date, datetime, time, timezone
from typing import Any

from sanitizer.html_sanitizer import strip_html
from sanitizer.urls import is_safe_url

logger = logging.getLogger(__name__)

_MAX_SLUG_LENGTH = 100


@dataclass
class BlogMetadata:
    """Front matter of a blog post. Every value comes from the uploaded file."""

    title: str = ""
    description: str = ""
    keywords: dict[str, Any] = field(default_factory=dict)
    author: str = ""
    date: Any = None
    canonical_url: str = ""
    featured_image: str = ""
    featured_image_alt: str = ""
    word_count: int | None = None
    reading_time: str = ""
    slug: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> BlogMetadata:
        """Build from a front matter mapping, ignoring unknown keys."""
        data = data or {}
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known or value is None:
                continue
            if key in ("date", "keywords", "word_count"):
                values[key] = value
            else:
                values[key] = str(value)
        if not isinstance(values.get("keywords", {}), dict):
            values.pop("keywords")
        return cls(**values)


def generate_slug(title: str) -> str:
    """Generate a URL-friendly slug from a title."""
    slug = title.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip()[:_MAX_SLUG_LENGTH]


def build_field_data(metadata: BlogMetadata, content_html: str) -> dict[str, Any]:
    """Build the fieldData payload for a new blog collection item.

    Field slugs match the Webflow Blog collection schema.

    Args:
        metadata: Post front matter.
        content_html: RichText-ready HTML (sanitized and adapted).

    Returns:
        Dict of field slug -> value.

    Raises:
        ValueError: If the title is missing or the date cannot be parsed.
    """
    title = strip_html(metadata.title)
    if not title:
        raise ValueError("Blog post must have a title")

    slug = generate_slug(metadata.slug or title)

    field_data: dict[str, Any] = {
        "name": title,
        "slug": slug,
        "index": "index",
        "content": content_html,
        "_archived": False,
        "_draft": True,
        "meta-title": title,
    }

    description = strip_html(metadata.description)
    if description:
        field_data["card-desc"] = description
        field_data["meta-description"] = description

    author = strip_html(metadata.author)
    if author:
        field_data["author"] = author

    if metadata.date:
        field_data["date"] = to_iso_datetime(metadata.date)

    if metadata.featured_image:
        if is_safe_url(metadata.featured_image):
            field_data["image"] = {
                "url": metadata.featured_image,
                "alt": strip_html(metadata.featured_image_alt) or title,
            }
        else:
            logger.warning(
                "Skipping featured image with unsafe URL: %r", metadata.featured_image
            )

    return field_data


def to_iso_datetime(value: Any) -> str:
    """Format a front matter date as an ISO-8601 UTC timestamp.

    YAML loads unquoted dates as date/datetime objects; quoted ones arrive
    as strings.

    Raises:
        ValueError: If the value is not a recognizable date.
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"Invalid date: {value!r}") from e

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"
