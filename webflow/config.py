"""Webflow CMS collection configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_API_BASE = "https://api.webflow.com/v2"


@dataclass
class CollectionConfig:
    """Credentials and target collection for publishing blog drafts."""

    collection_id: str
    api_token: str
    site_id: str = ""

    @property
    def api_url(self) -> str:
        """Items endpoint for the collection."""
        return f"{_API_BASE}/collections/{self.collection_id}/items"

    @property
    def is_complete(self) -> bool:
        return bool(self.collection_id and self.api_token)

    @classmethod
    def from_env(cls) -> CollectionConfig:
        """Load collection config from environment variables.

        Reads: WEBFLOW_COLLECTION_ID, WEBFLOW_API_TOKEN
        Optional: WEBFLOW_SITE_ID
        """
        return cls(
            collection_id=os.environ.get("WEBFLOW_COLLECTION_ID", ""),
            api_token=os.environ.get("WEBFLOW_API_TOKEN", ""),
            site_id=os.environ.get("WEBFLOW_SITE_ID", ""),
        )


def resolve_collection_config(
    use_env_credentials: bool,
    collection_id: str | None = None,
    api_token: str | None = None,
) -> CollectionConfig:
    """Choose between server-side credentials and ones supplied by the caller.

    Raises:
        ValueError: If the chosen source lacks a collection ID or API token.
    """
    if use_env_credentials:
        config = CollectionConfig.from_env()
    else:
        config = CollectionConfig(
            collection_id=(collection_id or "").strip(),
            api_token=(api_token or "").strip(),
        )

    if not config.is_complete:
        raise ValueError(
            "Missing required configuration: collectionId or apiToken. "
            "Set environment variables or provide them manually."
        )

    logger.debug(
        "Using %s credentials for collection %s",
        "environment" if use_env_credentials else "request",
        config.collection_id,
    )
    return config
