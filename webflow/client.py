"""Webflow CMS API client for blog collection items."""

from __future__ import annotations

import logging
from typing import Any

import requests

from webflow.config import CollectionConfig

logger = logging.getLogger(__name__)

# Default timeout for API requests (seconds)
_TIMEOUT = 30


class WebflowClient:
    """Handles Webflow Data API v2 communication for one collection.

    Items are always created as drafts unless told otherwise; the editor
    publishes from the Webflow dashboard.
    """

    def __init__(self, config: CollectionConfig):
        self.config = config
        self._session = requests.Session()
        self._session.headers.update({
            "Authorization": f"Bearer {config.api_token}",
            "Content-Type": "application/json",
            "accept": "application/json",
        })

    def create_item(
        self,
        field_data: dict[str, Any],
        is_draft: bool = True,
    ) -> dict[str, Any]:
        """Create a collection item.

        Args:
            field_data: Values keyed by the collection's field slugs.
            is_draft: Create the item as a draft.

        Returns:
            Created item data from Webflow (includes id).

        Raises:
            WebflowAPIError: If the API request fails.
        """
        logger.info(
            "Creating item in collection %s: name=%r, draft=%s",
            self.config.collection_id,
            field_data.get("name", ""),
            is_draft,
        )

        payload = {"fieldData": field_data, "isDraft": is_draft}
        return self._request("POST", self.config.api_url, json=payload)

    # --- Internal ---

    def _request(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> Any:
        """Make an authenticated API request."""
        kwargs.setdefault("timeout", _TIMEOUT)

        try:
            response = self._session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise WebflowAPIError(f"Could not reach Webflow: {e}") from e

        self._check_response(response)
        return response.json()

    @staticmethod
    def _check_response(response: requests.Response) -> None:
        """Check for API errors and raise WebflowAPIError if needed."""
        if response.ok:
            return

        try:
            details = response.json()
        except ValueError:
            details = {}
        if not isinstance(details, dict):
            details = {}

        api_message = details.get("message") or response.text or response.reason
        logger.error("Webflow API error %s: %s", response.status_code, api_message)

        if response.status_code == 401:
            message = "Invalid API token. Please check your Webflow API credentials."
        elif response.status_code == 404:
            message = "Collection not found. Please verify your Collection ID."
        elif "field" in str(details.get("message", "")):
            message = (
                f"Field mapping error: {api_message}. Your Webflow collection "
                "may use different field names."
            )
        else:
            message = api_message or "Failed to create item in Webflow"

        raise WebflowAPIError(
            message=message,
            status_code=response.status_code,
            details=details,
        )


class WebflowAPIError(Exception):
    """Raised when a Webflow API request fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.details = details or {}

    @property
    def is_field_error(self) -> bool:
        """True for field mapping problems, which the API reports as client errors."""
        return "field" in str(self.details.get("message", ""))
