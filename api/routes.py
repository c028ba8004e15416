"""Flask API routes — preview, publish and configuration."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request

from api.auth import require_session
from blog.markdown_post import PostParseError, render_post
from sanitizer.html_sanitizer import sanitize_html
from webflow.client import WebflowAPIError, WebflowClient
from webflow.config import CollectionConfig, resolve_collection_config
from webflow.fields import BlogMetadata, build_field_data
from webflow.rich_text import adapt_for_rich_text

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api")

# Maximum content size (5MB)
MAX_CONTENT_SIZE = 5 * 1024 * 1024

_TOO_LARGE = "Content too large. Maximum size is 5MB."


def _sanitizer_mode() -> str | None:
    return current_app.config.get("SANITIZER_MODE")


# --- Health ---


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok", "service": "webflow-blog-publisher"})


# --- Config ---


@api_bp.route("/config", methods=["GET"])
@require_session
def get_config():
    """Report which Webflow settings the server holds, without exposing secrets."""
    config = CollectionConfig.from_env()
    return jsonify({
        "siteId": config.site_id,
        "collectionId": config.collection_id,
        "hasApiToken": bool(config.api_token),
    })


# --- Preview ---


@api_bp.route("/preview", methods=["POST"])
@require_session
def preview():
    """Render a post for preview.

    Request body, one of:
    {"markdown": "---\\ntitle: ...\\n---\\n# Post"}
    {"html": "<p>Already converted</p>"}

    Returns the sanitized HTML and, for Markdown, the front matter.
    """
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return jsonify({"error": "Request body must be JSON"}), 400

    markdown_text = body.get("markdown")
    html = body.get("html")
    source = markdown_text if markdown_text is not None else html

    if not isinstance(source, str):
        return jsonify({"error": "Provide 'markdown' or 'html' as a string"}), 400
    if len(source) > MAX_CONTENT_SIZE:
        return jsonify({"error": _TOO_LARGE}), 413

    if markdown_text is None:
        return jsonify({"metadata": {}, "html": sanitize_html(html, mode=_sanitizer_mode())})

    try:
        rendered = render_post(markdown_text, mode=_sanitizer_mode())
    except PostParseError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"metadata": rendered.metadata, "html": rendered.html})


# --- Publish ---


@api_bp.route("/publish", methods=["POST"])
@require_session
def publish():
    """Create a draft blog post in a Webflow collection.

    Request body:
    {
        "metadata": {"title": "...", "description": "...", ...},
        "content": "<p>HTML converted from the post</p>",
        "useEnvCredentials": true,
        "collectionId": "...",   (when not using env credentials)
        "apiToken": "..."
    }
    """
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return jsonify({"error": "Request body must be JSON"}), 400

    content = body.get("content") or ""
    if not isinstance(content, str):
        return jsonify({"error": "'content' must be a string"}), 400
    if len(content) > MAX_CONTENT_SIZE:
        return jsonify({"error": _TOO_LARGE}), 413

    raw_metadata = body.get("metadata") or {}
    if not isinstance(raw_metadata, dict):
        return jsonify({"error": "'metadata' must be an object"}), 400

    try:
        collection = resolve_collection_config(
            bool(body.get("useEnvCredentials")),
            collection_id=body.get("collectionId"),
            api_token=body.get("apiToken"),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    metadata = BlogMetadata.from_dict(raw_metadata)

    # The client already sanitized for preview; never trust that here
    rich_text = adapt_for_rich_text(sanitize_html(content, mode=_sanitizer_mode()))

    try:
        field_data = build_field_data(metadata, rich_text)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    try:
        result = WebflowClient(collection).create_item(field_data, is_draft=True)
    except WebflowAPIError as e:
        status = e.status_code or 502
        if e.is_field_error and status not in (401, 404):
            status = 400
        return jsonify({"error": str(e), "details": e.details}), status

    return jsonify({
        "success": True,
        "id": result.get("id"),
        "slug": field_data["slug"],
        "message": "Draft created successfully in Webflow",
    })
