"""Tests for the Webflow adapter, field mapping and client — all API calls mocked."""

from __future__ import annotations

import datetime
import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from webflow.client import WebflowAPIError, WebflowClient
from webflow.config import CollectionConfig, resolve_collection_config
from webflow.fields import BlogMetadata, build_field_data, generate_slug, to_iso_datetime
from webflow.rich_text import adapt_for_rich_text


# --- Fixtures ---


@pytest.fixture
def collection():
    return CollectionConfig(collection_id="coll123", api_token="tok-abc", site_id="site9")


@pytest.fixture
def client(collection):
    return WebflowClient(collection)


@pytest.fixture
def mock_response():
    """Factory for creating mock response objects."""
    def _make(status_code=200, json_data=None, ok=True, reason="OK"):
        resp = MagicMock(spec=requests.Response)
        resp.status_code = status_code
        resp.ok = ok
        resp.reason = reason
        resp.text = json.dumps(json_data or {})
        resp.json.return_value = json_data or {}
        return resp
    return _make


# --- Rich text adapter ---


class TestAdaptForRichText:
    def test_code_block_becomes_blockquote(self):
        html = '<pre><code class="language-python">x = 1\n</code></pre>'
        assert adapt_for_rich_text(html) == "<blockquote>x = 1\n</blockquote>"

    def test_bare_pre_becomes_blockquote(self):
        assert adapt_for_rich_text("<pre>text</pre>") == "<blockquote>text</blockquote>"

    def test_inline_code_becomes_em(self):
        assert adapt_for_rich_text("<p>run <code>pip</code></p>") == "<p>run <em>pip</em></p>"

    def test_horizontal_rules_removed(self):
        assert adapt_for_rich_text("<p>a</p><hr/><hr><p>b</p>") == "<p>a</p><p>b</p>"

    def test_empty_paragraphs_removed(self):
        assert adapt_for_rich_text("<p> </p><p>x</p>") == "<p>x</p>"

    def test_newlines_collapsed(self):
        assert adapt_for_rich_text("<p>a</p>\n\n\n\n<p>b</p>") == "<p>a</p>\n\n<p>b</p>"

    def test_tables_kept(self):
        html = "<table><tr><td>x</td></tr></table>"
        assert adapt_for_rich_text(html) == html


# --- Slugs and fields ---


class TestGenerateSlug:
    def test_basic(self):
        assert generate_slug("Hello, World! 2024") == "hello-world-2024"

    def test_collapses_hyphens(self):
        assert generate_slug("A  --  B") == "a-b"

    def test_truncates(self):
        assert len(generate_slug("word " * 50)) == 100


class TestBlogMetadata:
    def test_from_dict_ignores_unknown_keys(self):
        meta = BlogMetadata.from_dict({"title": "T", "layout": "post"})
        assert meta.title == "T"
        assert not hasattr(meta, "layout")

    def test_values_coerced_to_strings(self):
        meta = BlogMetadata.from_dict({"title": 2024, "author": None})
        assert meta.title == "2024"
        assert meta.author == ""

    def test_date_kept_as_loaded(self):
        meta = BlogMetadata.from_dict({"date": datetime.date(2024, 1, 15)})
        assert meta.date == datetime.date(2024, 1, 15)

    def test_non_mapping_keywords_dropped(self):
        assert BlogMetadata.from_dict({"keywords": "a, b"}).keywords == {}


class TestBuildFieldData:
    def test_full_metadata(self):
        meta = BlogMetadata(
            title="My Post",
            description="About things",
            author="Sam",
            date="2024-01-15",
            featured_image="https://cdn.example.com/a.png",
            featured_image_alt="A picture",
        )
        data = build_field_data(meta, "<p>Body</p>")

        assert data["name"] == "My Post"
        assert data["slug"] == "my-post"
        assert data["index"] == "index"
        assert data["content"] == "<p>Body</p>"
        assert data["_archived"] is False
        assert data["_draft"] is True
        assert data["card-desc"] == "About things"
        assert data["meta-description"] == "About things"
        assert data["meta-title"] == "My Post"
        assert data["author"] == "Sam"
        assert data["date"] == "2024-01-15T00:00:00.000Z"
        assert data["image"] == {"url": "https://cdn.example.com/a.png", "alt": "A picture"}

    def test_explicit_slug_wins(self):
        data = build_field_data(BlogMetadata(title="Title", slug="Custom Slug"), "")
        assert data["slug"] == "custom-slug"

    def test_missing_title_raises(self):
        with pytest.raises(ValueError, match="title"):
            build_field_data(BlogMetadata(), "<p>x</p>")

    def test_markup_stripped_from_plain_text_fields(self):
        data = build_field_data(BlogMetadata(title="<b>Bold</b> move"), "")
        assert data["name"] == "Bold move"

    def test_unsafe_featured_image_skipped(self):
        meta = BlogMetadata(title="T", featured_image="javascript:alert(1)")
        assert "image" not in build_field_data(meta, "")

    def test_image_alt_defaults_to_title(self):
        meta = BlogMetadata(title="T", featured_image="/img/a.png")
        assert build_field_data(meta, "")["image"]["alt"] == "T"

    def test_optional_fields_omitted(self):
        data = build_field_data(BlogMetadata(title="T"), "")
        assert "card-desc" not in data
        assert "author" not in data
        assert "date" not in data


class TestToIsoDatetime:
    def test_date_object(self):
        assert to_iso_datetime(datetime.date(2024, 3, 1)) == "2024-03-01T00:00:00.000Z"

    def test_aware_datetime_converted_to_utc(self):
        tz = datetime.timezone(datetime.timedelta(hours=2))
        value = datetime.datetime(2024, 3, 1, 12, 0, tzinfo=tz)
        assert to_iso_datetime(value) == "2024-03-01T10:00:00.000Z"

    def test_zulu_string(self):
        assert to_iso_datetime("2024-03-01T08:30:00.250Z") == "2024-03-01T08:30:00.250Z"

    def test_invalid_raises(self):
        with pytest.raises(ValueError, match="Invalid date"):
            to_iso_datetime("next tuesday")


# --- Config ---


class TestCollectionConfig:
    def test_api_url(self, collection):
        assert collection.api_url == "https://api.webflow.com/v2/collections/coll123/items"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("WEBFLOW_COLLECTION_ID", "envcoll")
        monkeypatch.setenv("WEBFLOW_API_TOKEN", "envtok")
        monkeypatch.setenv("WEBFLOW_SITE_ID", "envsite")

        config = CollectionConfig.from_env()
        assert config.collection_id == "envcoll"
        assert config.api_token == "envtok"
        assert config.site_id == "envsite"
        assert config.is_complete

    def test_resolve_from_request(self):
        config = resolve_collection_config(False, collection_id=" c1 ", api_token="t1")
        assert config.collection_id == "c1"
        assert config.api_token == "t1"

    def test_resolve_from_env(self, monkeypatch):
        monkeypatch.setenv("WEBFLOW_COLLECTION_ID", "envcoll")
        monkeypatch.setenv("WEBFLOW_API_TOKEN", "envtok")
        config = resolve_collection_config(True, collection_id="ignored", api_token="ignored")
        assert config.collection_id == "envcoll"

    def test_resolve_missing_raises(self, monkeypatch):
        monkeypatch.delenv("WEBFLOW_COLLECTION_ID", raising=False)
        monkeypatch.delenv("WEBFLOW_API_TOKEN", raising=False)
        with pytest.raises(ValueError, match="collectionId or apiToken"):
            resolve_collection_config(True)


# --- Client ---


class TestCreateItem:
    def test_creates_draft(self, client, mock_response):
        resp = mock_response(json_data={"id": "item1"})

        with patch.object(client._session, "request", return_value=resp) as mock_req:
            result = client.create_item({"name": "Post", "slug": "post"})

        assert result["id"] == "item1"
        assert mock_req.call_args[0][0] == "POST"
        assert mock_req.call_args[0][1].endswith("/collections/coll123/items")
        payload = mock_req.call_args[1]["json"]
        assert payload["fieldData"]["name"] == "Post"
        assert payload["isDraft"] is True
        assert mock_req.call_args[1]["timeout"] == 30

    def test_bearer_token_header(self, client):
        assert client._session.headers["Authorization"] == "Bearer tok-abc"


class TestErrorHandling:
    def test_invalid_token(self, client, mock_response):
        resp = mock_response(status_code=401, ok=False, json_data={"message": "Unauthorized"})

        with patch.object(client._session, "request", return_value=resp):
            with pytest.raises(WebflowAPIError, match="Invalid API token") as exc_info:
                client.create_item({"name": "x"})

        assert exc_info.value.status_code == 401

    def test_collection_not_found(self, client, mock_response):
        resp = mock_response(status_code=404, ok=False, json_data={"message": "Not Found"})

        with patch.object(client._session, "request", return_value=resp):
            with pytest.raises(WebflowAPIError, match="Collection not found"):
                client.create_item({"name": "x"})

    def test_field_error(self, client, mock_response):
        resp = mock_response(
            status_code=400, ok=False,
            json_data={"message": "Validation Error: field 'card-desc' not found"},
        )

        with patch.object(client._session, "request", return_value=resp):
            with pytest.raises(WebflowAPIError, match="Field mapping error") as exc_info:
                client.create_item({"name": "x"})

        assert exc_info.value.is_field_error
        assert "card-desc" in exc_info.value.details["message"]

    def test_non_json_error_body(self, client):
        resp = MagicMock(spec=requests.Response)
        resp.ok = False
        resp.status_code = 502
        resp.reason = "Bad Gateway"
        resp.text = "<html>upstream down</html>"
        resp.json.side_effect = ValueError("no json")

        with patch.object(client._session, "request", return_value=resp):
            with pytest.raises(WebflowAPIError) as exc_info:
                client.create_item({"name": "x"})

        assert exc_info.value.status_code == 502
        assert exc_info.value.details == {}

    def test_connection_error(self, client):
        with patch.object(
            client._session, "request", side_effect=requests.ConnectionError("refused")
        ):
            with pytest.raises(WebflowAPIError, match="Could not reach Webflow") as exc_info:
                client.create_item({"name": "x"})

        assert exc_info.value.status_code is None
