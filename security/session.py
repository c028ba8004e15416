"""Signed session tokens and credential checks for the single editor account."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import logging
import os
import time
from typing import Any

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "webflow-blog-session"
SESSION_MAX_AGE = 60 * 60 * 24  # 24 hours in seconds

# Longer values are rejected before comparison
MAX_CREDENTIAL_LENGTH = 100


def _secret_key() -> bytes | None:
    """Signing key derived from AUTH_PASSWORD, or None when it is unset.

    Changing the password invalidates every issued token.
    """
    secret = os.environ.get("AUTH_PASSWORD")
    if not secret:
        return None
    return f"{secret}-webflow-blog-session-key".encode("utf-8")


def _sign(key: bytes, data: str) -> str:
    return hmac.new(key, data.encode("utf-8"), hashlib.sha256).hexdigest()


def _now_ms() -> int:
    return int(time.time() * 1000)


def create_token(username: str, now_ms: int | None = None) -> str:
    """Create a signed session token for ``username``.

    Format: base64(JSON payload) + "." + hex HMAC-SHA256 of the payload.

    Raises:
        RuntimeError: If AUTH_PASSWORD is not set.
    """
    key = _secret_key()
    if key is None:
        raise RuntimeError("AUTH_PASSWORD must be set to issue session tokens")

    issued = _now_ms() if now_ms is None else now_ms
    payload = json.dumps({"username": username, "expires": issued + SESSION_MAX_AGE * 1000})
    encoded = base64.b64encode(payload.encode("utf-8")).decode("ascii")
    return f"{encoded}.{_sign(key, payload)}"


def verify_token(token: str, now_ms: int | None = None) -> dict[str, Any] | None:
    """Decode and verify a session token.

    Returns:
        The payload dict, or None if the token is malformed, forged or expired,
        or if AUTH_PASSWORD is not set.
    """
    key = _secret_key()
    if key is None:
        logger.error("AUTH_PASSWORD is not set, rejecting session token")
        return None

    parts = token.split(".")
    if len(parts) != 2:
        return None

    encoded, signature = parts
    try:
        payload = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    if not hmac.compare_digest(signature.encode("utf-8"), _sign(key, payload).encode("ascii")):
        return None

    try:
        data = json.loads(payload)
    except ValueError:
        return None
    if not isinstance(data, dict) or not isinstance(data.get("expires"), int):
        return None

    current = _now_ms() if now_ms is None else now_ms
    if data["expires"] < current:
        return None

    return data


def validate_credentials(username: str, password: str) -> bool:
    """Check a login against AUTH_USERNAME / AUTH_PASSWORD."""
    valid_username = os.environ.get("AUTH_USERNAME")
    valid_password = os.environ.get("AUTH_PASSWORD")

    if not valid_username or not valid_password:
        logger.error("AUTH_USERNAME and AUTH_PASSWORD environment variables must be set")
        return False

    # Evaluate both comparisons so timing does not reveal which one failed
    username_ok = hmac.compare_digest(username.encode("utf-8"), valid_username.encode("utf-8"))
    password_ok = hmac.compare_digest(password.encode("utf-8"), valid_password.encode("utf-8"))
    return username_ok and password_ok
