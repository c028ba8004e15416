"""Login API and the session check used by protected routes."""

from __future__ import annotations

import functools
import logging

from flask import Blueprint, current_app, g, jsonify, request

from api.middleware import client_ip
from security.session import (
    MAX_CREDENTIAL_LENGTH,
    SESSION_COOKIE_NAME,
    SESSION_MAX_AGE,
    create_token,
    validate_credentials,
    verify_token,
)

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def current_session() -> dict | None:
    """Verified session payload from the request cookie, if any."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return None
    return verify_token(token)


def require_session(f):
    """Decorator that rejects requests without a valid session cookie."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        session = current_session()
        if session is None:
            return jsonify({"error": "Authentication required"}), 401
        g.username = session["username"]
        return f(*args, **kwargs)
    return decorated


# --- POST /api/auth/login ---


@auth_bp.route("/login", methods=["POST"])
def login():
    """Check credentials and set the session cookie."""
    throttle = current_app.extensions["login_throttle"]
    ip = client_ip()

    # Counted before the credentials are checked; a success clears the count
    attempt = throttle.attempt(ip)
    if not attempt.allowed:
        return jsonify({
            "error": "Too many login attempts. Please try again in 15 minutes."
        }), 429

    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return jsonify({"error": "Request body must be JSON"}), 400

    username = body.get("username")
    password = body.get("password")
    if not username or not password:
        return jsonify({"error": "Username and password are required"}), 400
    if not isinstance(username, str) or not isinstance(password, str):
        return jsonify({"error": "Invalid credentials"}), 401

    # Oversized input is rejected without hashing it
    if len(username) > MAX_CREDENTIAL_LENGTH or len(password) > MAX_CREDENTIAL_LENGTH:
        return jsonify({"error": "Invalid credentials"}), 401

    if not validate_credentials(username, password):
        logger.info("Failed login for %r from %s", username, ip)
        return jsonify({
            "error": f"Invalid credentials. {attempt.remaining} attempts remaining."
        }), 401

    throttle.clear(ip)
    logger.info("User %r logged in", username)

    response = jsonify({"success": True, "message": "Login successful"})
    response.set_cookie(
        SESSION_COOKIE_NAME,
        create_token(username),
        max_age=SESSION_MAX_AGE,
        httponly=True,
        secure=not (current_app.debug or current_app.testing),
        samesite="Lax",
        path="/",
    )
    return response


# --- POST /api/auth/logout ---


@auth_bp.route("/logout", methods=["POST"])
def logout():
    response = jsonify({"success": True})
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return response


# --- GET /api/auth/check ---


@auth_bp.route("/check", methods=["GET"])
def check():
    """Tell the front end whether the current cookie is still valid."""
    session = current_session()
    if session is None:
        return jsonify({"authenticated": False}), 401
    return jsonify({"authenticated": True, "username": session["username"]})
