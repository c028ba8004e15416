"""Request hooks applied to every API call."""

from __future__ import annotations

import logging
import math

from flask import Flask, g, jsonify, request

from security.rate_limit import RateLimiter

logger = logging.getLogger(__name__)


def client_ip() -> str:
    """Client address as seen by the app.

    X-Forwarded-For is only honored through ProxyFix, which create_app
    installs when TRUSTED_PROXY_COUNT is set. Otherwise this is the socket peer.
    """
    return request.remote_addr or "unknown"


def install_rate_limiting(app: Flask, limiter: RateLimiter) -> None:
    """Throttle /api/ requests per client IP and report the budget in headers."""

    @app.before_request
    def check_rate_limit():
        if not request.path.startswith("/api/"):
            return None

        result = limiter.check(f"ratelimit:{client_ip()}")
        g.rate_limit = result
        if result.allowed:
            return None

        reset = str(math.ceil(result.reset_in))
        logger.warning("Rate limit exceeded for %s", client_ip())
        response = jsonify({"error": "Too many requests. Please try again later."})
        response.status_code = 429
        response.headers["X-RateLimit-Remaining"] = "0"
        response.headers["X-RateLimit-Reset"] = reset
        response.headers["Retry-After"] = reset
        return response

    @app.after_request
    def add_rate_limit_headers(response):
        result = g.get("rate_limit")
        if result is not None and result.allowed:
            response.headers["X-RateLimit-Remaining"] = str(result.remaining)
            response.headers["X-RateLimit-Reset"] = str(math.ceil(result.reset_in))
        return response
