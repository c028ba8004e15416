"""Flask application entry point."""

from __future__ import annotations

import os

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.middleware.proxy_fix import ProxyFix

load_dotenv()

from api.auth import auth_bp
from api.middleware import install_rate_limiting
from api.routes import MAX_CONTENT_SIZE, api_bp
from security.rate_limit import LoginThrottle, RateLimiter


def create_app(config: dict | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Optional config dict to override defaults. RATE_LIMITER and
            LOGIN_THROTTLE may carry pre-built stores (e.g. with a fake clock).
            TRUSTED_PROXY_COUNT enables X-Forwarded-For handling.

    Returns:
        Configured Flask app instance.
    """
    app = Flask(__name__)

    # Defaults
    app.config["MAX_CONTENT_LENGTH"] = MAX_CONTENT_SIZE
    app.config["SANITIZER_MODE"] = os.environ.get("HTML_SANITIZER_MODE")

    # Apply overrides
    if config:
        app.config.update(config)

    # Number of reverse proxies in front of the app that append X-Forwarded-For
    proxy_count = int(
        app.config.get("TRUSTED_PROXY_COUNT") or os.environ.get("TRUSTED_PROXY_COUNT", "0")
    )
    if proxy_count > 0:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=proxy_count, x_proto=proxy_count)

    limiter = app.config.get("RATE_LIMITER") or RateLimiter(
        max_requests=int(os.environ.get("RATE_LIMIT_MAX_REQUESTS", "30")),
        window_seconds=int(os.environ.get("RATE_LIMIT_WINDOW_SECONDS", "60")),
    )
    app.extensions["rate_limiter"] = limiter
    app.extensions["login_throttle"] = app.config.get("LOGIN_THROTTLE") or LoginThrottle()

    install_rate_limiting(app, limiter)

    # Register blueprints
    app.register_blueprint(api_bp)
    app.register_blueprint(auth_bp)

    @app.errorhandler(413)
    def too_large(_error):
        return jsonify({"error": "Content too large. Maximum size is 5MB."}), 413

    return app


if __name__ == "__main__":
    application = create_app()
    application.run(debug=True, port=5010)
