from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any, Dict

import click
from flask import Flask, jsonify, g, request
from markupsafe import Markup

from postpage.config import PROCESS_LOCAL_CACHES, Config
from postpage.extensions import (
    csrf,
    limiter,
    cache,
)
from postpage.logging_config import configure_logging
from postpage.security import apply_security_headers
from postpage.services import pages
from postpage.utils.html_sanitizer import sanitize_html


def create_app(config_overrides: Dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=False)

    # Load config
    app.config.from_object(Config())
    if config_overrides:
        app.config.update(config_overrides)

    configure_logging(logging.DEBUG if app.config.get("DEBUG") else logging.INFO)

    # Request context enrichment for logging
    @app.before_request
    def add_request_context() -> None:
        g.request_id = request.headers.get("X-Request-ID") or os.urandom(8).hex()
        # Per-request script nonce for CSP-compliant inline allowances (used on script tags)
        g.script_nonce = os.urandom(16).hex()

    # Init extensions (CSRF checks run after the request context above)
    csrf.init_app(app)
    cache.init_app(app)
    limiter.init_app(app)
    pages.init_app(app)

    if app.config.get("CACHE_TYPE") in PROCESS_LOCAL_CACHES and not (app.debug or app.testing):
        app.logger.warning(
            "CACHE_TYPE=%s is per process; duplicate-comment locks and cached pages "
            "are not shared between workers",
            app.config.get("CACHE_TYPE"),
        )

    @app.template_filter('safe_html')
    def safe_html_filter(html_content: str) -> Markup:
        """Template filter to sanitize rendered rich text for safe rendering."""
        return Markup(sanitize_html(html_content or ""))

    @app.template_filter('published')
    def published_filter(value: datetime | None) -> str:
        if not value:
            return ""
        return value.strftime(app.config.get("DATE_FORMAT", "%Y-%m-%d %H:%M"))

    @app.context_processor
    def template_context() -> dict:
        return {"script_nonce": getattr(g, "script_nonce", "")}

    # Security headers
    @app.after_request
    def set_headers(resp):
        return apply_security_headers(resp)

    # Blueprints
    from postpage.blueprints.blog import bp as blog_bp

    app.register_blueprint(blog_bp)

    # Health route
    @app.get("/health")
    def health():
        from postpage.repositories.posts import count_posts
        from postpage.services.content_store import ContentStoreError

        try:
            count_posts(pages.get_content_store())
            store_ok = "connected"
        except (ContentStoreError, ValueError) as e:
            app.logger.warning(f"Content store health check failed: {str(e)}")
            store_ok = "error"
        return jsonify({"status": "ok", "content_store": store_ok}), 200

    # Error handlers (JSON)
    @app.errorhandler(400)
    def bad_request(e):
        return jsonify({"error": "bad_request", "message": str(e)}), 400

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "not_found", "message": "resource not found"}), 404

    @app.errorhandler(429)
    def rate_limited(e):
        return jsonify({"error": "rate_limited", "message": "too many requests"}), 429

    @app.errorhandler(500)
    def server_error(e):
        return jsonify({"error": "server_error", "message": "internal server error"}), 500

    # CLI: list the paths that would be prerendered
    @app.cli.command("generate-paths")
    def generate_paths() -> None:
        from postpage.services.static_generation import get_static_paths

        result = get_static_paths(pages.get_content_store())
        for slug in result.slugs:
            click.echo(slug)
        click.echo(f"fallback: {result.fallback}")

    # CLI: warm the page cache for every generated path
    @app.cli.command("prerender")
    def prerender() -> None:
        from postpage.services.static_generation import get_static_paths

        result = get_static_paths(pages.get_content_store())
        rendered = pages.get_page_cache().prerender(result.slugs)
        click.echo(f"Prerendered {rendered} of {len(result.paths)} posts")

    return app
