from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env if present
ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY: str = os.getenv("SECRET_KEY", os.urandom(32).hex())

    SITE_NAME = os.getenv("SITE_NAME", "Site Name")

    # Content store (Sanity HTTP query API)
    SANITY_PROJECT_ID: str = os.getenv("SANITY_PROJECT_ID", "")
    SANITY_DATASET: str = os.getenv("SANITY_DATASET", "production")
    SANITY_API_VERSION: str = os.getenv("SANITY_API_VERSION", "2021-10-21")
    # Read from environment and then unset, same as other secrets
    SANITY_API_TOKEN: str | None = os.environ.pop("SANITY_API_TOKEN", None)
    SANITY_USE_CDN: bool = _env_bool("SANITY_USE_CDN", "false")
    CONTENT_STORE_TIMEOUT: float = float(os.getenv("CONTENT_STORE_TIMEOUT", "10"))

    # Moderation endpoint that receives new comments
    COMMENT_ENDPOINT: str = os.getenv("COMMENT_ENDPOINT", "http://localhost:3000/api/createComment")
    COMMENT_TIMEOUT: float = float(os.getenv("COMMENT_TIMEOUT", "10"))

    # Page cache: serve stale, refresh in background after this many seconds
    REVALIDATE_SECONDS: int = int(os.getenv("REVALIDATE_SECONDS", "60"))
    REVALIDATE_IN_BACKGROUND: bool = _env_bool("REVALIDATE_IN_BACKGROUND", "true")

    DATE_FORMAT: str = os.getenv("DATE_FORMAT", "%m/%d/%Y, %I:%M:%S %p")

    # Sessions
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SECURE = os.getenv("FLASK_ENV", "production") == "production"
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_PATH = "/"

    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(64 * 1024)))

    # Caching. SimpleCache lives inside one process: with several gunicorn
    # workers, page entries and the duplicate-comment lock are per worker.
    # Point CACHE_TYPE at a shared backend (RedisCache, MemcachedCache) there.
    CACHE_TYPE = os.getenv("CACHE_TYPE", "SimpleCache")
    CACHE_DEFAULT_TIMEOUT = int(os.getenv("CACHE_DEFAULT_TIMEOUT", "0"))

    # Rate limiting
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "100 per minute")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")

    # Security headers
    # Use {nonce} placeholder for per-request nonce substitution in postpage.security.apply_security_headers
    SECURITY_CSP = (
        "default-src 'self'; "
        "script-src 'nonce-{nonce}' 'strict-dynamic' ;"
        "style-src 'self'; "
        # Post and author images are served by the content store CDN
        "img-src 'self' https://cdn.sanity.io; "
        "font-src 'self'; "
        "object-src 'none'; "
        "base-uri 'self'; "
        "form-action 'self'; "
        "frame-ancestors 'none'"
    )
    SECURITY_HSTS_SECONDS = 31536000

    SECURITY_PERMISSIONS_POLICY = (
        "geolocation=(), microphone=(), camera=(), payment=(), usb=(), "
        "magnetometer=(), gyroscope=(), accelerometer=(), ambient-light-sensor=(), "
        "autoplay=(), encrypted-media=(), fullscreen=(), midi=(), "
        "picture-in-picture=(), sync-xhr=(), web-share=()"
    )

    # Flask env
    ENV = os.getenv("FLASK_ENV", "production")
    DEBUG = ENV != "production"


# Backends whose entries are not visible to other worker processes
PROCESS_LOCAL_CACHES = frozenset({"SimpleCache", "simple", "NullCache", "null"})
