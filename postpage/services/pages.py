from __future__ import annotations

from flask import Flask, current_app

from postpage.extensions import cache
from postpage.services.comments import ModerationClient
from postpage.services.content_store import ContentStoreClient, ContentStoreConfig
from postpage.services.static_generation import PropsResult, get_static_props
from postpage.utils.image_url import ImageUrlBuilder
from postpage.utils.portable_text import PortableTextRenderer
from postpage.utils.revalidate import RevalidatingCache


def init_app(app: Flask) -> None:
    """Build the per-app collaborators lazily from the app's config."""
    app.extensions.setdefault("postpage", {})


def _registry() -> dict:
    return current_app.extensions.setdefault("postpage", {})


def get_content_store() -> ContentStoreClient:
    reg = _registry()
    if "content_store" not in reg:
        reg["content_store"] = ContentStoreClient(ContentStoreConfig.from_mapping(current_app.config))
    return reg["content_store"]


def get_renderer() -> PortableTextRenderer:
    reg = _registry()
    if "renderer" not in reg:
        config = ContentStoreConfig.from_mapping(current_app.config)
        reg["renderer"] = PortableTextRenderer(ImageUrlBuilder(config))
    return reg["renderer"]


def get_image_urls() -> ImageUrlBuilder:
    return get_renderer().image_urls


def get_moderation_client() -> ModerationClient:
    reg = _registry()
    if "moderation" not in reg:
        reg["moderation"] = ModerationClient(
            current_app.config["COMMENT_ENDPOINT"],
            timeout=float(current_app.config.get("COMMENT_TIMEOUT", 10.0)),
        )
    return reg["moderation"]


def load_post_props(slug: str | None) -> PropsResult:
    return get_static_props(
        get_content_store(),
        slug,
        revalidate=int(current_app.config.get("REVALIDATE_SECONDS", 60)),
    )


def get_page_cache() -> RevalidatingCache:
    reg = _registry()
    if "page_cache" not in reg:
        reg["page_cache"] = RevalidatingCache(
            cache,
            load_post_props,
            key_prefix="post",
            background=bool(current_app.config.get("REVALIDATE_IN_BACKGROUND", True)),
        )
    return reg["page_cache"]
