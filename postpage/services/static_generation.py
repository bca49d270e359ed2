"""Path generation and page props loading for the post route.

``get_static_paths`` enumerates every slug to prerender. ``get_static_props``
loads one post with its author and approved comments, or signals not-found.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union

import structlog

from postpage.models.post import Post
from postpage.repositories.posts import get_post_by_slug, list_post_slugs
from postpage.services.content_store import ContentStoreClient

log = structlog.get_logger(__name__)

DEFAULT_REVALIDATE_SECONDS = 60

# Paths missing from the generated list are rendered on first request
FALLBACK_BLOCKING: Literal["blocking"] = "blocking"


@dataclass(frozen=True)
class StaticPaths:
    paths: list[dict[str, dict[str, str]]] = field(default_factory=list)
    fallback: str = FALLBACK_BLOCKING

    @property
    def slugs(self) -> list[str]:
        return [p["params"]["slug"] for p in self.paths]


@dataclass(frozen=True)
class StaticProps:
    post: Post
    revalidate: int = DEFAULT_REVALIDATE_SECONDS

    def to_json(self) -> dict[str, Any]:
        return {"props": {"post": self.post.to_json()}, "revalidate": self.revalidate}


@dataclass(frozen=True)
class NotFound:
    """Props result for a slug with no post. Maps to a 404 response."""

    not_found: bool = True


PropsResult = Union[StaticProps, NotFound]


def get_static_paths(client: ContentStoreClient) -> StaticPaths:
    seen: set[str] = set()
    paths = []
    for slug in list_post_slugs(client):
        if slug in seen:
            continue
        seen.add(slug)
        paths.append({"params": {"slug": slug}})
    log.info("static_paths_generated", count=len(paths))
    return StaticPaths(paths=paths, fallback=FALLBACK_BLOCKING)


def get_static_props(
    client: ContentStoreClient,
    slug: str | None,
    revalidate: int = DEFAULT_REVALIDATE_SECONDS,
) -> PropsResult:
    if not slug:
        return NotFound()

    post = get_post_by_slug(client, slug)
    if post is None:
        log.info("post_not_found", slug=slug)
        return NotFound()

    approved = [c for c in post.comments if c.approved is True]
    if len(approved) != len(post.comments):
        log.warning("unapproved_comments_dropped", slug=slug, dropped=len(post.comments) - len(approved))
        post = post.model_copy(update={"comments": approved})

    return StaticProps(post=post, revalidate=revalidate)
