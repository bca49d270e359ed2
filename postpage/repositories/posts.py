from __future__ import annotations

from typing import Optional

from postpage.models.post import Post
from postpage.services.content_store import ContentStoreClient


ALL_SLUGS_QUERY = """
*[_type == 'post']{
  _id,
  slug {
    current
  }
}
"""

POST_BY_SLUG_QUERY = """
*[_type == 'post' && slug.current == $slug][0]{
  _id,
  _createdAt,
  title,
  author -> {
    name,
    image
  },
  'comments': *[
    _type == 'comment' &&
    post._ref == ^._id &&
    approved == true
  ],
  description,
  mainImage,
  slug,
  body
}
"""

HEALTH_QUERY = "count(*[_type == 'post'])"


def list_post_slugs(client: ContentStoreClient) -> list[str]:
    rows = client.fetch(ALL_SLUGS_QUERY) or []
    slugs = []
    for row in rows:
        current = ((row or {}).get("slug") or {}).get("current")
        if current:
            slugs.append(current)
    return slugs


def get_post_by_slug(client: ContentStoreClient, slug: str) -> Optional[Post]:
    doc = client.fetch(POST_BY_SLUG_QUERY, {"slug": slug})
    if not doc:
        return None
    return Post.model_validate(doc)


def count_posts(client: ContentStoreClient) -> int:
    return int(client.fetch(HEALTH_QUERY) or 0)
