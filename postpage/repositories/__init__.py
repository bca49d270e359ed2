# Import all repository functions to maintain compatibility
from postpage.repositories.posts import (
    ALL_SLUGS_QUERY,
    POST_BY_SLUG_QUERY,
    count_posts,
    get_post_by_slug,
    list_post_slugs,
)

__all__ = [
    "ALL_SLUGS_QUERY",
    "POST_BY_SLUG_QUERY",
    "count_posts",
    "get_post_by_slug",
    "list_post_slugs",
]
