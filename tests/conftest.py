"""Test configuration and fixtures for the postpage application."""

import copy
from typing import Generator
from unittest.mock import MagicMock

import pytest
from flask import Flask
from flask.testing import FlaskClient

from postpage import create_app
from postpage.repositories.posts import ALL_SLUGS_QUERY, HEALTH_QUERY, POST_BY_SLUG_QUERY
from postpage.services.comments import ModerationClient


COMMENT_ENDPOINT = "https://comments.example.com/api/createComment"


def make_comment(comment_id: str, name: str, text: str, approved: bool = True) -> dict:
    return {
        "_id": comment_id,
        "_type": "comment",
        "post": {"_ref": "post-hello", "_type": "reference"},
        "name": name,
        "email": f"{name.lower()}@example.com",
        "comment": text,
        "approved": approved,
    }


HELLO_WORLD = {
    "_id": "post-hello",
    "_createdAt": "2024-01-15T10:30:00Z",
    "title": "Hello World",
    "description": "The very first post",
    "mainImage": {"_type": "image", "asset": {"_ref": "image-abc123-1200x800-jpg", "_type": "reference"}},
    "slug": {"_type": "slug", "current": "hello-world"},
    "author": {
        "name": "Ada Writer",
        "image": {"_type": "image", "asset": {"_ref": "image-def456-200x200-png", "_type": "reference"}},
    },
    "body": [
        {
            "_type": "block",
            "_key": "b1",
            "style": "h1",
            "markDefs": [],
            "children": [{"_type": "span", "_key": "s1", "text": "Welcome aboard", "marks": []}],
        },
        {
            "_type": "block",
            "_key": "b2",
            "style": "normal",
            "markDefs": [{"_key": "lnk", "_type": "link", "href": "https://example.com/docs"}],
            "children": [
                {"_type": "span", "_key": "s2", "text": "Read the ", "marks": []},
                {"_type": "span", "_key": "s3", "text": "docs", "marks": ["lnk"]},
            ],
        },
    ],
    "comments": [
        make_comment("c1", "Grace", "Great read!"),
        make_comment("c2", "Linus", "Thanks for sharing."),
        make_comment("c3", "Spammer", "Buy cheap watches", approved=False),
    ],
}


class FakeContentStore:
    """Stands in for ContentStoreClient; answers the two query shapes the app issues."""

    def __init__(self, posts: list[dict] | None = None):
        self.posts = posts if posts is not None else [copy.deepcopy(HELLO_WORLD)]
        self.calls: list[tuple[str, dict | None]] = []
        self.error: Exception | None = None

    def fetch(self, query, params=None):
        self.calls.append((query, params))
        if self.error is not None:
            raise self.error
        if query == ALL_SLUGS_QUERY:
            return [{"_id": p["_id"], "slug": p.get("slug")} for p in self.posts]
        if query == POST_BY_SLUG_QUERY:
            slug = (params or {}).get("slug")
            for p in self.posts:
                if (p.get("slug") or {}).get("current") == slug:
                    return copy.deepcopy(p)
            return None
        if query == HEALTH_QUERY:
            return len(self.posts)
        raise AssertionError(f"unexpected query: {query}")

    def post_queries(self) -> list[tuple[str, dict | None]]:
        return [c for c in self.calls if c[0] == POST_BY_SLUG_QUERY]


@pytest.fixture
def content_store() -> FakeContentStore:
    return FakeContentStore()


@pytest.fixture
def moderation_http() -> MagicMock:
    """HTTP layer behind the moderation client; accepts every comment by default."""
    http = MagicMock()
    http.post.return_value = MagicMock(ok=True, status_code=200)
    return http


@pytest.fixture
def app(content_store: FakeContentStore, moderation_http: MagicMock) -> Generator[Flask, None, None]:
    """Create and configure a test Flask application."""
    test_config = {
        'TESTING': True,
        'WTF_CSRF_ENABLED': False,  # Disable CSRF for testing
        'SECRET_KEY': 'test-secret-key',
        'SESSION_COOKIE_SECURE': False,
        'SITE_NAME': 'Test Blog',
        'SANITY_PROJECT_ID': 'testproj',
        'SANITY_DATASET': 'production',
        'COMMENT_ENDPOINT': COMMENT_ENDPOINT,
        'REVALIDATE_SECONDS': 60,
        'REVALIDATE_IN_BACKGROUND': False,
        'RATELIMIT_ENABLED': False,  # Disable rate limiting for tests
        'CACHE_TYPE': 'SimpleCache',
        'DATE_FORMAT': '%Y-%m-%d %H:%M',
    }

    app = create_app(test_config)
    app.extensions["postpage"]["content_store"] = content_store
    app.extensions["postpage"]["moderation"] = ModerationClient(COMMENT_ENDPOINT, http=moderation_http)

    with app.app_context():
        yield app


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    """Create a test client."""
    return app.test_client()


@pytest.fixture
def runner(app: Flask):
    """Create a test CLI runner."""
    return app.test_cli_runner()


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def comment_form_data(**overrides) -> dict:
    data = {
        "post_id": "post-hello",
        "name": "Grace",
        "email": "grace@example.com",
        "comment": "Lovely post",
    }
    data.update(overrides)
    return data
