from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Document(BaseModel):
    """Base for projections returned by the content store.

    System fields are underscore-prefixed in the store (``_id``, ``_createdAt``),
    so they are mapped through aliases. Unknown keys are ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class Reference(_Document):
    ref: str = Field(alias="_ref")


class ImageRef(_Document):
    type: str = Field(default="image", alias="_type")
    asset: Reference | None = None
    alt: str | None = None


class Slug(_Document):
    current: str


class Author(_Document):
    name: str
    image: ImageRef | None = None


class Comment(_Document):
    id: str = Field(alias="_id")
    post: Reference | None = None
    name: str
    email: str | None = None
    comment: str
    approved: bool = False
    created_at: datetime | None = Field(default=None, alias="_createdAt")


class Post(_Document):
    id: str = Field(alias="_id")
    created_at: datetime = Field(alias="_createdAt")
    # Projections return null for fields a document lacks (drafts, title-only posts)
    title: str = ""
    description: str | None = None
    main_image: ImageRef | None = Field(default=None, alias="mainImage")
    slug: Slug | None = None
    # Portable text blocks are rendered as-is, no schema is enforced on them
    body: list[dict[str, Any]] = Field(default_factory=list)
    author: Author | None = None
    comments: list[Comment] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def _null_title(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("body", "comments", mode="before")
    @classmethod
    def _null_list(cls, v: Any) -> Any:
        return [] if v is None else v

    def to_json(self) -> dict[str, Any]:
        # Commenter emails go to moderation only, never to public output
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"comments": {"__all__": {"email"}}},
        )
