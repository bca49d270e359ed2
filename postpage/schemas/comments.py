from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CommentSubmission(BaseModel):
    """Body sent to the moderation endpoint for a new comment."""

    model_config = ConfigDict(populate_by_name=True)

    post_id: str = Field(alias="_id", min_length=1)
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=1, max_length=320)
    comment: str = Field(min_length=1, max_length=5000)

    @field_validator("post_id", "name", "email", "comment", mode="before")
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    def to_payload(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)
