from __future__ import annotations

# Re-export common schema classes for convenient imports
from .comments import CommentSubmission  # noqa: F401

__all__ = [
    "CommentSubmission",
]
