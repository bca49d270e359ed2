from __future__ import annotations

# Re-export common forms for convenience
from .comments import CommentForm  # noqa: F401

__all__ = [
    "CommentForm",
]
