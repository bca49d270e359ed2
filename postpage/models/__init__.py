from postpage.models.post import Author, Comment, ImageRef, Post, Reference, Slug

__all__ = [
    "Author",
    "Comment",
    "ImageRef",
    "Post",
    "Reference",
    "Slug",
]
