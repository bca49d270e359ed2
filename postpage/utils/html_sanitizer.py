"""
HTML sanitization utilities using bleach for secure content rendering.
Applied to rendered rich text before it is marked safe in templates.
"""
from __future__ import annotations

import bleach


# Allowed HTML tags for post bodies
ALLOWED_TAGS = [
    # Headings
    'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    # Text formatting
    'strong', 'b', 'em', 'i', 'u', 's', 'del', 'mark', 'small', 'sup', 'sub',
    # Links and images
    'a', 'img',
    # Lists
    'ul', 'ol', 'li',
    # Line breaks and paragraphs
    'br', 'p',
    # Code
    'code', 'pre',
    # Quotes
    'blockquote', 'cite',
    'span',
]

# No style attributes, CSP blocks inline CSS
ALLOWED_ATTRIBUTES = {
    'a': ['href', 'title', 'target', 'rel', 'class'],
    'img': ['src', 'alt', 'title', 'class'],
    'blockquote': ['cite', 'class'],
    '*': ['id', 'class'],
}

ALLOWED_PROTOCOLS = ['http', 'https', 'mailto']


def sanitize_html(html_content: str | None) -> str:
    """
    Sanitize HTML content to prevent XSS attacks while allowing safe formatting.

    Args:
        html_content: Raw HTML content to sanitize

    Returns:
        Sanitized HTML content safe for rendering
    """
    if not html_content:
        return ""

    return bleach.clean(
        str(html_content),
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,  # Strip disallowed tags instead of escaping
        strip_comments=True,
    )

