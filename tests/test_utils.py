"""Tests for utility functions."""

import pytest
from markupsafe import Markup

from postpage.models import ImageRef
from postpage.services.content_store import ContentStoreConfig
from postpage.utils.html_sanitizer import ALLOWED_ATTRIBUTES, ALLOWED_TAGS, sanitize_html
from postpage.utils.http_client import HTTPClient
from postpage.utils.image_url import ImageUrlBuilder
from postpage.utils.portable_text import PortableTextRenderer


def block(text="", style="normal", marks=None, mark_defs=None, **extra):
    node = {
        "_type": "block",
        "style": style,
        "markDefs": mark_defs or [],
        "children": [{"_type": "span", "text": text, "marks": marks or []}],
    }
    node.update(extra)
    return node


@pytest.fixture
def image_urls():
    return ImageUrlBuilder(ContentStoreConfig(project_id="testproj", dataset="production"))


@pytest.fixture
def renderer(image_urls):
    return PortableTextRenderer(image_urls)


class TestImageUrlBuilder:
    """Test cases for image URL building."""

    def test_url_from_dict(self, image_urls):
        """Test a reference given as a raw image dict."""
        url = image_urls.url_for_image({"_type": "image", "asset": {"_ref": "image-abc123-1200x800-jpg"}})
        assert url == "https://cdn.sanity.io/images/testproj/production/abc123-1200x800.jpg"

    def test_url_from_model(self, image_urls):
        """Test a reference given as an ImageRef model."""
        ref = ImageRef.model_validate({"asset": {"_ref": "image-def456-200x200-png"}})
        assert image_urls.url_for_image(ref) == "https://cdn.sanity.io/images/testproj/production/def456-200x200.png"

    def test_url_with_size(self, image_urls):
        """Test width and height parameters."""
        url = image_urls.url_for_image("image-abc123-1200x800-jpg", width=600, height=400)
        assert url.endswith("abc123-1200x800.jpg?w=600&h=400")

    @pytest.mark.parametrize("source", [None, {}, {"asset": {}}, "file-abc-pdf", "not-a-ref"])
    def test_unusable_reference(self, image_urls, source):
        """Test that absent or malformed references yield no URL."""
        assert image_urls.url_for_image(source) is None


class TestPortableTextRenderer:
    """Test cases for rich text rendering."""

    def test_empty(self, renderer):
        """Test rendering no blocks."""
        assert renderer.render(None) == ""
        assert renderer.render([]) == ""

    def test_returns_markup(self, renderer):
        """Test that output is marked safe for templates."""
        assert isinstance(renderer.render([block("hi")]), Markup)

    def test_paragraph(self, renderer):
        """Test a normal block."""
        assert renderer.render([block("Hello")]) == "<p>Hello</p>"

    def test_headings(self, renderer):
        """Test heading styles from the serializer table."""
        html = renderer.render([block("Big", style="h1"), block("Smaller", style="h2")])
        assert html == (
            '<h1 class="my-5 text-2xl font-bold">Big</h1>'
            '<h2 class="my-5 text-xl font-bold">Smaller</h2>'
        )

    def test_unknown_style_falls_back_to_paragraph(self, renderer):
        """Test that an unknown style renders as a paragraph."""
        assert renderer.render([block("x", style="fancy")]) == "<p>x</p>"

    @pytest.mark.parametrize("style", ["block", "image", "li", "link", "strong", "unknownType"])
    def test_style_named_like_other_kinds(self, renderer, style):
        """Test that style names are only looked up among styles."""
        assert renderer.render([block("hi", style=style)]) == "<p>hi</p>"

    def test_mark_named_like_a_style(self, renderer):
        """Test that a mark called h1 is not rendered as a heading."""
        assert renderer.render([block("x", marks=["h1"])]) == "<p>x</p>"

    def test_text_is_escaped(self, renderer):
        """Test that span text is HTML-escaped."""
        html = renderer.render([block('<script>alert("x")</script>')])
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_newlines_become_breaks(self, renderer):
        """Test that line breaks inside spans are kept."""
        assert renderer.render([block("one\ntwo")]) == "<p>one<br/>two</p>"

    def test_decorators_nest_in_order(self, renderer):
        """Test that the first mark is the outermost element."""
        assert renderer.render([block("x", marks=["strong", "em"])]) == "<p><strong><em>x</em></strong></p>"

    def test_link_annotation(self, renderer):
        """Test links resolved through markDefs."""
        node = block("docs", marks=["k1"], mark_defs=[{"_key": "k1", "_type": "link", "href": "https://example.com"}])
        assert renderer.render([node]) == (
            '<p><a href="https://example.com" class="text-blue-500 hover:underline">docs</a></p>'
        )

    def test_unknown_mark_renders_children(self, renderer):
        """Test that unknown marks leave their text untouched."""
        assert renderer.render([block("plain", marks=["sparkle"])]) == "<p>plain</p>"

    def test_bullet_list_grouped(self, renderer):
        """Test that consecutive list items share one list."""
        html = renderer.render([
            block("a", listItem="bullet", level=1),
            block("b", listItem="bullet", level=1),
            block("after"),
        ])
        assert html == (
            '<ul><li class="ml-4 list-disc"> a</li><li class="ml-4 list-disc"> b</li></ul>'
            "<p>after</p>"
        )

    def test_numbered_list(self, renderer):
        """Test numbered items render an ordered list."""
        html = renderer.render([block("one", listItem="number")])
        assert html.startswith("<ol>") and html.endswith("</ol>")

    def test_list_kind_change_starts_new_list(self, renderer):
        """Test that switching list kind starts a new list."""
        html = renderer.render([block("a", listItem="bullet"), block("1", listItem="number")])
        assert html.startswith("<ul>")
        assert "</ul><ol>" in html

    def test_nested_list(self, renderer):
        """Test deeper levels nest inside the previous item."""
        html = renderer.render([
            block("parent", listItem="bullet", level=1),
            block("child", listItem="bullet", level=2),
            block("sibling", listItem="bullet", level=1),
        ])
        assert html == (
            '<ul><li class="ml-4 list-disc"> parent<ul><li class="ml-4 list-disc"> child</li></ul></li>'
            '<li class="ml-4 list-disc"> sibling</li></ul>'
        )

    def test_image_block(self, renderer):
        """Test image blocks use the image URL builder."""
        html = renderer.render([{"_type": "image", "asset": {"_ref": "image-abc123-1200x800-jpg"}, "alt": "A cat"}])
        assert 'src="https://cdn.sanity.io/images/testproj/production/abc123-1200x800.jpg"' in html
        assert 'alt="A cat"' in html

    def test_unknown_type_with_children(self, renderer):
        """Test that unknown types with spans fall back to a paragraph."""
        node = {"_type": "callout", "children": [{"_type": "span", "text": "Note"}]}
        assert renderer.render([node]) == "<p>Note</p>"

    def test_unknown_type_without_children(self, renderer):
        """Test that unknown types without content render nothing."""
        assert renderer.render([{"_type": "youtube", "url": "https://youtu.be/x"}]) == ""

    def test_override_serializer(self, image_urls):
        """Test that callers can replace table entries."""
        custom = PortableTextRenderer(
            image_urls,
            serializers={"styles": {"h1": lambda node, children, r: Markup("<h1 class=\"title\">{}</h1>").format(children)}},
        )
        assert custom.render([block("Top", style="h1")]) == '<h1 class="title">Top</h1>'
        assert custom.render([block("Low", style="h2")]) == '<h2 class="my-5 text-xl font-bold">Low</h2>'

    def test_custom_type(self, image_urls):
        """Test registering a serializer for a custom block type."""
        custom = PortableTextRenderer(
            image_urls,
            serializers={"types": {"code": lambda node, children, r: Markup("<pre>{}</pre>").format(node.get("code", ""))}},
        )
        assert custom.render([{"_type": "code", "code": "print(1)"}]) == "<pre>print(1)</pre>"

    def test_single_block_dict(self, renderer):
        """Test rendering a lone block passed without a list."""
        assert renderer.render(block("solo")) == "<p>solo</p>"


class TestHTMLSanitizer:
    """Test cases for HTML sanitization."""

    def test_keeps_rendered_rich_text(self, renderer):
        """Test that renderer output survives sanitization."""
        html = str(renderer.render([block("Big", style="h1")]))
        assert sanitize_html(html) == html

    def test_removes_script_tags(self):
        """Test that script tags are removed."""
        result = sanitize_html('<p>Safe content</p><script>alert("xss")</script>')
        assert '<script>' not in result
        assert '<p>Safe content</p>' in result

    def test_removes_dangerous_attributes(self):
        """Test that event handler attributes are removed."""
        assert sanitize_html('<p onclick="alert(1)">Click me</p>') == '<p>Click me</p>'

    def test_strips_javascript_links(self):
        """Test that javascript: URLs are dropped."""
        result = sanitize_html('<a href="javascript:alert(1)">x</a>')
        assert 'javascript:' not in result

    def test_keeps_cdn_images(self):
        """Test that content store images are kept."""
        html = '<img src="https://cdn.sanity.io/images/p/d/a-1x1.png" alt="x">'
        assert 'src="https://cdn.sanity.io/images/p/d/a-1x1.png"' in sanitize_html(html)

    def test_empty_input(self):
        """Test sanitizing empty input."""
        assert sanitize_html('') == ''
        assert sanitize_html(None) == ''

    def test_allowed_configuration(self):
        """Test that tags needed by the renderer are allowed."""
        assert {'h1', 'h2', 'p', 'ul', 'ol', 'li', 'a', 'img', 'strong', 'em'} <= set(ALLOWED_TAGS)
        assert 'href' in ALLOWED_ATTRIBUTES['a']


class TestHTTPClient:
    """Test cases for outbound URL handling."""

    def test_rejects_non_http_scheme(self):
        """Test that only HTTP(S) URLs are allowed."""
        with pytest.raises(ValueError):
            HTTPClient()._validate_url("ftp://example.com/file")

    def test_rejects_metadata_host(self):
        """Test that cloud metadata endpoints are blocked."""
        with pytest.raises(ValueError):
            HTTPClient()._validate_url("http://169.254.169.254/latest")

    def test_allowed_domains(self):
        """Test the domain allowlist including subdomains."""
        client = HTTPClient(allowed_domains=["sanity.io"])
        assert client._validate_url("https://proj.api.sanity.io/v1/data")
        with pytest.raises(ValueError):
            client._validate_url("https://evil.example.com/")

    def test_timeout_applied(self):
        """Test that the default timeout is passed to the session."""
        from unittest.mock import MagicMock

        session = MagicMock()
        client = HTTPClient(timeout=3.5, session=session)
        client.post("https://example.com/x", json={})
        assert session.post.call_args.kwargs["timeout"] == 3.5
