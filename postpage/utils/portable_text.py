"""Render portable text (the content store's rich-text block tree) to HTML.

Node kinds are rendered through a serializer table with one namespace per
kind: ``types`` (``block``, ``image``, custom types), ``styles`` (``normal``,
``h1`` ...), ``list`` (``bullet``, ``number``), ``listItem`` and ``marks``
(``strong``, ``link`` ...). A name is only looked up in the namespace of its
own kind. Callers override or extend entries by passing their own
``serializers`` mapping in the same shape. Unknown types, styles, lists and
marks fall back to a default renderer.

Serializer signature: ``fn(node, children, renderer) -> Markup``.
"""
from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping

import structlog
from markupsafe import Markup, escape

from postpage.utils.image_url import ImageUrlBuilder

log = structlog.get_logger(__name__)

Serializer = Callable[[dict, Markup, "PortableTextRenderer"], Markup]

EMPTY = Markup("")


def _tag(name: str, css: str | None = None) -> Serializer:
    def serialize(node: dict, children: Markup, renderer: "PortableTextRenderer") -> Markup:
        if css:
            return Markup('<{0} class="{1}">{2}</{0}>').format(Markup(name), css, children)
        return Markup("<{0}>{1}</{0}>").format(Markup(name), children)

    serialize.__name__ = f"serialize_{name}"
    return serialize


def serialize_block(node: dict, children: Markup, renderer: "PortableTextRenderer") -> Markup:
    return renderer.style_serializer(node.get("style") or "normal")(node, children, renderer)


def serialize_image(node: dict, children: Markup, renderer: "PortableTextRenderer") -> Markup:
    url = renderer.image_urls.url_for_image(node)
    if not url:
        return EMPTY
    return Markup('<img class="my-5 w-full" src="{}" alt="{}"/>').format(url, node.get("alt") or "")


def serialize_link(node: dict, children: Markup, renderer: "PortableTextRenderer") -> Markup:
    href = node.get("href")
    if not href:
        return children
    return Markup('<a href="{}" class="text-blue-500 hover:underline">{}</a>').format(href, children)


def serialize_list_item(node: dict, children: Markup, renderer: "PortableTextRenderer") -> Markup:
    return Markup('<li class="ml-4 list-disc"> {}</li>').format(children)


def serialize_unknown_type(node: dict, children: Markup, renderer: "PortableTextRenderer") -> Markup:
    if children:
        return Markup("<p>{}</p>").format(children)
    log.debug("portable_text_unknown_type", type=node.get("_type"))
    return EMPTY


def serialize_unknown_mark(node: dict, children: Markup, renderer: "PortableTextRenderer") -> Markup:
    return children


DEFAULT_SERIALIZERS: dict[str, Any] = {
    "types": {
        "block": serialize_block,
        "image": serialize_image,
    },
    "styles": {
        "normal": _tag("p"),
        "h1": _tag("h1", "my-5 text-2xl font-bold"),
        "h2": _tag("h2", "my-5 text-xl font-bold"),
        "h3": _tag("h3", "my-4 text-lg font-bold"),
        "h4": _tag("h4", "my-3 font-bold"),
        "h5": _tag("h5"),
        "h6": _tag("h6"),
        "blockquote": _tag("blockquote", "border-l-4 pl-4 italic"),
    },
    "list": {
        "bullet": _tag("ul"),
        "number": _tag("ol"),
    },
    "listItem": serialize_list_item,
    "marks": {
        "strong": _tag("strong"),
        "em": _tag("em"),
        "code": _tag("code"),
        "underline": _tag("u"),
        "strike-through": _tag("del"),
        "link": serialize_link,
    },
    "unknownType": serialize_unknown_type,
    "unknownMark": serialize_unknown_mark,
}

NAMESPACES = ("types", "styles", "list", "marks")


def merge_serializers(base: Mapping[str, Any], overrides: Mapping[str, Any] | None) -> dict[str, Any]:
    """Overlay ``overrides`` on ``base`` one namespace at a time."""
    merged = {key: dict(value) if key in NAMESPACES else value for key, value in base.items()}
    for key, value in (overrides or {}).items():
        if key in NAMESPACES:
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def _level(node: dict) -> int:
    try:
        return max(1, int(node.get("level") or 1))
    except (TypeError, ValueError):
        return 1


def _is_list_item(node: Any) -> bool:
    return isinstance(node, dict) and node.get("_type", "block") == "block" and bool(node.get("listItem"))


class PortableTextRenderer:
    def __init__(self, image_urls: ImageUrlBuilder, serializers: Mapping[str, Any] | None = None):
        self.image_urls = image_urls
        self.serializers = merge_serializers(DEFAULT_SERIALIZERS, serializers)

    def type_serializer(self, name: str) -> Serializer:
        return self.serializers["types"].get(name) or self.serializers["unknownType"]

    def style_serializer(self, name: str) -> Serializer:
        styles = self.serializers["styles"]
        return styles.get(name) or styles["normal"]

    def list_serializer(self, kind: str) -> Serializer:
        lists = self.serializers["list"]
        return lists.get(kind) or lists["bullet"]

    def mark_serializer(self, name: str) -> Serializer:
        return self.serializers["marks"].get(name) or self.serializers["unknownMark"]

    def render(self, blocks: Iterable[dict] | dict | None) -> Markup:
        if not blocks:
            return EMPTY
        if isinstance(blocks, dict):
            blocks = [blocks]
        nodes = [b for b in blocks if isinstance(b, dict)]

        out = []
        i = 0
        while i < len(nodes):
            if _is_list_item(nodes[i]):
                html, i = self._render_list(nodes, i, _level(nodes[i]))
                out.append(html)
            else:
                out.append(self.render_node(nodes[i]))
                i += 1
        return EMPTY.join(out)

    def render_node(self, node: dict) -> Markup:
        node_type = node.get("_type", "block")
        children = self.render_children(node)
        return self.type_serializer(node_type)(node, children, self)

    def render_children(self, node: dict) -> Markup:
        mark_defs = {d.get("_key"): d for d in node.get("markDefs") or [] if isinstance(d, dict)}
        parts = []
        for child in node.get("children") or []:
            if not isinstance(child, dict):
                continue
            if child.get("_type", "span") == "span":
                parts.append(self._render_span(child, mark_defs))
            else:
                # inline object
                parts.append(self.render_node(child))
        return EMPTY.join(parts)

    def _render_span(self, span: dict, mark_defs: dict[str, dict]) -> Markup:
        lines = str(span.get("text") or "").split("\n")
        html = Markup("<br/>").join(escape(line) for line in lines)
        # First mark is the outermost element
        for mark in reversed(span.get("marks") or []):
            mark_def = mark_defs.get(mark)
            if mark_def is not None:
                key, node = mark_def.get("_type") or "", mark_def
            else:
                key, node = mark, {"_type": mark}
            html = self.mark_serializer(key)(node, html, self)
        return html

    def _render_list(self, nodes: list[dict], start: int, level: int) -> tuple[Markup, int]:
        kind = nodes[start].get("listItem")
        items: list[list] = []  # [node, nested lists]
        i = start
        while i < len(nodes) and _is_list_item(nodes[i]):
            node = nodes[i]
            node_level = _level(node)
            if node_level < level:
                break
            if node_level > level:
                nested, i = self._render_list(nodes, i, node_level)
                if items:
                    items[-1][1].append(nested)
                else:
                    items.append([None, [nested]])
                continue
            if node.get("listItem") != kind:
                break
            items.append([node, []])
            i += 1

        li = self.serializers["listItem"]
        rendered = []
        for node, nested in items:
            children = self.render_children(node) if node else EMPTY
            rendered.append(li(node or {}, children + EMPTY.join(nested), self))
        return self.list_serializer(kind)({"listItem": kind, "level": level}, EMPTY.join(rendered), self), i
