"""Build CDN URLs for content store image references."""
from __future__ import annotations

import re
from typing import Any
from urllib.parse import urlencode

from postpage.models.post import ImageRef
from postpage.services.content_store import ContentStoreConfig

CDN_BASE = "https://cdn.sanity.io/images"

# image-<asset id>-<width>x<height>-<extension>
_REF_RE = re.compile(r"^image-(?P<id>[A-Za-z0-9]+)-(?P<dims>\d+x\d+)-(?P<ext>[a-z0-9]+)$")


def _asset_ref(source: Any) -> str | None:
    if source is None:
        return None
    if isinstance(source, str):
        return source
    if isinstance(source, ImageRef):
        return source.asset.ref if source.asset else None
    if isinstance(source, dict):
        asset = source.get("asset")
        if isinstance(asset, dict):
            return asset.get("_ref") or asset.get("_id")
        if isinstance(source.get("_ref"), str):
            return source["_ref"]
    return None


class ImageUrlBuilder:
    def __init__(self, config: ContentStoreConfig):
        self.config = config

    def url_for_image(self, source: Any, width: int | None = None, height: int | None = None) -> str | None:
        ref = _asset_ref(source)
        if not ref:
            return None
        m = _REF_RE.match(ref)
        if not m:
            return None
        url = f"{CDN_BASE}/{self.config.project_id}/{self.config.dataset}/{m['id']}-{m['dims']}.{m['ext']}"
        params = {}
        if width:
            params["w"] = int(width)
        if height:
            params["h"] = int(height)
        if params:
            url = f"{url}?{urlencode(params)}"
        return url
