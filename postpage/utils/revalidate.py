"""Stale-while-revalidate page cache on top of Flask-Caching.

An entry is served as long as it exists. Once it is older than its
``revalidate`` interval the stale value is still served, and a single refresh
per key is started; the refreshed value replaces the entry when it arrives.
"""
from __future__ import annotations

import threading
import time
from typing import Callable, Iterable

import structlog
from flask import current_app, has_app_context
from flask_caching import Cache

from postpage.services.static_generation import NotFound, PropsResult, StaticProps

log = structlog.get_logger(__name__)

Loader = Callable[[str], PropsResult]


class RevalidatingCache:
    def __init__(
        self,
        cache: Cache,
        loader: Loader,
        *,
        key_prefix: str = "page",
        background: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self.cache = cache
        self.loader = loader
        self.key_prefix = key_prefix
        self.background = background
        self.clock = clock
        self._lock = threading.Lock()
        self._inflight: set[str] = set()

    def _key(self, slug: str) -> str:
        return f"{self.key_prefix}:{slug}"

    def _store(self, slug: str, props: StaticProps) -> None:
        # timeout=0 keeps the entry until it is replaced or invalidated
        self.cache.set(self._key(slug), {"props": props, "fetched_at": self.clock()}, timeout=0)

    def _load(self, slug: str) -> PropsResult:
        result = self.loader(slug)
        if isinstance(result, StaticProps):
            self._store(slug, result)
        return result

    def get(self, slug: str) -> PropsResult:
        entry = self.cache.get(self._key(slug))
        if entry is None:
            return self._load(slug)

        props: StaticProps = entry["props"]
        age = self.clock() - entry["fetched_at"]
        if age > props.revalidate:
            log.debug("page_stale", slug=slug, age=round(age, 3))
            self._schedule_refresh(slug)
        return props

    def is_refreshing(self, slug: str) -> bool:
        with self._lock:
            return slug in self._inflight

    def _schedule_refresh(self, slug: str) -> None:
        with self._lock:
            if slug in self._inflight:
                return
            self._inflight.add(slug)

        if not self.background:
            self._refresh(slug)
            return

        app = current_app._get_current_object() if has_app_context() else None
        worker = threading.Thread(
            target=self._refresh_in_context,
            args=(app, slug),
            name=f"revalidate:{slug}",
            daemon=True,
        )
        worker.start()

    def _refresh_in_context(self, app, slug: str) -> None:
        if app is None:
            self._refresh(slug)
            return
        with app.app_context():
            self._refresh(slug)

    def _refresh(self, slug: str) -> None:
        try:
            result = self.loader(slug)
        except Exception as e:
            log.error("page_refresh_failed", slug=slug, error=str(e))
            return
        else:
            if isinstance(result, NotFound):
                log.info("page_evicted", slug=slug)
                self.cache.delete(self._key(slug))
            else:
                self._store(slug, result)
                log.info("page_revalidated", slug=slug)
        finally:
            with self._lock:
                self._inflight.discard(slug)

    def invalidate(self, slug: str) -> None:
        self.cache.delete(self._key(slug))

    def prerender(self, slugs: Iterable[str]) -> int:
        rendered = 0
        for slug in slugs:
            if isinstance(self._load(slug), StaticProps):
                rendered += 1
        return rendered
