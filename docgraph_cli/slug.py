"""Heading text to anchor identifier conversion."""

from __future__ import annotations

import re
from typing import Dict

_STRIP_RE = re.compile(r"[^\w\s-]")
_SEPARATOR_RE = re.compile(r"[\s_-]+")


class Slugger:
    """Memoised GitHub-style slug function.

    One instance is created per run and handed to every component that
    compares anchors, so tests never share a cache.
    """

    def __init__(self) -> None:
        self._cache: Dict[str, str] = {}

    def __call__(self, text: str) -> str:
        return self.slugify(text)

    def slugify(self, text: str) -> str:
        cached = self._cache.get(text)
        if cached is not None:
            return cached

        slug = _STRIP_RE.sub("", text.lower().strip())
        slug = _SEPARATOR_RE.sub("-", slug).strip("-")
        self._cache[text] = slug
        return slug

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        self._cache.clear()
