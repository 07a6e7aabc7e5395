"""Per-file memoisation of markdown content and derived data.

Graph building and link validation touch the same files many times
(shared links, repeated anchor checks).  The cache makes parse work
proportional to the number of files instead of the number of references.

Values are published with ``dict.setdefault``: when two validator threads
race on the same key both compute the (idempotent) value and the first one
stored wins.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import unquote

from .errors import ContentReadError
from .models import CacheStats, MarkdownDocument
from .parser import MarkdownParser, TreeSitterMarkdownParser
from .paths import MARKDOWN_EXTENSION, PathLike, normalize_path
from .slug import Slugger

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


def is_scheme_qualified(url: str) -> bool:
    """True for ``http://...``, ``mailto:...`` and friends."""
    return bool(_SCHEME_RE.match(url))


def split_fragment(url: str):
    """``"a.md#x"`` -> ``("a.md", "x")``; the fragment is None when absent."""
    path_part, sep, fragment = url.partition("#")
    return path_part, (fragment if sep else None)


class MarkdownCache:
    """Caches content, parsed documents, heading slugs and link targets."""

    def __init__(
        self,
        parser: Optional[MarkdownParser] = None,
        slugger: Optional[Slugger] = None,
    ) -> None:
        self.parser = parser or TreeSitterMarkdownParser()
        self.slugger = slugger or Slugger()
        self._content: Dict[str, str] = {}
        self._documents: Dict[str, MarkdownDocument] = {}
        self._headings: Dict[str, List[str]] = {}
        self._links: Dict[str, List[str]] = {}

    def get_content(self, path: PathLike) -> str:
        key = normalize_path(path)
        content = self._content.get(key)
        if content is None:
            try:
                text = Path(key).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise ContentReadError(key, str(exc)) from exc
            content = self._content.setdefault(key, text)
        return content

    def get_ast(self, path: PathLike) -> MarkdownDocument:
        key = normalize_path(path)
        document = self._documents.get(key)
        if document is None:
            parsed = self.parser.parse(self.get_content(key))
            logger.debug(
                "Parsed %s: %d headings, %d links", key, len(parsed.headings), len(parsed.links)
            )
            document = self._documents.setdefault(key, parsed)
        return document

    def get_heading_slugs(self, path: PathLike) -> List[str]:
        key = normalize_path(path)
        slugs = self._headings.get(key)
        if slugs is None:
            derived = [self.slugger(h.text) for h in self.get_ast(key).headings]
            slugs = self._headings.setdefault(key, derived)
        return slugs

    def get_outgoing_link_targets(self, path: PathLike) -> List[str]:
        """Relative markdown link targets, fragments stripped, in document order."""
        key = normalize_path(path)
        targets = self._links.get(key)
        if targets is None:
            derived: List[str] = []
            for link in self.get_ast(key).links:
                url = link.url
                if not url or url.startswith("#") or is_scheme_qualified(url):
                    continue
                path_part, _ = split_fragment(url)
                path_part = unquote(path_part)
                if path_part.endswith(MARKDOWN_EXTENSION):
                    derived.append(path_part)
            targets = self._links.setdefault(key, derived)
        return targets

    def clear(self) -> None:
        self._content.clear()
        self._documents.clear()
        self._headings.clear()
        self._links.clear()

    def stats(self) -> CacheStats:
        contents = list(self._content.values())
        return CacheStats(
            cached_file_count=len(contents),
            total_content_bytes=sum(len(c.encode("utf-8")) for c in contents),
        )
