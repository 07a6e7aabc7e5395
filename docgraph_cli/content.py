"""Concatenated document output for the ``cat`` command."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from .cache import MarkdownCache
from .graph import DocGraph
from .paths import PathLike, normalize_path, relative_to

logger = logging.getLogger(__name__)

ORDERS = ("deps", "alpha", "graph")
FORMATS = ("markdown", "json")


class ContentOutputter:
    """Renders the content of every graph file in a chosen order."""

    def __init__(self, graph: DocGraph, cache: MarkdownCache, base_path: Optional[PathLike] = None) -> None:
        self.graph = graph
        self.cache = cache
        self.base_path = normalize_path(base_path) if base_path is not None else None

    def ordered_files(self, order: str = "deps", only: Optional[Iterable[str]] = None) -> List[str]:
        """Graph files in ``order``, optionally restricted to the paths in ``only``."""
        if order == "deps":
            files = self.graph.get_files_in_dependency_order()
        elif order == "alpha":
            files = sorted(self.graph.get_all_files())
        elif order == "graph":
            files = self.graph.get_all_files()
        else:
            raise ValueError(f"Unknown order '{order}'. Expected one of: {', '.join(ORDERS)}")
        if only is None:
            return files
        selected = {normalize_path(p) for p in only}
        return [f for f in files if f in selected]

    def render(
        self,
        order: str = "deps",
        fmt: str = "markdown",
        separator: str = "\n\n",
        only: Optional[Iterable[str]] = None,
    ) -> str:
        files = self.ordered_files(order, only)
        logger.info("Outputting %d file(s)", len(files))
        if fmt == "json":
            return json.dumps([self._metadata(f) for f in files], indent=2)
        if fmt != "markdown":
            raise ValueError(f"Unknown format '{fmt}'. Expected one of: {', '.join(FORMATS)}")

        parts = []
        for path in files:
            content = self.cache.get_content(path)
            if content.endswith("\n"):
                content = content[:-1]
            parts.append(content)
        return separator.join(parts)

    def _display(self, path: str) -> str:
        return relative_to(self.base_path, path) if self.base_path else path

    def _metadata(self, path: str) -> Dict[str, Any]:
        content = self.cache.get_content(path)
        stripped = content.strip()
        return {
            "file": self._display(path),
            "depth": self.graph.get_depth(path) or 0,
            "content": content,
            "wordCount": len(stripped.split()) if stripped else 0,
            "lineCount": len(content.split("\n")),
        }
