"""Graph construction by following relative markdown links."""

from __future__ import annotations

import logging
import math
import os
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .cache import MarkdownCache
from .errors import ScopeError
from .exclusion import ExclusionMatcher, NullExclusionMatcher
from .graph import DocGraph
from .paths import (
    PathLike,
    Scope,
    common_ancestor,
    file_exists,
    find_markdown_files,
    normalize_path,
    resolve_link,
)

logger = logging.getLogger(__name__)

DEFAULT_ENTRYPOINT = "README.md"


class GraphBuilder:
    """Builds a :class:`DocGraph` from one or more entry points.

    Traversal is depth-first from depth 0.  A candidate file is added only
    if it is not yet in the graph, within the depth limit, inside the scope
    boundary, not excluded and present on disk.  Missing targets are left
    to the link validator.
    """

    def __init__(
        self,
        base_path: PathLike,
        cache: Optional[MarkdownCache] = None,
        exclusions: Optional[ExclusionMatcher] = None,
        scope_limit: bool = True,
        scope_root: Optional[PathLike] = None,
    ) -> None:
        self.base_path = normalize_path(base_path)
        self.cache = cache or MarkdownCache()
        self.exclusions = exclusions or NullExclusionMatcher()
        self.scope_limit = scope_limit
        self.scope_root = normalize_path(scope_root) if scope_root is not None else None
        self.scope = Scope(self.scope_root, enabled=False)
        self._external: Dict[str, None] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, entrypoint: PathLike = DEFAULT_ENTRYPOINT, max_depth: Optional[int] = None) -> DocGraph:
        entry = normalize_path(os.path.join(self.base_path, os.fspath(entrypoint)))
        self.scope = Scope(self.scope_root or os.path.dirname(entry), enabled=self.scope_limit)
        self._external = {}
        self._check_entry_in_scope(entry)

        graph = DocGraph()
        if not file_exists(entry):
            logger.warning("Entrypoint not found: %s", entry)
            return graph

        self._visit(graph, entry, _limit(max_depth))
        logger.info("Graph built from %s: %d files, %d links", entry, graph.file_count, graph.edge_count)
        return graph

    def build_from_multiple(
        self,
        entrypoints: Sequence[PathLike],
        max_depth: Optional[int] = None,
    ) -> DocGraph:
        """Build one subgraph per entry point and merge them.

        Without an explicit scope root the scope becomes the common
        ancestor directory of all entry points.  On merge each file keeps
        the smallest depth any entry point reached it at.
        """
        entries = [normalize_path(os.path.join(self.base_path, os.fspath(e))) for e in entrypoints]
        root = self.scope_root
        if root is None:
            root = common_ancestor(entries) if entries else self.base_path
        self.scope = Scope(root, enabled=self.scope_limit)
        self._external = {}

        limit = _limit(max_depth)
        merged = DocGraph()
        for entry in entries:
            self._check_entry_in_scope(entry)
            if not file_exists(entry):
                logger.warning("Skipping missing entrypoint: %s", entry)
                continue
            subgraph = DocGraph()
            self._visit(subgraph, entry, limit)
            _merge_into(merged, subgraph)

        logger.info(
            "Merged graph from %d entrypoints: %d files, %d links",
            len(entries), merged.file_count, merged.edge_count,
        )
        return merged

    def external_links(self) -> List[str]:
        """Out-of-scope targets seen by the most recent build, in discovery order."""
        return list(self._external)

    def find_orphans(self, graph: DocGraph, depth_limited: bool = False) -> List[str]:
        """Markdown files under the scan directory that *graph* never reached.

        The scan directory is the scope of the most recent build, so call
        this with the graph that build returned.

        A depth-limited graph is incomplete, so it never reports orphans.
        """
        if depth_limited:
            return []
        scan_dir = self.scope.root if self.scope.enabled else self.base_path
        reachable = set(graph.get_all_files())
        return [f for f in find_markdown_files(scan_dir, self.exclusions) if f not in reachable]

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _check_entry_in_scope(self, entry: str) -> None:
        if self.scope.enabled and not self.scope.contains(entry):
            raise ScopeError(entry, self.scope.root)

    def _visit(self, graph: DocGraph, start: str, limit: float) -> None:
        if not self._admit(graph, start, 0, limit):
            return

        stack: List[Tuple[str, int, Iterator[str]]] = [(start, 0, self._targets(start, 0, limit))]
        while stack:
            source, depth, targets = stack[-1]
            for target in targets:
                if not self.scope.contains(target):
                    self._external[target] = None
                    graph.add_edge(source, target)
                    continue
                if self.exclusions.should_exclude(target):
                    continue
                graph.add_edge(source, target)
                if self._admit(graph, target, depth + 1, limit):
                    stack.append((target, depth + 1, self._targets(target, depth + 1, limit)))
                    break
            else:
                stack.pop()

    def _admit(self, graph: DocGraph, path: str, depth: int, limit: float) -> bool:
        """Add *path* at *depth* if it qualifies as a new node."""
        if graph.has_file(path):
            return False
        if depth > limit:
            return False
        if not self.scope.contains(path):
            self._external[path] = None
            return False
        if self.exclusions.should_exclude(path):
            logger.debug("Excluded: %s", path)
            return False
        if not file_exists(path):
            return False
        graph.add_file(path, depth)
        return True

    def _targets(self, path: str, depth: int, limit: float) -> Iterator[str]:
        # A file at the depth limit is a leaf; its links are still checked
        # by the validator.
        if depth >= limit:
            return iter(())
        links = self.cache.get_outgoing_link_targets(path)
        return iter([resolve_link(path, link) for link in links])


def _limit(max_depth: Optional[int]) -> float:
    return math.inf if max_depth is None else max_depth


def _merge_into(target: DocGraph, source: DocGraph) -> None:
    for path in source.get_all_files():
        depth = source.get_depth(path)
        current = target.get_depth(path)
        if current is None or depth < current:
            target.add_file(path, depth)
    for path in source.get_all_files():
        for dst in source.get_outgoing_links(path):
            target.add_edge(path, dst)
