"""Incoming/outgoing dependency trees for a single document."""

from __future__ import annotations

import math
from typing import Callable, List, Optional, Set

from .graph import DocGraph
from .models import CycleEdge, DependencyNode, DependencyReport, DependencyStats
from .paths import PathLike, normalize_path


class DependencyAnalyzer:
    """Walks an already built graph around one file.

    The result is a tree, not a set: a file reachable through two branches
    appears under both.  Cycles are detected against the ancestors of the
    current branch only; meeting an ancestor produces a leaf flagged
    ``is_cycle`` and the walk does not go further down that branch.
    """

    def __init__(self, graph: DocGraph) -> None:
        self.graph = graph

    def analyze(
        self,
        file_path: PathLike,
        include_incoming: bool = True,
        include_outgoing: bool = True,
        max_depth: Optional[int] = None,
    ) -> DependencyReport:
        path = normalize_path(file_path)
        limit = math.inf if max_depth is None else max_depth
        cycles: List[CycleEdge] = []

        incoming: List[DependencyNode] = []
        if include_incoming:
            incoming = self._tree(path, self.graph.get_incoming_links, limit, {path}, cycles, reverse=True)

        outgoing: List[DependencyNode] = []
        if include_outgoing:
            outgoing = self._tree(path, self.graph.get_outgoing_links, limit, {path}, cycles, reverse=False)

        unique = _deduplicate(cycles)
        return DependencyReport(
            file=path,
            incoming=incoming,
            outgoing=outgoing,
            cycles=unique,
            stats=DependencyStats(
                incoming_count=_count(incoming),
                outgoing_count=_count(outgoing),
                cycles_detected=len(unique),
            ),
        )

    def _tree(
        self,
        path: str,
        neighbours: Callable[[str], List[str]],
        limit: float,
        ancestors: Set[str],
        cycles: List[CycleEdge],
        reverse: bool,
        depth: int = 0,
    ) -> List[DependencyNode]:
        if depth >= limit:
            return []

        nodes: List[DependencyNode] = []
        for neighbour in neighbours(path):
            if neighbour in ancestors:
                nodes.append(
                    DependencyNode(neighbour, depth + 1, is_cycle=True, cycle_target=path)
                )
                edge = CycleEdge(neighbour, path) if reverse else CycleEdge(path, neighbour)
                cycles.append(edge)
                continue

            ancestors.add(neighbour)
            children = self._tree(
                neighbour, neighbours, limit, ancestors, cycles, reverse, depth + 1
            )
            ancestors.discard(neighbour)
            nodes.append(DependencyNode(neighbour, depth + 1, children))
        return nodes


def _count(nodes: List[DependencyNode]) -> int:
    return sum(1 + _count(node.children) for node in nodes)


def _deduplicate(cycles: List[CycleEdge]) -> List[CycleEdge]:
    """``(A, B)`` and ``(B, A)`` are the same cycle edge."""
    seen: Set[frozenset] = set()
    unique: List[CycleEdge] = []
    for cycle in cycles:
        key = frozenset((cycle.source, cycle.target))
        if key not in seen:
            seen.add(key)
            unique.append(cycle)
    return unique
