"""In-memory directed graph of markdown documents."""

from __future__ import annotations

from typing import Dict, List, Optional

from .paths import PathLike, normalize_path


class DocGraph:
    """Nodes are absolute file paths with a depth; edges mean "links to".

    Forward and reverse adjacency are kept in step.  Insertion order of
    nodes (depth-first pre-order from the entry points) and of edges
    (document order of links) is preserved by every query.

    Edges may point at paths that are not nodes, e.g. a link leaving the
    scope boundary or a target that does not exist.
    """

    def __init__(self) -> None:
        self._depths: Dict[str, int] = {}
        self._outgoing: Dict[str, Dict[str, None]] = {}
        self._incoming: Dict[str, Dict[str, None]] = {}

    # ------------------------------------------------------------------
    # Mutation (builder phase only)
    # ------------------------------------------------------------------

    def add_file(self, path: PathLike, depth: int) -> None:
        self._depths[normalize_path(path)] = depth

    def add_edge(self, source: PathLike, target: PathLike) -> None:
        src = normalize_path(source)
        dst = normalize_path(target)
        self._outgoing.setdefault(src, {})[dst] = None
        self._incoming.setdefault(dst, {})[src] = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_file(self, path: PathLike) -> bool:
        return normalize_path(path) in self._depths

    def get_all_files(self) -> List[str]:
        return list(self._depths)

    def get_outgoing_links(self, path: PathLike) -> List[str]:
        return list(self._outgoing.get(normalize_path(path), ()))

    def get_incoming_links(self, path: PathLike) -> List[str]:
        return list(self._incoming.get(normalize_path(path), ()))

    def get_depth(self, path: PathLike) -> Optional[int]:
        return self._depths.get(normalize_path(path))

    @property
    def file_count(self) -> int:
        return len(self._depths)

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self._outgoing.values())

    def __len__(self) -> int:
        return len(self._depths)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.has_file(path)

    def get_files_in_dependency_order(self) -> List[str]:
        """Leaves first: every file comes after the files it links to.

        Post-order depth-first walk over forward edges that land on graph
        nodes.  A node is marked before its dependencies are expanded, so
        an edge back into the current path (a cycle, including a
        self-loop) counts as already satisfied and each node is emitted
        exactly once.
        """
        order: List[str] = []
        seen: Dict[str, None] = {}

        for root in self._depths:
            if root in seen:
                continue
            seen[root] = None
            stack = [(root, iter(self._outgoing.get(root, ())))]
            while stack:
                node, targets = stack[-1]
                for target in targets:
                    if target in self._depths and target not in seen:
                        seen[target] = None
                        stack.append((target, iter(self._outgoing.get(target, ()))))
                        break
                else:
                    stack.pop()
                    order.append(node)
        return order
