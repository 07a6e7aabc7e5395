"""Path identity, scope boundary and markdown file discovery."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Sequence, Union

if TYPE_CHECKING:
    from .exclusion import ExclusionMatcher

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSION = ".md"

PathLike = Union[str, "os.PathLike[str]"]


def normalize_path(path: PathLike) -> str:
    """Canonical node identity: absolute, normalised, no trailing slash."""
    return os.path.abspath(os.fspath(path))


def relative_to(base: PathLike, path: PathLike) -> str:
    """*path* relative to *base* with forward slashes (may start with ``..``)."""
    rel = os.path.relpath(normalize_path(path), normalize_path(base))
    return rel.replace(os.sep, "/")


def is_within(root: PathLike, path: PathLike) -> bool:
    rel = os.path.relpath(normalize_path(path), normalize_path(root))
    return not (rel == os.pardir or rel.startswith(os.pardir + os.sep) or os.path.isabs(rel))


def common_ancestor(paths: Sequence[PathLike]) -> str:
    """Deepest directory containing every file in *paths*."""
    directories = [os.path.dirname(normalize_path(p)) for p in paths]
    if not directories:
        return normalize_path(os.getcwd())
    return os.path.commonpath(directories)


def file_exists(path: PathLike) -> bool:
    return os.path.isfile(path)


def path_exists(path: PathLike) -> bool:
    """Files and directories both count as valid link targets."""
    return os.path.exists(path)


class Scope:
    """Directory boundary outside of which documents are not traversed.

    A disabled scope contains every path.
    """

    def __init__(self, root: Optional[PathLike], enabled: bool = True) -> None:
        self.root = normalize_path(root) if root is not None else None
        self.enabled = enabled and self.root is not None

    def contains(self, path: PathLike) -> bool:
        if not self.enabled:
            return True
        return is_within(self.root, path)

    def __repr__(self) -> str:
        state = self.root if self.enabled else "disabled"
        return f"Scope({state})"


def find_markdown_files(
    directory: PathLike,
    exclusions: Optional["ExclusionMatcher"] = None,
) -> List[str]:
    """Recursively list markdown files under *directory*.

    Excluded directories are pruned whole; excluded files are dropped.
    Results are sorted per directory for stable output.
    """
    root = normalize_path(directory)
    if not os.path.isdir(root):
        logger.warning("Directory not found for markdown scan: %s", root)
        return []

    found: List[str] = []
    for current, dirnames, filenames in os.walk(root):
        if exclusions is not None:
            dirnames[:] = [
                d for d in dirnames
                if not exclusions.should_exclude_directory(os.path.join(current, d))
            ]
        dirnames.sort()
        for name in sorted(filenames):
            if not name.endswith(MARKDOWN_EXTENSION):
                continue
            full = os.path.join(current, name)
            if exclusions is not None and exclusions.should_exclude(full):
                continue
            found.append(full)
    return found


def resolve_link(source_file: PathLike, link_path: str) -> str:
    """Resolve a relative link target against its containing document."""
    return normalize_path(Path(normalize_path(source_file)).parent / link_path)
