"""Gitignore-style exclusion patterns merged from several sources.

Sources, lowest priority first:

1. Built-in defaults (``node_modules/`` and, unless disabled, hidden paths)
2. ``.gitignore`` (only when explicitly requested)
3. ``.docgraphignore`` (auto-discovered, or an explicit ignore file)
4. Project configuration ``exclude`` list
5. ``--exclude`` options from the command line

All patterns go into a single :class:`pathspec.GitIgnoreSpec`, so a later
``!negation`` re-includes anything an earlier source excluded.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pathspec

from .models import ExclusionStats
from .paths import PathLike, normalize_path

logger = logging.getLogger(__name__)

IGNORE_FILE_NAME = ".docgraphignore"
GITIGNORE_FILE_NAME = ".gitignore"

DEPENDENCY_DIR_PATTERN = "node_modules/"
HIDDEN_PATH_PATTERN = ".*"


class ExclusionMatcher:
    """Decides whether a path is excluded from traversal and orphan scans."""

    def __init__(
        self,
        base_path: PathLike,
        config_patterns: Optional[Iterable[str]] = None,
        cli_patterns: Optional[Iterable[str]] = None,
        ignore_path: Optional[PathLike] = None,
        respect_gitignore: bool = False,
        gitignore_path: Optional[PathLike] = None,
        exclude_hidden: bool = True,
        use_builtin_patterns: bool = True,
    ) -> None:
        self.base_path = normalize_path(base_path)
        self._stats = ExclusionStats()
        self._patterns: List[str] = []
        self._cache: Dict[str, bool] = {}

        if use_builtin_patterns:
            builtin = [DEPENDENCY_DIR_PATTERN]
            if exclude_hidden:
                builtin.append(HIDDEN_PATH_PATTERN)
            self._patterns.extend(builtin)
            self._stats.builtin = len(builtin)

        if respect_gitignore:
            path = gitignore_path or os.path.join(self.base_path, GITIGNORE_FILE_NAME)
            loaded = _read_ignore_file(path, "gitignore")
            self._patterns.extend(loaded)
            self._stats.gitignore = len(loaded)

        if ignore_path is None:
            discovered = os.path.join(self.base_path, IGNORE_FILE_NAME)
            if os.path.isfile(discovered):
                ignore_path = discovered
        if ignore_path is not None:
            loaded = _read_ignore_file(ignore_path, "ignore file")
            self._patterns.extend(loaded)
            self._stats.ignorefile = len(loaded)

        config = _non_empty(config_patterns)
        self._patterns.extend(config)
        self._stats.config = len(config)

        cli = _non_empty(cli_patterns)
        self._patterns.extend(cli)
        self._stats.cli = len(cli)

        self._spec = pathspec.GitIgnoreSpec.from_lines(self._patterns)
        logger.debug(
            "Exclusions loaded: %d patterns (builtin=%d gitignore=%d ignorefile=%d config=%d cli=%d)",
            self._stats.total,
            self._stats.builtin,
            self._stats.gitignore,
            self._stats.ignorefile,
            self._stats.config,
            self._stats.cli,
        )

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def should_exclude(self, path: PathLike) -> bool:
        key = normalize_path(path)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        rel = self._relative(key)
        result = rel is not None and self._spec.match_file(rel)
        self._cache[key] = result
        return result

    def should_exclude_directory(self, path: PathLike) -> bool:
        if self.should_exclude(path):
            return True
        rel = self._relative(normalize_path(path))
        return rel is not None and self._spec.match_file(rel + "/")

    def filter_paths(self, paths: Iterable[PathLike]) -> List[str]:
        return [normalize_path(p) for p in paths if not self.should_exclude(p)]

    def _relative(self, absolute: str) -> Optional[str]:
        """Base-relative POSIX path, or None when outside the base."""
        rel = os.path.relpath(absolute, self.base_path).replace(os.sep, "/")
        if rel == ".." or rel.startswith("../") or rel == ".":
            return None
        return rel

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def patterns(self) -> List[str]:
        return list(self._patterns)

    def stats(self) -> ExclusionStats:
        return ExclusionStats(**vars(self._stats))

    def clear_cache(self) -> None:
        self._cache.clear()


class NullExclusionMatcher(ExclusionMatcher):
    """Matcher that excludes nothing; the default when none is configured."""

    def __init__(self) -> None:
        self.base_path = normalize_path(os.getcwd())
        self._stats = ExclusionStats()
        self._patterns = []
        self._cache = {}

    def should_exclude(self, path: PathLike) -> bool:
        return False

    def should_exclude_directory(self, path: PathLike) -> bool:
        return False


# ===================================================================
# Helpers
# ===================================================================

def _read_ignore_file(path: PathLike, source: str) -> List[str]:
    """Patterns from an ignore file, minus blank lines and comments."""
    ignore_file = Path(path)
    if not ignore_file.is_file():
        logger.debug("%s not found: %s", source, ignore_file)
        return []
    try:
        content = ignore_file.read_text(encoding="utf-8")
    except OSError as exc:
        logger.error("Failed to load %s %s: %s", source, ignore_file, exc)
        return []
    return [
        line.strip()
        for line in content.splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]


def _non_empty(patterns: Optional[Iterable[str]]) -> List[str]:
    return [p for p in (patterns or []) if p and p.strip()]
