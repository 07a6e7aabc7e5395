"""Lint orchestration: graph, orphans, link validation and rule severities."""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from typing import List, Optional, Sequence

from .builder import GraphBuilder
from .cache import MarkdownCache
from .config import DocGraphConfig
from .exclusion import ExclusionMatcher
from .graph import DocGraph
from .models import (
    RULE_EXTERNAL_LINK,
    RULE_ORPHAN_FILES,
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    CacheStats,
    Finding,
)
from .paths import PathLike, normalize_path
from .slug import Slugger
from .validator import LinkValidator

logger = logging.getLogger(__name__)

ORPHAN_MESSAGE = "Orphaned file: not reachable from entrypoint"


class LintResults:
    """Outcome of one lint run."""

    def __init__(
        self,
        graph: DocGraph,
        orphans: List[str],
        link_findings: List[Finding],
        config: DocGraphConfig,
        cache_stats: Optional[CacheStats] = None,
    ) -> None:
        self.graph = graph
        self.orphans = orphans
        self.link_findings = link_findings
        self.config = config
        self.cache_stats = cache_stats

    def findings(self) -> List[Finding]:
        """Orphans first, then link findings, with rule severities applied."""
        raw = [
            Finding(
                rule=RULE_ORPHAN_FILES,
                severity=SEVERITY_ERROR,
                file=path,
                line=0,
                column=0,
                message=ORPHAN_MESSAGE,
            )
            for path in self.orphans
        ]
        raw.extend(self.link_findings)

        result: List[Finding] = []
        for finding in raw:
            adjusted = self._apply_severity(finding)
            if adjusted is not None:
                result.append(adjusted)
        return result

    def _apply_severity(self, finding: Finding) -> Optional[Finding]:
        # External-link severity is set by the external link policy.
        if finding.rule == RULE_EXTERNAL_LINK:
            return finding
        setting = self.config.rule_severity(finding.rule)
        if setting == "off":
            return None
        if setting == "warn" and finding.severity != SEVERITY_WARNING:
            return replace(finding, severity=SEVERITY_WARNING)
        return finding

    @property
    def error_count(self) -> int:
        return sum(1 for f in self.findings() if f.severity == SEVERITY_ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for f in self.findings() if f.severity == SEVERITY_WARNING)

    def has_errors(self) -> bool:
        return self.error_count > 0


class DocLinter:
    """Runs the whole documentation check for one base directory."""

    def __init__(self, config: DocGraphConfig, cli_excludes: Optional[Sequence[str]] = None) -> None:
        self.config = config
        self.cli_excludes = list(cli_excludes or [])
        self.slugger = Slugger()
        self.cache = MarkdownCache(slugger=self.slugger)

    def make_exclusions(self, base_path: PathLike) -> ExclusionMatcher:
        ignore_file = self.config.ignore_file
        if ignore_file is not None:
            ignore_file = os.path.join(normalize_path(base_path), ignore_file)
        return ExclusionMatcher(
            base_path,
            config_patterns=self.config.exclude,
            cli_patterns=self.cli_excludes,
            ignore_path=ignore_file,
            respect_gitignore=self.config.respect_gitignore,
            exclude_hidden=self.config.exclude_hidden,
        )

    def make_builder(self, base_path: PathLike) -> GraphBuilder:
        scope_root = self.config.scope_root
        if scope_root is not None:
            scope_root = os.path.join(normalize_path(base_path), scope_root)
        return GraphBuilder(
            base_path,
            cache=self.cache,
            exclusions=self.make_exclusions(base_path),
            scope_limit=self.config.scope_limit,
            scope_root=scope_root,
        )

    def lint(self, base_path: PathLike, entrypoints: Optional[Sequence[str]] = None) -> LintResults:
        base = normalize_path(base_path)
        builder = self.make_builder(base)

        logger.info("Building dependency graph...")
        if entrypoints and len(entrypoints) > 1:
            graph = builder.build_from_multiple(entrypoints, self.config.depth)
        else:
            entry = entrypoints[0] if entrypoints else self.config.entrypoint
            graph = builder.build(entry, self.config.depth)
        logger.info("Found %d reachable files", graph.file_count)

        logger.info("Checking for orphaned files...")
        orphans = builder.find_orphans(graph, depth_limited=self.config.depth_limited)

        logger.info("Validating links...")
        validator = LinkValidator(
            base,
            graph,
            cache=self.cache,
            slugger=self.slugger,
            scope=builder.scope,
            external_policy=self.config.external_links,
        )
        link_findings = validator.validate(self.config.max_concurrency)

        return LintResults(
            graph=graph,
            orphans=orphans,
            link_findings=link_findings,
            config=self.config,
            cache_stats=self.cache.stats(),
        )
