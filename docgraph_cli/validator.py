"""Link and anchor validation over the files of a built graph.

Only files that are nodes of the graph are validated.  Each link is
classified from the cached document:

- scheme-qualified (``https://``, ``mailto:``): skipped
- ``#fragment`` only: checked against the same file's headings
- ``path[#fragment]``: the path must exist (a file or a directory); the
  fragment, if any, is then checked against the target file's headings

The external link policy only decides what is reported for targets outside
the scope; a missing target is a dead link under every policy.

Files are validated on a bounded thread pool.  Findings are returned in
graph order per file and document order per link, whatever order the
checks complete in.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional
from urllib.parse import unquote

from .cache import MarkdownCache, is_scheme_qualified, split_fragment
from .errors import ContentReadError
from .graph import DocGraph
from .models import (
    RULE_DEAD_ANCHOR,
    RULE_DEAD_LINK,
    RULE_EXTERNAL_LINK,
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    ExternalLinkPolicy,
    Finding,
    Link,
)
from .paths import PathLike, Scope, file_exists, normalize_path, path_exists, relative_to, resolve_link
from .slug import Slugger

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 10
LINK_CHECK_WORKERS = 4


class LinkValidator:
    """Validates every file and anchor link of the files in a graph."""

    def __init__(
        self,
        base_path: PathLike,
        graph: DocGraph,
        cache: Optional[MarkdownCache] = None,
        slugger: Optional[Slugger] = None,
        scope: Optional[Scope] = None,
        external_policy: ExternalLinkPolicy = ExternalLinkPolicy.VALIDATE,
    ) -> None:
        self.base_path = normalize_path(base_path)
        self.graph = graph
        self.cache = cache or MarkdownCache(slugger=slugger)
        self.slugger = slugger or self.cache.slugger
        self.scope = scope or Scope(None, enabled=False)
        self.external_policy = ExternalLinkPolicy(external_policy)

    def validate(self, concurrency: int = DEFAULT_CONCURRENCY) -> List[Finding]:
        """Validate all graph files with at most *concurrency* in flight.

        The first read error raised by a file task is re-raised once all
        dispatched tasks have finished.
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")

        files = self.graph.get_all_files()
        findings: List[Finding] = []
        with ThreadPoolExecutor(
            max_workers=LINK_CHECK_WORKERS, thread_name_prefix="LinkCheck"
        ) as link_pool, ThreadPoolExecutor(
            max_workers=concurrency, thread_name_prefix="FileValidator"
        ) as file_pool:
            futures = [file_pool.submit(self._validate_file, path, link_pool) for path in files]
            for future in futures:
                findings.extend(future.result())

        logger.info("Validated %d files: %d findings", len(files), len(findings))
        return findings

    # ------------------------------------------------------------------
    # Per file
    # ------------------------------------------------------------------

    def _validate_file(self, path: str, link_pool: ThreadPoolExecutor) -> List[Finding]:
        document = self.cache.get_ast(path)
        results = link_pool.map(lambda link: self._check_link(path, link), document.links)
        findings: List[Finding] = []
        for link_findings in results:
            findings.extend(link_findings)
        return findings

    def _check_link(self, source: str, link: Link) -> List[Finding]:
        url = link.url
        if not url or is_scheme_qualified(url):
            return []

        if url.startswith("#"):
            finding = self._check_anchor(url[1:], source, source, link)
            return [finding] if finding else []

        path_part, fragment = split_fragment(url)
        if not path_part:
            return []
        target = resolve_link(source, unquote(path_part))

        outside = not self.scope.contains(target)
        ignored = outside and self.external_policy == ExternalLinkPolicy.IGNORE

        findings: List[Finding] = []
        exists = path_exists(target)
        if not exists:
            findings.append(self._dead_link(source, target, link))
        elif fragment and not ignored and file_exists(target):
            finding = self._check_anchor(fragment, target, source, link)
            if finding:
                findings.append(finding)

        if outside:
            external = self._external_link(source, target, link, exists)
            if external:
                findings.append(external)
        return findings

    # ------------------------------------------------------------------
    # Individual checks
    # ------------------------------------------------------------------

    def _check_anchor(self, fragment: str, target: str, source: str, link: Link) -> Optional[Finding]:
        try:
            slugs = self.cache.get_heading_slugs(target)
        except ContentReadError as exc:
            # Fail open: the file-existence check already passed, so this is
            # an incidental read failure rather than a broken link.
            logger.warning("Skipping anchor check #%s in %s: %s", fragment, target, exc)
            return None

        if self.slugger(unquote(fragment)) in slugs:
            return None
        return Finding(
            rule=RULE_DEAD_ANCHOR,
            severity=SEVERITY_ERROR,
            file=source,
            line=link.line,
            column=link.column,
            end_column=link.end_column,
            message=f"Dead anchor: #{fragment} in {relative_to(self.base_path, target)}",
            literal=link.url,
        )

    def _dead_link(self, source: str, target: str, link: Link) -> Finding:
        rel = relative_to(self.base_path, target)
        return Finding(
            rule=RULE_DEAD_LINK,
            severity=SEVERITY_ERROR,
            file=source,
            line=link.line,
            column=link.column,
            end_column=link.end_column,
            message=f"Dead link: {rel}",
            literal=link.url,
            resolved_path=rel,
        )

    def _external_link(self, source: str, target: str, link: Link, exists: bool) -> Optional[Finding]:
        if self.external_policy == ExternalLinkPolicy.WARN and exists:
            severity = SEVERITY_WARNING
        elif self.external_policy == ExternalLinkPolicy.ERROR:
            severity = SEVERITY_ERROR
        else:
            return None

        rel = relative_to(self.base_path, target)
        scope_rel = relative_to(self.base_path, self.scope.root) if self.scope.root else "."
        return Finding(
            rule=RULE_EXTERNAL_LINK,
            severity=severity,
            file=source,
            line=link.line,
            column=link.column,
            end_column=link.end_column,
            message=f"External link: {rel} is outside scope {scope_rel}",
            literal=link.url,
            resolved_path=rel,
        )
