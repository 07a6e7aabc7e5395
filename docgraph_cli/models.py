"""Core data models shared by the graph, validation and reporting layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

RULE_ORPHAN_FILES = "orphan-files"
RULE_DEAD_LINK = "dead-link"
RULE_DEAD_ANCHOR = "dead-anchor"
RULE_EXTERNAL_LINK = "external-link"

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"


class ExternalLinkPolicy(str, Enum):
    """What to do with an existing link target outside the scope root."""

    VALIDATE = "validate"
    WARN = "warn"
    ERROR = "error"
    IGNORE = "ignore"


# ---------------------------------------------------------------------------
# Parsed markdown
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Heading:
    text: str
    level: int
    line: int


@dataclass(frozen=True)
class Link:
    """An inline link; line/column are 1-based, end_column is exclusive."""

    url: str
    line: int
    column: int
    end_column: Optional[int] = None


@dataclass
class MarkdownDocument:
    headings: List[Heading] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Findings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Finding:
    rule: str
    severity: str
    file: str
    line: int
    column: int
    message: str
    end_column: Optional[int] = None
    literal: Optional[str] = None
    resolved_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "rule": self.rule,
            "severity": self.severity,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "message": self.message,
        }
        if self.end_column is not None:
            payload["endColumn"] = self.end_column
        if self.literal is not None:
            payload["literal"] = self.literal
        if self.resolved_path is not None:
            payload["resolvedPath"] = self.resolved_path
        return payload


# ---------------------------------------------------------------------------
# Dependency reports
# ---------------------------------------------------------------------------

@dataclass
class DependencyNode:
    path: str
    depth: int
    children: List["DependencyNode"] = field(default_factory=list)
    is_cycle: bool = False
    cycle_target: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "path": self.path,
            "depth": self.depth,
            "children": [child.to_dict() for child in self.children],
        }
        if self.is_cycle:
            payload["isCycle"] = True
            payload["cycleTarget"] = self.cycle_target
        return payload


@dataclass(frozen=True)
class CycleEdge:
    source: str
    target: str


@dataclass
class DependencyStats:
    incoming_count: int = 0
    outgoing_count: int = 0
    cycles_detected: int = 0


@dataclass
class DependencyReport:
    file: str
    incoming: List[DependencyNode] = field(default_factory=list)
    outgoing: List[DependencyNode] = field(default_factory=list)
    cycles: List[CycleEdge] = field(default_factory=list)
    stats: DependencyStats = field(default_factory=DependencyStats)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "incoming": [node.to_dict() for node in self.incoming],
            "outgoing": [node.to_dict() for node in self.outgoing],
            "cycles": [{"from": c.source, "to": c.target} for c in self.cycles],
            "stats": {
                "incomingCount": self.stats.incoming_count,
                "outgoingCount": self.stats.outgoing_count,
                "cyclesDetected": self.stats.cycles_detected,
            },
        }


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CacheStats:
    cached_file_count: int
    total_content_bytes: int


@dataclass
class ExclusionStats:
    builtin: int = 0
    gitignore: int = 0
    ignorefile: int = 0
    config: int = 0
    cli: int = 0

    @property
    def total(self) -> int:
        return self.builtin + self.gitignore + self.ignorefile + self.config + self.cli
