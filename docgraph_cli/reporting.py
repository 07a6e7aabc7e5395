"""Human and machine readable rendering of findings and dependency reports."""

from __future__ import annotations

import json
from typing import Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from .models import (
    RULE_DEAD_LINK,
    SEVERITY_ERROR,
    DependencyNode,
    DependencyReport,
    Finding,
)
from .paths import PathLike, normalize_path, relative_to

FINDING_FORMATS = ("text", "json", "grep")
DEPENDENCY_FORMATS = ("tree", "list", "json")


def _display(base_path: Optional[str], path: str) -> str:
    return relative_to(base_path, path) if base_path else path


# ===================================================================
# Findings
# ===================================================================

def findings_to_json(findings: List[Finding], base_path: Optional[PathLike] = None) -> str:
    base = normalize_path(base_path) if base_path is not None else None
    payload = []
    for finding in findings:
        item = finding.to_dict()
        item["file"] = _display(base, finding.file)
        payload.append(item)
    return json.dumps(payload, indent=2)


def findings_to_grep(findings: List[Finding], base_path: Optional[PathLike] = None) -> str:
    """One tab-separated line per finding, eight fields each."""
    base = normalize_path(base_path) if base_path is not None else None
    lines = []
    for f in findings:
        fields = [
            _display(base, f.file),
            str(f.line),
            str(f.column),
            str(f.end_column) if f.end_column is not None else "",
            f.severity,
            f.rule,
            f.literal or "",
            f.resolved_path or f.message,
        ]
        lines.append("\t".join(fields))
    return "\n".join(lines)


def render_findings_text(
    findings: List[Finding],
    console: Console,
    base_path: Optional[PathLike] = None,
) -> None:
    base = normalize_path(base_path) if base_path is not None else None
    if not findings:
        console.print("[green]✓ No issues found[/green]")
        return

    by_file: Dict[str, List[Finding]] = {}
    for finding in findings:
        by_file.setdefault(finding.file, []).append(finding)

    for path, items in by_file.items():
        console.print(f"[bold]{escape(_display(base, path))}[/bold]")
        for f in items:
            color = "red" if f.severity == SEVERITY_ERROR else "yellow"
            detail = escape(f.message)
            if f.rule == RULE_DEAD_LINK and f.literal:
                detail = f"Dead link: {escape(f.literal)} resolves to {escape(f.resolved_path or '')}"
            elif f.literal:
                detail = f"{detail} ({escape(f.literal)})"
            console.print(
                f"  {f.line}:{f.column}  [{color}]{f.severity}[/{color}]  {detail}  [dim]{f.rule}[/dim]"
            )
        console.print()

    errors = sum(1 for f in findings if f.severity == SEVERITY_ERROR)
    warnings = len(findings) - errors
    color = "red" if errors else "yellow"
    console.print(
        f"[{color}]✗ {errors} error{'s' if errors != 1 else ''}, "
        f"{warnings} warning{'s' if warnings != 1 else ''}[/{color}]"
    )


# ===================================================================
# Dependency reports
# ===================================================================

def dependency_report_json(report: DependencyReport, base_path: Optional[PathLike] = None) -> str:
    base = normalize_path(base_path) if base_path is not None else None
    payload = report.to_dict()
    if base:
        _relativise_payload(payload, base)
    return json.dumps(payload, indent=2)


def _relativise_payload(payload: dict, base: str) -> None:
    payload["file"] = relative_to(base, payload["file"])

    def walk(nodes: list) -> None:
        for node in nodes:
            node["path"] = relative_to(base, node["path"])
            if node.get("cycleTarget"):
                node["cycleTarget"] = relative_to(base, node["cycleTarget"])
            walk(node["children"])

    walk(payload["incoming"])
    walk(payload["outgoing"])
    for cycle in payload["cycles"]:
        cycle["from"] = relative_to(base, cycle["from"])
        cycle["to"] = relative_to(base, cycle["to"])


def render_dependency_tree(
    report: DependencyReport,
    console: Console,
    base_path: Optional[PathLike] = None,
    show_incoming: bool = True,
    show_outgoing: bool = True,
) -> None:
    base = normalize_path(base_path) if base_path is not None else None
    console.print(f"[bold]{escape(_display(base, report.file))}[/bold]")
    console.print("─" * 50, style="dim")

    sections = []
    if show_incoming:
        count = report.stats.incoming_count
        sections.append(("cyan", f"Incoming ({count} referencing this file)", report.incoming))
    if show_outgoing:
        count = report.stats.outgoing_count
        sections.append(("magenta", f"Outgoing ({count} referenced by this file)", report.outgoing))

    for color, title, nodes in sections:
        if not nodes:
            console.print(f"[{color}]{title.split(' (')[0]}:[/{color}] [dim]None[/dim]")
            continue
        tree = Tree(f"[{color}]{title}:[/{color}]")
        _add_branches(tree, nodes, base)
        console.print(tree)

    _render_cycles(report, console, base)


def _add_branches(parent: Tree, nodes: List[DependencyNode], base: Optional[str]) -> None:
    for node in nodes:
        label = escape(_display(base, node.path))
        if node.is_cycle:
            parent.add(f"{label} [yellow]\\[cycle detected][/yellow]")
            continue
        branch = parent.add(label)
        _add_branches(branch, node.children, base)


def render_dependency_list(
    report: DependencyReport,
    console: Console,
    base_path: Optional[PathLike] = None,
    show_incoming: bool = True,
    show_outgoing: bool = True,
) -> None:
    base = normalize_path(base_path) if base_path is not None else None
    console.print(f"[bold]{escape(_display(base, report.file))}[/bold]")
    console.print("─" * 50, style="dim")

    if show_incoming:
        _render_flat(console, "[cyan]Incoming:[/cyan]", report.incoming, base)
    if show_outgoing:
        _render_flat(console, "[magenta]Outgoing:[/magenta]", report.outgoing, base)

    console.print(
        f"Total: {report.stats.incoming_count} incoming, {report.stats.outgoing_count} outgoing"
    )
    if report.cycles:
        console.print(f"[yellow]{len(report.cycles)} cycle(s) detected[/yellow]")


def flatten_tree(nodes: List[DependencyNode]) -> List[str]:
    """Unique paths in pre-order, skipping cycle leaves' subtrees."""
    seen: Dict[str, None] = {}

    def visit(node: DependencyNode) -> None:
        seen.setdefault(node.path, None)
        if node.is_cycle:
            return
        for child in node.children:
            visit(child)

    for node in nodes:
        visit(node)
    return list(seen)


def _render_flat(console: Console, title: str, nodes: List[DependencyNode], base: Optional[str]) -> None:
    console.print(title)
    paths = flatten_tree(nodes)
    if not paths:
        console.print("[dim]None[/dim]")
    for path in paths:
        console.print(f"- {escape(_display(base, path))}")
    console.print()


def _render_cycles(report: DependencyReport, console: Console, base: Optional[str]) -> None:
    if not report.cycles:
        return
    count = len(report.cycles)
    console.print(f"[yellow]{count} cycle{'s' if count != 1 else ''} detected:[/yellow]")
    for cycle in report.cycles:
        console.print(
            f"[yellow]  - {escape(_display(base, cycle.source))} → {escape(_display(base, cycle.target))}[/yellow]"
        )
