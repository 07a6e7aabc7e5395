"""Typer-based CLI for DocGraph documentation checks."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Tuple

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import (
    PROJECT_CONFIG_NAME,
    DocGraphConfig,
    load_config,
    load_config_with_sources,
    parse_depth,
    write_starter_config,
)
from .content import FORMATS as CAT_FORMATS, ORDERS, ContentOutputter
from .dependency import DependencyAnalyzer
from .errors import DocGraphError, ExitCode, UsageError
from .graph import DocGraph
from .linter import DocLinter
from .models import ExternalLinkPolicy
from .paths import normalize_path, relative_to
from .reporting import (
    DEPENDENCY_FORMATS,
    FINDING_FORMATS,
    dependency_report_json,
    findings_to_grep,
    findings_to_json,
    render_dependency_list,
    render_dependency_tree,
    render_findings_text,
)

console = Console(soft_wrap=True, highlight=False)
err_console = Console(stderr=True, soft_wrap=True, highlight=False)

app = typer.Typer(
    help="📚 DocGraph CLI: link graph, orphan and anchor checks for markdown docs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"DocGraph CLI v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    package_logger = logging.getLogger("docgraph_cli")
    package_logger.handlers = [RichHandler(console=err_console, show_path=False, show_time=False)]
    package_logger.setLevel(level)
    package_logger.propagate = False


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors."),
):
    """DocGraph CLI: find dead links, dead anchors and orphaned markdown files."""
    _configure_logging(verbose, quiet)


# ------------------------------------------------------------------
# Shared helpers
# ------------------------------------------------------------------

def _split_target(path: Path, entrypoint: Optional[str]) -> Tuple[Path, Optional[str]]:
    """A file argument becomes (its directory, its name); a directory is the base."""
    resolved = path.resolve()
    if not resolved.exists():
        raise typer.BadParameter(f"Path not found: {path}")
    if resolved.is_file():
        return resolved.parent, entrypoint or resolved.name
    return resolved, entrypoint


def _load(base: Path, config_path: Optional[Path], overrides: Dict[str, Any]) -> DocGraphConfig:
    try:
        return load_config(base, config_path, overrides)
    except UsageError as exc:
        err_console.print(f"[red]✗ {escape(str(exc))}[/red]")
        raise typer.Exit(code=ExitCode.USAGE_ERROR)


def _fail(exc: DocGraphError) -> NoReturn:
    err_console.print(f"[red]✗ {escape(str(exc))}[/red]")
    code = ExitCode.USAGE_ERROR if isinstance(exc, UsageError) else ExitCode.ERROR
    raise typer.Exit(code=code)


def _unescape(text: str) -> str:
    return text.replace("\\n", "\n").replace("\\t", "\t")


def _check_choice(value: str, choices, option: str) -> None:
    if value not in choices:
        raise typer.BadParameter(f"{option} must be one of: {', '.join(choices)}")


FILE_SORTS = ("graph", "alpha", "depth", "incoming", "outgoing")


def _sort_files(paths: List[str], graph: DocGraph, sort: str) -> List[str]:
    """Graph order is discovery order; the count sorts put the busiest files first."""
    if sort == "alpha":
        return sorted(paths)
    if sort == "depth":
        def by_depth(p: str):
            level = graph.get_depth(p)
            return (float("inf") if level is None else level, p)

        return sorted(paths, key=by_depth)
    if sort == "incoming":
        return sorted(paths, key=lambda p: (-len(graph.get_incoming_links(p)), p))
    if sort == "outgoing":
        return sorted(paths, key=lambda p: (-len(graph.get_outgoing_links(p)), p))
    return list(paths)


# ------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------

@app.command("lint")
def lint(
    paths: Optional[List[Path]] = typer.Argument(None, help="Docs directory, entry file, or several entry files."),
    entrypoint: Optional[str] = typer.Option(None, "--entrypoint", "-e", help="Entrypoint file (overrides config)."),
    depth: Optional[str] = typer.Option(None, "--depth", help="Maximum traversal depth or 'unlimited'."),
    fmt: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: text, json or grep."),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-x", help="Gitignore-style pattern (repeatable)."),
    respect_gitignore: Optional[bool] = typer.Option(
        None, "--respect-gitignore/--no-respect-gitignore", help="Apply .gitignore patterns."
    ),
    exclude_hidden: Optional[bool] = typer.Option(
        None, "--exclude-hidden/--no-exclude-hidden", help="Skip hidden files and directories."
    ),
    scope_limit: Optional[bool] = typer.Option(
        None, "--scope-limit/--no-scope-limit", help="Do not traverse outside the scope root."
    ),
    scope_root: Optional[Path] = typer.Option(None, "--scope-root", help="Explicit scope root directory."),
    external_links: Optional[str] = typer.Option(
        None, "--external-links", help="Out-of-scope links: validate, warn, error or ignore."
    ),
    max_concurrency: Optional[int] = typer.Option(
        None, "--max-concurrency", min=1, max=100, help="Files validated concurrently."
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Explicit TOML config file."),
):
    """Lint documentation: orphans, dead links and dead anchors."""
    paths = paths or [Path(".")]
    if fmt is not None:
        _check_choice(fmt, FINDING_FORMATS, "--format")
    if external_links is not None:
        _check_choice(external_links, [p.value for p in ExternalLinkPolicy], "--external-links")

    entrypoints: Optional[List[str]] = None
    if len(paths) > 1:
        if entrypoint:
            raise typer.BadParameter("Cannot use --entrypoint with multiple file paths")
        base = Path.cwd().resolve()
        for p in paths:
            if not p.exists():
                raise typer.BadParameter(f"File not found: {p}")
            if p.is_dir():
                raise typer.BadParameter(f"Cannot mix directories and files: {p}")
        entrypoints = [relative_to(base, p) for p in paths]
    else:
        base, entrypoint = _split_target(paths[0], entrypoint)

    overrides: Dict[str, Any] = {
        "entrypoint": entrypoint,
        "depth": depth,
        "format": fmt,
        "respect_gitignore": respect_gitignore,
        "exclude_hidden": exclude_hidden,
        "scope_limit": scope_limit,
        "scope_root": str(scope_root.resolve()) if scope_root is not None else None,
        "external_links": external_links,
        "max_concurrency": max_concurrency,
    }
    config = _load(base, config_path, overrides)

    try:
        results = DocLinter(config, cli_excludes=exclude).lint(base, entrypoints)
    except DocGraphError as exc:
        _fail(exc)
    except KeyboardInterrupt:
        err_console.print("[yellow]Interrupted[/yellow]")
        raise typer.Exit(code=ExitCode.INTERRUPTED)

    findings = results.findings()
    if config.format == "json":
        typer.echo(findings_to_json(findings, base))
    elif config.format == "grep":
        if findings:
            typer.echo(findings_to_grep(findings, base))
    else:
        console.print(f"[bold]Linting:[/bold] {escape(str(base))}")
        console.print(f"Reachable files: {results.graph.file_count}")
        console.print()
        render_findings_text(findings, console, base)

    raise typer.Exit(code=ExitCode.ERROR if results.has_errors() else ExitCode.SUCCESS)


@app.command("deps")
def deps(
    file: Path = typer.Argument(..., help="Markdown file to analyze."),
    incoming: bool = typer.Option(False, "--incoming", help="Only show files referencing this file."),
    outgoing: bool = typer.Option(False, "--outgoing", help="Only show files this file references."),
    depth: str = typer.Option("unlimited", "--depth", help="Maximum tree depth or 'unlimited'."),
    fmt: str = typer.Option("tree", "--format", "-f", help="Output format: tree, list or json."),
    root: Path = typer.Option(Path("."), "--root", "-r", help="Documentation root directory."),
    entrypoint: Optional[str] = typer.Option(None, "--entrypoint", "-e", help="Entrypoint file (overrides config)."),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Explicit TOML config file."),
):
    """Show incoming and outgoing dependencies of one file."""
    _check_choice(fmt, DEPENDENCY_FORMATS, "--format")
    base = root.resolve()
    config = _load(base, config_path, {"entrypoint": entrypoint})
    try:
        max_depth = parse_depth(depth)
    except UsageError as exc:
        raise typer.BadParameter(str(exc))

    linter = DocLinter(config)
    try:
        graph = linter.make_builder(base).build(config.entrypoint, config.depth)
    except DocGraphError as exc:
        _fail(exc)

    target = normalize_path(base / file) if not file.is_absolute() else normalize_path(file)
    if not graph.has_file(target):
        err_console.print(f"[red]✗ File not found in dependency graph: {escape(str(file))}[/red]")
        err_console.print("The file may be orphaned or outside the documentation tree.")
        raise typer.Exit(code=ExitCode.ERROR)

    include_incoming = incoming or not outgoing
    include_outgoing = outgoing or not incoming
    report = DependencyAnalyzer(graph).analyze(
        target,
        include_incoming=include_incoming,
        include_outgoing=include_outgoing,
        max_depth=max_depth,
    )

    if fmt == "json":
        typer.echo(dependency_report_json(report, base))
    elif fmt == "list":
        render_dependency_list(report, console, base, include_incoming, include_outgoing)
    else:
        render_dependency_tree(report, console, base, include_incoming, include_outgoing)


@app.command("files")
def files(
    path: Path = typer.Argument(Path("."), help="Docs directory or entry file."),
    entrypoint: Optional[str] = typer.Option(None, "--entrypoint", "-e", help="Entrypoint file (overrides config)."),
    depth: Optional[str] = typer.Option(None, "--depth", help="Maximum traversal depth or 'unlimited'."),
    orphans: bool = typer.Option(False, "--orphans", help="List orphaned files instead of reachable ones."),
    fmt: str = typer.Option("list", "--format", "-f", help="Output format: list or json."),
    sort: str = typer.Option("graph", "--sort", help="Sort by: graph, alpha, depth, incoming or outgoing."),
    absolute: bool = typer.Option(False, "--absolute", help="Print absolute paths."),
    with_depth: bool = typer.Option(False, "--with-depth", help="Prefix each path with its depth (list format)."),
    print0: bool = typer.Option(False, "--print0", help="Separate paths with NUL (for xargs -0)."),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-x", help="Gitignore-style pattern (repeatable)."),
    respect_gitignore: Optional[bool] = typer.Option(
        None, "--respect-gitignore/--no-respect-gitignore", help="Apply .gitignore patterns."
    ),
    exclude_hidden: Optional[bool] = typer.Option(
        None, "--exclude-hidden/--no-exclude-hidden", help="Skip hidden files and directories."
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Explicit TOML config file."),
):
    """List files reachable from the entrypoint (or the orphans)."""
    _check_choice(fmt, ("list", "json"), "--format")
    _check_choice(sort, FILE_SORTS, "--sort")
    base, entrypoint = _split_target(path, entrypoint)
    config = _load(
        base,
        config_path,
        {
            "entrypoint": entrypoint,
            "depth": depth,
            "respect_gitignore": respect_gitignore,
            "exclude_hidden": exclude_hidden,
        },
    )

    linter = DocLinter(config, cli_excludes=exclude)
    try:
        builder = linter.make_builder(base)
        graph = builder.build(config.entrypoint, config.depth)
        if orphans:
            listed = builder.find_orphans(graph, depth_limited=config.depth_limited)
        else:
            listed = graph.get_all_files()
    except DocGraphError as exc:
        _fail(exc)
    listed = _sort_files(listed, graph, sort)

    def display(p: str) -> str:
        return p if absolute else relative_to(base, p)

    if fmt == "json":
        payload = [
            {"file": display(p), "depth": graph.get_depth(p), "orphan": orphans} for p in listed
        ]
        typer.echo(json.dumps(payload, indent=2))
        return

    lines = []
    for p in listed:
        if with_depth:
            level = graph.get_depth(p)
            lines.append(f"{'orphan' if level is None else level} {display(p)}")
        else:
            lines.append(display(p))
    if print0:
        typer.echo("\0".join(lines), nl=False)
    else:
        for line in lines:
            typer.echo(line)


@app.command("cat")
def cat(
    path: Path = typer.Argument(Path("."), help="Docs directory or entry file."),
    selected: Optional[List[Path]] = typer.Argument(
        None, help="Only print these files (relative to the docs directory)."
    ),
    entrypoint: Optional[str] = typer.Option(None, "--entrypoint", "-e", help="Entrypoint file (overrides config)."),
    depth: Optional[str] = typer.Option(None, "--depth", help="Maximum traversal depth or 'unlimited'."),
    order: str = typer.Option("deps", "--order", help="File order: deps, alpha or graph."),
    fmt: str = typer.Option("markdown", "--format", "-f", help="Output format: markdown or json."),
    separator: str = typer.Option("\\n\\n", "--separator", help="Text between files (escapes allowed)."),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-x", help="Gitignore-style pattern (repeatable)."),
    respect_gitignore: Optional[bool] = typer.Option(
        None, "--respect-gitignore/--no-respect-gitignore", help="Apply .gitignore patterns."
    ),
    exclude_hidden: Optional[bool] = typer.Option(
        None, "--exclude-hidden/--no-exclude-hidden", help="Skip hidden files and directories."
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Explicit TOML config file."),
):
    """Print every reachable document, leaves first by default."""
    _check_choice(order, ORDERS, "--order")
    _check_choice(fmt, CAT_FORMATS, "--format")
    base, entrypoint = _split_target(path, entrypoint)
    config = _load(
        base,
        config_path,
        {
            "entrypoint": entrypoint,
            "depth": depth,
            "respect_gitignore": respect_gitignore,
            "exclude_hidden": exclude_hidden,
        },
    )

    linter = DocLinter(config, cli_excludes=exclude)
    try:
        graph = linter.make_builder(base).build(config.entrypoint, config.depth)
    except DocGraphError as exc:
        _fail(exc)

    only = None
    if selected:
        only = [normalize_path(base / p) for p in selected]
        missing = [p for p in only if not graph.has_file(p)]
        if missing:
            err_console.print("[red]✗ The following files are not in the documentation graph:[/red]")
            for p in missing:
                err_console.print(f"  - {escape(relative_to(base, p))}")
            err_console.print("Files may be orphaned or outside the documentation tree.")
            raise typer.Exit(code=ExitCode.USAGE_ERROR)

    try:
        outputter = ContentOutputter(graph, linter.cache, base)
        text = outputter.render(order, fmt, _unescape(separator), only=only)
    except DocGraphError as exc:
        _fail(exc)

    if text:
        typer.echo(text)


@app.command("init")
def init(
    config_path: Path = typer.Option(
        Path(PROJECT_CONFIG_NAME), "--config", "-c", help="Where to write the starter config."
    ),
):
    """Write a starter configuration file."""
    target = config_path.resolve()
    try:
        write_starter_config(target)
    except FileExistsError:
        err_console.print(f"[red]✗ Configuration file already exists: {escape(str(target))}[/red]")
        raise typer.Exit(code=ExitCode.ERROR)
    except OSError as exc:
        err_console.print(f"[red]✗ Failed to create configuration: {escape(str(exc))}[/red]")
        raise typer.Exit(code=ExitCode.ERROR)

    console.print(f"[green]✓[/green] Created configuration file: {escape(str(target))}")
    console.print()
    console.print("Next steps:")
    console.print("  1. Edit the configuration to match your project")
    console.print("  2. Run: dg lint")


@app.command("config")
def show_config(
    path: Path = typer.Argument(Path("."), help="Docs directory whose configuration is shown."),
    sources: bool = typer.Option(False, "--sources", help="Show which layer set each value."),
    fmt: str = typer.Option("text", "--format", "-f", help="Output format: text or json."),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Explicit TOML config file."),
):
    """Show the effective configuration after merging every layer."""
    _check_choice(fmt, ("text", "json"), "--format")
    base, _ = _split_target(path, None)
    try:
        config, origin = load_config_with_sources(base, config_path)
    except UsageError as exc:
        _fail(exc)

    values = config.to_dict()
    if fmt == "json":
        if sources:
            payload: Dict[str, Any] = {
                key: {"value": value, "source": origin[key]} for key, value in values.items()
            }
        else:
            payload = values
        typer.echo(json.dumps(payload, indent=2))
        return

    table = Table(title="DocGraph configuration", show_header=True, show_lines=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    if sources:
        table.add_column("Source", style="dim")
    for key, value in values.items():
        row = [key, escape(json.dumps(value))]
        if sources:
            row.append(origin[key])
        table.add_row(*row)
    console.print(table)


if __name__ == "__main__":
    app()
