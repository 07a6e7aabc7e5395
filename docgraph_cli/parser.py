"""Markdown parsing built on Tree-sitter.

The markdown grammar is split in two: a *block* grammar that finds
headings, paragraphs, lists and code blocks, and an *inline* grammar that
is run over every inline region to find links.  Only what the graph needs
is kept: headings (text, level, line) and inline links (destination plus
1-based line/column span).  Links inside code blocks or code spans never
reach the inline pass, so they are ignored naturally.
"""

from __future__ import annotations

import html
import logging
import re
from abc import ABC, abstractmethod
from typing import Iterator, List, Optional, Sequence

import tree_sitter_markdown
from tree_sitter import Language, Node as TSNode, Parser as TSParser

from .models import Heading, Link, MarkdownDocument

logger = logging.getLogger(__name__)

HEADING_TYPES = {"atx_heading", "setext_heading"}
INLINE_CONTAINER_TYPES = {"inline", "pipe_table_cell"}

_ATX_CLOSING_RE = re.compile(r"(?:^|\s+)#+\s*$")
_INLINE_LINK_RE = re.compile(r"!?\[([^\]]*)\]\([^)]*\)")
# Backslash-escaped ASCII punctuation, or an HTML entity reference.
_ESCAPE_RE = re.compile(
    r"\\([!-/:-@\[-`{-~])"
    r"|&(?:#[0-9]{1,7}|#[xX][0-9a-fA-F]{1,6}|[A-Za-z][A-Za-z0-9]{1,31});"
)


# ===================================================================
# Abstract Parser Interface
# ===================================================================

class MarkdownParser(ABC):
    """Turns markdown source into a :class:`MarkdownDocument`."""

    @abstractmethod
    def parse(self, source: str) -> MarkdownDocument:
        ...


# ===================================================================
# Tree-sitter Parser
# ===================================================================

class TreeSitterMarkdownParser(MarkdownParser):
    """Markdown parser using the ``tree-sitter-markdown`` grammars.

    Language objects are loaded once per instance; a fresh Tree-sitter
    ``Parser`` is created per document so one instance can be shared by
    the validator's worker threads.
    """

    def __init__(self) -> None:
        self._block_language = Language(tree_sitter_markdown.language())
        self._inline_language = Language(tree_sitter_markdown.inline_language())

    def parse(self, source: str) -> MarkdownDocument:
        source_bytes = source.encode("utf-8")
        lines = source_bytes.split(b"\n")
        block_tree = TSParser(self._block_language).parse(source_bytes)
        inline_parser = TSParser(self._inline_language)

        document = MarkdownDocument()
        for node in _walk(block_tree.root_node, stop_at=INLINE_CONTAINER_TYPES):
            if node.type in HEADING_TYPES:
                document.headings.append(_heading_from_node(node))
            elif node.type in INLINE_CONTAINER_TYPES:
                document.links.extend(_links_in_region(inline_parser, node, lines))
        return document


# ===================================================================
# Helpers
# ===================================================================

def _walk(root: TSNode, stop_at: Sequence[str] = ()) -> Iterator[TSNode]:
    """Pre-order traversal; nodes whose type is in *stop_at* are yielded
    but not descended into."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        if node.type in stop_at:
            continue
        stack.extend(reversed(node.children))


def _first_of_type(root: TSNode, node_type: str) -> Optional[TSNode]:
    for node in _walk(root):
        if node.type == node_type:
            return node
    return None


def _heading_from_node(node: TSNode) -> Heading:
    level = 1
    for child in node.children:
        if child.type.startswith("atx_h") and child.type.endswith("_marker"):
            level = int(child.type[len("atx_h")])
        elif child.type == "setext_h2_underline":
            level = 2

    inline = _first_of_type(node, "inline")
    text = inline.text.decode("utf-8", errors="replace") if inline is not None else ""
    return Heading(text=_plain_heading_text(text), level=level, line=node.start_point[0] + 1)


def _plain_heading_text(raw: str) -> str:
    text = " ".join(part.strip() for part in raw.splitlines())
    text = _ATX_CLOSING_RE.sub("", text)
    return _INLINE_LINK_RE.sub(r"\1", text).strip()


def _links_in_region(
    inline_parser: TSParser,
    region: TSNode,
    lines: List[bytes],
) -> List[Link]:
    """Run the inline grammar over one block region and collect its links."""
    tree = inline_parser.parse(region.text)
    base_row, base_col = region.start_point

    links: List[Link] = []
    for node in _walk(tree.root_node, stop_at=("inline_link", "image")):
        if node.type != "inline_link":
            continue
        destination = _first_of_type(node, "link_destination")
        url = _clean_destination(destination.text) if destination is not None else ""

        start_row, start_col = _absolute_point(node.start_point, base_row, base_col)
        end_row, end_col = _absolute_point(node.end_point, base_row, base_col)
        end_column = _char_column(lines, end_row, end_col) if end_row == start_row else None
        links.append(
            Link(
                url=url,
                line=start_row + 1,
                column=_char_column(lines, start_row, start_col),
                end_column=end_column,
            )
        )
    return links


def _clean_destination(raw: bytes) -> str:
    url = raw.decode("utf-8", errors="replace").strip()
    if url.startswith("<") and url.endswith(">"):
        url = url[1:-1]
    return _ESCAPE_RE.sub(_unescape_match, url)


def _unescape_match(match: "re.Match[str]") -> str:
    if match.group(1) is not None:
        return match.group(1)
    return html.unescape(match.group(0))


def _absolute_point(point, base_row: int, base_col: int):
    row, col = point
    if row == 0:
        return base_row, base_col + col
    return base_row + row, col


def _char_column(lines: List[bytes], row: int, byte_col: int) -> int:
    """Convert a 0-based byte offset within a line to a 1-based column."""
    if row >= len(lines):
        return byte_col + 1
    return len(lines[row][:byte_col].decode("utf-8", errors="replace")) + 1
