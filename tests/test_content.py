"""Tests for concatenated document output."""

import json
from pathlib import Path

import pytest

from docgraph_cli.builder import GraphBuilder
from docgraph_cli.content import ContentOutputter


@pytest.fixture
def outputter(write_docs, cache) -> ContentOutputter:
    root = write_docs(
        {
            "README.md": "# Home\n\n[b](b.md) [a](a.md)\n",
            "b.md": "# B\n\n[a](a.md)\n",
            "a.md": "# A\n",
        }
    )
    graph = GraphBuilder(root, cache=cache).build()
    return ContentOutputter(graph, cache, root)


def _names(paths):
    return [Path(p).name for p in paths]


def test_dependency_order(outputter: ContentOutputter):
    assert _names(outputter.ordered_files("deps")) == ["a.md", "b.md", "README.md"]


def test_alpha_order(outputter: ContentOutputter):
    assert _names(outputter.ordered_files("alpha")) == ["README.md", "a.md", "b.md"]


def test_graph_order(outputter: ContentOutputter):
    assert _names(outputter.ordered_files("graph")) == ["README.md", "b.md", "a.md"]


def test_unknown_order(outputter: ContentOutputter):
    with pytest.raises(ValueError):
        outputter.ordered_files("random")


def test_markdown_render(outputter: ContentOutputter):
    text = outputter.render("deps", separator="\n---\n")
    assert text == "# A\n---\n# B\n\n[a](a.md)\n---\n# Home\n\n[b](b.md) [a](a.md)"


def test_json_render(outputter: ContentOutputter):
    payload = json.loads(outputter.render("graph", fmt="json"))

    assert [item["file"] for item in payload] == ["README.md", "b.md", "a.md"]
    assert payload[2] == {
        "file": "a.md",
        "depth": 2,
        "content": "# A\n",
        "wordCount": 2,
        "lineCount": 2,
    }


def test_unknown_format(outputter: ContentOutputter):
    with pytest.raises(ValueError):
        outputter.render(fmt="html")


def test_only_keeps_order_of_selected_files(outputter: ContentOutputter):
    root = outputter.base_path
    selected = [f"{root}/README.md", f"{root}/a.md"]

    assert _names(outputter.ordered_files("deps", only=selected)) == ["a.md", "README.md"]
    assert outputter.render("alpha", separator="|", only=[f"{root}/a.md"]) == "# A"
