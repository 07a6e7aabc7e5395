"""Tests for the in-memory document graph."""

from pathlib import Path

from docgraph_cli.graph import DocGraph


def _graph(temp_dir: Path, edges, nodes=None) -> DocGraph:
    graph = DocGraph()
    for name in nodes or sorted({n for edge in edges for n in edge}):
        graph.add_file(temp_dir / name, 0)
    for src, dst in edges:
        graph.add_edge(temp_dir / src, temp_dir / dst)
    return graph


def test_add_file_and_depth(temp_dir: Path):
    graph = DocGraph()
    graph.add_file(temp_dir / "a.md", 0)
    graph.add_file(temp_dir / "b.md", 2)

    assert graph.has_file(temp_dir / "a.md")
    assert str(temp_dir / "b.md") in graph
    assert graph.get_depth(temp_dir / "b.md") == 2
    assert graph.get_depth(temp_dir / "c.md") is None
    assert len(graph) == 2


def test_paths_are_normalised(temp_dir: Path):
    graph = DocGraph()
    graph.add_file(temp_dir / "sub" / ".." / "a.md", 0)
    assert graph.get_all_files() == [str(temp_dir / "a.md")]


def test_edges_keep_insertion_order(temp_dir: Path):
    graph = _graph(temp_dir, [("a.md", "c.md"), ("a.md", "b.md"), ("a.md", "c.md")])

    assert graph.get_outgoing_links(temp_dir / "a.md") == [str(temp_dir / "c.md"), str(temp_dir / "b.md")]
    assert graph.get_incoming_links(temp_dir / "b.md") == [str(temp_dir / "a.md")]
    assert graph.edge_count == 2


def test_edges_may_target_non_nodes(temp_dir: Path):
    graph = _graph(temp_dir, [("a.md", "missing.md")], nodes=["a.md"])

    assert graph.get_outgoing_links(temp_dir / "a.md") == [str(temp_dir / "missing.md")]
    assert not graph.has_file(temp_dir / "missing.md")


def test_unknown_file_has_no_links(temp_dir: Path):
    graph = DocGraph()
    assert graph.get_outgoing_links(temp_dir / "x.md") == []
    assert graph.get_incoming_links(temp_dir / "x.md") == []


class TestDependencyOrder:
    """Leaves-first ordering."""

    def test_chain(self, temp_dir: Path):
        graph = _graph(temp_dir, [("a.md", "b.md"), ("b.md", "c.md")], nodes=["a.md", "b.md", "c.md"])

        order = graph.get_files_in_dependency_order()
        assert order == [str(temp_dir / n) for n in ("c.md", "b.md", "a.md")]

    def test_cycle_lists_every_node_once(self, temp_dir: Path):
        graph = _graph(
            temp_dir,
            [("a.md", "b.md"), ("b.md", "c.md"), ("c.md", "a.md")],
            nodes=["a.md", "b.md", "c.md"],
        )

        order = graph.get_files_in_dependency_order()
        assert sorted(order) == sorted(graph.get_all_files())
        assert len(order) == 3
        assert order[-1] == str(temp_dir / "a.md")

    def test_self_loop(self, temp_dir: Path):
        graph = _graph(temp_dir, [("a.md", "a.md")], nodes=["a.md"])
        assert graph.get_files_in_dependency_order() == [str(temp_dir / "a.md")]

    def test_non_node_targets_are_skipped(self, temp_dir: Path):
        graph = _graph(temp_dir, [("a.md", "gone.md")], nodes=["a.md"])
        assert graph.get_files_in_dependency_order() == [str(temp_dir / "a.md")]

    def test_disconnected_nodes(self, temp_dir: Path):
        graph = _graph(temp_dir, [("b.md", "c.md")], nodes=["a.md", "b.md", "c.md"])

        order = graph.get_files_in_dependency_order()
        assert order == [str(temp_dir / n) for n in ("a.md", "c.md", "b.md")]
