"""DocGraph CLI: link graph, orphan and anchor checks for markdown docs."""

__version__ = "0.1.0"
