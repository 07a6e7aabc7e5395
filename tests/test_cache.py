"""Tests for the markdown content cache."""

from pathlib import Path

import pytest

from docgraph_cli.cache import MarkdownCache, is_scheme_qualified, split_fragment
from docgraph_cli.errors import ContentReadError


def test_is_scheme_qualified():
    assert is_scheme_qualified("https://example.com")
    assert is_scheme_qualified("mailto:someone@example.com")
    assert not is_scheme_qualified("guide.md")
    assert not is_scheme_qualified("./dir/guide.md#x")


def test_split_fragment():
    assert split_fragment("a.md#x") == ("a.md", "x")
    assert split_fragment("a.md") == ("a.md", None)
    assert split_fragment("a.md#") == ("a.md", "")


class TestMarkdownCache:
    """Memoisation and derived data."""

    def test_get_content(self, cache: MarkdownCache, write_docs):
        root = write_docs({"a.md": "# A\n"})
        assert cache.get_content(root / "a.md") == "# A\n"

    def test_content_is_cached(self, cache: MarkdownCache, write_docs):
        root = write_docs({"a.md": "# A\n"})
        cache.get_content(root / "a.md")
        (root / "a.md").write_text("# Changed\n", encoding="utf-8")

        assert cache.get_content(root / "a.md") == "# A\n"

    def test_missing_file_raises(self, cache: MarkdownCache, temp_dir: Path):
        with pytest.raises(ContentReadError) as exc_info:
            cache.get_content(temp_dir / "missing.md")
        assert exc_info.value.path == str(temp_dir / "missing.md")

    def test_ast_is_parsed_once(self, cache: MarkdownCache, write_docs):
        root = write_docs({"a.md": "# A\n"})
        assert cache.get_ast(root / "a.md") is cache.get_ast(str(root / "a.md"))

    def test_heading_slugs(self, cache: MarkdownCache, write_docs):
        root = write_docs({"a.md": "# Intro\n\n## Get Started!\n"})
        assert cache.get_heading_slugs(root / "a.md") == ["intro", "get-started"]

    def test_outgoing_link_targets(self, cache: MarkdownCache, write_docs):
        root = write_docs(
            {
                "a.md": (
                    "[a](a2.md) [b](b.md#sec) [c](#local) "
                    "[d](https://example.com/d.md) [e](image.png) [f](my%20doc.md)\n"
                )
            }
        )
        assert cache.get_outgoing_link_targets(root / "a.md") == ["a2.md", "b.md", "my doc.md"]

    def test_clear_and_stats(self, cache: MarkdownCache, write_docs):
        root = write_docs({"a.md": "abc", "b.md": "é"})
        cache.get_content(root / "a.md")
        cache.get_content(root / "b.md")

        stats = cache.stats()
        assert stats.cached_file_count == 2
        assert stats.total_content_bytes == 5

        cache.clear()
        assert cache.stats().cached_file_count == 0
