"""Tests for lint orchestration and rule severities."""

from pathlib import Path

from docgraph_cli.config import DocGraphConfig, validate_config
from docgraph_cli.linter import ORPHAN_MESSAGE, DocLinter
from docgraph_cli.models import (
    RULE_DEAD_ANCHOR,
    RULE_DEAD_LINK,
    RULE_ORPHAN_FILES,
    SEVERITY_ERROR,
    SEVERITY_WARNING,
)


def _docs(write_docs) -> Path:
    return write_docs(
        {
            "README.md": "# Home\n\n[guide](guide.md) [gone](gone.md) [bad](#nope)\n",
            "guide.md": "# Guide\n",
            "extra.md": "# Extra\n",
        }
    )


class TestDocLinter:

    def test_orphans_come_first(self, write_docs):
        root = _docs(write_docs)
        results = DocLinter(DocGraphConfig()).lint(root)

        findings = results.findings()
        assert [f.rule for f in findings] == [RULE_ORPHAN_FILES, RULE_DEAD_LINK, RULE_DEAD_ANCHOR]
        assert findings[0].file == str(root / "extra.md")
        assert findings[0].message == ORPHAN_MESSAGE
        assert (findings[0].line, findings[0].column) == (0, 0)
        assert results.orphans == [str(root / "extra.md")]

    def test_counts(self, write_docs):
        results = DocLinter(DocGraphConfig()).lint(_docs(write_docs))

        assert results.error_count == 3
        assert results.warning_count == 0
        assert results.has_errors()
        assert results.graph.file_count == 2
        assert results.cache_stats.cached_file_count == 2

    def test_clean_docs(self, chain_docs: Path):
        results = DocLinter(DocGraphConfig()).lint(chain_docs)
        assert results.findings() == []
        assert not results.has_errors()

    def test_rule_off_and_warn(self, write_docs):
        config = validate_config({"rules": {"orphan-files": "off", "dead-anchor": "warn"}})
        results = DocLinter(config).lint(_docs(write_docs))

        findings = results.findings()
        assert [(f.rule, f.severity) for f in findings] == [
            (RULE_DEAD_LINK, SEVERITY_ERROR),
            (RULE_DEAD_ANCHOR, SEVERITY_WARNING),
        ]
        assert results.warning_count == 1

    def test_depth_limit_skips_orphans(self, write_docs):
        config = validate_config({"depth": 0})
        results = DocLinter(config).lint(_docs(write_docs))
        assert results.orphans == []

    def test_config_entrypoint(self, write_docs):
        root = write_docs({"index.md": "[a](a.md)\n", "a.md": ""})
        results = DocLinter(validate_config({"entrypoint": "index.md"})).lint(root)
        assert results.findings() == []

    def test_multiple_entrypoints(self, write_docs):
        root = write_docs({"a.md": "", "b.md": "", "c.md": ""})
        results = DocLinter(DocGraphConfig()).lint(root, ["a.md", "b.md"])

        assert results.graph.file_count == 2
        assert results.orphans == [str(root / "c.md")]

    def test_cli_excludes(self, write_docs):
        root = _docs(write_docs)
        results = DocLinter(DocGraphConfig(), cli_excludes=["extra.md"]).lint(root)
        assert results.orphans == []

    def test_ignore_file_relative_to_base(self, write_docs):
        root = _docs(write_docs)
        write_docs({"lint/ignore": "extra.md\n"})
        results = DocLinter(validate_config({"ignore_file": "lint/ignore"})).lint(root)
        assert results.orphans == []
