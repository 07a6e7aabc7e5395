"""Pytest configuration and fixtures for DocGraph CLI tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator

import pytest

from docgraph_cli.cache import MarkdownCache
from docgraph_cli.slug import Slugger


@pytest.fixture(autouse=True)
def _isolate_user_config(monkeypatch, tmp_path_factory):
    """Point the user-level config at an empty location.

    A developer's own ``~/.config/docgraph/config.toml`` must never leak
    into test runs.
    """
    home = tmp_path_factory.mktemp("docgraph_home")
    monkeypatch.setattr("docgraph_cli.config.USER_CONFIG_FILE", home / "config.toml")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp()).resolve()
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def write_docs(temp_dir: Path) -> Callable[[Dict[str, str]], Path]:
    """Write ``{relative path: content}`` under ``temp_dir`` and return it."""

    def _write(files: Dict[str, str], root: Path = temp_dir) -> Path:
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _write


@pytest.fixture
def slugger() -> Slugger:
    return Slugger()


@pytest.fixture
def cache(slugger: Slugger) -> MarkdownCache:
    """A fresh cache per test; nothing is shared between tests."""
    return MarkdownCache(slugger=slugger)


@pytest.fixture
def chain_docs(write_docs) -> Path:
    """README -> guide -> api, with anchors and a local section."""
    return write_docs(
        {
            "README.md": (
                "# Project\n\n"
                "Start with the [guide](guide.md).\n\n"
                "## Get Started!\n\n"
                "Jump to [setup](#get-started).\n"
            ),
            "guide.md": (
                "# Guide\n\n"
                "See the [API](api.md#endpoints) and go [home](README.md).\n"
            ),
            "api.md": "# API\n\n## Endpoints\n\nNothing here yet.\n",
        }
    )
