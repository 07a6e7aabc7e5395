"""Tests for heading slug generation."""

import pytest

from docgraph_cli.slug import Slugger


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Get Started!", "get-started"),
        ("Hello World", "hello-world"),
        ("  Padded Title  ", "padded-title"),
        ("C++ & Rust", "c-rust"),
        ("multiple   spaces", "multiple-spaces"),
        ("already-slugged", "already-slugged"),
        ("snake_case_name", "snake-case-name"),
        ("Über Größe", "über-größe"),
        ("Version 2.0", "version-20"),
        ("", ""),
    ],
)
def test_slugify(text: str, expected: str):
    assert Slugger().slugify(text) == expected


def test_callable_matches_slugify(slugger: Slugger):
    assert slugger("Get Started!") == slugger.slugify("Get Started!")


def test_results_are_memoised(slugger: Slugger):
    slugger("One")
    slugger("One")
    slugger("Two")
    assert slugger.cache_size == 2


def test_clear_empties_cache(slugger: Slugger):
    slugger("One")
    slugger.clear()
    assert slugger.cache_size == 0
    assert slugger("One") == "one"


def test_instances_do_not_share_state():
    first = Slugger()
    second = Slugger()
    first("Shared?")
    assert second.cache_size == 0
