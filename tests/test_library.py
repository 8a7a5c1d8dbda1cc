from __future__ import annotations

import random
from pathlib import Path
from typing import Any, Dict, List

import pytest

from config import FALLBACK_GENRES
from library import Library
from stores import ValidationError


DOCS: List[Dict[str, Any]] = [
    {"key": "/works/OL1W", "title": "With Cover", "cover_i": 7, "subject": ["x"]},
    {"key": "/works/OL2W", "title": "Without Cover"},
    {"title": "Missing key"},
]


class RecordingSearch:
    def __init__(self, docs: List[Dict[str, Any]]):
        self.docs = docs
        self.queries: List[str] = []

    def __call__(self, query: str) -> List[Dict[str, Any]]:
        self.queries.append(query)
        return self.docs


@pytest.fixture
def search_fn() -> RecordingSearch:
    return RecordingSearch(DOCS)


@pytest.fixture
def library(tmp_path: Path, search_fn: RecordingSearch) -> Library:
    lib = Library.open(tmp_path / "library.db", search_fn=search_fn, history_limit=None)
    yield lib
    lib.close()


def test_search_records_history_and_normalizes(library: Library, search_fn: RecordingSearch) -> None:
    outcome = library.search("  Dune ")

    assert outcome.query == "Dune"
    assert search_fn.queries == ["Dune"]
    assert [record.key for record in outcome.results] == ["/works/OL1W", "/works/OL2W"]
    assert library.history.list_history() == ["Dune"]
    assert outcome.top_terms == [("dune", 1)]


def test_search_with_cover_filter(library: Library) -> None:
    outcome = library.search("dune", "hasCover")
    assert [record.title for record in outcome.results] == ["With Cover"]


def test_blank_search_is_rejected_without_history(library: Library, search_fn: RecordingSearch) -> None:
    with pytest.raises(ValidationError):
        library.search("   ")
    with pytest.raises(ValidationError):
        library.search("dune", "newest")
    assert library.history.list_history() == []
    assert search_fn.queries == []


def test_top_terms_refresh_after_each_search(library: Library) -> None:
    for term in ["Dune", "dune", "Austen", "Dune"]:
        outcome = library.search(term)
    assert outcome.top_terms == [("dune", 3), ("austen", 1)]
    assert library.top_terms(1) == [("dune", 3)]


def test_failed_catalog_lookup_still_records_history(tmp_path: Path) -> None:
    lib = Library.open(tmp_path / "offline.db", search_fn=lambda query: [])
    outcome = lib.search("tolkien")
    assert outcome.results == []
    assert lib.history.list_history() == ["tolkien"]
    lib.close()


def test_recommendation_uses_profile_genre(library: Library, search_fn: RecordingSearch) -> None:
    library.profiles.set_profile("Ann", "romance")
    library.recommend()
    assert search_fn.queries == ["romance"]


def test_recommendation_falls_back_to_random_genre(tmp_path: Path) -> None:
    lib = Library.open(tmp_path / "random.db", search_fn=lambda query: [], rng=random.Random(7))
    term = lib.recommendation_term()
    assert term in FALLBACK_GENRES
    lib.close()


def test_stores_share_one_key_value_store(library: Library) -> None:
    library.profiles.set_profile("Ann", "fiction")
    library.favorites.add_favorite({"key": "/works/OL1W", "title": "With Cover"})
    library.search("dune")
    assert sorted(library.kv.keys()) == ["favs", "history", "prefs"]
