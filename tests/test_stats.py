from __future__ import annotations

from pathlib import Path

from stats import StatsEngine, format_top_terms, top_terms
from storage import KeyValueStore
from stores import HistoryStore


def test_case_variants_are_counted_together(tmp_path: Path) -> None:
    kv = KeyValueStore(db_path=tmp_path / "stats.db")
    history = HistoryStore(kv)
    for term in ["Dune", "dune", "Dune"]:
        history.record_search(term)

    assert StatsEngine(history).top_terms(1) == [("dune", 3)]
    kv.close()


def test_empty_history_has_no_terms() -> None:
    assert top_terms([], 3) == []


def test_fewer_terms_than_requested() -> None:
    assert top_terms(["a", "B", "b"], 5) == [("b", 2), ("a", 1)]


def test_ties_keep_first_seen_order() -> None:
    entries = ["Austen", "tolkien", "Le Guin", "austen", "TOLKIEN", "herbert"]
    assert top_terms(entries, 3) == [("austen", 2), ("tolkien", 2), ("le guin", 1)]


def test_non_positive_k_returns_nothing() -> None:
    assert top_terms(["a"], 0) == []
    assert top_terms(["a"], -2) == []


def test_engine_recomputes_after_each_append(tmp_path: Path) -> None:
    kv = KeyValueStore(db_path=tmp_path / "stats.db")
    history = HistoryStore(kv)
    engine = StatsEngine(history)

    history.record_search("fantasy")
    assert engine.top_terms(3) == [("fantasy", 1)]
    history.record_search("science")
    history.record_search("Science")
    assert engine.top_terms(3) == [("science", 2), ("fantasy", 1)]
    kv.close()


def test_format_top_terms() -> None:
    assert format_top_terms([("dune", 3), ("tolkien", 1)]) == "dune (3), tolkien (1)"
    assert format_top_terms([]) == "-"
