from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from api import FILTER_MODES, apply_filter, build_records, fetch_books
from config import FALLBACK_GENRES, HISTORY_LIMIT, TOP_TERMS_LIMIT
from models import BookRecord
from stats import StatsEngine, TermCount
from storage import KeyValueStore, get_store
from stores import FavoritesStore, HistoryStore, ProfileStore, ValidationError

logger = logging.getLogger(__name__)

SearchFunction = Callable[[str], List[Dict[str, Any]]]


@dataclass
class SearchOutcome:
    query: str
    results: List[BookRecord] = field(default_factory=list)
    top_terms: List[TermCount] = field(default_factory=list)


class Library:
    """Profile, favorites, history and stats sharing one key-value store."""

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        search_fn: SearchFunction = fetch_books,
        history_limit: Optional[int] = HISTORY_LIMIT,
        rng: Optional[random.Random] = None,
    ):
        self.kv = kv
        self.search_fn = search_fn
        self.rng = rng or random.Random()
        self.profiles = ProfileStore(kv)
        self.favorites = FavoritesStore(kv)
        self.history = HistoryStore(kv, max_entries=history_limit)
        self.stats = StatsEngine(self.history)

    @classmethod
    def open(cls, db_path: Optional[Union[Path, str]] = None, **kwargs: Any) -> "Library":
        return cls(get_store(db_path), **kwargs)

    def close(self) -> None:
        self.kv.close()

    def top_terms(self, k: int = TOP_TERMS_LIMIT) -> List[TermCount]:
        return self.stats.top_terms(k)

    def search(self, query: str, filter_mode: str = "all") -> SearchOutcome:
        """Record ``query`` in history, then look it up in the catalog."""
        query = (query or "").strip()
        if not query:
            raise ValidationError("Enter a search term.")
        if filter_mode not in FILTER_MODES:
            raise ValidationError(f"Unknown filter {filter_mode!r}.")

        self.history.record_search(query)
        terms = self.top_terms()

        docs = self.search_fn(query)
        results = build_records(apply_filter(docs, filter_mode))
        logger.info("Search %r returned %d result(s)", query, len(results))
        return SearchOutcome(query=query, results=results, top_terms=terms)

    def recommendation_term(self) -> str:
        profile = self.profiles.get_profile()
        if profile:
            return profile.genre
        return self.rng.choice(FALLBACK_GENRES)

    def recommend(self, filter_mode: str = "all") -> SearchOutcome:
        return self.search(self.recommendation_term(), filter_mode)
