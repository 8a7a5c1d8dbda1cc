from __future__ import annotations

from collections import Counter
from typing import Iterable, List, Tuple

from stores import HistoryStore

TermCount = Tuple[str, int]


def top_terms(entries: Iterable[str], k: int) -> List[TermCount]:
    """Return the ``k`` most frequent lower-cased terms with their counts.

    Terms with equal counts keep the order in which they were first seen.
    """
    if k <= 0:
        return []
    counts = Counter(entry.lower() for entry in entries)
    ranked = sorted(
        enumerate(counts.items()),
        key=lambda item: (-item[1][1], item[0]),
    )
    return [(term, count) for _, (term, count) in ranked[:k]]


def format_top_terms(pairs: List[TermCount]) -> str:
    return ", ".join(f"{term} ({count})" for term, count in pairs) or "-"


class StatsEngine:
    """Derives search statistics from the history log on every call."""

    def __init__(self, history: HistoryStore):
        self.history = history

    def top_terms(self, k: int) -> List[TermCount]:
        return top_terms(self.history.list_history(), k)
