import logging
from typing import Any, Dict, List, Optional

import requests

from config import SEARCH_LIMIT
from models import BookRecord, CoverId

logger = logging.getLogger(__name__)

SEARCH_URL = "https://openlibrary.org/search.json"
COVER_URL_TEMPLATE = "https://covers.openlibrary.org/b/id/{cover_id}-{size}.jpg"

RECORD_FIELDS = [
    "key",
    "title",
    "author_name",
    "first_publish_year",
    "cover_i",
]

FILTER_MODES = ("all", "hasCover")


def fetch_books(query: str, limit: int = SEARCH_LIMIT) -> List[Dict[str, Any]]:
    """Fetch raw search docs from Open Library. Any failure yields an empty list."""
    try:
        response = requests.get(
            SEARCH_URL,
            params={"q": query, "limit": str(limit)},
            timeout=15,
        )
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as error:
        logger.warning("Unable to reach Open Library: %s", error)
        return []

    docs = data.get("docs", []) if isinstance(data, dict) else []
    return [doc for doc in docs or [] if isinstance(doc, dict)]


def apply_filter(docs: List[Dict[str, Any]], mode: str = "all") -> List[Dict[str, Any]]:
    if mode not in FILTER_MODES:
        raise ValueError(f"Unknown filter {mode!r}; expected one of {', '.join(FILTER_MODES)}.")
    if mode == "hasCover":
        return [doc for doc in docs if doc.get("cover_i")]
    return list(docs)


def build_record(doc: Dict[str, Any]) -> Optional[BookRecord]:
    """Reduce an Open Library doc to the fields kept in favorites."""
    return BookRecord.from_dict({field: doc.get(field) for field in RECORD_FIELDS})


def build_records(docs: List[Dict[str, Any]]) -> List[BookRecord]:
    records = [build_record(doc) for doc in docs]
    return [record for record in records if record is not None]


def cover_url(cover_id: Optional[CoverId], size: str = "M") -> Optional[str]:
    if not cover_id:
        return None
    return COVER_URL_TEMPLATE.format(cover_id=cover_id, size=size)


def describe_record(record: BookRecord, index: int) -> str:
    """Return a printable description for a book record."""
    lines = [
        f"{index}. {record.title or 'Untitled'}",
        f"   Author(s): {record.authors or 'Unknown author'}",
    ]
    if record.first_publish_year:
        lines.append(f"   First published: {record.first_publish_year}")
    url = cover_url(record.cover_i)
    if url:
        lines.append(f"   Cover: {url}")
    return "\n".join(lines)
