from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from config import STORAGE_KEYS
from models import BookRecord, Profile, parse_history_entry
from storage import KeyValueStore

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """User-supplied input was rejected before anything was persisted."""


class DuplicateError(Exception):
    """A favorite with the same key is already stored."""

    def __init__(self, key: str):
        super().__init__(f"'{key}' is already in favorites")
        self.key = key


class ProfileStore:
    def __init__(self, kv: KeyValueStore, key: str = STORAGE_KEYS["profile"]):
        self.kv = kv
        self.key = key

    def get_profile(self) -> Optional[Profile]:
        return Profile.from_dict(self.kv.load(self.key, None))

    def set_profile(self, name: str, genre: str) -> Profile:
        """Replace the stored profile with exactly ``name`` and ``genre``.

        Raises ValidationError when either is missing or blank after trimming.
        """
        if not isinstance(name, str) or not isinstance(genre, str):
            raise ValidationError("Both name and genre are required.")
        if not name.strip() or not genre.strip():
            raise ValidationError("Both name and genre are required.")
        profile = Profile(name=name, genre=genre)
        self.kv.save(self.key, profile.to_dict())
        logger.debug("Saved profile for %s", name)
        return profile


class FavoritesStore:
    """Favorites kept in insertion order, unique by ``key``."""

    def __init__(self, kv: KeyValueStore, key: str = STORAGE_KEYS["favorites"]):
        self.kv = kv
        self.key = key

    def _load_records(self) -> List[BookRecord]:
        raw = self.kv.load(self.key, [])
        if not isinstance(raw, list):
            logger.warning("Ignoring favorites stored as %s", type(raw).__name__)
            return []
        records: List[BookRecord] = []
        seen = set()
        for item in raw:
            record = BookRecord.from_dict(item)
            if record is None or record.key in seen:
                continue
            seen.add(record.key)
            records.append(record)
        return records

    def _save_records(self, records: List[BookRecord]) -> None:
        self.kv.save(self.key, [record.to_dict() for record in records])

    def list_favorites(self) -> List[BookRecord]:
        return self._load_records()

    def is_favorite(self, key: str) -> bool:
        return any(record.key == key for record in self._load_records())

    def add_favorite(self, record: Union[BookRecord, Dict[str, Any]]) -> BookRecord:
        if not isinstance(record, BookRecord):
            parsed = BookRecord.from_dict(record)
            if parsed is None:
                raise ValidationError("A favorite needs a non-empty 'key'.")
            record = parsed

        with self.kv.transaction(self.key):
            records = self._load_records()
            if any(existing.key == record.key for existing in records):
                raise DuplicateError(record.key)
            records.append(record)
            self._save_records(records)
        logger.debug("Added favorite %s", record.key)
        return record

    def remove_favorite(self, key: str) -> None:
        with self.kv.transaction(self.key):
            records = self._load_records()
            remaining = [record for record in records if record.key != key]
            if len(remaining) == len(records):
                return
            self._save_records(remaining)
        logger.debug("Removed favorite %s", key)


class HistoryStore:
    """Append-only log of raw search terms.

    ``max_entries`` is an optional storage cap; when set only the newest
    entries are kept.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        key: str = STORAGE_KEYS["history"],
        *,
        max_entries: Optional[int] = None,
    ):
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be 1 or greater.")
        self.kv = kv
        self.key = key
        self.max_entries = max_entries

    def list_history(self) -> List[str]:
        raw = self.kv.load(self.key, [])
        if not isinstance(raw, list):
            logger.warning("Ignoring history stored as %s", type(raw).__name__)
            return []
        entries = [parse_history_entry(item) for item in raw]
        return [entry for entry in entries if entry is not None]

    def record_search(self, term: str) -> None:
        if not isinstance(term, str):
            raise ValidationError(f"Search terms must be text, not {type(term).__name__}.")
        with self.kv.transaction(self.key):
            history = self.list_history()
            history.append(term)
            if self.max_entries is not None:
                history = history[-self.max_entries :]
            self.kv.save(self.key, history)
