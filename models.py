from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

CoverId = Union[int, str]


def _filled_text(value: Any) -> Optional[str]:
    """Return ``value`` unchanged when it is a string with visible characters."""
    if isinstance(value, str) and value.strip():
        return value
    return None


@dataclass(frozen=True)
class Profile:
    """The single saved user profile."""

    name: str
    genre: str

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Profile"]:
        if not isinstance(data, dict):
            return None
        name = _filled_text(data.get("name"))
        genre = _filled_text(data.get("genre"))
        if name is None or genre is None:
            return None
        return cls(name=name, genre=genre)

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "genre": self.genre}


@dataclass(frozen=True)
class BookRecord:
    """A catalog result reduced to the fields kept in favorites."""

    key: str
    title: str = ""
    author_name: Optional[List[str]] = field(default=None, hash=False)
    first_publish_year: Optional[int] = None
    cover_i: Optional[CoverId] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["BookRecord"]:
        """Build a record from a stored or raw catalog mapping.

        Returns None when ``data`` is not a mapping or has no usable ``key``.
        Optional fields of the wrong shape are dropped rather than rejected.
        """
        if not isinstance(data, dict):
            return None
        key = data.get("key")
        if not isinstance(key, str) or not key.strip():
            return None

        title = data.get("title")
        authors = data.get("author_name")
        if isinstance(authors, list):
            author_name: Optional[List[str]] = [str(a) for a in authors if isinstance(a, str)]
        else:
            author_name = None

        year = data.get("first_publish_year")
        if isinstance(year, bool) or not isinstance(year, int):
            year = None

        cover = data.get("cover_i")
        if isinstance(cover, bool) or not isinstance(cover, (int, str)) or cover == "":
            cover = None

        return cls(
            key=key,
            title=title if isinstance(title, str) else "",
            author_name=author_name,
            first_publish_year=year,
            cover_i=cover,
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON form; absent optional fields are omitted."""
        payload: Dict[str, Any] = {"key": self.key, "title": self.title}
        if self.author_name is not None:
            payload["author_name"] = list(self.author_name)
        if self.first_publish_year is not None:
            payload["first_publish_year"] = self.first_publish_year
        if self.cover_i is not None:
            payload["cover_i"] = self.cover_i
        return payload

    @property
    def authors(self) -> str:
        return ", ".join(self.author_name or [])


def parse_history_entry(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None
