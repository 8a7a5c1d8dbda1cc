from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from library import Library
from server import app, get_library


DOCS: List[Dict[str, Any]] = [
    {
        "key": "/works/OL45804W",
        "title": "Dune",
        "author_name": ["Frank Herbert"],
        "first_publish_year": 1965,
        "cover_i": 11481354,
    },
    {"key": "/works/OL2W", "title": "Coverless"},
]


def _reset_library_singleton() -> None:
    if hasattr(get_library, "_instance"):
        instance = getattr(get_library, "_instance")
        if isinstance(instance, Library):
            instance.close()
        delattr(get_library, "_instance")


@pytest.fixture
def library(tmp_path: Path) -> Library:
    _reset_library_singleton()
    test_library = Library.open(tmp_path / "server.db", search_fn=lambda query: DOCS)
    app.dependency_overrides[get_library] = lambda: test_library
    yield test_library
    test_library.close()
    app.dependency_overrides.pop(get_library, None)
    _reset_library_singleton()


@pytest.fixture
def client(library: Library) -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_profile_endpoints(client: TestClient) -> None:
    assert client.get("/api/profile").status_code == 404

    response = client.put("/api/profile", json={"name": "Ann", "genre": "fiction"})
    assert response.status_code == 200
    assert response.json() == {"name": "Ann", "genre": "fiction"}

    response = client.put("/api/profile", json={"name": "", "genre": "fantasy"})
    assert response.status_code == 422

    assert client.get("/api/profile").json() == {"name": "Ann", "genre": "fiction"}


def test_favorite_lifecycle(client: TestClient) -> None:
    response = client.post("/api/favorites", json={"record": DOCS[0]})
    assert response.status_code == 201
    assert response.json()["cover_url"] == "https://covers.openlibrary.org/b/id/11481354-M.jpg"

    response = client.post("/api/favorites", json={"record": DOCS[0]})
    assert response.status_code == 409

    response = client.post("/api/favorites", json={"record": {"title": "no key"}})
    assert response.status_code == 422

    favorites = client.get("/api/favorites").json()
    assert [book["key"] for book in favorites] == ["/works/OL45804W"]

    response = client.delete("/api/favorites", params={"key": "/works/OL45804W"})
    assert response.status_code == 204
    response = client.delete("/api/favorites", params={"key": "/works/OL45804W"})
    assert response.status_code == 204
    assert client.get("/api/favorites").json() == []


def test_search_records_history_and_returns_top_terms(client: TestClient) -> None:
    for term in ["Dune", "dune"]:
        response = client.get("/api/search", params={"q": term})
        assert response.status_code == 200

    payload = response.json()
    assert payload["query"] == "dune"
    assert [book["title"] for book in payload["results"]] == ["Dune", "Coverless"]
    assert payload["top_terms"] == [{"term": "dune", "count": 2}]

    response = client.get("/api/search", params={"q": "dune", "filter": "hasCover"})
    assert [book["title"] for book in response.json()["results"]] == ["Dune"]

    assert client.get("/api/history").json() == ["Dune", "dune", "dune"]
    assert client.get("/api/stats/top", params={"k": 1}).json() == [{"term": "dune", "count": 3}]


def test_blank_search_is_rejected(client: TestClient) -> None:
    assert client.get("/api/search", params={"q": "  "}).status_code == 422
    assert client.get("/api/search").status_code == 422
    assert client.get("/api/history").json() == []


def test_recommendation_uses_profile(client: TestClient, library: Library) -> None:
    library.profiles.set_profile("Ann", "science")
    response = client.get("/api/recommendation")
    assert response.status_code == 200
    assert response.json()["query"] == "science"
    assert library.history.list_history() == ["science"]
