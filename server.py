from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Response, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from api import cover_url
from config import TOP_TERMS_LIMIT, setup_logging
from library import Library, SearchOutcome
from models import BookRecord
from stores import DuplicateError, ValidationError


# -----------------------------------------------------------------------------
# Application setup
# -----------------------------------------------------------------------------

setup_logging()

app = FastAPI(title="Bookshelf API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173", "*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_library() -> Library:
    if not hasattr(get_library, "_instance"):
        get_library._instance = Library.open()
    return get_library._instance  # type: ignore[attr-defined]


@app.on_event("shutdown")
def _shutdown() -> None:
    library = getattr(get_library, "_instance", None)
    if isinstance(library, Library):
        library.close()


# -----------------------------------------------------------------------------
# Pydantic models
# -----------------------------------------------------------------------------


class ProfilePayload(BaseModel):
    name: str = ""
    genre: str = ""


class FavoriteCreate(BaseModel):
    record: Dict[str, Any]


class TermCountModel(BaseModel):
    term: str
    count: int


class SearchResponse(BaseModel):
    query: str
    results: List[Dict[str, Any]]
    top_terms: List[TermCountModel] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Helper utilities
# -----------------------------------------------------------------------------


def _serialize_record(record: BookRecord) -> Dict[str, Any]:
    payload = record.to_dict()
    payload["cover_url"] = cover_url(record.cover_i)
    return payload


def _serialize_terms(pairs: List[tuple]) -> List[TermCountModel]:
    return [TermCountModel(term=term, count=count) for term, count in pairs]


def _search_response(outcome: SearchOutcome) -> SearchResponse:
    return SearchResponse(
        query=outcome.query,
        results=[_serialize_record(record) for record in outcome.results],
        top_terms=_serialize_terms(outcome.top_terms),
    )


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------


@app.get("/api/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/api/profile")
def get_profile(library: Library = Depends(get_library)) -> Dict[str, str]:
    profile = library.profiles.get_profile()
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No profile saved")
    return profile.to_dict()


@app.put("/api/profile")
def put_profile(payload: ProfilePayload, library: Library = Depends(get_library)) -> Dict[str, str]:
    try:
        profile = library.profiles.set_profile(payload.name, payload.genre)
    except ValidationError as error:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error))
    return profile.to_dict()


@app.get("/api/favorites")
def list_favorites(library: Library = Depends(get_library)) -> List[Dict[str, Any]]:
    return [_serialize_record(record) for record in library.favorites.list_favorites()]


@app.post("/api/favorites", status_code=status.HTTP_201_CREATED)
def add_favorite(payload: FavoriteCreate, library: Library = Depends(get_library)) -> Dict[str, Any]:
    try:
        record = library.favorites.add_favorite(payload.record)
    except ValidationError as error:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error))
    except DuplicateError as error:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    return _serialize_record(record)


@app.delete("/api/favorites", status_code=status.HTTP_204_NO_CONTENT)
def remove_favorite(key: str = Query(..., min_length=1), library: Library = Depends(get_library)) -> Response:
    library.favorites.remove_favorite(key)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/api/history")
def list_history(library: Library = Depends(get_library)) -> List[str]:
    return library.history.list_history()


@app.get("/api/stats/top", response_model=List[TermCountModel])
def top_terms(
    k: int = Query(TOP_TERMS_LIMIT, ge=0, le=100),
    library: Library = Depends(get_library),
) -> List[TermCountModel]:
    return _serialize_terms(library.top_terms(k))


@app.get("/api/search", response_model=SearchResponse)
def search(
    q: Optional[str] = Query(None),
    filter: str = Query("all", pattern="^(all|hasCover)$"),
    library: Library = Depends(get_library),
) -> SearchResponse:
    try:
        outcome = library.search(q or "", filter)
    except ValidationError as error:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error))
    return _search_response(outcome)


@app.get("/api/recommendation", response_model=SearchResponse)
def recommendation(
    filter: str = Query("all", pattern="^(all|hasCover)$"),
    library: Library = Depends(get_library),
) -> SearchResponse:
    return _search_response(library.recommend(filter))
