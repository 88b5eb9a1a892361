"""
Movie endpoints backed by the shared TMDb client.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from api.deps import TmdbClient, TmdbConfiguration, tmdb_errors
from tmdb_provider.configuration import ImageHelper

router = APIRouter(tags=["movies"])


# --- Pydantic models ---

class Movie(BaseModel):
    id: int
    title: str | None = None
    original_title: str | None = None
    overview: str | None = None
    release_date: str | None = None
    poster_path: str | None = None
    backdrop_path: str | None = None
    vote_average: float | None = None
    vote_count: int | None = None
    imdb_id: str | None = None


class MovieSearchPage(BaseModel):
    page: int
    total_pages: int = 0
    total_results: int = 0
    results: list[Movie]


class ImageUrl(BaseModel):
    path: str
    size: str
    url: str


def _movie(payload: dict[str, Any]) -> Movie:
    return Movie.model_validate(payload)


@router.get("/movies/{movie_id}", response_model=Movie)
def get_movie(
    movie_id: int,
    client: TmdbClient,
    language: str | None = Query(default=None),
):
    with tmdb_errors("fetching movie"):
        payload = client.get_movie(movie_id, language=language)
    return _movie(payload)


@router.get("/search/movies", response_model=MovieSearchPage)
def search_movies(
    client: TmdbClient,
    query: str = Query(..., min_length=1),
    page: int = Query(default=1, ge=1, le=500),
    language: str | None = Query(default=None),
):
    with tmdb_errors("searching movies"):
        payload = client.search_movies(query, page=page, language=language)
    results = [_movie(item) for item in payload.get("results") or [] if isinstance(item, dict)]
    return MovieSearchPage(
        page=int(payload.get("page") or page),
        total_pages=int(payload.get("total_pages") or 0),
        total_results=int(payload.get("total_results") or 0),
        results=results,
    )


@router.get("/configuration")
def get_configuration(configuration: TmdbConfiguration):
    return configuration.model_dump()


@router.get("/images", response_model=ImageUrl)
def get_image_url(
    configuration: TmdbConfiguration,
    path: str = Query(..., min_length=1),
    size: str = Query(default="original"),
):
    images = configuration.images
    known_sizes = set(
        images.backdrop_sizes + images.logo_sizes + images.poster_sizes + images.profile_sizes + images.still_sizes
    )
    if size != "original" and known_sizes and size not in known_sizes:
        raise HTTPException(status_code=422, detail=f"Unknown image size: {size}")
    url = ImageHelper(configuration).get_url(path, size)
    return ImageUrl(path=path, size=size, url=url)
