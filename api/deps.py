"""
Dependency injection for the TMDb client and other shared resources.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Annotated, Iterator

from fastapi import Depends, HTTPException, Request

from tmdb_provider.client import Client
from tmdb_provider.configuration import Configuration, ConfigurationRepository
from tmdb_provider.errors import ConfigurationError, RequestPreparationError, TransportError
from tmdb_provider.factory import ClientProvider

logger = logging.getLogger(__name__)


def get_client_provider(request: Request) -> ClientProvider:
    """
    Returns the provider created by the app lifespan.
    """
    provider = getattr(request.app.state, "tmdb_provider", None)
    if provider is None:
        raise HTTPException(status_code=503, detail="TMDb client is not configured")
    return provider


def get_tmdb_client(provider: Annotated[ClientProvider, Depends(get_client_provider)]) -> Client:
    try:
        return provider.get_client()
    except ConfigurationError as e:
        logger.error(f"TMDb client configuration error: {e}")
        raise HTTPException(status_code=503, detail="TMDb client is not configured") from e


def get_tmdb_configuration(client: Annotated[Client, Depends(get_tmdb_client)]) -> Configuration:
    with tmdb_errors("loading configuration"):
        return ConfigurationRepository(client).load()


# Type aliases for dependency injection
TmdbProvider = Annotated[ClientProvider, Depends(get_client_provider)]
TmdbClient = Annotated[Client, Depends(get_tmdb_client)]
TmdbConfiguration = Annotated[Configuration, Depends(get_tmdb_configuration)]


@contextmanager
def tmdb_errors(context: str = "TMDb request") -> Iterator[None]:
    """
    Map TMDb errors raised inside the block to HTTP exceptions.

    Raises:
        HTTPException: 404 for upstream 404s, 502 for other transport errors,
            500 when the request could not be prepared (details are logged only).
    """
    try:
        yield
    except TransportError as e:
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail="Resource not found") from e
        logger.error(f"TMDb transport error during {context}: {e}")
        raise HTTPException(status_code=502, detail=f"Upstream error during {context}") from e
    except RequestPreparationError as e:
        logger.error(f"TMDb request preparation failed during {context}: {e}")
        raise HTTPException(status_code=500, detail=f"Internal error during {context}") from e
