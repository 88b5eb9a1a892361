"""
TMDb provider API - FastAPI application.

Provides endpoints for:
- Movie details and movie search through the shared TMDb client
- The remote TMDb configuration and image URLs built from it
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routers import movies
from tmdb_provider.factory import ClientProvider

logger = logging.getLogger(__name__)


def get_cors_origins() -> list[str]:
    """
    Get CORS allowed origins from environment.
    Set CORS_ALLOW_ORIGINS as comma-separated list of origins.
    """
    origins_str = os.getenv("CORS_ALLOW_ORIGINS", "")
    if not origins_str:
        return []
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the TMDb client once at startup; close it on shutdown."""
    # Startup
    logger.info("Starting up TMDb provider API...")
    provider = ClientProvider()
    provider.get_client()
    app.state.tmdb_provider = provider
    yield
    # Shutdown
    logger.info("Shutting down TMDb provider API...")
    provider.close()
    app.state.tmdb_provider = None


app = FastAPI(
    title="TMDb Provider API",
    description="Shared TMDb client with token injection, JSON headers, and response caching",
    version="0.1.0",
    lifespan=lifespan,
)

# If no origins configured, allows all origins but disables credentials
cors_origins = get_cors_origins()
allow_credentials = len(cors_origins) > 0

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins if cors_origins else ["*"],
    allow_credentials=allow_credentials,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(movies.router, prefix="/api/v1")


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "tmdb-provider"}


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}
