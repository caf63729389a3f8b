"""
Alumni Matching API - Main Application Entry Point

This module initializes the FastAPI application with:
- Matching engine construction from settings
- API router registration

Architecture:
    FastAPI App
    ├── Lifespan Management (engine start-up / store shutdown)
    └── API Router
        ├── /api/match - Rank candidates for a seeker
        └── /api/stats - Provider and vector cache statistics
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from alumni_match.api import api_router
from alumni_match.services.ranking import build_engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle events.

    Startup:
        Build the matching engine unless one was injected (tests do this)

    Shutdown:
        Close the shared vector store connection, if any
    """
    if getattr(app.state, "engine", None) is None:
        app.state.engine = build_engine()
        logger.info(f"Matching engine ready with {app.state.engine.provider.name} embeddings")
    yield
    store = app.state.engine.cache.store
    if store is not None:
        await store.close()


app = FastAPI(
    title="Alumni Matching API",
    description="Explainable multi-criteria alumni matching",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
