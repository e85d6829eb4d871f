"""Dust2 Tactics Simulator - FastAPI Backend.

Round-based tactical shooter simulation: match lifecycle, combat,
strategy-driven movement and economy, driven over HTTP.
"""

import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .api import api_router
from .services.match_orchestrator import MatchRegistry

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown."""
    # Startup
    logger.info(f"Starting {settings.app_name}...")
    app.state.registry = MatchRegistry(settings)

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}, stopping {len(app.state.registry)} matches")
    app.state.registry.shutdown()


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="""
    Dust2 Tactics Simulator API - round-based tactical shooter simulation.

    Features:
    - Match and round lifecycle with bomb plant/defuse
    - Probabilistic combat and utility resolution
    - Strategy-driven movement and mid-round calls
    - Buy engine and round economy
    """,
    version="1.0.0",
    lifespan=lifespan,
)

# CORS configuration - allow local frontends
cors_origins = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://127.0.0.1:3000",
]

# Add deployed frontend URL from env var
frontend_url = os.environ.get("FRONTEND_URL")
if frontend_url:
    cors_origins.append(frontend_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix=f"/api/{settings.api_version}")


@app.get("/")
async def root():
    """Root endpoint - API info."""
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# For running with uvicorn directly
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 8000)),
        reload=True,
    )
