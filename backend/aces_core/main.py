"""
ACES fitment FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from aces_core.api.routes import documents, vehicles
from aces_core.config import settings
from aces_core.db import load_configured_store

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    # Startup: reference data is loaded once and never mutated afterwards
    logger.info("Starting ACES Fitment API...")
    app.state.store = await load_configured_store(settings.reference_data_dir, settings.reference_sqlite_path)
    stats = app.state.store.stats()
    logger.info(f"Reference data ready: {', '.join(f'{d} ({len(t)} tables)' for d, t in stats.items()) or 'none'}")

    yield

    # Shutdown
    logger.info("Shutting down ACES Fitment API...")


# Create FastAPI app
app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(documents.router)
app.include_router(vehicles.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "ACES Fitment API",
        "version": settings.api_version,
        "endpoints": {
            "decode": "/documents/decode",
            "encode": "/documents/encode",
            "validate": "/documents/validate",
            "resolve": "/vehicles/resolve?year=...&make=...&model=...",
            "configurations": "/vehicles/{id}/configurations/{kind}",
            "specifications": "/vehicles/{id}/specifications/{kind}?attribute=...&value=...",
            "docs": "/docs",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    store = getattr(app.state, "store", None)
    return {
        "status": "healthy",
        "reference_data": store.stats() if store is not None else None,
    }
