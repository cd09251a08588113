"""FastAPI dependency injection."""

from fastapi import HTTPException, Request

from aces_core.config import Settings, settings
from aces_core.data.reference_store import ReferenceDataStore


def get_store(request: Request) -> ReferenceDataStore:
    """Dependency for the reference store built at startup."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Reference data not loaded")
    return store


def get_settings() -> Settings:
    """Dependency for application settings."""
    return settings
