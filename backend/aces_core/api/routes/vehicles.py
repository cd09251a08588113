"""
Vehicle resolution API routes.

Selection lists for year/make/model pickers, (year, make, model) and
free-text resolution, and configuration / specification lookups for a
canonical vehicle.
"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query

from aces_core.api.deps import get_store
from aces_core.data.reference_store import ReferenceDataStore
from aces_core.errors import ResolutionErrorKind
from aces_core.services.spec_resolver import resolve_dependent_attributes
from aces_core.services.vehicle_resolver import (
    CanonicalVehicle,
    VehicleResolution,
    available_makes,
    available_models,
    available_years,
    get_canonical_vehicle,
    resolve_all_configurations,
    resolve_canonical_vehicles,
    resolve_configurations,
    resolve_vehicle_text,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


def _vehicle_dict(vehicle: CanonicalVehicle) -> dict:
    return {**asdict(vehicle), "display_name": vehicle.display_name}


def _resolution_response(resolution: VehicleResolution) -> dict:
    """FOUND -> body; NOT_FOUND -> 404; AMBIGUOUS -> 409 with candidates."""
    candidates = [_vehicle_dict(c) for c in resolution.candidates]
    if resolution.error is not None:
        status = 409 if resolution.error.kind == ResolutionErrorKind.AMBIGUOUS else 404
        raise HTTPException(
            status_code=status,
            detail={
                "kind": resolution.error.kind.value,
                "message": resolution.error.message,
                "candidates": candidates,
            },
        )
    return {
        "status": resolution.status.value,
        "base_vehicle_id": resolution.base_vehicle_id,
        "vehicle": candidates[0],
    }


# ── Selection lists ─────────────────────────────────────────────────


@router.get("/years")
async def list_years(
    make: str | None = Query(None),
    model: str | None = Query(None),
    store: ReferenceDataStore = Depends(get_store),
):
    """Years that have at least one vehicle, newest first."""
    return {"years": available_years(store, make=make, model=model)}


@router.get("/makes")
async def list_makes(
    year: int | None = Query(None),
    model: str | None = Query(None),
    store: ReferenceDataStore = Depends(get_store),
):
    return {"makes": available_makes(store, year=year, model=model)}


@router.get("/models")
async def list_models(
    year: int | None = Query(None),
    make: str | None = Query(None),
    store: ReferenceDataStore = Depends(get_store),
):
    return {"models": available_models(store, year=year, make=make)}


# ── Resolution ──────────────────────────────────────────────────────


@router.get("/resolve")
async def resolve_vehicle(
    year: int | None = Query(None),
    make: str | None = Query(None),
    model: str | None = Query(None),
    submodel: str | None = Query(None, description="SubModel id or name, used when several vehicles match"),
    q: str | None = Query(None, description='Free text such as "2015 Ford F-150"'),
    store: ReferenceDataStore = Depends(get_store),
):
    """Resolve year/make/model (or free text) to one canonical vehicle."""
    if q:
        resolution = resolve_vehicle_text(store, q, submodel=submodel)
    elif year is not None and make and model:
        resolution = resolve_canonical_vehicles(store, year, make, model, submodel=submodel)
    else:
        raise HTTPException(status_code=400, detail="Provide q, or year, make and model")
    return _resolution_response(resolution)


@router.get("/{base_vehicle_id}")
async def get_vehicle(base_vehicle_id: int, store: ReferenceDataStore = Depends(get_store)):
    vehicle = get_canonical_vehicle(store, base_vehicle_id)
    if vehicle is None:
        raise HTTPException(status_code=404, detail=f"Unknown base vehicle id {base_vehicle_id}")
    return _vehicle_dict(vehicle)


@router.get("/{base_vehicle_id}/configurations")
async def get_all_configurations(base_vehicle_id: int, store: ReferenceDataStore = Depends(get_store)):
    """Every configuration kind linked to a vehicle."""
    if get_canonical_vehicle(store, base_vehicle_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown base vehicle id {base_vehicle_id}")
    configurations = resolve_all_configurations(store, base_vehicle_id)
    return {
        "base_vehicle_id": base_vehicle_id,
        "configurations": {kind: [asdict(c) for c in configs] for kind, configs in configurations.items()},
    }


@router.get("/{base_vehicle_id}/configurations/{kind}")
async def get_configurations(base_vehicle_id: int, kind: str, store: ReferenceDataStore = Depends(get_store)):
    """Configurations of one kind linked to a vehicle."""
    if get_canonical_vehicle(store, base_vehicle_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown base vehicle id {base_vehicle_id}")
    try:
        configurations = resolve_configurations(store, base_vehicle_id, kind)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "base_vehicle_id": base_vehicle_id,
        "kind": kind,
        "configurations": [asdict(c) for c in configurations],
    }


@router.get("/{base_vehicle_id}/specifications/{kind}")
async def get_specifications(
    base_vehicle_id: int,
    kind: str,
    attribute: str = Query(..., description="Known attribute, e.g. liter"),
    value: str = Query(..., description="Known value, e.g. 2.0"),
    store: ReferenceDataStore = Depends(get_store),
):
    """Fill in the sibling attributes of a configuration from one known value."""
    if get_canonical_vehicle(store, base_vehicle_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown base vehicle id {base_vehicle_id}")
    try:
        result = resolve_dependent_attributes(store, kind, attribute, value, base_vehicle_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return asdict(result)
