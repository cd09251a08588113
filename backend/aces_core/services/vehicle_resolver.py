"""
Resolve vehicle selections to canonical vehicles (VCdb BaseVehicle) and
expand them to their linked configurations.

- (year, make, model) -> zero, one or many BaseVehicle candidates; many
  need a submodel hint, which is not an error.
- BaseVehicle -> Vehicle variants -> VehicleTo* link rows -> configuration
  ids, deduplicated, hydrated with descriptive names.
- Only configurations reachable through a variant of the requested vehicle
  are returned.
- Outcomes carry a typed ResolutionError instead of raising.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from aces_core.data.config_kinds import CONFIG_KINDS, Configuration, get_kind, hydrate
from aces_core.data.reference_store import VCDB, ReferenceDataStore, Row, ref_key
from aces_core.errors import ResolutionError, ResolutionErrorKind
from aces_core.utils.vehicle_normalizer import canonical_make, normalize_name, parse_vehicle_loose

logger = logging.getLogger(__name__)


class ResolutionStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"


@dataclass
class VehicleVariant:
    vehicle_id: int
    base_vehicle_id: int
    submodel_id: int | None
    submodel: str | None


@dataclass
class CanonicalVehicle:
    base_vehicle_id: int
    year: int | None
    make_id: int | None
    make: str | None
    model_id: int | None
    model: str | None
    variants: list[VehicleVariant] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return f"{self.year} {self.make or 'Unknown Make'} {self.model or 'Unknown Model'}"


@dataclass
class VehicleResolution:
    status: ResolutionStatus
    base_vehicle_id: int | None = None
    candidates: list[CanonicalVehicle] = field(default_factory=list)
    error: ResolutionError | None = None

    @property
    def found(self) -> bool:
        return self.status == ResolutionStatus.FOUND


def _int(value) -> int | None:
    k = ref_key(value)
    if k is None:
        return None
    try:
        return int(k)
    except ValueError:
        return None


def _column(row: Row, name: str):
    """Column value with a case-insensitive fallback (SubmodelID vs SubModelID)."""
    if name in row:
        return row[name]
    lowered = name.lower()
    for key, value in row.items():
        if key.lower() == lowered:
            return value
    return None


def _match_ids(store: ReferenceDataStore, table: str, id_column: str, name_column: str, value) -> list[str]:
    """
    Ids in a VCdb name table matching value. Ints are ids; strings are
    matched by normalized name first and by id when no name matches
    (model names like "300" are legitimately numeric).
    """
    if value is None:
        return []
    if isinstance(value, int):
        return [str(value)] if store.get_row(VCDB, table, value) else []
    wanted = normalize_name(str(value))
    if table == "Make":
        wanted = normalize_name(canonical_make(str(value)))
    ids = [
        ref_key(row.get(id_column))
        for row in store.get_table(VCDB, table)
        if normalize_name(row.get(name_column)) == wanted
    ]
    if not ids and str(value).strip().isdigit() and store.get_row(VCDB, table, str(value).strip()):
        ids = [str(value).strip()]
    return ids


# ─── Canonical vehicles ──────────────────────────────────────────────


def list_variants(store: ReferenceDataStore, base_vehicle_id) -> list[VehicleVariant]:
    """Vehicle rows (submodel-level variants) of a canonical vehicle."""
    variants = []
    for row in store.variants_of(base_vehicle_id):
        submodel_id = _int(_column(row, "SubmodelID"))
        name = store.lookup_value(VCDB, "SubModel", submodel_id, "SubModelName") if submodel_id is not None else None
        variants.append(
            VehicleVariant(
                vehicle_id=_int(row.get("VehicleID")),
                base_vehicle_id=_int(row.get("BaseVehicleID")),
                submodel_id=submodel_id,
                submodel=name,
            )
        )
    return variants


def get_canonical_vehicle(store: ReferenceDataStore, base_vehicle_id) -> CanonicalVehicle | None:
    """Hydrate one BaseVehicle with make/model names and its variants."""
    row = store.get_row(VCDB, "BaseVehicle", base_vehicle_id)
    if row is None:
        return None
    return CanonicalVehicle(
        base_vehicle_id=_int(row.get("BaseVehicleID")),
        year=_int(row.get("YearID")),
        make_id=_int(row.get("MakeID")),
        make=store.lookup_value(VCDB, "Make", row.get("MakeID"), "MakeName"),
        model_id=_int(row.get("ModelID")),
        model=store.lookup_value(VCDB, "Model", row.get("ModelID"), "ModelName"),
        variants=list_variants(store, row.get("BaseVehicleID")),
    )


def _matches_submodel(vehicle: CanonicalVehicle, submodel) -> bool:
    if isinstance(submodel, int) or str(submodel).strip().isdigit():
        wanted_id = int(submodel)
        if any(v.submodel_id == wanted_id for v in vehicle.variants):
            return True
    wanted = normalize_name(str(submodel))
    return any(normalize_name(v.submodel) == wanted for v in vehicle.variants if v.submodel)


def resolve_canonical_vehicles(
    store: ReferenceDataStore,
    year,
    make,
    model,
    submodel=None,
) -> VehicleResolution:
    """
    Resolve (year, make, model) to canonical vehicle candidates.

    make and model may be VCdb ids (ints) or names. The submodel hint (id
    or name) is consulted only when more than one canonical vehicle matches.
    """
    label = f"{year} {make} {model}"
    make_ids = _match_ids(store, "Make", "MakeID", "MakeName", make)
    model_ids = _match_ids(store, "Model", "ModelID", "ModelName", model)

    base_ids: dict[str, None] = {}
    for make_id in make_ids:
        for model_id in model_ids:
            for bv in store.base_vehicles_for(year, make_id, model_id):
                base_ids.setdefault(bv, None)

    candidates = [v for v in (get_canonical_vehicle(store, bv) for bv in base_ids) if v is not None]
    logger.debug(f"Resolve {label}: {len(candidates)} candidate(s)")

    if not candidates:
        return VehicleResolution(
            status=ResolutionStatus.NOT_FOUND,
            error=ResolutionError(ResolutionErrorKind.NOT_FOUND, f"No vehicle found for {label}"),
        )
    if len(candidates) == 1:
        return VehicleResolution(
            status=ResolutionStatus.FOUND,
            base_vehicle_id=candidates[0].base_vehicle_id,
            candidates=candidates,
        )

    if submodel is not None and str(submodel).strip():
        narrowed = [c for c in candidates if _matches_submodel(c, submodel)]
        if len(narrowed) == 1:
            return VehicleResolution(
                status=ResolutionStatus.FOUND,
                base_vehicle_id=narrowed[0].base_vehicle_id,
                candidates=narrowed,
            )
        if not narrowed:
            return VehicleResolution(
                status=ResolutionStatus.NOT_FOUND,
                candidates=candidates,
                error=ResolutionError(
                    ResolutionErrorKind.NOT_FOUND,
                    f"No vehicle found for {label} with submodel {submodel}",
                    tuple(c.base_vehicle_id for c in candidates),
                ),
            )
        candidates = narrowed

    return VehicleResolution(
        status=ResolutionStatus.AMBIGUOUS,
        candidates=candidates,
        error=ResolutionError(
            ResolutionErrorKind.AMBIGUOUS,
            f"{len(candidates)} vehicles match {label}; a submodel is required",
            tuple(c.base_vehicle_id for c in candidates),
        ),
    )


def resolve_vehicle_id(store: ReferenceDataStore, base_vehicle_id) -> VehicleResolution:
    """Resolve a canonical vehicle id directly."""
    vehicle = get_canonical_vehicle(store, base_vehicle_id)
    if vehicle is None:
        return VehicleResolution(
            status=ResolutionStatus.NOT_FOUND,
            error=ResolutionError(ResolutionErrorKind.NOT_FOUND, f"Unknown base vehicle id {base_vehicle_id}"),
        )
    return VehicleResolution(
        status=ResolutionStatus.FOUND,
        base_vehicle_id=vehicle.base_vehicle_id,
        candidates=[vehicle],
    )


def resolve_vehicle_text(store: ReferenceDataStore, text: str, submodel=None) -> VehicleResolution:
    """Resolve a loose string like "2015 Ford F-150"."""
    known_makes = [r.get("MakeName") for r in store.get_table(VCDB, "Make") if r.get("MakeName")]
    parsed = parse_vehicle_loose(text, known_makes)
    if parsed.year is None or not parsed.make_raw or not parsed.model_raw:
        return VehicleResolution(
            status=ResolutionStatus.NOT_FOUND,
            error=ResolutionError(ResolutionErrorKind.NOT_FOUND, f"Could not parse year/make/model from {text!r}"),
        )
    return resolve_canonical_vehicles(store, parsed.year, parsed.make_raw, parsed.model_raw, submodel)


# ─── Configurations ──────────────────────────────────────────────────


def _configuration_ids(store: ReferenceDataStore, base_vehicle_id, kind_name: str) -> list[str]:
    kind = get_kind(kind_name)
    variants = store.variants_of(base_vehicle_id)
    if kind.link_table:
        return store.link_targets(kind.link_table, (v.get("VehicleID") for v in variants))
    seen: dict[str, None] = {}
    for v in variants:
        cid = ref_key(_column(v, kind.variant_column))
        if cid is not None:
            seen.setdefault(cid, None)
    return list(seen)


def resolve_configurations(store: ReferenceDataStore, base_vehicle_id, kind: str) -> list[Configuration]:
    """
    Distinct configurations of one kind linked to a canonical vehicle, in
    first-linked order. Raises ValueError for an unknown kind.
    """
    config_kind = get_kind(kind)
    ids = _configuration_ids(store, base_vehicle_id, kind)
    logger.debug(f"BaseVehicle {base_vehicle_id}: {len(ids)} {kind} configuration(s)")
    return [hydrate(store, config_kind, cid) for cid in ids]


def resolve_all_configurations(store: ReferenceDataStore, base_vehicle_id) -> dict[str, list[Configuration]]:
    """Every configuration kind for a canonical vehicle in one call."""
    return {name: resolve_configurations(store, base_vehicle_id, name) for name in CONFIG_KINDS}


# ─── Selection lists ─────────────────────────────────────────────────


def _base_vehicle_rows(store: ReferenceDataStore, year=None, make=None, model=None) -> list[Row]:
    make_ids = set(_match_ids(store, "Make", "MakeID", "MakeName", make)) if make is not None else None
    model_ids = set(_match_ids(store, "Model", "ModelID", "ModelName", model)) if model is not None else None
    year_key = ref_key(year)
    rows = []
    for row in store.get_table(VCDB, "BaseVehicle"):
        if year_key is not None and ref_key(row.get("YearID")) != year_key:
            continue
        if make_ids is not None and ref_key(row.get("MakeID")) not in make_ids:
            continue
        if model_ids is not None and ref_key(row.get("ModelID")) not in model_ids:
            continue
        rows.append(row)
    return rows


def _named_ids(store: ReferenceDataStore, table: str, name_column: str, ids) -> list[dict]:
    out = []
    for row in store.rows_by_keys(VCDB, table, ids):
        out.append({"id": _int(next(iter(row.values()))), "name": row.get(name_column)})
    return sorted(out, key=lambda r: (r["name"] or "").lower())


def available_years(store: ReferenceDataStore, make=None, model=None) -> list[int]:
    """Years with at least one canonical vehicle, newest first."""
    years = {_int(r.get("YearID")) for r in _base_vehicle_rows(store, make=make, model=model)}
    return sorted((y for y in years if y is not None), reverse=True)


def available_makes(store: ReferenceDataStore, year=None, model=None) -> list[dict]:
    """Makes with at least one canonical vehicle, by name."""
    ids = {r.get("MakeID") for r in _base_vehicle_rows(store, year=year, model=model)}
    return _named_ids(store, "Make", "MakeName", ids)


def available_models(store: ReferenceDataStore, year=None, make=None) -> list[dict]:
    """Models with at least one canonical vehicle, by name."""
    ids = {r.get("ModelID") for r in _base_vehicle_rows(store, year=year, make=make)}
    return _named_ids(store, "Model", "ModelName", ids)
