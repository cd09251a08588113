"""
Validate Applications against the reference databases.

- Structural checks always run: quantity > 0, part type and part number.
- Reference checks run unless the App says validate="no": identification
  resolves (BaseVehicle id known, or Years/Make/Model reaches at least one
  BaseVehicle), PCdb part type and position, Qdb qualifiers, VCdb vehicle
  attributes and that each is actually linked to the identified vehicle.
- A check whose reference table is not loaded becomes a "cannot verify"
  warning, not a failure.
- validate_batch() partitions a batch; invalid entries keep their reasons.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from aces_core.data.config_kinds import CONFIG_KINDS, VEHICLE_ATTRIBUTES
from aces_core.data.reference_store import PCDB, QDB, VCDB, ReferenceDataStore
from aces_core.errors import IssueCode, ValidationIssue
from aces_core.schemas.application import (
    Application,
    BaseVehiclePattern,
    EquipmentPattern,
    YearMakeModelPattern,
)
from aces_core.services.vehicle_resolver import resolve_configurations

logger = logging.getLogger(__name__)


class ValidationStatus(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    NOT_VERIFIED = "not_verified"


@dataclass
class ValidationOutcome:
    is_valid: bool
    issues: list[ValidationIssue] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    status: ValidationStatus = ValidationStatus.VALID

    @property
    def reasons(self) -> list[str]:
        return [i.message for i in self.issues]


@dataclass
class InvalidApplication:
    index: int
    application: Application
    outcome: ValidationOutcome


@dataclass
class BatchReport:
    valid: list[Application] = field(default_factory=list)
    invalid: list[InvalidApplication] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.valid) + len(self.invalid)

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "valid_count": len(self.valid),
            "invalid_count": len(self.invalid),
            "invalid": [
                {
                    "index": item.index,
                    "id": item.application.id,
                    "status": item.outcome.status.value,
                    "issues": [
                        {"code": i.code.value, "field": i.field, "message": i.message}
                        for i in item.outcome.issues
                    ],
                }
                for item in self.invalid
            ],
            "warnings": self.warnings,
        }


class _Checker:
    """Collects issues and warnings for one Application."""

    def __init__(self, store: ReferenceDataStore):
        self.store = store
        self.issues: list[ValidationIssue] = []
        self.warnings: list[str] = []
        self.unverified = False

    def issue(self, code: IssueCode, field_name: str, message: str) -> None:
        self.issues.append(ValidationIssue(code, field_name, message))

    def cannot_verify(self, what: str, dataset: str, table: str) -> None:
        self.unverified = True
        self.warnings.append(f"Cannot verify {what}: {dataset} {table} table not loaded")

    def known(self, dataset: str, table: str, key, field_name: str, what: str) -> bool | None:
        """True/False when the table is loaded, None when it cannot be checked."""
        if not self.store.has_table(dataset, table):
            self.cannot_verify(what, dataset, table)
            return None
        if self.store.get_row(dataset, table, key) is None:
            self.issue(IssueCode.UNRESOLVABLE_REFERENCE, field_name, f"Unknown {what} {key}")
            return False
        return True


# ─── Checks ──────────────────────────────────────────────────────────


def _check_structure(app: Application, c: _Checker) -> None:
    if app.quantity is None or app.quantity <= 0:
        c.issue(IssueCode.OUT_OF_RANGE, "quantity", f"Quantity must be greater than 0, got {app.quantity}")
    if not app.part_type_id:
        c.issue(IssueCode.MISSING_FIELD, "part_type_id", "Part type is required")
    if app.part_number is None or not app.part_number.value:
        c.issue(IssueCode.MISSING_FIELD, "part_number", "Part number is required")


def _year_spans(years: list[int]) -> str:
    """[2001, 2002, 2003, 2007] -> "2001-2003, 2007"."""
    spans = []
    start = prev = years[0]
    for year in years[1:]:
        if year != prev + 1:
            spans.append((start, prev))
            start = year
        prev = year
    spans.append((start, prev))
    return ", ".join(str(a) if a == b else f"{a}-{b}" for a, b in spans)


def _check_year_make_model(ident: YearMakeModelPattern, c: _Checker) -> list[str]:
    if ident.year_from > ident.year_to:
        c.issue(
            IssueCode.OUT_OF_RANGE,
            "identification.years",
            f"Year range {ident.year_from}-{ident.year_to} is reversed",
        )
        return []
    make_ok = c.known(VCDB, "Make", ident.make_id, "identification.make_id", "make")
    model_ok = c.known(VCDB, "Model", ident.model_id, "identification.model_id", "model")
    if make_ok is False or model_ok is False:
        return []
    if not c.store.has_table(VCDB, "BaseVehicle"):
        c.cannot_verify("year/make/model", VCDB, "BaseVehicle")
        return []

    base_ids: list[str] = []
    missing_years = []
    for year in range(ident.year_from, ident.year_to + 1):
        found = c.store.base_vehicles_for(year, ident.make_id, ident.model_id)
        if found:
            base_ids.extend(found)
        else:
            missing_years.append(year)
    if not base_ids:
        c.issue(
            IssueCode.UNRESOLVABLE_REFERENCE,
            "identification",
            f"No vehicle for years {ident.year_from}-{ident.year_to}, make {ident.make_id}, model {ident.model_id}",
        )
    elif missing_years:
        c.warnings.append(
            f"No vehicle for make {ident.make_id} model {ident.model_id} in {_year_spans(missing_years)}"
        )
    return base_ids


def _check_equipment(ident: EquipmentPattern, c: _Checker) -> None:
    c.known(VCDB, "Mfr", ident.mfr_id, "identification.mfr_id", "manufacturer")
    c.known(VCDB, "EquipmentModel", ident.equipment_model_id, "identification.equipment_model_id", "equipment model")
    c.known(VCDB, "VehicleType", ident.vehicle_type_id, "identification.vehicle_type_id", "vehicle type")
    if ident.equipment_base_id is not None:
        c.known(VCDB, "EquipmentBase", ident.equipment_base_id, "identification.equipment_base_id", "equipment base")
    start, end = ident.production_start, ident.production_end
    if start is not None and end is not None and start > end:
        c.issue(
            IssueCode.OUT_OF_RANGE,
            "identification.production_years",
            f"Production years {start}-{end} are reversed",
        )


def _check_identification(app: Application, c: _Checker) -> list[str]:
    """Check the identification; returns the BaseVehicle ids it reaches."""
    ident = app.identification
    if isinstance(ident, BaseVehiclePattern):
        ok = c.known(VCDB, "BaseVehicle", ident.base_vehicle_id, "identification.base_vehicle_id", "base vehicle")
        return [str(ident.base_vehicle_id)] if ok else []
    if isinstance(ident, YearMakeModelPattern):
        return _check_year_make_model(ident, c)
    if isinstance(ident, EquipmentPattern):
        _check_equipment(ident, c)
    return []


def _check_vehicle_attributes(app: Application, base_ids: list[str], c: _Checker) -> None:
    linked_cache: dict[str, list] = {}
    for attr in app.vehicle_attributes:
        field_name = f"vehicle_attributes.{attr.name}"
        ref = VEHICLE_ATTRIBUTES.get(attr.name)
        if ref is None:
            c.issue(IssueCode.INCOMPATIBLE_ATTRIBUTE, field_name, f"Unknown vehicle attribute {attr.name}")
            continue
        if not c.known(VCDB, ref.table, attr.id, field_name, attr.name):
            continue
        if ref.kind is None or not base_ids:
            continue

        kind = CONFIG_KINDS[ref.kind]
        if kind.link_table and not c.store.has_link_table(kind.link_table):
            c.cannot_verify(f"{attr.name} linkage", VCDB, kind.link_table)
            continue
        if ref.kind not in linked_cache:
            linked_cache[ref.kind] = [
                config for bv in base_ids for config in resolve_configurations(c.store, bv, ref.kind)
            ]
        if not any(config.references.get(ref.reference) == str(attr.id) for config in linked_cache[ref.kind]):
            c.issue(
                IssueCode.INCOMPATIBLE_ATTRIBUTE,
                field_name,
                f"{attr.name} {attr.id} is not linked to the identified vehicle",
            )


def _check_references(app: Application, c: _Checker) -> None:
    base_ids = _check_identification(app, c)
    c.known(PCDB, "Parts", app.part_type_id, "part_type_id", "part type")
    if app.position_id is not None:
        c.known(PCDB, "Positions", app.position_id, "position_id", "position")
    for i, qualifier in enumerate(app.qualifiers):
        c.known(QDB, "Qualifier", qualifier.id, f"qualifiers[{i}].id", "qualifier")
    _check_vehicle_attributes(app, base_ids, c)


# ─── Public API ──────────────────────────────────────────────────────


def validate_application(store: ReferenceDataStore, app: Application) -> ValidationOutcome:
    """
    Validate one Application. Returns an outcome with is_valid, ordered
    issues, warnings and a summary status.
    """
    c = _Checker(store)
    _check_structure(app, c)

    if app.should_validate:
        _check_references(app, c)
    else:
        c.unverified = True
        c.warnings.append("Reference checks skipped (validate=no)")

    if c.issues:
        status = ValidationStatus.INVALID
    elif c.unverified:
        status = ValidationStatus.NOT_VERIFIED
    else:
        status = ValidationStatus.VALID
    return ValidationOutcome(is_valid=not c.issues, issues=c.issues, warnings=c.warnings, status=status)


def validate_batch(store: ReferenceDataStore, applications: list[Application]) -> BatchReport:
    """Split applications into a valid subset and an invalid subset with reasons."""
    report = BatchReport()
    for index, app in enumerate(applications):
        outcome = validate_application(store, app)
        label = app.id or f"#{index + 1}"
        report.warnings.extend(f"App {label}: {w}" for w in outcome.warnings)
        if outcome.is_valid:
            report.valid.append(app)
        else:
            report.invalid.append(InvalidApplication(index=index, application=app, outcome=outcome))
    logger.info(f"Validated {report.total} applications: {len(report.valid)} valid, {len(report.invalid)} invalid")
    return report
