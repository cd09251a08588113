"""
Fill in the sibling attributes of a configuration from one known value.

Given a kind, one attribute and its value, and a canonical vehicle, the
candidate rows are the configurations linked to that vehicle; the first row
whose attribute equals the value supplies every other attribute. When more
than one row matches, the first one still wins and match_count says how many
did.

With no matching row the only fallback is a pure unit conversion
(liters/cc/cid, inches/millimeters). Nothing else is ever computed.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from aces_core.data.config_kinds import attribute_names, get_kind
from aces_core.data.reference_store import ReferenceDataStore
from aces_core.services.vehicle_resolver import resolve_configurations
from aces_core.utils.vehicle_normalizer import normalize_name

logger = logging.getLogger(__name__)

LITERS_TO_CID = 61.0237
INCHES_TO_MM = 25.4

# attribute -> [(target attribute, factor, decimals)]
UNIT_CONVERSIONS: dict[str, list[tuple[str, float, int]]] = {
    "liter": [("cc", 1000.0, 0), ("cid", LITERS_TO_CID, 0)],
    "cc": [("liter", 1 / 1000.0, 1)],
    "cid": [("liter", 1 / LITERS_TO_CID, 1)],
    "bore_in": [("bore_metric", INCHES_TO_MM, 1)],
    "bore_metric": [("bore_in", 1 / INCHES_TO_MM, 2)],
    "stroke_in": [("stroke_metric", INCHES_TO_MM, 1)],
    "stroke_metric": [("stroke_in", 1 / INCHES_TO_MM, 2)],
    "wheel_base": [("wheel_base_metric", INCHES_TO_MM, 1)],
    "wheel_base_metric": [("wheel_base", 1 / INCHES_TO_MM, 1)],
    "bed_length": [("bed_length_metric", INCHES_TO_MM, 1)],
    "bed_length_metric": [("bed_length", 1 / INCHES_TO_MM, 1)],
}


class AttributeSource(str, Enum):
    SUPPLIED = "supplied"
    DERIVED = "derived"
    CONVERTED = "converted"


@dataclass
class AttributeValue:
    value: str | None
    source: AttributeSource


@dataclass
class DependentAttributes:
    kind: str
    attribute: str
    value: str
    base_vehicle_id: int
    attributes: dict[str, AttributeValue] = field(default_factory=dict)
    matched_config_id: str | None = None
    match_count: int = 0
    used_fallback: bool = False

    @property
    def matched(self) -> bool:
        return self.matched_config_id is not None


def _number(value) -> float | None:
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return None


def values_equal(a, b) -> bool:
    """Numeric comparison when both sides parse as numbers, else by normalized text."""
    if a is None or b is None:
        return False
    na, nb = _number(a), _number(b)
    if na is not None and nb is not None:
        return abs(na - nb) < 1e-9
    return normalize_name(str(a)) == normalize_name(str(b))


def convert_units(attribute: str, value) -> dict[str, str]:
    """Unit-converted siblings of a numeric value; empty when no conversion applies."""
    number = _number(value)
    if number is None:
        return {}
    return {
        target: f"{number * factor:.{decimals}f}"
        for target, factor, decimals in UNIT_CONVERSIONS.get(attribute, [])
    }


def resolve_dependent_attributes(
    store: ReferenceDataStore,
    kind: str,
    attribute: str,
    value,
    base_vehicle_id: int,
) -> DependentAttributes:
    """
    Sibling attributes of the first configuration linked to base_vehicle_id
    whose attribute equals value. Raises ValueError for an unknown kind or
    an attribute the kind does not have.
    """
    config_kind = get_kind(kind)
    if attribute not in attribute_names(config_kind):
        raise ValueError(f"Unknown attribute {attribute!r} for {kind}")

    result = DependentAttributes(kind=kind, attribute=attribute, value=str(value), base_vehicle_id=base_vehicle_id)

    matches = [
        c for c in resolve_configurations(store, base_vehicle_id, kind)
        if values_equal(c.attributes.get(attribute), value)
    ]
    result.match_count = len(matches)

    if matches:
        first = matches[0]
        if len(matches) > 1:
            logger.debug(
                f"{kind}.{attribute}={value} matched {len(matches)} rows for BaseVehicle "
                f"{base_vehicle_id}; using {first.config_id}"
            )
        result.matched_config_id = first.config_id
        result.attributes = {
            name: AttributeValue(v, AttributeSource.DERIVED) for name, v in first.attributes.items()
        }
        result.attributes[attribute] = AttributeValue(str(value), AttributeSource.SUPPLIED)
        return result

    result.attributes[attribute] = AttributeValue(str(value), AttributeSource.SUPPLIED)
    converted = convert_units(attribute, value)
    if converted:
        result.used_fallback = True
        for name, v in converted.items():
            result.attributes[name] = AttributeValue(v, AttributeSource.CONVERTED)
    logger.debug(
        f"{kind}.{attribute}={value} has no linked row for BaseVehicle {base_vehicle_id}"
        f"{'; unit conversion applied' if converted else ''}"
    )
    return result
