"""
Which ACES schema version introduced which document feature.

The encoder asks this table once for the lowest version that carries every
feature present in a batch; the decoder asks it whether a feature found in
an App is allowed by the document's declared version.
"""

from collections.abc import Iterable
from enum import Enum

from aces_core.schemas.application import Application
from aces_core.schemas.document import SchemaVersion


class Feature(str, Enum):
    BASE_VEHICLE = "base_vehicle"
    YEAR_MAKE_MODEL = "year_make_model"
    VEHICLE_ATTRIBUTES = "vehicle_attributes"
    QUALIFIERS = "qualifiers"
    NOTES = "notes"
    EQUIPMENT = "equipment"
    ASSET_NAME = "asset_name"
    ASSET_ITEM_ORDER = "asset_item_order"
    DIGITAL_ASSETS = "digital_assets"


FEATURE_VERSIONS: dict[Feature, SchemaVersion] = {
    Feature.BASE_VEHICLE: SchemaVersion.V4_1,
    Feature.YEAR_MAKE_MODEL: SchemaVersion.V4_1,
    Feature.VEHICLE_ATTRIBUTES: SchemaVersion.V4_1,
    Feature.QUALIFIERS: SchemaVersion.V4_1,
    Feature.NOTES: SchemaVersion.V4_1,
    Feature.EQUIPMENT: SchemaVersion.V4_2,
    Feature.ASSET_NAME: SchemaVersion.V4_2,
    Feature.ASSET_ITEM_ORDER: SchemaVersion.V4_2,
    Feature.DIGITAL_ASSETS: SchemaVersion.V4_2,
}

SUPPORTED_VERSIONS = tuple(v.value for v in SchemaVersion)
BASE_VERSION = min(SchemaVersion, key=lambda v: v.key)


def parse_version(text: str | None) -> SchemaVersion | None:
    """The SchemaVersion for a version attribute, or None when unsupported."""
    if text is None:
        return None
    try:
        return SchemaVersion(text.strip())
    except ValueError:
        return None


def supports(version: SchemaVersion, feature: Feature) -> bool:
    return version.key >= FEATURE_VERSIONS[feature].key


def application_features(app: Application) -> set[Feature]:
    features = {Feature(app.identification.pattern)}
    if app.vehicle_attributes:
        features.add(Feature.VEHICLE_ATTRIBUTES)
    if app.qualifiers:
        features.add(Feature.QUALIFIERS)
    if app.notes:
        features.add(Feature.NOTES)
    if app.asset_name:
        features.add(Feature.ASSET_NAME)
    if app.asset_item_order is not None:
        features.add(Feature.ASSET_ITEM_ORDER)
    return features


def required_version(
    applications: Iterable[Application],
    minimum: SchemaVersion | None = None,
) -> SchemaVersion:
    """Lowest supported version carrying every feature used by the batch."""
    version = minimum or BASE_VERSION
    for app in applications:
        for feature in application_features(app):
            needed = FEATURE_VERSIONS[feature]
            if needed.key > version.key:
                version = needed
    return version
