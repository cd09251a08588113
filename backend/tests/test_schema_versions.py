"""Tests for the version capability table."""
from aces_core.schemas.document import SchemaVersion
from aces_core.services.schema_versions import (
    SUPPORTED_VERSIONS,
    Feature,
    application_features,
    parse_version,
    required_version,
    supports,
)


def test_supported_versions():
    assert SUPPORTED_VERSIONS == ("4.1", "4.2")


def test_parse_version():
    assert parse_version("4.2") == SchemaVersion.V4_2
    assert parse_version(" 4.1 ") == SchemaVersion.V4_1
    assert parse_version("3.2") is None
    assert parse_version(None) is None


def test_supports():
    assert supports(SchemaVersion.V4_2, Feature.EQUIPMENT)
    assert not supports(SchemaVersion.V4_1, Feature.EQUIPMENT)
    assert supports(SchemaVersion.V4_1, Feature.QUALIFIERS)


def test_application_features(make_application):
    app = make_application(qualifiers=[{"id": 12877}], asset_item_order=2)
    assert application_features(app) == {Feature.BASE_VEHICLE, Feature.QUALIFIERS, Feature.ASSET_ITEM_ORDER}


def test_required_version_empty_batch():
    assert required_version([]) == SchemaVersion.V4_1


def test_required_version_equipment(make_application):
    apps = [
        make_application(),
        make_application(
            identification={"pattern": "equipment", "mfr_id": 15, "equipment_model_id": 60, "vehicle_type_id": 2195}
        ),
    ]
    assert required_version(apps) == SchemaVersion.V4_2


def test_minimum_never_lowers(make_application):
    apps = [make_application(asset_name="x.jpg")]
    assert required_version(apps, minimum=SchemaVersion.V4_1) == SchemaVersion.V4_2
