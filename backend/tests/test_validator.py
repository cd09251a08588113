"""Tests for Application validation against the reference data."""
from aces_core.data.reference_store import ReferenceDataStore
from aces_core.errors import IssueCode
from aces_core.services.validator import ValidationStatus, validate_application, validate_batch


def codes(outcome):
    return [i.code for i in outcome.issues]


class TestValidateApplication:
    def test_valid_base_vehicle_app(self, store, make_application):
        outcome = validate_application(store, make_application())
        assert outcome.is_valid
        assert outcome.status == ValidationStatus.VALID
        assert outcome.issues == []
        assert outcome.warnings == []

    def test_unknown_base_vehicle(self, store, make_application):
        app = make_application(identification={"pattern": "base_vehicle", "base_vehicle_id": 999})
        outcome = validate_application(store, app)
        assert not outcome.is_valid
        assert outcome.status == ValidationStatus.INVALID
        assert codes(outcome) == [IssueCode.UNRESOLVABLE_REFERENCE]
        assert outcome.issues[0].field == "identification.base_vehicle_id"

    def test_unknown_part_type(self, store, make_application):
        outcome = validate_application(store, make_application(part_type_id=42))
        assert outcome.issues[0].field == "part_type_id"

    def test_unknown_position_and_qualifier(self, store, make_application):
        app = make_application(position_id=77, qualifiers=[{"id": 12877}, {"id": 5}])
        outcome = validate_application(store, app)
        assert [i.field for i in outcome.issues] == ["position_id", "qualifiers[1].id"]

    def test_year_make_model_resolves(self, store, make_application):
        app = make_application(
            identification={"pattern": "year_make_model", "year_from": 2015, "year_to": 2016, "make_id": 1, "model_id": 10}
        )
        assert validate_application(store, app).is_valid

    def test_year_gap_is_a_warning(self, store, make_application):
        app = make_application(
            identification={"pattern": "year_make_model", "year_from": 2015, "year_to": 2017, "make_id": 1, "model_id": 10}
        )
        outcome = validate_application(store, app)
        assert outcome.is_valid
        assert any("2017" in w for w in outcome.warnings)

    def test_missing_years_are_collapsed_into_spans(self, store, make_application):
        app = make_application(
            identification={"pattern": "year_make_model", "year_from": 2010, "year_to": 2020, "make_id": 1, "model_id": 10}
        )
        outcome = validate_application(store, app)
        assert outcome.is_valid
        assert outcome.warnings == ["No vehicle for make 1 model 10 in 2010-2014, 2017-2020"]

    def test_year_make_model_without_vehicle(self, store, make_application):
        app = make_application(
            identification={"pattern": "year_make_model", "year_from": 2015, "year_to": 2015, "make_id": 3, "model_id": 10}
        )
        outcome = validate_application(store, app)
        assert codes(outcome) == [IssueCode.UNRESOLVABLE_REFERENCE]

    def test_reversed_year_range(self, store, make_application):
        app = make_application(
            identification={"pattern": "year_make_model", "year_from": 2016, "year_to": 2015, "make_id": 1, "model_id": 10}
        )
        assert codes(validate_application(store, app)) == [IssueCode.OUT_OF_RANGE]

    def test_equipment_references(self, store, make_application):
        ok = make_application(
            identification={
                "pattern": "equipment", "mfr_id": 15, "equipment_model_id": 60, "vehicle_type_id": 2195,
                "equipment_base_id": 70,
            },
            position_id=None,
        )
        assert validate_application(store, ok).is_valid
        bad = make_application(
            identification={"pattern": "equipment", "mfr_id": 16, "equipment_model_id": 60, "vehicle_type_id": 2195},
            position_id=None,
        )
        assert validate_application(store, bad).issues[0].field == "identification.mfr_id"

    def test_linked_vehicle_attribute(self, store, make_application):
        app = make_application(vehicle_attributes=[{"name": "SubModel", "id": 2}, {"name": "EngineBase", "id": 502}])
        assert validate_application(store, app).is_valid

    def test_vehicle_attribute_not_linked_to_vehicle(self, store, make_application):
        # EngineBase 501 exists, but only the Mustang has it
        app = make_application(vehicle_attributes=[{"name": "EngineBase", "id": 501}])
        outcome = validate_application(store, app)
        assert codes(outcome) == [IssueCode.INCOMPATIBLE_ATTRIBUTE]

    def test_unknown_vehicle_attribute_id(self, store, make_application):
        app = make_application(vehicle_attributes=[{"name": "DriveType", "id": 99}])
        assert codes(validate_application(store, app)) == [IssueCode.UNRESOLVABLE_REFERENCE]

    def test_unknown_vehicle_attribute_name(self, store, make_application):
        app = make_application(vehicle_attributes=[{"name": "FluxCapacitor", "id": 1}])
        assert codes(validate_application(store, app)) == [IssueCode.INCOMPATIBLE_ATTRIBUTE]

    def test_unloaded_attribute_table_cannot_verify(self, store, make_application):
        # no SteeringType table in the fixture
        app = make_application(vehicle_attributes=[{"name": "SteeringType", "id": 1}])
        outcome = validate_application(store, app)
        assert outcome.is_valid
        assert outcome.status == ValidationStatus.NOT_VERIFIED
        assert any("Cannot verify" in w for w in outcome.warnings)

    def test_validate_no_skips_reference_checks(self, store, make_application):
        app = make_application(
            validation="no", identification={"pattern": "base_vehicle", "base_vehicle_id": 999}, part_type_id=42
        )
        outcome = validate_application(store, app)
        assert outcome.is_valid
        assert outcome.status == ValidationStatus.NOT_VERIFIED

    def test_empty_store_cannot_verify(self, make_application):
        outcome = validate_application(ReferenceDataStore({}), make_application())
        assert outcome.is_valid
        assert outcome.status == ValidationStatus.NOT_VERIFIED
        assert len(outcome.warnings) == 3


class TestValidateBatch:
    def test_partitions_and_keeps_reasons(self, store, make_application):
        good = make_application(id="a")
        bad = make_application(id="b", part_type_id=42)
        report = validate_batch(store, [good, bad, make_application(id="c")])
        assert [a.id for a in report.valid] == ["a", "c"]
        assert len(report.invalid) == 1
        assert report.invalid[0].index == 1
        assert report.invalid[0].application.id == "b"
        assert report.invalid[0].outcome.reasons == ["Unknown part type 42"]
        assert report.total == 3

    def test_as_dict(self, store, make_application):
        report = validate_batch(store, [make_application(id="b", part_type_id=42)])
        body = report.as_dict()
        assert body["invalid_count"] == 1
        assert body["invalid"][0]["issues"][0]["code"] == "unresolvable_reference"
