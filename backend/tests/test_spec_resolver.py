"""Tests for dependent attribute resolution."""
import pytest

from aces_core.services.spec_resolver import (
    AttributeSource,
    convert_units,
    resolve_dependent_attributes,
    values_equal,
)


class TestResolveDependentAttributes:
    def test_cc_comes_from_the_linked_row(self, store):
        r = resolve_dependent_attributes(store, "engineConfig", "liter", "2.0", 102)
        assert r.matched
        assert r.used_fallback is False
        assert r.attributes["cc"].value == "1998"
        assert r.attributes["cc"].source == AttributeSource.DERIVED
        assert r.attributes["liter"].source == AttributeSource.SUPPLIED

    def test_first_match_wins_and_count_is_reported(self, store):
        r = resolve_dependent_attributes(store, "engineConfig", "liter", "2.0", 102)
        assert r.match_count == 2
        assert r.matched_config_id == "603"

    def test_numeric_values_compare_numerically(self, store):
        r = resolve_dependent_attributes(store, "engineConfig", "liter", "3.50", 100)
        assert r.matched_config_id == "601"
        assert r.attributes["fuel_type"].value == "GAS"
        assert r.attributes["horse_power"].value == "365"

    def test_only_linked_rows_are_candidates(self, store):
        # The 2.0L engines exist in EngineBase but are not linked to the F-150
        r = resolve_dependent_attributes(store, "engineConfig", "cc", "1998", 100)
        assert not r.matched
        assert r.match_count == 0

    def test_unit_conversion_fallback(self, store):
        r = resolve_dependent_attributes(store, "engineConfig", "liter", "2.7", 100)
        assert r.used_fallback
        assert r.attributes["cc"].value == "2700"
        assert r.attributes["cc"].source == AttributeSource.CONVERTED
        assert r.attributes["cid"].value == "165"

    def test_no_fabricated_values(self, store):
        r = resolve_dependent_attributes(store, "engineConfig", "liter", "2.7", 100)
        assert "horse_power" not in r.attributes
        assert "fuel_type" not in r.attributes

    def test_text_attribute_without_match_has_no_fallback(self, store):
        r = resolve_dependent_attributes(store, "driveType", "drive_type", "AWD", 100)
        assert not r.matched
        assert r.used_fallback is False
        assert list(r.attributes) == ["drive_type"]

    def test_text_attribute_match_is_case_insensitive(self, store):
        r = resolve_dependent_attributes(store, "driveType", "drive_type", "4wd", 100)
        assert r.matched_config_id == "6"

    def test_unknown_kind(self, store):
        with pytest.raises(ValueError):
            resolve_dependent_attributes(store, "nope", "liter", "2.0", 100)

    def test_unknown_attribute(self, store):
        with pytest.raises(ValueError):
            resolve_dependent_attributes(store, "engineConfig", "flux", "1.21", 100)


class TestHelpers:
    def test_values_equal(self):
        assert values_equal("2.0", "2")
        assert values_equal("GAS", "gas")
        assert not values_equal("2.0", "2.1")
        assert not values_equal(None, "2.0")

    def test_convert_units(self):
        assert convert_units("bore_in", "3.44") == {"bore_metric": "87.4"}
        assert convert_units("wheel_base_metric", "3683") == {"wheel_base": "145.0"}
        assert convert_units("cc", "1998") == {"liter": "2.0"}
        assert convert_units("liter", "abc") == {}
        assert convert_units("horse_power", "300") == {}
