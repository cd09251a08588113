"""Tests for the reference data store and the ASCII table loader."""
import pytest

from aces_core.data.reference_store import (
    ReferenceDataStore,
    load_reference_store,
    parse_table_file,
    table_name_from_file,
)
from aces_core.errors import ReferenceDataError


class TestTableAccess:
    def test_get_table_returns_rows_in_order(self, store):
        rows = store.get_table("VCdb", "Make")
        assert [r["MakeName"] for r in rows] == ["Ford", "GMC", "Toyota", "Land Rover"]

    def test_table_lookup_is_case_insensitive(self, store):
        assert store.get_table("vcdb", "basevehicle") == store.get_table("VCdb", "BaseVehicle")
        assert store.has_table("PCDB", "parts")

    def test_missing_table_reads_as_empty(self, store):
        assert store.get_table("VCdb", "NoSuchTable") == ()
        assert store.has_table("VCdb", "NoSuchTable") is False

    def test_get_row_by_key_accepts_int_or_str(self, store):
        assert store.get_row("VCdb", "Make", 1)["MakeName"] == "Ford"
        assert store.get_row("VCdb", "Make", "1")["MakeName"] == "Ford"
        assert store.get_row("VCdb", "Make", 99) is None

    def test_rows_by_keys_keeps_table_order(self, store):
        rows = store.rows_by_keys("VCdb", "SubModel", [4, 1, 999, 2])
        assert [r["SubModelName"] for r in rows] == ["XLT", "Lariat", "Denali"]

    def test_rows_are_read_only(self, store):
        row = store.get_row("VCdb", "Make", 1)
        with pytest.raises(TypeError):
            row["MakeName"] = "Changed"

    def test_stats(self, store):
        stats = store.stats()
        assert stats["PCdb"]["Parts"] == 2
        assert stats["VCdb"]["BaseVehicle"] == 6


class TestJoinIndexes:
    def test_variants_of_base_vehicle(self, store):
        variants = store.variants_of(100)
        assert [v["VehicleID"] for v in variants] == ["1000", "1001"]

    def test_base_vehicles_for_triple(self, store):
        assert store.base_vehicles_for(2015, 1, 10) == ("100",)
        assert store.base_vehicles_for(2017, 1, 10) == ()

    def test_link_targets_deduplicates(self, store):
        targets = store.link_targets("VehicleToEngineConfig", ["1000", "1001"])
        assert targets == ["601", "602"]

    def test_link_targets_unknown_table(self, store):
        assert store.link_targets("VehicleToNothing", ["1000"]) == []
        assert store.has_link_table("VehicleToNothing") is False

    def test_empty_store(self):
        empty = ReferenceDataStore({})
        assert empty.variants_of(1) == ()
        assert empty.datasets() == []


class TestAsciiLoader:
    def test_table_name_strips_publication_prefix(self):
        assert table_name_from_file("20231026_EngineBase.txt") == "EngineBase"
        assert table_name_from_file("Make.txt") == "Make"

    def test_pipe_delimited_with_quotes_and_blanks(self, tmp_path):
        f = tmp_path / "Make.txt"
        f.write_text('MakeID|MakeName\n1|"Ford"\n2|\n\n', encoding="utf-8")
        table = parse_table_file(f)
        assert table.name == "Make"
        assert table.get(1)["MakeName"] == "Ford"
        assert table.get(2)["MakeName"] is None
        assert len(table) == 2

    def test_tab_delimited(self, tmp_path):
        f = tmp_path / "20230101_Model.txt"
        f.write_text("ModelID\tModelName\n10\tF-150\n", encoding="utf-8")
        table = parse_table_file(f)
        assert table.name == "Model"
        assert table.get("10")["ModelName"] == "F-150"

    def test_header_only_file_is_skipped(self, tmp_path):
        f = tmp_path / "Empty.txt"
        f.write_text("ID|Name\n", encoding="utf-8")
        assert parse_table_file(f) is None

    def test_load_reference_store_from_directories(self, tmp_path):
        vcdb = tmp_path / "vcdb" / "vcdb_ascii"
        vcdb.mkdir(parents=True)
        (vcdb / "Make.txt").write_text("MakeID|MakeName\n1|Ford\n", encoding="utf-8")
        pcdb = tmp_path / "PCdb"
        pcdb.mkdir()
        (pcdb / "Parts.txt").write_text("PartTerminologyID|PartTerminologyName\n1896|Disc Brake Pad\n", encoding="utf-8")

        store = load_reference_store(tmp_path)
        assert store.get_row("VCdb", "Make", 1)["MakeName"] == "Ford"
        assert store.get_row("PCdb", "Parts", 1896)["PartTerminologyName"] == "Disc Brake Pad"
        assert store.has_table("Qdb", "Qualifier") is False

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(ReferenceDataError):
            load_reference_store(tmp_path / "nope")
