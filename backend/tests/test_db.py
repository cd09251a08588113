"""Tests for the SQLite reference source."""

import aiosqlite
import pytest
import pytest_asyncio

from aces_core.data.reference_store import PCDB, QDB, VCDB
from aces_core.db import load_configured_store, load_store_from_sqlite, split_table_name
from aces_core.errors import ReferenceDataError


@pytest_asyncio.fixture
async def reference_db(tmp_path):
    """A small SQLite export with unprefixed VCdb tables and prefixed PCdb/Qdb tables."""
    path = tmp_path / "reference.db"
    async with aiosqlite.connect(str(path)) as db:
        await db.execute("CREATE TABLE Make (MakeID INTEGER, MakeName TEXT)")
        await db.executemany("INSERT INTO Make VALUES (?, ?)", [(1, "Ford"), (2, "GMC")])
        await db.execute("CREATE TABLE BaseVehicle (BaseVehicleID INTEGER, YearID INTEGER, MakeID INTEGER, ModelID INTEGER)")
        await db.execute("INSERT INTO BaseVehicle VALUES (100, 2015, 1, 10)")
        await db.execute('CREATE TABLE "PCdb_Parts" (PartTerminologyID INTEGER, PartTerminologyName TEXT)')
        await db.execute("INSERT INTO PCdb_Parts VALUES (1896, 'Disc Brake Pad')")
        await db.execute('CREATE TABLE "Qdb_Qualifier" (QualifierID INTEGER, QualifierText TEXT)')
        await db.execute("INSERT INTO Qdb_Qualifier VALUES (12877, '  With A/C ')")
        await db.execute("INSERT INTO Qdb_Qualifier VALUES (2350, '')")
        await db.commit()
    return path


class TestSplitTableName:
    def test_prefixed(self):
        assert split_table_name("PCdb_Parts") == (PCDB, "Parts")
        assert split_table_name("qdb_Qualifier") == (QDB, "Qualifier")

    def test_unprefixed_goes_to_default(self):
        assert split_table_name("BaseVehicle") == (VCDB, "BaseVehicle")
        assert split_table_name("Parts", default_dataset=PCDB) == (PCDB, "Parts")

    def test_unknown_prefix_is_part_of_the_name(self):
        assert split_table_name("Vehicle_Extra") == (VCDB, "Vehicle_Extra")


class TestLoadStoreFromSqlite:
    @pytest.mark.asyncio
    async def test_tables_land_in_datasets(self, reference_db):
        store = await load_store_from_sqlite(reference_db)
        assert store.has_table(VCDB, "Make")
        assert store.has_table(PCDB, "Parts")
        assert store.has_table(QDB, "Qualifier")
        assert not store.has_table(VCDB, "PCdb_Parts")
        assert store.lookup_value(PCDB, "Parts", 1896, "PartTerminologyName") == "Disc Brake Pad"

    @pytest.mark.asyncio
    async def test_cells_are_normalized(self, reference_db):
        store = await load_store_from_sqlite(reference_db)
        assert store.get_row(VCDB, "Make", "1")["MakeName"] == "Ford"
        assert store.lookup_value(QDB, "Qualifier", 12877, "QualifierText") == "With A/C"
        assert store.get_row(QDB, "Qualifier", 2350)["QualifierText"] is None

    @pytest.mark.asyncio
    async def test_join_indexes_built(self, reference_db):
        store = await load_store_from_sqlite(reference_db)
        assert store.base_vehicles_for(2015, 1, 10) == ("100",)

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(ReferenceDataError):
            await load_store_from_sqlite(tmp_path / "nope.db")


class TestLoadConfiguredStore:
    @pytest.mark.asyncio
    async def test_nothing_configured_gives_empty_store(self):
        store = await load_configured_store()
        assert store.datasets() == []

    @pytest.mark.asyncio
    async def test_sqlite_source(self, reference_db):
        store = await load_configured_store(reference_sqlite_path=reference_db)
        assert store.has_table(VCDB, "BaseVehicle")

    @pytest.mark.asyncio
    async def test_directory_wins(self, tmp_path, reference_db):
        vcdb = tmp_path / "ascii" / "VCdb"
        vcdb.mkdir(parents=True)
        (vcdb / "20240229_Make.txt").write_text("MakeID|MakeName\n7|Kia\n")
        store = await load_configured_store(reference_data_dir=tmp_path / "ascii", reference_sqlite_path=reference_db)
        assert store.lookup_value(VCDB, "Make", 7, "MakeName") == "Kia"
        assert not store.has_table(VCDB, "BaseVehicle")
