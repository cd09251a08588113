"""
SQLite source for the reference databases.

Reads every table of a SQLite export of VCdb/PCdb/Qdb into an immutable
ReferenceDataStore:
- a table named "<Dataset>_<Table>" (e.g. PCdb_Parts) goes to that dataset
- any other table goes to the default dataset (VCdb)

Uses aiosqlite; the connection is only open for the duration of the load.
"""

import logging
from pathlib import Path

import aiosqlite

from aces_core.data.reference_store import (
    KNOWN_DATASETS,
    VCDB,
    ReferenceDataStore,
    ReferenceTable,
    load_reference_store,
)
from aces_core.errors import ReferenceDataError

logger = logging.getLogger(__name__)


def split_table_name(name: str, default_dataset: str = VCDB) -> tuple[str, str]:
    """("PCdb_Parts") -> ("PCdb", "Parts"); unprefixed names use default_dataset."""
    prefix, sep, rest = name.partition("_")
    if sep and rest:
        for dataset in KNOWN_DATASETS:
            if prefix.lower() == dataset.lower():
                return dataset, rest
    return default_dataset, name


def _cell(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    s = str(value).strip()
    return s or None


async def _list_tables(db: aiosqlite.Connection) -> list[str]:
    cursor = await db.execute(
        """SELECT name FROM sqlite_master
           WHERE type = 'table' AND name NOT LIKE 'sqlite_%'
           ORDER BY name"""
    )
    return [row["name"] for row in await cursor.fetchall()]


async def _read_table(db: aiosqlite.Connection, name: str, table: str) -> ReferenceTable:
    quoted = name.replace('"', '""')
    cursor = await db.execute(f'SELECT * FROM "{quoted}" ORDER BY rowid')
    columns = [d[0] for d in cursor.description]
    rows = [{col: _cell(row[col]) for col in columns} for row in await cursor.fetchall()]
    return ReferenceTable(table, columns, rows)


async def load_store_from_sqlite(path: Path, default_dataset: str = VCDB) -> ReferenceDataStore:
    """Load all tables of a SQLite reference export into a store."""
    path = Path(path)
    if not path.is_file():
        raise ReferenceDataError(f"Reference database not found: {path}")

    datasets: dict[str, dict[str, ReferenceTable]] = {}
    try:
        async with aiosqlite.connect(str(path)) as db:
            db.row_factory = aiosqlite.Row
            for name in await _list_tables(db):
                dataset, table = split_table_name(name, default_dataset)
                datasets.setdefault(dataset, {})[table] = await _read_table(db, name, table)
    except aiosqlite.Error as e:
        raise ReferenceDataError(f"Cannot read reference database {path}: {e}") from e

    for dataset, tables in datasets.items():
        rows = sum(len(t) for t in tables.values())
        logger.info(f"{dataset}: {len(tables)} tables, {rows} total rows (from {path.name})")
    return ReferenceDataStore(datasets)


async def load_configured_store(
    reference_data_dir: Path | None = None,
    reference_sqlite_path: Path | None = None,
) -> ReferenceDataStore:
    """
    Open whichever reference source is configured; the ASCII directory wins
    when both are set. With neither, an empty store is returned and every
    reference check reports "cannot verify".
    """
    if reference_data_dir:
        return load_reference_store(Path(reference_data_dir))
    if reference_sqlite_path:
        return await load_store_from_sqlite(Path(reference_sqlite_path))
    logger.warning("No reference data configured; reference checks cannot be verified")
    return ReferenceDataStore({})
