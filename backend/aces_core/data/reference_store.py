"""
Immutable, in-memory store for the AutoCare reference databases (VCdb, PCdb, Qdb).

Tables are loaded once, rows are frozen, and the join indexes the resolvers
need are built up front:
- primary key -> row position for every table (first column is the key)
- VehicleID -> target ids for every VCdb ``VehicleTo*`` link table
- BaseVehicleID -> Vehicle rows (variants)
- (YearID, MakeID, ModelID) -> BaseVehicleIDs

The ASCII loader reads the pipe/tab delimited ``.txt`` exports AutoCare ships.
"""

import csv
import logging
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType

from aces_core.errors import ReferenceDataError

logger = logging.getLogger(__name__)

VCDB = "VCdb"
PCDB = "PCdb"
QDB = "Qdb"
KNOWN_DATASETS = (VCDB, PCDB, QDB)

# "20231026_EngineBase.txt" -> "EngineBase"
_PUBLICATION_PREFIX = re.compile(r"^\d{8}_")

Row = Mapping[str, str | None]


def ref_key(value) -> str | None:
    """Normalize an identifier to the string form used as an index key."""
    if value is None:
        return None
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, int):
        return str(value)
    s = str(value).strip()
    return s or None


def table_name_from_file(file_name: str) -> str:
    """Strip the extension and any YYYYMMDD_ publication prefix."""
    stem = Path(file_name).stem
    return _PUBLICATION_PREFIX.sub("", stem)


class ReferenceTable:
    """One reference table: ordered frozen rows plus a primary key index."""

    def __init__(self, name: str, columns: Iterable[str], rows: Iterable[Mapping]):
        self.name = name
        self.columns = tuple(columns)
        self.rows: tuple[Row, ...] = tuple(MappingProxyType(dict(r)) for r in rows)
        self.key_column = self.columns[0] if self.columns else None
        self._positions: dict[str, int] = {}
        if self.key_column:
            for i, row in enumerate(self.rows):
                key = ref_key(row.get(self.key_column))
                if key is not None and key not in self._positions:
                    self._positions[key] = i

    def __len__(self) -> int:
        return len(self.rows)

    def get(self, key) -> Row | None:
        pos = self._positions.get(ref_key(key))
        return self.rows[pos] if pos is not None else None

    def position(self, key) -> int | None:
        return self._positions.get(ref_key(key))


class ReferenceDataStore:
    """
    Read-only access to reference tables, keyed by (dataset, table).

    Table names are matched case-insensitively. A missing table reads as
    empty so callers can degrade instead of failing; use has_table() to tell
    the difference.
    """

    def __init__(self, datasets: Mapping[str, Mapping[str, ReferenceTable]]):
        self._tables: Mapping[tuple[str, str], ReferenceTable] = MappingProxyType(
            {
                (dataset.lower(), name.lower()): table
                for dataset, tables in datasets.items()
                for name, table in tables.items()
            }
        )
        self._dataset_names = {d.lower(): d for d in datasets}
        self._links = MappingProxyType(self._build_link_indexes())
        self._variants = MappingProxyType(self._build_variant_index())
        self._base_vehicles = MappingProxyType(self._build_base_vehicle_index())

    @classmethod
    def from_rows(cls, datasets: Mapping[str, Mapping[str, list[Mapping]]]) -> "ReferenceDataStore":
        """Build a store from plain row dicts ({dataset: {table: [row, ...]}})."""
        built: dict[str, dict[str, ReferenceTable]] = {}
        for dataset, tables in datasets.items():
            built[dataset] = {}
            for name, rows in tables.items():
                columns = list(rows[0].keys()) if rows else []
                built[dataset][name] = ReferenceTable(name, columns, rows)
        return cls(built)

    # ─── Table access ────────────────────────────────────────────────

    def _table(self, dataset: str, table: str) -> ReferenceTable | None:
        return self._tables.get((dataset.lower(), table.lower()))

    def has_table(self, dataset: str, table: str) -> bool:
        return self._table(dataset, table) is not None

    def get_table(self, dataset: str, table: str) -> tuple[Row, ...]:
        """Ordered rows of a table; empty when the table is not loaded."""
        t = self._table(dataset, table)
        return t.rows if t else ()

    def get_row(self, dataset: str, table: str, key) -> Row | None:
        """Row whose first (key) column equals key."""
        t = self._table(dataset, table)
        return t.get(key) if t else None

    def rows_by_keys(self, dataset: str, table: str, keys: Iterable) -> list[Row]:
        """Rows for the given keys, in table order, unknown keys skipped."""
        t = self._table(dataset, table)
        if not t:
            return []
        positions = {p for p in (t.position(k) for k in keys) if p is not None}
        return [t.rows[p] for p in sorted(positions)]

    def lookup_value(self, dataset: str, table: str, key, column: str) -> str | None:
        row = self.get_row(dataset, table, key)
        return row.get(column) if row else None

    def datasets(self) -> list[str]:
        return sorted(self._dataset_names.values())

    def table_names(self, dataset: str) -> list[str]:
        return sorted(t.name for (d, _), t in self._tables.items() if d == dataset.lower())

    def stats(self) -> dict[str, dict[str, int]]:
        """{dataset: {table: row_count}} for logging and health output."""
        out: dict[str, dict[str, int]] = {}
        for (d, _), t in self._tables.items():
            out.setdefault(self._dataset_names.get(d, d), {})[t.name] = len(t)
        return out

    # ─── Join indexes ────────────────────────────────────────────────

    def link_targets(self, link_table: str, vehicle_ids: Iterable) -> list[str]:
        """
        Target ids reachable from the given Vehicle ids through a VCdb
        VehicleTo* link table, deduplicated, first-seen order.
        """
        index = self._links.get(link_table.lower())
        if not index:
            return []
        seen: dict[str, None] = {}
        for vid in vehicle_ids:
            for target in index.get(ref_key(vid), ()):
                seen.setdefault(target, None)
        return list(seen)

    def has_link_table(self, link_table: str) -> bool:
        return link_table.lower() in self._links

    def variants_of(self, base_vehicle_id) -> tuple[Row, ...]:
        """Vehicle rows (submodel-level variants) of a base vehicle."""
        return self._variants.get(ref_key(base_vehicle_id), ())

    def base_vehicles_for(self, year_id, make_id, model_id) -> tuple[str, ...]:
        """BaseVehicleIDs for an exact (YearID, MakeID, ModelID) triple."""
        return self._base_vehicles.get((ref_key(year_id), ref_key(make_id), ref_key(model_id)), ())

    def _build_link_indexes(self) -> dict[str, Mapping[str, tuple[str, ...]]]:
        indexes: dict[str, Mapping[str, tuple[str, ...]]] = {}
        for (dataset, name), table in self._tables.items():
            if dataset != VCDB.lower() or not name.startswith("vehicleto"):
                continue
            target_column = _link_target_column(table)
            if target_column is None:
                logger.warning(f"Link table {table.name} has no target id column, skipped")
                continue
            index: dict[str, dict[str, None]] = {}
            for row in table.rows:
                vid = ref_key(row.get("VehicleID"))
                target = ref_key(row.get(target_column))
                if vid is None or target is None:
                    continue
                index.setdefault(vid, {})[target] = None
            indexes[name] = MappingProxyType({k: tuple(v) for k, v in index.items()})
        return indexes

    def _build_variant_index(self) -> dict[str, tuple[Row, ...]]:
        index: dict[str, list[Row]] = {}
        for row in self.get_table(VCDB, "Vehicle"):
            bv = ref_key(row.get("BaseVehicleID"))
            if bv is not None:
                index.setdefault(bv, []).append(row)
        return {k: tuple(v) for k, v in index.items()}

    def _build_base_vehicle_index(self) -> dict[tuple, tuple[str, ...]]:
        index: dict[tuple, list[str]] = {}
        for row in self.get_table(VCDB, "BaseVehicle"):
            key = (ref_key(row.get("YearID")), ref_key(row.get("MakeID")), ref_key(row.get("ModelID")))
            bv = ref_key(row.get("BaseVehicleID"))
            if bv is not None:
                index.setdefault(key, []).append(bv)
        return {k: tuple(v) for k, v in index.items()}


def _link_target_column(table: ReferenceTable) -> str | None:
    """The id column a VehicleTo* row points at (not its own key, not VehicleID)."""
    for column in table.columns[1:]:
        if column.lower() != "vehicleid" and column.lower().endswith("id"):
            return column
    return None


# ─── ASCII loader ────────────────────────────────────────────────────


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    v = value.strip()
    if len(v) >= 2 and v[0] == v[-1] and v[0] in "\"'":
        v = v[1:-1].strip()
    return v or None


def parse_table_file(path: Path) -> ReferenceTable | None:
    """
    Parse one delimited table file. The header row names the columns;
    '|' is the delimiter when the header contains one, TAB otherwise.
    Returns None for files without a header and at least one data row.
    """
    with open(path, newline="", encoding="utf-8-sig", errors="replace") as f:
        lines = [line for line in f.read().splitlines() if line.strip()]
    if len(lines) < 2:
        return None
    delimiter = "|" if "|" in lines[0] else "\t"
    reader = csv.reader(lines, delimiter=delimiter)
    header = [_clean(h) or f"column_{i}" for i, h in enumerate(next(reader))]
    rows = []
    for values in reader:
        rows.append({col: _clean(values[i]) if i < len(values) else None for i, col in enumerate(header)})
    return ReferenceTable(table_name_from_file(path.name), header, rows)


def load_ascii_dataset(path: Path) -> dict[str, ReferenceTable]:
    """Load every .txt table below a dataset directory."""
    tables: dict[str, ReferenceTable] = {}
    for file in sorted(path.rglob("*.txt")):
        try:
            table = parse_table_file(file)
        except OSError as e:
            raise ReferenceDataError(f"Cannot read {file}: {e}") from e
        if table is None:
            logger.warning(f"Skipping empty table file {file.name}")
            continue
        tables[table.name] = table
    return tables


def load_reference_store(root: Path, datasets: Iterable[str] = KNOWN_DATASETS) -> ReferenceDataStore:
    """
    Load VCdb/PCdb/Qdb from sub-directories of root (directory names are
    matched case-insensitively). Missing datasets are logged and skipped.
    """
    root = Path(root)
    if not root.is_dir():
        raise ReferenceDataError(f"Reference data directory not found: {root}")

    children = {p.name.lower(): p for p in root.iterdir() if p.is_dir()}
    loaded: dict[str, dict[str, ReferenceTable]] = {}
    for dataset in datasets:
        path = children.get(dataset.lower())
        if path is None:
            logger.warning(f"{dataset} directory not found under {root}")
            continue
        loaded[dataset] = load_ascii_dataset(path)
        rows = sum(len(t) for t in loaded[dataset].values())
        logger.info(f"{dataset}: {len(loaded[dataset])} tables, {rows} total rows")

    return ReferenceDataStore(loaded)
