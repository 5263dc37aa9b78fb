"""
dataset.py — Read-only access to the GADM GeoPackage.

Responsible for:
    - Opening the GeoPackage as an immutable, read-only SQLite database.
    - Serialising every query through one guarded connection.
    - The R-tree bounding-box prefilter used by reverse lookups.
    - The per-level probes used by the hierarchy resolver.
"""

from __future__ import annotations

import logging
import re
import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from region_lookup.errors import StoreError
from region_lookup.hierarchy import GID_COLUMNS, NAME_COLUMNS, AdminChain, Level

logger = logging.getLogger(__name__)

DEFAULT_CANDIDATE_LIMIT = 200

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _quote_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name or ""):
        raise StoreError(f"invalid SQL identifier: {name!r}")
    return f'"{name}"'


@dataclass(frozen=True)
class RegionRow:
    """One dataset row returned by the bounding-box prefilter."""

    codes: tuple[str, ...]
    names: tuple[str, ...]
    geometry: bytes

    @property
    def code(self) -> str:
        """Code of the deepest level present on this row."""
        return next((c for c in reversed(self.codes) if c), "")

    def chain(self) -> AdminChain:
        return AdminChain.from_columns(self.codes, self.names)


class RegionDataset:
    """
    A GeoPackage region table plus its R-tree spatial index.

    Args:
        path:            Path to the .gpkg file.
        table:           Region table name (e.g. "gadm_410").
        geom_column:     Geometry column name (e.g. "geom").
        candidate_limit: Maximum rows returned by ``candidates``.
    """

    def __init__(
        self,
        path: str | Path,
        table: str = "gadm_410",
        geom_column: str = "geom",
        candidate_limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> None:
        self.path = Path(path)
        self.table = table
        self.geom_column = geom_column
        self.rtree_table = f"rtree_{table}_{geom_column}"
        self.candidate_limit = candidate_limit

        self._table = _quote_identifier(table)
        self._geom = _quote_identifier(geom_column)
        self._rtree = _quote_identifier(self.rtree_table)

        self._lock = threading.Lock()
        self._conn = self._open()

        columns = ", ".join(f"a.{c}" for c in GID_COLUMNS + NAME_COLUMNS)
        self._candidate_sql = (
            f"SELECT {columns}, a.{self._geom} "
            f"FROM {self._table} AS a "
            f"JOIN {self._rtree} AS r ON a.rowid = r.id "
            "WHERE r.minx <= ? AND r.maxx >= ? AND r.miny <= ? AND r.maxy >= ? "
            "LIMIT ?"
        )

    def _open(self) -> sqlite3.Connection:
        if not self.path.is_file():
            raise StoreError(f"GeoPackage not found: {self.path}")

        uri = f"{self.path.resolve().as_uri()}?mode=ro&immutable=1"
        try:
            conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
            conn.execute(f"SELECT 1 FROM {self._table} LIMIT 1").fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"cannot open GeoPackage {self.path}: {exc}") from exc

        logger.info("Opened GeoPackage %s (table %s)", self.path.name, self.table)
        return conn

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _query(self, sql: str, params: Sequence[Any]) -> list[tuple]:
        with self._lock:
            try:
                return self._conn.execute(sql, tuple(params)).fetchall()
            except sqlite3.Error as exc:
                raise StoreError(f"dataset query failed: {exc}") from exc

    # ── Spatial index ─────────────────────────────────────────────────────────

    def candidates(self, lon: float, lat: float) -> list[RegionRow]:
        """
        Rows whose R-tree box contains (lon, lat), in index scan order.

        At most ``candidate_limit`` rows are returned.
        """
        rows = self._query(self._candidate_sql, (lon, lon, lat, lat, self.candidate_limit))
        out = []
        for row in rows:
            codes = tuple(v or "" for v in row[0:6])
            names = tuple(v or "" for v in row[6:12])
            out.append(RegionRow(codes=codes, names=names, geometry=row[12]))
        logger.debug("%d candidates for (%.6f, %.6f)", len(out), lat, lon)
        return out

    # ── Hierarchy probes ──────────────────────────────────────────────────────

    def has_code(self, level: Level, code: str) -> bool:
        sql = f"SELECT 1 FROM {self._table} WHERE {level.gid_column} = ? LIMIT 1"
        return bool(self._query(sql, (code,)))

    def child_pairs(self, level: Level, code: str) -> list[tuple[str, str]]:
        """Distinct (child code, child name) pairs one level below ``code``."""
        child = level.child
        sql = (
            f"SELECT DISTINCT {child.gid_column}, {child.name_column} "
            f"FROM {self._table} "
            f"WHERE {level.gid_column} = ? AND {child.gid_column} IS NOT NULL"
        )
        return self._query(sql, (code,))

    def node_rows(self, level: Level, code: str, limit: int = 1) -> list[tuple[str, str | None, bytes]]:
        """
        (name, parent code, geometry blob) of at most ``limit`` rows carrying
        ``code``, in table scan order.
        """
        parent = level.parent
        parent_col = parent.gid_column if parent is not None else "NULL"
        sql = (
            f"SELECT {level.name_column}, {parent_col}, {self._geom} "
            f"FROM {self._table} WHERE {level.gid_column} = ? LIMIT ?"
        )
        return self._query(sql, (code, limit))
