"""
sqlite3 storage backend for the index service.
"""
from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from crate_index.storage.db_manager import DatabaseManager
from crate_index.domain.models import Dependency, DependencyKind, Package, Version

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS packages (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS versions (
    id INTEGER PRIMARY KEY,
    package_id INTEGER NOT NULL REFERENCES packages (id),
    num TEXT NOT NULL,
    created_at TEXT NOT NULL,
    checksum TEXT NOT NULL,
    yanked INTEGER NOT NULL DEFAULT 0,
    links TEXT,
    rust_version TEXT,
    features TEXT NOT NULL DEFAULT '{}'
);

CREATE INDEX IF NOT EXISTS versions_package_id ON versions (package_id);

CREATE TABLE IF NOT EXISTS dependencies (
    id INTEGER PRIMARY KEY,
    version_id INTEGER NOT NULL REFERENCES versions (id),
    package_id INTEGER NOT NULL REFERENCES packages (id),
    req TEXT NOT NULL,
    explicit_name TEXT,
    features TEXT NOT NULL DEFAULT '[]',
    optional INTEGER NOT NULL DEFAULT 0,
    default_features INTEGER NOT NULL DEFAULT 1,
    kind INTEGER NOT NULL DEFAULT 0,
    target TEXT
);

CREATE INDEX IF NOT EXISTS dependencies_version_id ON dependencies (version_id);
"""


def _decode_feature_table(raw: Optional[str], version_id: int) -> Dict[str, List[str]]:
    """
    Decode the JSON feature column of a version.

    A malformed table is treated as empty so that one bad row cannot take
    the whole package out of the index.
    """
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except ValueError as e:
        logger.warning(f"Invalid features JSON on version {version_id}: {e}")
        return {}
    if not isinstance(value, dict) or not all(
        isinstance(v, list) and all(isinstance(s, str) for s in v) for v in value.values()
    ):
        logger.warning(f"Features of version {version_id} are not a name -> list mapping")
        return {}
    return value


def _decode_feature_list(raw: Optional[str], dependency_id: int) -> List[str]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError as e:
        logger.warning(f"Invalid features JSON on dependency {dependency_id}: {e}")
        return []
    if not isinstance(value, list) or not all(isinstance(s, str) for s in value):
        logger.warning(f"Features of dependency {dependency_id} are not a list of strings")
        return []
    return value


class SqliteDatabaseManager(DatabaseManager):
    """Reads packages, versions and dependencies from a sqlite database."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.conn: Optional[sqlite3.Connection] = None

    def connect(self) -> sqlite3.Connection:
        """Open connection to the database."""
        if self.conn is None:
            logger.debug(f"Connecting to index database: {self.db_path}")
            self.conn = sqlite3.connect(str(self.db_path))
            self.conn.row_factory = sqlite3.Row
        return self.conn

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def initialize(self) -> None:
        """Create the schema if it does not exist yet."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self.connect()
        conn.executescript(SCHEMA)
        conn.commit()

    def _query(self, sql: str, params: Sequence[Any]) -> List[sqlite3.Row]:
        conn = self.connect()
        try:
            return conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Database error running query: {e}", exc_info=True)
            raise

    def find_package_by_name(self, name: str) -> Optional[Package]:
        rows = self._query("SELECT id, name FROM packages WHERE name = ? LIMIT 1", (name,))
        if not rows:
            return None
        return Package(id=rows[0]["id"], name=rows[0]["name"])

    def get_versions(self, package_id: int) -> List[Version]:
        rows = self._query(
            """
            SELECT id, package_id, num, created_at, checksum, yanked,
                   links, rust_version, features
            FROM versions
            WHERE package_id = ?
            """,
            (package_id,),
        )
        return [
            Version(
                id=row["id"],
                package_id=row["package_id"],
                num=row["num"],
                created_at=row["created_at"],
                checksum=row["checksum"],
                yanked=bool(row["yanked"]),
                links=row["links"],
                rust_version=row["rust_version"],
                features=_decode_feature_table(row["features"], row["id"]),
            )
            for row in rows
        ]

    def get_dependencies(self, version_ids: Sequence[int]) -> List[Tuple[Dependency, str]]:
        if not version_ids:
            return []

        # The id set goes in as a single JSON array parameter so the query
        # stays within the host-parameter limit however many versions exist.
        rows = self._query(
            """
            SELECT d.id, d.version_id, d.package_id, d.req, d.explicit_name,
                   d.features, d.optional, d.default_features, d.kind, d.target,
                   p.name AS package_name
            FROM dependencies d
            JOIN packages p ON p.id = d.package_id
            WHERE d.version_id IN (SELECT value FROM json_each(?))
            """,
            (json.dumps([int(i) for i in version_ids]),),
        )
        return [
            (
                Dependency(
                    id=row["id"],
                    version_id=row["version_id"],
                    package_id=row["package_id"],
                    req=row["req"],
                    explicit_name=row["explicit_name"],
                    features=_decode_feature_list(row["features"], row["id"]),
                    optional=bool(row["optional"]),
                    default_features=bool(row["default_features"]),
                    kind=DependencyKind.from_rank(row["kind"]),
                    target=row["target"],
                ),
                row["package_name"],
            )
            for row in rows
        ]
