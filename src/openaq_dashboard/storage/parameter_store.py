"""
Local DuckDB mirror of OpenAQ parameters.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List

import duckdb

from openaq_dashboard.core.logging import get_logger
from openaq_dashboard.core.schemas import ParameterRecord

logger = get_logger(__name__)

TABLE = "openaq_parameters"

_COLUMNS = ("remote_id", "name", "display_name", "units", "description")


class ParameterStore:
    """Upsert cache of ``ParameterRecord`` keyed by the OpenAQ parameter id."""

    def __init__(self, database_path: str = "data/openaq.duckdb"):
        if database_path != ":memory:":
            Path(database_path).parent.mkdir(parents=True, exist_ok=True)
        self.database_path = database_path
        self._db = duckdb.connect(database_path)
        self.ensure_schema()

    def ensure_schema(self) -> None:
        self._db.execute(f"""
            CREATE TABLE IF NOT EXISTS {TABLE} (
                remote_id BIGINT PRIMARY KEY,
                name VARCHAR NOT NULL,
                display_name VARCHAR,
                units VARCHAR,
                description VARCHAR,
                created_at TIMESTAMP,
                updated_at TIMESTAMP
            )
        """)

    def upsert_many(self, records: Iterable[ParameterRecord]) -> int:
        """Insert new rows, update existing ones in place (created_at is kept).

        Returns:
            Number of distinct records written
        """
        # last one wins if upstream repeats an id
        by_id = {r.remote_id: r for r in records}
        if not by_id:
            return 0

        now = datetime.now(timezone.utc).replace(tzinfo=None)
        rows = [
            [r.remote_id, r.name, r.display_name, r.units, r.description, now, now]
            for r in by_id.values()
        ]
        cur = self._db.cursor()
        try:
            cur.executemany(
                f"""
                INSERT INTO {TABLE}
                    (remote_id, name, display_name, units, description, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (remote_id) DO UPDATE SET
                    name = EXCLUDED.name,
                    display_name = EXCLUDED.display_name,
                    units = EXCLUDED.units,
                    description = EXCLUDED.description,
                    updated_at = EXCLUDED.updated_at
                """,
                rows,
            )
        finally:
            cur.close()
        logger.info(f"Upserted {len(rows)} parameters into {TABLE}")
        return len(rows)

    def list_all(self) -> List[ParameterRecord]:
        cur = self._db.cursor()
        try:
            fetched = cur.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM {TABLE} "
                "ORDER BY display_name NULLS LAST, name"
            ).fetchall()
        finally:
            cur.close()
        return [ParameterRecord(**dict(zip(_COLUMNS, row))) for row in fetched]

    def count(self) -> int:
        cur = self._db.cursor()
        try:
            return cur.execute(f"SELECT count(*) FROM {TABLE}").fetchone()[0]
        finally:
            cur.close()

    def close(self) -> None:
        self._db.close()
