"""
SQLite store for local runs and tests.

Queries are written with ``%s`` placeholders for both stores; this store
maps them to SQLite's ``?`` style before execution.
"""

import os
import logging
import sqlite3
from contextlib import closing
from typing import Any, Dict, Iterator, List, Optional, Union

from emissions_pipeline.config import IDENTIFIER_RE
from emissions_pipeline.exceptions import QueryError, StoreConnectionError

logger = logging.getLogger(__name__)


class SQLiteManager:
    """SQLite database manager holding a single connection."""

    backend = 'sqlite'

    def __init__(self, db_path: str = None):
        self.db_path = db_path or os.getenv('SQLITE_DB_PATH', 'data/emissions.db')
        self.connection: Optional[sqlite3.Connection] = None

    def _ensure_db_directory(self):
        """Ensure the database directory exists."""
        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    def connect(self) -> sqlite3.Connection:
        """Open the connection if it is not already open."""
        if self.connection is None:
            try:
                if self.db_path != ':memory:':
                    self._ensure_db_directory()
                self.connection = sqlite3.connect(self.db_path)
                self.connection.row_factory = sqlite3.Row
                logger.info(f"SQLite connection opened: {self.db_path}")
            except (sqlite3.Error, OSError) as e:
                logger.error(f"Failed to open SQLite database {self.db_path}: {e}")
                raise StoreConnectionError(f"Could not open SQLite database: {e}") from e
        return self.connection

    def close(self) -> None:
        """Close the connection."""
        if self.connection is not None:
            self.connection.close()
            self.connection = None
            logger.info("SQLite connection closed")

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @staticmethod
    def _translate(query: str) -> str:
        return query.replace('%s', '?')

    def render(self, template: str, table: str) -> str:
        """Compose a query template with a partition name as a quoted identifier."""
        if not IDENTIFIER_RE.match(table):
            raise ValueError(f"Refusing to render invalid table name: '{table}'")
        return template.format(table=f'"{table}"')

    def execute_query(
        self,
        query: str,
        params: Optional[tuple] = None,
        fetch: bool = True,
    ) -> Union[List[Dict[str, Any]], int]:
        """Execute a query and return its rows, or the rowcount when ``fetch`` is False."""
        connection = self.connect()
        try:
            with closing(connection.cursor()) as cursor:
                cursor.execute(self._translate(query), params or ())

                if fetch:
                    rows = cursor.fetchall()
                    connection.commit()
                    return [dict(row) for row in rows]

                connection.commit()
                return cursor.rowcount

        except sqlite3.Error as e:
            connection.rollback()
            logger.error(f"Database error: {e}")
            raise QueryError(str(e)) from e

    def iter_query(self, query: str, params: Optional[tuple] = None) -> Iterator[Dict[str, Any]]:
        """Yield result rows lazily; the cursor is closed however iteration ends."""
        connection = self.connect()
        try:
            with closing(connection.cursor()) as cursor:
                cursor.execute(self._translate(query), params or ())
                for row in cursor:
                    yield dict(row)
        except sqlite3.Error as e:
            connection.rollback()
            logger.error(f"Database scan failed: {e}")
            raise QueryError(str(e)) from e

    def table_exists(self, table: str) -> bool:
        """Check whether a table exists."""
        result = self.execute_query(
            "SELECT COUNT(*) AS present FROM sqlite_master WHERE type = 'table' AND name = %s",
            (table,),
        )
        return bool(result and result[0]['present'])

    def health_check(self) -> bool:
        """Check if database is healthy."""
        try:
            result = self.execute_query("SELECT 1 as health_check")
            return len(result) > 0 and result[0]['health_check'] == 1
        except (QueryError, StoreConnectionError) as e:
            logger.error(f"Database health check failed: {e}")
            return False
