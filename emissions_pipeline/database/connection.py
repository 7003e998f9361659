"""
PostgreSQL store holding one connection for the lifetime of the process.
"""

import os
import logging
from typing import Any, Dict, Iterator, List, Optional, Union

import psycopg2
from psycopg2 import sql

from emissions_pipeline.config import IDENTIFIER_RE
from emissions_pipeline.exceptions import QueryError, StoreConnectionError

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages a single PostgreSQL connection shared by all operations."""

    backend = 'postgres'

    def __init__(self, database_url: Optional[str] = None):
        self.connection = None
        self.database_url = database_url or os.getenv('DATABASE_URL')
        if not self.database_url:
            raise ValueError("DATABASE_URL environment variable is required")

    def connect(self):
        """Open the connection if it is not already open."""
        if self.connection is None or self.connection.closed:
            try:
                self.connection = psycopg2.connect(self.database_url)
                logger.info("Database connection established")
            except psycopg2.Error as e:
                logger.error(f"Failed to connect to database: {e}")
                raise StoreConnectionError(f"Could not open database connection: {e}") from e
        return self.connection

    def close(self) -> None:
        """Close the connection."""
        if self.connection is not None and not self.connection.closed:
            try:
                self.connection.close()
                logger.info("Database connection closed")
            except psycopg2.Error as e:
                logger.error(f"Error closing database connection: {e}")
        self.connection = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def render(self, template: str, table: str) -> sql.Composed:
        """Compose a query template with a partition name as a quoted identifier.

        Only partition names from the registry go through here; row values
        are always passed as query parameters.
        """
        if not IDENTIFIER_RE.match(table):
            raise ValueError(f"Refusing to render invalid table name: '{table}'")
        return sql.SQL(template).format(table=sql.Identifier(table))

    def execute_query(
        self,
        query: Union[str, sql.Composable],
        params: Optional[tuple] = None,
        fetch: bool = True,
    ) -> Union[List[Dict[str, Any]], int]:
        """Execute a query and return its rows, or the rowcount when ``fetch`` is False."""
        connection = self.connect()
        try:
            with connection.cursor() as cursor:
                cursor.execute(query, params)

                if fetch:
                    results = []
                    if cursor.description:
                        columns = [desc[0] for desc in cursor.description]
                        results = [dict(zip(columns, row)) for row in cursor.fetchall()]
                    connection.commit()
                    return results

                connection.commit()
                return cursor.rowcount

        except psycopg2.Error as e:
            connection.rollback()
            logger.error(f"Database query failed: {e}")
            raise QueryError(str(e).strip()) from e

    def iter_query(
        self,
        query: Union[str, sql.Composable],
        params: Optional[tuple] = None,
    ) -> Iterator[Dict[str, Any]]:
        """Yield result rows lazily; the cursor is closed however iteration ends."""
        connection = self.connect()
        try:
            with connection.cursor() as cursor:
                cursor.execute(query, params)
                columns = [desc[0] for desc in cursor.description]
                for row in cursor:
                    yield dict(zip(columns, row))
            connection.commit()
        except psycopg2.Error as e:
            connection.rollback()
            logger.error(f"Database scan failed: {e}")
            raise QueryError(str(e).strip()) from e

    def table_exists(self, table: str) -> bool:
        """Check whether a table exists in the current schema."""
        result = self.execute_query(
            """
            SELECT COUNT(*) AS present
            FROM information_schema.tables
            WHERE table_schema = current_schema() AND table_name = %s
            """,
            (table,),
        )
        return bool(result and result[0]['present'])

    def health_check(self) -> bool:
        """Check if database is healthy and accessible."""
        try:
            result = self.execute_query("SELECT 1 as health_check")
            return len(result) > 0 and result[0]['health_check'] == 1
        except (QueryError, StoreConnectionError) as e:
            logger.error(f"Database health check failed: {e}")
            return False
