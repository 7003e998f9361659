"""
Partition-level database operations for the ingestion pipeline.
"""

import logging

from emissions_pipeline.database.registry import COLUMNS, COLUMN_NAMES, PartitionRegistry
from emissions_pipeline.exceptions import QueryError, SchemaError
from emissions_pipeline.ingestion.tsv_processor import FacilityRecord

logger = logging.getLogger(__name__)

CREATE_TABLE_SQL = "CREATE TABLE {table} (%s)" % ", ".join(
    f"{name} {sql_type}" for name, sql_type in COLUMNS
)

INSERT_SQL = "INSERT INTO {table} (%s) VALUES (%s)" % (
    ", ".join(COLUMN_NAMES),
    ", ".join(["%s"] * len(COLUMN_NAMES)),
)

COUNT_SQL = "SELECT COUNT(*) AS row_count FROM {table}"


class DatabaseOperations:
    """Creates partitions and appends facility records to them."""

    def __init__(self, store, registry: PartitionRegistry):
        self.db = store
        self.registry = registry

    def create_partition(self, year) -> str:
        """Create the partition for a year.

        Creation never drops or alters an existing partition; if the table
        already exists the store rejects the DDL.

        Raises:
            SchemaError: if the partition could not be created.
        """
        table = self.registry.resolve(year)

        try:
            self.db.execute_query(self.db.render(CREATE_TABLE_SQL, table), fetch=False)
        except QueryError as e:
            raise SchemaError(f"Partition {table} already exists or cannot be created: {e}") from e

        logger.info(f"Created partition {table}")
        return table

    def insert_record(self, year, record: FacilityRecord) -> int:
        """Insert one record into a year's partition with a parameterized statement."""
        table = self.registry.resolve(year)
        return self.db.execute_query(
            self.db.render(INSERT_SQL, table), record.as_row(), fetch=False
        )

    def count_rows(self, year) -> int:
        """Return the number of rows currently stored in a year's partition."""
        table = self.registry.resolve(year)
        result = self.db.execute_query(self.db.render(COUNT_SQL, table))
        return int(result[0]['row_count']) if result else 0

    def partition_exists(self, year) -> bool:
        return self.db.table_exists(self.registry.resolve(year))
