"""
Store construction and the partition registry.
"""

from emissions_pipeline.config import Settings
from emissions_pipeline.database.registry import COLUMNS, COLUMN_NAMES, Partition, PartitionRegistry


def get_store(settings: Settings):
    """Build the store selected by ``settings.backend`` (not yet connected)."""
    if settings.backend == 'postgres':
        from emissions_pipeline.database.connection import DatabaseManager
        return DatabaseManager(settings.database_url)

    from emissions_pipeline.database.sqlite_connection import SQLiteManager
    return SQLiteManager(settings.sqlite_db_path)


__all__ = ['COLUMNS', 'COLUMN_NAMES', 'Partition', 'PartitionRegistry', 'get_store']
