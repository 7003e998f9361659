"""
Health checks and partition metrics for the emissions store.
"""

import logging
from datetime import datetime
from typing import Any, Dict

from emissions_pipeline.database.registry import PartitionRegistry
from emissions_pipeline.exceptions import QueryError, StoreConnectionError

logger = logging.getLogger(__name__)

COUNT_SQL = "SELECT COUNT(*) AS row_count FROM {table}"


class HealthChecker:
    """Provides health checks for the store and its partitions."""

    def __init__(self, store, registry: PartitionRegistry):
        self.db_manager = store
        self.registry = registry

    def check_database_health(self) -> Dict[str, Any]:
        """Check database connectivity and basic operations."""
        start_time = datetime.now()

        try:
            is_healthy = self.db_manager.health_check()
        except StoreConnectionError as e:
            logger.error(f"Database health check failed: {e}")
            return {
                'status': 'unhealthy',
                'backend': self.db_manager.backend,
                'error': str(e),
                'response_time_ms': int((datetime.now() - start_time).total_seconds() * 1000),
                'timestamp': datetime.now().isoformat()
            }

        result = {
            'status': 'healthy' if is_healthy else 'unhealthy',
            'backend': self.db_manager.backend,
            'response_time_ms': int((datetime.now() - start_time).total_seconds() * 1000),
            'timestamp': datetime.now().isoformat()
        }
        if not is_healthy:
            result['error'] = 'Database connection failed'
        return result

    def get_partition_metrics(self) -> Dict[str, Any]:
        """Report existence and row count of every configured partition."""
        partitions = {}

        for partition in self.registry:
            entry = {'table': partition.table, 'exists': False, 'row_count': None}
            try:
                if self.db_manager.table_exists(partition.table):
                    entry['exists'] = True
                    result = self.db_manager.execute_query(
                        self.db_manager.render(COUNT_SQL, partition.table)
                    )
                    entry['row_count'] = int(result[0]['row_count']) if result else 0
            except QueryError as e:
                logger.error(f"Failed to get metrics for {partition.table}: {e}")
                entry['error'] = str(e)
            partitions[partition.year] = entry

        return {
            'timestamp': datetime.now().isoformat(),
            'database': self.check_database_health(),
            'partitions': partitions,
        }
