"""
Ingestion worker that creates each year's partition and loads its snapshot file.
"""

import logging
import sys
import uuid
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterable, List, Optional, Union

from emissions_pipeline.config import Settings, get_settings
from emissions_pipeline.database import PartitionRegistry, get_store
from emissions_pipeline.exceptions import (
    EmissionsPipelineError,
    MalformedRow,
    QueryError,
    SchemaError,
    UnknownYear,
)
from emissions_pipeline.ingestion.database_operations import DatabaseOperations
from emissions_pipeline.ingestion.tsv_processor import TSVProcessor
from emissions_pipeline.monitoring.logger_config import OperationLogger

logger = logging.getLogger(__name__)

STATUS_COMPLETED = 'COMPLETED'
STATUS_FAILED = 'FAILED'
STATUS_SKIPPED = 'SKIPPED'


@dataclass(frozen=True)
class LoadResult:
    """Outcome of loading one year's snapshot."""
    year: str
    source: Optional[str]
    status: str
    rows_inserted: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != STATUS_FAILED


class IngestionPipeline:
    """Creates partitions and loads yearly TSV snapshots into them, one year at a time."""

    def __init__(self, store, registry: PartitionRegistry, settings: Optional[Settings] = None,
                 correlation_id: str = None):
        self.store = store
        self.registry = registry
        self.settings = settings
        self.correlation_id = correlation_id or str(uuid.uuid4())
        self.tsv_processor = TSVProcessor()
        self.db_ops = DatabaseOperations(store, registry)

    def create_partition(self, year) -> bool:
        """Create a year's partition; failure is logged and is not fatal."""
        try:
            self.db_ops.create_partition(year)
            return True
        except SchemaError as e:
            logger.warning(f"{e}")
            return False

    def load_partition(self, year, source: Iterable[Union[str, bytes]], source_name: str = None) -> LoadResult:
        """Append one row per data line of ``source`` to the year's partition.

        ``source`` yields text lines, or raw bytes that are decoded per line.
        The first line is a header and is discarded. The first malformed line
        stops the load for this year; rows inserted before it are kept.
        Loading the same source twice appends the rows twice.
        """
        inserted = 0
        try:
            year = self.registry.partition(year).year
            for _, record in self.tsv_processor.iter_records(source):
                self.db_ops.insert_record(year, record)
                inserted += 1

        except MalformedRow as e:
            logger.error(f"Malformed row in {source_name or year}, stopping load after {inserted} rows: {e}")
            return LoadResult(str(year), source_name, STATUS_FAILED, inserted, str(e))

        except (QueryError, UnknownYear) as e:
            logger.error(f"Load of {source_name or year} aborted after {inserted} rows: {e}")
            return LoadResult(str(year), source_name, STATUS_FAILED, inserted, str(e))

        logger.info(f"Inserted {inserted} rows into partition for {year}")
        return LoadResult(str(year), source_name, STATUS_COMPLETED, inserted)

    def ingest_year(self, year, source_path: Optional[Path] = None, skip_populated: bool = False) -> LoadResult:
        """Create the partition for a year and load its snapshot file."""
        try:
            partition = self.registry.partition(year)
        except UnknownYear as e:
            logger.error(f"{e}")
            return LoadResult(str(year), None, STATUS_FAILED, error=str(e))

        if source_path is None:
            if self.settings is None:
                raise ValueError("source_path is required when no settings are configured")
            source_path = self.settings.source_path(partition.year)

        with OperationLogger('ingest_year', self.correlation_id,
                             year=partition.year, table=partition.table, source=str(source_path)):
            self.create_partition(partition.year)

            if skip_populated:
                try:
                    existing = self.db_ops.count_rows(partition.year)
                except QueryError as e:
                    logger.error(f"Could not count rows in {partition.table}: {e}")
                    return LoadResult(partition.year, str(source_path), STATUS_FAILED, error=str(e))

                if existing > 0:
                    logger.info(f"Partition {partition.table} already holds {existing} rows. Skipping.")
                    return LoadResult(partition.year, str(source_path), STATUS_SKIPPED)

            try:
                # Binary mode: each line is decoded on its own while parsing.
                with open(source_path, 'rb') as source:
                    return self.load_partition(partition.year, source, str(source_path))
            except OSError as e:
                logger.error(f"Could not read snapshot file {source_path}: {e}")
                return LoadResult(partition.year, str(source_path), STATUS_FAILED, error=str(e))

    def run(self, years: Optional[Iterable] = None, skip_populated: bool = False) -> List[LoadResult]:
        """Ingest the given years (default: every configured year) in order."""
        years = list(years) if years is not None else list(self.registry.years)
        logger.info(f"Starting ingestion run for years: {', '.join(str(y) for y in years)}")

        results = [self.ingest_year(year, skip_populated=skip_populated) for year in years]

        total = sum(result.rows_inserted for result in results)
        failed = [result.year for result in results if not result.ok]
        logger.info(f"Ingestion run finished: {total} rows inserted, failed years: {failed or 'none'}")
        return results

    def initialize(self) -> List[str]:
        """Create every configured partition without loading data."""
        return [partition.year for partition in self.registry if self.create_partition(partition.year)]


def main():
    """Main entry point for the ingestion worker."""
    import argparse

    from emissions_pipeline.monitoring.health import HealthChecker
    from emissions_pipeline.monitoring.logger_config import EmissionsLogger

    parser = argparse.ArgumentParser(description='Load yearly emission snapshots into the store')
    parser.add_argument('--year', action='append', dest='years', help='Year to load (repeatable, default: all)')
    parser.add_argument('--data-dir', type=Path, help='Directory holding the <year>_cleaned.tsv files')
    parser.add_argument('--skip-populated', action='store_true',
                        help='Skip years whose partition already has rows')
    parser.add_argument('--init-only', action='store_true', help='Create partitions and exit')
    parser.add_argument('--health-check', action='store_true', help='Perform health check')

    args = parser.parse_args()

    EmissionsLogger.setup_logging()

    try:
        settings = get_settings()
    except ValueError as e:
        print(f"Configuration error: {e}")
        sys.exit(2)

    if args.data_dir is not None:
        settings = replace(settings, data_dir=args.data_dir)

    registry = PartitionRegistry.from_settings(settings)

    try:
        with get_store(settings) as store:
            if args.health_check:
                healthy = HealthChecker(store, registry).check_database_health()['status'] == 'healthy'
                sys.exit(0 if healthy else 1)

            pipeline = IngestionPipeline(store, registry, settings)

            if args.init_only:
                created = pipeline.initialize()
                print(f"Created {len(created)} of {len(registry)} partitions")
                return

            results = pipeline.run(args.years, skip_populated=args.skip_populated)
    except EmissionsPipelineError as e:
        logger.error(f"Ingestion failed: {e}")
        print(f"Ingestion failed: {e}")
        sys.exit(1)

    for result in results:
        line = f"{result.year}: {result.status} ({result.rows_inserted} rows)"
        if result.error:
            line += f" - {result.error}"
        print(line)

    if not all(result.ok for result in results):
        sys.exit(1)


if __name__ == "__main__":
    main()
