"""
Analytical query engine over the yearly emission partitions.

Every operation reads from the store on each call; nothing is cached.
Store failures are logged and turned into absent or partial results so a
reporting session can carry on.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from emissions_pipeline.analytics.distance import haversine_nm
from emissions_pipeline.database.registry import Partition, PartitionRegistry
from emissions_pipeline.exceptions import EmptyBaseline, QueryError, UnknownYear
from emissions_pipeline.monitoring.logger_config import OperationLogger

logger = logging.getLogger(__name__)

TOP_N = 10

COUNT_SQL = "SELECT COUNT(*) AS row_count FROM {table}"

LOCATION_SQL = """
    SELECT latitude, longitude
    FROM {table}
    WHERE facility_id = %s
    LIMIT 1
"""

# Groups whose emissions are all null sort after every group with a total.
TOP_EMITTERS_SQL = """
    SELECT facility_name, state, SUM(tr_direct_emissions) AS total_emissions
    FROM {table}
    GROUP BY facility_name, state
    ORDER BY CASE WHEN SUM(tr_direct_emissions) IS NULL THEN 1 ELSE 0 END,
             total_emissions DESC
    LIMIT %s
"""

FILTERED_SCAN_SQL = """
    SELECT facility_id, facility_name, state, tr_direct_emissions
    FROM {table}
    WHERE state = %s
      AND tr_direct_emissions BETWEEN %s AND %s
"""


@dataclass(frozen=True)
class TrendPair:
    """Facility count change between two adjacent snapshot years.

    ``percent_change`` is None when the earlier year has no facilities.
    """
    from_year: str
    to_year: str
    from_count: int
    to_count: int
    percent_change: Optional[float]


@dataclass(frozen=True)
class FacilityLocation:
    facility_id: int
    latitude: float
    longitude: float


@dataclass(frozen=True)
class DistanceResult:
    """Distance between two facilities of one year, in nautical miles.

    ``distance_nm`` is None when either facility was not found; the
    missing ids are listed in ``missing_ids``.
    """
    year: str
    facility_a: int
    facility_b: int
    distance_nm: Optional[float]
    missing_ids: Tuple[int, ...] = ()

    @property
    def found(self) -> bool:
        return self.distance_nm is not None


@dataclass(frozen=True)
class EmitterRank:
    rank: int
    facility_name: str
    state: str
    total_emissions: Optional[float]


@dataclass(frozen=True)
class ScanRow:
    year: str
    facility_id: int
    facility_name: str
    state: str
    total_emissions: float


def percent_change(before: int, after: int) -> float:
    """Return the percentage change from ``before`` to ``after``.

    Raises:
        EmptyBaseline: if ``before`` is zero.
    """
    if before == 0:
        raise EmptyBaseline(f"cannot compute change from a count of zero (to {after})")
    return (after - before) / before * 100


class QueryEngine:
    """Runs the analytical reports against the partitions of a registry."""

    def __init__(self, store, registry: PartitionRegistry, correlation_id: str = None):
        self.db = store
        self.registry = registry
        self.correlation_id = correlation_id or str(uuid.uuid4())

    def count_facilities(self, year) -> int:
        """Return the number of rows in a year's partition."""
        table = self.registry.resolve(year)
        result = self.db.execute_query(self.db.render(COUNT_SQL, table))
        return int(result[0]['row_count']) if result else 0

    def facility_trend(self) -> List[TrendPair]:
        """Compare facility counts of each adjacent pair of configured years.

        A pair whose counts cannot be read is left out. A pair whose earlier
        year is empty is reported with ``percent_change=None``.
        """
        pairs = []
        with OperationLogger('facility_trend', self.correlation_id):
            for earlier, later in self.registry.adjacent_pairs():
                try:
                    from_count = self.count_facilities(earlier.year)
                    to_count = self.count_facilities(later.year)
                except QueryError as e:
                    logger.error(f"Could not count facilities for {earlier.year} -> {later.year}: {e}")
                    continue

                try:
                    change = percent_change(from_count, to_count)
                except EmptyBaseline as e:
                    logger.warning(f"Facility change {earlier.year} -> {later.year} is undefined: {e}")
                    change = None

                pairs.append(TrendPair(earlier.year, later.year, from_count, to_count, change))
        return pairs

    def locate_facility(self, year, facility_id: int) -> Optional[FacilityLocation]:
        """Look up a facility's coordinates; None if absent or without coordinates."""
        table = self.registry.resolve(year)
        result = self.db.execute_query(self.db.render(LOCATION_SQL, table), (facility_id,))
        if not result:
            return None

        row = result[0]
        if row['latitude'] is None or row['longitude'] is None:
            logger.warning(f"Facility {facility_id} in {year} has no coordinates")
            return None

        return FacilityLocation(facility_id, float(row['latitude']), float(row['longitude']))

    def facility_distance(self, year, facility_a: int, facility_b: int) -> Optional[DistanceResult]:
        """Great-circle distance between two facilities of the same year.

        Returns None if the lookup itself failed (unknown year or store error).
        """
        with OperationLogger('facility_distance', self.correlation_id,
                             year=str(year), facility_a=facility_a, facility_b=facility_b):
            try:
                year = self.registry.partition(year).year
                location_a = self.locate_facility(year, facility_a)
                location_b = self.locate_facility(year, facility_b)
            except (UnknownYear, QueryError) as e:
                logger.error(f"Facility distance lookup failed: {e}")
                return None

            missing = tuple(
                facility_id
                for facility_id, location in ((facility_a, location_a), (facility_b, location_b))
                if location is None
            )
            if missing:
                logger.info(f"Facilities not found in {year}: {missing}")
                return DistanceResult(year, facility_a, facility_b, None, missing)

            distance = haversine_nm(
                location_a.latitude, location_a.longitude,
                location_b.latitude, location_b.longitude,
            )
            return DistanceResult(year, facility_a, facility_b, distance)

    def top_emitters_for(self, partition: Partition, limit: int = TOP_N) -> List[EmitterRank]:
        """Rank (facility_name, state) groups of one partition by summed direct emissions."""
        rows = self.db.execute_query(self.db.render(TOP_EMITTERS_SQL, partition.table), (limit,))
        return [
            EmitterRank(
                rank=rank,
                facility_name=row['facility_name'],
                state=row['state'],
                total_emissions=None if row['total_emissions'] is None else float(row['total_emissions']),
            )
            for rank, row in enumerate(rows, start=1)
        ]

    def top_emitters(self, limit: int = TOP_N) -> Dict[str, List[EmitterRank]]:
        """Top emitters of every configured year, keyed by year in year order.

        A year whose query fails is left out.
        """
        results = {}
        with OperationLogger('top_emitters', self.correlation_id, limit=limit):
            for partition in self.registry:
                try:
                    results[partition.year] = self.top_emitters_for(partition, limit)
                except QueryError as e:
                    logger.error(f"Top emitters query failed for {partition.year}: {e}")
        return results

    def filtered_scan(self, state: str, min_emissions: float, max_emissions: float) -> Iterator[ScanRow]:
        """Lazily yield rows of every year matching a state and an inclusive emissions range.

        Years are scanned one after another in year order, each keeping its
        natural row order. A year whose scan fails contributes no further rows.
        """
        with OperationLogger('filtered_scan', self.correlation_id, state=state,
                             min_emissions=min_emissions, max_emissions=max_emissions):
            for partition in self.registry:
                query = self.db.render(FILTERED_SCAN_SQL, partition.table)
                try:
                    for row in self.db.iter_query(query, (state, min_emissions, max_emissions)):
                        yield ScanRow(
                            year=partition.year,
                            facility_id=row['facility_id'],
                            facility_name=row['facility_name'],
                            state=row['state'],
                            total_emissions=float(row['tr_direct_emissions']),
                        )
                except QueryError as e:
                    logger.error(f"Filtered scan failed for {partition.year}: {e}")
