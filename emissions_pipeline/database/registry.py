"""
Partition registry: maps each configured snapshot year to its partition.

Partition names are built only from the closed, configured year set; they
are never derived from user input.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Tuple, Union

from emissions_pipeline.config import IDENTIFIER_RE, Settings, validate_years
from emissions_pipeline.exceptions import UnknownYear

# Fixed column layout shared by every partition, in file order.
COLUMNS: Tuple[Tuple[str, str], ...] = (
    ('facility_id', 'INTEGER'),
    ('facility_name', 'VARCHAR(255)'),
    ('city', 'VARCHAR(100)'),
    ('state', 'VARCHAR(50)'),
    ('zip_code', 'VARCHAR(20)'),
    ('address', 'VARCHAR(255)'),
    ('latitude', 'DOUBLE PRECISION'),
    ('longitude', 'DOUBLE PRECISION'),
    ('tr_direct_emissions', 'DOUBLE PRECISION'),
    ('co2_emissions_non_biogenic', 'DOUBLE PRECISION'),
    ('methane_emissions', 'DOUBLE PRECISION'),
    ('nitrous_oxide_emissions', 'DOUBLE PRECISION'),
    ('stationary_combustion', 'DOUBLE PRECISION'),
    ('electricity_generation', 'DOUBLE PRECISION'),
)

COLUMN_NAMES: Tuple[str, ...] = tuple(name for name, _ in COLUMNS)


@dataclass(frozen=True)
class Partition:
    """A year and the table holding that year's facility records."""
    year: str
    table: str


class PartitionRegistry:
    """Resolves configured years to partitions, preserving ascending year order."""

    def __init__(self, years: Iterable[Union[str, int]], table_prefix: str = 'emissions_data_'):
        if not IDENTIFIER_RE.match(table_prefix):
            raise ValueError(f"Invalid table prefix: '{table_prefix}'")

        ordered = validate_years(years)

        self._partitions: Dict[str, Partition] = {
            year: Partition(year=year, table=f"{table_prefix}{year}") for year in ordered
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> 'PartitionRegistry':
        return cls(settings.years, settings.table_prefix)

    @property
    def years(self) -> Tuple[str, ...]:
        return tuple(self._partitions)

    def partition(self, year: Union[str, int]) -> Partition:
        """Return the partition for a year, raising ``UnknownYear`` if not configured."""
        try:
            return self._partitions[str(year).strip()]
        except KeyError:
            raise UnknownYear(year) from None

    def resolve(self, year: Union[str, int]) -> str:
        """Return the partition (table) name for a year."""
        return self.partition(year).table

    def adjacent_pairs(self) -> List[Tuple[Partition, Partition]]:
        """Return consecutive (earlier, later) partition pairs in year order."""
        partitions = list(self._partitions.values())
        return list(zip(partitions, partitions[1:]))

    def __iter__(self) -> Iterator[Partition]:
        return iter(self._partitions.values())

    def __len__(self) -> int:
        return len(self._partitions)

    def __contains__(self, year) -> bool:
        return str(year).strip() in self._partitions
