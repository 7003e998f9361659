"""
Environment-driven configuration for the pipeline.
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

from dotenv import load_dotenv

load_dotenv()

DEFAULT_YEARS = "2010,2014,2018,2022"
IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
BACKENDS = ("postgres", "sqlite")


@dataclass(frozen=True)
class Settings:
    """Pipeline configuration.

    Attributes:
        backend: ``postgres`` or ``sqlite``.
        database_url: psycopg2 DSN, only used by the postgres backend.
        sqlite_db_path: SQLite database file, only used by the sqlite backend.
        years: Configured snapshot years, ascending.
        table_prefix: Partition name prefix; the partition for a year is
            ``table_prefix + year``.
        data_dir: Directory containing the yearly TSV files.
        file_suffix: File name suffix; the file for a year is ``year + file_suffix``.
    """
    backend: str
    database_url: Optional[str]
    sqlite_db_path: str
    years: Tuple[str, ...]
    table_prefix: str
    data_dir: Path
    file_suffix: str

    def source_path(self, year: str) -> Path:
        """Return the TSV file expected for a year."""
        return self.data_dir / f"{year}{self.file_suffix}"


def validate_years(years: Iterable[Union[str, int]]) -> Tuple[str, ...]:
    """Normalise years to strings, enforcing digits-only and strictly ascending order."""
    years = tuple(str(year).strip() for year in years)
    if not years:
        raise ValueError("At least one year must be configured")

    for year in years:
        if not (year.isascii() and year.isdigit()):
            raise ValueError(f"Invalid year: '{year}'")

    numeric = [int(year) for year in years]
    if any(b <= a for a, b in zip(numeric, numeric[1:])):
        raise ValueError(f"Years must be strictly ascending: {', '.join(years)}")

    return years


def parse_years(value: str) -> Tuple[str, ...]:
    """Parse a comma separated year list."""
    return validate_years(part for part in value.split(",") if part.strip())


def get_settings() -> Settings:
    """Read environment variables and return a frozen ``Settings``.

    Raises:
        ValueError: if a setting is invalid, or ``DATABASE_URL`` is missing
            for the postgres backend.
    """
    backend = os.getenv('EMISSIONS_DB_BACKEND', 'sqlite').strip().lower()
    if backend not in BACKENDS:
        raise ValueError(f"EMISSIONS_DB_BACKEND must be one of {BACKENDS}, got '{backend}'")

    database_url = os.getenv('DATABASE_URL')
    if backend == 'postgres' and not database_url:
        raise ValueError("DATABASE_URL environment variable is required for the postgres backend")

    table_prefix = os.getenv('EMISSIONS_TABLE_PREFIX', 'emissions_data_')
    if not IDENTIFIER_RE.match(table_prefix):
        raise ValueError(f"EMISSIONS_TABLE_PREFIX is not a valid identifier: '{table_prefix}'")

    return Settings(
        backend=backend,
        database_url=database_url,
        sqlite_db_path=os.getenv('SQLITE_DB_PATH', 'data/emissions.db'),
        years=parse_years(os.getenv('EMISSIONS_YEARS', DEFAULT_YEARS)),
        table_prefix=table_prefix,
        data_dir=Path(os.getenv('EMISSIONS_DATA_DIR', 'data')),
        file_suffix=os.getenv('EMISSIONS_FILE_SUFFIX', '_cleaned.tsv'),
    )
