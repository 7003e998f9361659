"""
TSV processor for parsing and validating yearly facility emission snapshots.
"""

import logging
import re
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, field_validator

from emissions_pipeline.database.registry import COLUMN_NAMES
from emissions_pipeline.exceptions import MalformedRow

logger = logging.getLogger(__name__)

DELIMITER = '\t'
FIELD_COUNT = len(COLUMN_NAMES)
TEXT_FIELDS = range(1, 6)
NUMERIC_FIELDS = range(6, FIELD_COUNT)
ENCODING = 'utf-8'

# Plain ASCII decimal numbers; digit separators such as "1_000" are rejected.
INT_RE = re.compile(r'^[+-]?[0-9]+$')
FLOAT_RE = re.compile(
    r'^[+-]?(?:NaN|Infinity|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)$'
)


class FacilityRecord(BaseModel):
    """One facility row of a yearly snapshot."""

    model_config = ConfigDict(frozen=True)

    facility_id: int
    facility_name: str
    city: str
    state: str
    zip_code: str
    address: str
    latitude: Optional[float]
    longitude: Optional[float]
    tr_direct_emissions: Optional[float]
    co2_emissions_non_biogenic: Optional[float]
    methane_emissions: Optional[float]
    nitrous_oxide_emissions: Optional[float]
    stationary_combustion: Optional[float]
    electricity_generation: Optional[float]

    @field_validator('facility_name', 'city', 'state', 'zip_code', 'address')
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    def as_row(self) -> Tuple:
        """Return the values in partition column order."""
        return tuple(getattr(self, name) for name in COLUMN_NAMES)


class TSVProcessor:
    """Parses tab-separated snapshot lines into ``FacilityRecord`` objects."""

    def parse_line(self, line: Union[str, bytes], line_number: int) -> FacilityRecord:
        """Parse a single data line.

        ``line`` may be raw bytes from a file opened in binary mode; it is
        decoded as UTF-8 here so a bad byte only affects its own line.

        Raises:
            MalformedRow: if the line is not valid UTF-8, does not have exactly
                14 fields, the facility id is not an integer, or a non-empty
                numeric field is not a number.
        """
        if isinstance(line, bytes):
            line = self._decode(line, line_number)

        values = line.rstrip('\r\n').split(DELIMITER)

        if len(values) != FIELD_COUNT:
            raise MalformedRow(line_number, f"expected {FIELD_COUNT} fields, found {len(values)}")

        fields = {'facility_id': self._parse_int(values[0], COLUMN_NAMES[0], line_number)}

        for index in TEXT_FIELDS:
            fields[COLUMN_NAMES[index]] = values[index].strip()

        for index in NUMERIC_FIELDS:
            fields[COLUMN_NAMES[index]] = self._parse_float_optional(
                values[index], COLUMN_NAMES[index], line_number
            )

        return FacilityRecord(**fields)

    def iter_records(self, lines: Iterable[Union[str, bytes]]) -> Iterator[Tuple[int, FacilityRecord]]:
        """Yield ``(line_number, record)`` for each data line, skipping the header.

        Parsing is lazy, so a ``MalformedRow`` surfaces only when the
        offending line is reached.
        """
        iterator = iter(lines)
        header = next(iterator, None)
        if header is None:
            logger.warning("Snapshot source is empty (no header line)")
            return

        for line_number, line in enumerate(iterator, start=2):
            yield line_number, self.parse_line(line, line_number)

    def parse_lines(self, lines: Iterable[Union[str, bytes]]) -> List[FacilityRecord]:
        """Parse every data line eagerly."""
        return [record for _, record in self.iter_records(lines)]

    def _decode(self, raw: bytes, line_number: int) -> str:
        try:
            return raw.decode(ENCODING)
        except UnicodeDecodeError as e:
            raise MalformedRow(line_number, f"invalid UTF-8 at byte {e.start}") from None

    def _parse_int(self, value: str, field_name: str, line_number: int) -> int:
        """Parse integer value with validation."""
        clean_value = value.strip()
        if not INT_RE.match(clean_value):
            raise MalformedRow(line_number, f"invalid {field_name}: '{value}'")
        return int(clean_value)

    def _parse_float_optional(self, value: str, field_name: str, line_number: int) -> Optional[float]:
        """Parse optional float value; an empty field is a null."""
        clean_value = value.strip()
        if not clean_value:
            return None

        if not FLOAT_RE.match(clean_value):
            raise MalformedRow(line_number, f"invalid {field_name}: '{value}' - expected numeric value")
        return float(clean_value)
