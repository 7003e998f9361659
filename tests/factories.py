"""Builders for snapshot lines used across the test suite."""

from __future__ import annotations

from typing import Iterable, List, Optional

HEADER = "Facility Id\tFacility Name\tCity\tState\tZip Code\tAddress\tLatitude\tLongitude\t" \
         "Total\tCO2\tCH4\tN2O\tStationary\tElectricity"


def _num(value: Optional[float]) -> str:
    return "" if value is None else repr(float(value))


def facility_line(
    facility_id: int,
    name: str = "Tucson Generating Station",
    state: str = "AZ",
    latitude: Optional[float] = 32.22,
    longitude: Optional[float] = -110.97,
    total: Optional[float] = 1000.0,
    city: str = "TUCSON",
    metrics: Iterable[Optional[float]] = (900.0, 10.0, 1.0, None, 500.0),
) -> str:
    """Return one well-formed tab separated data line (with trailing newline)."""
    fields = [
        str(facility_id), name, city, state, "85701", "100 Plant Rd",
        _num(latitude), _num(longitude), _num(total),
    ] + [_num(m) for m in metrics]
    return "\t".join(fields) + "\n"


def snapshot(lines: Iterable[str]) -> List[str]:
    """Prefix data lines with a header line."""
    return [HEADER + "\n"] + list(lines)


def numbered_facilities(count: int, start: int = 1, **kwargs) -> List[str]:
    return [facility_line(start + i, **kwargs) for i in range(count)]
