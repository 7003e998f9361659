"""
TSV generator for simulating yearly facility emission snapshots.
"""

import csv
import random
import argparse
from pathlib import Path
from typing import Any, Dict, List, Sequence

HEADER = [
    'Facility Id', 'Facility Name', 'City', 'State', 'Zip Code', 'Address',
    'Latitude', 'Longitude', 'Total reported direct emissions',
    'CO2 emissions (non-biogenic)', 'Methane (CH4) emissions',
    'Nitrous Oxide (N2O) emissions', 'Stationary Combustion', 'Electricity Generation',
]

# (city, state, zip prefix, latitude, longitude)
LOCATIONS = [
    ("Tucson", "AZ", "857", 32.22, -110.97),
    ("Phoenix", "AZ", "850", 33.45, -112.07),
    ("Houston", "TX", "770", 29.76, -95.37),
    ("Baytown", "TX", "775", 29.74, -94.98),
    ("Bakersfield", "CA", "933", 35.37, -119.02),
    ("Long Beach", "CA", "908", 33.77, -118.19),
    ("Gary", "IN", "464", 41.59, -87.35),
    ("Baton Rouge", "LA", "708", 30.45, -91.15),
    ("Gillette", "WY", "827", 44.29, -105.50),
    ("Pittsburgh", "PA", "152", 40.44, -79.99),
]

NAME_PARTS = ["Generating Station", "Refinery", "Cement Plant", "Steel Works", "Gas Plant", "Landfill"]
STREETS = ["Industrial Pkwy", "Plant Rd", "Refinery Ave", "County Road 12", "Power Plant Dr"]


class TSVGenerator:
    """Generates realistic yearly emission snapshot files for testing."""

    def __init__(self, seed: int = None):
        self.random = random.Random(seed)
        self.facility_counter = 1000000
        self.facilities: List[Dict[str, Any]] = []

    def generate_facility(self) -> Dict[str, Any]:
        """Generate a new facility with a stable identity and location."""
        city, state, zip_prefix, lat, lon = self.random.choice(LOCATIONS)
        self.facility_counter += 1

        return {
            'facility_id': self.facility_counter,
            'facility_name': f"{city} {self.random.choice(NAME_PARTS)}",
            'city': city.upper(),
            'state': state,
            'zip_code': f"{zip_prefix}{self.random.randint(0, 99):02d}",
            'address': f"{self.random.randint(100, 9999)} {self.random.choice(STREETS)}",
            'latitude': round(lat + self.random.uniform(-0.3, 0.3), 5),
            'longitude': round(lon + self.random.uniform(-0.3, 0.3), 5),
            'scale': self.random.uniform(1e4, 5e6),
        }

    def generate_row(self, facility: Dict[str, Any]) -> List[str]:
        """Generate one snapshot line for a facility; some metrics are left empty."""
        total = facility['scale'] * self.random.uniform(0.8, 1.2)
        co2 = total * self.random.uniform(0.85, 0.99)
        methane = total * self.random.uniform(0.0, 0.05)
        n2o = total * self.random.uniform(0.0, 0.01)
        stationary = total * self.random.uniform(0.3, 1.0) if self.random.random() < 0.7 else None
        electricity = total * self.random.uniform(0.5, 1.0) if self.random.random() < 0.3 else None

        def fmt(value):
            return '' if value is None else f"{value:.3f}"

        return [
            str(facility['facility_id']), facility['facility_name'], facility['city'],
            facility['state'], facility['zip_code'], facility['address'],
            f"{facility['latitude']}", f"{facility['longitude']}",
            fmt(total), fmt(co2), fmt(methane), fmt(n2o), fmt(stationary), fmt(electricity),
        ]

    def generate_year(self, num_facilities: int) -> List[List[str]]:
        """Generate one year's rows, carrying most facilities over from the previous year."""
        survivors = [f for f in self.facilities if self.random.random() < 0.9]
        while len(survivors) < num_facilities:
            survivors.append(self.generate_facility())
        self.facilities = survivors[:num_facilities]
        return [self.generate_row(facility) for facility in self.facilities]

    def generate_tsv(self, output_path: Path, num_facilities: int = 100) -> int:
        """Write one snapshot file and return the number of data lines."""
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        rows = self.generate_year(num_facilities)

        with open(output_file, 'w', newline='', encoding='utf-8') as tsvfile:
            writer = csv.writer(tsvfile, delimiter='\t', lineterminator='\n')
            writer.writerow(HEADER)
            writer.writerows(rows)

        return len(rows)

    def generate_snapshots(self, output_dir: Path, years: Sequence[str], num_facilities: int = 100,
                           suffix: str = '_cleaned.tsv') -> Dict[str, Path]:
        """Write one snapshot file per year into ``output_dir``."""
        paths = {}
        for year in years:
            path = Path(output_dir) / f"{year}{suffix}"
            count = self.generate_tsv(path, num_facilities)
            print(f"Generated {count} facilities for {year} in {path}")
            paths[str(year)] = path
        return paths


def main():
    """Main entry point for snapshot generation."""
    parser = argparse.ArgumentParser(description='Generate yearly facility emission TSV snapshots')
    parser.add_argument('--out-dir', '-o', default='data', help='Output directory')
    parser.add_argument('--years', '-y', default='2010,2014,2018,2022', help='Comma separated years')
    parser.add_argument('--rows', '-r', type=int, default=100, help='Facilities per year')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')

    args = parser.parse_args()

    generator = TSVGenerator(args.seed)
    years = [year.strip() for year in args.years.split(',') if year.strip()]
    generator.generate_snapshots(Path(args.out_dir), years, args.rows)


if __name__ == "__main__":
    main()
