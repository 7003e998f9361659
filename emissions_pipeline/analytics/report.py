"""
Text rendering of the analytical reports and the report command line.
"""

import argparse
import logging
import sys
from typing import Dict, Iterable, List, Optional

from emissions_pipeline.analytics.queries import (
    DistanceResult,
    EmitterRank,
    QueryEngine,
    ScanRow,
    TrendPair,
)

logger = logging.getLogger(__name__)

TOP_HEADER = "%-50s %-20s %13s" % ("Facility Name", "State", "Emissions")
TOP_RULE = "-" * 88
SCAN_HEADER = "Year | Facility Name                                | State | Emissions"
SCAN_RULE = "-" * 80


def format_trend(pairs: Iterable[TrendPair]) -> List[str]:
    lines = []
    for pair in pairs:
        if pair.percent_change is None:
            lines.append(
                f"From {pair.from_year} to {pair.to_year}, the quantity of facilities change is "
                f"undefined (no facilities in {pair.from_year})"
            )
        else:
            lines.append(
                f"From {pair.from_year} to {pair.to_year}, the quantity of facilities changed by "
                f"{pair.percent_change:.4f}%"
            )
    return lines


def format_distance(result: Optional[DistanceResult]) -> List[str]:
    if result is None:
        return ["The distance could not be calculated."]
    if not result.found:
        return ["One or both facility IDs were not found."]
    return [
        f"The distance between facility {result.facility_a} and facility {result.facility_b} "
        f"is {result.distance_nm:.4f} nautical miles."
    ]


def format_top_emitters(results: Dict[str, List[EmitterRank]]) -> List[str]:
    lines = []
    for year, ranks in results.items():
        lines.append(f"Year: {year}")
        lines.append(TOP_HEADER)
        lines.append(TOP_RULE)
        for rank in ranks:
            total = rank.total_emissions if rank.total_emissions is not None else 0.0
            lines.append("%-50s %-20s %13.7E" % (rank.facility_name, rank.state, total))
        lines.append("")
    return lines


def format_scan(rows: Iterable[ScanRow]) -> Iterable[str]:
    """Render scan rows as they arrive; the rows are consumed once."""
    yield SCAN_HEADER
    yield SCAN_RULE
    for row in rows:
        yield "%4s | %-44s | %5s | %.2f" % (row.year, row.facility_name, row.state, row.total_emissions)


def format_status(metrics: Dict) -> List[str]:
    lines = [f"Database: {metrics['database']['status']}"]
    for year, partition in metrics['partitions'].items():
        if partition['exists']:
            lines.append(f"{year}: {partition['table']} ({partition['row_count']} rows)")
        else:
            lines.append(f"{year}: {partition['table']} (missing)")
    return lines


def build_parser(years) -> argparse.ArgumentParser:
    """Build the report argument parser; ``years`` restricts the distance year argument."""
    parser = argparse.ArgumentParser(prog='emissions-report', description='Facility emissions reports')
    sub = parser.add_subparsers(dest='cmd', required=True)

    sub.add_parser('trend', help='Facility quantity change by percentage between years')

    p_distance = sub.add_parser('distance', help='Distance between two facilities')
    p_distance.add_argument('year', choices=list(years))
    p_distance.add_argument('facility_a', type=int)
    p_distance.add_argument('facility_b', type=int)

    p_top = sub.add_parser('top', help='Top total reported direct emission facilities per year')
    p_top.add_argument('--limit', type=int, default=10)

    p_scan = sub.add_parser('scan', help='Facilities of a state within an emissions range, across years')
    p_scan.add_argument('state')
    p_scan.add_argument('min_emissions', type=float)
    p_scan.add_argument('max_emissions', type=float)

    sub.add_parser('status', help='Store health and partition row counts')

    return parser


def run_report(args: argparse.Namespace, engine: QueryEngine, health=None) -> Iterable[str]:
    """Dispatch a parsed report command and return its output lines."""
    if args.cmd == 'trend':
        return format_trend(engine.facility_trend())
    if args.cmd == 'distance':
        return format_distance(engine.facility_distance(args.year, args.facility_a, args.facility_b))
    if args.cmd == 'top':
        return format_top_emitters(engine.top_emitters(args.limit))
    if args.cmd == 'scan':
        return format_scan(engine.filtered_scan(args.state.upper(), args.min_emissions, args.max_emissions))
    if args.cmd == 'status':
        return format_status(health.get_partition_metrics())
    raise ValueError(f"Unknown report: {args.cmd}")


def main(argv=None):
    """Main entry point for the report command line."""
    from emissions_pipeline.config import get_settings
    from emissions_pipeline.database import PartitionRegistry, get_store
    from emissions_pipeline.exceptions import StoreConnectionError
    from emissions_pipeline.monitoring.health import HealthChecker
    from emissions_pipeline.monitoring.logger_config import EmissionsLogger

    try:
        settings = get_settings()
    except ValueError as e:
        print(f"Configuration error: {e}")
        sys.exit(2)

    registry = PartitionRegistry.from_settings(settings)
    args = build_parser(registry.years).parse_args(argv)

    EmissionsLogger.setup_logging()

    try:
        with get_store(settings) as store:
            engine = QueryEngine(store, registry)
            for line in run_report(args, engine, HealthChecker(store, registry)):
                print(line)
    except StoreConnectionError as e:
        print(f"Could not connect to the store: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
