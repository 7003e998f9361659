"""
Facility Emissions Pipeline

Loads yearly snapshots of facility-level greenhouse gas emission records
from tab-separated files into per-year relational partitions, and runs
analytical reports (facility trend, facility distance, top emitters,
cross-year filtered scan) over them.
"""

__version__ = "0.1.0"
