"""
gbrcd - example analysis code for the Great Barrier Reef Coral Database

Load the database (CSV files + metadata, or the structured archive), join
record time series with their metadata, filter by proxy, resolution, age and
location, and draw line plots, maps and temporal-coverage area charts.
"""

from .ingest import read_metadata, read_record_files
from .archive import read_archive
from .cleaning import bind_records, join_metadata, assign_region, prepare_records
from .dates import decimal_year_to_year_month, normalize_dates
from .filters import filter_metadata, filter_observations, records_with_variable, group_sites
from .coverage import (
    reduce_per_record_year, count_records_per_year, build_category_grid,
    join_counts_to_grid, coverage_stats, resolution_stats,
)
from .pipeline import Session, make_interim

__all__ = [
    # Loading
    "read_metadata", "read_record_files", "read_archive", "Session",

    # Join / dates
    "bind_records", "join_metadata", "assign_region", "prepare_records",
    "decimal_year_to_year_month", "normalize_dates",

    # Filters
    "filter_metadata", "filter_observations", "records_with_variable", "group_sites",

    # Coverage tables
    "reduce_per_record_year", "count_records_per_year", "build_category_grid",
    "join_counts_to_grid", "coverage_stats", "resolution_stats", "make_interim",
]

__version__ = "1.0.0"
