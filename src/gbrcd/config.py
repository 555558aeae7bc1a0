from __future__ import annotations
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
DATA = ROOT / "data"
RAW = DATA / "raw"
INTERIM = DATA / "interim"
FIGURES = DATA / "figures"

# v1.0 is the current release (Feb. 2024); adjust to yours
VERSION = "v1.0"
METADATA_CSV = RAW / f"GBRCD_metadata_{VERSION}.csv"
RECORDS_DIR = RAW / f"GBRCD_files_{VERSION}"
ARCHIVE = RAW / f"GBRCD_archive_{VERSION}.zip"

# keys
ID_COL = "cdata_datasetID"
AGE_COL = "Age"

# metadata columns carried onto every observation row by default
JOIN_COLUMNS = [
    "geo_latitude", "geo_longitude", "geo_siteName", "meths_isAnomaly",
    "meths_primaryVariablesList", "meths_hasResolutionNominal",
    "meths_resolutionMedian",
]

# Region bounds (degrees N; all GBR latitudes are negative)
NORTH_LAT = -17.0
SOUTH_LAT = -20.0

# Full historical span of the database (astronomical years)
YEAR_START = -5890
YEAR_END = 2017

COVERAGE_LABELS = {
    1: "Group1 >100 years",
    2: "Group2 10-100 years",
    3: "Group3 <10 years",
}
COVERAGE_ORDER = list(COVERAGE_LABELS.values())

# Nominal resolution buckets, coarsest to finest
RESOLUTION_ORDER = [
    ">annual", "annual", "biannual", "quarterly",
    "bimonthly", "monthly", "fortnightly", "weekly",
]
UNEVEN_SUFFIX = "_uneven"

# Records whose BCE years are already stored on whole-year integers and must
# not receive the +1 year correction.
BCE_CORRECTION_EXEMPT_PREFIXES = ("LE05", "LO14", "LE16")

AREA_COLOURS = [
    "#332288", "#117733", "#44AA99", "#88CCEE",
    "#DDCC77", "#CC6677", "#AA4499", "#882255",
]
COVERAGE_COLOURS = {
    "Group1 >100 years": AREA_COLOURS[0],
    "Group2 10-100 years": AREA_COLOURS[4],
    "Group3 <10 years": AREA_COLOURS[7],
}
PROXY_COLOUR = "#CD661D"

# Map defaults: (lon_min, lon_max, lat_min, lat_max), GDA94 lon/lat
MAP_EXTENT = (142.5, 153.0, -24.0, -10.5)
SITE_MAP_EXTENT = (142.0, 153.0, -25.0, -10.5)
