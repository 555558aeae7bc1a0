"""
Record selection by metadata and observation properties.

Suggested metadata fields for filtering:
  - coverage: cdata_dataCoverageGroup
  - proxy type: meths_primaryVariablesList, meths_additionalVariablesList
  - temporal span: cdata_minYear, cdata_maxYear
  - resolution (points per year): meths_hasResolutionNominal, meths_resolutionMin/Max/Mean/Median
  - location: geo_latitude, geo_longitude, geo_siteName
  - species: cdata_archiveSpecies
  - SST calibration: calib_isSSTCalibration, calib_useSSTCalibration
"""
from __future__ import annotations
import logging
from typing import Dict, Iterable, Mapping, Optional, Tuple
import pandas as pd

from .config import ID_COL, AGE_COL

logger = logging.getLogger(__name__)


def as_bool(s: pd.Series, missing: bool = False) -> pd.Series:
    """Read TRUE/FALSE style flags (bool, 'TRUE', 'T', 1) as booleans; missing values read as ``missing``."""
    if s.dtype == bool:
        return s
    text = s.astype(str).str.strip().str.upper()
    return text.isin(["TRUE", "T", "1", "1.0", "YES"]).mask(s.isna(), missing)


def _between(s: pd.Series, bounds: Tuple[Optional[float], Optional[float]]) -> pd.Series:
    lo, hi = bounds
    mask = pd.Series(True, index=s.index)
    if lo is not None:
        mask &= s >= lo
    if hi is not None:
        mask &= s <= hi
    return mask


def filter_metadata(
    metadata: pd.DataFrame,
    *,
    variable: Optional[str] = None,
    additional: bool = False,
    exclude_anomalies: bool = False,
    min_resolution_median: Optional[float] = None,
    nominal_resolution: Optional[Iterable[str]] = None,
    coverage_groups: Optional[Iterable[int]] = None,
    species: Optional[Iterable[str]] = None,
    lat_range: Optional[Tuple[Optional[float], Optional[float]]] = None,
    lon_range: Optional[Tuple[Optional[float], Optional[float]]] = None,
    sites: Optional[Iterable[str]] = None,
    start_year: Optional[float] = None,
    end_year: Optional[float] = None,
    sst_calibration: Optional[bool] = None,
) -> pd.DataFrame:
    """
    Subset the metadata table; every given criterion must hold.

    Args:
        variable: Substring matched against meths_primaryVariablesList
            (or meths_additionalVariablesList when additional=True), e.g. "BaCa"
        exclude_anomalies: Keep only records with meths_isAnomaly known to be
            false (a missing flag is dropped)
        min_resolution_median: Minimum median points per year
        nominal_resolution: Allowed meths_hasResolutionNominal values
        coverage_groups: Allowed cdata_dataCoverageGroup codes (1, 2, 3)
        species: Allowed cdata_archiveSpecies values
        lat_range, lon_range: Inclusive (min, max); None leaves a side open
        sites: Allowed geo_siteName values
        start_year: Keep records ending at or after this year (cdata_maxYear)
        end_year: Keep records starting at or before this year (cdata_minYear)
        sst_calibration: Match calib_useSSTCalibration

    Returns:
        Filtered copy of the metadata
    """
    mask = pd.Series(True, index=metadata.index)
    if variable is not None:
        col = "meths_additionalVariablesList" if additional else "meths_primaryVariablesList"
        mask &= metadata[col].astype(str).str.contains(variable, regex=False)
    if exclude_anomalies:
        mask &= ~as_bool(metadata["meths_isAnomaly"], missing=True)
    if min_resolution_median is not None:
        mask &= metadata["meths_resolutionMedian"] >= min_resolution_median
    if nominal_resolution is not None:
        mask &= metadata["meths_hasResolutionNominal"].isin(list(nominal_resolution))
    if coverage_groups is not None:
        mask &= metadata["cdata_dataCoverageGroup"].isin(list(coverage_groups))
    if species is not None:
        mask &= metadata["cdata_archiveSpecies"].isin(list(species))
    if lat_range is not None:
        mask &= _between(metadata["geo_latitude"], lat_range)
    if lon_range is not None:
        mask &= _between(metadata["geo_longitude"], lon_range)
    if sites is not None:
        mask &= metadata["geo_siteName"].isin(list(sites))
    if start_year is not None:
        mask &= metadata["cdata_maxYear"] >= start_year
    if end_year is not None:
        mask &= metadata["cdata_minYear"] <= end_year
    if sst_calibration is not None:
        mask &= as_bool(metadata["calib_useSSTCalibration"]) == sst_calibration
    out = metadata.loc[mask].copy()
    logger.info("Metadata filter kept %d of %d records", len(out), len(metadata))
    return out


def filter_observations(
    joined: pd.DataFrame,
    *,
    variable: Optional[str] = None,
    min_age: Optional[float] = None,
    max_age: Optional[float] = None,
    region: Optional[str] = None,
    min_resolution_median: Optional[float] = None,
    exclude_anomalies: bool = False,
    max_latitude: Optional[float] = None,
    record_ids: Optional[Iterable[str]] = None,
    exclude_ids: Optional[Iterable[str]] = None,
) -> pd.DataFrame:
    """
    Subset joined observation rows.

    ``min_age``/``max_age`` are strict bounds on the decimal age. When
    ``variable`` is given, rows without a value for it are dropped (so records
    lacking the proxy column vanish entirely).

    Raises:
        KeyError: If a filter refers to a column the table does not have
            (except ``variable``, which yields an empty result)
    """
    mask = pd.Series(True, index=joined.index)
    if variable is not None:
        if variable not in joined.columns:
            logger.info("No records carry %s", variable)
            return joined.iloc[0:0].copy()
        mask &= joined[variable].notna()
    if min_age is not None:
        mask &= joined[AGE_COL] > min_age
    if max_age is not None:
        mask &= joined[AGE_COL] < max_age
    if region is not None:
        mask &= joined["Region"] == region
    if min_resolution_median is not None:
        mask &= joined["meths_resolutionMedian"] >= min_resolution_median
    if exclude_anomalies:
        mask &= ~as_bool(joined["meths_isAnomaly"], missing=True)
    if max_latitude is not None:
        mask &= joined["geo_latitude"] < max_latitude
    if record_ids is not None:
        mask &= joined[ID_COL].isin(list(record_ids))
    if exclude_ids is not None:
        mask &= ~joined[ID_COL].isin(list(exclude_ids))
    return joined.loc[mask].copy()


def records_with_variable(records: Mapping[str, pd.DataFrame], variable: str) -> Dict[str, pd.DataFrame]:
    """Keep the record tables that have a non-empty ``variable`` column."""
    return {
        rid: df for rid, df in records.items()
        if variable in df.columns and df[variable].notna().any()
    }


def group_sites(metadata: pd.DataFrame, site_col: str = "geo_siteName") -> pd.DataFrame:
    """Mean location and record count per site."""
    return (
        metadata.groupby(site_col, as_index=False)
        .agg(
            lat=("geo_latitude", "mean"),
            long=("geo_longitude", "mean"),
            counts=(ID_COL, "size"),
        )
    )
