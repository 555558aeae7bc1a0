from __future__ import annotations
import logging
import re
from typing import Iterable, Mapping
import numpy as np
import pandas as pd

from .config import ID_COL, JOIN_COLUMNS, NORTH_LAT, SOUTH_LAT
from .dates import normalize_dates

logger = logging.getLogger(__name__)


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Tidy metadata headers: trim padding, join stray spaces with "_", keep camelCase."""
    return df.rename(columns=lambda c: re.sub(r"\s+", "_", str(c).strip()))


def harmonize_ids(df: pd.DataFrame, id_col: str = ID_COL) -> pd.DataFrame:
    """
    Strip whitespace from record ids. Ids are case sensitive file stems, so
    they are not upper-cased.
    """
    df = df.copy()
    if id_col in df.columns:
        df[id_col] = df[id_col].astype(str).str.strip()
    return df


def bind_records(records: Mapping[str, pd.DataFrame], id_col: str = ID_COL) -> pd.DataFrame:
    """
    Stack per-record tables into one long table with the record id as the
    first column. Proxy columns missing from a record are filled with NaN.
    """
    if not records:
        return pd.DataFrame(columns=[id_col])
    frames = []
    for rid, df in records.items():
        part = df.drop(columns=[id_col], errors="ignore")
        part.insert(0, id_col, rid)
        frames.append(part)
    return pd.concat(frames, ignore_index=True, sort=False)


def join_metadata(
    observations: pd.DataFrame,
    metadata: pd.DataFrame,
    columns: Iterable[str] | None = JOIN_COLUMNS,
    id_col: str = ID_COL,
) -> pd.DataFrame:
    """
    Left-join record metadata onto observation rows.

    Args:
        observations: Long observation table with an id column
        metadata: One row per record
        columns: Metadata columns to carry; None carries every column

    Raises:
        KeyError: If a requested metadata column is missing
        pandas.errors.MergeError: If a record id has more than one metadata row
    """
    if columns is None:
        right = metadata
    else:
        cols = [c for c in columns if c != id_col]
        missing = [c for c in cols if c not in metadata.columns]
        if missing:
            raise KeyError(f"Metadata columns not found: {missing}")
        right = metadata[[id_col] + cols]

    overlap = observations.columns.intersection(right.columns).drop(id_col, errors="ignore")
    if len(overlap) > 0:
        raise ValueError(f"Columns already exist in observations: {list(overlap)[:10]}")

    joined = observations.merge(right, on=id_col, how="left", validate="many_to_one")
    unmatched = joined.loc[~joined[id_col].isin(metadata[id_col]), id_col].unique()
    if len(unmatched):
        logger.warning("No metadata for %d record(s): %s", len(unmatched), list(unmatched)[:10])
    return joined


def assign_region(df: pd.DataFrame, lat_col: str = "geo_latitude") -> pd.DataFrame:
    """Label rows North (lat > -17), South (lat < -20) or Central."""
    out = df.copy()
    lat = out[lat_col]
    region = np.select(
        [lat > NORTH_LAT, lat < SOUTH_LAT],
        ["North", "South"],
        default="Central",
    )
    out["Region"] = pd.Series(region, index=out.index).where(lat.notna())
    return out


def prepare_records(
    records: Mapping[str, pd.DataFrame],
    metadata: pd.DataFrame,
    columns: Iterable[str] | None = JOIN_COLUMNS,
) -> pd.DataFrame:
    """Bind records, join metadata, label regions and derive Year/MONTH."""
    joined = join_metadata(bind_records(records), metadata, columns=columns)
    if "geo_latitude" in joined.columns:
        joined = assign_region(joined)
    return normalize_dates(joined)
