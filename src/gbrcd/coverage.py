"""
Record counts per year and category for the coverage / resolution area charts.

The area charts stack the number of records observed in each category for
every year. To keep gaps visible (zero height rather than an interpolated
fill), counts are laid onto a dense year x category grid:

  1) reduce_per_record_year: one row per (record, year) with its category
  2) count_records_per_year: number of records per (year, category)
  3) build_category_grid:    every (year, category) pair in range
  4) join_counts_to_grid:    left join, absent pairs count zero
"""
from __future__ import annotations
import logging
from typing import Optional, Sequence
import numpy as np
import pandas as pd

from .config import (
    ID_COL, YEAR_START, YEAR_END,
    COVERAGE_LABELS, COVERAGE_ORDER, RESOLUTION_ORDER, UNEVEN_SUFFIX,
)

logger = logging.getLogger(__name__)

YEAR_COL = "Year"


def coverage_group_label(code) -> Optional[str]:
    """
    1 -> 'Group1 >100 years', 2 -> 'Group2 10-100 years', any other code ->
    'Group3 <10 years'. A missing code has no group (None) and is not counted.
    """
    if pd.isna(code):
        return None
    if code in (1, 2):
        return COVERAGE_LABELS[int(code)]
    return COVERAGE_LABELS[3]


def nominal_resolution_label(value):
    """Merge 'x_uneven' into 'x'."""
    if pd.isna(value):
        return value
    return str(value).replace(UNEVEN_SUFFIX, "")


def _assert_constant_within_record(df: pd.DataFrame, category_col: str, id_col: str) -> None:
    n_labels = df.groupby(id_col)[category_col].nunique(dropna=False)
    mixed = n_labels[n_labels > 1].index
    if len(mixed) > 0:
        raise ValueError(
            f"Records carry more than one '{category_col}' label: {list(mixed)[:10]}"
        )


def reduce_per_record_year(
    joined: pd.DataFrame,
    category_col: str,
    id_col: str = ID_COL,
    year_col: str = YEAR_COL,
) -> pd.DataFrame:
    """
    Collapse a record's observations within a calendar year to one row.

    Returns:
        DataFrame [id_col, year_col, category_col, count] with count == 1

    Raises:
        ValueError: If a record has more than one category label
    """
    missing = [c for c in (id_col, year_col, category_col) if c not in joined.columns]
    if missing:
        raise KeyError(f"Columns not found: {missing}")
    _assert_constant_within_record(joined, category_col, id_col)

    reduced = (
        joined.dropna(subset=[year_col])
        .groupby([id_col, year_col], as_index=False, sort=True)
        .agg(**{category_col: (category_col, "first")})
    )
    reduced["count"] = 1
    return reduced


def count_records_per_year(
    reduced: pd.DataFrame,
    category_col: str,
    year_col: str = YEAR_COL,
) -> pd.DataFrame:
    """Sum per-record-year rows into the number of records per (year, category)."""
    return (
        reduced.groupby([year_col, category_col], as_index=False, sort=True)
        .agg(records=("count", "sum"))
    )


def build_category_grid(
    labels: Sequence[str],
    category_col: str,
    start: int = YEAR_START,
    end: int = YEAR_END,
    year_col: str = YEAR_COL,
) -> pd.DataFrame:
    """
    Every (year, label) pair for years start..end inclusive, exactly once.

    The category column is an ordered categorical in ``labels`` order and
    ``rank`` (0 = first label) fixes the stacking order.
    """
    labels = list(labels)
    if len(set(labels)) != len(labels):
        dups = pd.Index(labels)[pd.Index(labels).duplicated()].unique().tolist()
        raise ValueError(f"Duplicate category labels: {dups}")
    if end < start:
        raise ValueError(f"Empty year range: {start}..{end}")

    years = np.arange(start, end + 1, dtype=np.int64)
    grid = pd.MultiIndex.from_product([years, labels], names=[year_col, category_col]).to_frame(index=False)
    grid[category_col] = pd.Categorical(grid[category_col], categories=labels, ordered=True)
    grid["rank"] = grid[category_col].cat.codes.astype(np.int64)
    return grid


def join_counts_to_grid(
    grid: pd.DataFrame,
    counts: pd.DataFrame,
    category_col: str,
    year_col: str = YEAR_COL,
) -> pd.DataFrame:
    """
    Left-join (year, category) counts onto the dense grid.

    Returns:
        Grid rows with ``records`` (NaN where unobserved) and ``recordsCount``
        (zero where unobserved), sorted by year then rank
    """
    if isinstance(grid[category_col].dtype, pd.CategoricalDtype):
        labels = list(grid[category_col].cat.categories)
    else:
        labels = list(grid[category_col].unique())
    known = counts[category_col].isin(labels)
    if not known.all():
        unknown = counts.loc[~known, category_col].astype(str).unique()
        logger.warning("Dropping counts for categories outside the grid: %s", sorted(unknown))

    right = counts.loc[known, [year_col, category_col, "records"]].copy()
    right[year_col] = right[year_col].astype(np.int64)
    right[category_col] = pd.Categorical(right[category_col], categories=labels, ordered=True)

    out = grid.merge(right, on=[year_col, category_col], how="left", validate="one_to_one")
    if len(out) != len(grid):
        raise ValueError(f"Join changed the grid size: {len(grid)} -> {len(out)}")
    out["recordsCount"] = out["records"].fillna(0).astype(np.int64)
    return out.sort_values([year_col, "rank"], kind="stable").reset_index(drop=True)


def category_counts(
    joined: pd.DataFrame,
    category_col: str,
    labels: Sequence[str],
    start: int = YEAR_START,
    end: int = YEAR_END,
) -> pd.DataFrame:
    """Reduce, count and lay onto the dense grid in one step."""
    counts = count_records_per_year(reduce_per_record_year(joined, category_col), category_col)
    grid = build_category_grid(labels, category_col, start=start, end=end)
    return join_counts_to_grid(grid, counts, category_col)


def coverage_stats(joined: pd.DataFrame, start: int = YEAR_START, end: int = YEAR_END) -> pd.DataFrame:
    """Records per year by coverage group (cdata_dataCoverageGroup)."""
    df = joined.assign(lengthgrp=joined["cdata_dataCoverageGroup"].map(coverage_group_label))
    no_group = df.loc[df["lengthgrp"].isna(), ID_COL].unique()
    if len(no_group):
        logger.warning("Not counting %d record(s) without a coverage group: %s", len(no_group), list(no_group)[:10])
    return category_counts(df, "lengthgrp", COVERAGE_ORDER, start=start, end=end)


def resolution_stats(joined: pd.DataFrame, start: int = YEAR_START, end: int = YEAR_END) -> pd.DataFrame:
    """Records per year by nominal resolution, with x_uneven merged into x."""
    df = joined.assign(nomRes=joined["meths_hasResolutionNominal"].map(nominal_resolution_label))
    return category_counts(df, "nomRes", RESOLUTION_ORDER, start=start, end=end)
