"""
Decimal-year to calendar date conversion.

Ages in the GBRCD are decimal years under astronomical numbering (year 0
exists, negative years are BCE). The integer part is the calendar year and the
fractional part is the position within that year, measured on the proleptic
Gregorian calendar.
"""
from __future__ import annotations
import logging
import re
from typing import Iterable, Tuple
import numpy as np
import pandas as pd

from .config import ID_COL, AGE_COL, BCE_CORRECTION_EXEMPT_PREFIXES

logger = logging.getLogger(__name__)

_MONTH_DAYS = np.array([31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31])
_CUM_DAYS = np.concatenate([[0], np.cumsum(_MONTH_DAYS)])
_CUM_DAYS_LEAP = _CUM_DAYS + np.array([0, 0] + [1] * 11)


def is_leap_year(year) -> np.ndarray:
    """Gregorian leap rule, valid for astronomical (zero and negative) years."""
    y = np.asarray(year, dtype=float)
    return (np.mod(y, 4) == 0) & ((np.mod(y, 100) != 0) | (np.mod(y, 400) == 0))


def decimal_year_to_year_month(age: pd.Series) -> Tuple[pd.Series, pd.Series]:
    """
    Split decimal years into calendar year and month.

    Args:
        age: Decimal years (astronomical numbering)

    Returns:
        (year, month) as nullable Int64 Series aligned to ``age``; NaN ages give <NA>
    """
    age = pd.to_numeric(pd.Series(age), errors="coerce")
    a = age.to_numpy(dtype=float)
    year = np.floor(a)
    leap = is_leap_year(year)
    day_of_year = (a - year) * np.where(leap, 366.0, 365.0)

    month = np.where(
        leap,
        np.searchsorted(_CUM_DAYS_LEAP, day_of_year, side="right"),
        np.searchsorted(_CUM_DAYS, day_of_year, side="right"),
    ).astype(float)
    month[np.isnan(a)] = np.nan
    month = np.clip(month, 1, 12)

    return (
        pd.Series(year, index=age.index).astype("Int64"),
        pd.Series(month, index=age.index).astype("Int64"),
    )


def bce_exempt_mask(ids: pd.Series, prefixes: Iterable[str] = BCE_CORRECTION_EXEMPT_PREFIXES) -> pd.Series:
    """True where a record id starts with one of the exempt prefixes."""
    prefixes = list(prefixes)
    if not prefixes:
        return pd.Series(False, index=ids.index)
    pattern = "^(?:" + "|".join(re.escape(p) for p in prefixes) + ")"
    return ids.astype(str).str.match(pattern)


def normalize_dates(
    df: pd.DataFrame,
    id_col: str = ID_COL,
    age_col: str = AGE_COL,
    exempt_prefixes: Iterable[str] = BCE_CORRECTION_EXEMPT_PREFIXES,
) -> pd.DataFrame:
    """
    Add ``MONTH`` and ``Year`` columns derived from the decimal age.

    The floor of a negative decimal age lands one year early for BCE samples,
    so one year is added back to negative years. Records listed in
    ``exempt_prefixes`` keep the raw floor year.
    """
    out = df.copy()
    year, month = decimal_year_to_year_month(out[age_col])
    correct = year.lt(0).fillna(False).astype(bool) & ~bce_exempt_mask(out[id_col], exempt_prefixes)
    n = int(correct.sum())
    if n:
        logger.debug("Applied BCE year correction to %d rows", n)
    out["MONTH"] = month
    out["Year"] = year.where(~correct, year + 1)
    return out
