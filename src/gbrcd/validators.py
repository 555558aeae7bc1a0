from __future__ import annotations
import pandas as pd
from pandera import Column, DataFrameSchema, Check

from .config import ID_COL, AGE_COL

_RESOLUTION_FIELDS = [
    "meths_resolutionMin", "meths_resolutionMax",
    "meths_resolutionMean", "meths_resolutionMedian",
]

metadata_schema = DataFrameSchema(
    {
        ID_COL: Column(str, nullable=False, unique=True),
        "geo_latitude": Column(float, Check.in_range(-90, 90), nullable=True, coerce=True, required=False),
        "geo_longitude": Column(float, Check.in_range(-180, 180), nullable=True, coerce=True, required=False),
        "cdata_minYear": Column(float, nullable=True, coerce=True, required=False),
        "cdata_maxYear": Column(float, nullable=True, coerce=True, required=False),
        "cdata_dataCoverageGroup": Column(float, Check.isin([1, 2, 3]), nullable=True, coerce=True, required=False),
        **{
            name: Column(float, Check.ge(0), nullable=True, coerce=True, required=False)
            for name in _RESOLUTION_FIELDS
        },
    },
    strict=False,
)

observation_schema = DataFrameSchema(
    {AGE_COL: Column(float, nullable=True, coerce=True)},
    strict=False,
)


def assert_metadata(df: pd.DataFrame) -> pd.DataFrame:
    """Validate (and coerce) a metadata table; one row per record id."""
    return metadata_schema.validate(df, lazy=True)


def assert_observations(df: pd.DataFrame) -> pd.DataFrame:
    return observation_schema.validate(df, lazy=True)
