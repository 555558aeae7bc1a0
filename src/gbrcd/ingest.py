from __future__ import annotations
import logging
from pathlib import Path
from typing import Dict, List
import pandas as pd

from .config import METADATA_CSV, RECORDS_DIR
from .cleaning import normalize_columns, harmonize_ids
from .validators import assert_metadata, assert_observations

logger = logging.getLogger(__name__)


def read_metadata(path: str | Path | None = None, validate: bool = True) -> pd.DataFrame:
    """
    Read the GBRCD metadata table (one row per record).

    Args:
        path: CSV path (default: config.METADATA_CSV)
        validate: Run the pandera metadata schema on the loaded table

    Returns:
        Metadata DataFrame
    """
    path = Path(path or METADATA_CSV)
    meta = normalize_columns(pd.read_csv(path))
    meta = harmonize_ids(meta)
    if validate:
        meta = assert_metadata(meta)
    logger.info("Loaded metadata for %d records from %s", len(meta), path)
    return meta


def list_record_files(directory: str | Path | None = None) -> List[Path]:
    directory = Path(directory or RECORDS_DIR)
    if not directory.is_dir():
        raise FileNotFoundError(f"Record directory not found: {directory}")
    return sorted(directory.glob("*.csv"))


def read_record_files(directory: str | Path | None = None, validate: bool = True) -> Dict[str, pd.DataFrame]:
    """
    Read every per-record observation CSV in a directory.

    Returns:
        Dict mapping record id (the file stem) to its observation table
    """
    records = {}
    for f in list_record_files(directory):
        df = normalize_columns(pd.read_csv(f))
        records[f.stem] = assert_observations(df) if validate else df
    logger.info("Loaded %d record files", len(records))
    return records
