from __future__ import annotations
from pathlib import Path
import pandas as pd
import matplotlib.pyplot as plt

from .config import INTERIM, FIGURES


def save_table(df: pd.DataFrame, name: str, directory: str | Path | None = None) -> Path:
    """
    Write a coverage or resolution table from make_interim to parquet.

    Args:
        df: Dense year x category table
        name: File name, e.g. "coverage_by_year.parquet"
        directory: Defaults to config.INTERIM (data/interim)

    Returns:
        Path of the written file
    """
    directory = Path(directory or INTERIM)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    df.to_parquet(path, index=False)
    return path


def load_table(name: str, directory: str | Path | None = None) -> pd.DataFrame:
    """Load a table saved with save_table."""
    return pd.read_parquet(Path(directory or INTERIM) / name)


def save_figure(fig: plt.Figure, name: str, directory: str | Path | None = None, dpi: int = 300) -> Path:
    directory = Path(directory or FIGURES)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    return path
