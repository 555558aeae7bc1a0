from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple
import matplotlib.pyplot as plt
import pandas as pd

from .config import ID_COL, JOIN_COLUMNS
from .ingest import read_metadata, read_record_files
from .archive import read_archive
from .cleaning import prepare_records
from .coverage import coverage_stats, resolution_stats
from .filters import filter_metadata, filter_observations, group_sites
from .plotting import plot_records, plot_record_stack, plot_coverage_chart, plot_resolution_chart
from .maps import plot_record_map, plot_site_map
from .data_io import save_table, save_figure

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """The loaded database: metadata (one row per record) and record tables by id."""
    metadata: pd.DataFrame
    records: Dict[str, pd.DataFrame] = field(default_factory=dict)

    @classmethod
    def from_csv(cls, metadata_path: str | Path | None = None, records_dir: str | Path | None = None,
                 validate: bool = True) -> "Session":
        return cls(read_metadata(metadata_path, validate=validate),
                   read_record_files(records_dir, validate=validate))

    @classmethod
    def from_archive(cls, path: str | Path | None = None, validate: bool = True) -> "Session":
        metadata, records = read_archive(path, validate=validate)
        return cls(metadata, records)

    def joined(self, columns: Optional[Iterable[str]] = JOIN_COLUMNS) -> pd.DataFrame:
        """All observations with metadata, Region, Year and MONTH (columns=None joins every field)."""
        return prepare_records(self.records, self.metadata, columns=columns)

    def record(self, record_id: str) -> pd.DataFrame:
        joined = self.joined()
        out = joined[joined[ID_COL] == record_id]
        if out.empty:
            raise KeyError(f"Unknown record: {record_id}")
        return out


def make_interim(session: Session, save: bool = True, directory: str | Path | None = None) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Build the dense coverage-group and nominal-resolution tables behind the
    area charts, optionally writing them as parquet.
    """
    joined = session.joined(columns=None)
    cover = coverage_stats(joined)
    nominal = resolution_stats(joined)
    if save:
        save_table(cover, "coverage_by_year.parquet", directory)
        save_table(nominal, "resolution_by_year.parquet", directory)
    return cover, nominal


def proxy_figures(
    session: Session,
    variable: str = "BaCa",
    *,
    label: str = "Ba/Ca",
    ylabel: str = "Ba/Ca (mmol/mol)",
    min_resolution_median: float = 6,
    min_age: float = 1500,
    exclude_ids: Iterable[str] = (),
    outline: bool = True,
) -> Dict[str, plt.Figure]:
    """
    The worked example: records carrying ``variable`` since ``min_age`` at
    bimonthly or finer median resolution, anomalies excluded.

    Returns:
        Dict of figure name -> matplotlib Figure
    """
    joined = session.joined()
    selected = filter_observations(
        joined, variable=variable, min_age=min_age,
        min_resolution_median=min_resolution_median,
        exclude_anomalies=True, exclude_ids=list(exclude_ids) or None,
    )
    n = selected[ID_COL].nunique()
    logger.info("%d %s records selected", n, variable)
    if n == 0:
        raise ValueError(f"No records match the {variable} selection")

    figs = {}
    figs[f"{variable}_all"], _ = plot_records(
        selected, variable, ylim=(-0.025, 0.1),
        title=f"GBR {label} records (>= bimonthly)", ylabel=ylabel)

    south = filter_observations(selected, region="South")
    if not south.empty:
        figs[f"{variable}_south"], _ = plot_records(
            south, variable, ylim=(-0.025, 0.1), legend=True,
            title=f"Southern GBR {label} records (>= bimonthly)", ylabel=ylabel)
        far_south = filter_observations(south, max_latitude=-22.5)
        if not far_south.empty:
            figs[f"{variable}_south_stack"], _ = plot_record_stack(
                far_south, variable, ylim=(0, 0.025), xlim=(1950, 2020),
                title=f"Select Southern GBR {label} records time series stack (>= bimonthly)",
                ylabel=ylabel)

    meta = filter_metadata(session.metadata, variable=variable)
    figs[f"{variable}_map"], _ = plot_record_map(meta, label=label, outline=outline)
    figs[f"{variable}_site_map"], _ = plot_site_map(group_sites(meta), label=label, outline=outline)
    return figs


def area_figures(cover: pd.DataFrame, nominal: pd.DataFrame, since: float = 1550) -> Dict[str, plt.Figure]:
    """Resolution and coverage area charts (tables from make_interim) for the whole span and since ``since``."""
    figs = {}
    figs["resolution_all"], _ = plot_resolution_chart(nominal)
    figs[f"resolution_{int(since)}"], _ = plot_resolution_chart(nominal, year_min=since)
    figs["coverage_all"], _ = plot_coverage_chart(cover)
    figs[f"coverage_{int(since)}"], _ = plot_coverage_chart(cover, year_min=since)
    return figs


def save_figures(figs: Dict[str, plt.Figure], directory: str | Path | None = None) -> Dict[str, Path]:
    return {name: save_figure(fig, f"{name}.png", directory) for name, fig in figs.items()}
