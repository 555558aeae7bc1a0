"""
Figures for GBRCD records: time-series lines, per-record stacks and the
stacked area charts of records per year by coverage group / nominal resolution.

All functions draw with matplotlib and return (fig, ax) or (fig, axes). When
``ax`` is given the figure is not re-laid out.
"""
from __future__ import annotations
from typing import Dict, Optional, Sequence, Tuple, Union
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from .config import ID_COL, AGE_COL, AREA_COLOURS, COVERAGE_COLOURS, COVERAGE_ORDER, RESOLUTION_ORDER, PROXY_COLOUR

Range = Optional[Tuple[float, float]]


def _new_axes(ax, figsize):
    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=figsize)
        return fig, ax, True
    return ax.figure, ax, False


def plot_records(
    df: pd.DataFrame,
    variable: str,
    *,
    ax=None,
    ylim: Range = None,
    xlim: Range = None,
    title: Optional[str] = None,
    ylabel: Optional[str] = None,
    xlabel: str = "Year",
    colour: Optional[str] = None,
    legend: bool = False,
    figsize: Tuple[float, float] = (9, 5),
):
    """
    One line per record of ``variable`` against Age.

    Records are coloured along the viridis map unless a single ``colour`` is given.
    Rows with no value for ``variable`` are skipped.
    """
    data = df.dropna(subset=[variable])
    fig, ax, created = _new_axes(ax, figsize)

    ids = list(pd.unique(data[ID_COL]))
    cmap = plt.get_cmap("viridis")
    for i, rid in enumerate(ids):
        rec = data[data[ID_COL] == rid].sort_values(AGE_COL)
        c = colour or cmap(i / max(len(ids) - 1, 1))
        ax.plot(rec[AGE_COL], rec[variable], color=c, lw=0.8, label=rid)

    if ylim is not None:
        ax.set_ylim(*ylim)
    if xlim is not None:
        ax.set_xlim(*xlim)
    ax.set_title(title or f"{variable} records", loc="center")
    ax.set_xlabel(xlabel)
    ax.set_ylabel(ylabel or variable)
    if legend and ids:
        ax.legend(loc="center left", bbox_to_anchor=(1.01, 0.5), fontsize="small", frameon=False)
    if created:
        fig.tight_layout()
    return fig, ax


def plot_record_stack(
    df: pd.DataFrame,
    variable: str,
    *,
    colour: str = PROXY_COLOUR,
    ylim: Range = None,
    xlim: Range = None,
    title: Optional[str] = None,
    ylabel: Optional[str] = None,
    xlabel: str = "Year",
    panel_height: float = 1.2,
):
    """Time-series stack: one panel per record, shared x axis, id label on the right."""
    data = df.dropna(subset=[variable])
    ids = sorted(pd.unique(data[ID_COL]))
    if not ids:
        raise ValueError(f"No rows with a value for {variable}")

    fig, axes = plt.subplots(len(ids), 1, sharex=True, squeeze=False,
                             figsize=(9, max(2.5, panel_height * len(ids))))
    axes = axes[:, 0]
    for ax, rid in zip(axes, ids):
        rec = data[data[ID_COL] == rid].sort_values(AGE_COL)
        ax.plot(rec[AGE_COL], rec[variable], color=colour, lw=0.8)
        if ylim is not None:
            ax.set_ylim(*ylim)
        ax.yaxis.set_label_position("right")
        ax.set_ylabel(rid, rotation=0, ha="left", va="center", fontsize="small")
    if xlim is not None:
        axes[-1].set_xlim(*xlim)
    axes[-1].set_xlabel(xlabel)
    fig.supylabel(ylabel or variable)
    fig.suptitle(title or f"{variable} records time series stack")
    fig.tight_layout()
    return fig, axes


def area_matrix(table: pd.DataFrame, category_col: str, labels: Sequence[str]) -> pd.DataFrame:
    """Years x labels matrix of recordsCount in stacking order."""
    wide = table.pivot_table(index="Year", columns=category_col, values="recordsCount",
                             aggfunc="sum", fill_value=0, observed=False)
    return wide.reindex(columns=list(labels), fill_value=0).sort_index()


def plot_area_chart(
    table: pd.DataFrame,
    category_col: str,
    labels: Sequence[str],
    *,
    colours: Union[Sequence[str], Dict[str, str], None] = None,
    year_min: Optional[float] = None,
    year_max: Optional[float] = None,
    ylim: Range = (0, 117),
    ystep: int = 25,
    xticks: Optional[Sequence[float]] = None,
    outline: bool = False,
    alpha: float = 0.6,
    legend_title: Optional[str] = None,
    ax=None,
    figsize: Tuple[float, float] = (11, 6),
):
    """
    Stacked area chart of records per year, first label at the bottom.

    ``year_min`` is exclusive (``Year > year_min``), ``year_max`` inclusive.
    """
    data = table
    if year_min is not None:
        data = data[data["Year"] > year_min]
    if year_max is not None:
        data = data[data["Year"] <= year_max]
    wide = area_matrix(data, category_col, labels)

    if colours is None:
        colours = AREA_COLOURS
    if isinstance(colours, dict):
        colours = [colours[lab] for lab in labels]
    colours = list(colours)[: len(labels)]

    fig, ax, created = _new_axes(ax, figsize)
    ax.stackplot(
        wide.index.to_numpy(dtype=float),
        wide.to_numpy(dtype=float).T,
        labels=list(labels),
        colors=colours,
        alpha=alpha,
        edgecolor="black" if outline else "none",
        linewidth=0.1,
    )
    if ylim is not None:
        ax.set_ylim(*ylim)
        ax.set_yticks(np.arange(ylim[0], ylim[1] + 1, ystep))
    if xticks is not None:
        ax.set_xticks(list(xticks))
    if len(wide.index):
        ax.set_xlim(wide.index.min(), wide.index.max())
    ax.set_xlabel("Year")
    ax.set_ylabel("# of records")
    ax.legend(title=legend_title, loc="center left", bbox_to_anchor=(1.01, 0.5), frameon=False)
    if created:
        fig.tight_layout()
    return fig, ax


def plot_resolution_chart(table: pd.DataFrame, year_min: Optional[float] = None, **kwargs):
    """Area chart of records per year by nominal resolution."""
    if year_min is not None:
        kwargs.setdefault("xticks", range(1500, 2021, 100))
        kwargs.setdefault("outline", True)
    return plot_area_chart(table, "nomRes", RESOLUTION_ORDER, colours=AREA_COLOURS,
                           year_min=year_min, legend_title="Resolution", **kwargs)


def plot_coverage_chart(table: pd.DataFrame, year_min: Optional[float] = None, **kwargs):
    """Area chart of records per year by coverage group."""
    if year_min is not None:
        kwargs.setdefault("xticks", range(1500, 2021, 100))
        kwargs.setdefault("outline", True)
    return plot_area_chart(table, "lengthgrp", COVERAGE_ORDER, colours=COVERAGE_COLOURS,
                           year_min=year_min, legend_title="Coverage", **kwargs)
