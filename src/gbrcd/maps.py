"""
Maps of record locations over the Queensland coastline.

Record coordinates are GDA94 (EPSG:4283) lon/lat, which differ from WGS84 by
well under a pixel at these map scales, so they are drawn as PlateCarree.
The Queensland outline comes from Natural Earth admin-1 boundaries (cartopy
downloads and caches it on first use).
"""
from __future__ import annotations
import logging
from functools import lru_cache
from typing import Optional, Sequence, Tuple
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import cartopy.crs as ccrs
import cartopy.io.shapereader as shpreader
from cartopy.feature import ShapelyFeature

from .config import MAP_EXTENT, SITE_MAP_EXTENT, PROXY_COLOUR

logger = logging.getLogger(__name__)

PLATE = ccrs.PlateCarree()
Extent = Tuple[float, float, float, float]


@lru_cache(maxsize=1)
def queensland_outline() -> ShapelyFeature:
    """Queensland polygon from Natural Earth 10m admin-1 states."""
    path = shpreader.natural_earth(resolution="10m", category="cultural", name="admin_1_states_provinces")
    geoms = [
        rec.geometry for rec in shpreader.Reader(path).records()
        if rec.attributes.get("name") == "Queensland"
    ]
    if not geoms:
        raise ValueError("Queensland not found in Natural Earth admin-1 states")
    logger.info("Loaded Queensland outline from %s", path)
    return ShapelyFeature(geoms, PLATE, facecolor="#d9d9d9", edgecolor="black", linewidth=0.5)


def _map_axes(ax, extent: Extent, outline: bool, figsize):
    created = ax is None
    if created:
        fig = plt.figure(figsize=figsize)
        ax = fig.add_subplot(1, 1, 1, projection=PLATE)
    else:
        fig = ax.figure
    if outline:
        ax.add_feature(queensland_outline())
    ax.set_extent(list(extent), crs=PLATE)
    gl = ax.gridlines(draw_labels=True, linewidth=0.4, color="gray", alpha=0.5, linestyle="--")
    gl.top_labels = False
    gl.right_labels = False
    return fig, ax, created


def plot_record_map(
    metadata: pd.DataFrame,
    *,
    label: str = "Records",
    colour: str = PROXY_COLOUR,
    extent: Extent = MAP_EXTENT,
    title: Optional[str] = None,
    outline: bool = True,
    ax=None,
    figsize: Tuple[float, float] = (7, 8),
):
    """One point per record at (geo_longitude, geo_latitude)."""
    fig, ax, created = _map_axes(ax, extent, outline, figsize)
    ax.scatter(metadata["geo_longitude"], metadata["geo_latitude"],
               s=18, color=colour, label=label, transform=PLATE, zorder=3)
    ax.set_title(title or f"{label} Records")
    if created:
        fig.tight_layout()
    return fig, ax


def _size_scale(counts, lo: float, hi: float, range_pts: Tuple[float, float]) -> np.ndarray:
    """
    Scatter areas for counts. Diameters run over range_pts with the square
    root of the rescaled count, so marker area tracks the count.
    """
    c = np.asarray(counts, dtype=float)
    span = hi - lo
    frac = np.zeros_like(c) if span == 0 else (c - lo) / span
    diam = range_pts[0] + np.sqrt(frac) * (range_pts[1] - range_pts[0])
    return (diam * 2.0) ** 2


def plot_site_map(
    site_groups: pd.DataFrame,
    *,
    label: str = "Records",
    colour: str = PROXY_COLOUR,
    extent: Extent = SITE_MAP_EXTENT,
    size_range: Tuple[float, float] = (2, 7),
    breaks: Sequence[int] = (1, 2, 5, 8, 11),
    title: Optional[str] = None,
    outline: bool = True,
    ax=None,
    figsize: Tuple[float, float] = (7, 8),
):
    """
    Sites sized by number of records (output of filters.group_sites).

    Args:
        site_groups: DataFrame with lat, long and counts columns
        size_range: Smallest/largest marker diameter (points) for the count range
        breaks: Counts shown in the size legend
    """
    counts = site_groups["counts"].to_numpy()
    lo, hi = (float(counts.min()), float(counts.max())) if len(counts) else (0.0, 0.0)

    fig, ax, created = _map_axes(ax, extent, outline, figsize)
    ax.scatter(site_groups["long"], site_groups["lat"], s=_size_scale(counts, lo, hi, size_range),
               color=colour, alpha=0.5, transform=PLATE, zorder=3)

    handles = [
        ax.scatter([], [], s=_size_scale([b], lo, hi, size_range)[0], color=colour, alpha=0.5, label=str(b))
        for b in breaks if lo <= b <= hi
    ]
    if handles:
        ax.legend(handles=handles, title="Counts", loc="upper right", frameon=True)
    ax.set_title(title or f"{label} Records")
    if created:
        fig.tight_layout()
    return fig, ax
