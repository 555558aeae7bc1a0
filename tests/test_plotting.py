import numpy as np
import pandas as pd
import pytest

from gbrcd.cleaning import prepare_records
from gbrcd.coverage import coverage_stats, resolution_stats
from gbrcd.filters import filter_metadata, group_sites
from gbrcd.plotting import plot_records, plot_record_stack, area_matrix, plot_coverage_chart, plot_resolution_chart
from gbrcd.maps import plot_record_map, plot_site_map, _size_scale
from gbrcd.config import COVERAGE_ORDER


@pytest.fixture
def joined(records, metadata):
    return prepare_records(records, metadata, columns=None)


def test_plot_records_one_line_per_record(joined):
    fig, ax = plot_records(joined, "BaCa", ylim=(-0.025, 0.1), legend=True)
    assert len(ax.get_lines()) == 3
    assert ax.get_ylim() == pytest.approx((-0.025, 0.1))
    assert ax.get_legend() is not None


def test_plot_record_stack_panel_per_record(joined):
    fig, axes = plot_record_stack(joined, "BaCa", xlim=(1950, 2020))
    assert len(axes) == 3
    assert axes[0].get_xlim() == pytest.approx((1950, 2020))


def test_plot_record_stack_needs_data(joined):
    with pytest.raises(ValueError):
        plot_record_stack(joined.assign(X=np.nan), "X")


def test_area_matrix_orders_columns(joined):
    cover = coverage_stats(joined, start=1950, end=2017)
    wide = area_matrix(cover, "lengthgrp", COVERAGE_ORDER)
    assert list(wide.columns) == COVERAGE_ORDER
    assert len(wide) == 68
    assert wide.loc[1990, "Group2 10-100 years"] == 1


def test_area_charts_render(joined):
    nominal = resolution_stats(joined, start=1500, end=2017)
    fig, ax = plot_resolution_chart(nominal, year_min=1550)
    assert ax.get_xlim() == pytest.approx((1551, 2017))
    assert len(ax.collections) == 8

    cover = coverage_stats(joined, start=-200, end=2017)
    fig, ax = plot_coverage_chart(cover)
    assert len(ax.collections) == 3
    assert [t.get_text() for t in ax.get_legend().get_texts()] == COVERAGE_ORDER


def test_maps_without_outline(metadata):
    meta = filter_metadata(metadata, variable="BaCa")
    fig, ax = plot_record_map(meta, label="Ba/Ca", outline=False)
    assert ax.get_title() == "Ba/Ca Records"

    fig, ax = plot_site_map(group_sites(meta), label="Ba/Ca", outline=False)
    legend = ax.get_legend()
    assert [t.get_text() for t in legend.get_texts()] == ["1", "2"]


def test_site_size_scale_is_area_linear():
    diam = np.sqrt(_size_scale([1, 5, 9], 1, 9, (2, 7))) / 2
    assert diam[0] == pytest.approx(2)
    assert diam[2] == pytest.approx(7)
    # half the count range gives sqrt(0.5) of the diameter range
    assert diam[1] == pytest.approx(2 + 5 * np.sqrt(0.5))
    assert _size_scale([3, 3], 3, 3, (2, 7)).tolist() == [16.0, 16.0]
