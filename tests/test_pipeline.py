import pytest

from gbrcd.pipeline import Session, make_interim, area_figures, proxy_figures, save_figures
from gbrcd.data_io import load_table


@pytest.fixture
def session(metadata, records):
    return Session(metadata, records)


def test_session_from_csv(tmp_path, metadata, records):
    meta_path = tmp_path / "meta.csv"
    metadata.to_csv(meta_path, index=False)
    rec_dir = tmp_path / "files"
    rec_dir.mkdir()
    for rid, df in records.items():
        df.to_csv(rec_dir / f"{rid}.csv", index=False)

    s = Session.from_csv(meta_path, rec_dir)
    assert set(s.records) == set(records)
    joined = s.joined()
    assert {"Region", "Year", "MONTH"} <= set(joined.columns)


def test_session_record_lookup(session):
    rec = session.record("AL03DAV01_1")
    assert len(rec) == 5
    with pytest.raises(KeyError):
        session.record("NOPE")


def test_make_interim_writes_dense_tables(session, tmp_path):
    cover, nominal = make_interim(session, directory=tmp_path)
    assert len(cover) == 3 * 7908
    assert len(nominal) == 8 * 7908
    saved = load_table("coverage_by_year.parquet", tmp_path)
    assert len(saved) == len(cover)
    assert saved["recordsCount"].sum() == cover["recordsCount"].sum()


def test_figures_and_save(session, tmp_path):
    figs = proxy_figures(session, "BaCa", outline=False)
    assert {"BaCa_all", "BaCa_south", "BaCa_south_stack", "BaCa_map", "BaCa_site_map"} <= set(figs)

    cover, nominal = make_interim(session, save=False)
    figs.update(area_figures(cover, nominal))
    assert {"resolution_all", "resolution_1550", "coverage_all", "coverage_1550"} <= set(figs)

    paths = save_figures({"coverage_all": figs["coverage_all"]}, tmp_path)
    assert paths["coverage_all"].exists()


def test_proxy_figures_without_matches(session):
    with pytest.raises(ValueError):
        proxy_figures(session, "UCa", outline=False)
