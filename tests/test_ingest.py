import json
import zipfile
import pandas as pd
import pytest
from pandera.errors import SchemaErrors

from gbrcd.ingest import read_metadata, read_record_files, list_record_files
from gbrcd.archive import read_archive, flatten_metadata
from gbrcd.pipeline import Session


@pytest.fixture
def csv_dataset(tmp_path, metadata, records):
    meta_path = tmp_path / "GBRCD_metadata_v1.0.csv"
    metadata.to_csv(meta_path, index=False)
    rec_dir = tmp_path / "GBRCD_files_v1.0"
    rec_dir.mkdir()
    for rid, df in records.items():
        df.to_csv(rec_dir / f"{rid}.csv", index=False)
    return meta_path, rec_dir


def _doc(rid, lat, values):
    return {
        "cdata_datasetID": rid,
        "geo": {"latitude": lat, "longitude": 150.0, "siteName": "Keppel Islands"},
        "meths": {"isAnomaly": False, "primaryVariablesList": "BaCa", "hasResolutionNominal": "monthly"},
        "cdata": {"dataCoverageGroup": 2},
        "paleoData": [{"measurementTable": [{"columns": [
            {"variableName": "Age", "number": 1, "values": values["Age"]},
            {"variableName": "BaCa", "number": 2, "values": values["BaCa"]},
        ]}]}],
    }


def test_read_metadata_validates_and_coerces(csv_dataset):
    meta_path, _ = csv_dataset
    meta = read_metadata(meta_path)
    assert len(meta) == 4
    assert meta["cdata_dataCoverageGroup"].dtype == float
    assert meta["meths_isAnomaly"].dtype == bool


def test_read_metadata_rejects_duplicate_ids(tmp_path, metadata):
    path = tmp_path / "meta.csv"
    pd.concat([metadata, metadata.iloc[[0]]]).to_csv(path, index=False)
    with pytest.raises(SchemaErrors):
        read_metadata(path)


def test_read_metadata_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_metadata(tmp_path / "nope.csv")


def test_read_record_files_keys_by_stem(csv_dataset, records):
    _, rec_dir = csv_dataset
    loaded = read_record_files(rec_dir)
    assert set(loaded) == set(records)
    assert list(loaded["AL03DAV01_1"].columns) == ["Age", "SrCa", "BaCa"]
    assert [p.stem for p in list_record_files(rec_dir)] == sorted(records)


def test_read_record_files_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_record_files(tmp_path / "missing")


def test_flatten_metadata_sections():
    row = flatten_metadata(_doc("KE01", -23.1, {"Age": [], "BaCa": []}), "fallback")
    assert row["geo_latitude"] == -23.1
    assert row["meths_isAnomaly"] is False
    assert row["cdata_datasetID"] == "KE01"
    assert "paleoData" not in row
    assert flatten_metadata({"dataSetName": "X1"}, "stem")["cdata_datasetID"] == "X1"
    assert flatten_metadata({}, "stem")["cdata_datasetID"] == "stem"


def test_read_archive_directory(tmp_path):
    arch = tmp_path / "archive"
    arch.mkdir()
    (arch / "KE01.jsonld").write_text(json.dumps(_doc("KE01", -23.1, {"Age": [1990.1, 1990.6], "BaCa": [0.005, 0.006]})))
    (arch / "KE02.json").write_text(json.dumps(_doc("KE02", -23.2, {"Age": [2001.5], "BaCa": [0.004]})))

    meta, recs = read_archive(arch)
    assert sorted(meta["cdata_datasetID"]) == ["KE01", "KE02"]
    assert {"geo_latitude", "geo_siteName", "meths_primaryVariablesList"} <= set(meta.columns)
    assert recs["KE01"]["BaCa"].tolist() == [0.005, 0.006]


def test_read_archive_zip_with_csv_tables(tmp_path):
    doc = _doc("KE03", -23.3, {"Age": [], "BaCa": []})
    doc["paleoData"] = [{"measurementTable": [{
        "filename": "KE03.paleo1measurement1.csv",
        "columns": [
            {"variableName": "BaCa", "number": 2},
            {"variableName": "Age", "number": 1},
        ],
    }]}]
    bundle = tmp_path / "archive.zip"
    with zipfile.ZipFile(bundle, "w") as z:
        z.writestr("KE03/KE03.jsonld", json.dumps(doc))
        z.writestr("KE03/KE03.paleo1measurement1.csv", "1990.1,0.005\n1990.6,0.006\n")

    meta, recs = read_archive(bundle)
    assert meta["cdata_datasetID"].tolist() == ["KE03"]
    assert list(recs["KE03"].columns) == ["Age", "BaCa"]
    assert recs["KE03"]["Age"].tolist() == [1990.1, 1990.6]


def test_read_archive_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_archive(tmp_path / "absent.zip")


def test_read_archive_geojson_geo_block(tmp_path):
    doc = {
        "dataSetName": "KE04",
        "geo": {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [150.9, -23.1, -5]},
            "properties": {"siteName": "North Keppel Island"},
        },
        "meths": {"isAnomaly": False, "primaryVariablesList": "BaCa",
                  "hasResolutionNominal": "monthly", "resolutionMedian": 12},
        "paleoData": [{"measurementTable": [{"columns": [
            {"variableName": "Age", "number": 1, "values": [1990.1, 1990.6]},
            {"variableName": "BaCa", "number": 2, "values": [0.005, 0.006]},
        ]}]}],
    }
    arch = tmp_path / "archive"
    arch.mkdir()
    (arch / "KE04.jsonld").write_text(json.dumps(doc))

    meta, recs = read_archive(arch)
    row = meta.iloc[0]
    assert row["cdata_datasetID"] == "KE04"
    assert row["geo_longitude"] == 150.9
    assert row["geo_latitude"] == -23.1
    assert row["geo_elevation"] == -5
    assert row["geo_siteName"] == "North Keppel Island"

    joined = Session(meta, recs).joined()
    assert joined["Region"].tolist() == ["South", "South"]
