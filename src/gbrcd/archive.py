"""
Reader for the structured (self-describing) GBRCD archive.

The archive is a directory or a .zip bundle holding one JSON document per
record (``*.json`` / ``*.jsonld``). A document looks like::

    {
      "cdata_datasetID": "AL03DAV01_1",          # or "dataSetName"
      "geo": {"latitude": -18.8, "longitude": 147.6, "siteName": "Davies Reef"},
      "meths": {"isAnomaly": false, "primaryVariablesList": "SrCa, BaCa"},
      "paleoData": [
        {"measurementTable": [
          {"columns": [
            {"variableName": "Age",  "number": 1, "values": [1990.04, 1990.13]},
            {"variableName": "BaCa", "number": 2, "values": [0.0051, 0.0049]}
          ]}
        ]}
      ]
    }

Nested metadata sections are flattened to ``<section>_<key>`` which matches
the metadata CSV column names (geo_latitude, meths_isAnomaly, ...). A ``geo``
block may also be a GeoJSON Feature (``geometry.coordinates`` as
[lon, lat, elevation], ``properties.siteName``), as LiPD files write it. A
measurement table may instead name a header-less CSV inside the bundle with
``"filename"``; its columns are then ordered by ``number``.
"""
from __future__ import annotations
import io
import json
import logging
import zipfile
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, Iterator, List, Tuple
import pandas as pd

from .config import ARCHIVE, ID_COL
from .cleaning import harmonize_ids
from .validators import assert_metadata, assert_observations

logger = logging.getLogger(__name__)

_DOC_SUFFIXES = {".json", ".jsonld"}
_DATA_KEYS = {"paleoData", "chronData"}


# -------------------------------
# Bundle access
# -------------------------------

def _iter_documents(path: Path) -> Iterator[Tuple[str, dict, Callable[[str], bytes]]]:
    """Yield (stem, document, read_member) for each record document."""
    if path.is_dir():
        for f in sorted(path.rglob("*")):
            if f.suffix.lower() in _DOC_SUFFIXES:
                base = f.parent
                yield f.stem, json.loads(f.read_text(encoding="utf-8")), lambda name, base=base: (base / name).read_bytes()
        return

    if not path.exists():
        raise FileNotFoundError(f"Archive not found: {path}")
    try:
        with zipfile.ZipFile(path, "r") as z:
            names = sorted(n for n in z.namelist() if PurePosixPath(n).suffix.lower() in _DOC_SUFFIXES)
            for name in names:
                parent = PurePosixPath(name).parent

                def read_member(member: str, parent=parent) -> bytes:
                    return z.read(str(parent / member) if str(parent) != "." else member)

                yield PurePosixPath(name).stem, json.loads(z.read(name).decode("utf-8")), read_member
    except zipfile.BadZipFile as exc:
        raise ValueError(f"Failed to read archive {path}: {exc}") from exc


# -------------------------------
# Document parsing
# -------------------------------

def _flatten_geo(geo: dict) -> dict:
    """
    A GeoJSON Feature ``geo`` block: coordinates are [lon, lat(, elevation)]
    and properties hold siteName etc.
    """
    row = {f"geo_{k}": v for k, v in geo.items() if not isinstance(v, (dict, list))}
    coords = (geo.get("geometry") or {}).get("coordinates") or []
    if len(coords) >= 2:
        row["geo_longitude"], row["geo_latitude"] = coords[0], coords[1]
    if len(coords) >= 3:
        row["geo_elevation"] = coords[2]
    for k, v in (geo.get("properties") or {}).items():
        if not isinstance(v, (dict, list)):
            row[f"geo_{k}"] = v
    return row


def flatten_metadata(doc: dict, record_id: str) -> dict:
    """Flatten scalar fields and one level of nested sections to <section>_<key>."""
    row = {}
    for key, value in doc.items():
        if key in _DATA_KEYS:
            continue
        if key == "geo" and isinstance(value, dict) and ("geometry" in value or "properties" in value):
            row.update(_flatten_geo(value))
        elif isinstance(value, dict):
            for sub, v in value.items():
                if not isinstance(v, (dict, list)):
                    row[f"{key}_{sub}"] = v
        elif isinstance(value, list):
            row[key] = ", ".join(str(v) for v in value)
        else:
            row[key] = value
    row[ID_COL] = row.get(ID_COL) or doc.get("dataSetName") or record_id
    return row


def _table_from_columns(table: dict, read_member: Callable[[str], bytes]) -> pd.DataFrame:
    columns = sorted(table.get("columns", []), key=lambda c: c.get("number", 0))
    names = [c["variableName"] for c in columns]
    if "filename" in table:
        raw = read_member(table["filename"])
        return pd.read_csv(io.BytesIO(raw), header=None, names=names)
    return pd.DataFrame({c["variableName"]: c.get("values", []) for c in columns})


def parse_record(doc: dict, read_member: Callable[[str], bytes]) -> pd.DataFrame:
    """Merge every paleoData measurement table of one record on Age."""
    tables: List[pd.DataFrame] = []
    for section in doc.get("paleoData", []):
        for table in section.get("measurementTable", []):
            tables.append(_table_from_columns(table, read_member))
    if not tables:
        return pd.DataFrame()
    out = tables[0]
    for t in tables[1:]:
        out = out.merge(t, on="Age", how="outer") if "Age" in out.columns and "Age" in t.columns \
            else pd.concat([out, t], ignore_index=True, sort=False)
    return out


def read_archive(path: str | Path | None = None, validate: bool = True) -> Tuple[pd.DataFrame, Dict[str, pd.DataFrame]]:
    """
    Read a structured archive.

    Args:
        path: Directory or .zip bundle (default: config.ARCHIVE)
        validate: Run the pandera schemas on metadata and record tables

    Returns:
        (metadata, records) in the same shape as ingest.read_metadata /
        ingest.read_record_files
    """
    path = Path(path or ARCHIVE)
    if not path.exists():
        raise FileNotFoundError(f"Archive not found: {path}")

    rows, records = [], {}
    for stem, doc, read_member in _iter_documents(path):
        row = flatten_metadata(doc, stem)
        df = parse_record(doc, read_member)
        records[str(row[ID_COL])] = assert_observations(df) if validate and not df.empty else df
        rows.append(row)

    metadata = harmonize_ids(pd.DataFrame(rows))
    if validate and not metadata.empty:
        metadata = assert_metadata(metadata)
    logger.info("Loaded %d records from archive %s", len(records), path)
    return metadata, records
