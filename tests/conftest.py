import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest
import matplotlib.pyplot as plt


@pytest.fixture(autouse=True)
def _close_figures():
    yield
    plt.close("all")


@pytest.fixture
def metadata():
    return pd.DataFrame({
        "cdata_datasetID": ["AL03DAV01_1", "SO20KEP01", "HE21NOR01", "LE05ANC01"],
        "geo_siteName": ["Davies Reef", "Keppel Islands", "Lizard Island", "Keppel Islands"],
        "geo_latitude": [-18.8, -23.4, -14.5, -21.0],
        "geo_longitude": [147.6, 151.0, 145.4, 150.9],
        "cdata_archiveSpecies": ["Porites sp.", "Porites lutea", "Porites sp.", "Porites sp."],
        "meths_primaryVariablesList": ["SrCa, BaCa", "BaCa", "SrCa", "BaCa, SrCa"],
        "meths_additionalVariablesList": [np.nan, "d18Osw", np.nan, np.nan],
        "meths_hasResolutionNominal": ["monthly", "bimonthly_uneven", "annual", ">annual"],
        "meths_resolutionMedian": [12.0, 6.0, 1.0, 0.5],
        "cdata_dataCoverageGroup": [2, 1, 3, 1],
        "cdata_minYear": [1990, 1960, 1900, -101],
        "cdata_maxYear": [1992, 2010, 1905, -99],
        "calib_useSSTCalibration": [True, False, False, False],
        "meths_isAnomaly": [False, False, False, True],
    })


@pytest.fixture
def records():
    return {
        "AL03DAV01_1": pd.DataFrame({
            "Age": [1990.04, 1990.54, 1991.04, 1991.54, 1992.04],
            "SrCa": [8.9, 9.0, 8.95, 9.01, 8.93],
            "BaCa": [0.0051, 0.0049, 0.0050, 0.0052, 0.0047],
        }),
        "SO20KEP01": pd.DataFrame({
            "Age": [1960.1, 1960.6, 1985.3, 2010.2],
            "BaCa": [0.0061, np.nan, 0.0058, 0.0071],
        }),
        "HE21NOR01": pd.DataFrame({
            "Age": [1900.5, 1901.5, 1905.5],
            "SrCa": [9.1, 9.05, 9.02],
        }),
        "LE05ANC01": pd.DataFrame({
            "Age": [-101.0, -100.5, -99.0],
            "BaCa": [0.004, 0.0041, 0.0039],
        }),
    }
