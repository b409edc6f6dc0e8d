import numpy as np
import pandas as pd
import pytest

from roche_limit.config import Paths
from roche_limit.errors import SchemaError
from roche_limit.sources import (
    CAPITALS,
    build_raw_tables,
    capital_distance_table,
    cinc_from_nmc,
    controls_from_wdi,
    independence_table,
)


class TestCapitalDistanceTable():
    def test_schema_and_rows(self):
        df = capital_distance_table()
        assert list(df.columns) == ["country", "capital", "lat", "lon", "distance_km"]
        assert len(df) == len(CAPITALS) == 22
        assert df["country"].is_unique

    def test_distances_are_plausible(self):
        df = capital_distance_table().set_index("country")
        assert (df["distance_km"] > 0).all()
        assert df.loc["CUB", "distance_km"] < df.loc["MEX", "distance_km"]
        assert df.loc["MEX", "distance_km"] < df.loc["ARG", "distance_km"]

    def test_reference_point_at_capital(self):
        df = capital_distance_table(reference=(-34.6037, -58.3816)).set_index("country")
        assert df.loc["ARG", "distance_km"] == pytest.approx(0.0, abs=1e-9)


class TestIndependenceTable():
    def test_years_independent(self):
        df = independence_table(2025).set_index("country")
        assert df.loc["HTI", "independence_year"] == 1804
        assert df.loc["HTI", "years_independent"] == 221
        assert df.loc["JAM", "years_independent"] == 63
        assert (df["years_independent"] >= 0).all()

    def test_reference_year_before_independence(self):
        with pytest.raises(ValueError):
            independence_table(1950)


@pytest.fixture
def nmc():
    rows = []
    for year in range(2006, 2015):
        rows.append({"ccode": 160, "year": year, "cinc": 0.004 + 0.0001 * (year - 2008),
                     "milex": 1000.0, "milper": 70.0, "irst": 5000.0,
                     "pec": 90000.0, "tpop": 40000.0, "upop": 30000.0})
        rows.append({"ccode": 2, "year": year, "cinc": 0.14, "milex": 6e8, "milper": 1500.0,
                     "irst": 80000.0, "pec": 3e6, "tpop": 310000.0, "upop": 200000.0})
    return pd.DataFrame(rows)


class TestCincFromNmc():
    def test_averages_window_for_sample_countries(self, nmc):
        out = cinc_from_nmc(nmc, 2008, 2012)
        assert out["country"].tolist() == ["ARG"]
        assert out["cinc"].iloc[0] == pytest.approx(0.0042)
        assert list(out.columns) == ["country", "cinc", "milex", "milper", "irst", "pec", "tpop", "upop"]

    def test_missing_columns(self, nmc):
        with pytest.raises(SchemaError):
            cinc_from_nmc(nmc.drop(columns=["cinc"]))


@pytest.fixture
def wdi():
    return pd.DataFrame(
        {
            "iso3c": ["ARG"] * 5 + ["BRA"] * 2 + ["USA"],
            "year": [2018, 2019, 2020, 2021, 2017, 2019, 2020, 2019],
            "NY.GDP.PCAP.KD": [10.0, 12.0, np.nan, 14.0, 99.0, 8.0, 9.0, 60.0],
            "SP.POP.TOTL": [100.0, 200.0, 300.0, 300.0, 1.0, 50.0, 70.0, 330.0],
            "AG.LND.TOTL.K2": [2.7e6] * 5 + [8.4e6] * 2 + [9.1e6],
        }
    )


class TestControlsFromWdi():
    def test_drops_incomplete_years_before_averaging(self, wdi):
        out = controls_from_wdi(wdi, 2018, 2022).set_index("country")
        assert sorted(out.index) == ["ARG", "BRA"]
        assert out.loc["ARG", "gdp_pc"] == pytest.approx(12.0)
        assert out.loc["ARG", "population"] == pytest.approx(200.0)
        assert out.loc["BRA", "land_area"] == pytest.approx(8.4e6)

    def test_land_area_optional(self, wdi):
        out = controls_from_wdi(wdi.drop(columns=["AG.LND.TOTL.K2"]))
        assert list(out.columns) == ["country", "gdp_pc", "population"]


class TestBuildRawTables():
    def test_writes_base_tables(self, tmp_path):
        paths = Paths(data_dir=tmp_path / "raw", out_dir=tmp_path / "out")
        written = build_raw_tables(paths)
        assert set(written) == {"capital_distances", "independence_years"}
        df = pd.read_csv(written["capital_distances"])
        assert len(df) == 22

    def test_aggregates_extracts(self, tmp_path, nmc, wdi):
        nmc.to_csv(tmp_path / "nmc.csv", index=False)
        wdi.to_csv(tmp_path / "wdi.csv", index=False)
        paths = Paths(data_dir=tmp_path / "raw", out_dir=tmp_path / "out")
        written = build_raw_tables(paths, tmp_path / "nmc.csv", tmp_path / "wdi.csv")
        assert pd.read_csv(written["cinc_data"])["country"].tolist() == ["ARG"]
        assert sorted(pd.read_csv(written["wdi_data"])["country"]) == ["ARG", "BRA"]
