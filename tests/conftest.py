import numpy as np
import pandas as pd
import pytest

from roche_limit.config import Paths
from roche_limit.sources import capital_distance_table, independence_table


def _synthetic_tables():
    """Deterministic outcome and control tables for the 22 sample countries."""
    base = capital_distance_table()
    rng = np.random.default_rng(20250101)
    n = len(base)
    countries = base["country"].tolist()
    dist = base["distance_km"].to_numpy() / 1000

    gdp_pc = np.exp(8.5 + 0.6 * rng.standard_normal(n))
    population = np.exp(15.5 + 1.2 * rng.standard_normal(n))
    land_area = np.exp(11 + 0.4 * np.log(population) - 6 + 0.3 * dist + 0.5 * rng.standard_normal(n))

    cinc = np.exp(-8 + 0.15 * dist + 0.5 * rng.standard_normal(n))
    state_capacity = 0.2 + 0.05 * dist + 0.04 * np.log(gdp_pc) + 0.05 * rng.standard_normal(n)
    gov_eff = -1.0 + 0.08 * dist + 0.3 * rng.standard_normal(n)

    cinc_data = pd.DataFrame({"country": countries, "cinc": cinc})
    wdi = pd.DataFrame(
        {
            "country": countries,
            "gdp_pc": gdp_pc,
            "population": population,
            "land_area": land_area,
        }
    )
    # Haiti has no World Bank controls in this fixture
    wdi = wdi[wdi["country"] != "HTI"].reset_index(drop=True)
    vdem = pd.DataFrame({"country": countries, "state_capacity": state_capacity})
    wgi = pd.DataFrame({"country": countries, "gov_effectiveness": gov_eff})
    wgi.loc[wgi["country"].isin(["CUB", "VEN", "JAM"]), "gov_effectiveness"] = np.nan

    return {
        "capital_distances.csv": base,
        "independence_years.csv": independence_table(),
        "cinc_data.csv": cinc_data,
        "wdi_data.csv": wdi,
        "vdem_data.csv": vdem,
        "wgi_data.csv": wgi,
    }


@pytest.fixture
def raw_tables():
    return _synthetic_tables()


@pytest.fixture
def paths(tmp_path, raw_tables):
    data_dir = tmp_path / "raw"
    data_dir.mkdir()
    for filename, df in raw_tables.items():
        df.to_csv(data_dir / filename, index=False)
    return Paths(data_dir=data_dir, out_dir=tmp_path / "output")


@pytest.fixture
def linear_table():
    """y = 2 + 3x exactly."""
    x = np.arange(1.0, 11.0)
    return pd.DataFrame(
        {"country": [f"C{i:02d}" for i in range(10)], "x": x, "y": 2 + 3 * x}
    )


@pytest.fixture
def noisy_table():
    rng = np.random.default_rng(7)
    n = 40
    x1 = rng.normal(size=n)
    x2 = 0.5 * x1 + rng.normal(size=n)
    y = 1.0 + 2.0 * x1 - 0.7 * x2 + rng.normal(scale=0.8, size=n)
    return pd.DataFrame(
        {"country": [f"C{i:02d}" for i in range(n)], "x1": x1, "x2": x2, "y": y}
    )
