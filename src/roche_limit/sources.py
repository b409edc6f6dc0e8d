"""
Raw per-country input tables.

Capital coordinates and independence years are coded by hand. CINC scores
(Correlates of War National Material Capabilities) and World Bank controls
are aggregated from extracts downloaded separately.
"""
from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from roche_limit.config import (
    BASE_SOURCE,
    CINC_SOURCE,
    CONTROLS_SOURCE,
    INDEPENDENCE_SOURCE,
    NMC_YEARS,
    REFERENCE_YEAR,
    WASHINGTON_DC,
    WDI_YEARS,
    Paths,
)
from roche_limit.geo import Point, add_distance
from roche_limit.tables import load_table, write_table
from roche_limit.utils import require_columns

__all__ = [
    "CAPITALS",
    "COUNTRY_NAMES",
    "INDEPENDENCE_YEARS",
    "COW_TO_ISO3",
    "capital_distance_table",
    "independence_table",
    "cinc_from_nmc",
    "controls_from_wdi",
    "build_raw_tables",
]

logger = logging.getLogger("roche_limit")

# (ISO3, country name, capital, lat, lon)
CAPITALS = [
    ("ARG", "Argentina", "Buenos Aires", -34.6037, -58.3816),
    ("BOL", "Bolivia", "La Paz", -16.5000, -68.1500),
    ("BRA", "Brazil", "Brasília", -15.7939, -47.8828),
    ("CHL", "Chile", "Santiago", -33.4489, -70.6693),
    ("COL", "Colombia", "Bogotá", 4.7110, -74.0721),
    ("CRI", "Costa Rica", "San José", 9.9281, -84.0907),
    ("CUB", "Cuba", "Havana", 23.1136, -82.3666),
    ("DOM", "Dominican Republic", "Santo Domingo", 18.4861, -69.9312),
    ("ECU", "Ecuador", "Quito", -0.1807, -78.4678),
    ("SLV", "El Salvador", "San Salvador", 13.6929, -89.2182),
    ("GTM", "Guatemala", "Guatemala City", 14.6349, -90.5069),
    ("HTI", "Haiti", "Port-au-Prince", 18.5944, -72.3074),
    ("HND", "Honduras", "Tegucigalpa", 14.0723, -87.1921),
    ("MEX", "Mexico", "Mexico City", 19.4326, -99.1332),
    ("NIC", "Nicaragua", "Managua", 12.1150, -86.2362),
    ("PAN", "Panama", "Panama City", 8.9824, -79.5199),
    ("PRY", "Paraguay", "Asunción", -25.2637, -57.5759),
    ("PER", "Peru", "Lima", -12.0464, -77.0428),
    ("URY", "Uruguay", "Montevideo", -34.9011, -56.1645),
    ("VEN", "Venezuela", "Caracas", 10.4806, -66.9036),
    ("JAM", "Jamaica", "Kingston", 17.9714, -76.7931),
    ("TTO", "Trinidad and Tobago", "Port of Spain", 10.6549, -61.5019),
]

COUNTRY_NAMES = {iso: name for iso, name, *_ in CAPITALS}

INDEPENDENCE_YEARS = {
    "ARG": 1816,
    "BOL": 1825,
    "BRA": 1822,
    "CHL": 1818,
    "COL": 1810,
    "CRI": 1821,
    "CUB": 1902,  # end of US occupation
    "DOM": 1844,  # from Haiti
    "ECU": 1822,
    "SLV": 1821,
    "GTM": 1821,
    "HTI": 1804,
    "HND": 1821,
    "MEX": 1821,
    "NIC": 1821,
    "PAN": 1903,  # from Colombia
    "PRY": 1811,
    "PER": 1821,
    "URY": 1825,
    "VEN": 1811,
    "JAM": 1962,
    "TTO": 1962,
}

# Correlates of War state codes
COW_TO_ISO3 = {
    160: "ARG",
    145: "BOL",
    140: "BRA",
    155: "CHL",
    100: "COL",
    94: "CRI",
    40: "CUB",
    42: "DOM",
    130: "ECU",
    92: "SLV",
    90: "GTM",
    41: "HTI",
    91: "HND",
    70: "MEX",
    93: "NIC",
    95: "PAN",
    150: "PRY",
    135: "PER",
    165: "URY",
    101: "VEN",
    51: "JAM",
    52: "TTO",
}

NMC_COMPONENTS = ["cinc", "milex", "milper", "irst", "pec", "tpop", "upop"]

WDI_INDICATORS = {
    "NY.GDP.PCAP.KD": "gdp_pc",  # constant 2015 USD
    "SP.POP.TOTL": "population",
    "AG.LND.TOTL.K2": "land_area",  # km²
}


def capital_distance_table(reference: Point = WASHINGTON_DC) -> pd.DataFrame:
    """Base table: capital coordinates and great-circle distance to the reference point."""
    coords = pd.DataFrame(
        [(iso, capital, lat, lon) for iso, _, capital, lat, lon in CAPITALS],
        columns=["country", "capital", "lat", "lon"],
    )
    table = add_distance(coords, reference)
    logger.info(f"Calculated distances for {len(table)} capitals")
    return table


def independence_table(reference_year: int = REFERENCE_YEAR) -> pd.DataFrame:
    """Independence year and years of independence as of reference_year."""
    df = pd.DataFrame(
        [(iso, INDEPENDENCE_YEARS[iso]) for iso in COUNTRY_NAMES],
        columns=["country", "independence_year"],
    )
    df["years_independent"] = reference_year - df["independence_year"]
    if (df["years_independent"] < 0).any():
        late = df.loc[df["years_independent"] < 0, "country"].tolist()
        raise ValueError(f"Reference year {reference_year} precedes independence of {late}")
    return df


def cinc_from_nmc(nmc: pd.DataFrame, start: int = NMC_YEARS[0], end: int = NMC_YEARS[1]) -> pd.DataFrame:
    """
    Average NMC components over [start, end] for the sample countries.

    Averaging over several years smooths out single-year reporting gaps.
    """
    require_columns(nmc, ["ccode", "year"] + NMC_COMPONENTS, "nmc")
    ccode = pd.to_numeric(nmc["ccode"], errors="coerce")
    year = pd.to_numeric(nmc["year"], errors="coerce")
    window = nmc.loc[ccode.isin(list(COW_TO_ISO3)) & year.between(start, end)].copy()
    window["ccode"] = pd.to_numeric(window["ccode"]).astype(int)

    cinc = window.groupby("ccode", sort=True)[NMC_COMPONENTS].mean().reset_index()
    cinc.insert(0, "country", cinc["ccode"].map(COW_TO_ISO3))
    cinc = cinc.drop(columns=["ccode"])
    logger.info(f"CINC {start}-{end}: {len(cinc)} countries")
    return cinc


def controls_from_wdi(wdi: pd.DataFrame, start: int = WDI_YEARS[0], end: int = WDI_YEARS[1]) -> pd.DataFrame:
    """
    Average World Bank indicators over [start, end] per country.

    Country-years missing GDP per capita or population are dropped before
    averaging. Land area is carried along when the extract has it.
    """
    require_columns(wdi, ["iso3c", "year", "NY.GDP.PCAP.KD", "SP.POP.TOTL"], "wdi")
    indicators = [c for c in WDI_INDICATORS if c in wdi.columns]

    year = pd.to_numeric(wdi["year"], errors="coerce")
    window = wdi.loc[
        year.between(start, end) & wdi["iso3c"].isin(list(COUNTRY_NAMES))
    ].dropna(subset=["NY.GDP.PCAP.KD", "SP.POP.TOTL"])

    controls = (
        window.groupby("iso3c", sort=True)[indicators]
        .mean()
        .rename(columns=WDI_INDICATORS)
        .reset_index()
        .rename(columns={"iso3c": "country"})
    )
    logger.info(f"WDI {start}-{end}: {len(controls)} countries")
    return controls


def build_raw_tables(
    paths: Paths,
    nmc_csv: Path | None = None,
    wdi_csv: Path | None = None,
    reference_year: int = REFERENCE_YEAR,
) -> dict[str, Path]:
    """
    Write the raw input tables to paths.data_dir.

    Distances and independence years are always written; CINC and controls
    only when the corresponding extract is supplied.
    """
    written = {
        BASE_SOURCE.name: write_table(capital_distance_table(), paths.raw(BASE_SOURCE)),
        INDEPENDENCE_SOURCE.name: write_table(
            independence_table(reference_year), paths.raw(INDEPENDENCE_SOURCE)
        ),
    }
    if nmc_csv is not None:
        nmc = load_table(Path(nmc_csv), "nmc")
        written[CINC_SOURCE.name] = write_table(cinc_from_nmc(nmc), paths.raw(CINC_SOURCE))
    if wdi_csv is not None:
        wdi = load_table(Path(wdi_csv), "wdi")
        written[CONTROLS_SOURCE.name] = write_table(
            controls_from_wdi(wdi), paths.raw(CONTROLS_SOURCE)
        )
    return written
