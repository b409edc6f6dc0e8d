"""Configuration for data paths, constants and study specifications."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from roche_limit.regressions import ModelSpec
from roche_limit.transforms import Log, Power, Scale, TransformSpec

__all__ = [
    "Paths",
    "Source",
    "StudyConfig",
    "STUDIES",
    "WASHINGTON_DC",
    "EARTH_RADIUS_KM",
    "REFERENCE_YEAR",
    "LOG_CINC_OFFSET",
    "DISPLAY_NAMES",
    "get_study",
    "setup_logging",
]

# Reference point for distances: Washington DC (lat, lon)
WASHINGTON_DC: tuple[float, float] = (38.9072, -77.0369)

# Mean Earth radius used by the haversine formula
EARTH_RADIUS_KM = 6371.0

# Year against which years of independence are counted
REFERENCE_YEAR = 2025

# CINC shares are tiny for small states; shift before taking logs
LOG_CINC_OFFSET = 0.0001

# Period windows for averaging external extracts
NMC_YEARS = (2008, 2012)
WDI_YEARS = (2018, 2022)

FIGURE_DPI = 300


@dataclass(frozen=True)
class Source:
    """A raw per-country input table and the columns it must provide."""
    name: str
    filename: str
    columns: tuple[str, ...]


BASE_SOURCE = Source(
    "capital_distances", "capital_distances.csv",
    ("country", "capital", "lat", "lon", "distance_km"),
)
INDEPENDENCE_SOURCE = Source(
    "independence_years", "independence_years.csv",
    ("country", "independence_year", "years_independent"),
)
CINC_SOURCE = Source("cinc_data", "cinc_data.csv", ("country", "cinc"))
VDEM_SOURCE = Source("vdem_data", "vdem_data.csv", ("country", "state_capacity"))
WGI_SOURCE = Source("wgi_data", "wgi_data.csv", ("country", "gov_effectiveness"))
CONTROLS_SOURCE = Source("wdi_data", "wdi_data.csv", ("country", "gdp_pc", "population"))
CONTROLS_WITH_AREA_SOURCE = Source(
    "wdi_data", "wdi_data.csv", ("country", "gdp_pc", "population", "land_area")
)


@dataclass(frozen=True)
class Paths:
    """Input and output locations. Every stage receives these explicitly."""
    data_dir: Path = Path("data/raw")
    out_dir: Path = Path("output")

    def raw(self, source: Source) -> Path:
        return Path(self.data_dir) / source.filename

    def study_dir(self, study: "StudyConfig") -> Path:
        return Path(self.out_dir) / study.name

    def tables_dir(self, study: "StudyConfig") -> Path:
        return self.study_dir(study) / "tables"

    def figures_dir(self, study: "StudyConfig") -> Path:
        return self.study_dir(study) / "figures"

    def processed_dir(self, study: "StudyConfig") -> Path:
        return self.study_dir(study) / "processed"

    def validate(self, study: "StudyConfig") -> list[Path]:
        """Return the input files the study needs that do not exist."""
        return [self.raw(s) for s in study.sources() if not self.raw(s).exists()]


@dataclass(frozen=True)
class StudyConfig:
    """
    One variant of the distance analysis.

    The outcome tables, derived variables and the family of models are all
    data; every study runs through the same merge/transform/fit code.
    ``required`` lists only the fields every model of the study uses; each
    model drops its own incomplete rows when fitted.
    """
    name: str
    title: str
    outcome_sources: tuple[Source, ...]
    controls_source: Source
    transforms: tuple[TransformSpec, ...]
    required: tuple[str, ...]
    models: tuple[ModelSpec, ...]
    headline_model: str
    descriptive_vars: tuple[str, ...]
    correlation_vars: tuple[str, ...]
    distance_var: str = "distance_1000km"
    base_source: Source = field(default=BASE_SOURCE)
    independence_source: Source = field(default=INDEPENDENCE_SOURCE)

    def sources(self) -> list[Source]:
        return [
            self.base_source,
            self.independence_source,
            *self.outcome_sources,
            self.controls_source,
        ]

    @property
    def outcome(self) -> str:
        return self.model(self.headline_model).outcome

    def model(self, label: str) -> ModelSpec:
        for spec in self.models:
            if spec.label == label:
                return spec
        raise KeyError(f"{self.name}: no model labelled '{label}'")


# Human-readable labels for tables and figures
DISPLAY_NAMES = {
    "distance_km": "Distance (km)",
    "distance_1000km": "Distance (1,000 km)",
    "distance_1000km_sq": "Distance² (1,000 km)",
    "cinc": "CINC",
    "cinc_pct": "CINC (%)",
    "log_cinc": "CINC (Log)",
    "state_capacity": "State Capacity",
    "gov_effectiveness": "Government Effectiveness",
    "land_area": "Land Area (km²)",
    "log_land_area": "Land Area (Log)",
    "gdp_pc": "GDP per capita",
    "log_gdp_pc": "GDP per capita (Log)",
    "population": "Population",
    "log_population": "Population (Log)",
    "years_independent": "Years Independent",
}

_COMMON_TRANSFORMS: tuple[TransformSpec, ...] = (
    Log("gdp_pc", "log_gdp_pc"),
    Log("population", "log_population"),
    Scale("distance_km", 0.001, "distance_1000km"),
    Power("distance_1000km", 2, "distance_1000km_sq"),
)

_CONTROLS = ("log_gdp_pc", "log_population", "years_independent")


def _model_family(outcome: str) -> tuple[ModelSpec, ...]:
    """Bivariate, full and non-linear specifications for one outcome."""
    return (
        ModelSpec("Model 1: Bivariate", outcome, ("distance_1000km",)),
        ModelSpec("Model 2: Full Model", outcome, ("distance_1000km",) + _CONTROLS),
        ModelSpec(
            "Model 3: Non-linear",
            outcome,
            ("distance_1000km", "distance_1000km_sq") + _CONTROLS,
        ),
    )


CAPABILITY = StudyConfig(
    name="capability",
    title="Distance and National Capability (CINC)",
    outcome_sources=(CINC_SOURCE,),
    controls_source=CONTROLS_SOURCE,
    transforms=_COMMON_TRANSFORMS + (
        Log("cinc", "log_cinc", offset=LOG_CINC_OFFSET),
        Scale("cinc", 100, "cinc_pct"),
    ),
    required=("cinc", "gdp_pc", "population", "years_independent"),
    models=_model_family("log_cinc"),
    headline_model="Model 2: Full Model",
    descriptive_vars=("distance_km", "cinc_pct", "gdp_pc", "population", "years_independent"),
    correlation_vars=("distance_km", "log_cinc", "gdp_pc", "population", "years_independent"),
)

STATE_CAPACITY = StudyConfig(
    name="state_capacity",
    title="Distance and State Capacity (V-Dem)",
    outcome_sources=(VDEM_SOURCE, WGI_SOURCE),
    controls_source=CONTROLS_SOURCE,
    transforms=_COMMON_TRANSFORMS,
    required=("gdp_pc", "population", "years_independent"),
    models=_model_family("state_capacity") + (
        ModelSpec(
            "Model 4: WGI Government Effectiveness",
            "gov_effectiveness",
            ("distance_1000km",) + _CONTROLS,
        ),
    ),
    headline_model="Model 2: Full Model",
    descriptive_vars=("distance_km", "state_capacity", "gdp_pc", "population", "years_independent"),
    correlation_vars=("distance_km", "state_capacity", "gdp_pc", "population", "years_independent"),
)

TERRITORY = StudyConfig(
    name="territory",
    title="Distance and Territorial Size",
    outcome_sources=(),
    controls_source=CONTROLS_WITH_AREA_SOURCE,
    transforms=_COMMON_TRANSFORMS + (Log("land_area", "log_land_area"),),
    required=("land_area", "gdp_pc", "population", "years_independent"),
    models=_model_family("log_land_area")[:2],
    headline_model="Model 2: Full Model",
    descriptive_vars=("distance_km", "land_area", "gdp_pc", "population", "years_independent"),
    correlation_vars=("distance_km", "log_land_area", "gdp_pc", "population", "years_independent"),
)

STUDIES: dict[str, StudyConfig] = {
    s.name: s for s in (CAPABILITY, STATE_CAPACITY, TERRITORY)
}


def get_study(name: str) -> StudyConfig:
    try:
        return STUDIES[name]
    except KeyError:
        raise KeyError(f"Unknown study '{name}'. Choose from: {sorted(STUDIES)}") from None


def setup_logging(level: int = logging.INFO, stream=None) -> None:
    """Send package log messages, unadorned, to stream (stderr by default)."""
    logger = logging.getLogger("roche_limit")
    for h in list(logger.handlers):
        logger.removeHandler(h)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
