"""
Study runner: raw tables -> merge -> transform -> models -> result tables.

Merge and transform errors abort the run, since every model depends on the
same prepared table. Model errors are isolated per specification.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from roche_limit.config import DISPLAY_NAMES, Paths, StudyConfig
from roche_limit.descriptives import correlation_matrix, summary_table
from roche_limit.export import export_results
from roche_limit.merge import merge
from roche_limit.regressions import ModelFailure, RegressionResult, fit_models
from roche_limit.sources import COUNTRY_NAMES
from roche_limit.tables import load_source, write_table
from roche_limit.transforms import missing_summary, select_complete, transform
from roche_limit.utils import coverage_report

__all__ = ["PreparedData", "StudyReport", "prepare_dataset", "run_study"]

logger = logging.getLogger("roche_limit")


@dataclass(frozen=True)
class PreparedData:
    merged: pd.DataFrame
    analysis: pd.DataFrame
    dropped: int
    dropped_countries: tuple[str, ...]


@dataclass(frozen=True)
class StudyReport:
    study: str
    data: PreparedData
    results: tuple[RegressionResult, ...]
    failures: tuple[ModelFailure, ...]
    outputs: dict[str, Path]


def prepare_dataset(paths: Paths, study: StudyConfig) -> PreparedData:
    """
    Load, merge and transform the raw tables for a study.

    Writes merged_data_all.csv (every base country) and analysis_data.csv
    (complete cases on the study's required fields) to the processed dir.
    """
    logger.info(f"[{study.name}] Preparing dataset...")

    base = load_source(paths, study.base_source)
    secondaries = [
        (source.name, load_source(paths, source))
        for source in [study.independence_source, *study.outcome_sources, study.controls_source]
    ]
    merged = merge((study.base_source.name, base), secondaries)

    merged = transform(merged, study.transforms)
    merged["country_name"] = merged["country"].map(COUNTRY_NAMES).fillna(merged["country"])

    gaps = missing_summary(merged)
    if len(gaps):
        logger.info(f"Missing data:\n{gaps.to_string(index=False)}")
    else:
        logger.info("No missing data detected")

    complete = select_complete(merged, study.required)
    coverage_report(complete.table, study.required, f"{study.name} complete cases")

    out = paths.processed_dir(study)
    write_table(merged, out / "merged_data_all.csv")
    write_table(complete.table, out / "analysis_data.csv")

    return PreparedData(
        merged=merged,
        analysis=complete.table,
        dropped=complete.dropped,
        dropped_countries=complete.dropped_countries,
    )


def _report_headline(study: StudyConfig, results: list[RegressionResult]) -> None:
    """Log the distance coefficient of the study's main model."""
    main = next((r for r in results if r.label == study.headline_model), None)
    if main is None:
        logger.warning(f"[{study.name}] headline model '{study.headline_model}' was not fitted")
        return
    c = main.coefficient(study.distance_var)
    logger.info(f"\n=== KEY FINDINGS: {study.title} ===")
    logger.info(f"Distance coefficient: {c.estimate:.4f} (p={c.p_value:.3g})")
    logger.info(f"R-squared: {main.r_squared:.3f}")
    if c.estimate > 0 and c.p_value < 0.05:
        logger.info("Distance has a significant POSITIVE association with the outcome.")
    elif c.estimate > 0:
        logger.info("Distance has a positive but not significant association with the outcome.")
    else:
        logger.info("Distance has a negative or null association with the outcome.")


def run_study(paths: Paths, study: StudyConfig, figures: bool = False) -> StudyReport:
    """
    Run the full pipeline for one study and write its result tables.

    Returns:
        StudyReport with the prepared data, fitted models, failed models and
        the paths of every artifact written
    """
    data = prepare_dataset(paths, study)
    df = data.analysis

    descriptives = summary_table(df, study.descriptive_vars)
    correlations = correlation_matrix(df, study.correlation_vars, DISPLAY_NAMES)

    results, failures = fit_models(df, study.models)
    for f in failures:
        logger.warning(f"[{study.name}] model failed: {f.label}")

    outputs = export_results(
        paths.tables_dir(study),
        descriptives,
        correlations,
        results,
        failures,
        vif_model=study.headline_model,
    )

    if figures:
        from roche_limit.figures import coefficient_plot, distance_scatter

        fig_dir = paths.figures_dir(study)
        outputs["distance_scatter"] = distance_scatter(
            df, study.outcome, fig_dir / f"distance_{study.outcome}.png"
        )
        if results:
            outputs["coefficient_plot"] = coefficient_plot(
                results, study.distance_var, fig_dir / "distance_coefficients.png"
            )

    _report_headline(study, results)

    return StudyReport(
        study=study.name,
        data=data,
        results=tuple(results),
        failures=tuple(failures),
        outputs=outputs,
    )
