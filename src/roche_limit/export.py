"""
Serialising computed results into flat CSV tables.

Nothing here recomputes a statistic: every number comes from a
RegressionResult or a table produced by the descriptives module.
"""
from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Sequence

import pandas as pd

from roche_limit.regressions import ModelFailure, RegressionResult
from roche_limit.tables import write_table

__all__ = [
    "significance",
    "coefficient_table",
    "fit_table",
    "vif_table",
    "failure_table",
    "export_results",
]

logger = logging.getLogger("roche_limit")

# (upper bound, marker), checked in order
SIGNIFICANCE_LEVELS = ((0.001, "***"), (0.01, "**"), (0.05, "*"), (0.10, "."))


def significance(p_value: float | None) -> str:
    """Significance marker: *** p<0.001, ** p<0.01, * p<0.05, . p<0.10."""
    if p_value is None or math.isnan(p_value):
        return ""
    for bound, marker in SIGNIFICANCE_LEVELS:
        if p_value < bound:
            return marker
    return ""


def coefficient_table(results: Sequence[RegressionResult]) -> pd.DataFrame:
    """One row per model × variable, intercept first within each model."""
    rows = [
        {
            "model": r.label,
            "variable": c.variable,
            "estimate": c.estimate,
            "std_error": c.std_error,
            "t_value": c.t_value,
            "p_value": c.p_value,
            "significance": significance(c.p_value),
        }
        for r in results
        for c in r.coefficients
    ]
    return pd.DataFrame(
        rows,
        columns=["model", "variable", "estimate", "std_error", "t_value", "p_value", "significance"],
    )


def fit_table(results: Sequence[RegressionResult]) -> pd.DataFrame:
    rows = [
        {
            "model": r.label,
            "r_squared": r.r_squared,
            "adj_r_squared": r.adj_r_squared,
            "n_obs": r.n_obs,
        }
        for r in results
    ]
    return pd.DataFrame(rows, columns=["model", "r_squared", "adj_r_squared", "n_obs"])


def vif_table(result: RegressionResult) -> pd.DataFrame:
    return pd.DataFrame(list(result.vif), columns=["variable", "VIF"])


def failure_table(failures: Sequence[ModelFailure]) -> pd.DataFrame:
    rows = [{"model": f.label, "error": str(f.error)} for f in failures]
    return pd.DataFrame(rows, columns=["model", "error"])


def export_results(
    out_dir: Path,
    descriptives: pd.DataFrame,
    correlations: pd.DataFrame,
    results: Sequence[RegressionResult],
    failures: Sequence[ModelFailure] = (),
    vif_model: str | None = None,
) -> dict[str, Path]:
    """
    Write all result tables into out_dir.

    Args:
        out_dir: Destination directory (created if needed)
        descriptives: Output of descriptives.summary_table
        correlations: Output of descriptives.correlation_matrix
        results: Fitted models, in reporting order
        failures: Models that could not be fitted
        vif_model: Label of the model whose VIFs are reported; defaults to
            the model with the most predictors

    Returns:
        Mapping of artifact name to written path
    """
    out_dir = Path(out_dir)
    written = {
        "descriptive_statistics": write_table(
            descriptives, out_dir / "descriptive_statistics.csv"
        ),
        "correlation_matrix": write_table(
            correlations, out_dir / "correlation_matrix.csv", index=True, index_label=""
        ),
        "regression_results": write_table(
            coefficient_table(results), out_dir / "regression_results.csv"
        ),
        "model_fit_statistics": write_table(
            fit_table(results), out_dir / "model_fit_statistics.csv"
        ),
    }

    vif_result = _pick_vif_model(results, vif_model)
    if vif_result is not None:
        written["vif_diagnostics"] = write_table(
            vif_table(vif_result), out_dir / "vif_diagnostics.csv"
        )

    failures_path = out_dir / "model_failures.csv"
    if failures:
        written["model_failures"] = write_table(failure_table(failures), failures_path)
    elif failures_path.exists():
        failures_path.unlink()

    return written


def _pick_vif_model(
    results: Sequence[RegressionResult], label: str | None
) -> RegressionResult | None:
    if label is not None:
        for r in results:
            if r.label == label:
                return r
        logger.warning(f"VIF model '{label}' was not fitted; no VIF table written")
        return None
    if not results:
        return None
    return max(results, key=lambda r: len(r.spec.predictors))
