"""Descriptive statistics and correlation matrices for the analysis sample."""
from __future__ import annotations

import logging
from typing import Mapping, Sequence

import pandas as pd

from roche_limit.utils import numeric_column, require_columns

__all__ = ["summary_table", "correlation_matrix"]

logger = logging.getLogger("roche_limit")


def summary_table(df: pd.DataFrame, variables: Sequence[str]) -> pd.DataFrame:
    """Compute N, mean, SD, min, median and max for each variable (missing values skipped)."""
    require_columns(df, variables, "summary statistics")
    rows = []
    for var in variables:
        s = numeric_column(df, var, "summary statistics").dropna()
        rows.append(
            {
                "variable": var,
                "n": int(s.count()),
                "mean": s.mean(),
                "sd": s.std(ddof=1),
                "min": s.min(),
                "median": s.median(),
                "max": s.max(),
            }
        )
    stats_df = pd.DataFrame(rows, columns=["variable", "n", "mean", "sd", "min", "median", "max"])
    logger.info(f"\n{stats_df.to_string(index=False)}")
    return stats_df


def correlation_matrix(
    df: pd.DataFrame,
    variables: Sequence[str],
    labels: Mapping[str, str] | None = None,
) -> pd.DataFrame:
    """
    Pearson correlations over rows complete for every variable.

    Row and column labels are display names from ``labels`` where given.
    """
    require_columns(df, variables, "correlation matrix")
    numeric = pd.DataFrame({v: numeric_column(df, v, "correlation matrix") for v in variables})
    complete = numeric.dropna()
    corr = complete.corr(method="pearson")
    if labels:
        names = [labels.get(v, v) for v in variables]
        corr.index = names
        corr.columns = names
    logger.info(f"Correlations over {len(complete)} complete rows:\n{corr.round(3).to_string()}")
    return corr
