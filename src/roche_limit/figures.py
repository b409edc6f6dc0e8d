"""
Figures for the distance analysis.

- distance_scatter: outcome against distance with a linear fit, outliers labelled
- coefficient_plot: distance coefficient with 95% CI across model specifications
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Mapping, Sequence

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from roche_limit.config import DISPLAY_NAMES, FIGURE_DPI
from roche_limit.regressions import RegressionResult

__all__ = ["distance_scatter", "coefficient_plot"]

logger = logging.getLogger("roche_limit")


def _setup_style() -> None:
    """Configure matplotlib style for publication-quality figures."""
    plt.style.use("seaborn-v0_8-whitegrid")
    plt.rcParams.update(
        {
            "font.size": 11,
            "axes.labelsize": 12,
            "axes.titlesize": 13,
            "figure.titlesize": 14,
            "legend.fontsize": 10,
        }
    )


@contextmanager
def _save_figure(
    path: Path,
    figsize: tuple[float, float] = (10, 7),
    dpi: int = FIGURE_DPI,
) -> Generator[tuple[Figure, Axes], None, None]:
    """
    Context manager for figure creation and saving.

    Example:
        with _save_figure(out / "plot.png") as (fig, ax):
            ax.plot(x, y)
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig, ax = plt.subplots(figsize=figsize)
    try:
        yield fig, ax
    finally:
        plt.tight_layout()
        plt.savefig(path, dpi=dpi)
        plt.close(fig)
    logger.info(f"Saved: {path}")


def distance_scatter(
    df: pd.DataFrame,
    outcome: str,
    path: Path,
    labels: Mapping[str, str] = DISPLAY_NAMES,
) -> Path:
    """
    Scatter of outcome against distance (km), sized by population.

    Countries whose residual from the bivariate fit exceeds 1.5 SD are labelled.
    """
    _setup_style()
    valid = df.dropna(subset=["distance_km", outcome]).copy()
    z = np.polyfit(valid["distance_km"], valid[outcome], 1)
    resid = valid[outcome] - np.polyval(z, valid["distance_km"])
    valid["is_outlier"] = resid.abs() > 1.5 * resid.std()

    with _save_figure(path) as (fig, ax):
        sizes = (valid["population"] / 1e6) if "population" in valid else None
        sns.scatterplot(
            data=valid,
            x="distance_km",
            y=outcome,
            size=sizes,
            sizes=(30, 400),
            alpha=0.6,
            color="#2E86AB",
            legend=False,
            ax=ax,
        )
        sns.regplot(
            data=valid,
            x="distance_km",
            y=outcome,
            scatter=False,
            color="#A23B72",
            ax=ax,
        )
        name_col = "country_name" if "country_name" in valid else "country"
        for _, row in valid[valid["is_outlier"]].iterrows():
            ax.annotate(
                row[name_col],
                (row["distance_km"], row[outcome]),
                xytext=(5, 5),
                textcoords="offset points",
                fontsize=9,
            )
        ax.set_xlabel("Distance from Washington DC (km)")
        ax.set_ylabel(labels.get(outcome, outcome))
        ax.set_title(f"Distance and {labels.get(outcome, outcome)} in Latin America")

    return Path(path)


def coefficient_plot(
    results: Sequence[RegressionResult],
    variable: str,
    path: Path,
    labels: Mapping[str, str] = DISPLAY_NAMES,
) -> Path:
    """Dot-whisker plot of one coefficient (±1.96 SE) across the fitted models."""
    _setup_style()
    rows = []
    for r in results:
        try:
            c = r.coefficient(variable)
        except KeyError:
            continue
        rows.append({"model": r.label, "estimate": c.estimate, "se": c.std_error})
    out = pd.DataFrame(rows, columns=["model", "estimate", "se"])

    with _save_figure(path, figsize=(8, 0.8 * max(len(out), 1) + 2)) as (fig, ax):
        y = np.arange(len(out))
        ax.errorbar(out["estimate"], y, xerr=1.96 * out["se"], fmt="o", capsize=5, color="steelblue")
        ax.axvline(0, linestyle=":", linewidth=1, color="gray")
        ax.set_yticks(y)
        ax.set_yticklabels(out["model"])
        ax.invert_yaxis()
        ax.set_xlabel(f"Coefficient on {labels.get(variable, variable)} (95% CI)")
        ax.set_title("Distance effect across specifications")

    return Path(path)
