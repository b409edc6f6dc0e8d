"""OLS models relating distance from Washington to national outcomes."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.stats.outliers_influence import variance_inflation_factor

from roche_limit.errors import (
    InfiniteVIFError,
    InsufficientObservationsError,
    MissingVariableError,
    RankDeficientError,
    RegressionError,
)

__all__ = [
    "INTERCEPT",
    "ModelSpec",
    "Coefficient",
    "RegressionResult",
    "ModelFailure",
    "fit",
    "fit_models",
    "variance_inflation",
]

logger = logging.getLogger("roche_limit")

INTERCEPT = "(Intercept)"


@dataclass(frozen=True)
class ModelSpec:
    """Outcome, ordered predictors and a label identifying the model."""
    label: str
    outcome: str
    predictors: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "predictors", tuple(self.predictors))
        if not self.predictors:
            raise ValueError(f"{self.label}: at least one predictor is required")
        if len(set(self.variables)) != len(self.variables):
            raise ValueError(f"{self.label}: outcome and predictors must be distinct")

    @property
    def variables(self) -> tuple[str, ...]:
        return (self.outcome,) + self.predictors

    @property
    def formula(self) -> str:
        return f"{self.outcome} ~ " + " + ".join(self.predictors)


@dataclass(frozen=True)
class Coefficient:
    variable: str
    estimate: float
    std_error: float
    t_value: float
    p_value: float


@dataclass(frozen=True)
class RegressionResult:
    """Estimates and diagnostics for one fitted ModelSpec."""
    spec: ModelSpec
    coefficients: tuple[Coefficient, ...]
    r_squared: float
    adj_r_squared: float
    n_obs: int
    vif: tuple[tuple[str, float], ...]
    countries: tuple[str, ...] = ()

    @property
    def label(self) -> str:
        return self.spec.label

    def coefficient(self, variable: str) -> Coefficient:
        for coef in self.coefficients:
            if coef.variable == variable:
                return coef
        raise KeyError(f"{self.label}: no coefficient for '{variable}'")


@dataclass(frozen=True)
class ModelFailure:
    """A model that could not be fitted, with the reason."""
    label: str
    error: RegressionError


def _design(table: pd.DataFrame, spec: ModelSpec) -> tuple[pd.Series, pd.DataFrame, pd.DataFrame]:
    """Complete-case outcome vector and design matrix (intercept first)."""
    for var in spec.variables:
        if var not in table.columns:
            raise MissingVariableError(spec.label, var)
        if not pd.api.types.is_numeric_dtype(table[var]):
            raise MissingVariableError(spec.label, var, "is not numeric")

    data = table.dropna(subset=list(spec.variables))
    y = data[spec.outcome].astype(float)
    X = data[list(spec.predictors)].astype(float)
    X.insert(0, INTERCEPT, 1.0)
    return y, X, data


def variance_inflation(X: pd.DataFrame, variable: str, model: str) -> float:
    """
    VIF of one predictor from the auxiliary regression on all other columns.

    X must include the intercept column.

    Raises:
        InfiniteVIFError: the auxiliary R² is exactly 1
    """
    if X.shape[1] == 2:
        return 1.0
    with np.errstate(divide="ignore"):
        vif = variance_inflation_factor(X.to_numpy(), X.columns.get_loc(variable))
    if not np.isfinite(vif):
        raise InfiniteVIFError(model, variable)
    return float(vif)


def fit(table: pd.DataFrame, spec: ModelSpec) -> RegressionResult:
    """
    Fit one OLS model on the rows complete for its variables.

    Standard errors are classical (homoskedastic); p-values are two-sided
    from Student-t with n - k degrees of freedom.

    Raises:
        MissingVariableError: a variable is absent or not numeric
        InsufficientObservationsError: n <= k
        RankDeficientError: design matrix is not of full column rank
    """
    y, X, data = _design(table, spec)
    n, k = X.shape

    if n <= k:
        raise InsufficientObservationsError(spec.label, n, k)

    rank = int(np.linalg.matrix_rank(X.to_numpy()))
    if rank < k:
        raise RankDeficientError(spec.label, rank, k)

    res = sm.OLS(y, X).fit()

    coefficients = tuple(
        Coefficient(
            variable=name,
            estimate=float(res.params[name]),
            std_error=float(res.bse[name]),
            t_value=float(res.tvalues[name]),
            p_value=float(res.pvalues[name]),
        )
        for name in X.columns
    )

    vif = []
    for var in spec.predictors:
        try:
            vif.append((var, variance_inflation(X, var, spec.label)))
        except InfiniteVIFError as e:
            logger.warning(str(e))
            vif.append((var, math.inf))

    countries = tuple(str(c) for c in data["country"]) if "country" in data.columns else ()

    return RegressionResult(
        spec=spec,
        coefficients=coefficients,
        r_squared=float(res.rsquared),
        adj_r_squared=float(res.rsquared_adj),
        n_obs=int(res.nobs),
        vif=tuple(vif),
        countries=countries,
    )


def fit_models(
    table: pd.DataFrame, specs: Sequence[ModelSpec]
) -> tuple[list[RegressionResult], list[ModelFailure]]:
    """
    Fit each spec independently.

    A RegressionError in one model is recorded as a ModelFailure and the
    remaining models are still fitted.
    """
    results: list[RegressionResult] = []
    failures: list[ModelFailure] = []

    for spec in specs:
        try:
            result = fit(table, spec)
        except RegressionError as e:
            logger.warning(f"FAILED {e}")
            failures.append(ModelFailure(spec.label, e))
            continue

        results.append(result)
        logger.info(f"\n=== {spec.label} ===")
        logger.info(f"{spec.formula}")
        logger.info(f"N={result.n_obs} | R²={result.r_squared:.3f} | adj. R²={result.adj_r_squared:.3f}")
        for c in result.coefficients:
            logger.info(
                f"  {c.variable:>20}: {c.estimate:>10.4f} (SE={c.std_error:.4f}, p={c.p_value:.4f})"
            )

    return results, failures
