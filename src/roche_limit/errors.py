"""Exception types raised by the pipeline stages."""
from __future__ import annotations

from typing import Iterable

__all__ = [
    "PipelineError",
    "SchemaError",
    "NonNumericValueError",
    "MergeError",
    "DuplicateKeyError",
    "ColumnConflictError",
    "TransformError",
    "NonPositiveValueError",
    "DivisionByZeroError",
    "RegressionError",
    "MissingVariableError",
    "InsufficientObservationsError",
    "RankDeficientError",
    "InfiniteVIFError",
]


def _preview(countries: Iterable[str], limit: int = 5) -> str:
    items = list(countries)
    shown = ", ".join(items[:limit])
    if len(items) > limit:
        shown += f", ... (+{len(items) - limit} more)"
    return shown


class PipelineError(Exception):
    """Base class for every error raised by roche_limit."""


class SchemaError(PipelineError):
    """A table does not have the columns its contract requires."""

    def __init__(self, table: str, columns: Iterable[str]):
        self.table = table
        self.columns = list(columns)
        super().__init__(f"{table}: missing required columns {self.columns}")


class NonNumericValueError(PipelineError):
    """A column that must be numeric holds text that does not parse as a number."""

    def __init__(self, table: str, column: str, countries: Iterable[str]):
        self.table = table
        self.column = column
        self.countries = list(countries)
        super().__init__(
            f"{table}: column '{column}' is not numeric for {_preview(self.countries)}"
        )


# --- merge stage ---

class MergeError(PipelineError):
    """Data integrity problem found while joining source tables."""


class DuplicateKeyError(MergeError):
    def __init__(self, table: str, key: str):
        self.table = table
        self.key = key
        super().__init__(f"{table}: duplicate country key '{key}'")


class ColumnConflictError(MergeError):
    def __init__(self, table: str, column: str):
        self.table = table
        self.column = column
        super().__init__(f"{table}: column '{column}' already exists in the merged table")


# --- transform stage ---

class TransformError(PipelineError):
    """A derived variable is undefined for some rows."""


class NonPositiveValueError(TransformError):
    def __init__(self, column: str, countries: Iterable[str]):
        self.column = column
        self.countries = list(countries)
        super().__init__(
            f"log({column}): non-positive values for {_preview(self.countries)}"
        )


class DivisionByZeroError(TransformError):
    def __init__(self, column: str, countries: Iterable[str]):
        self.column = column
        self.countries = list(countries)
        super().__init__(
            f"ratio denominator '{column}' is zero for {_preview(self.countries)}"
        )


# --- regression stage ---

class RegressionError(PipelineError):
    """A single model could not be fitted. Other models are unaffected."""

    def __init__(self, model: str, message: str):
        self.model = model
        super().__init__(f"[{model}] {message}")


class MissingVariableError(RegressionError):
    def __init__(self, model: str, variable: str, reason: str = "not in table"):
        self.variable = variable
        super().__init__(model, f"variable '{variable}' {reason}")


class InsufficientObservationsError(RegressionError):
    def __init__(self, model: str, n_obs: int, n_params: int):
        self.n_obs = n_obs
        self.n_params = n_params
        super().__init__(
            model, f"{n_obs} complete observations for {n_params} parameters"
        )


class RankDeficientError(RegressionError):
    def __init__(self, model: str, rank: int, n_params: int):
        self.rank = rank
        self.n_params = n_params
        super().__init__(
            model, f"design matrix has rank {rank} < {n_params} (perfect collinearity)"
        )


class InfiniteVIFError(RegressionError):
    def __init__(self, model: str, variable: str):
        self.variable = variable
        super().__init__(
            model, f"VIF for '{variable}' is unbounded (auxiliary R² = 1)"
        )
