"""
Derived variables and complete-case selection.

Transforms always write to a new column; source columns are never changed.
Missing inputs produce missing outputs and are dealt with only by
``select_complete``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np
import pandas as pd

from roche_limit.errors import (
    ColumnConflictError,
    DivisionByZeroError,
    NonPositiveValueError,
    SchemaError,
)
from roche_limit.utils import numeric_column

__all__ = [
    "Log",
    "Ratio",
    "Scale",
    "Power",
    "TransformSpec",
    "CompleteCases",
    "transform",
    "select_complete",
    "missing_summary",
]

logger = logging.getLogger("roche_limit")


@dataclass(frozen=True)
class Log:
    """Natural log of ``field + offset``. The offset must be stated explicitly."""
    field: str
    target: str
    offset: float = 0.0


@dataclass(frozen=True)
class Ratio:
    numerator: str
    denominator: str
    target: str


@dataclass(frozen=True)
class Scale:
    field: str
    factor: float
    target: str


@dataclass(frozen=True)
class Power:
    field: str
    exponent: float
    target: str


TransformSpec = Union[Log, Ratio, Scale, Power]


@dataclass(frozen=True)
class CompleteCases:
    """Rows kept by select_complete, with a record of what was dropped."""
    table: pd.DataFrame
    dropped: int
    dropped_countries: tuple[str, ...]


def _column(df: pd.DataFrame, name: str) -> pd.Series:
    if name not in df.columns:
        raise SchemaError("prepared table", [name])
    return numeric_column(df, name, "prepared table")


def _offending(df: pd.DataFrame, mask: pd.Series) -> list[str]:
    if "country" in df.columns:
        return [str(c) for c in df.loc[mask, "country"]]
    return [str(i) for i in df.index[mask]]


def _apply(df: pd.DataFrame, spec: TransformSpec) -> pd.Series:
    if isinstance(spec, Log):
        shifted = _column(df, spec.field) + spec.offset
        bad = shifted.notna() & (shifted <= 0)
        if bad.any():
            raise NonPositiveValueError(spec.field, _offending(df, bad))
        return np.log(shifted)

    if isinstance(spec, Ratio):
        num = _column(df, spec.numerator)
        den = _column(df, spec.denominator)
        bad = den == 0
        if bad.any():
            raise DivisionByZeroError(spec.denominator, _offending(df, bad))
        return num / den

    if isinstance(spec, Scale):
        return _column(df, spec.field) * spec.factor

    if isinstance(spec, Power):
        return _column(df, spec.field) ** spec.exponent

    raise TypeError(f"Unknown transform: {spec!r}")


def transform(table: pd.DataFrame, specs: Sequence[TransformSpec]) -> pd.DataFrame:
    """
    Apply transform specs in order and return a new table.

    Later specs may use targets created by earlier ones.

    Raises:
        NonPositiveValueError: log of a value that is <= 0 after the offset
        DivisionByZeroError: ratio with a zero denominator
        ColumnConflictError: a target column already exists
        SchemaError: a source column is absent
    """
    out = table.copy()
    for spec in specs:
        if spec.target in out.columns:
            raise ColumnConflictError("prepared table", spec.target)
        out[spec.target] = _apply(out, spec)
    return out


def select_complete(table: pd.DataFrame, required: Sequence[str]) -> CompleteCases:
    """Drop rows with a missing value in any required field."""
    missing = [c for c in required if c not in table.columns]
    if missing:
        raise SchemaError("prepared table", missing)

    keep = table[list(required)].notna().all(axis=1)
    dropped = table.loc[~keep]
    countries = tuple(_offending(table, ~keep))
    if len(dropped):
        logger.info(f"Dropped {len(dropped)} incomplete rows: {', '.join(countries)}")
    return CompleteCases(
        table=table.loc[keep].reset_index(drop=True),
        dropped=len(dropped),
        dropped_countries=countries,
    )


def missing_summary(table: pd.DataFrame) -> pd.DataFrame:
    """Count missing values per column, listing only columns with gaps."""
    counts = table.isna().sum()
    counts = counts[counts > 0]
    return pd.DataFrame({"variable": counts.index, "missing_count": counts.to_numpy()})
