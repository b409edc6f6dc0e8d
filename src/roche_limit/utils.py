"""
Utility functions for data validation and reproducibility.
"""
from __future__ import annotations

import hashlib
import logging
from pathlib import Path

import pandas as pd

from roche_limit.errors import DuplicateKeyError, NonNumericValueError, SchemaError

__all__ = [
    "file_hash",
    "require_columns",
    "assert_unique_key",
    "numeric_column",
    "merge_report",
    "coverage_report",
]

logger = logging.getLogger("roche_limit")


def file_hash(path: Path) -> str:
    """Compute SHA-256 hash of a file for reproducibility tracking."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()[:12]


def require_columns(df: pd.DataFrame, columns, name: str) -> None:
    """Raise SchemaError if any of the columns is absent from df."""
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise SchemaError(name, missing)


def assert_unique_key(df: pd.DataFrame, key: str, name: str) -> None:
    """Verify that a column is a unique key, raising on the first duplicate."""
    dups = df[key][df[key].duplicated()]
    if len(dups):
        raise DuplicateKeyError(name, str(dups.iloc[0]))
    logger.debug(f"[{name}] unique on {key}")


def numeric_column(df: pd.DataFrame, column: str, name: str) -> pd.Series:
    """Return a column as floats, raising NonNumericValueError on unparseable text."""
    values = pd.to_numeric(df[column], errors="coerce")
    bad = values.isna() & df[column].notna()
    if bad.any():
        rows = df.loc[bad, "country"] if "country" in df.columns else df.index[bad]
        raise NonNumericValueError(name, column, [str(r) for r in rows])
    return values.astype(float)


def merge_report(df: pd.DataFrame, indicator: str, label: str) -> None:
    """Log merge statistics."""
    counts = df[indicator].value_counts()
    both = counts.get("both", 0)
    left = counts.get("left_only", 0)
    right = counts.get("right_only", 0)
    logger.info(f"[{label}] both={both:,} | left_only={left:,} | right_only={right:,}")


def coverage_report(df: pd.DataFrame, columns, label: str) -> None:
    """Log non-missing counts for the given columns."""
    logger.info(f"[{label}] {len(df)} countries")
    for col in columns:
        non_missing = int(df[col].notna().sum())
        logger.info(f"  {col:>22}: {non_missing:>3} / {len(df)}")
