"""Reading and writing the flat per-country CSV tables."""
from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from roche_limit.config import Paths, Source
from roche_limit.utils import file_hash, require_columns

__all__ = ["load_table", "load_source", "write_table"]

logger = logging.getLogger("roche_limit")


def load_table(path: Path, name: str, required=()) -> pd.DataFrame:
    """
    Load a delimited table with a header row.

    The ``country`` column is always read as text so codes are never
    reinterpreted. Columns listed in ``required`` must be present.
    """
    logger.info(f"Loading {name} [{file_hash(path)}]")
    header = pd.read_csv(path, nrows=0).columns
    df = pd.read_csv(path, dtype={"country": str} if "country" in header else None)
    require_columns(df, required, name)
    return df


def load_source(paths: Paths, source: Source) -> pd.DataFrame:
    """Load one raw input table, keeping only the columns it contracts for."""
    df = load_table(paths.raw(source), source.name, source.columns)
    return df[list(source.columns)]


def write_table(df: pd.DataFrame, path: Path, index: bool = False, **kwargs) -> Path:
    """Write a table as CSV with stable line endings, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=index, lineterminator="\n", **kwargs)
    logger.info(f"Saved: {path}")
    return path
