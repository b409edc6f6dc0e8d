"""
Joining the per-country source tables into one wide table.

The base (distance) table is authoritative for the row set: every secondary
table is left-joined onto it in turn, so unmatched secondary keys never add
rows and countries missing from a secondary table get missing values.
"""
from __future__ import annotations

import logging
from typing import Sequence

import pandas as pd

from roche_limit.errors import ColumnConflictError
from roche_limit.utils import assert_unique_key, merge_report, require_columns

__all__ = ["KEY", "merge"]

logger = logging.getLogger("roche_limit")

KEY = "country"

NamedTable = tuple[str, pd.DataFrame]


def merge(base: NamedTable, secondaries: Sequence[NamedTable]) -> pd.DataFrame:
    """
    Left-join secondary tables onto the base table by country, in order.

    Args:
        base: (name, table) defining the output rows
        secondaries: ordered (name, table) pairs joined onto the base

    Returns:
        New DataFrame with one row per base row, in base order

    Raises:
        SchemaError: a table lacks the country column
        DuplicateKeyError: a table repeats a country code
        ColumnConflictError: a non-key column appears in two tables
    """
    base_name, base_df = base
    require_columns(base_df, [KEY], base_name)
    assert_unique_key(base_df, KEY, base_name)

    merged = base_df.reset_index(drop=True).copy()
    n_base = len(merged)

    for name, df in secondaries:
        require_columns(df, [KEY], name)
        assert_unique_key(df, KEY, name)
        for col in df.columns:
            if col != KEY and col in merged.columns:
                raise ColumnConflictError(name, col)

        merged = merged.merge(
            df, on=KEY, how="left", validate="one_to_one", indicator="_m", sort=False
        )
        merge_report(_with_unmatched(merged, df), "_m", f"{base_name} + {name}")
        merged = merged.drop(columns=["_m"])

    logger.info(f"Merged {len(secondaries) + 1} tables: {n_base} countries, {merged.shape[1]} columns")
    return merged


def _with_unmatched(merged: pd.DataFrame, right: pd.DataFrame) -> pd.DataFrame:
    """Add right_only indicator rows for keys the left join discarded."""
    orphans = right.loc[~right[KEY].isin(merged[KEY]), [KEY]].assign(_m="right_only")
    return pd.concat([merged[[KEY, "_m"]], orphans], ignore_index=True)
