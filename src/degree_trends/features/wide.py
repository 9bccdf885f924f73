from __future__ import annotations

from typing import Literal

import pandas as pd

from degree_trends.errors import ConflictError, SchemaError
from degree_trends.io.schema import REQUIRED_COLUMNS, CanonicalColumns

KeyColumn = Literal["category", "period"]

_OTHER_AXIS: dict[str, str] = {
    CanonicalColumns.category: CanonicalColumns.period,
    CanonicalColumns.period: CanonicalColumns.category,
}


def _other_axis(key_column: str) -> str:
    try:
        return _OTHER_AXIS[key_column]
    except KeyError:
        raise ValueError(
            f"key_column must be 'category' or 'period', got {key_column!r}"
        ) from None


def to_wide(series: pd.DataFrame, key_column: KeyColumn = "category") -> pd.DataFrame:
    """Pivot a canonical series so ``key_column`` values become rows.

    Cells with no observation are NaN. A (period, category) pair occurring
    more than once raises ``ConflictError`` instead of being overwritten.
    """
    column_axis = _other_axis(key_column)
    missing = [column for column in REQUIRED_COLUMNS if column not in series.columns]
    if missing:
        raise SchemaError(f"missing required fields: {', '.join(missing)}", stage="pivot")

    duplicated = series.duplicated(
        subset=[CanonicalColumns.period, CanonicalColumns.category], keep=False
    )
    if duplicated.any():
        collisions = series.loc[duplicated, [key_column, column_axis]].itertuples(
            index=False, name=None
        )
        raise ConflictError(collisions)

    wide = series.pivot(index=key_column, columns=column_axis, values=CanonicalColumns.value)
    wide = wide.sort_index(axis=0).sort_index(axis=1)
    wide.columns.name = column_axis
    return wide


def from_wide(table: pd.DataFrame, key_column: KeyColumn = "category") -> pd.DataFrame:
    """Un-pivot a wide table back into the canonical long series."""
    column_axis = _other_axis(key_column)
    long = (
        table.rename_axis(index=key_column, columns=column_axis)
        .stack(future_stack=True)
        .dropna()
        .rename(CanonicalColumns.value)
        .reset_index()
    )
    long = long.sort_values([CanonicalColumns.period, CanonicalColumns.category], kind="mergesort")
    return long[REQUIRED_COLUMNS].reset_index(drop=True)
