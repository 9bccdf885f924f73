from __future__ import annotations

import logging
from typing import Iterable

import pandas as pd

from degree_trends.errors import SchemaError
from degree_trends.io.schema import REQUIRED_COLUMNS, CanonicalColumns

LOGGER = logging.getLogger(__name__)

OTHER_LABEL = "Other"
_MAX_REPORTED_KEYS = 5


def _describe_rows(frame: pd.DataFrame) -> str:
    keys = [
        f"({row.period!r}, {row.category!r})"
        for row in frame.head(_MAX_REPORTED_KEYS).itertuples(index=False)
    ]
    if len(frame) > _MAX_REPORTED_KEYS:
        keys.append(f"... {len(frame) - _MAX_REPORTED_KEYS} more")
    return ", ".join(keys)


def validate_records(records: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of the canonical columns with period and value coerced to numbers."""
    missing = [column for column in REQUIRED_COLUMNS if column not in records.columns]
    if missing:
        raise SchemaError(f"missing required fields: {', '.join(missing)}", stage="aggregate")

    working = records[REQUIRED_COLUMNS].copy()

    blank_category = working[CanonicalColumns.category].isna()
    if blank_category.any():
        raise SchemaError(
            f"missing category for {int(blank_category.sum())} record(s): "
            f"{_describe_rows(working[blank_category])}",
            stage="aggregate",
        )
    working[CanonicalColumns.category] = working[CanonicalColumns.category].astype(str)

    period = pd.to_numeric(working[CanonicalColumns.period], errors="coerce")
    bad_period = period.isna()
    if bad_period.any():
        raise SchemaError(
            f"missing or non-numeric period: {_describe_rows(working[bad_period])}",
            stage="aggregate",
        )
    if (period == period.round()).all():
        period = period.astype("int64")
    working[CanonicalColumns.period] = period

    value = pd.to_numeric(working[CanonicalColumns.value], errors="coerce")
    bad_value = value.isna()
    if bad_value.any():
        raise SchemaError(
            f"missing or non-numeric value: {_describe_rows(working[bad_value])}",
            stage="aggregate",
            key=CanonicalColumns.value,
        )
    out_of_range = (value < 0.0) | (value > 1.0)
    if out_of_range.any():
        raise SchemaError(
            f"value outside [0, 1]: {_describe_rows(working[out_of_range])}",
            stage="aggregate",
            key=CanonicalColumns.value,
        )
    working[CanonicalColumns.value] = value.astype(float)
    return working


def aggregate(
    records: pd.DataFrame,
    keep_categories: Iterable[str],
    *,
    other_label: str = OTHER_LABEL,
) -> pd.DataFrame:
    """Collapse categories outside ``keep_categories`` into ``other_label``.

    Returns the canonical long series: one row per (period, category) with
    values summed, sorted by period then category. Kept categories absent from
    the input stay absent, and no (period, category) pair is zero-filled.
    """
    working = validate_records(records)
    keep = set(keep_categories)

    is_kept = working[CanonicalColumns.category].isin(keep)
    working[CanonicalColumns.category] = working[CanonicalColumns.category].where(
        is_kept, other_label
    )
    LOGGER.debug(
        "Collapsed %d of %d records into '%s'",
        int((~is_kept).sum()),
        len(working),
        other_label,
    )

    series = (
        working.groupby(
            [CanonicalColumns.period, CanonicalColumns.category],
            sort=True,
            as_index=False,
        )[CanonicalColumns.value]
        .sum()
        .reset_index(drop=True)
    )
    return series[REQUIRED_COLUMNS]


def period_totals(series: pd.DataFrame) -> pd.Series:
    return series.groupby(CanonicalColumns.period, sort=True)[CanonicalColumns.value].sum()


def conservation_delta(records: pd.DataFrame, series: pd.DataFrame) -> float:
    """Largest absolute per-period difference between input and aggregated totals."""
    before = period_totals(validate_records(records))
    after = period_totals(series).reindex(before.index, fill_value=0.0)
    if before.empty:
        return 0.0
    return float((before - after).abs().max())
