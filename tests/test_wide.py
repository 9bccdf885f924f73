from __future__ import annotations

import math

import pandas as pd
import pytest

from degree_trends.errors import ConflictError
from degree_trends.features.aggregate import aggregate
from degree_trends.features.wide import from_wide, to_wide


def _canonical_series() -> pd.DataFrame:
    records = pd.DataFrame(
        [
            (1970, "Business", 0.10),
            (1970, "Law", 0.02),
            (1970, "Health professions", 0.05),
            (1971, "Business", 0.12),
            (1971, "Law", 0.03),
            (1971, "Health professions", 0.06),
        ],
        columns=["period", "category", "value"],
    )
    return aggregate(records, {"Business", "Health professions"})


def test_to_wide_by_category_has_category_rows_and_period_columns() -> None:
    wide = to_wide(_canonical_series(), key_column="category")

    assert wide.index.tolist() == ["Business", "Health professions", "Other"]
    assert wide.columns.tolist() == [1970, 1971]
    assert wide.loc["Other", 1971] == pytest.approx(0.03)


def test_to_wide_by_period_transposes_orientation() -> None:
    wide = to_wide(_canonical_series(), key_column="period")

    assert wide.index.tolist() == [1970, 1971]
    assert wide.columns.tolist() == ["Business", "Health professions", "Other"]
    assert wide.loc[1970, "Health professions"] == pytest.approx(0.05)


def test_to_wide_marks_missing_cells_as_nan() -> None:
    series = pd.DataFrame(
        {
            "period": [1970, 1971, 1971],
            "category": ["Business", "Business", "Law"],
            "value": [0.1, 0.12, 0.03],
        }
    )

    wide = to_wide(series, key_column="category")

    assert math.isnan(wide.loc["Law", 1970])
    assert wide.loc["Law", 1971] == pytest.approx(0.03)


def test_to_wide_raises_conflict_error_for_duplicate_cells() -> None:
    series = _canonical_series()
    duplicated = pd.concat([series, series.iloc[[0]]], ignore_index=True)

    with pytest.raises(ConflictError, match="Business") as excinfo:
        to_wide(duplicated, key_column="category")

    assert excinfo.value.collisions == [("Business", 1970)]
    assert excinfo.value.stage == "pivot"


def test_to_wide_rejects_unknown_key_column() -> None:
    with pytest.raises(ValueError, match="key_column"):
        to_wide(_canonical_series(), key_column="value")  # type: ignore[arg-type]


@pytest.mark.parametrize("key_column", ["category", "period"])
def test_from_wide_reproduces_canonical_series(key_column: str) -> None:
    series = _canonical_series()

    round_trip = from_wide(to_wide(series, key_column=key_column), key_column=key_column)

    pd.testing.assert_frame_equal(round_trip, series, check_dtype=False)


def test_from_wide_drops_missing_cells() -> None:
    series = pd.DataFrame(
        {
            "period": [1970, 1971, 1971],
            "category": ["Business", "Business", "Law"],
            "value": [0.1, 0.12, 0.03],
        }
    )

    round_trip = from_wide(to_wide(series))

    pd.testing.assert_frame_equal(round_trip, series, check_dtype=False)
