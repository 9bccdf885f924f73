from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from degree_trends.config import ColumnsConfig
from degree_trends.errors import SchemaError


@dataclass(frozen=True)
class CanonicalColumns:
    period: str = "period"
    category: str = "category"
    value: str = "value"


REQUIRED_COLUMNS = [CanonicalColumns.period, CanonicalColumns.category, CanonicalColumns.value]


def normalize_columns(df: pd.DataFrame, columns: ColumnsConfig) -> pd.DataFrame:
    """Rename source columns to canonical names and drop everything else."""
    rename_map = {
        columns.period: CanonicalColumns.period,
        columns.category: CanonicalColumns.category,
        columns.value: CanonicalColumns.value,
    }
    missing = [source for source in rename_map if source not in df.columns]
    if missing:
        missing_str = ", ".join(missing)
        raise SchemaError(f"missing required columns in input: {missing_str}", stage="load")
    return df.rename(columns=rename_map)[REQUIRED_COLUMNS].copy()
