from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from degree_trends.config import AppConfig
from degree_trends.io.schema import CanonicalColumns, normalize_columns

LOGGER = logging.getLogger(__name__)


def load_records(csv_path: Path, config: AppConfig) -> pd.DataFrame:
    """Load long-format records from CSV and return canonical columns."""
    # utf-8-sig strips BOM-prefixed headers commonly found in exported CSV files.
    df = pd.read_csv(csv_path, encoding="utf-8-sig")
    normalized = normalize_columns(df=df, columns=config.columns)
    scale = float(config.input.value_scale)
    if scale != 1.0:
        numeric = pd.to_numeric(normalized[CanonicalColumns.value], errors="coerce")
        # Unparseable cells stay as-is so aggregation can report them by key.
        normalized[CanonicalColumns.value] = (numeric * scale).where(
            numeric.notna(), normalized[CanonicalColumns.value]
        )
    LOGGER.info("Loaded %d records from %s", len(normalized), csv_path)
    return normalized


def load_table(path: Path) -> pd.DataFrame:
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    if path.suffix == ".csv":
        return pd.read_csv(path)
    raise ValueError(f"Unsupported table file type: {path.suffix}")
