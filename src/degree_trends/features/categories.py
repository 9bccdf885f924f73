from __future__ import annotations

import re
from typing import Mapping

import pandas as pd

from degree_trends.io.schema import CanonicalColumns

WHITESPACE_RE = re.compile(r"\s+")


def normalize_label(value: object) -> object:
    """Collapse internal whitespace and strip a label; non-strings pass through."""
    if not isinstance(value, str):
        return value
    return WHITESPACE_RE.sub(" ", value).strip()


def normalize_label_keys(mapping: Mapping[str, str]) -> dict[str, str]:
    return {str(normalize_label(key)): value for key, value in mapping.items()}


def normalize_category_labels(
    records: pd.DataFrame,
    aliases: Mapping[str, str] | None = None,
) -> pd.DataFrame:
    """Unify near-duplicate category labels before the keep-list is applied.

    Whitespace is collapsed first, then exact alias matches are replaced by
    their canonical label. Alias keys are cleaned the same way so config
    entries do not need to reproduce stray spacing from the source file.
    """
    if CanonicalColumns.category not in records.columns:
        return records
    working = records.copy()
    cleaned = working[CanonicalColumns.category].map(normalize_label)
    if aliases:
        alias_map = {
            normalize_label(source): normalize_label(target) for source, target in aliases.items()
        }
        cleaned = cleaned.map(lambda label: alias_map.get(label, label))
    working[CanonicalColumns.category] = cleaned
    return working
