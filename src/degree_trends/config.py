from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_PALETTE = [
    "#0072B2",
    "#009E73",
    "#E69F00",
    "#CC79A7",
    "#56B4E9",
    "#D55E00",
    "#8B99A8",
    "#475569",
]


class ColumnsConfig(BaseModel):
    period: str = "year"
    category: str = "field"
    value: str = "share"


class InputConfig(BaseModel):
    value_scale: float = Field(default=1.0, gt=0.0)


class CategoriesConfig(BaseModel):
    keep: list[str] = Field(default_factory=list)
    other_label: str = "Other"
    aliases: dict[str, str] = Field(default_factory=dict)
    colors: dict[str, str] = Field(default_factory=dict)
    palette: list[str] = Field(default_factory=lambda: list(DEFAULT_PALETTE), min_length=1)
    other_color: str = "#8B99A8"

    def color_map(self, categories: list[str]) -> dict[str, str]:
        """Explicit colors first, then palette colors in category order."""
        mapping: dict[str, str] = {}
        palette_index = 0
        for category in categories:
            if category in self.colors:
                mapping[category] = self.colors[category]
            elif category == self.other_label:
                mapping[category] = self.other_color
            else:
                mapping[category] = self.palette[palette_index % len(self.palette)]
                palette_index += 1
        return mapping


class SparklinesConfig(BaseModel):
    kind: Literal["line", "column"] = "line"
    height_px: int = Field(default=30, ge=8, le=400)
    aspect: float = Field(default=4.0, gt=0.0, le=20.0)
    dpi: int = Field(default=96, ge=36, le=600)
    line_width: float = Field(default=1.4, gt=0.0)
    format: Literal["png", "svg"] = "png"
    workers: int = Field(default=1, ge=1, le=32)
    column_kind_table: bool = True


class ReportConfig(BaseModel):
    title: str = "Bachelor's degrees by field"
    subtitle: str = "Share of all bachelor's degrees conferred, by field of study"
    source_note: str | None = None
    orientation: Literal["category", "period"] = "category"
    display_periods: list[int] = Field(default_factory=list)
    percent_decimals: int = Field(default=1, ge=0, le=6)
    trend_label: str = "Trend"
    period_spanner: str = "Share of degrees"
    category_column_width: str = "220px"
    value_column_width: str = "70px"
    trend_column_width: str = "140px"
    value_align: Literal["left", "center", "right"] = "right"
    row_order: Literal["latest_value", "alphabetical"] = "latest_value"
    other_last: bool = True


class OutputsConfig(BaseModel):
    tables_format: Literal["parquet", "csv"] = "parquet"
    figures_format: str = "png"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    columns: ColumnsConfig = Field(default_factory=ColumnsConfig)
    input: InputConfig = Field(default_factory=InputConfig)
    categories: CategoriesConfig = Field(default_factory=CategoriesConfig)
    sparklines: SparklinesConfig = Field(default_factory=SparklinesConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)

    @model_validator(mode="after")
    def _other_label_not_kept(self) -> "AppConfig":
        if self.categories.other_label in self.categories.keep:
            raise ValueError(
                f"categories.keep must not contain the catch-all label "
                f"'{self.categories.other_label}'"
            )
        return self


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return AppConfig.model_validate(data)
