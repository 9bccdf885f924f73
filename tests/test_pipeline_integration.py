from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from degree_trends.config import AppConfig
from degree_trends.errors import SchemaError
from degree_trends.pipeline.run_all import build_aggregation, build_trend_tables, run_all


def _write_sample_csv(path: Path) -> Path:
    rows = ["year,field,share"]
    shares = {
        "Business": [0.14, 0.20, 0.22, 0.19],
        "Health professions": [0.03, 0.06, 0.07, 0.12],
        "Law": [0.01, 0.01, 0.02, 0.01],
        "Psychology": [0.04, 0.05, 0.06, 0.06],
        "Education": [0.21, 0.11, 0.08, 0.05],
    }
    for index, year in enumerate([1970, 1980, 1990, 2010]):
        for field, values in shares.items():
            rows.append(f"{year},{field},{values[index]}")
    path.write_text("\n".join(rows) + "\n", encoding="utf-8")
    return path


def _config(**overrides: object) -> AppConfig:
    base = {
        "categories": {
            "keep": ["Business", "Health professions", "Education"],
            "colors": {"Business": "#0072B2", "Education": "#E69F00"},
        },
        "sparklines": {"height_px": 20, "aspect": 4},
        "outputs": {"tables_format": "csv"},
    }
    base.update(overrides)
    return AppConfig.model_validate(base)


def test_build_aggregation_collapses_and_colors_categories(tmp_path: Path) -> None:
    records = pd.read_csv(_write_sample_csv(tmp_path / "degrees.csv")).rename(
        columns={"year": "period", "field": "category", "share": "value"}
    )

    artifacts = build_aggregation(records, _config())

    assert artifacts.wide.index.tolist() == ["Business", "Education", "Health professions", "Other"]
    assert artifacts.wide.columns.tolist() == [1970, 1980, 1990, 2010]
    assert artifacts.wide.loc["Other", 1970] == pytest.approx(0.05)
    assert artifacts.conservation_delta == pytest.approx(0.0, abs=1e-12)
    assert artifacts.colors["Business"] == "#0072B2"
    assert artifacts.colors["Other"] == "#8B99A8"


def test_build_aggregation_with_empty_keep_list_keeps_every_category(tmp_path: Path) -> None:
    records = pd.read_csv(_write_sample_csv(tmp_path / "degrees.csv")).rename(
        columns={"year": "period", "field": "category", "share": "value"}
    )

    artifacts = build_aggregation(records, AppConfig())

    assert "Other" not in artifacts.wide.index
    assert len(artifacts.wide.index) == 5


def test_build_aggregation_cleans_keep_list_and_color_keys_like_data_labels() -> None:
    records = pd.DataFrame(
        {
            "period": [1970, 1970, 1971, 1971],
            "category": ["Health  professions", "Law", " Health professions", "Law"],
            "value": [0.05, 0.02, 0.06, 0.03],
        }
    )
    config = AppConfig.model_validate(
        {
            "categories": {
                "keep": ["Health  professions "],
                "colors": {"Health   professions": "#D55E00"},
            }
        }
    )

    artifacts = build_aggregation(records, config)

    assert artifacts.wide.index.tolist() == ["Health professions", "Other"]
    assert artifacts.wide.loc["Health professions", 1971] == pytest.approx(0.06)
    assert artifacts.colors["Health professions"] == "#D55E00"


def test_build_trend_tables_adds_column_chart_table(tmp_path: Path) -> None:
    records = pd.read_csv(_write_sample_csv(tmp_path / "degrees.csv")).rename(
        columns={"year": "period", "field": "category", "share": "value"}
    )
    config = _config()
    artifacts = build_aggregation(records, config)

    tables = build_trend_tables(artifacts, config)

    assert [table.caption for table in tables] == [
        "Field popularity with line trends",
        "Field popularity with column trends",
    ]
    for table in tables:
        assert [row.label for row in table.rows][-1] == "Other"
        assert all(row.trend and row.trend.startswith("data:image/png") for row in table.rows)


def test_run_all_generates_report_and_outputs(tmp_path: Path) -> None:
    csv_path = _write_sample_csv(tmp_path / "degrees.csv")
    out_dir = tmp_path / "out"

    report_path = run_all(csv_path=csv_path, out_dir=out_dir, config=_config())

    html = report_path.read_text(encoding="utf-8")
    assert html.count("data:image/png;base64,") == 8
    assert 'src="figures/category_trends.png"' in html
    assert (out_dir / "figures" / "category_trends.png").exists()
    assert (out_dir / "tables" / "canonical_series.csv").exists()
    assert (out_dir / "tables" / "wide_by_category.csv").exists()
    assert (out_dir / "tables" / "wide_by_period.csv").exists()

    summary = json.loads((out_dir / "artifacts" / "run_summary.json").read_text(encoding="utf-8"))
    assert summary["records"] == 20
    assert summary["series_rows"] == 16
    assert summary["categories"] == ["Business", "Education", "Health professions", "Other"]
    assert summary["periods"] == [1970, 1980, 1990, 2010]


def test_run_all_parallel_rendering_and_parquet_tables(tmp_path: Path) -> None:
    csv_path = _write_sample_csv(tmp_path / "degrees.csv")
    out_dir = tmp_path / "out"
    config = _config(
        sparklines={"workers": 4, "column_kind_table": False},
        outputs={"tables_format": "parquet"},
    )

    report_path = run_all(csv_path=csv_path, out_dir=out_dir, config=config)

    assert report_path.read_text(encoding="utf-8").count("data:image/png;base64,") == 4
    series = pd.read_parquet(out_dir / "tables" / "canonical_series.parquet")
    assert list(series.columns) == ["period", "category", "value"]


def test_run_all_fails_loudly_on_bad_values(tmp_path: Path) -> None:
    csv_path = tmp_path / "degrees.csv"
    csv_path.write_text("year,field,share\n1970,Business,0.1\n1970,Law,lots\n", encoding="utf-8")

    with pytest.raises(SchemaError, match="Law"):
        run_all(csv_path=csv_path, out_dir=tmp_path / "out", config=_config())
    assert not (tmp_path / "out" / "report.html").exists()
