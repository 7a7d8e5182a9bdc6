from __future__ import annotations

from pathlib import Path

from choropleth_join.config import AppConfig
from choropleth_join.pipeline.join import build_choropleth
from choropleth_join.pipeline.load import load_inputs
from choropleth_join.report.render import region_rows, render_report

FIXTURES = Path(__file__).resolve().parent / "fixtures"


def _result(reference_year: int = 2019):
    cfg = AppConfig()
    cfg.input.geometry_path = str(FIXTURES / "towns.topojson")
    cfg.input.table_path = str(FIXTURES / "gini.csv")
    cfg.scales.reference_year = reference_year
    inputs = load_inputs(cfg)
    return build_choropleth(inputs.leaf_frame, inputs.table, cfg)


def test_region_rows_label_reference_value_and_series() -> None:
    rows = region_rows(_result())

    hampden, hampshire = rows
    assert hampden["key"] == "25013"
    assert hampden["resolved_via"] == "id"
    assert hampden["value_label"] == "2019: 0.472"
    assert hampden["series"] == [
        {"year": "2018", "value": "0.465"},
        {"year": "2019", "value": "0.472"},
    ]
    assert hampshire["name"] == "Hampshire County"
    assert hampshire["resolved_via"] == "name"


def test_region_rows_mark_missing_reference_year() -> None:
    rows = region_rows(_result(reference_year=2017))

    assert [row["value_label"] for row in rows] == ["No 2017 data", "No 2017 data"]
    assert {row["color"] for row in rows} == {"#303b78"}


def test_render_report_links_figures_relative_to_output(tmp_path: Path) -> None:
    figure = tmp_path / "figures" / "reference_map.png"
    figure.parent.mkdir(parents=True)
    figure.write_bytes(b"")

    report_path = render_report(_result(), tmp_path, {"reference_map": figure})

    html = report_path.read_text(encoding="utf-8")
    assert report_path == tmp_path / "report.html"
    assert 'src="figures/reference_map.png"' in html
    assert "HAMPDEN" in html
