from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

import choropleth_join.cli as cli
from choropleth_join.config import AppConfig

FIXTURES = Path(__file__).resolve().parent / "fixtures"
GEOMETRY = FIXTURES / "towns.topojson"
TABLE = FIXTURES / "gini.csv"

runner = CliRunner()


def _empty_config(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text("{}", encoding="utf-8")
    return path


def test_cli_help_lists_commands() -> None:
    result = runner.invoke(cli.app, ["--help"])

    assert result.exit_code == 0
    for command in ("run", "inspect-series", "list-layers"):
        assert command in result.stdout


def test_run_passes_overrides_to_pipeline(tmp_path: Path, monkeypatch) -> None:
    captured: dict[str, object] = {}

    def fake_run_all(out_dir: Path, config: AppConfig) -> Path:
        captured["out_dir"] = out_dir
        captured["config"] = config
        return out_dir / "report.html"

    monkeypatch.setattr(cli, "run_all", fake_run_all)
    result = runner.invoke(
        cli.app,
        [
            "run",
            "--geometry",
            str(GEOMETRY),
            "--table",
            str(TABLE),
            "--out",
            str(tmp_path / "out"),
            "--config",
            str(_empty_config(tmp_path)),
            "--layer",
            "towns",
            "--reference-year",
            "2018",
        ],
    )

    assert result.exit_code == 0, result.stdout
    assert "Run complete" in result.stdout
    config = captured["config"]
    assert isinstance(config, AppConfig)
    assert config.input.geometry_path == str(GEOMETRY)
    assert config.input.table_path == str(TABLE)
    assert config.input.geometry_layer == "towns"
    assert config.scales.reference_year == 2018
    assert captured["out_dir"] == (tmp_path / "out").resolve()


def test_run_reports_failure_with_exit_code(tmp_path: Path, monkeypatch) -> None:
    def failing_run_all(out_dir: Path, config: AppConfig) -> Path:
        raise ValueError("Series table missing column: value")

    monkeypatch.setattr(cli, "run_all", failing_run_all)
    result = runner.invoke(
        cli.app,
        [
            "run",
            "--geometry",
            str(GEOMETRY),
            "--table",
            str(TABLE),
            "--out",
            str(tmp_path / "out"),
            "--config",
            str(_empty_config(tmp_path)),
        ],
    )

    assert result.exit_code == 1
    assert "Run failed" in result.output


def test_run_requires_inputs(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("CHOROPLETH_GEOMETRY_PATH", raising=False)
    monkeypatch.delenv("CHOROPLETH_TABLE_PATH", raising=False)
    result = runner.invoke(
        cli.app,
        ["run", "--out", str(tmp_path / "out"), "--config", str(_empty_config(tmp_path))],
    )

    assert result.exit_code != 0


def test_list_layers_prints_collections() -> None:
    result = runner.invoke(cli.app, ["list-layers", "--geometry", str(GEOMETRY)])

    assert result.exit_code == 0
    assert "towns" in result.stdout


def test_inspect_series_prints_resolved_points(tmp_path: Path) -> None:
    result = runner.invoke(
        cli.app,
        [
            "inspect-series",
            "--region",
            "25013",
            "--geometry",
            str(GEOMETRY),
            "--table",
            str(TABLE),
            "--config",
            str(_empty_config(tmp_path)),
        ],
    )

    assert result.exit_code == 0, result.stdout
    assert "region: 25013" in result.stdout
    assert "2019: 0.472" in result.stdout
    assert "- 2018: 0.465" in result.stdout


def test_inspect_series_rejects_unknown_region(tmp_path: Path) -> None:
    result = runner.invoke(
        cli.app,
        [
            "inspect-series",
            "--region",
            "99999",
            "--geometry",
            str(GEOMETRY),
            "--table",
            str(TABLE),
            "--config",
            str(_empty_config(tmp_path)),
        ],
    )

    assert result.exit_code != 0


def test_inspect_series_reports_load_failure_with_exit_code(tmp_path: Path) -> None:
    bad_table = tmp_path / "table.csv"
    bad_table.write_text("id,year\n25013,2019\n", encoding="utf-8")

    result = runner.invoke(
        cli.app,
        [
            "inspect-series",
            "--region",
            "25013",
            "--geometry",
            str(GEOMETRY),
            "--table",
            str(bad_table),
            "--config",
            str(_empty_config(tmp_path)),
        ],
    )

    assert result.exit_code == 1
    assert "Inspect failed: Missing required columns in table" in result.output
