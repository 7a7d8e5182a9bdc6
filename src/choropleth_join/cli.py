from __future__ import annotations

from pathlib import Path

import typer

from choropleth_join.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from choropleth_join.io.geometry import list_geometry_layers
from choropleth_join.logging import configure_logging
from choropleth_join.pipeline.join import build_choropleth
from choropleth_join.pipeline.load import load_inputs
from choropleth_join.pipeline.run_all import run_all
from choropleth_join.series.resolve import value_for_year

app = typer.Typer(no_args_is_help=True, add_completion=False)


def _load_app_config(config_path: Path) -> AppConfig:
    return load_config(config_path)


def _apply_input_overrides(
    cfg: AppConfig,
    geometry: Path | None,
    table: Path | None,
    layer: str | None,
    reference_year: int | None = None,
) -> AppConfig:
    if geometry is not None:
        cfg.input.geometry_path = str(geometry)
    if table is not None:
        cfg.input.table_path = str(table)
    if layer is not None:
        cfg.input.geometry_layer = layer
    if reference_year is not None:
        cfg.scales.reference_year = reference_year
    if not cfg.input.geometry_path or not cfg.input.table_path:
        raise typer.BadParameter(
            "Missing input. Set --geometry/--table or input.geometry_path/input.table_path "
            "in config (or CHOROPLETH_GEOMETRY_PATH/CHOROPLETH_TABLE_PATH)."
        )
    return cfg


@app.command()
def run(
    geometry: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    table: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    layer: str | None = typer.Option(
        None, help="Named collection inside the geometry file. Defaults to the first one."
    ),
    reference_year: int | None = typer.Option(
        None, help="Year coloured on the region map. Falls back to scales.reference_year."
    ),
    log_level: str = typer.Option("INFO"),
) -> None:
    """Aggregate towns into regions, join the series table, and write maps and report."""
    configure_logging(log_level)
    cfg = _apply_input_overrides(
        _load_app_config(config), geometry, table, layer, reference_year=reference_year
    )
    try:
        report_path = run_all(out_dir=out, config=cfg)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"Run failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Run complete. Report: {report_path}")


@app.command("inspect-series")
def inspect_series(
    region: str = typer.Option(..., help="Region key (string form of the group key)."),
    geometry: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    table: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    layer: str | None = typer.Option(None),
) -> None:
    """Print the colour and resolved series for one region."""
    configure_logging("WARNING")
    cfg = _apply_input_overrides(_load_app_config(config), geometry, table, layer)
    try:
        inputs = load_inputs(cfg)
        result = build_choropleth(inputs.leaf_frame, inputs.table, cfg)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"Inspect failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    found = result.lookup(region)
    if found is None:
        raise typer.BadParameter(f"Unknown region key: {region}")
    color, series = found
    typer.echo(f"region: {region}")
    typer.echo(f"color: {color}")
    if series is None:
        typer.echo("series: none")
        return
    current = value_for_year(series, result.reference_year)
    typer.echo(
        f"{result.reference_year}: {current:.3f}"
        if current is not None
        else f"{result.reference_year}: no data"
    )
    for point in series:
        typer.echo(f"- {point.year:g}: {point.value:g}")


@app.command("list-layers")
def list_layers(
    geometry: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
) -> None:
    """List the named collections in a geometry file."""
    for name in list_geometry_layers(geometry):
        typer.echo(name)


if __name__ == "__main__":
    app()
