from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from choropleth_join.pipeline.join import ChoroplethResult
from choropleth_join.series.resolve import value_for_year

LOGGER = logging.getLogger(__name__)


def _template_env() -> Environment:
    templates_path = Path(__file__).resolve().parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(templates_path)),
        autoescape=select_autoescape(enabled_extensions=("html", "xml")),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _format_year(year: float) -> str:
    return str(int(year)) if float(year).is_integer() else f"{year:g}"


def region_rows(result: ChoroplethResult) -> list[dict[str, Any]]:
    """One row per region: what a hover tooltip over the region map would show."""
    rows: list[dict[str, Any]] = []
    frame = result.regions_frame
    via_by_key = dict(zip(frame["region_key"], frame["resolved_via"]))
    for region in result.regions:
        lookup = result.lookup(region.key)
        color, series = lookup if lookup is not None else (None, None)
        current = value_for_year(series, result.reference_year)
        rows.append(
            {
                "key": region.key,
                "name": region.display_name,
                "color": color,
                "resolved_via": via_by_key.get(region.key) or "",
                "value_label": (
                    f"{result.reference_year}: {current:.3f}"
                    if current is not None
                    else f"No {result.reference_year} data"
                ),
                "series": [
                    {"year": _format_year(point.year), "value": f"{point.value:.3f}"}
                    for point in (series or ())
                ],
            }
        )
    return rows


def render_report(
    result: ChoroplethResult,
    out_dir: Path,
    figures: dict[str, Path] | None = None,
) -> Path:
    env = _template_env()
    template = env.get_template("report.html.j2")
    figure_links = {
        name: path.relative_to(out_dir).as_posix() if path.is_relative_to(out_dir) else str(path)
        for name, path in (figures or {}).items()
    }
    html = template.render(
        generated_at=datetime.now(timezone.utc).isoformat(),
        summary=result.summary(),
        figures=figure_links,
        regions=region_rows(result),
        reference_year=result.reference_year,
    )
    report_path = out_dir / "report.html"
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(html, encoding="utf-8")
    LOGGER.info("Report written to %s", report_path)
    return report_path
