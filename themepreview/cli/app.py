"""Main CLI application."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import typer
from typing_extensions import Annotated

from ..batch.runner import BatchRenderer, BatchReport
from ..core.errors import PreviewError
from ..core.settings import get_settings
from ..rendering.engine import RenderEngine
from ..rendering.io import atomic_write_text
from ..templates.publish import prepare_for_publish, publish_order
from ..templates.store import TEMPLATE_SUFFIX, WEB, WIDGET, WIDGETS_DIRECTORY, TemplateStore
from .parsers import parse_directory, parse_fixture_path, parse_time_zone

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"

app = typer.Typer(
    name="themepreview",
    help="Offline preview renderer for platform theme templates.",
)

TemplatesOption = Annotated[
    str,
    typer.Option(
        "--templates",
        "-t",
        help="Template directory (default: THEMEPREVIEW_TEMPLATE_DIR or ./liquid).",
        metavar="DIR",
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option(
        "--verbose",
        "-v",
        help="Enable verbose logging.",
    ),
]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def _summarize(report: BatchReport) -> None:
    skipped = [result for result in report.results if result.skipped]
    typer.echo(
        f"{len(report.succeeded)} rendered, {len(skipped)} skipped, "
        f"{len(report.failed)} failed"
    )
    for result in report.failed:
        typer.echo(f"  FAILED {result.name}: {result.error}", err=True)


@app.command()
def render(
    fixture: Annotated[
        str,
        typer.Argument(
            help="Render only this fixture file (default: every fixture).",
            metavar="FIXTURE",
        ),
    ] = "",
    templates: TemplatesOption = "",
    fixtures: Annotated[
        str,
        typer.Option(
            "--fixtures",
            "-f",
            help="Fixture directory (default: THEMEPREVIEW_FIXTURE_DIR or ./sample-data).",
            metavar="DIR",
        ),
    ] = "",
    output: Annotated[
        str,
        typer.Option(
            "--output",
            "-o",
            help="Output directory (default: THEMEPREVIEW_OUTPUT_DIR or ./htmlOutput).",
            metavar="DIR",
        ),
    ] = "",
    time_zone: Annotated[
        str,
        typer.Option(
            "--time-zone",
            help="Time zone for fixtures without an organization (default: UTC).",
            metavar="TZ",
        ),
    ] = "",
    verbose: VerboseOption = False,
) -> None:
    """Render fixtures to HTML files."""
    _configure_logging(verbose)
    settings = get_settings()

    fixture_path = parse_fixture_path(fixture) if fixture else None
    fixture_dir = parse_directory(fixtures, settings.fixture_dir)
    if fixture_path is not None and not fixtures:
        fixture_dir = fixture_path.parent

    renderer = BatchRenderer(
        parse_directory(templates, settings.template_dir),
        fixture_dir,
        parse_directory(output, settings.output_dir),
        default_time_zone=parse_time_zone(time_zone, settings.default_time_zone),
        max_layout_depth=settings.max_layout_depth,
    )
    logger.debug(
        f"Templates: {renderer.template_dir}, fixtures: {renderer.fixture_dir}, "
        f"output: {renderer.output_dir}"
    )

    if fixture_path is not None:
        report = renderer.render_path(fixture_path)
    else:
        report = renderer.render_all()

    _summarize(report)
    if report.failed:
        raise typer.Exit(1)


@app.command("templates")
def list_templates(
    templates: TemplatesOption = "",
    verbose: VerboseOption = False,
) -> None:
    """List web and widget templates with their layout chains."""
    _configure_logging(verbose)
    settings = get_settings()
    template_dir = parse_directory(templates, settings.template_dir)
    engine = RenderEngine(
        template_dir, settings.fixture_dir, max_layout_depth=settings.max_layout_depth
    )

    failed = False
    try:
        web = engine.store.discover(WEB)
        widgets = engine.store.discover(WIDGET)
    except PreviewError as e:
        logger.error(str(e))
        raise typer.Exit(1) from e

    for template in web:
        flag = " [base]" if template.is_base_layout else ""
        try:
            chain = " -> ".join(engine.layout_chain(template.developer_name))
        except PreviewError as e:
            chain = f"error: {e}"
            failed = True
        typer.echo(f"{template.developer_name}{flag}  {chain}")
    for template in widgets:
        typer.echo(f"{WIDGETS_DIRECTORY}/{template.developer_name}")

    if failed:
        raise typer.Exit(1)


@app.command()
def export(
    dest: Annotated[
        str,
        typer.Argument(help="Directory receiving the publish-ready templates.", metavar="DEST"),
    ],
    templates: TemplatesOption = "",
    verbose: VerboseOption = False,
) -> None:
    """Write publish-ready templates and a manifest for the sync client."""
    _configure_logging(verbose)
    settings = get_settings()
    store = TemplateStore(parse_directory(templates, settings.template_dir))
    dest_path = Path(dest)

    try:
        web = publish_order(store.discover(WEB))
        widgets = store.discover(WIDGET)
    except PreviewError as e:
        logger.error(str(e))
        raise typer.Exit(1) from e

    manifest: dict[str, list[dict]] = {"webTemplates": [], "widgetTemplates": []}
    for template in [*web, *widgets]:
        record = prepare_for_publish(template)
        filename = f"{template.developer_name}{TEMPLATE_SUFFIX}"
        if template.namespace == WIDGET:
            filename = f"{WIDGETS_DIRECTORY}/{filename}"
        atomic_write_text(dest_path / filename, record.pop("content") + "\n")
        record["file"] = filename
        key = "widgetTemplates" if template.namespace == WIDGET else "webTemplates"
        manifest[key].append(record)
        logger.debug(f"Exported {filename}")

    atomic_write_text(dest_path / MANIFEST_FILENAME, json.dumps(manifest, indent=2) + "\n")
    typer.echo(
        f"Exported {len(web)} web and {len(widgets)} widget template(s) to {dest_path}"
    )


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
