"""Batch rendering of site pages, list views and item detail views."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..context.builder import build_detail_context, build_list_context, build_page_context
from ..core.errors import FixtureReadError, PreviewError, TemplateNotFound
from ..core.models import ContentFixture, SitePage, SitePagesFixture
from ..fixtures.repository import SITE_PAGES_FIXTURE, JsonFixtureRepository, read_json
from ..rendering.engine import DEFAULT_MAX_LAYOUT_DEPTH, RenderEngine
from ..rendering.io import write_artifact
from ..templates.store import TemplateStore

logger = logging.getLogger(__name__)

DETAIL_TEMPLATE_KEY = "detail_liquid_file"
ROUTE_PATH_KEYS = ("RoutePath", "route_path")


@dataclass
class ArtifactResult:
    """Outcome of rendering one output file."""

    name: str
    output: Path | None = None
    error: str | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def skipped(self) -> bool:
        return self.error is None and self.output is None


@dataclass
class BatchReport:
    results: list[ArtifactResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[ArtifactResult]:
        return [result for result in self.results if result.output is not None]

    @property
    def failed(self) -> list[ArtifactResult]:
        return [result for result in self.results if not result.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    def extend(self, other: BatchReport) -> None:
        self.results.extend(other.results)


def detail_filename(route_path: str) -> str:
    return route_path if route_path.lower().endswith(".html") else f"{route_path}.html"


def _fixture_error(path: Path, error: ValidationError) -> FixtureReadError:
    return FixtureReadError(path, f"{error.error_count()} validation error(s): {error}")


class BatchRenderer:
    """Renders every fixture of a site into an output directory.

    One template store and one fixture repository are shared by all engines
    of the batch, so each template and fixture is read from disk once.
    """

    def __init__(
        self,
        template_dir: Path,
        fixture_dir: Path,
        output_dir: Path,
        *,
        default_time_zone: str = "UTC",
        max_layout_depth: int = DEFAULT_MAX_LAYOUT_DEPTH,
    ) -> None:
        self.template_dir = Path(template_dir)
        self.fixture_dir = Path(fixture_dir)
        self.output_dir = Path(output_dir)
        self.default_time_zone = default_time_zone
        self.max_layout_depth = max_layout_depth
        self.store = TemplateStore(self.template_dir)
        self.repository = JsonFixtureRepository(self.fixture_dir)
        self._engines: dict[str, RenderEngine] = {}

    def engine_for(self, time_zone: str) -> RenderEngine:
        if time_zone not in self._engines:
            self._engines[time_zone] = RenderEngine(
                self.template_dir,
                self.fixture_dir,
                time_zone,
                repository=self.repository,
                store=self.store,
                max_layout_depth=self.max_layout_depth,
            )
        return self._engines[time_zone]

    def _attempt(
        self, report: BatchReport, name: str, render: Callable[[], Path]
    ) -> ArtifactResult:
        result = ArtifactResult(name)
        try:
            result.output = render()
        except (PreviewError, OSError) as e:
            result.error = str(e)
            logger.error(f"{name}: {e}")
        except Exception as e:  # noqa: BLE001
            result.error = f"{type(e).__name__}: {e}"
            logger.exception(f"{name}: unexpected error")
        else:
            logger.info(f"{name} -> {result.output.name}")
        report.results.append(result)
        return result

    def _write(self, filename: str, html: str) -> Path:
        return write_artifact(self.output_dir, filename, html)

    def site_pages_path(self) -> Path | None:
        if not self.fixture_dir.is_dir():
            return None
        for path in sorted(self.fixture_dir.glob("*.json")):
            if path.stem.lower() == SITE_PAGES_FIXTURE:
                return path
        return None

    def render_all(self) -> BatchReport:
        """Render site pages first, then each content fixture by name."""
        report = BatchReport()
        if not self.fixture_dir.is_dir():
            logger.warning(f"Fixture directory not found: {self.fixture_dir}")
            return report

        site_pages = self.site_pages_path()
        if site_pages is not None:
            report.extend(self.render_site_pages(site_pages))
        for name in self.repository.content_names():
            report.extend(self.render_fixture(self.repository.path_for(name)))

        logger.info(
            f"Rendering complete: {len(report.succeeded)} succeeded, "
            f"{len(report.failed)} failed"
        )
        return report

    def render_path(self, path: Path) -> BatchReport:
        """Render a single fixture file, dispatching on its kind."""
        if path.stem.lower() == SITE_PAGES_FIXTURE:
            return self.render_site_pages(path)
        return self.render_fixture(path)

    # Site-page mode

    def load_site_pages(self, path: Path) -> tuple[SitePagesFixture, list[Any]]:
        """Parse the site-pages envelope, leaving pages raw for per-page validation."""
        document = read_json(path)
        if not isinstance(document, dict):
            raise FixtureReadError(path, "expected a JSON object")
        envelope = {k: v for k, v in document.items() if k.lower() != "pages"}
        try:
            fixture = SitePagesFixture.model_validate(envelope)
        except ValidationError as e:
            raise _fixture_error(path, e) from e
        pages = document.get("pages") or document.get("Pages") or []
        if not isinstance(pages, list):
            raise FixtureReadError(path, "'pages' must be an array")
        return fixture, pages

    def render_site_pages(self, path: Path) -> BatchReport:
        report = BatchReport()
        try:
            fixture, pages = self.load_site_pages(path)
        except PreviewError as e:
            logger.error(f"{path.stem}: {e}")
            report.results.append(ArtifactResult(path.stem, error=str(e)))
            return report

        engine = self._engine_for_fixture(fixture)
        logger.info(f"Rendering {len(pages)} site page(s) from {path.name}")

        for index, raw_page in enumerate(pages):
            label = f"page {index + 1}"
            if isinstance(raw_page, dict):
                label = f"page {raw_page.get('title') or raw_page.get('Title') or index + 1}"
            self._attempt(
                report,
                label,
                lambda raw_page=raw_page: self._render_site_page(raw_page, fixture, engine, path),
            )
        return report

    def _render_site_page(
        self, raw_page: Any, fixture: SitePagesFixture, engine: RenderEngine, path: Path
    ) -> Path:
        try:
            page = SitePage.model_validate(raw_page)
        except ValidationError as e:
            raise _fixture_error(path, e) from e
        context = build_page_context(page, fixture)
        html = engine.render_template(
            page.web_template_developer_name, context, page.widget_map()
        )
        return self._write(page.output_filename, html)

    # List and detail modes

    def load_fixture(self, path: Path) -> ContentFixture:
        document = read_json(path)
        if not isinstance(document, dict):
            raise FixtureReadError(path, "expected a JSON object")
        try:
            return ContentFixture.model_validate(document)
        except ValidationError as e:
            raise _fixture_error(path, e) from e

    def render_fixture(self, path: Path) -> BatchReport:
        report = BatchReport()
        holder: dict[str, ContentFixture] = {}

        def _render_list() -> Path:
            fixture = self.load_fixture(path)
            holder["fixture"] = fixture
            if not fixture.liquid_file:
                raise FixtureReadError(path, "missing 'liquid_file' property")
            engine = self._engine_for_fixture(fixture)
            html = engine.render_template(fixture.liquid_file, build_list_context(fixture))
            return self._write(f"{path.stem}.html", html)

        self._attempt(report, path.stem, _render_list)
        if "fixture" in holder:
            self._render_details(path.stem, holder["fixture"], report)
        return report

    def _engine_for_fixture(self, fixture: ContentFixture | SitePagesFixture) -> RenderEngine:
        organization = fixture.current_organization
        if organization is None:
            return self.engine_for(self.default_time_zone)
        return self.engine_for(organization.time_zone)

    def _render_details(self, name: str, fixture: ContentFixture, report: BatchReport) -> None:
        items = [
            item
            for item in fixture.items
            if isinstance(item, dict)
            and isinstance(item.get(DETAIL_TEMPLATE_KEY), str)
            and item[DETAIL_TEMPLATE_KEY]
        ]
        if not items:
            return

        engine = self._engine_for_fixture(fixture)
        logger.info(f"Rendering {len(items)} detail page(s) for {name}")
        for item in items:
            template_name = item[DETAIL_TEMPLATE_KEY]
            route_path = next(
                (item[key] for key in ROUTE_PATH_KEYS if item.get(key)), None
            )
            artifact = f"{name}:{route_path or template_name}"

            if not isinstance(route_path, str) or not route_path:
                self._skip(report, artifact, f"item has no {ROUTE_PATH_KEYS[0]}")
                continue
            try:
                self.store.resolve(template_name)
            except TemplateNotFound as e:
                self._skip(report, artifact, str(e))
                continue

            self._attempt(
                report,
                artifact,
                lambda item=item, template_name=template_name, route_path=route_path: self._write(
                    detail_filename(route_path),
                    engine.render_template(template_name, build_detail_context(item, fixture)),
                ),
            )

    def _skip(self, report: BatchReport, name: str, reason: str) -> None:
        logger.warning(f"{name}: skipped, {reason}")
        report.results.append(ArtifactResult(name, warnings=[reason]))
