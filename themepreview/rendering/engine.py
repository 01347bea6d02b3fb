"""Layout composition and template execution."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jinja2

from ..context.builder import resolve_timezone
from ..core.errors import (
    LayoutCycleError,
    TemplateNotFound,
    TemplateRenderError,
    TemplateSyntaxError,
)
from ..core.models import RenderContext
from ..fixtures.queries import ContentQueries
from ..fixtures.repository import FixtureRepository, JsonFixtureRepository
from ..templates.store import TemplateStore
from .dialect import ASSIGNED_NAMESPACE, translate
from .environment import build_environment, new_assignments
from .layout import extract_layout, splice_body

logger = logging.getLogger(__name__)

DEFAULT_MAX_LAYOUT_DEPTH = 32


class RenderEngine:
    """Renders templates against a context, resolving parent layouts.

    Args:
        template_dir: Directory holding the ``.liquid`` templates
        fixture_dir: Directory holding the JSON fixtures used by query functions
        time_zone: Organization time zone id; unknown ids fall back to UTC
        repository: Fixture repository override (defaults to ``fixture_dir``)
        store: Template store override, shared to reuse its content cache
        max_layout_depth: Most templates a chain may hold, the leaf included
    """

    def __init__(
        self,
        template_dir: Path,
        fixture_dir: Path,
        time_zone: str = "UTC",
        *,
        repository: FixtureRepository | None = None,
        store: TemplateStore | None = None,
        max_layout_depth: int = DEFAULT_MAX_LAYOUT_DEPTH,
    ) -> None:
        self.template_dir = Path(template_dir)
        self.fixture_dir = Path(fixture_dir)
        self.time_zone = resolve_timezone(time_zone)
        self.store = store or TemplateStore(self.template_dir)
        self.repository = repository or JsonFixtureRepository(self.fixture_dir)
        self.queries = ContentQueries(self.repository)
        self.max_layout_depth = max_layout_depth
        self.environment = build_environment(
            self.time_zone, self.queries.template_functions(), self.store.source
        )

    def render(
        self,
        source: str,
        context: RenderContext,
        widgets: Mapping[str, Any] | None = None,
    ) -> str:
        """Render template source text, applying its layout chain."""
        return self._compose(source, context, widgets, name="<source>")

    def render_template(
        self,
        name: str,
        context: RenderContext,
        widgets: Mapping[str, Any] | None = None,
    ) -> str:
        """Render a template from the template directory by developer name."""
        template = self.store.get(name)
        return self._compose(template.content, context, widgets, name=template.developer_name)

    def layout_chain(self, name: str) -> list[str]:
        """Return ``name`` followed by its ancestors, nearest first."""
        template = self.store.get(name)
        chain = [template.developer_name]
        parent = template.parent
        while parent is not None:
            self._check_chain(chain, parent)
            template = self.store.get(parent)
            chain.append(template.developer_name)
            parent = template.parent
        return chain

    def _check_chain(self, chain: list[str], parent: str) -> None:
        if parent.lower() in (step.lower() for step in chain):
            raise LayoutCycleError([*chain, parent])
        if len(chain) >= self.max_layout_depth:
            raise LayoutCycleError([*chain, parent], reason="depth limit")

    def _compose(
        self,
        source: str,
        context: RenderContext,
        widgets: Mapping[str, Any] | None,
        name: str,
    ) -> str:
        variables = context.template_variables()
        variables["Widgets"] = dict(widgets or {})
        variables[ASSIGNED_NAMESPACE] = new_assignments()

        body, parent = extract_layout(source)
        # A base layout rendered on its own has no child content to inject.
        body, _ = splice_body(body, "")
        content = self._execute(body, variables, name)

        chain = [name]
        while parent is not None:
            self._check_chain(chain, parent)
            layout = self.store.get(parent)
            chain.append(layout.developer_name)
            logger.debug(f"Applying layout {layout.developer_name} to {name}")

            layout_body, grandparent = extract_layout(layout.content)
            spliced, has_marker = splice_body(layout_body, content)
            if not has_marker:
                logger.warning(
                    f"Layout {layout.developer_name} has no renderbody tag; "
                    f"content of {chain[-2]} is discarded"
                )
            content = self._execute(spliced, variables, layout.developer_name)
            parent = grandparent

        return content

    def _execute(self, source: str, variables: dict[str, Any], name: str) -> str:
        try:
            template = self.environment.from_string(translate(source))
        except jinja2.TemplateSyntaxError as e:
            raise TemplateSyntaxError(name, e.message or str(e), e.lineno) from e
        try:
            return template.render(variables)
        except jinja2.TemplateSyntaxError as e:
            # Raised by included templates, which compile lazily.
            raise TemplateSyntaxError(e.name or name, e.message or str(e), e.lineno) from e
        except jinja2.TemplateNotFound as e:
            raise TemplateNotFound(e.name, self.template_dir) from e
        except RecursionError as e:
            raise TemplateRenderError(name, "include nesting too deep") from e
        except (jinja2.TemplateError, ArithmeticError, TypeError, ValueError) as e:
            raise TemplateRenderError(name, str(e)) from e
