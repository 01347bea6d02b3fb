"""Template-callable functions that emulate the platform's content API.

Every function reads sibling fixtures through a :class:`FixtureRepository`
and never raises on bad data: unreadable or malformed fixtures degrade to an
empty result.
"""

from __future__ import annotations

import html
import logging
from collections.abc import Callable, Mapping
from typing import Any

from jinja2 import Undefined
from pydantic import ValidationError

from ..core.errors import FixtureReadError
from ..core.models import Menu, MenusFixture
from .repository import MENUS_FIXTURE, FixtureRepository

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 25
MAIN_MENU = "main"

_LISTING_PARAMETERS = ("ContentType", "Filter", "OrderBy", "PageNumber", "PageSize")

SECTION_PLACEHOLDER = """<div class="simulator-section-placeholder" style="background: linear-gradient(135deg, #f8f9fa 0%, #e9ecef 100%); border: 2px dashed #6c757d; border-radius: 8px; padding: 2rem; text-align: center; margin: 1rem 0;">
    <div style="color: #495057; font-size: 0.875rem; text-transform: uppercase; letter-spacing: 0.05em; margin-bottom: 0.5rem;">Section</div>
    <div style="color: #212529; font-weight: 600; font-size: 1.25rem;">{name}</div>
    <div style="color: #6c757d; font-size: 0.75rem; margin-top: 0.5rem;">Widgets render here on the platform</div>
</div>"""


def _present(value: Any) -> bool:
    return value is not None and not isinstance(value, Undefined)


def _as_int(value: Any, default: int) -> int:
    if not _present(value) or isinstance(value, bool):
        return default
    try:
        return int(float(str(value)))
    except (ValueError, OverflowError):
        return default


def _as_text(value: Any) -> str:
    return str(value) if _present(value) else ""


def _member(document: Any, *names: str) -> Any:
    if isinstance(document, Mapping):
        for name in names:
            if name in document:
                return document[name]
    return None


def _normalize_name(name: str) -> str:
    return name.replace("_", "").lower()


def bind_arguments(
    args: tuple[Any, ...], kwargs: dict[str, Any], names: tuple[str, ...]
) -> dict[str, Any]:
    """Bind positional and named template arguments to platform parameter names.

    Named arguments match case-insensitively and ignore underscores, so
    ``PageSize``, ``page_size`` and ``pagesize`` all bind to ``PageSize``.
    """
    bound = dict(zip(names, args))
    lookup = {_normalize_name(name): name for name in names}
    for key, value in kwargs.items():
        name = lookup.get(_normalize_name(key))
        if name is None:
            logger.debug(f"Ignoring unknown argument {key!r}")
            continue
        bound[name] = value
    return bound


class ContentQueries:
    """Simulated content API bound to one fixture repository."""

    def __init__(self, repository: FixtureRepository) -> None:
        self.repository = repository

    def _load(self, name: str) -> Any | None:
        try:
            return self.repository.load(name)
        except FixtureReadError as e:
            logger.warning(f"{e}; returning an empty result")
            return None

    def item_listing(
        self,
        content_type: str,
        filter: str | None = None,
        order_by: str | None = None,
        page_number: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> dict[str, Any]:
        """Return the first ``page_size`` items of a content-type fixture.

        ``filter`` and ``order_by`` are accepted for signature compatibility
        but not applied. ``page_number`` is normalized and otherwise ignored:
        the first page is always returned.
        """
        if page_size <= 0:
            page_size = DEFAULT_PAGE_SIZE
        if page_number <= 0:
            page_number = 1
        if filter or order_by or page_number > 1:
            logger.debug(
                f"{content_type}: filter/order/page arguments are not emulated"
            )

        items = _member(_member(self._load(content_type), "target", "Target"), "Items")
        if not isinstance(items, list):
            return {"Items": [], "TotalCount": 0}
        return {"Items": items[:page_size], "TotalCount": len(items)}

    def content_type_lookup(self, developer_name: str) -> dict[str, Any] | None:
        content_type = _member(self._load(developer_name), "content_type", "ContentType")
        return content_type if isinstance(content_type, dict) else None

    def menu_lookup(self, developer_name_or_main: str) -> dict[str, Any]:
        """Return a menu by developer name, or the main menu for ``"main"``.

        An empty menu (no items) is returned when nothing matches.
        """
        wanted = developer_name_or_main.lower()
        document = self._load(MENUS_FIXTURE)
        if document is not None:
            try:
                menus = MenusFixture.model_validate(document).menus
            except ValidationError as e:
                logger.warning(f"Invalid {MENUS_FIXTURE} fixture: {e}")
                menus = []
            for menu in menus:
                if (menu.developer_name and menu.developer_name.lower() == wanted) or (
                    wanted == MAIN_MENU and menu.is_main_menu
                ):
                    return menu.to_template()
        return Menu().to_template()

    def item_by_id(self, item_id: Any) -> Any | None:
        """Find an item by ``Id`` across all content-type fixtures."""
        wanted = _as_text(item_id)
        if not wanted:
            return None
        for name in self.repository.content_names():
            items = _member(_member(self._load(name), "target", "Target"), "Items")
            for item in items if isinstance(items, list) else []:
                if _as_text(_member(item, "Id", "id")) == wanted:
                    return item
        return None

    @staticmethod
    def section_placeholder(name: str) -> str:
        return SECTION_PLACEHOLDER.format(name=html.escape(name))

    # Adapters with the platform's calling conventions.

    def _get_content_items(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        params = bind_arguments(args, kwargs, _LISTING_PARAMETERS)
        return self.item_listing(
            _as_text(params.get("ContentType")),
            filter=_as_text(params.get("Filter")) or None,
            order_by=_as_text(params.get("OrderBy")) or None,
            page_number=_as_int(params.get("PageNumber"), 1),
            page_size=_as_int(params.get("PageSize"), DEFAULT_PAGE_SIZE),
        )

    def _get_content_type(self, developer_name: Any = None) -> dict[str, Any] | None:
        return self.content_type_lookup(_as_text(developer_name))

    def _get_main_menu(self) -> dict[str, Any]:
        return self.menu_lookup(MAIN_MENU)

    def _get_menu(self, developer_name: Any = None) -> dict[str, Any]:
        return self.menu_lookup(_as_text(developer_name))

    def _render_section(self, name: Any = None) -> str:
        return self.section_placeholder(_as_text(name))

    def template_functions(self) -> dict[str, Callable[..., Any]]:
        return {
            "get_content_items": self._get_content_items,
            "get_content_type_by_developer_name": self._get_content_type,
            "get_content_item_by_id": self.item_by_id,
            "get_main_menu": self._get_main_menu,
            "get_menu": self._get_menu,
            "render_section": self._render_section,
        }
