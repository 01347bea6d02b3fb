"""Assembly of render contexts from parsed fixtures."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.models import (
    ContentFixture,
    OrganizationModel,
    RenderContext,
    SitePage,
    SitePagesFixture,
    UserModel,
)

logger = logging.getLogger(__name__)


def resolve_timezone(time_zone: str | None) -> dt.tzinfo:
    """Return the tzinfo for an IANA id, falling back to UTC when unknown."""
    if not time_zone:
        return dt.timezone.utc
    try:
        return ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.debug(f"Unknown time zone {time_zone!r}, falling back to UTC")
        return dt.timezone.utc


def _organization(fixture: ContentFixture | SitePagesFixture) -> OrganizationModel:
    return fixture.current_organization or OrganizationModel()


def _user(fixture: ContentFixture | SitePagesFixture) -> UserModel:
    return fixture.current_user or UserModel()


def build_list_context(fixture: ContentFixture) -> RenderContext:
    """Context for a fixture's entry template; Target is the whole payload."""
    return RenderContext(
        target=fixture.target,
        content_type=fixture.content_type,
        current_organization=_organization(fixture),
        current_user=_user(fixture),
        path_base=fixture.path_base,
        query_params=fixture.query_params,
    )


def build_detail_context(item: Any, fixture: ContentFixture) -> RenderContext:
    """Context for one item's detail view; Target is that item alone."""
    return RenderContext(
        target=item,
        content_type=fixture.content_type,
        current_organization=_organization(fixture),
        current_user=_user(fixture),
        path_base=fixture.path_base,
        query_params=fixture.query_params,
    )


def build_page_context(page: SitePage, fixture: SitePagesFixture) -> RenderContext:
    """Context for a site page; Target carries the page fields and widget slots."""
    target: dict[str, Any] = {
        "Id": page.id,
        "Title": page.title,
        "RoutePath": page.route_path,
        "IsPublished": page.is_published,
        "CreationTime": page.creation_time,
        "PublishedWidgets": page.widget_map(),
    }
    return RenderContext(
        target=target,
        current_organization=_organization(fixture),
        current_user=_user(fixture),
        path_base=fixture.path_base,
    )
