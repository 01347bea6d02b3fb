"""Domain models for fixtures, menus, site pages and the render context."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_pascal

from .values import from_json

DEFAULT_ORGANIZATION_NAME = "Sample Organization"
DEFAULT_TIME_ZONE = "UTC"


class PlatformRecord(BaseModel):
    """Record exposed to templates under the platform's PascalCase member names.

    Fixtures may spell keys either in snake_case (the field name) or in
    PascalCase (the alias). Unknown keys are kept so templates can reach them.
    """

    model_config = ConfigDict(
        alias_generator=to_pascal, populate_by_name=True, extra="allow"
    )

    def to_template(self) -> dict[str, Any]:
        return from_json(self.model_dump(mode="json", by_alias=True))


class OrganizationModel(PlatformRecord):
    organization_name: str = Field(
        default=DEFAULT_ORGANIZATION_NAME, description="Display name"
    )
    time_zone: str = Field(default=DEFAULT_TIME_ZONE, description="Time zone id")

    @field_validator("organization_name", mode="before")
    @classmethod
    def _default_name(cls, value: Any) -> Any:
        return value or DEFAULT_ORGANIZATION_NAME

    @field_validator("time_zone", mode="before")
    @classmethod
    def _default_time_zone(cls, value: Any) -> Any:
        return value or DEFAULT_TIME_ZONE


class UserModel(PlatformRecord):
    """Current visitor; the defaults describe an anonymous user."""

    is_authenticated: bool = False
    user_id: str | None = None
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    email_address: str = ""
    is_admin: bool = False
    roles: list[str] = Field(default_factory=list)
    user_groups: list[str] = Field(default_factory=list)


class MenuItem(PlatformRecord):
    id: str | int = ""
    label: str = ""
    url: str = ""
    ordinal: int = 0
    is_first_item: bool = False
    is_last_item: bool = False


class Menu(PlatformRecord):
    id: str | int = ""
    label: str = ""
    developer_name: str = ""
    is_main_menu: bool = False
    menu_items: list[MenuItem] = Field(default_factory=list)


class MenusFixture(PlatformRecord):
    menus: list[Menu] = Field(default_factory=list)

    @field_validator("menus", mode="before")
    @classmethod
    def _null_menus(cls, value: Any) -> Any:
        return value if value is not None else []


class Widget(PlatformRecord):
    """A widget placed in a site page section."""

    id: str | int = ""
    widget_type: str = ""
    settings: Any = Field(default_factory=dict)
    row: int = 0
    column: int = 0
    column_span: int = 12
    css_class: str = ""
    html_id: str = ""


class SitePage(PlatformRecord):
    id: str | int = ""
    title: str = ""
    route_path: str = ""
    is_published: bool = True
    creation_time: str | None = None
    web_template_developer_name: str = Field(..., min_length=1)
    published_widgets: dict[str, list[Widget]] | None = None

    @field_validator("route_path", mode="before")
    @classmethod
    def _null_route(cls, value: Any) -> Any:
        return value or ""

    @property
    def output_filename(self) -> str:
        route = self.route_path.strip("/")
        if not route or route == "home":
            return "index.html"
        return f"{route}.html"

    def widget_map(self) -> dict[str, list[dict[str, Any]]]:
        if not self.published_widgets:
            return {}
        return {
            section: [widget.to_template() for widget in widgets]
            for section, widgets in self.published_widgets.items()
        }


class _FixtureEnvelope(BaseModel):
    """Organization, user and path fields shared by every fixture kind."""

    model_config = ConfigDict(
        alias_generator=to_pascal, populate_by_name=True, extra="ignore"
    )

    current_organization: OrganizationModel | None = None
    current_user: UserModel | None = None
    path_base: str = ""

    @field_validator("path_base", mode="before")
    @classmethod
    def _null_path_base(cls, value: Any) -> Any:
        return value or ""


class SitePagesFixture(_FixtureEnvelope):
    pages: list[SitePage] = Field(default_factory=list)

    @field_validator("pages", mode="before")
    @classmethod
    def _null_pages(cls, value: Any) -> Any:
        return value if value is not None else []


class ContentFixture(_FixtureEnvelope):
    """Sample data for one content type (list view plus optional details)."""

    liquid_file: str | None = Field(default=None, description="Entry template")
    target: Any = Field(default_factory=dict)
    content_type: dict[str, Any] | None = None
    query_params: dict[str, str] = Field(default_factory=dict)

    @field_validator("target", mode="before")
    @classmethod
    def _normalize_target(cls, value: Any) -> Any:
        return from_json(value) if value is not None else {}

    @field_validator("query_params", mode="before")
    @classmethod
    def _null_query_params(cls, value: Any) -> Any:
        return value if value is not None else {}

    @property
    def items(self) -> list[Any]:
        """Return ``Target.Items`` when the target is a list payload."""
        if isinstance(self.target, dict):
            items = self.target.get("Items")
            if isinstance(items, list):
                return items
        return []


class RenderContext(BaseModel):
    """Everything a single template execution can see."""

    target: Any = Field(default_factory=dict)
    content_type: dict[str, Any] | None = None
    current_organization: OrganizationModel = Field(default_factory=OrganizationModel)
    current_user: UserModel = Field(default_factory=UserModel)
    path_base: str = ""
    query_params: dict[str, str] = Field(default_factory=dict)

    def template_variables(self) -> dict[str, Any]:
        return {
            "Target": self.target,
            "ContentType": self.content_type,
            "CurrentOrganization": self.current_organization.to_template(),
            "CurrentUser": self.current_user.to_template(),
            "PathBase": self.path_base,
            "QueryParams": dict(self.query_params),
        }
