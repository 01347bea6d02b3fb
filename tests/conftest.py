from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest

from themepreview.core.settings import get_settings


@dataclass
class Site:
    """A theme project laid out under a temporary directory."""

    root: Path

    @property
    def templates(self) -> Path:
        return self.root / "liquid"

    @property
    def fixtures(self) -> Path:
        return self.root / "sample-data"

    @property
    def output(self) -> Path:
        return self.root / "htmlOutput"

    def template(self, name: str, content: str) -> Path:
        path = self.templates / f"{name}.liquid"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def fixture(self, name: str, data: Any) -> Path:
        path = self.fixtures / f"{name}.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        text = data if isinstance(data, str) else json.dumps(data)
        path.write_text(text, encoding="utf-8")
        return path

    def read(self, filename: str) -> str:
        return (self.output / filename).read_text(encoding="utf-8")


@pytest.fixture
def site(tmp_path: Path) -> Site:
    site = Site(tmp_path)
    site.templates.mkdir()
    site.fixtures.mkdir()
    return site


@pytest.fixture
def blog(site: Site) -> Site:
    """Site with a base layout, a list view, a detail view and two pages."""
    site.template(
        "layout",
        "<html><title>{{ CurrentOrganization.OrganizationName }}</title>{% renderbody %}</html>",
    )
    site.template(
        "posts_list",
        "{% layout 'layout' %}\n<ul>{% for post in Target.Items %}"
        '<li><a href="{{ post.RoutePath }}.html">{{ post.Title }}</a></li>'
        "{% endfor %}</ul>",
    )
    site.template("post_detail", "{% layout 'layout' %}<article>{{ Target.Title }}</article>")
    site.template("home", "{% layout 'layout' %}<h1>{{ Target.Title }}</h1>")
    site.fixture(
        "posts",
        {
            "liquid_file": "posts_list",
            "Target": {
                "Items": [
                    {
                        "Title": "Hello",
                        "RoutePath": "posts_hello",
                        "detail_liquid_file": "post_detail",
                    },
                    {"Title": "Draft", "RoutePath": "posts_draft"},
                ]
            },
            "CurrentOrganization": {"OrganizationName": "Acme", "TimeZone": "UTC"},
        },
    )
    site.fixture(
        "site-pages",
        {
            "Pages": [
                {"Title": "Home", "RoutePath": "home", "WebTemplateDeveloperName": "home"},
                {"Title": "About", "RoutePath": "about", "WebTemplateDeveloperName": "home"},
            ]
        },
    )
    site.fixture(
        "menus",
        {
            "Menus": [
                {
                    "DeveloperName": "main_nav",
                    "IsMainMenu": True,
                    "MenuItems": [{"Label": "Home", "Url": "/"}],
                }
            ]
        },
    )
    return site


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
