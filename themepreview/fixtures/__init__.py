from .queries import ContentQueries
from .repository import (
    MENUS_FIXTURE,
    RESERVED_FIXTURES,
    SITE_PAGES_FIXTURE,
    FixtureRepository,
    JsonFixtureRepository,
)

__all__ = [
    "ContentQueries",
    "FixtureRepository",
    "JsonFixtureRepository",
    "MENUS_FIXTURE",
    "RESERVED_FIXTURES",
    "SITE_PAGES_FIXTURE",
]
