"""Read access to the JSON fixtures of a site."""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Protocol

from ..core.errors import FixtureReadError

logger = logging.getLogger(__name__)

MENUS_FIXTURE = "menus"
SITE_PAGES_FIXTURE = "site-pages"
RESERVED_FIXTURES = frozenset({MENUS_FIXTURE, SITE_PAGES_FIXTURE})


def is_reserved(path: Path) -> bool:
    return path.stem.lower() in RESERVED_FIXTURES


class FixtureRepository(Protocol):
    """Source of fixture documents, addressed by name without extension."""

    def load(self, name: str) -> Any | None:
        """Return the decoded document, ``None`` if it does not exist.

        Raises:
            FixtureReadError: The document exists but cannot be decoded.
        """
        ...

    def content_names(self) -> list[str]:
        """Return the non-reserved fixture names in deterministic order."""
        ...


def read_json(path: Path) -> Any:
    """Decode one JSON file.

    Raises:
        FixtureReadError: The file cannot be read or is not valid JSON.
    """
    try:
        return json.loads(path.read_text(encoding="utf-8-sig"))
    except OSError as e:
        raise FixtureReadError(path, e.strerror or str(e)) from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FixtureReadError(path, str(e)) from e


class JsonFixtureRepository:
    """Fixture repository backed by ``<name>.json`` files in one directory.

    Decoded documents are cached per path for the lifetime of the instance,
    and every ``load`` hands out a deep copy so templates cannot alter the
    cached data.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self._cache: dict[Path, Any] = {}

    def path_for(self, name: str) -> Path:
        return self.directory / f"{name}.json"

    def load(self, name: str) -> Any | None:
        if not name or "/" in name or "\\" in name or name.startswith("."):
            return None
        path = self.path_for(name)
        key = path.resolve()
        if key not in self._cache:
            if not path.is_file():
                return None
            logger.debug(f"Loading fixture {path}")
            self._cache[key] = read_json(path)
        return copy.deepcopy(self._cache[key])

    def content_names(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(
            path.stem
            for path in self.directory.glob("*.json")
            if path.is_file() and not is_reserved(path)
        )
