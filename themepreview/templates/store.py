"""Template discovery and lookup by developer name."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ..core.errors import DuplicateTemplateError, TemplateNotFound, TemplateReadError
from ..rendering.layout import find_parent, is_base_layout

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".liquid"
WIDGETS_DIRECTORY = "widgets"

WEB = "web"
WIDGET = "widget"


def format_label(developer_name: str) -> str:
    """Turn ``raytha_html_base_layout`` into ``Raytha Html Base Layout``."""
    return " ".join(word[:1].upper() + word[1:] for word in developer_name.split("_"))


def developer_name_for(path: Path) -> str:
    return path.name[: -len(TEMPLATE_SUFFIX)] if path.name.lower().endswith(TEMPLATE_SUFFIX) else path.stem


@dataclass(frozen=True)
class Template:
    developer_name: str
    path: Path
    content: str
    namespace: str = WEB

    @property
    def parent(self) -> str | None:
        return find_parent(self.content)

    @property
    def is_base_layout(self) -> bool:
        return is_base_layout(self.content)

    @property
    def label(self) -> str:
        return format_label(self.developer_name)


class TemplateStore:
    """Loads ``.liquid`` templates from a directory, caching content per path.

    Web templates live in the directory itself and widget templates in its
    ``widgets`` sub-directory; the two namespaces never resolve each other.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self._cache: dict[Path, str] = {}

    def namespace_directory(self, namespace: str = WEB) -> Path:
        if namespace == WIDGET:
            return self.directory / WIDGETS_DIRECTORY
        return self.directory

    def read(self, path: Path) -> str:
        key = path.resolve()
        if key not in self._cache:
            logger.debug(f"Reading template {path}")
            try:
                self._cache[key] = path.read_text(encoding="utf-8-sig")
            except UnicodeDecodeError as e:
                raise TemplateReadError(path, f"not valid UTF-8 ({e.reason})") from e
        return self._cache[key]

    def _files(self, namespace: str) -> list[Path]:
        directory = self.namespace_directory(namespace)
        if not directory.is_dir():
            return []
        return sorted(
            path
            for path in directory.iterdir()
            if path.is_file() and path.name.lower().endswith(TEMPLATE_SUFFIX)
        )

    def resolve(self, name: str, namespace: str = WEB) -> Path:
        """Find the file for a developer name, matching case-insensitively.

        Raises:
            TemplateNotFound: No template of that name exists.
        """
        directory = self.namespace_directory(namespace)
        if name.lower().endswith(TEMPLATE_SUFFIX):
            name = name[: -len(TEMPLATE_SUFFIX)]
        if not name or any(part in name for part in ("/", "\\")) or name.startswith("."):
            raise TemplateNotFound(name, directory)

        exact = directory / f"{name}{TEMPLATE_SUFFIX}"
        if exact.is_file():
            return exact
        wanted = name.lower()
        for path in self._files(namespace):
            if developer_name_for(path).lower() == wanted:
                return path
        raise TemplateNotFound(name, directory)

    def get(self, name: str, namespace: str = WEB) -> Template:
        path = self.resolve(name, namespace)
        return Template(developer_name_for(path), path, self.read(path), namespace)

    def source(self, name: str) -> tuple[str, str]:
        """Return ``(content, filename)`` for an include target."""
        path = self.resolve(name)
        return self.read(path), str(path)

    def discover(self, namespace: str = WEB) -> list[Template]:
        """Return every template of a namespace, ordered by developer name.

        Raises:
            DuplicateTemplateError: Two files share a developer name ignoring case.
        """
        seen: dict[str, Path] = {}
        templates = []
        for path in self._files(namespace):
            developer_name = developer_name_for(path)
            key = developer_name.lower()
            if key in seen:
                raise DuplicateTemplateError(
                    f"{namespace} templates {seen[key].name} and {path.name} "
                    f"share the developer name {developer_name!r}"
                )
            seen[key] = path
            templates.append(Template(developer_name, path, self.read(path), namespace))
        return sorted(templates, key=lambda template: template.developer_name.lower())
