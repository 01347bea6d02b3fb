"""Error taxonomy shared across the renderer."""

from __future__ import annotations


class PreviewError(Exception):
    """Base class for all renderer errors."""


class TemplateNotFound(PreviewError):
    """Raised when a layout, detail or entry template file does not exist."""

    def __init__(self, name: str, directory: object | None = None) -> None:
        self.name = name
        self.directory = directory
        where = f" in {directory}" if directory is not None else ""
        super().__init__(f"Template not found: {name!r}{where}")


class TemplateSyntaxError(PreviewError):
    """Raised when a template contains a malformed tag or expression."""

    def __init__(self, name: str, message: str, lineno: int | None = None) -> None:
        self.name = name
        self.lineno = lineno
        location = f"{name}:{lineno}" if lineno else name
        super().__init__(f"Template syntax error in {location}: {message}")


class TemplateRenderError(PreviewError):
    """Raised when a syntactically valid template fails while executing."""

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        super().__init__(f"Template {name} failed to render: {message}")


class LayoutCycleError(PreviewError):
    """Raised when a parent-layout chain loops or exceeds the depth bound."""

    def __init__(self, chain: list[str], reason: str = "cycle") -> None:
        self.chain = list(chain)
        super().__init__(f"Layout {reason} detected: {' -> '.join(self.chain)}")


class DuplicateTemplateError(PreviewError):
    """Raised when two template files map to the same developer name."""


class TemplateReadError(PreviewError):
    """Raised when a template file exists but is not valid UTF-8 text."""

    def __init__(self, path: object, message: str) -> None:
        self.path = path
        super().__init__(f"Failed to read template {path}: {message}")


class FixtureReadError(PreviewError):
    """Raised when a fixture file cannot be read or is not valid JSON."""

    def __init__(self, path: object, message: str) -> None:
        self.path = path
        super().__init__(f"Failed to read fixture {path}: {message}")


class OutputWriteError(PreviewError):
    """Raised when an artifact cannot be written to the output directory."""
