"""Jinja2 environment configured to behave like the platform's tag engine."""

from __future__ import annotations

import datetime as dt
from collections.abc import Callable, Mapping, Sequence, Sized
from typing import Any

from jinja2 import BaseLoader, ChainableUndefined, Environment, TemplateNotFound, Undefined
from jinja2.runtime import Context
from jinja2.utils import Namespace, missing

from ..core.errors import TemplateNotFound as PreviewTemplateNotFound
from ..core.values import to_liquid_string
from .dialect import ASSIGNED_NAMESPACE, TRUTHY, translate
from .filters import build_filters


class _Emptiness:
    """Comparison target for the platform's ``empty`` and ``blank`` literals."""

    def __init__(self, name: str, *, blank: bool) -> None:
        self.name = name
        self.blank = blank

    def __eq__(self, other: object) -> bool:
        if isinstance(other, _Emptiness):
            return True
        if other is None or isinstance(other, Undefined) or other is False:
            return self.blank
        if isinstance(other, str):
            return (other.strip() if self.blank else other) == ""
        if isinstance(other, (Mapping, Sequence)):
            return len(other) == 0
        return False

    def __ne__(self, other: object) -> bool:
        return not self.__eq__(other)

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        return ""

    def __repr__(self) -> str:
        return self.name


class NilUndefined(ChainableUndefined):
    """Missing value that compares equal to nil, as on the platform."""

    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        if isinstance(other, _Emptiness):
            return other == self
        return other is None or isinstance(other, Undefined)

    def __ne__(self, other: object) -> bool:
        return not self.__eq__(other)

    __hash__ = ChainableUndefined.__hash__


EMPTY = _Emptiness("empty", blank=False)
BLANK = _Emptiness("blank", blank=True)


def contains(container: Any, item: Any) -> bool:
    """Test behind the ``contains`` operator; nil never contains anything."""
    if container is None or isinstance(container, Undefined):
        return False
    if isinstance(container, str):
        return to_liquid_string(item) in container
    if isinstance(container, Mapping):
        return item in container
    try:
        return any(element == item for element in container)
    except TypeError:
        return False


def truthy(value: Any) -> bool:
    """Condition test of the platform: only nil and false are falsy."""
    return value is not None and value is not False and not isinstance(value, Undefined)


def new_assignments() -> Namespace:
    """Namespace receiving every ``assign`` and ``capture`` of one render."""
    return Namespace()


class AssignmentContext(Context):
    """Context that also resolves names assigned earlier in the render.

    A layout or include reads what the child template assigned, since each
    template only rewrites the names it assigns itself.
    """

    def resolve_or_missing(self, key: str) -> Any:
        value = super().resolve_or_missing(key)
        if value is missing and key != ASSIGNED_NAMESPACE:
            assignments = super().resolve_or_missing(ASSIGNED_NAMESPACE)
            if isinstance(assignments, Namespace):
                value = getattr(assignments, key, missing)
        return value


class TemplateSourceLoader(BaseLoader):
    """Loads ``{% include %}`` targets through a callable, translating them."""

    def __init__(self, load_source: Callable[[str], tuple[str, str]]) -> None:
        self.load_source = load_source

    def get_source(
        self, environment: Environment, template: str
    ) -> tuple[str, str | None, Callable[[], bool] | None]:
        try:
            source, filename = self.load_source(template)
        except PreviewTemplateNotFound as e:
            raise TemplateNotFound(template) from e
        return translate(source), filename, lambda: True


class PreviewEnvironment(Environment):
    """Environment with the platform's member-access rules.

    Mapping keys win over attributes, so fixture keys named ``items`` or
    ``keys`` stay reachable, and ``size``/``first``/``last`` work on sequences,
    strings and mappings. ``first``/``last`` of a mapping is a
    ``[key, value]`` pair.
    """

    context_class = AssignmentContext

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, Mapping):
            if attribute in obj:
                return obj[attribute]
            if attribute == "size":
                return len(obj)
            if attribute in ("first", "last"):
                pair = _end(list(obj.items()), attribute)
                return list(pair) if pair is not None else None
        elif isinstance(obj, Sequence):
            if attribute == "size":
                return len(obj)
            if attribute in ("first", "last"):
                return _end(obj, attribute)
        elif isinstance(obj, Sized) and attribute == "size":
            return len(obj)
        return super().getattr(obj, attribute)


def _end(values: Sequence[Any], attribute: str) -> Any:
    if not values:
        return None
    return values[0 if attribute == "first" else -1]


def build_environment(
    tz: dt.tzinfo,
    functions: Mapping[str, Callable[..., Any]],
    load_source: Callable[[str], tuple[str, str]] | None = None,
) -> PreviewEnvironment:
    """Create the environment for one engine.

    Args:
        tz: Time zone used by ``organization_time``
        functions: Template-callable query functions
        load_source: Resolves include names to ``(source, filename)``

    Returns:
        Configured environment
    """
    env = PreviewEnvironment(
        loader=TemplateSourceLoader(load_source) if load_source else None,
        undefined=NilUndefined,
        autoescape=False,
        keep_trailing_newline=True,
        finalize=to_liquid_string,
        extensions=["jinja2.ext.loopcontrols"],
    )
    env.filters.update(build_filters(tz))
    env.tests["contains"] = contains
    env.globals.update(functions)
    env.globals.update({"nil": None, "empty": EMPTY, "blank": BLANK, TRUTHY: truthy})
    return env
