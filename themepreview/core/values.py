"""Template value model for schema-free fixture data.

Fixture JSON is carried into templates as plain Python values drawn from a
closed set: ``None``, ``bool``, ``int``, ``float``, ``str``, ``list`` and
``dict``. The helpers here convert into and out of that set and implement the
platform's member lookup and string conversion rules.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Mapping, Sequence
from typing import Any, Union

from jinja2 import Undefined
from pydantic import BaseModel

JsonValue = Union[None, bool, int, float, str, list["JsonValue"], dict[str, "JsonValue"]]

_MISSING = object()


def from_json(value: Any) -> JsonValue:
    """Normalize decoded JSON (or JSON-like data) into the template value set.

    Objects become dicts with string keys, arrays become lists and scalars keep
    their type. Anything outside the closed set is rejected.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Mapping):
        return {str(key): from_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [from_json(item) for item in value]
    raise TypeError(f"Unsupported fixture value of type {type(value).__name__}")


def to_plain(value: Any) -> Any:
    """Convert a template-side value back into JSON-serializable data."""
    if isinstance(value, Undefined):
        return None
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, BaseModel):
        return to_plain(value.model_dump(by_alias=True))
    if isinstance(value, (dt.datetime, dt.date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(key): to_plain(item) for key, item in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [to_plain(item) for item in value]
    return str(value)


def to_liquid_string(value: Any) -> str:
    """Render a value the way the platform stringifies it for output and keys."""
    if value is None or isinstance(value, Undefined):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def get_member(value: Any, name: str, default: Any = _MISSING) -> Any:
    """Look up a single member on a template value.

    Mappings are searched by key, sequences by integer index, anything else by
    attribute. Raises ``LookupError`` when the member is absent and no default
    was given.
    """
    if isinstance(value, Mapping):
        if name in value:
            return value[name]
    elif isinstance(value, Sequence) and not isinstance(value, str):
        try:
            return value[int(name)]
        except (ValueError, IndexError):
            pass
    elif value is not None and not isinstance(value, Undefined):
        if not name.startswith("_") and hasattr(value, name):
            return getattr(value, name)

    if default is _MISSING:
        raise LookupError(name)
    return default


def lookup_path(value: Any, path: str) -> Any:
    """Resolve a dot-delimited member path such as ``Author.Name``."""
    current = value
    for part in path.split("."):
        current = get_member(current, part)
    return current
