"""Template filters: platform extensions plus standard filters the engine lacks."""

from __future__ import annotations

import datetime as dt
import functools
import json
import logging
import re
from collections.abc import Callable, Iterable, Mapping, Sized
from pathlib import PurePosixPath
from typing import Any
from urllib.parse import quote_plus

from jinja2 import Undefined

from ..core.values import lookup_path, to_liquid_string, to_plain

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset(
    {".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".bmp", ".ico"}
)
IMAGE_PLACEHOLDER_URL = "https://placehold.co/400x300/e2e8f0/64748b?text=Image+Placeholder"
FILE_PLACEHOLDER_URL = "https://placehold.co/200x200/f1f5f9/475569?text=File"

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_DIRECTIVE = re.compile(r"%([a-zA-Z%])")
_TAGS = re.compile(r"<script.*?</script>|<style.*?</style>|<!--.*?-->|<[^>]*>", re.S | re.I)
_FALLBACK_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y",
    "%B %d, %Y",
    "%d %B %Y",
)


def _hour12(value: dt.datetime) -> int:
    return value.hour % 12 or 12


_DIRECTIVES: dict[str, Callable[[dt.datetime], str]] = {
    "Y": lambda d: f"{d.year:04d}",
    "y": lambda d: f"{d.year % 100:02d}",
    "m": lambda d: f"{d.month:02d}",
    "d": lambda d: f"{d.day:02d}",
    "e": lambda d: str(d.day),
    "H": lambda d: f"{d.hour:02d}",
    "I": lambda d: f"{_hour12(d):02d}",
    "l": lambda d: str(_hour12(d)),
    "M": lambda d: f"{d.minute:02d}",
    "S": lambda d: f"{d.second:02d}",
    "p": lambda d: "AM" if d.hour < 12 else "PM",
    "P": lambda d: "AM" if d.hour < 12 else "PM",
    "b": lambda d: MONTH_NAMES[d.month - 1][:3],
    "B": lambda d: MONTH_NAMES[d.month - 1],
    "a": lambda d: DAY_NAMES[d.weekday()][:3],
    "A": lambda d: DAY_NAMES[d.weekday()],
    "c": lambda d: format_datetime(d, "%A, %B %e, %Y %l:%M:%S %p"),
    "%": lambda d: "%",
}


def format_datetime(value: dt.datetime, fmt: str) -> str:
    """Format using the supported strftime directives; others stay literal."""

    def _replace(match: re.Match[str]) -> str:
        handler = _DIRECTIVES.get(match.group(1))
        return handler(value) if handler else match.group(0)

    return _DIRECTIVE.sub(_replace, fmt)


def coerce_datetime(value: Any) -> dt.datetime | None:
    """Interpret a template value as a datetime, keeping any offset it carries."""
    if value is None or isinstance(value, (Undefined, bool)):
        return None
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        try:
            return dt.datetime.fromtimestamp(value, tz=dt.timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.lower() in ("now", "today"):
        now = dt.datetime.now(dt.timezone.utc)
        return now if text.lower() == "now" else now.replace(hour=0, minute=0, second=0, microsecond=0)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return dt.datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _FALLBACK_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_instant(value: Any) -> dt.datetime | None:
    """Interpret a template value as a UTC instant; naive values are UTC."""
    parsed = coerce_datetime(value)
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.astimezone(dt.timezone.utc)


def organization_time(
    value: Any, format: str | None = None, *, tz: dt.tzinfo
) -> dt.datetime | str | None:
    """Convert a UTC instant to the organization's time zone.

    Returns the localized datetime, or a formatted string when ``format`` is
    given. Unconvertible input yields ``None``.
    """
    instant = parse_instant(value)
    if instant is None:
        logger.debug(f"organization_time: cannot interpret {value!r} as a date")
        return None
    local = instant.astimezone(tz)
    if format and not isinstance(format, Undefined):
        return format_datetime(local, str(format))
    return local


def date(value: Any, format: str | None = None) -> Any:
    parsed = coerce_datetime(value)
    if parsed is None:
        return value
    if format and not isinstance(format, Undefined):
        return format_datetime(parsed, str(format))
    return parsed


def group_by(sequence: Any, property_path: str) -> list[dict[str, Any]]:
    """Group items by the value at a dot-delimited property path.

    Groups keep first-encountered order; an item whose path cannot be resolved
    is grouped under the empty-string key.
    """
    groups: dict[str, list[Any]] = {}
    for item in _iterate(sequence):
        try:
            key = to_liquid_string(lookup_path(item, str(property_path)))
        except LookupError:
            key = ""
        groups.setdefault(key, []).append(item)
    return [{"key": key, "items": items} for key, items in groups.items()]


def to_json(value: Any) -> str:
    return json.dumps(to_plain(value), indent=2, ensure_ascii=False)


def attachment_url(value: Any) -> str:
    """Return a placeholder URL for an attachment; real assets are never resolved."""
    name = to_liquid_string(value)
    if not name:
        return ""
    if PurePosixPath(name.split("?", 1)[0]).suffix.lower() in IMAGE_EXTENSIONS:
        return IMAGE_PLACEHOLDER_URL
    return FILE_PLACEHOLDER_URL


def _iterate(value: Any) -> Iterable[Any]:
    if value is None or isinstance(value, (Undefined, str)):
        return []
    if isinstance(value, Mapping):
        return [value]
    try:
        return list(value)
    except TypeError:
        return []


def _number(value: Any) -> int | float:
    if isinstance(value, bool) or value is None or isinstance(value, Undefined):
        return 0
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(str(value))
    except ValueError:
        return 0
    return int(number) if number.is_integer() and "." not in str(value) else number


def size(value: Any) -> int:
    if isinstance(value, Undefined) or not isinstance(value, Sized):
        return 0
    return len(value)


def append(value: Any, suffix: Any) -> str:
    return to_liquid_string(value) + to_liquid_string(suffix)


def prepend(value: Any, prefix: Any) -> str:
    return to_liquid_string(prefix) + to_liquid_string(value)


def remove(value: Any, text: Any) -> str:
    return to_liquid_string(value).replace(to_liquid_string(text), "")


def split(value: Any, separator: Any = " ") -> list[str]:
    text = to_liquid_string(value)
    separator = to_liquid_string(separator)
    if not text:
        return []
    return list(text) if separator == "" else text.split(separator)


def strip_html(value: Any) -> str:
    return _TAGS.sub("", to_liquid_string(value))


def newline_to_br(value: Any) -> str:
    return to_liquid_string(value).replace("\r\n", "\n").replace("\n", "<br />\n")


def url_encode(value: Any) -> str:
    return quote_plus(to_liquid_string(value))


def plus(value: Any, operand: Any) -> int | float:
    return _number(value) + _number(operand)


def minus(value: Any, operand: Any) -> int | float:
    return _number(value) - _number(operand)


def times(value: Any, operand: Any) -> int | float:
    return _number(value) * _number(operand)


def divided_by(value: Any, operand: Any) -> int | float:
    dividend, divisor = _number(value), _number(operand)
    if isinstance(dividend, int) and isinstance(divisor, int):
        return dividend // divisor
    return dividend / divisor


def where(sequence: Any, property_path: str, expected: Any = None) -> list[Any]:
    matches = []
    for item in _iterate(sequence):
        try:
            actual = lookup_path(item, str(property_path))
        except LookupError:
            continue
        if expected is None or isinstance(expected, Undefined):
            if actual:
                matches.append(item)
        elif actual == expected or to_liquid_string(actual) == to_liquid_string(expected):
            matches.append(item)
    return matches


def build_filters(tz: dt.tzinfo) -> dict[str, Callable[..., Any]]:
    """Return the filter table for an environment rendering in ``tz``."""
    return {
        "organization_time": functools.partial(organization_time, tz=tz),
        "groupby": group_by,
        "json": to_json,
        "attachment_redirect_url": attachment_url,
        "attachment_public_url": attachment_url,
        "date": date,
        "size": size,
        "upcase": lambda value: to_liquid_string(value).upper(),
        "downcase": lambda value: to_liquid_string(value).lower(),
        "strip": lambda value: to_liquid_string(value).strip(),
        "append": append,
        "prepend": prepend,
        "remove": remove,
        "split": split,
        "strip_html": strip_html,
        "newline_to_br": newline_to_br,
        "url_encode": url_encode,
        "plus": plus,
        "minus": minus,
        "times": times,
        "divided_by": divided_by,
        "where": where,
    }
