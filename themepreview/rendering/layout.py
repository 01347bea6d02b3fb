"""Parent-layout markers: ``{% layout 'name' %}`` and ``{% renderbody %}``."""

from __future__ import annotations

import re

LAYOUT_TAG = re.compile(r"\{%-?\s*layout\s+['\"]([^'\"]+)['\"]\s*-?%\}", re.IGNORECASE)
RENDERBODY_TAG = re.compile(r"\{%-?\s*renderbody\s*-?%\}", re.IGNORECASE)
ENDRAW_TAG = re.compile(r"\{%[-+]?\s*endraw\s*[-+]?%\}")


def find_parent(source: str) -> str | None:
    """Return the parent layout declared by ``source``, if any."""
    match = LAYOUT_TAG.search(source)
    return match.group(1).strip() if match else None


def extract_layout(source: str) -> tuple[str, str | None]:
    """Split a template into its body and declared parent layout name.

    Every layout declaration is removed; the first one names the parent.
    """
    parent = find_parent(source)
    if parent is None:
        return source, None
    return LAYOUT_TAG.sub("", source).lstrip(), parent


def is_base_layout(source: str) -> bool:
    return RENDERBODY_TAG.search(source) is not None


def splice_body(layout_source: str, content: str) -> tuple[str, bool]:
    """Replace the body-injection marker with already rendered child content.

    The content is wrapped in a raw block so it is emitted verbatim when the
    layout executes. Returns the spliced source and whether a marker was found.
    """
    if not is_base_layout(layout_source):
        return layout_source, False
    escaped = ENDRAW_TAG.sub(
        lambda m: "{% endraw %}{{ " + repr(m.group(0)) + " }}{% raw %}", content
    )
    protected = "{% raw %}" + escaped + "{% endraw %}" if content else ""
    return RENDERBODY_TAG.sub(lambda _: protected, layout_source), True
