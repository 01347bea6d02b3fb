"""Preparation of templates for publishing to the platform.

The layout declaration is local-only: on the platform, inheritance travels as
the ``parentTemplateDeveloperName`` field of the template record, so the
declaration is stripped from the published content. ``{% renderbody %}`` is
executed by the platform and stays.
"""

from __future__ import annotations

import re
from typing import Any

from ..rendering.layout import LAYOUT_TAG
from .store import WIDGET, Template

# ``{{ PathBase }}/{{ item.RoutePath }}.html"`` -> ``...{{ item.RoutePath }}"``
LOCAL_HTML_EXTENSION = re.compile(r"\}\}\.html(?=[\"'\s>])")


def strip_local_only_tags(content: str) -> str:
    result = LAYOUT_TAG.sub("", content)
    result = LOCAL_HTML_EXTENSION.sub("}}", result)
    return result.strip()


def publish_order(templates: list[Template]) -> list[Template]:
    """Templates without a parent first, then by developer name."""
    return sorted(
        templates,
        key=lambda template: (template.parent is not None, template.developer_name.lower()),
    )


def prepare_for_publish(template: Template) -> dict[str, Any]:
    """Build the record a sync client sends for one template."""
    record: dict[str, Any] = {
        "developerName": template.developer_name,
        "label": template.label,
        "content": strip_local_only_tags(template.content),
    }
    if template.namespace != WIDGET:
        record["isBaseLayout"] = template.is_base_layout
        record["parentTemplateDeveloperName"] = template.parent
    return record
