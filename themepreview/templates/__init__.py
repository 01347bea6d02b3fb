from .publish import prepare_for_publish, publish_order, strip_local_only_tags
from .store import WEB, WIDGET, Template, TemplateStore, format_label

__all__ = [
    "Template",
    "TemplateStore",
    "WEB",
    "WIDGET",
    "format_label",
    "prepare_for_publish",
    "publish_order",
    "strip_local_only_tags",
]
