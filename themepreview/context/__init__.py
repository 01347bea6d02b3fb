from .builder import (
    build_detail_context,
    build_list_context,
    build_page_context,
    resolve_timezone,
)

__all__ = [
    "build_detail_context",
    "build_list_context",
    "build_page_context",
    "resolve_timezone",
]
