"""Utility functions."""

from estate_catalog.utils.helpers import (
    capitalize_first,
    clean_text,
    coerce_bool,
    format_grouped,
    format_plain,
    parse_int,
    parse_number,
)
from estate_catalog.utils.media import file_type_category, is_allowed_file, resolve_media_url

__all__ = [
    "capitalize_first",
    "clean_text",
    "coerce_bool",
    "format_grouped",
    "format_plain",
    "parse_int",
    "parse_number",
    "file_type_category",
    "is_allowed_file",
    "resolve_media_url",
]
