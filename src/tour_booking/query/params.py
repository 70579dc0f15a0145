"""Parsing of raw query strings into request parameter mappings."""
from __future__ import annotations

import re
from typing import Any
from urllib.parse import parse_qsl

# "price[gte]" -> ("price", "gte")
_BRACKET_KEY = re.compile(r"^(?P<field>[^\[\]]+)\[(?P<op>[^\[\]]+)\]$")
_INT = re.compile(r"^[+-]?\d+$")
_FLOAT = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")


def parse_query_string(query_string: str) -> dict[str, Any]:
    """Parse `a=1&price[gte]=500` into `{"a": "1", "price": {"gte": "500"}}`.

    Values stay strings; repeated keys keep the last value.

    Args:
        query_string: Raw query string, with or without a leading `?`.

    Returns:
        Flat mapping with one level of nesting for bracketed keys.
    """
    params: dict[str, Any] = {}
    for key, value in parse_qsl(query_string.lstrip("?"), keep_blank_values=True):
        match = _BRACKET_KEY.match(key)
        if match is None:
            params[key] = value
            continue
        nested = params.get(match["field"])
        if not isinstance(nested, dict):
            nested = {}
            params[match["field"]] = nested
        nested[match["op"]] = value
    return params


def coerce_value(value: Any) -> Any:
    """Convert numeric-looking strings to int or float; leave anything else."""
    if not isinstance(value, str):
        return value
    text = value.strip()
    if _INT.match(text):
        return int(text)
    if _FLOAT.match(text):
        return float(text)
    return value
