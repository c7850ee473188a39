"""Parsers for the ``filters`` and ``tag_names`` configuration strings."""

from __future__ import annotations

import re

from ..exceptions import ConfigurationError
from .models import FILTER_SEPARATOR, KEY_VALUE_SEPARATOR, VALUE_SEPARATOR, AttributeFilter

_FILTER_SPLIT = re.compile(rf"\s*{re.escape(FILTER_SEPARATOR)}\s*")
_KEY_VALUE_SPLIT = re.compile(rf"\s*{re.escape(KEY_VALUE_SEPARATOR)}\s*")
_VALUE_SPLIT = re.compile(rf"\s*{re.escape(VALUE_SEPARATOR)}\s*")


def parse_filters(text: str) -> list[AttributeFilter]:
    """Parse ``name1=value1,value2;name2=value3`` into attribute filters.

    Empty entries (``a=1;;b=2;``) are skipped. Empty values inside a value
    block are dropped too, so ``a=1,,2`` yields values ``("1", "2")``. Any
    entry that does not split into exactly one non-empty key and at least one
    non-empty value raises ConfigurationError quoting the entry verbatim.
    """
    filters: list[AttributeFilter] = []

    for entry in _FILTER_SPLIT.split(text):
        trimmed = entry.strip()
        if not trimmed:
            continue

        key_values = _KEY_VALUE_SPLIT.split(trimmed)
        if len(key_values) != 2 or not key_values[0] or not key_values[1]:
            raise ConfigurationError(f"Could not process key value pair '{entry}'")

        name, value_block = key_values
        values = tuple(v for v in _VALUE_SPLIT.split(value_block) if v)
        if not values:
            raise ConfigurationError(f"Could not process key value pair '{entry}'")

        filters.append(AttributeFilter(name=name, values=values))

    return filters


def parse_tag_names(text: str) -> tuple[str, ...]:
    """Split a comma separated list of tag keys.

    Entries are returned verbatim: no trimming and no removal of empty
    entries, unlike parse_filters.
    """
    return tuple(text.split(VALUE_SEPARATOR))
