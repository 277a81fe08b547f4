"""URL building for generated clients.

Generated operations seed a :class:`UrlBuilder` from the operation's URL
template and append one value per URL-located parameter. A key naming a
``:placeholder`` of the template replaces it (URL-encoded); any other key
becomes a query parameter. ``None`` values are skipped, so optional
arguments can be appended unconditionally.

Example::

    >>> UrlBuilder.get("/projects/:id/issues").with_value("id", "group/app").with_value(
    ...     "state", "opened").with_value("labels", None).build()
    '/projects/group%2Fapp/issues?state=opened'
"""

from __future__ import annotations

import datetime
import enum
import re
from typing import Any
from urllib.parse import quote

import httpx

from clientgen.runtime.objects import Reference
from clientgen.runtime.serialization import enum_to_json


def _placeholder(key: str) -> re.Pattern[str]:
    return re.compile(rf":{re.escape(key)}(?![A-Za-z0-9_])")


def format_value(value: Any) -> str:
    """Render a single value the way the API expects it in a URL."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Reference):
        return format_value(value.value)
    if isinstance(value, enum.Enum):
        return format_value(enum_to_json(value))
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return str(value)


class UrlBuilder:
    """Accumulate placeholder substitutions and query parameters for one URL."""

    def __init__(self, template: str) -> None:
        self._template = template
        self._values: list[tuple[str, Any]] = []

    @classmethod
    def get(cls, template: str) -> UrlBuilder:
        return cls(template)

    def with_value(self, key: str, value: Any) -> UrlBuilder:
        if value is not None:
            self._values.append((key, value))
        return self

    def build(self) -> str:
        path = self._template
        query: list[tuple[str, str]] = []

        for key, value in self._values:
            pattern = _placeholder(key)
            if pattern.search(path):
                encoded = quote(format_value(value), safe="")
                path = pattern.sub(lambda _match: encoded, path)
            elif isinstance(value, (list, tuple)):
                query.extend((f"{key}[]", format_value(item)) for item in value)
            else:
                query.append((key, format_value(value)))

        if not query:
            return path
        separator = "&" if "?" in path else "?"
        return f"{path}{separator}{httpx.QueryParams(query)}"
