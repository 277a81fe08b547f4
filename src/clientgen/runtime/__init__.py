"""Runtime support imported by generated client modules.

Everything a generated module references by name is re-exported here, so the
module needs a single ``from <runtime_module> import ...`` line. The default
runtime module is ``clientgen.runtime``; a project can point
``runtime_module`` at its own package re-exporting the same names.
"""

from clientgen.runtime.cancellation import CancellationToken
from clientgen.runtime.client import BaseApiClient
from clientgen.runtime.objects import ApiObject, Reference, convert_value, to_json_value
from clientgen.runtime.paging import OrderBy, PagedResponse, PageOptions, SortDirection
from clientgen.runtime.path import PathWithNamespace, PathWithNamespaceConverter
from clientgen.runtime.serialization import implicit_conversion, json_property, string_enum
from clientgen.runtime.url import UrlBuilder

__all__ = [
    "ApiObject",
    "BaseApiClient",
    "CancellationToken",
    "OrderBy",
    "PageOptions",
    "PagedResponse",
    "PathWithNamespace",
    "PathWithNamespaceConverter",
    "Reference",
    "SortDirection",
    "UrlBuilder",
    "convert_value",
    "implicit_conversion",
    "json_property",
    "string_enum",
    "to_json_value",
]
