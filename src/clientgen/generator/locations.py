"""Decide whether an operation parameter travels in the URL or in the body.

Resolution order (first match wins):

1. An explicit ``url`` or ``body`` location on the parameter is returned
   verbatim.
2. If the URL template contains ``:name/`` or ends with ``:name``, the
   parameter is a path placeholder and belongs to the URL. Path placeholders
   win over verb-based defaults, so a resource identifier embedded in the
   path is never duplicated into the body.
3. Otherwise the method type decides: ``get`` and ``get_paged`` put
   everything in the URL (query string), ``put``, ``post`` and ``delete``
   put it in the body.

Rule 2 is a plain substring test. :func:`placeholder_tokens` and
:func:`unterminated_placeholders` give the exact token view of a template so
:mod:`clientgen.registry.validation` can report placeholders the substring
test would silently miss.
"""

from __future__ import annotations

import re

from clientgen.exceptions import ModelDefinitionError
from clientgen.models import Method, MethodParameter, MethodType, ParameterLocation

# A placeholder is a colon followed by an identifier; ports (":8080") never match.
_PLACEHOLDER_RE = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")

_DEFAULT_LOCATIONS: dict[MethodType, ParameterLocation] = {
    MethodType.GET: ParameterLocation.URL,
    MethodType.GET_PAGED: ParameterLocation.URL,
    MethodType.PUT: ParameterLocation.BODY,
    MethodType.POST: ParameterLocation.BODY,
    MethodType.DELETE: ParameterLocation.BODY,
}


def template_mentions(template: str, name: str) -> bool:
    """Return ``True`` if *template* holds ``:name/`` or ends with ``:name``."""
    return f":{name}/" in template or template.endswith(f":{name}")


def placeholder_tokens(template: str) -> list[str]:
    """Return the placeholder names of *template* in order of appearance.

    Example::

        >>> placeholder_tokens("/projects/:id/issues/:issue_iid")
        ['id', 'issue_iid']
    """
    return [match.group(1) for match in _PLACEHOLDER_RE.finditer(template)]


def unterminated_placeholders(template: str) -> list[str]:
    """Return placeholders followed by something other than ``/`` or end of template."""
    found: list[str] = []
    for match in _PLACEHOLDER_RE.finditer(template):
        end = match.end()
        if end < len(template) and template[end] != "/":
            found.append(match.group(1))
    return found


class ParameterLocationResolver:
    """Resolve the :class:`~clientgen.models.ParameterLocation` of each parameter."""

    def resolve(self, method: Method, parameter: MethodParameter) -> ParameterLocation:
        """Return :attr:`ParameterLocation.URL` or :attr:`ParameterLocation.BODY`.

        Raises:
            ModelDefinitionError: If the method type has no default location.
                This only happens for a malformed model and aborts generation.
        """
        if parameter.location != ParameterLocation.DEFAULT:
            return parameter.location

        if template_mentions(method.url_template, parameter.name):
            return ParameterLocation.URL

        try:
            return _DEFAULT_LOCATIONS[method.method_type]
        except KeyError:
            raise ModelDefinitionError(
                f"Method {method.name}: method type {method.method_type!r} is not supported"
            ) from None

    def url_parameters(self, method: Method) -> list[MethodParameter]:
        return [
            p for p in method.parameters
            if self.resolve(method, p) == ParameterLocation.URL
        ]

    def body_parameters(self, method: Method) -> list[MethodParameter]:
        return [
            p for p in method.parameters
            if self.resolve(method, p) == ParameterLocation.BODY
        ]
