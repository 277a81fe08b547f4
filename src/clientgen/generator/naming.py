"""Deterministic naming conventions for emitted declarations.

Model documents name things the way the remote API does: ``snake_case`` or
``kebab-case`` for properties and parameters (``created_at``,
``project-id``), ``PascalCase`` for types and operations (``Project``,
``GetProjectIssues``). :class:`NamingConventions` converts those tokens into
the names a declaration of a given *role* should carry in the emitted code.

All conversions are pure functions of their input: the same model always
yields the same names, which the byte-identical output guarantee of
:func:`~clientgen.generator.driver.generate` depends on.

**Role mapping**

========================  ======================  ==================
Role                      Example input           Output
========================  ======================  ==================
type                      ``Project``             ``Project``
property                  ``createdAt``           ``created_at``
field                     ``created_at``          ``_created_at``
argument                  ``project-id``          ``project_id``
method                    ``GetProjectIssues``    ``get_project_issues``
enumeration member        ``developer``           ``DEVELOPER``
conversion                ``Project``             ``from_project``
========================  ======================  ==================
"""

from __future__ import annotations

import keyword
import re

# Matches any character that is not alphanumeric or underscore.
_INVALID_IDENT_RE = re.compile(r"[^a-zA-Z0-9_]")


def split_words(name: str) -> list[str]:
    """Split *name* into lowercase words.

    Separators (``_``, ``-``, ``.``, spaces) and CamelCase boundaries both
    delimit words; acronym runs stay together (``HTTPMethod`` gives
    ``["http", "method"]``).

    Example::

        >>> split_words("GetProjectIssues")
        ['get', 'project', 'issues']
        >>> split_words("merge-request_id")
        ['merge', 'request', 'id']
    """
    result = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    result = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", result)
    result = _INVALID_IDENT_RE.sub("_", result)
    return [word.lower() for word in result.split("_") if word]


def to_snake_case(name: str) -> str:
    return "_".join(split_words(name))


def to_pascal_case(name: str) -> str:
    return "".join(word[0].upper() + word[1:] for word in split_words(name))


def to_camel_case(name: str) -> str:
    pascal = to_pascal_case(name)
    return pascal[:1].lower() + pascal[1:]


def remove_word(name: str, word: str) -> str:
    """Remove every case-insensitive occurrence of *word* from *name*.

    Example::

        >>> remove_word("GetProjectIssues", "Project")
        'GetIssues'
        >>> remove_word("ListPROJECTMembers", "project")
        'ListMembers'
    """
    if not word:
        return name
    return re.sub(re.escape(word), "", name, flags=re.IGNORECASE)


def _identifier(text: str, fallback: str) -> str:
    if not text:
        text = fallback
    if text[0].isdigit():
        text = f"_{text}"
    if keyword.iskeyword(text):
        text = f"{text}_"
    return text


class NamingConventions:
    """Map model tokens to emitted names by declaration role.

    Instances carry no state; the class exists so a backend can subclass it
    and override single roles.
    """

    def type_name(self, name: str) -> str:
        """Type names are declared in PascalCase already and are kept verbatim."""
        return name

    def property_name(self, name: str) -> str:
        return _identifier(to_snake_case(name), "value")

    def field_name(self, name: str) -> str:
        return f"_{to_snake_case(name) or 'value'}"

    def argument_name(self, name: str) -> str:
        return _identifier(to_snake_case(name), "arg")

    def method_name(self, name: str) -> str:
        return _identifier(to_snake_case(name), "call")

    def member_name(self, name: str) -> str:
        return _identifier(to_snake_case(name).upper(), "MEMBER")

    def conversion_name(self, source: str) -> str:
        """Name of the converting constructor accepting a *source* value."""
        return f"from_{to_snake_case(source)}"

    def setter_name(self, name: str) -> str:
        return f"_set_{self.property_name(name).rstrip('_')}"
