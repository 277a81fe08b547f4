"""Serialization metadata attached to generated declarations.

Generated code describes its JSON shape with three decorators:

* :func:`json_property` -- on a property getter, names the JSON key and
  optionally a converter and a validation-bypass note.
* :func:`string_enum` -- on an enumeration, switches it to string
  serialization and names every member.
* :func:`implicit_conversion` -- on a wrapper's conversion function, names
  the source type it accepts (see :meth:`Reference.coerce
  <clientgen.runtime.objects.Reference.coerce>`).

The decorators only record metadata; :mod:`clientgen.runtime.objects` reads
it when (de)serializing.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

_F = TypeVar("_F", bound=Callable[..., Any])
_E = TypeVar("_E", bound=type)

JSON_PROPERTY_ATTR = "__json_property__"
SERIALIZATION_NAMES_ATTR = "__serialization_names__"
IMPLICIT_SOURCE_ATTR = "__implicit_source__"


@dataclass(frozen=True)
class JsonPropertyInfo:
    name: str
    converter: Optional[type] = None
    skip_validation: Optional[str] = None


def json_property(
    name: str,
    converter: Optional[type] = None,
    skip_validation: Optional[str] = None,
) -> Callable[[_F], _F]:
    """Record the JSON key (and optional converter) of a property getter.

    Args:
        name: The JSON key, used verbatim.
        converter: A class with a ``read_json(raw)`` method used instead of
            the type-driven conversion.
        skip_validation: Why the value is exempt from strict validation,
            e.g. a date without time or timezone.

    Example::

        @property
        @json_property("created_at")
        def created_at(self) -> datetime.datetime:
            return self._created_at
    """

    def decorator(func: _F) -> _F:
        setattr(func, JSON_PROPERTY_ATTR, JsonPropertyInfo(name, converter, skip_validation))
        return func

    return decorator


def json_property_info(func: Any) -> Optional[JsonPropertyInfo]:
    return getattr(func, JSON_PROPERTY_ATTR, None)


def string_enum(**names: str) -> Callable[[_E], _E]:
    """Serialize an enumeration by name; keyword arguments map members to JSON names."""

    def decorator(cls: _E) -> _E:
        setattr(cls, SERIALIZATION_NAMES_ATTR, dict(names))
        return cls

    return decorator


def implicit_conversion(source: type) -> Callable[[_F], _F]:
    """Mark a wrapper conversion function as accepting *source* values."""

    def decorator(func: _F) -> _F:
        setattr(func, IMPLICIT_SOURCE_ATTR, source)
        return func

    return decorator


def enum_to_json(member: enum.Enum) -> Any:
    """Return the JSON form of *member*: its serialization name or its value."""
    names = getattr(type(member), SERIALIZATION_NAMES_ATTR, None)
    if names is not None and member.name in names:
        return names[member.name]
    return member.value


def enum_from_json(cls: type[enum.Enum], raw: Any) -> enum.Enum:
    """Inverse of :func:`enum_to_json`.

    Raises:
        ValueError: If *raw* names no member of *cls*.
    """
    names = getattr(cls, SERIALIZATION_NAMES_ATTR, None)
    if names is not None and isinstance(raw, str):
        for member_name, json_name in names.items():
            if json_name == raw:
                return cls[member_name]
        raise ValueError(f"'{raw}' is not a serialized {cls.__name__} member")
    return cls(raw)
