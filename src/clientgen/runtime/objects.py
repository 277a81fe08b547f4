"""Base classes of generated entities and identifier wrappers.

:class:`ApiObject` populates generated entities from JSON. It walks the
properties carrying :func:`~clientgen.runtime.serialization.json_property`
metadata, converts each raw value according to the getter's return
annotation (or the declared converter) and stores it through the private
``_set_<name>`` setter the generator emits next to every property.

:class:`Reference` is the base of identifier wrappers. Its
:meth:`~Reference.coerce` accepts the wrapper itself or any value one of the
wrapper's implicit conversions admits.
"""

from __future__ import annotations

import collections.abc
import datetime
import enum
import typing
from typing import Any, Callable, Mapping, Optional, Union

from clientgen.runtime.serialization import (
    IMPLICIT_SOURCE_ATTR,
    JsonPropertyInfo,
    enum_from_json,
    enum_to_json,
    json_property_info,
)

_SEQUENCE_ORIGINS = (
    collections.abc.Sequence,
    collections.abc.Iterable,
    list,
    tuple,
)

_JsonProperty = tuple[str, property, JsonPropertyInfo]
_PROPERTY_CACHE: dict[type, list[_JsonProperty]] = {}


class Reference:
    """A value type wrapping one primitive identifier."""

    def __init__(self, value: Any) -> None:
        self._value = value

    @property
    def value(self) -> Any:
        return self._value

    @classmethod
    def conversions(cls) -> list[tuple[type, Callable[[Any], Reference]]]:
        """Return ``(source type, conversion)`` pairs in declaration order."""
        found: list[tuple[type, Callable[[Any], Reference]]] = []
        for klass in reversed(cls.__mro__):
            for name, attr in vars(klass).items():
                func = attr.__func__ if isinstance(attr, (staticmethod, classmethod)) else attr
                source = getattr(func, IMPLICIT_SOURCE_ATTR, None)
                if source is not None:
                    found.append((source, getattr(cls, name)))
        return found

    @classmethod
    def coerce(cls, value: Any) -> Reference:
        """Convert *value* into an instance of this wrapper.

        Raises:
            TypeError: If *value* is ``None`` or no conversion accepts its type.
        """
        if isinstance(value, cls):
            return value
        if value is None:
            raise TypeError(f"Cannot convert None to {cls.__name__}")
        for source, convert in cls.conversions():
            if isinstance(value, source):
                return convert(value)
        raise TypeError(f"Cannot convert {type(value).__name__} to {cls.__name__}")

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._value == other._value  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), self._value))

    def __str__(self) -> str:
        return str(self._value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"


class ApiObject:
    """Base class of generated entities.

    Args:
        client: The API client the object came from. Extension operations
            call back into it.
    """

    def __init__(self, client: Optional[Any] = None) -> None:
        self.client = client
        for name, _prop, _info in _json_properties(type(self)):
            self._store(name, None)

    @classmethod
    def from_json(cls, data: Mapping[str, Any], client: Optional[Any] = None) -> Any:
        """Build an instance from a decoded JSON object; unknown keys are ignored."""
        obj = cls(client)
        for name, prop, info in _json_properties(cls):
            if info.name not in data:
                continue
            raw = data[info.name]
            if raw is None:
                value = None
            elif info.converter is not None:
                value = info.converter.read_json(raw)
            else:
                value = convert_value(raw, _return_hint(prop), client)
            obj._store(name, value)
        return obj

    def to_json(self) -> dict[str, Any]:
        return {
            info.name: to_json_value(getattr(self, name))
            for name, _prop, info in _json_properties(type(self))
        }

    def _store(self, name: str, value: Any) -> None:
        getattr(self, f"_set_{name.rstrip('_')}")(value)

    def __repr__(self) -> str:
        fields = ", ".join(
            f"{name}={getattr(self, name)!r}" for name, _p, _i in _json_properties(type(self))
        )
        return f"{type(self).__name__}({fields})"


def _json_properties(cls: type) -> list[_JsonProperty]:
    cached = _PROPERTY_CACHE.get(cls)
    if cached is not None:
        return cached

    found: dict[str, _JsonProperty] = {}
    for klass in reversed(cls.__mro__):
        for name, attr in vars(klass).items():
            if isinstance(attr, property):
                info = json_property_info(attr.fget)
                if info is not None:
                    found[name] = (name, attr, info)
    result = list(found.values())
    _PROPERTY_CACHE[cls] = result
    return result


def _return_hint(prop: property) -> Any:
    return typing.get_type_hints(prop.fget).get("return", Any)


def convert_value(raw: Any, hint: Any, client: Optional[Any] = None) -> Any:
    """Convert a decoded JSON value to the Python type described by *hint*."""
    if raw is None or hint is Any or hint is object:
        return raw

    origin = typing.get_origin(hint)
    if origin is Union:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        return convert_value(raw, args[0], client) if len(args) == 1 else raw
    if origin in _SEQUENCE_ORIGINS:
        args = typing.get_args(hint)
        element = args[0] if args else Any
        return tuple(convert_value(item, element, client) for item in raw)
    if origin is not None or not isinstance(hint, type):
        return raw

    if issubclass(hint, ApiObject):
        return hint.from_json(raw, client)
    if issubclass(hint, enum.Enum):
        return enum_from_json(hint, raw)
    if issubclass(hint, Reference):
        return hint(raw)
    if hint is datetime.datetime:
        return datetime.datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if hint is datetime.date:
        return datetime.date.fromisoformat(raw[:10])
    if hint is datetime.timedelta:
        return datetime.timedelta(seconds=raw)
    if hint in (bool, int, float, str):
        return hint(raw)
    if hasattr(hint, "from_json"):
        return hint.from_json(raw)
    return raw


def to_json_value(value: Any) -> Any:
    """Convert *value* into something :mod:`json` can encode."""
    if isinstance(value, ApiObject):
        return value.to_json()
    if isinstance(value, Reference):
        return to_json_value(value.value)
    if isinstance(value, enum.Enum):
        return enum_to_json(value)
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, datetime.timedelta):
        return value.total_seconds()
    if isinstance(value, Mapping):
        return {str(k): to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    if hasattr(value, "to_json"):
        return value.to_json()
    return value
