"""Project paths of the form ``namespace/name``."""

from __future__ import annotations

from typing import Any


class PathWithNamespace:
    """A full project path split into namespace and name.

    The split happens at the last ``/``; a path without one has an empty
    namespace.

    Example::

        >>> path = PathWithNamespace("gitlab-org/frontend/app")
        >>> path.namespace, path.name
        ('gitlab-org/frontend', 'app')
    """

    def __init__(self, full_path: str) -> None:
        self._full_path = full_path
        namespace, _sep, name = full_path.rpartition("/")
        self._namespace = namespace
        self._name = name

    @property
    def full_path(self) -> str:
        return self._full_path

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def name(self) -> str:
        return self._name

    @classmethod
    def from_json(cls, raw: Any) -> PathWithNamespace:
        return cls(str(raw))

    def to_json(self) -> str:
        return self._full_path

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PathWithNamespace):
            return self._full_path == other._full_path
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._full_path)

    def __str__(self) -> str:
        return self._full_path

    def __repr__(self) -> str:
        return f"PathWithNamespace({self._full_path!r})"


class PathWithNamespaceConverter:
    """JSON converter for properties typed :class:`PathWithNamespace`."""

    @staticmethod
    def read_json(raw: Any) -> PathWithNamespace:
        return PathWithNamespace.from_json(raw)

    @staticmethod
    def write_json(value: PathWithNamespace) -> str:
        return value.to_json()
