"""Emission backends -- translate the neutral IR into target source code.

A backend receives a finished :class:`~clientgen.ir.CompilationUnit` and
returns the text of one source file. Backends are looked up by name through
:func:`get_backend`; :class:`~clientgen.backends.python.PythonBackend` is
registered as ``python`` (alias ``py``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from clientgen import ir
from clientgen.exceptions import BackendError
from clientgen.models import GeneratorConfig


class Backend(ABC):
    """Abstract base class for all emission backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the target name (e.g. ``'python'``)."""

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Return the extension of emitted files (e.g. ``'.py'``)."""

    @abstractmethod
    def render(self, unit: ir.CompilationUnit, config: GeneratorConfig) -> str:
        """Render *unit* as the text of one source file.

        Raises:
            BackendError: If the unit cannot be expressed in the target.
        """


_BACKENDS: dict[str, type[Backend]] = {}
_ALIASES: dict[str, str] = {}


def register_backend(name: str, backend: type[Backend], aliases: tuple[str, ...] = ()) -> None:
    """Register *backend* under *name* and optional aliases (case-insensitive)."""
    if not issubclass(backend, Backend):
        raise BackendError(f"Backend class {backend.__name__} must inherit from Backend")
    key = name.lower()
    _BACKENDS[key] = backend
    for alias in aliases:
        _ALIASES[alias.lower()] = key


def available_backends() -> list[str]:
    return sorted(_BACKENDS)


def get_backend(name: str) -> Backend:
    """Instantiate the backend registered as *name*.

    Raises:
        BackendError: If no backend of that name is registered.
    """
    key = name.lower()
    key = _ALIASES.get(key, key)
    try:
        backend = _BACKENDS[key]
    except KeyError:
        raise BackendError(
            f"Unknown target '{name}'. Available targets: {', '.join(available_backends())}"
        ) from None
    return backend()


def _register_builtin_backends() -> None:
    from clientgen.backends.python import PythonBackend

    register_backend("python", PythonBackend, aliases=("py",))


_register_builtin_backends()

__all__ = ["Backend", "available_backends", "get_backend", "register_backend"]
