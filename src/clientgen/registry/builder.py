"""Assemble an immutable :class:`~clientgen.models.ModelRegistry`.

Models are declared by an explicit, ordered list of registration callables.
Each callable receives the shared :class:`RegistryBuilder` and adds its part
of the API surface; the order of the list is the declaration order of the
resulting registry::

    def register_projects(builder: RegistryBuilder) -> None:
        builder.add_entity(Entity(name="Project", properties=(...)))
        builder.add_method(Method(name="GetProject", ...))

    registry = build_registry([register_enumerations, register_projects])

:meth:`RegistryBuilder.build` checks the assembled model as a whole: names
are unique, every :class:`~clientgen.models.ModelRef` points at a declared
target of the matching kind, and entity inheritance is acyclic.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator

from clientgen.exceptions import ModelDefinitionError
from clientgen.models import (
    Entity,
    Enumeration,
    IdentifierWrapper,
    Method,
    ModelRef,
    ModelRegistry,
    TargetKind,
)

logger = logging.getLogger(__name__)

Registration = Callable[["RegistryBuilder"], None]


class RegistryBuilder:
    """Collect model declarations and produce a checked registry."""

    def __init__(self) -> None:
        self._enumerations: list[Enumeration] = []
        self._entities: list[Entity] = []
        self._wrappers: list[IdentifierWrapper] = []
        self._methods: list[Method] = []

    def add_enumeration(self, enumeration: Enumeration) -> RegistryBuilder:
        self._enumerations.append(enumeration)
        return self

    def add_entity(self, entity: Entity) -> RegistryBuilder:
        self._entities.append(entity)
        return self

    def add_wrapper(self, wrapper: IdentifierWrapper) -> RegistryBuilder:
        self._wrappers.append(wrapper)
        return self

    def add_method(self, method: Method) -> RegistryBuilder:
        self._methods.append(method)
        return self

    def build(self) -> ModelRegistry:
        """Freeze the collected declarations into a :class:`ModelRegistry`.

        Raises:
            ModelDefinitionError: On duplicate names, dangling or mistyped
                references, or an inheritance cycle.
        """
        registry = ModelRegistry(
            enumerations=tuple(self._enumerations),
            entities=tuple(self._entities),
            wrappers=tuple(self._wrappers),
            methods=tuple(self._methods),
        )
        _check_names(registry)
        _check_references(registry)
        _check_inheritance(registry)
        logger.debug(
            "Built registry: %d enumerations, %d entities, %d wrappers, %d methods",
            len(registry.enumerations),
            len(registry.entities),
            len(registry.wrappers),
            len(registry.methods),
        )
        return registry


def build_registry(registrations: Iterable[Registration]) -> ModelRegistry:
    """Run each registration callable in order and build the registry."""
    builder = RegistryBuilder()
    for register in registrations:
        register(builder)
    return builder.build()


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def _check_names(registry: ModelRegistry) -> None:
    seen: dict[str, str] = {}
    declarations = (
        [("enumeration", e.name) for e in registry.enumerations]
        + [("entity", e.name) for e in registry.entities]
        + [("wrapper", w.name) for w in registry.wrappers]
    )
    for kind, name in declarations:
        if name in seen:
            raise ModelDefinitionError(
                f"Duplicate declaration '{name}' ({seen[name]} and {kind})"
            )
        seen[name] = kind

    methods: set[str] = set()
    for method in registry.methods:
        if method.name in methods:
            raise ModelDefinitionError(f"Duplicate method '{method.name}'")
        methods.add(method.name)


def _references(registry: ModelRegistry) -> Iterator[tuple[str, ModelRef]]:
    """Yield every reference in the model with a description of where it sits."""
    for entity in registry.entities:
        for prop in entity.properties:
            yield f"{entity.name}.{prop.name}", prop.type
            if prop.json_converter is not None:
                yield f"{entity.name}.{prop.name} (converter)", prop.json_converter
    for wrapper in registry.wrappers:
        for ref in wrapper.refs:
            yield f"{wrapper.name} ref", ref.target
    for method in registry.methods:
        for parameter in method.parameters:
            yield f"{method.name}({parameter.name})", parameter.type
        if method.return_type is not None:
            yield f"{method.name} return type", method.return_type


def _check_references(registry: ModelRegistry) -> None:
    declared = {
        TargetKind.ENTITY: {e.name for e in registry.entities},
        TargetKind.ENUMERATION: {e.name for e in registry.enumerations},
        TargetKind.WRAPPER: {w.name for w in registry.wrappers},
    }

    for where, ref in _references(registry):
        names = declared.get(ref.kind)
        if names is not None and ref.target not in names:
            raise ModelDefinitionError(
                f"{where}: unknown {ref.kind.value} '{ref.target}'"
            )

    for wrapper in registry.wrappers:
        if wrapper.final_type.kind != TargetKind.PRIMITIVE or wrapper.final_type.is_collection:
            raise ModelDefinitionError(
                f"{wrapper.name}: final type must be a single primitive, got '{wrapper.final_type}'"
            )

    for entity in registry.entities:
        if entity.base_type and entity.base_type not in declared[TargetKind.ENTITY]:
            raise ModelDefinitionError(
                f"{entity.name}: unknown base entity '{entity.base_type}'"
            )


def _check_inheritance(registry: ModelRegistry) -> None:
    bases = {e.name: e.base_type for e in registry.entities}
    for name in bases:
        chain = [name]
        current = bases[name]
        while current:
            if current in chain:
                raise ModelDefinitionError(
                    f"Inheritance cycle: {' -> '.join(chain + [current])}"
                )
            chain.append(current)
            current = bases.get(current)
