"""Emission driver -- order the emitters and render the result.

:func:`build_unit` runs every emitter against the registry in a fixed order:

1. enumerations, by name;
2. entities, by name, re-ordered so each base precedes its subclasses;
3. identifier wrappers, by name, re-ordered so each source wrapper precedes
   the wrappers built from it;
4. base client operations, by name;
5. extension operations, attached to their receiver entities.

:func:`generate` adds validation in front and rendering behind. Nothing in
either function iterates an unordered collection, so the same registry
always yields byte-identical code.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Optional

from clientgen import ir
from clientgen.backends import get_backend
from clientgen.exceptions import ModelDefinitionError
from clientgen.generator.entities import RESERVED_MEMBERS, EntityEmitter
from clientgen.generator.enumerations import EnumerationEmitter
from clientgen.generator.extensions import DeclarationIndex, ExtensionMethodSynthesizer
from clientgen.generator.locations import ParameterLocationResolver
from clientgen.generator.methods import MethodBodySynthesizer
from clientgen.generator.naming import NamingConventions
from clientgen.generator.types import TypeReferenceResolver
from clientgen.generator.wrappers import IdentifierWrapperEmitter
from clientgen.models import Entity, GeneratorConfig, IdentifierWrapper, ModelRegistry
from clientgen.registry.validation import ModelIssue, validate_registry

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Everything one :func:`generate` run produced."""

    code: str
    unit: ir.CompilationUnit
    issues: list[ModelIssue] = field(default_factory=list)

    @property
    def warnings(self) -> list[ModelIssue]:
        return [i for i in self.issues if not i.is_error]


def entity_order(entities: tuple[Entity, ...]) -> list[Entity]:
    """Sort *entities* by name, then move every base in front of its subclasses."""
    by_name = {e.name: e for e in entities}
    visited: set[str] = set()
    ordered: list[Entity] = []

    def visit(entity: Entity, chain: tuple[str, ...]) -> None:
        if entity.name in visited:
            return
        if entity.name in chain:
            raise ModelDefinitionError(
                f"Inheritance cycle: {' -> '.join(chain + (entity.name,))}"
            )
        base = by_name.get(entity.base_type) if entity.base_type else None
        if base is not None:
            visit(base, chain + (entity.name,))
        visited.add(entity.name)
        ordered.append(entity)

    for entity in sorted(entities, key=lambda e: e.name):
        visit(entity, ())
    return ordered


def wrapper_order(wrappers: tuple[IdentifierWrapper, ...]) -> list[IdentifierWrapper]:
    """Sort *wrappers* by name, then move each source wrapper in front of the wrappers built from it.

    A conversion names its source type when the wrapper class is created, so a
    source wrapper has to be declared first.
    """
    by_name = {w.name: w for w in wrappers}
    visited: set[str] = set()
    ordered: list[IdentifierWrapper] = []

    def visit(wrapper: IdentifierWrapper, chain: tuple[str, ...]) -> None:
        if wrapper.name in visited:
            return
        if wrapper.name in chain:
            raise ModelDefinitionError(
                f"Wrapper ref cycle: {' -> '.join(chain + (wrapper.name,))}"
            )
        for ref in wrapper.refs:
            source = by_name.get(ref.target.target) if ref.target.is_wrapper else None
            if source is not None:
                visit(source, chain + (wrapper.name,))
        visited.add(wrapper.name)
        ordered.append(wrapper)

    for wrapper in sorted(wrappers, key=lambda w: w.name):
        visit(wrapper, ())
    return ordered


def _check_members(decl: ir.ClassDecl, reserved: frozenset[str] = frozenset()) -> None:
    seen: set[str] = set()
    for name in decl.member_names():
        if name in reserved:
            raise ModelDefinitionError(f"{decl.name}: member '{name}' is reserved by the base class")
        if name in seen:
            raise ModelDefinitionError(f"{decl.name}: more than one member named '{name}'")
        seen.add(name)


def build_unit(
    registry: ModelRegistry, config: Optional[GeneratorConfig] = None
) -> ir.CompilationUnit:
    """Emit every declaration of *registry* into a :class:`~clientgen.ir.CompilationUnit`.

    Raises:
        ModelDefinitionError: If any emitter or synthesizer rejects the model.
    """
    config = config or GeneratorConfig()
    naming = NamingConventions()
    types = TypeReferenceResolver(naming)
    locations = ParameterLocationResolver()

    enum_emitter = EnumerationEmitter(naming)
    enumerations = tuple(
        enum_emitter.emit(e) for e in sorted(registry.enumerations, key=lambda e: e.name)
    )

    entity_emitter = EntityEmitter(naming, types, config.base_type)
    emitted = [(e.name, entity_emitter.emit(e)) for e in entity_order(registry.entities)]

    wrapper_emitter = IdentifierWrapperEmitter(naming, types)
    wrappers = tuple(wrapper_emitter.emit(w) for w in wrapper_order(registry.wrappers))

    synthesizer = MethodBodySynthesizer(registry, naming, types, locations)
    bases = [(m, synthesizer.synthesize(m)) for m in sorted(registry.methods, key=lambda m: m.name)]

    extensions = ExtensionMethodSynthesizer(registry, naming).synthesize(
        bases, DeclarationIndex(emitted)
    )

    entities: list[ir.ClassDecl] = []
    for name, decl in emitted:
        if name in extensions:
            decl = dataclasses.replace(decl, methods=decl.methods + tuple(extensions[name]))
        _check_members(decl, RESERVED_MEMBERS)
        entities.append(decl)

    client = ir.ClassDecl(
        name=config.client_name,
        base=ir.TypeRef(ir.CLIENT_BASE),
        methods=tuple(decl for _, decl in bases),
    )
    _check_members(client)

    logger.debug(
        "Emitted %d enumerations, %d entities, %d wrappers, %d operations, %d extensions",
        len(enumerations),
        len(entities),
        len(wrappers),
        len(bases),
        sum(len(v) for v in extensions.values()),
    )
    return ir.CompilationUnit(
        enumerations=enumerations,
        entities=tuple(entities),
        wrappers=wrappers,
        client=client,
    )


def generate(
    registry: ModelRegistry, config: Optional[GeneratorConfig] = None
) -> GenerationResult:
    """Validate *registry*, emit it and render it with the configured backend.

    Args:
        registry: The model to generate a client for.
        config: Generator settings; defaults apply when omitted.

    Returns:
        The rendered code, the compilation unit and every model issue found.

    Raises:
        ModelDefinitionError: If validation finds errors in strict mode, or
            an emitter rejects the model.
        BackendError: If the target backend is unknown or fails to render.

    Example::

        registry = registry_from_document(load_model("gitlab.yaml"))
        result = generate(registry, GeneratorConfig(client_name="GitLabClient"))
        Path("gitlab_client.py").write_text(result.code)
    """
    config = config or GeneratorConfig()
    backend = get_backend(config.target)

    issues = validate_registry(registry)
    errors = [i for i in issues if i.is_error]
    if errors and config.strict:
        raise ModelDefinitionError(
            f"Model has {len(errors)} error(s): " + "; ".join(str(e) for e in errors),
            issues=errors,
        )
    for issue in issues:
        logger.warning("%s", issue)

    unit = build_unit(registry, config)
    code = backend.render(unit, config)
    return GenerationResult(code=code, unit=unit, issues=issues)
