"""Derive entity-bound extension operations from base client operations.

For a base operation ``GetProjectIssues(project_id: ProjectId, ...)`` where
the ``ProjectId`` wrapper has a ref from the ``Project`` entity, the entity
gains::

    async def get_issues(self, state=None, cancellation_token=None):
        return await self.client.get_project_issues(self, state, cancellation_token)

The derived operation drops the bound argument from its signature and passes
the receiver in its slot. Its name is the base name with the entity name
removed (case-insensitive).

Extension synthesis is a second phase: receivers are looked up by name in a
:class:`DeclarationIndex` built from the already emitted entity classes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from clientgen import ir
from clientgen.exceptions import ModelDefinitionError
from clientgen.generator.naming import NamingConventions, remove_word
from clientgen.models import Method, ModelRegistry

logger = logging.getLogger(__name__)

CLIENT_PROPERTY = "client"


class DeclarationIndex:
    """Emitted entity declarations, looked up by model name."""

    def __init__(self, declarations: Iterable[tuple[str, ir.ClassDecl]]) -> None:
        self._by_name: dict[str, ir.ClassDecl] = dict(declarations)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def receiver(self, name: str) -> ir.ClassDecl:
        """Return the declaration of entity *name*.

        Raises:
            ModelDefinitionError: If no entity of that name was emitted.
        """
        try:
            return self._by_name[name]
        except KeyError:
            raise ModelDefinitionError(
                f"Extension receiver '{name}' is not an emitted entity"
            ) from None


class ExtensionMethodSynthesizer:
    def __init__(self, registry: ModelRegistry, naming: NamingConventions) -> None:
        self._registry = registry
        self._naming = naming

    def synthesize(
        self,
        bases: Iterable[tuple[Method, ir.MethodDecl]],
        index: DeclarationIndex,
    ) -> dict[str, list[ir.MethodDecl]]:
        """Derive every extension operation.

        Args:
            bases: Each model method paired with its synthesized base
                operation, in emission order.
            index: The emitted entity declarations.

        Returns:
            Extension operations keyed by receiver entity name, in derivation
            order. Entities without extensions are absent.
        """
        extensions: dict[str, list[ir.MethodDecl]] = {}
        for method, base in bases:
            for parameter in method.parameters:
                if parameter.type.is_collection:
                    continue
                wrapper = self._registry.wrapper_for(parameter.type)
                if wrapper is None:
                    continue
                for ref in wrapper.refs:
                    if not ref.target.is_entity or ref.target.is_collection:
                        continue
                    receiver = index.receiver(ref.target.target)
                    derived = self.derive(method, base, parameter.name, receiver.name)
                    logger.debug("Derived %s.%s from %s", receiver.name, derived.name, base.name)
                    extensions.setdefault(ref.target.target, []).append(derived)
        return extensions

    def derive(
        self,
        method: Method,
        base: ir.MethodDecl,
        parameter: str,
        receiver: str,
    ) -> ir.MethodDecl:
        """Bind *parameter* of *base* to an instance of *receiver*.

        Raises:
            ModelDefinitionError: If removing the receiver name leaves nothing.
        """
        bound = base.argument_for(parameter)
        if bound is None:
            raise ModelDefinitionError(
                f"Method {method.name}: no argument for parameter '{parameter}'"
            )

        stripped = remove_word(method.name, receiver)
        if not stripped.strip("_- "):
            raise ModelDefinitionError(
                f"Method {method.name}: extension name on {receiver} would be empty"
            )

        forwarded = tuple(
            ir.ThisRef() if a is bound else ir.ArgumentRef(a.name) for a in base.arguments
        )
        call = ir.MethodCall(
            target=ir.MemberRef(ir.ThisRef(), CLIENT_PROPERTY),
            name=base.name,
            args=forwarded,
        )
        doc = ir.DocComment(
            summary=base.doc.summary,
            remark=base.doc.remark,
            returns=base.doc.returns,
            params=tuple(p for p in base.doc.params if p[0] != bound.name),
        )
        return ir.MethodDecl(
            name=self._naming.method_name(stripped),
            arguments=tuple(a for a in base.arguments if a is not bound),
            return_type=base.return_type,
            statements=(ir.Return(ir.Await(call)),),
            doc=doc,
            source=method.name,
        )
