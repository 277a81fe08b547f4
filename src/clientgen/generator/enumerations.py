"""Emit enumeration declarations.

Members keep declaration order and carry their explicit value when one is
given. ``serialize_as_string`` gives every member a serialization name (the
raw model name unless overridden). ``generate_all_member`` appends a trailing
``ALL`` member whose value is the bitwise OR of every declared member, in
declaration order; this is done whether or not the enumeration is a flag set.
Two members (the synthetic ``ALL`` included) may not share an emitted name.
"""

from __future__ import annotations

import functools
import logging

from clientgen import ir
from clientgen.exceptions import ModelDefinitionError
from clientgen.generator.documentation import doc_comment
from clientgen.generator.naming import NamingConventions
from clientgen.models import Enumeration, EnumerationMember

logger = logging.getLogger(__name__)

ALL_MEMBER = "All"


class EnumerationEmitter:
    def __init__(self, naming: NamingConventions) -> None:
        self._naming = naming

    def emit(self, enumeration: Enumeration) -> ir.EnumDecl:
        members = [self._member(enumeration, m) for m in enumeration.members]

        if enumeration.generate_all_member:
            if not enumeration.is_flags:
                logger.debug(
                    "Enumeration %s requests an ALL member without being a flag set",
                    enumeration.name,
                )
            members.append(self._all_member(enumeration, members))

        seen: set[str] = set()
        for member in members:
            if member.name in seen:
                raise ModelDefinitionError(
                    f"Enumeration {enumeration.name}: more than one member named '{member.name}'"
                )
            seen.add(member.name)

        return ir.EnumDecl(
            name=self._naming.type_name(enumeration.name),
            base_type=ir.TypeRef(enumeration.base_type.value, ir.TypeKind.PRIMITIVE),
            members=tuple(members),
            is_flags=enumeration.is_flags,
            serialize_as_string=enumeration.serialize_as_string,
            doc=doc_comment(enumeration.documentation),
        )

    def _member(self, enumeration: Enumeration, member: EnumerationMember) -> ir.EnumMemberDecl:
        serialization_name = None
        if enumeration.serialize_as_string:
            serialization_name = member.serialization_name or member.name
        value = ir.Literal(member.value) if member.value is not None else None
        return ir.EnumMemberDecl(
            name=self._naming.member_name(member.name),
            value=value,
            serialization_name=serialization_name,
            doc=doc_comment(member.documentation),
        )

    def _all_member(
        self, enumeration: Enumeration, members: list[ir.EnumMemberDecl]
    ) -> ir.EnumMemberDecl:
        refs = [ir.EnumMemberRef(m.name) for m in members]
        if refs:
            value = functools.reduce(
                lambda left, right: ir.BinaryOp(ir.BinaryOperator.BITWISE_OR, left, right),
                refs,
            )
        else:
            value = ir.Literal(0)
        serialization_name = ALL_MEMBER if enumeration.serialize_as_string else None
        return ir.EnumMemberDecl(
            name=self._naming.member_name(ALL_MEMBER),
            value=value,
            serialization_name=serialization_name,
        )
