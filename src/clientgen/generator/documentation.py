"""Convert optional model documentation into IR doc comments."""

from __future__ import annotations

from typing import Optional, Sequence

from clientgen import ir
from clientgen.models import Documentation


def doc_comment(
    documentation: Optional[Documentation],
    params: Sequence[tuple[str, str]] = (),
) -> ir.DocComment:
    """Build a :class:`~clientgen.ir.DocComment`; absent documentation gives an empty one."""
    if documentation is None:
        return ir.DocComment(params=tuple(params))
    return ir.DocComment(
        summary=documentation.summary,
        remark=documentation.remark,
        returns=documentation.returns,
        params=tuple(params),
    )
