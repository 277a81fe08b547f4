"""Client emission -- turn a model registry into a neutral compilation unit.

The pieces, leaves first:

* :mod:`~clientgen.generator.naming` -- deterministic identifier conventions.
* :mod:`~clientgen.generator.types` -- model references to emittable types.
* :mod:`~clientgen.generator.locations` -- URL vs body placement of parameters.
* :mod:`~clientgen.generator.enumerations`,
  :mod:`~clientgen.generator.entities`,
  :mod:`~clientgen.generator.wrappers` -- type declarations.
* :mod:`~clientgen.generator.methods` -- base client operations.
* :mod:`~clientgen.generator.extensions` -- entity-bound derived operations.
* :mod:`~clientgen.generator.driver` -- emission order and the
  :func:`~clientgen.generator.driver.generate` entry point.

Only the leaf utilities are re-exported here; import the driver from
:mod:`clientgen.generator.driver`.
"""

from clientgen.generator.locations import ParameterLocationResolver
from clientgen.generator.naming import NamingConventions
from clientgen.generator.types import TypeReferenceResolver, TypeUsage

__all__ = [
    "NamingConventions",
    "ParameterLocationResolver",
    "TypeReferenceResolver",
    "TypeUsage",
]
