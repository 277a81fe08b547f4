"""API model assembly -- load documents, build and check the registry.

This sub-package produces the read-only
:class:`~clientgen.models.ModelRegistry` the generator consumes.

Typical usage::

    from clientgen.registry import load_model, registry_from_document, validate_model_version

    document = load_model("gitlab.yaml")
    validate_model_version(document)
    registry = registry_from_document(document)

Sub-modules:

* :mod:`~clientgen.registry.loader` -- I/O layer (URL, file, stdin) plus
  format detection and model version validation.
* :mod:`~clientgen.registry.extractor` -- Resolves type shorthand and turns a
  document into model objects.
* :mod:`~clientgen.registry.builder` -- Ordered registration and whole-model
  consistency checks.
* :mod:`~clientgen.registry.validation` -- Reports model shapes that would
  emit unusable client code.
"""

from clientgen.registry.builder import RegistryBuilder, build_registry
from clientgen.registry.extractor import registry_from_document
from clientgen.registry.loader import load_model, validate_model_version
from clientgen.registry.validation import ModelIssue, Severity, validate_registry

__all__ = [
    "ModelIssue",
    "RegistryBuilder",
    "Severity",
    "build_registry",
    "load_model",
    "registry_from_document",
    "validate_model_version",
    "validate_registry",
]
