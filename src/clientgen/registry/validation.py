"""Model checks that run before emission.

The generator accepts some model shapes that produce unusable or subtly
wrong client code. :func:`validate_registry` reports them as
:class:`ModelIssue` values instead of letting them pass silently:

* **Errors**
    - an identifier wrapper with no refs (it can never be constructed);
    - a URL placeholder with no parameter resolving to the URL;
    - a parameter the substring rule places in the URL although its name
      is not an exact placeholder token (e.g. ``project-id`` against
      ``:project-id/``, whose token is ``project``).
* **Warnings**
    - a placeholder followed by something other than ``/`` (``:id.json``);
      the location rule cannot see it, so it only works when the parameter
      reaches the URL by default;
    - body parameters on ``get``, ``get_paged`` or ``delete``, whose
      transport call carries no payload.

The driver aborts on errors in strict mode and logs them otherwise.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from clientgen.generator.locations import (
    ParameterLocationResolver,
    placeholder_tokens,
    template_mentions,
    unterminated_placeholders,
)
from clientgen.models import MethodType, ModelRegistry

_PAYLOAD_VERBS = {MethodType.PUT, MethodType.POST}


class Severity(str, enum.Enum):
    ERROR = "error"
    WARNING = "warning"


class ModelIssue(BaseModel):
    """A single finding about the model."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    subject: str
    message: str

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def __str__(self) -> str:
        return f"{self.subject}: {self.message}"


def validate_registry(
    registry: ModelRegistry,
    locations: Optional[ParameterLocationResolver] = None,
) -> list[ModelIssue]:
    """Check *registry* and return every issue found, in model order.

    Args:
        registry: The model to check.
        locations: Resolver used to place parameters; a default one is
            created when omitted.

    Returns:
        Issues in discovery order: wrappers first, then methods.
    """
    locations = locations or ParameterLocationResolver()
    issues: list[ModelIssue] = []

    for wrapper in registry.wrappers:
        if not wrapper.refs:
            issues.append(
                ModelIssue(
                    severity=Severity.ERROR,
                    subject=wrapper.name,
                    message="wrapper declares no refs and can never be constructed",
                )
            )

    for method in registry.methods:
        template = method.url_template
        tokens = placeholder_tokens(template)
        url_names = {p.name for p in locations.url_parameters(method)}

        unmatched = [t for t in tokens if t not in url_names]
        for token in unmatched:
            issues.append(
                ModelIssue(
                    severity=Severity.ERROR,
                    subject=method.name,
                    message=f"placeholder ':{token}' has no URL parameter",
                )
            )

        for token in unterminated_placeholders(template):
            if token in unmatched:
                continue
            issues.append(
                ModelIssue(
                    severity=Severity.WARNING,
                    subject=method.name,
                    message=f"placeholder ':{token}' is not followed by '/' or the end of the template",
                )
            )

        for parameter in method.parameters:
            if template_mentions(template, parameter.name) and parameter.name not in tokens:
                issues.append(
                    ModelIssue(
                        severity=Severity.ERROR,
                        subject=method.name,
                        message=(
                            f"parameter '{parameter.name}' matches the template by substring "
                            "but is not a placeholder token"
                        ),
                    )
                )

        if method.method_type not in _PAYLOAD_VERBS:
            dropped = [p.name for p in locations.body_parameters(method)]
            if dropped:
                issues.append(
                    ModelIssue(
                        severity=Severity.WARNING,
                        subject=method.name,
                        message=(
                            f"body parameter(s) {', '.join(dropped)} are ignored by a "
                            f"{method.method_type.value} request"
                        ),
                    )
                )

    return issues
