"""Exception hierarchy for clientgen.

All exceptions inherit from :class:`ClientgenError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`clientgen.exit_codes`.
The top-level error handler in :func:`clientgen.app.main` catches
``ClientgenError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    ClientgenError (exit 1)
    +-- InvalidUsageError     (exit 2)
    +-- AuthError             (exit 3)
    +-- NotFoundError         (exit 4)
    +-- ServerError           (exit 5)
    +-- ConnectionError_      (exit 6)
    +-- ModelLoadError        (exit 7)
    +-- ModelDefinitionError  (exit 8)
    +-- BackendError          (exit 9)
    +-- ConfigError           (exit 1)
    +-- OperationCancelledError (exit 1)

The request errors (exit 3 to 6) and :class:`OperationCancelledError` are
raised by :class:`~clientgen.runtime.client.BaseApiClient` inside generated
clients; the rest come from the generator itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from clientgen.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_BACKEND_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_MODEL_DEFINITION_ERROR,
    EXIT_MODEL_LOAD_ERROR,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)

if TYPE_CHECKING:
    from clientgen.registry.validation import ModelIssue


class ClientgenError(Exception):
    """Base exception for all clientgen errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ClientgenError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class ModelLoadError(ClientgenError):
    """Raised when a model document cannot be read, parsed, or shaped into models."""

    exit_code = EXIT_MODEL_LOAD_ERROR


class ModelDefinitionError(ClientgenError):
    """Raised when the model describes something that cannot be generated.

    Generation aborts as soon as this is raised; no partial artifact is
    produced. When the error comes out of registry validation, the offending
    issues are attached so callers can render them individually.

    Args:
        message: Human-readable error description.
        issues: The validation issues that caused the failure, if any.
    """

    exit_code = EXIT_MODEL_DEFINITION_ERROR

    def __init__(self, message: str, issues: Sequence[ModelIssue] = ()):
        super().__init__(message)
        self.issues = list(issues)


class BackendError(ClientgenError):
    """Raised when an emission target is unknown or fails to render."""

    exit_code = EXIT_BACKEND_ERROR


class ConfigError(ClientgenError):
    """Raised for configuration problems (invalid project config, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE


class AuthError(ClientgenError):
    """Raised by a generated client on HTTP 401 or 403."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(ClientgenError):
    """Raised by a generated client on HTTP 404."""

    exit_code = EXIT_NOT_FOUND


class ServerError(ClientgenError):
    """Raised by a generated client for any other error status."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(ClientgenError):
    """Raised by a generated client when the API cannot be reached.

    Named with a trailing underscore to avoid shadowing the built-in
    :class:`ConnectionError`.
    """

    exit_code = EXIT_CONNECTION_ERROR


class OperationCancelledError(ClientgenError):
    """Raised when a request is abandoned through its cancellation token."""
