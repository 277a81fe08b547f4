"""Numeric process exit codes for the ``clientgen`` console script.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~clientgen.exceptions.ClientgenError` subclass.
Build scripts can inspect the exit code to tell a broken model document
apart from a model that loads but describes an impossible client.

Example::

    $ clientgen generate gitlab.yaml -o client.py
    $ echo $?
    8   # EXIT_MODEL_DEFINITION_ERROR -- the model has a defect
"""

EXIT_SUCCESS = 0
"""Generation completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""A generated client was rejected by the API (HTTP 401 or 403)."""

EXIT_NOT_FOUND = 4
"""A generated client requested a resource that does not exist (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The API answered a generated client with an error status."""

EXIT_CONNECTION_ERROR = 6
"""A generated client could not reach the API."""

EXIT_MODEL_LOAD_ERROR = 7
"""The model document could not be read or parsed."""

EXIT_MODEL_DEFINITION_ERROR = 8
"""The model loaded but describes something the generator cannot emit."""

EXIT_BACKEND_ERROR = 9
"""The requested emission target is unknown or failed to render."""
