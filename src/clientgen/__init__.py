"""clientgen -- Generate typed asynchronous API clients from declarative models.

A *model* document declares the enumerations, entities, identifier wrappers
and operations of a remote HTTP API. clientgen validates the model, lowers it
into a neutral intermediate representation and renders it as a client module
that runs on :mod:`clientgen.runtime`.

Typical workflow::

    clientgen validate gitlab.yaml
    clientgen generate gitlab.yaml --client-name GitLabClient -o gitlab_client.py

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models of the API model and the generator settings.
    ir: Neutral intermediate representation of emitted code.
    registry: Model loading, assembly and validation.
    generator: Emitters, method synthesis and the emission driver.
    backends: Target language backends.
    runtime: Support library imported by generated clients.
    config: Configuration resolution and atomic output writes.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes.
    output: stdout/stderr formatting with Rich.
"""

__version__ = "0.1.0"
