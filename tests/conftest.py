"""Shared test fixtures for clientgen.

Provides the GitLab model fixture in its raw, registry and generated forms,
helpers to execute a generated module against the runtime, and automatic
reset of the global output state.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from clientgen.generator.driver import generate
from clientgen.generator.locations import ParameterLocationResolver
from clientgen.generator.methods import MethodBodySynthesizer
from clientgen.generator.naming import NamingConventions
from clientgen.generator.types import TypeReferenceResolver
from clientgen.models import GeneratorConfig, ModelRegistry
from clientgen.output import reset_output
from clientgen.registry import load_model, registry_from_document

FIXTURES_DIR = Path(__file__).parent / "fixtures"
GITLAB_MODEL = FIXTURES_DIR / "gitlab_model.yaml"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The manager's Rich consoles keep references to the streams that were
    current when it was created; CliRunner swaps those streams per invocation.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def gitlab_document() -> dict[str, Any]:
    """The raw GitLab model document."""
    return load_model(str(GITLAB_MODEL))


@pytest.fixture
def gitlab_registry(gitlab_document: dict[str, Any]) -> ModelRegistry:
    return registry_from_document(gitlab_document)


@pytest.fixture
def naming() -> NamingConventions:
    return NamingConventions()


@pytest.fixture
def types(naming: NamingConventions) -> TypeReferenceResolver:
    return TypeReferenceResolver(naming)


@pytest.fixture
def synthesizer_for(
    naming: NamingConventions, types: TypeReferenceResolver
) -> Callable[[ModelRegistry], MethodBodySynthesizer]:
    """Factory for a :class:`MethodBodySynthesizer` over a given registry."""

    def factory(registry: ModelRegistry) -> MethodBodySynthesizer:
        return MethodBodySynthesizer(registry, naming, types, ParameterLocationResolver())

    return factory


# ---------------------------------------------------------------------------
# Generated client fixtures
# ---------------------------------------------------------------------------


def load_generated(code: str) -> dict[str, Any]:
    """Execute generated *code* and return its module namespace."""
    namespace: dict[str, Any] = {"__name__": "generated_client"}
    exec(compile(code, "generated_client.py", "exec"), namespace)
    return namespace


@pytest.fixture
def gitlab_code(gitlab_registry: ModelRegistry) -> str:
    return generate(gitlab_registry, GeneratorConfig(client_name="GitLabClient")).code


@pytest.fixture
def gitlab_module(gitlab_code: str) -> dict[str, Any]:
    """Namespace of the generated GitLab client module."""
    return load_generated(gitlab_code)


class RecordingTransport:
    """An ``httpx.MockTransport`` that records requests and replays canned responses.

    Args:
        responder: Maps each request to a response.
    """

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []
        self._responder = responder

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def recorder() -> Callable[..., RecordingTransport]:
    """Factory for a :class:`RecordingTransport`; the default answers every request with ``{}``."""

    def factory(
        responder: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(200, json={}),
    ) -> RecordingTransport:
        return RecordingTransport(responder)

    return factory


@pytest.fixture
def run() -> Callable[[Any], Any]:
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run


@pytest.fixture
def loader() -> Callable[[str], dict[str, Any]]:
    return load_generated
