"""Tests for clientgen.backends.python -- the emitted module, parsed and executed."""

from __future__ import annotations

import ast
import datetime
import json
from typing import Any, Callable

import httpx
import pytest

from clientgen import __version__, ir
from clientgen.backends import available_backends, get_backend
from clientgen.backends.python import PythonBackend
from clientgen.exceptions import BackendError, NotFoundError
from clientgen.generator.driver import generate
from clientgen.models import (
    Entity,
    GeneratorConfig,
    IdentifierWrapper,
    Method,
    MethodParameter,
    MethodType,
    ModelRef,
    ModelRegistry,
    Property,
    WrapperRef,
)
from clientgen.runtime import PageOptions, PagedResponse, PathWithNamespace

BASE_URL = "https://gitlab.example.com/api/v4"

PROJECT_JSON = {
    "id": 42,
    "name": "app",
    "path_with_namespace": "group/app",
    "created_at": "2024-01-02T03:04:05Z",
    "last_activity_at": "2024-02-03T10:00:00Z",
    "tag_list": ["ruby", "rails"],
    "unknown_key": True,
}


def _json_responder(payload: Any, **headers: str) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(200, json=payload, headers=headers)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestBackendRegistry:
    def test_python_is_registered(self) -> None:
        assert "python" in available_backends()
        assert isinstance(get_backend("python"), PythonBackend)

    def test_alias_and_case(self) -> None:
        assert get_backend("PY").name == "python"
        assert get_backend("python").file_extension == ".py"

    def test_unknown_backend(self) -> None:
        with pytest.raises(BackendError, match="Available targets: python"):
            get_backend("rust")


class TestPrintingSynthesizedNodes:
    """Nodes built by the translator have no source positions."""

    def _client(self, *methods: ir.MethodDecl) -> ir.CompilationUnit:
        return ir.CompilationUnit(
            enumerations=(),
            entities=(),
            wrappers=(),
            client=ir.ClassDecl(name="ApiClient", methods=methods),
        )

    def test_sync_and_async_methods_print(self) -> None:
        int32 = ir.TypeRef("int32", ir.TypeKind.PRIMITIVE)
        unit = self._client(
            ir.MethodDecl(
                name="answer",
                arguments=(),
                return_type=int32,
                statements=(ir.Return(ir.Literal(42)),),
                is_async=False,
            ),
            ir.MethodDecl(
                name="later",
                arguments=(),
                return_type=int32,
                statements=(ir.Return(ir.Literal(7)),),
            ),
        )
        code = PythonBackend().render(unit, GeneratorConfig())

        assert "    def answer(self) -> int:\n        return 42" in code
        assert "    async def later(self) -> int:\n        return 7" in code
        tree = ast.parse(code)
        client = next(n for n in tree.body if isinstance(n, ast.ClassDef) and n.name == "ApiClient")
        assert [type(n).__name__ for n in client.body] == ["FunctionDef", "AsyncFunctionDef"]

    def test_gitlab_model_renders(self, gitlab_registry: ModelRegistry) -> None:
        code = generate(gitlab_registry).code
        assert "def get_project(" in code
        assert "def from_project(" in code
        ast.parse(code)


# ---------------------------------------------------------------------------
# Source text
# ---------------------------------------------------------------------------


class TestEmittedSource:
    def test_is_valid_python(self, gitlab_code: str) -> None:
        tree = ast.parse(gitlab_code)
        classes = [n.name for n in tree.body if isinstance(n, ast.ClassDef)]
        assert classes == [
            "AccessLevel",
            "IssueState",
            "Permissions",
            "Issue",
            "Project",
            "ProjectId",
            "GitLabClient",
        ]

    def test_banner(self, gitlab_code: str) -> None:
        lines = gitlab_code.splitlines()
        assert lines[0] == f"# Generated by clientgen {__version__}. Do not edit by hand."
        assert "# Client:        GitLabClient" in lines
        assert "# Operations:    5 (+4 entity extensions)" in lines
        assert ast.get_docstring(ast.parse(gitlab_code)) == "GitLabClient -- generated API client."

    def test_imports(self, gitlab_code: str) -> None:
        assert "from __future__ import annotations" in gitlab_code
        assert "import datetime\nimport enum\n" in gitlab_code
        assert "from typing import Optional, Sequence" in gitlab_code
        assert "from clientgen.runtime import (\n" in gitlab_code
        assert "    PathWithNamespaceConverter,\n" in gitlab_code

    def test_custom_runtime_module(self, gitlab_registry: ModelRegistry) -> None:
        code = generate(gitlab_registry, GeneratorConfig(runtime_module="acme.gitlab_runtime")).code
        assert "from acme.gitlab_runtime import (" in code
        assert "# Runtime:       acme.gitlab_runtime" in code

    def test_entity_members(self, gitlab_code: str) -> None:
        assert "    _path_with_namespace: PathWithNamespace\n" in gitlab_code
        assert "@json_property('path_with_namespace', converter=PathWithNamespaceConverter)" in gitlab_code
        assert "@json_property('last_activity_at', skip_validation=" in gitlab_code
        assert "def _set_tag_list(self, value: Sequence[str]) -> None:" in gitlab_code

    def test_operation_signatures(self, gitlab_code: str) -> None:
        assert (
            "async def get_projects(self, search: Optional[str]=None, "
            "page_options: Optional[PageOptions]=None, "
            "cancellation_token: Optional[CancellationToken]=None) -> PagedResponse[Project]:"
        ) in gitlab_code
        assert "return await self.get_paged(url, Project, cancellation_token)" in gitlab_code
        assert "return await self.delete(url, cancellation_token)" in gitlab_code

    def test_docstrings(self, gitlab_code: str) -> None:
        tree = ast.parse(gitlab_code)
        project = next(n for n in tree.body if isinstance(n, ast.ClassDef) and n.name == "Project")
        assert ast.get_docstring(project) == (
            "A GitLab project.\n\nProjects are addressed by numeric id or by full path."
        )
        client = next(
            n for n in tree.body if isinstance(n, ast.ClassDef) and n.name == "GitLabClient"
        )
        get_project = next(
            n for n in client.body if isinstance(n, ast.AsyncFunctionDef) and n.name == "get_project"
        )
        assert ast.get_docstring(get_project) == "Get a single project.\n\nArgs:\n    project_id: The project."

    def test_render_is_deterministic(self, gitlab_registry: ModelRegistry, gitlab_code: str) -> None:
        again = generate(gitlab_registry, GeneratorConfig(client_name="GitLabClient")).code
        assert again == gitlab_code


# ---------------------------------------------------------------------------
# Executed module
# ---------------------------------------------------------------------------


class TestGeneratedEnumerations:
    def test_values(self, gitlab_module: dict[str, Any]) -> None:
        access = gitlab_module["AccessLevel"]
        assert [(m.name, m.value) for m in access] == [
            ("GUEST", 10),
            ("REPORTER", 20),
            ("DEVELOPER", 30),
            ("MAINTAINER", 40),
            ("OWNER", 50),
        ]

    def test_all_member_aggregates_flags(self, gitlab_module: dict[str, Any]) -> None:
        permissions = gitlab_module["Permissions"]
        assert permissions.ALL == 3
        assert permissions.ALL == permissions.READ | permissions.WRITE

    def test_string_enum_round_trips_by_name(self, gitlab_module: dict[str, Any]) -> None:
        from clientgen.runtime import to_json_value

        state = gitlab_module["IssueState"]
        assert to_json_value(state.CLOSED) == "closed"
        issue = gitlab_module["Issue"].from_json({"state": "opened"})
        assert issue.state is state.OPENED


class TestGeneratedEntities:
    def test_from_json(self, gitlab_module: dict[str, Any]) -> None:
        project = gitlab_module["Project"].from_json(PROJECT_JSON)
        assert project.id == 42
        assert project.path_with_namespace == PathWithNamespace("group/app")
        assert project.created_at == datetime.datetime(
            2024, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc
        )
        assert project.last_activity_at == datetime.date(2024, 2, 3)
        assert project.tag_list == ("ruby", "rails")

    def test_missing_and_null_values(self, gitlab_module: dict[str, Any]) -> None:
        project = gitlab_module["Project"].from_json({"id": 1, "last_activity_at": None})
        assert project.name is None
        assert project.last_activity_at is None

    def test_to_json(self, gitlab_module: dict[str, Any]) -> None:
        project = gitlab_module["Project"].from_json({"id": 7, "path_with_namespace": "a/b"})
        data = project.to_json()
        assert data["id"] == 7
        assert data["path_with_namespace"] == "a/b"
        assert data["tag_list"] is None

    def test_properties_are_read_only(self, gitlab_module: dict[str, Any]) -> None:
        project = gitlab_module["Project"].from_json({"id": 1})
        with pytest.raises(AttributeError):
            project.id = 2


class TestGeneratedWrappers:
    def test_implicit_conversions(self, gitlab_module: dict[str, Any]) -> None:
        project_id = gitlab_module["ProjectId"]
        project = gitlab_module["Project"].from_json({"id": 42})
        assert project_id.coerce(42).value == 42
        assert project_id.coerce(project) == project_id(42)
        existing = project_id(5)
        assert project_id.coerce(existing) is existing

    def test_named_constructors(self, gitlab_module: dict[str, Any]) -> None:
        project_id = gitlab_module["ProjectId"]
        project = gitlab_module["Project"].from_json({"id": 9})
        assert project_id.from_project(project).value == 9
        assert project_id.from_int64(3).value == 3

    def test_entity_source_rejects_none(self, gitlab_module: dict[str, Any]) -> None:
        project_id = gitlab_module["ProjectId"]
        with pytest.raises(TypeError, match="project must not be None"):
            project_id.from_project(None)

    def test_unsupported_source(self, gitlab_module: dict[str, Any]) -> None:
        with pytest.raises(TypeError, match="Cannot convert str to ProjectId"):
            gitlab_module["ProjectId"].coerce("42")


class TestGeneratedClient:
    def _client(self, module: dict[str, Any], recording: Any) -> Any:
        return module["GitLabClient"](BASE_URL, token="secret", transport=recording.transport)

    def test_get_item(self, gitlab_module: dict[str, Any], recorder: Callable, run: Callable) -> None:
        recording = recorder(_json_responder(PROJECT_JSON))

        async def scenario() -> Any:
            async with self._client(gitlab_module, recording) as client:
                return await client.get_project(42)

        project = run(scenario())
        assert project.name == "app"
        assert recording.last.method == "GET"
        assert str(recording.last.url) == f"{BASE_URL}/projects/42"
        assert recording.last.headers["Authorization"] == "Bearer secret"

    def test_paged_request_sends_only_page(
        self, gitlab_module: dict[str, Any], recorder: Callable, run: Callable
    ) -> None:
        recording = recorder(_json_responder([PROJECT_JSON], **{"X-Page": "2", "X-Next-Page": ""}))

        async def scenario() -> Any:
            async with self._client(gitlab_module, recording) as client:
                return await client.get_projects(page_options=PageOptions(page_index=2))

        page = run(scenario())
        assert dict(recording.last.url.params) == {"page": "2"}
        assert isinstance(page, PagedResponse)
        assert page.page == 2
        assert not page.has_next_page
        assert [p.name for p in page] == ["app"]

    def test_paged_request_without_options(
        self, gitlab_module: dict[str, Any], recorder: Callable, run: Callable
    ) -> None:
        recording = recorder(_json_responder([]))

        async def scenario() -> Any:
            async with self._client(gitlab_module, recording) as client:
                return await client.get_projects("rails")

        run(scenario())
        assert dict(recording.last.url.params) == {"search": "rails"}

    def test_collection_with_optional_query(
        self, gitlab_module: dict[str, Any], recorder: Callable, run: Callable
    ) -> None:
        recording = recorder(_json_responder([{"iid": 1, "state": "closed"}]))
        state = gitlab_module["IssueState"]

        async def scenario() -> Any:
            async with self._client(gitlab_module, recording) as client:
                return await client.get_project_issues(42, state.CLOSED)

        issues = run(scenario())
        assert str(recording.last.url) == f"{BASE_URL}/projects/42/issues?state=closed"
        assert isinstance(issues, tuple)
        assert issues[0].state is state.CLOSED

    def test_post_body_omits_absent_optionals(
        self, gitlab_module: dict[str, Any], recorder: Callable, run: Callable
    ) -> None:
        recording = recorder(_json_responder({"iid": 3, "title": "Bug"}))

        async def scenario() -> Any:
            async with self._client(gitlab_module, recording) as client:
                return await client.create_issue(42, "Bug")

        issue = run(scenario())
        assert recording.last.method == "POST"
        assert str(recording.last.url) == f"{BASE_URL}/projects/42/issues"
        assert json.loads(recording.last.content) == {"title": "Bug"}
        assert issue.title == "Bug"

    def test_nullable_wrapper_body_value_sent_unwrapped(
        self, loader: Callable, recorder: Callable, run: Callable
    ) -> None:
        registry = ModelRegistry(
            entities=(
                Entity(name="Project", properties=(Property(name="id", type=ModelRef.primitive("int64")),)),
            ),
            wrappers=(
                IdentifierWrapper(
                    name="ProjectId",
                    final_type=ModelRef.primitive("int64"),
                    refs=(
                        WrapperRef(target=ModelRef.primitive("int64")),
                        WrapperRef(target=ModelRef.entity("Project"), property_path=("id",)),
                    ),
                ),
            ),
            methods=(
                Method(
                    name="ForkProject",
                    method_type=MethodType.POST,
                    url_template="/forks",
                    parameters=(
                        MethodParameter(
                            name="project_id", type=ModelRef.wrapper("ProjectId", nullable=True)
                        ),
                    ),
                ),
            ),
        )
        module = loader(generate(registry, GeneratorConfig(client_name="ForkClient")).code)
        recording = recorder(lambda request: httpx.Response(204))

        client = module["ForkClient"](BASE_URL, token="secret", transport=recording.transport)

        async def scenario() -> None:
            async with client:
                await client.fork_project(module["Project"].from_json({"id": 7}))

        run(scenario())
        assert json.loads(recording.last.content) == {"project_id": 7}

    def test_delete(self, gitlab_module: dict[str, Any], recorder: Callable, run: Callable) -> None:
        recording = recorder(lambda request: httpx.Response(204))

        async def scenario() -> Any:
            async with self._client(gitlab_module, recording) as client:
                return await client.delete_project(42)

        assert run(scenario()) is None
        assert recording.last.method == "DELETE"
        assert recording.last.content == b""

    def test_extension_operation_forwards_entity(
        self, gitlab_module: dict[str, Any], recorder: Callable, run: Callable
    ) -> None:
        def responder(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/issues"):
                return httpx.Response(200, json=[])
            return httpx.Response(200, json=PROJECT_JSON)

        recording = recorder(responder)

        async def scenario() -> Any:
            async with self._client(gitlab_module, recording) as client:
                project = await client.get_project(42)
                return await project.get_issues()

        assert run(scenario()) == ()
        assert [str(r.url) for r in recording.requests] == [
            f"{BASE_URL}/projects/42",
            f"{BASE_URL}/projects/42/issues",
        ]

    def test_error_status(self, gitlab_module: dict[str, Any], recorder: Callable, run: Callable) -> None:
        recording = recorder(lambda request: httpx.Response(404, json={"message": "404 Project Not Found"}))

        async def scenario() -> Any:
            async with self._client(gitlab_module, recording) as client:
                return await client.get_project(1)

        with pytest.raises(NotFoundError, match="404 Project Not Found"):
            run(scenario())


# ---------------------------------------------------------------------------
# Failure modes
# ---------------------------------------------------------------------------


class TestBackendErrors:
    def _unit(self, **kwargs: Any) -> ir.CompilationUnit:
        parts: dict[str, Any] = {"enumerations": (), "entities": (), "wrappers": ()}
        parts.update(kwargs)
        return ir.CompilationUnit(client=ir.ClassDecl(name="ApiClient"), **parts)

    def test_unsupported_primitive(self) -> None:
        entity = ir.ClassDecl(
            name="Thing",
            fields=(ir.FieldDecl("_blob", ir.TypeRef("bytes", ir.TypeKind.PRIMITIVE)),),
        )
        with pytest.raises(BackendError, match="Unsupported primitive type 'bytes'"):
            PythonBackend().render(self._unit(entities=(entity,)), GeneratorConfig())

    def test_constructor_without_assignment(self) -> None:
        value = ir.FieldDecl("_value", ir.TypeRef("int64", ir.TypeKind.PRIMITIVE), readonly=True)
        argument = ir.ArgumentDecl("int64", ir.TypeRef("int64", ir.TypeKind.PRIMITIVE))
        wrapper = ir.WrapperDecl(
            name="ProjectId",
            value_field=value,
            value_property=ir.PropertyDecl(name="value", type=value.type, backing_field="_value"),
            constructors=(
                ir.ConstructorDecl(
                    name="from_int64",
                    source=argument.type,
                    argument=argument,
                    statements=(ir.ThrowIfNull("int64"),),
                ),
            ),
        )
        with pytest.raises(BackendError, match="must end with an assignment"):
            PythonBackend().render(self._unit(wrappers=(wrapper,)), GeneratorConfig())

    def test_empty_unit_renders_bare_client(self) -> None:
        code = PythonBackend().render(self._unit(), GeneratorConfig())
        tree = ast.parse(code)
        assert [n.name for n in tree.body if isinstance(n, ast.ClassDef)] == ["ApiClient"]
        assert "class ApiClient:\n    pass" in code
