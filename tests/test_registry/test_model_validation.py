"""Tests for clientgen.registry.validation."""

from __future__ import annotations

from clientgen.models import (
    IdentifierWrapper,
    Method,
    MethodParameter,
    MethodType,
    ModelRef,
    ModelRegistry,
    ParameterLocation,
)
from clientgen.registry.validation import Severity, validate_registry


def _method(
    template: str,
    *parameters: MethodParameter,
    method_type: MethodType = MethodType.GET,
    name: str = "GetThing",
) -> Method:
    return Method(name=name, method_type=method_type, url_template=template, parameters=parameters)


def _param(name: str, **kwargs: object) -> MethodParameter:
    return MethodParameter(name=name, type=ModelRef.primitive("string"), **kwargs)


class TestValidateRegistry:
    def test_gitlab_model_is_clean(self, gitlab_registry: ModelRegistry) -> None:
        assert validate_registry(gitlab_registry) == []

    def test_wrapper_without_refs(self) -> None:
        registry = ModelRegistry(
            wrappers=(IdentifierWrapper(name="ProjectId", final_type=ModelRef.primitive("int64")),)
        )
        issues = validate_registry(registry)
        assert len(issues) == 1
        assert issues[0].is_error
        assert str(issues[0]) == "ProjectId: wrapper declares no refs and can never be constructed"

    def test_unmatched_placeholder(self) -> None:
        registry = ModelRegistry(methods=(_method("/projects/:id/issues/:issue_iid", _param("id")),))
        issues = validate_registry(registry)
        assert [(i.severity, i.message) for i in issues] == [
            (Severity.ERROR, "placeholder ':issue_iid' has no URL parameter"),
        ]

    def test_placeholder_fed_by_body_parameter(self) -> None:
        registry = ModelRegistry(
            methods=(
                _method(
                    "/projects/:id",
                    _param("id", location=ParameterLocation.BODY),
                    method_type=MethodType.PUT,
                ),
            )
        )
        issues = validate_registry(registry)
        assert [i.message for i in issues] == ["placeholder ':id' has no URL parameter"]

    def test_unterminated_placeholder_is_a_warning(self) -> None:
        registry = ModelRegistry(methods=(_method("/projects/:id.json", _param("id")),))
        issues = validate_registry(registry)
        assert len(issues) == 1
        assert issues[0].severity == Severity.WARNING
        assert "':id' is not followed by '/'" in issues[0].message

    def test_unterminated_and_unmatched_reported_once(self) -> None:
        registry = ModelRegistry(
            methods=(_method("/projects/:id.json", _param("id"), method_type=MethodType.POST),)
        )
        issues = validate_registry(registry)
        assert [i.severity for i in issues] == [Severity.ERROR]

    def test_substring_match_that_is_not_a_token(self) -> None:
        registry = ModelRegistry(
            methods=(_method("/projects/:project-id/", _param("project-id")),)
        )
        messages = [i.message for i in validate_registry(registry)]
        assert messages == [
            "placeholder ':project' has no URL parameter",
            "parameter 'project-id' matches the template by substring but is not a placeholder token",
        ]

    def test_body_parameter_on_delete(self) -> None:
        registry = ModelRegistry(
            methods=(
                _method(
                    "/projects/:id",
                    _param("id"),
                    _param("reason"),
                    method_type=MethodType.DELETE,
                    name="DeleteProject",
                ),
            )
        )
        issues = validate_registry(registry)
        assert len(issues) == 1
        assert issues[0].severity == Severity.WARNING
        assert issues[0].subject == "DeleteProject"
        assert issues[0].message == "body parameter(s) reason are ignored by a delete request"

    def test_issue_order(self) -> None:
        registry = ModelRegistry(
            wrappers=(IdentifierWrapper(name="Id", final_type=ModelRef.primitive("int64")),),
            methods=(_method("/a/:x"), _method("/b/:y", name="GetOther")),
        )
        assert [i.subject for i in validate_registry(registry)] == ["Id", "GetThing", "GetOther"]
