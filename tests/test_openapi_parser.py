from pathlib import Path

import pytest

from aspnet_dev_agent.openapi.models import ApiEndpoint
from aspnet_dev_agent.openapi.parser import filter_endpoints, load_document, parse_openapi

FIXTURES = Path(__file__).parent / "fixtures"


def _make_endpoint(method: str, path: str) -> ApiEndpoint:
    return ApiEndpoint(
        method=method,
        path=path,
        summary="",
        parameters=[],
        request_body=None,
        responses={},
        auth_required=False,
        tags=[],
    )


def _doc_with_ref_parameters() -> dict:
    return {
        "openapi": "3.0.1",
        "paths": {
            "/todos/{id}": {
                "parameters": [{"$ref": "#/components/parameters/Tenant"}],
                "get": {
                    "operationId": "GetTodo",
                    "parameters": [{"$ref": "#/components/parameters/Id"}],
                    "responses": {"200": {"description": "OK"}},
                },
            },
        },
        "components": {
            "parameters": {
                "Id": {"name": "id", "in": "path", "required": True, "schema": {"type": "integer"}},
                "Tenant": {"name": "X-Tenant", "in": "header", "required": True, "schema": {"type": "string"}},
            },
        },
    }


class TestOpenApiParser:
    def test_parse_endpoints_count(self):
        endpoints = parse_openapi(FIXTURES / "todo-api.yaml")
        assert len(endpoints) == 4

    def test_path_level_parameters_skipped_as_operations(self):
        endpoints = parse_openapi(FIXTURES / "todo-api.yaml")
        assert {e.method for e in endpoints} == {"GET", "POST", "DELETE"}

    def test_parse_get_todos(self):
        endpoints = parse_openapi(FIXTURES / "todo-api.yaml")
        get_todos = [e for e in endpoints if e.method == "GET" and e.path == "/todos"][0]
        assert get_todos.summary == "List todos"
        assert get_todos.operation_id == "GetTodos"
        assert get_todos.parameters[0].name == "page"
        assert get_todos.parameters[0].required is False
        assert get_todos.parameters[0].constraints == {"minimum": 1}
        assert get_todos.auth_required is False

    def test_post_has_body_and_inherits_security(self):
        endpoints = parse_openapi(FIXTURES / "todo-api.yaml")
        post = [e for e in endpoints if e.method == "POST"][0]
        assert post.request_body == {"$ref": "#/components/schemas/CreateTodo"}
        assert post.auth_required is True
        assert post.responses == {"201": {"description": "Created"}}

    def test_path_level_parameter_merged(self):
        endpoints = parse_openapi(FIXTURES / "todo-api.yaml")
        get_todo = [e for e in endpoints if e.operation_id == "GetTodo"][0]
        assert get_todo.parameters[0].name == "id"
        assert get_todo.parameters[0].location == "path"
        assert get_todo.parameters[0].param_type == "integer"
        assert set(get_todo.responses) == {"200", "404"}

    def test_accepts_loaded_mapping(self):
        doc = load_document(FIXTURES / "todo-api.yaml")
        assert len(parse_openapi(doc)) == 4

    def test_swagger2_body_parameter(self):
        endpoints = parse_openapi(FIXTURES / "swagger2.json")
        assert len(endpoints) == 1
        post = endpoints[0]
        assert post.request_body == {"$ref": "#/definitions/Item"}
        assert [p.name for p in post.parameters] == ["X-Tenant"]
        assert post.parameters[0].location == "header"

    def test_ref_parameters_resolved(self):
        doc = _doc_with_ref_parameters()
        endpoints = parse_openapi(doc)
        params = {p.name: p for p in endpoints[0].parameters}
        assert set(params) == {"id", "X-Tenant"}
        assert params["id"].location == "path"
        assert params["id"].param_type == "integer"
        assert params["X-Tenant"].location == "header"

    def test_unresolvable_ref_parameter_skipped(self):
        doc = _doc_with_ref_parameters()
        doc["paths"]["/todos/{id}"]["get"]["parameters"].append({"$ref": "#/components/parameters/Missing"})
        assert len(parse_openapi(doc)[0].parameters) == 2

    def test_non_mapping_document_rejected(self, tmp_path):
        f = tmp_path / "doc.yaml"
        f.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            load_document(f)


class TestFilterEndpoints:
    def test_filter_by_method_and_path(self):
        endpoints = [
            _make_endpoint("GET", "/todos"),
            _make_endpoint("POST", "/todos"),
            _make_endpoint("GET", "/users"),
        ]
        result = filter_endpoints(endpoints, ("POST /todos",))
        assert len(result) == 1
        assert result[0].method == "POST"

    def test_filter_by_path_only(self):
        endpoints = [
            _make_endpoint("GET", "/todos"),
            _make_endpoint("DELETE", "/todos/{id}"),
            _make_endpoint("GET", "/users"),
        ]
        result = filter_endpoints(endpoints, ("/todos/*",))
        assert [e.path for e in result] == ["/todos/{id}"]

    def test_no_patterns_keeps_all(self):
        endpoints = [_make_endpoint("GET", "/todos")]
        assert filter_endpoints(endpoints, ()) == endpoints

    def test_filter_no_match(self):
        endpoints = [_make_endpoint("GET", "/todos")]
        assert filter_endpoints(endpoints, ("DELETE /orders",)) == []
