"""OpenAPI / Swagger document parser.

Reads OpenAPI 3.x and Swagger 2.0 documents, from a file or an already
loaded mapping, into ApiEndpoint models.
"""

import fnmatch
from pathlib import Path

import yaml

from .models import ApiEndpoint, Param
from .refs import resolve_ref

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")


def load_document(source: Path | dict) -> dict:
    """Return the document as a mapping; YAML is a superset of JSON."""
    if isinstance(source, dict):
        return source
    doc = yaml.safe_load(Path(source).read_text(encoding="utf-8"))
    if not isinstance(doc, dict):
        raise ValueError(f"{source} is not an OpenAPI document")
    return doc


def parse_openapi(source: Path | dict) -> list[ApiEndpoint]:
    """Parse an OpenAPI/Swagger document into a list of ApiEndpoint."""
    doc = load_document(source)

    endpoints = []
    paths = doc.get("paths") or {}

    for path, methods in paths.items():
        shared_params = methods.get("parameters", [])
        for method, operation in methods.items():
            if method.upper() not in HTTP_METHODS:
                continue

            raw_params = _merge_parameters(shared_params, operation.get("parameters", []), doc)
            params = _parse_parameters([p for p in raw_params if p.get("in") not in ("body", "formData")])
            request_body = _parse_request_body(operation.get("requestBody"), raw_params)
            content_type = _detect_content_type(operation, doc)
            auth_required = bool(operation.get("security", doc.get("security")))

            endpoints.append(
                ApiEndpoint(
                    method=method.upper(),
                    path=path,
                    summary=operation.get("summary", ""),
                    operation_id=operation.get("operationId"),
                    parameters=params,
                    request_body=request_body,
                    responses=_parse_responses(operation.get("responses", {})),
                    auth_required=auth_required,
                    tags=operation.get("tags", []),
                    content_type=content_type,
                )
            )

    return endpoints


def filter_endpoints(endpoints: list[ApiEndpoint], patterns: tuple[str, ...]) -> list[ApiEndpoint]:
    """Keep endpoints matching any ``"METHOD /glob"`` or ``"/glob"`` pattern."""
    if not patterns:
        return list(endpoints)
    result = []
    for ep in endpoints:
        for pattern in patterns:
            method, _, path_glob = pattern.strip().rpartition(" ")
            if method and method.upper() != ep.method:
                continue
            if fnmatch.fnmatchcase(ep.path, path_glob):
                result.append(ep)
                break
    return result


def _merge_parameters(shared: list[dict], own: list[dict], doc: dict) -> list[dict]:
    # Operation-level parameters override path-level ones with the same name and location
    merged = {}
    for p in [*shared, *own]:
        if "$ref" in p:
            p = resolve_ref(p["$ref"], doc)
            if p is None:
                continue
        merged[(p.get("name"), p.get("in"))] = p
    return list(merged.values())


def _parse_parameters(params: list[dict]) -> list[Param]:
    result = []
    for p in params:
        # Swagger 2.0 keeps type information on the parameter itself
        schema = p.get("schema", p)
        constraints = {}
        for key in ("minimum", "maximum", "minLength", "maxLength", "pattern", "enum", "format"):
            if key in schema:
                constraints[key] = schema[key]

        result.append(
            Param(
                name=p["name"],
                location=p.get("in", "query"),
                required=p.get("required", False),
                param_type=schema.get("type", "string"),
                description=p.get("description", ""),
                constraints=constraints,
            )
        )
    return result


def _parse_request_body(body: dict | None, params: list[dict]) -> dict | None:
    if not body:
        for p in params:
            if p.get("in") == "body":
                return p.get("schema")
        return None
    content = body.get("content", {})
    for content_type in ("application/json", "multipart/form-data"):
        if content_type in content:
            return content[content_type].get("schema")
    # Fallback: return first available schema
    for ct_data in content.values():
        return ct_data.get("schema")
    return None


def _detect_content_type(operation: dict, doc: dict) -> str:
    body = operation.get("requestBody")
    if body:
        content = body.get("content", {})
        if "multipart/form-data" in content:
            return "multipart/form-data"
        if content and "application/json" not in content:
            return next(iter(content))
        return "application/json"
    consumes = operation.get("consumes", doc.get("consumes", []))
    if "multipart/form-data" in consumes:
        return "multipart/form-data"
    return "application/json"


def _parse_responses(responses: dict) -> dict:
    result = {}
    for status_code, resp in responses.items():
        result[str(status_code)] = {"description": (resp or {}).get("description", "")}
    return result
