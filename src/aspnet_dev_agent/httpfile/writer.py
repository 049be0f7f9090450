"""Generate a .http file from the operations of an OpenAPI document."""

import json
from urllib.parse import quote

from aspnet_dev_agent.openapi.models import ApiEndpoint, Param
from aspnet_dev_agent.openapi.refs import resolve_ref

MAX_DEPTH = 6

_STRING_FORMATS = {
    "date-time": "2025-01-01T00:00:00Z",
    "date": "2025-01-01",
    "time": "00:00:00",
    "uuid": "00000000-0000-0000-0000-000000000000",
    "email": "user@example.com",
    "uri": "https://example.com",
}


def sample_from_schema(schema: dict | None, document: dict | None = None, _depth: int = 0):
    """Build an example value for a JSON schema.

    Explicit ``example``/``default``/``enum`` values win over type defaults.
    ``$ref`` pointers are resolved against ``document``.
    """
    if not schema or _depth > MAX_DEPTH:
        return None

    if "$ref" in schema:
        target = resolve_ref(schema["$ref"], document)
        return sample_from_schema(target, document, _depth + 1)

    for key in ("example", "default"):
        if key in schema:
            return schema[key]
    if schema.get("examples") and isinstance(schema["examples"], list):
        return schema["examples"][0]
    if schema.get("enum"):
        return schema["enum"][0]

    if "allOf" in schema:
        merged: dict = {}
        for part in schema["allOf"]:
            value = sample_from_schema(part, document, _depth + 1)
            if isinstance(value, dict):
                merged.update(value)
        return merged
    for key in ("oneOf", "anyOf"):
        if schema.get(key):
            return sample_from_schema(schema[key][0], document, _depth + 1)

    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        # OpenAPI 3.1 nullable types, e.g. ["string", "null"]
        schema_type = next((t for t in schema_type if t != "null"), None)
    if schema_type is None and "properties" in schema:
        schema_type = "object"

    if schema_type == "object":
        return {
            name: sample_from_schema(prop, document, _depth + 1)
            for name, prop in (schema.get("properties") or {}).items()
        }
    if schema_type == "array":
        item = sample_from_schema(schema.get("items"), document, _depth + 1)
        return [] if item is None else [item]
    if schema_type == "string":
        return _STRING_FORMATS.get(schema.get("format", ""), "string")
    if schema_type == "integer":
        return schema.get("minimum", 0)
    if schema_type == "number":
        return float(schema.get("minimum", 0))
    if schema_type == "boolean":
        return False
    return None


def render_request(endpoint: ApiEndpoint, host_variable: str = "host", document: dict | None = None) -> str:
    """Render one request block (without the leading separator)."""
    path = endpoint.path
    query = []
    headers = {"Accept": "application/json"}
    for param in endpoint.parameters:
        value = _param_sample(param)
        if param.location == "path":
            path = path.replace("{" + param.name + "}", quote(str(value), safe=""))
        elif param.location == "query" and param.required:
            query.append(f"{param.name}={quote(str(value), safe='')}")
        elif param.location == "header" and param.required:
            headers[param.name] = str(value)
    if endpoint.auth_required:
        headers["Authorization"] = "Bearer {{token}}"

    url = "{{" + host_variable + "}}" + path
    if query:
        url += "?" + "&".join(query)

    lines = []
    if endpoint.summary:
        lines.append(f"# {endpoint.summary}")
    lines.append(f"{endpoint.method} {url}")

    body = None
    if endpoint.request_body is not None and endpoint.content_type == "application/json":
        headers["Content-Type"] = "application/json"
        body = json.dumps(sample_from_schema(endpoint.request_body, document), indent=2)

    lines.extend(f"{name}: {value}" for name, value in headers.items())
    if body is not None:
        lines.append("")
        lines.append(body)
    return "\n".join(lines)


def render_http_file(
    endpoints: list[ApiEndpoint],
    base_url: str,
    host_variable: str = "host",
    document: dict | None = None,
) -> str:
    """Render a complete .http file with one block per operation."""
    parts = [f"@{host_variable} = {base_url.rstrip('/')}"]
    if any(ep.auth_required for ep in endpoints):
        parts.append("@token = ")
    out = ["\n".join(parts)]
    for endpoint in endpoints:
        title = endpoint.operation_id or endpoint.label
        out.append(f"### {title}\n{render_request(endpoint, host_variable, document)}")
    return "\n\n".join(out) + "\n"


def _param_sample(param: Param):
    schema = dict(param.constraints)
    schema["type"] = param.param_type
    value = sample_from_schema(schema)
    if param.location == "path":
        if param.param_type in ("integer", "number") and value in (None, 0):
            return 1
        if value in (None, "string"):
            return "value"
    if isinstance(value, bool):
        return str(value).lower()
    return "" if value is None else value
