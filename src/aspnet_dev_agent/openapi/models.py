"""Models for the operations read out of an OpenAPI document."""

from pydantic import BaseModel


class Param(BaseModel):
    """A single operation parameter (query, path, header, or cookie)."""

    name: str
    location: str  # the OpenAPI "in" field
    required: bool
    param_type: str  # JSON schema type; "string" when the schema gives none
    description: str = ""
    constraints: dict = {}  # schema keywords such as minimum, pattern, enum, format


class ApiEndpoint(BaseModel):
    """One HTTP operation with the fields the workflow looks up."""

    method: str  # upper case, one of parser.HTTP_METHODS
    path: str  # template as written in the document, e.g. /todos/{id}
    summary: str
    operation_id: str | None = None
    parameters: list[Param]  # path-level and $ref parameters already merged in
    request_body: dict | None  # schema, possibly an unresolved $ref
    responses: dict  # {status_code: {description}}
    auth_required: bool
    tags: list[str]
    content_type: str = "application/json"

    @property
    def label(self) -> str:
        return f"{self.method} {self.path}"
