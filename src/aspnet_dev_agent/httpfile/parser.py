"""Parser for .http request files.

The format is the one read by Visual Studio and the VS Code REST Client::

    @host = http://localhost:5000

    ### List todos
    GET {{host}}/todos
    Accept: application/json

    ###
    POST {{host}}/todos
    Content-Type: application/json

    {"title": "write tests"}

Blocks are separated by ``###`` lines. ``@name = value`` defines a variable,
``{{name}}`` references it, and ``#`` or ``//`` lines are comments.
"""

import re

from pydantic import BaseModel, Field

from aspnet_dev_agent.errors import HttpFileError

METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "TRACE", "CONNECT")

_VARIABLE_DEF = re.compile(r"^@([A-Za-z_][\w.-]*)\s*=\s*(.*?)\s*$")
_VARIABLE_REF = re.compile(r"\{\{\s*([A-Za-z_][\w.-]*)\s*\}\}")
_NAME_COMMENT = re.compile(r"^(?:#|//)\s*@name\s+(\S+)")
_REQUEST_LINE = re.compile(
    r"^(?P<method>[A-Z]+)\s+(?P<url>\S.*?)(?:\s+HTTP/\d(?:\.\d)?)?\s*$"
)
_HTTP_VERSION = re.compile(r"\s+HTTP/\d(?:\.\d)?$")
_HEADER = re.compile(r"^(?P<name>[!#$%&'*+.^_`|~\w-]+)\s*:\s*(?P<value>.*)$")


class HttpRequest(BaseModel):
    """One request block, with variables substituted."""

    name: str | None = None
    method: str
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: str | None = None
    line: int  # 1-based line of the request line


class HttpFile(BaseModel):
    variables: dict[str, str] = Field(default_factory=dict)
    requests: list[HttpRequest] = Field(default_factory=list)


def is_separator(line: str) -> bool:
    return line.lstrip().startswith("###")


def is_comment(line: str) -> bool:
    stripped = line.lstrip()
    return stripped.startswith("#") or stripped.startswith("//")


def substitute(text: str, variables: dict[str, str]) -> str:
    """Replace ``{{name}}`` references; unknown names are left untouched."""

    def repl(m: re.Match) -> str:
        return variables.get(m.group(1), m.group(0))

    return _VARIABLE_REF.sub(repl, text)


def parse_http_file(text: str) -> HttpFile:
    """Parse the contents of a .http file."""
    variables: dict[str, str] = {}
    raw_blocks = _split_blocks(text.splitlines())

    pending: list[tuple[str | None, int, list[tuple[int, str]], list[str]]] = []
    for name, lines in raw_blocks:
        parsed = _parse_block(name, lines, variables)
        if parsed is not None:
            pending.append(parsed)

    requests = []
    for name, line_no, request_lines, body_lines in pending:
        requests.append(_build_request(name, line_no, request_lines, body_lines, variables))
    return HttpFile(variables=variables, requests=requests)


def _split_blocks(lines: list[str]) -> list[tuple[str | None, list[tuple[int, str]]]]:
    blocks: list[tuple[str | None, list[tuple[int, str]]]] = []
    name: str | None = None
    current: list[tuple[int, str]] = []
    for number, line in enumerate(lines, start=1):
        if is_separator(line):
            blocks.append((name, current))
            name = line.lstrip()[3:].strip().lstrip("#").strip() or None
            current = []
        else:
            current.append((number, line))
    blocks.append((name, current))
    return blocks


def _parse_block(
    name: str | None,
    lines: list[tuple[int, str]],
    variables: dict[str, str],
) -> tuple[str | None, int, list[tuple[int, str]], list[str]] | None:
    """Split a block into its request line, header lines and body lines.

    Variable definitions before the request line are recorded in ``variables``.
    Returns None for blocks holding no request.
    """
    i = 0
    while i < len(lines):
        number, line = lines[i]
        stripped = line.strip()
        if not stripped:
            i += 1
            continue
        named = _NAME_COMMENT.match(stripped)
        if named:
            name = named.group(1)
            i += 1
            continue
        if is_comment(stripped):
            i += 1
            continue
        definition = _VARIABLE_DEF.match(stripped)
        if definition:
            # Later definitions may reference earlier ones
            variables[definition.group(1)] = substitute(definition.group(2), variables)
            i += 1
            continue
        break
    else:
        return None

    request_no, request_line = lines[i]
    header_lines: list[tuple[int, str]] = []
    i += 1
    while i < len(lines) and lines[i][1].strip():
        if not is_comment(lines[i][1]):
            header_lines.append(lines[i])
        i += 1

    body_lines = [line for _, line in lines[i + 1:]]
    return name, request_no, [(request_no, request_line)] + header_lines, body_lines


def _build_request(
    name: str | None,
    line_no: int,
    request_lines: list[tuple[int, str]],
    body_lines: list[str],
    variables: dict[str, str],
) -> HttpRequest:
    _, request_line = request_lines[0]
    method, url = _parse_request_line(request_line.strip(), line_no)

    headers: dict[str, str] = {}
    for number, line in request_lines[1:]:
        m = _HEADER.match(line.strip())
        if not m:
            raise HttpFileError(f"expected 'Name: value' header, got {line.strip()!r}", number)
        headers[m.group("name")] = substitute(m.group("value").strip(), variables)

    while body_lines and not body_lines[-1].strip():
        body_lines.pop()
    while body_lines and not body_lines[0].strip():
        body_lines.pop(0)
    body = substitute("\n".join(body_lines), variables) if body_lines else None

    return HttpRequest(
        name=name,
        method=method,
        url=substitute(url, variables),
        headers=headers,
        body=body,
        line=line_no,
    )


def _parse_request_line(line: str, line_no: int) -> tuple[str, str]:
    m = _REQUEST_LINE.match(line)
    if m and m.group("method") in METHODS:
        return m.group("method"), m.group("url")
    line = _HTTP_VERSION.sub("", line)
    if " " not in line and (line.startswith("{{") or "://" in line or line.startswith("/")):
        return "GET", line
    raise HttpFileError(f"expected 'METHOD URL', got {line!r}", line_no)
