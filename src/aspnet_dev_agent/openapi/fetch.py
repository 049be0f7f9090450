"""Download the OpenAPI document from a running service.

ASP.NET exposes it at one of a few conventional paths depending on the
template: ``/openapi/v1.json`` (Microsoft.AspNetCore.OpenApi) or
``/swagger/v1/swagger.json`` (Swashbuckle).
"""

import json
from pathlib import Path

import httpx
from loguru import logger
from pydantic import BaseModel

from aspnet_dev_agent.config import DEFAULT_OPENAPI_PATHS
from aspnet_dev_agent.errors import OpenApiFetchError


class FetchedDocument(BaseModel):
    url: str
    document: dict

    @property
    def version(self) -> str:
        return str(self.document.get("openapi") or self.document.get("swagger") or "")

    @property
    def title(self) -> str:
        return (self.document.get("info") or {}).get("title", "")


def fetch_openapi(
    base_url: str,
    paths: list[str] | None = None,
    timeout: float = 10.0,
    client: httpx.Client | None = None,
) -> FetchedDocument:
    """Try each well-known path in order and return the first OpenAPI document found."""
    paths = paths or DEFAULT_OPENAPI_PATHS
    attempts: list[tuple[str, str]] = []

    owns_client = client is None
    if owns_client:
        client = httpx.Client(timeout=timeout, verify=False, follow_redirects=True)
    try:
        for path in paths:
            url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"
            outcome, doc = _try_fetch(client, url, timeout)
            if doc is not None:
                logger.info(f"Fetched OpenAPI document from {url}")
                return FetchedDocument(url=url, document=doc)
            logger.debug(f"{url}: {outcome}")
            attempts.append((url, outcome))
    finally:
        if owns_client:
            client.close()

    raise OpenApiFetchError(base_url, attempts)


def _try_fetch(client: httpx.Client, url: str, timeout: float) -> tuple[str, dict | None]:
    try:
        resp = client.get(url, timeout=timeout, headers={"Accept": "application/json"})
    except httpx.HTTPError as e:
        return f"request failed ({e.__class__.__name__}: {e})", None

    if not resp.is_success:
        return f"HTTP {resp.status_code}", None

    try:
        doc = resp.json()
    except ValueError:
        return "response is not JSON", None

    if not isinstance(doc, dict) or not ("openapi" in doc or "swagger" in doc):
        return "JSON is not an OpenAPI document", None
    return "ok", doc


def save_document(doc: FetchedDocument, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(doc.document, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return path
