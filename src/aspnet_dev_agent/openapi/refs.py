"""Local JSON pointer lookup inside an OpenAPI document."""


def resolve_ref(ref: str, document: dict | None) -> dict | None:
    """Resolve a local pointer such as ``#/components/schemas/Todo``.

    External references and missing targets resolve to None.
    """
    if not document or not ref.startswith("#/"):
        return None
    node = document
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, dict) else None
