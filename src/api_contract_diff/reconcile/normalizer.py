"""Text normalizer — canonicalizes free-text fields before comparison.

Only whitespace is canonicalized: case and embedded markup (<br>, etc.)
are kept so genuine wording changes still show up.
"""

import re

from api_contract_diff.parser.base import Document, Schema

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str | None) -> str | None:
    """Collapse whitespace runs to one space and trim. None stays None."""
    if text is None:
        return None
    return _WHITESPACE.sub(" ", text).strip()


def normalize_document(doc: Document) -> Document:
    """Normalize every summary and description of a document in place.

    Returns the same document for chaining.
    """
    visited: set[int] = set()

    for _, _, operation in doc.iter_operations():
        operation.summary = normalize_text(operation.summary)
        operation.description = normalize_text(operation.description)
        for param in operation.parameters:
            param.description = normalize_text(param.description)
            _normalize_schema(param.schema_, visited)
        if operation.request_body is not None:
            operation.request_body.description = normalize_text(operation.request_body.description)
            for media in operation.request_body.content.values():
                _normalize_schema(media.schema_, visited)
        for response in operation.responses.values():
            response.description = normalize_text(response.description)
            for media in response.content.values():
                _normalize_schema(media.schema_, visited)

    for schema in doc.components.schemas.values():
        _normalize_schema(schema, visited)

    return doc


def _normalize_schema(schema: Schema | None, visited: set[int]) -> None:
    # Explicit stack: schema graphs can be deep and self-referential
    stack = [schema]
    while stack:
        node = stack.pop()
        if node is None or id(node) in visited:
            continue
        visited.add(id(node))
        node.description = normalize_text(node.description)
        stack.extend(node.properties.values())
        stack.append(node.items)
