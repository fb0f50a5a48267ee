"""In-memory model of a parsed OpenAPI document.

The parser converts YAML/JSON input into these models; every later stage
(normalization, matching, comparison) reads and writes them directly.
Schemas are shared by identity once `$ref`s are resolved, so the schema
graph may contain cycles.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class HttpMethod(str, Enum):
    """Closed set of operation slots on a path item."""

    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    HEAD = "HEAD"
    PATCH = "PATCH"
    TRACE = "TRACE"

    @classmethod
    def parse(cls, value: str) -> HttpMethod | None:
        try:
            return cls(value.upper())
        except ValueError:
            return None


class Schema(BaseModel):
    """A node of the (possibly cyclic) schema graph."""

    name: str | None = None  # component name when defined under components/schemas
    type: str | None = None
    format: str | None = None
    description: str | None = None
    properties: dict[str, Schema] = {}
    items: Schema | None = None
    required: list[str] = []
    enum: list | None = None
    nullable: bool = False

    # Nodes compare and hash by identity; the graph may be cyclic.
    __eq__ = object.__eq__
    __hash__ = object.__hash__

    def __repr_args__(self):
        yield "name", self.name
        yield "type", self.type


class Parameter(BaseModel):
    """A single operation parameter (query, path, header, or cookie)."""

    name: str
    location: str  # query / path / header / cookie
    required: bool = False
    description: str | None = None
    deprecated: bool = False
    schema_: Schema | None = None


class MediaType(BaseModel):
    schema_: Schema | None = None


class RequestBody(BaseModel):
    description: str | None = None
    required: bool = False
    content: dict[str, MediaType] = {}


class Response(BaseModel):
    description: str | None = None
    content: dict[str, MediaType] = {}


class Operation(BaseModel):
    """One HTTP method on one path."""

    operation_id: str | None = None
    summary: str | None = None
    description: str | None = None
    tags: list[str] = []
    deprecated: bool = False
    parameters: list[Parameter] = []
    request_body: RequestBody | None = None
    responses: dict[str, Response] = {}


class PathItem(BaseModel):
    """Operations of a single path, keyed by method in declaration order."""

    operations: dict[HttpMethod, Operation] = {}


class Info(BaseModel):
    title: str = ""
    version: str = ""
    description: str | None = None


class Components(BaseModel):
    schemas: dict[str, Schema] = {}


class Document(BaseModel):
    """A full API interface description."""

    openapi: str = "3.0.0"
    info: Info = Info()
    paths: dict[str, PathItem] = {}
    components: Components = Components()

    def iter_operations(self):
        """Yield (path, method, operation) in document order."""
        for path, item in self.paths.items():
            for method, operation in item.operations.items():
                yield path, method, operation
