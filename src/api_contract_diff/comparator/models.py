"""Raw structural diff tree produced by the comparator.

Every node answers three questions:

- is_different: anything changed, text included;
- has_structural_changes: anything besides summary/description text changed;
- is_compatible: a consumer of the reference contract keeps working.
"""

from __future__ import annotations

from enum import Enum
from functools import cached_property

from pydantic import BaseModel

from api_contract_diff.parser.base import HttpMethod, MediaType, Operation, Parameter, Response, Schema


class DiffContext(str, Enum):
    """Which side of the exchange a schema describes."""

    REQUEST = "request"
    RESPONSE = "response"


class ChangedMetadata(BaseModel):
    """A pair of text values (reference, generated)."""

    left: str | None = None
    right: str | None = None

    @property
    def is_different(self) -> bool:
        return self.left != self.right


def _different(node) -> bool:
    return node is not None and node.is_different


def _structural(node) -> bool:
    return node is not None and node.has_structural_changes


def _compatible(node) -> bool:
    return node is None or node.is_compatible


class ChangedSchema(BaseModel):
    """Deltas between two schema nodes.

    Results of shared subgraphs are shared too, so the tree may be a DAG;
    the verdicts below are computed once per node and must be read only
    after the node is complete.
    """

    old_schema: Schema | None = None
    new_schema: Schema | None = None
    context: DiffContext = DiffContext.RESPONSE
    name: str | None = None
    description: ChangedMetadata | None = None
    changed_type: tuple[str | None, str | None] | None = None
    changed_format: tuple[str | None, str | None] | None = None
    increased_properties: dict[str, Schema] = {}
    missing_properties: dict[str, Schema] = {}
    changed_properties: dict[str, ChangedSchema] = {}
    items: ChangedSchema | None = None
    increased_required: list[str] = []
    missing_required: list[str] = []
    increased_enum: list = []
    missing_enum: list = []

    @cached_property
    def has_structural_changes(self) -> bool:
        return bool(
            self.changed_type
            or self.changed_format
            or self.increased_properties
            or self.missing_properties
            or self.increased_required
            or self.missing_required
            or self.increased_enum
            or self.missing_enum
            or _structural(self.items)
            or any(p.has_structural_changes for p in self.changed_properties.values())
        )

    @cached_property
    def is_different(self) -> bool:
        return (
            self.has_structural_changes
            or _different(self.description)
            or _different(self.items)
            or any(p.is_different for p in self.changed_properties.values())
        )

    @cached_property
    def is_compatible(self) -> bool:
        if self.changed_type or self.changed_format or self.missing_properties:
            return False
        if self.context == DiffContext.REQUEST:
            if self.increased_required or self.missing_enum:
                return False
        else:
            if self.missing_required or self.increased_enum:
                return False
        return _compatible(self.items) and all(p.is_compatible for p in self.changed_properties.values())


class ChangedMediaType(BaseModel):
    schema_: ChangedSchema | None = None

    @property
    def is_different(self) -> bool:
        return _different(self.schema_)

    @property
    def has_structural_changes(self) -> bool:
        return _structural(self.schema_)

    @property
    def is_compatible(self) -> bool:
        return _compatible(self.schema_)


class ChangedContent(BaseModel):
    increased: dict[str, MediaType] = {}
    missing: dict[str, MediaType] = {}
    changed: dict[str, ChangedMediaType] = {}

    @property
    def has_structural_changes(self) -> bool:
        return bool(self.increased or self.missing) or any(m.has_structural_changes for m in self.changed.values())

    @property
    def is_different(self) -> bool:
        return bool(self.increased or self.missing) or any(m.is_different for m in self.changed.values())

    @property
    def is_compatible(self) -> bool:
        return not self.missing and all(m.is_compatible for m in self.changed.values())


class ChangedParameter(BaseModel):
    name: str
    location: str
    description: ChangedMetadata | None = None
    changed_required: tuple[bool, bool] | None = None
    changed_deprecated: bool = False
    schema_: ChangedSchema | None = None

    @property
    def has_structural_changes(self) -> bool:
        return bool(self.changed_required or self.changed_deprecated) or _structural(self.schema_)

    @property
    def is_different(self) -> bool:
        return self.has_structural_changes or _different(self.description) or _different(self.schema_)

    @property
    def is_compatible(self) -> bool:
        if self.changed_required and self.changed_required[1]:
            return False
        return _compatible(self.schema_)


class ChangedParameters(BaseModel):
    increased: list[Parameter] = []
    missing: list[Parameter] = []
    changed: list[ChangedParameter] = []

    @property
    def has_structural_changes(self) -> bool:
        return bool(self.increased or self.missing) or any(p.has_structural_changes for p in self.changed)

    @property
    def is_different(self) -> bool:
        return bool(self.increased or self.missing) or any(p.is_different for p in self.changed)

    @property
    def is_compatible(self) -> bool:
        if self.missing or any(p.required for p in self.increased):
            return False
        return all(p.is_compatible for p in self.changed)


class ChangedRequestBody(BaseModel):
    added: bool = False
    removed: bool = False
    description: ChangedMetadata | None = None
    changed_required: tuple[bool, bool] | None = None
    content: ChangedContent | None = None

    @property
    def has_structural_changes(self) -> bool:
        return self.added or self.removed or bool(self.changed_required) or _structural(self.content)

    @property
    def is_different(self) -> bool:
        return self.has_structural_changes or _different(self.description) or _different(self.content)

    @property
    def is_compatible(self) -> bool:
        if self.removed:
            return False
        if self.changed_required and self.changed_required[1]:
            return False
        return _compatible(self.content)


class ChangedResponse(BaseModel):
    description: ChangedMetadata | None = None
    content: ChangedContent | None = None

    @property
    def has_structural_changes(self) -> bool:
        return _structural(self.content)

    @property
    def is_different(self) -> bool:
        return _different(self.description) or _different(self.content)

    @property
    def is_compatible(self) -> bool:
        return _compatible(self.content)


class ChangedApiResponse(BaseModel):
    increased: dict[str, Response] = {}
    missing: dict[str, Response] = {}
    changed: dict[str, ChangedResponse] = {}

    @property
    def has_structural_changes(self) -> bool:
        return bool(self.increased or self.missing) or any(r.has_structural_changes for r in self.changed.values())

    @property
    def is_different(self) -> bool:
        return bool(self.increased or self.missing) or any(r.is_different for r in self.changed.values())

    @property
    def is_compatible(self) -> bool:
        return not self.missing and all(r.is_compatible for r in self.changed.values())


class ChangedOperation(BaseModel):
    path_url: str
    http_method: HttpMethod
    old_operation: Operation
    new_operation: Operation
    summary: ChangedMetadata | None = None
    description: ChangedMetadata | None = None
    changed_deprecated: bool = False
    parameters: ChangedParameters | None = None
    request_body: ChangedRequestBody | None = None
    api_responses: ChangedApiResponse | None = None

    @property
    def has_structural_changes(self) -> bool:
        return (
            self.changed_deprecated
            or _structural(self.parameters)
            or _structural(self.request_body)
            or _structural(self.api_responses)
        )

    @property
    def is_different(self) -> bool:
        return (
            self.changed_deprecated
            or _different(self.summary)
            or _different(self.description)
            or _different(self.parameters)
            or _different(self.request_body)
            or _different(self.api_responses)
        )

    @property
    def is_compatible(self) -> bool:
        return _compatible(self.parameters) and _compatible(self.request_body) and _compatible(self.api_responses)


class Endpoint(BaseModel):
    """An operation present on one side only."""

    path_url: str
    method: HttpMethod
    summary: str | None = None
    operation: Operation


class ChangedOpenApi(BaseModel):
    """Root of the raw diff tree."""

    title: str = ""
    new_endpoints: list[Endpoint] = []
    missing_endpoints: list[Endpoint] = []
    changed_operations: list[ChangedOperation] = []
    changed_schemas: list[ChangedSchema] = []

    @property
    def is_different(self) -> bool:
        return bool(
            self.new_endpoints
            or self.missing_endpoints
            or self.changed_operations
            or any(s.is_different for s in self.changed_schemas)
        )

    @property
    def is_compatible(self) -> bool:
        return not self.missing_endpoints and all(op.is_compatible for op in self.changed_operations)
