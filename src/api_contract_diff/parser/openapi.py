"""OpenAPI 3.x document parser.

Parses OpenAPI 3.x YAML/JSON text into a Document graph with local
`$ref`s resolved. Component schemas are materialised once, so every
reference to a component shares the same Schema instance.
"""

import logging

import yaml
from pydantic import ValidationError

from api_contract_diff.errors import DocumentUnparseable
from .base import (
    Components,
    Document,
    HttpMethod,
    Info,
    MediaType,
    Operation,
    Parameter,
    PathItem,
    RequestBody,
    Response,
    Schema,
)

logger = logging.getLogger(__name__)

MAX_REF_HOPS = 32


def parse_openapi(text: str, source: str = "document") -> Document:
    """Parse OpenAPI text into a Document.

    `source` names the document in error messages ("reference", "generated").
    Raises DocumentUnparseable on invalid YAML/JSON or unsupported content.
    """
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DocumentUnparseable(source, f"invalid YAML/JSON ({e})") from e

    if not isinstance(doc, dict):
        raise DocumentUnparseable(source, "document root is not a mapping")
    if "swagger" in doc:
        raise DocumentUnparseable(source, "Swagger 2.0 documents are not supported")
    if "openapi" not in doc:
        raise DocumentUnparseable(source, "missing 'openapi' version field")

    parser = _OpenApiParser(doc, source)
    try:
        return parser.parse()
    except ValidationError as e:
        raise DocumentUnparseable(source, f"invalid field value ({e.errors()[0]['msg']})") from e


class _OpenApiParser:
    """Converts one raw document mapping into a Document."""

    def __init__(self, doc: dict, source: str):
        self.doc = doc
        self.source = source
        self.raw_components = self._mapping(doc.get("components"), "components")
        self.raw_schemas = self._mapping(self.raw_components.get("schemas"), "components.schemas")
        self.schemas: dict[str, Schema] = {}
        self._resolving: set[str] = set()

    def parse(self) -> Document:
        raw_info = self._mapping(self.doc.get("info"), "info")
        info = Info(
            title=str(raw_info.get("title", "")),
            version=str(raw_info.get("version", "")),
            description=raw_info.get("description"),
        )

        # Components first so operation schemas share their instances
        for name in self.raw_schemas:
            self._component_schema(name)

        paths: dict[str, PathItem] = {}
        for path, raw_item in self._mapping(self.doc.get("paths"), "paths").items():
            if not isinstance(raw_item, dict):
                raise DocumentUnparseable(self.source, f"path item {path} is not a mapping")
            paths[str(path)] = self._parse_path_item(raw_item)

        logger.debug("Parsed %s contract: %d paths, %d component schemas", self.source, len(paths), len(self.schemas))
        return Document(
            openapi=str(self.doc["openapi"]),
            info=info,
            paths=paths,
            components=Components(schemas=self.schemas),
        )

    def _mapping(self, value, what: str) -> dict:
        """Return `value` as a mapping. A missing value reads as empty."""
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise DocumentUnparseable(self.source, f"{what} is not a mapping")
        return value

    def _sequence(self, value, what: str) -> list:
        if value is None:
            return []
        if not isinstance(value, list):
            raise DocumentUnparseable(self.source, f"{what} is not a list")
        return value

    def _string(self, value, what: str) -> str | None:
        if value is not None and not isinstance(value, str):
            raise DocumentUnparseable(self.source, f"{what} is not a string")
        return value

    # -- references -----------------------------------------------------------

    def _ref_name(self, ref: str, kind: str) -> str:
        prefix = f"#/components/{kind}/"
        if not isinstance(ref, str) or not ref.startswith(prefix):
            raise DocumentUnparseable(self.source, f"unsupported $ref: {ref}")
        return ref[len(prefix):]

    def _resolve(self, obj: dict, kind: str) -> dict:
        """Follow `$ref` chains to a component of the given kind."""
        hops = 0
        while isinstance(obj, dict) and "$ref" in obj:
            hops += 1
            if hops > MAX_REF_HOPS:
                raise DocumentUnparseable(self.source, f"circular $ref: {obj['$ref']}")
            name = self._ref_name(obj["$ref"], kind)
            target = self._mapping(self.raw_components.get(kind), f"components.{kind}").get(name)
            if target is None:
                raise DocumentUnparseable(self.source, f"unresolved $ref: {obj['$ref']}")
            obj = target
        if not isinstance(obj, dict):
            raise DocumentUnparseable(self.source, f"invalid {kind} definition")
        return obj

    # -- schemas --------------------------------------------------------------

    def _component_schema(self, name: str) -> Schema:
        if name in self.schemas:
            return self.schemas[name]
        raw = self.raw_schemas.get(name)
        if not isinstance(raw, dict):
            raise DocumentUnparseable(self.source, f"unresolved schema: {name}")

        if "$ref" in raw:
            # Alias of another component
            if name in self._resolving:
                raise DocumentUnparseable(self.source, f"circular schema alias: {name}")
            self._resolving.add(name)
            schema = self._component_schema(self._ref_name(raw["$ref"], "schemas"))
            self._resolving.discard(name)
            self.schemas[name] = schema
            return schema

        # Register before filling so self-references resolve to this instance
        schema = Schema(name=name)
        self.schemas[name] = schema
        self._fill_schema(schema, raw)
        return schema

    def _build_schema(self, raw) -> Schema | None:
        if not isinstance(raw, dict):
            return None
        if "$ref" in raw:
            return self._component_schema(self._ref_name(raw["$ref"], "schemas"))
        schema = Schema()
        self._fill_schema(schema, raw)
        return schema

    def _fill_schema(self, schema: Schema, raw: dict) -> None:
        schema.type = self._string(_schema_type(raw.get("type")), "schema type")
        schema.format = self._string(raw.get("format"), "schema format")
        schema.description = self._string(raw.get("description"), "schema description")
        schema.nullable = bool(raw.get("nullable", False)) or _allows_null(raw.get("type"))
        if isinstance(raw.get("enum"), list):
            schema.enum = list(raw["enum"])
        # A Swagger 2 style `required: true` on a property names no fields
        required = raw.get("required")
        schema.required = [str(r) for r in required] if isinstance(required, list) else []
        properties = self._mapping(raw.get("properties"), "schema properties")
        schema.properties = {
            str(name): prop
            for name, prop in ((n, self._build_schema(p)) for n, p in properties.items())
            if prop is not None
        }
        schema.items = self._build_schema(raw.get("items"))

        # allOf is flattened into the owning schema
        for part in self._sequence(raw.get("allOf"), "allOf"):
            sub = self._build_schema(part)
            if sub is None:
                continue
            for name, prop in sub.properties.items():
                schema.properties.setdefault(name, prop)
            schema.required.extend(r for r in sub.required if r not in schema.required)
            schema.type = schema.type or sub.type
            schema.description = schema.description or sub.description

    # -- operations -----------------------------------------------------------

    def _parse_path_item(self, raw_item: dict) -> PathItem:
        shared_params = [
            self._parse_parameter(p)
            for p in self._sequence(raw_item.get("parameters"), "path parameters")
        ]
        operations: dict[HttpMethod, Operation] = {}
        for key, raw_op in raw_item.items():
            method = HttpMethod.parse(str(key))
            if method is None:
                continue
            if not isinstance(raw_op, dict):
                raise DocumentUnparseable(self.source, f"operation {key} is not a mapping")
            operations[method] = self._parse_operation(raw_op, shared_params)
        return PathItem(operations=operations)

    def _parse_operation(self, raw_op: dict, shared_params: list[Parameter]) -> Operation:
        params = [self._parse_parameter(p) for p in self._sequence(raw_op.get("parameters"), "parameters")]
        # Operation-level parameters override path-level ones with the same name and location
        own = {(p.name, p.location) for p in params}
        merged = [p for p in shared_params if (p.name, p.location) not in own] + params

        operation_id = raw_op.get("operationId")
        return Operation(
            operation_id=str(operation_id) if operation_id is not None else None,
            summary=raw_op.get("summary"),
            description=raw_op.get("description"),
            tags=[str(t) for t in self._sequence(raw_op.get("tags"), "tags")],
            deprecated=bool(raw_op.get("deprecated", False)),
            parameters=merged,
            request_body=self._parse_request_body(raw_op.get("requestBody")),
            responses=self._parse_responses(self._mapping(raw_op.get("responses"), "responses")),
        )

    def _parse_parameter(self, raw) -> Parameter:
        p = self._resolve(raw, "parameters")
        if "name" not in p:
            raise DocumentUnparseable(self.source, "parameter without a name")
        location = p.get("in", "query")
        return Parameter(
            name=str(p["name"]),
            location=location,
            required=bool(p.get("required", location == "path")),
            description=p.get("description"),
            deprecated=bool(p.get("deprecated", False)),
            schema_=self._build_schema(p.get("schema")),
        )

    def _parse_request_body(self, raw) -> RequestBody | None:
        if not raw:
            return None
        body = self._resolve(raw, "requestBodies")
        return RequestBody(
            description=body.get("description"),
            required=bool(body.get("required", False)),
            content=self._parse_content(self._mapping(body.get("content"), "request body content")),
        )

    def _parse_responses(self, responses: dict) -> dict[str, Response]:
        result = {}
        for status_code, raw in responses.items():
            resp = self._resolve(raw, "responses")
            result[str(status_code)] = Response(
                description=resp.get("description"),
                content=self._parse_content(self._mapping(resp.get("content"), f"response {status_code} content")),
            )
        return result

    def _parse_content(self, content: dict) -> dict[str, MediaType]:
        return {
            str(media_type): MediaType(schema_=self._build_schema(self._mapping(mt, f"media type {media_type}").get("schema")))
            for media_type, mt in content.items()
        }


def _schema_type(value) -> str | None:
    # OpenAPI 3.1 allows a list of types
    if isinstance(value, list):
        types = [t for t in value if t != "null"]
        return types[0] if types else None
    return value


def _allows_null(value) -> bool:
    return isinstance(value, list) and "null" in value
