"""Structural comparator — builds the raw diff tree of two documents.

Operations pair by (path, method), parameters by (name, in), responses by
status code, content by media type and schema properties by name. All
lists keep the order of the reference document, followed by anything
only the generated document has.
"""

import logging

from api_contract_diff.parser.base import Document, HttpMethod, MediaType, Operation, Parameter, RequestBody, Response, Schema
from .models import (
    ChangedApiResponse,
    ChangedContent,
    ChangedMediaType,
    ChangedMetadata,
    ChangedOpenApi,
    ChangedOperation,
    ChangedParameter,
    ChangedParameters,
    ChangedRequestBody,
    ChangedResponse,
    ChangedSchema,
    DiffContext,
    Endpoint,
)

logger = logging.getLogger(__name__)


def compare(reference: Document, generated: Document) -> ChangedOpenApi:
    """Compare two documents and return the raw diff tree."""
    return OpenApiComparator(reference, generated).compare()


class OpenApiComparator:
    """Compares a reference document with a generated one."""

    def __init__(self, reference: Document, generated: Document):
        self.reference = reference
        self.generated = generated
        # Finished schema comparisons, keyed on the identity pair and context
        self._schema_cache: dict[tuple[int, int, DiffContext], ChangedSchema | None] = {}

    def compare(self) -> ChangedOpenApi:
        new_endpoints: list[Endpoint] = []
        missing_endpoints: list[Endpoint] = []
        changed_operations: list[ChangedOperation] = []

        for path, method, old_op in self.reference.iter_operations():
            new_op = self._lookup(self.generated, path, method)
            if new_op is None:
                missing_endpoints.append(_endpoint(path, method, old_op))
                continue
            changed = self.compare_operation(path, method, old_op, new_op)
            if changed is not None:
                changed_operations.append(changed)

        for path, method, new_op in self.generated.iter_operations():
            if self._lookup(self.reference, path, method) is None:
                new_endpoints.append(_endpoint(path, method, new_op))

        changed_schemas = []
        new_components = self.generated.components.schemas
        for name, old_schema in self.reference.components.schemas.items():
            if name not in new_components:
                continue
            changed = self.compare_schema(old_schema, new_components[name], DiffContext.RESPONSE)
            if changed is not None:
                # Copy so a result shared with an operation keeps its own name
                changed_schemas.append(changed.model_copy(update={"name": name}))

        diff = ChangedOpenApi(
            title=self.reference.info.title,
            new_endpoints=new_endpoints,
            missing_endpoints=missing_endpoints,
            changed_operations=changed_operations,
            changed_schemas=changed_schemas,
        )
        logger.debug(
            "Compared contracts: %d new, %d missing, %d changed operations, %d changed schemas",
            len(new_endpoints), len(missing_endpoints), len(changed_operations), len(changed_schemas),
        )
        return diff

    @staticmethod
    def _lookup(doc: Document, path: str, method: HttpMethod) -> Operation | None:
        item = doc.paths.get(path)
        if item is None:
            return None
        return item.operations.get(method)

    # -- operations -----------------------------------------------------------

    def compare_operation(self, path: str, method: HttpMethod, old: Operation, new: Operation) -> ChangedOperation | None:
        changed = ChangedOperation(
            path_url=path,
            http_method=method,
            old_operation=old,
            new_operation=new,
            summary=_metadata(old.summary, new.summary),
            description=_metadata(old.description, new.description),
            changed_deprecated=old.deprecated != new.deprecated,
            parameters=self.compare_parameters(old.parameters, new.parameters),
            request_body=self.compare_request_body(old.request_body, new.request_body),
            api_responses=self.compare_responses(old.responses, new.responses),
        )
        return changed if changed.is_different else None

    def compare_parameters(self, old: list[Parameter], new: list[Parameter]) -> ChangedParameters | None:
        old_by_key = {(p.name, p.location): p for p in old}
        new_by_key = {(p.name, p.location): p for p in new}

        changed_params = []
        for key, old_param in old_by_key.items():
            if key in new_by_key:
                changed = self.compare_parameter(old_param, new_by_key[key])
                if changed is not None:
                    changed_params.append(changed)

        result = ChangedParameters(
            increased=[p for key, p in new_by_key.items() if key not in old_by_key],
            missing=[p for key, p in old_by_key.items() if key not in new_by_key],
            changed=changed_params,
        )
        return result if result.is_different else None

    def compare_parameter(self, old: Parameter, new: Parameter) -> ChangedParameter | None:
        changed = ChangedParameter(
            name=old.name,
            location=old.location,
            description=_metadata(old.description, new.description),
            changed_required=(old.required, new.required) if old.required != new.required else None,
            changed_deprecated=old.deprecated != new.deprecated,
            schema_=self.compare_schema(old.schema_, new.schema_, DiffContext.REQUEST),
        )
        return changed if changed.is_different else None

    def compare_request_body(self, old: RequestBody | None, new: RequestBody | None) -> ChangedRequestBody | None:
        if old is None and new is None:
            return None
        if old is None:
            return ChangedRequestBody(added=True)
        if new is None:
            return ChangedRequestBody(removed=True)

        changed = ChangedRequestBody(
            description=_metadata(old.description, new.description),
            changed_required=(old.required, new.required) if old.required != new.required else None,
            content=self.compare_content(old.content, new.content, DiffContext.REQUEST),
        )
        return changed if changed.is_different else None

    def compare_responses(self, old: dict[str, Response], new: dict[str, Response]) -> ChangedApiResponse | None:
        changed_responses = {}
        for code, old_resp in old.items():
            if code in new:
                changed = self.compare_response(old_resp, new[code])
                if changed is not None:
                    changed_responses[code] = changed

        result = ChangedApiResponse(
            increased={code: r for code, r in new.items() if code not in old},
            missing={code: r for code, r in old.items() if code not in new},
            changed=changed_responses,
        )
        return result if result.is_different else None

    def compare_response(self, old: Response, new: Response) -> ChangedResponse | None:
        changed = ChangedResponse(
            description=_metadata(old.description, new.description),
            content=self.compare_content(old.content, new.content, DiffContext.RESPONSE),
        )
        return changed if changed.is_different else None

    def compare_content(self, old: dict[str, MediaType], new: dict[str, MediaType], context: DiffContext) -> ChangedContent | None:
        changed_media = {}
        for media_type, old_mt in old.items():
            if media_type in new:
                schema = self.compare_schema(old_mt.schema_, new[media_type].schema_, context)
                if schema is not None:
                    changed_media[media_type] = ChangedMediaType(schema_=schema)

        result = ChangedContent(
            increased={m: mt for m, mt in new.items() if m not in old},
            missing={m: mt for m, mt in old.items() if m not in new},
            changed=changed_media,
        )
        return result if result.is_different else None

    # -- schemas --------------------------------------------------------------

    def compare_schema(
        self,
        old: Schema | None,
        new: Schema | None,
        context: DiffContext,
        visited: frozenset = frozenset(),
    ) -> ChangedSchema | None:
        """Compare two schema graphs.

        `visited` holds the (reference, generated) identity pairs already on
        the current path; meeting one again ends the walk, so cyclic graphs
        terminate. Pairs already compared elsewhere in the graph are served
        from a cache, so shared subgraphs are walked once.
        """
        if old is None and new is None:
            return None
        if old is new:
            return None
        # Placeholders for a missing side are short-lived and never cached
        cacheable = old is not None and new is not None
        old = old if old is not None else Schema()
        new = new if new is not None else Schema()

        key = (id(old), id(new))
        if key in visited:
            return None
        cache_key = (id(old), id(new), context)
        if cacheable and cache_key in self._schema_cache:
            return self._schema_cache[cache_key]
        visited = visited | {key}

        changed_properties = {}
        for name, old_prop in old.properties.items():
            if name in new.properties:
                prop = self.compare_schema(old_prop, new.properties[name], context, visited)
                if prop is not None:
                    changed_properties[name] = prop

        increased_enum, missing_enum = [], []
        if old.enum is not None and new.enum is not None:
            increased_enum = [v for v in new.enum if v not in old.enum]
            missing_enum = [v for v in old.enum if v not in new.enum]

        changed = ChangedSchema(
            old_schema=old,
            new_schema=new,
            context=context,
            description=_metadata(old.description, new.description),
            changed_type=(old.type, new.type) if old.type != new.type else None,
            changed_format=(old.format, new.format) if old.format != new.format else None,
            increased_properties={n: s for n, s in new.properties.items() if n not in old.properties},
            missing_properties={n: s for n, s in old.properties.items() if n not in new.properties},
            changed_properties=changed_properties,
            items=self.compare_schema(old.items, new.items, context, visited),
            increased_required=[r for r in new.required if r not in old.required],
            missing_required=[r for r in old.required if r not in new.required],
            increased_enum=increased_enum,
            missing_enum=missing_enum,
        )
        result = changed if changed.is_different else None
        if cacheable:
            self._schema_cache[cache_key] = result
        return result


def _metadata(left: str | None, right: str | None) -> ChangedMetadata | None:
    if left == right:
        return None
    return ChangedMetadata(left=left, right=right)


def _endpoint(path: str, method: HttpMethod, operation: Operation) -> Endpoint:
    return Endpoint(path_url=path, method=method, summary=operation.summary, operation=operation)
