"""Change classifier — turns a raw diff tree into structural and metadata changes.

Breaking-ness is never recomputed here: a changed operation is breaking
exactly when the comparator says it is incompatible. The classifier only
labels and flattens what the comparator found, in document order.
"""

import logging
from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict

from api_contract_diff.comparator.models import (
    ChangedContent,
    ChangedOpenApi,
    ChangedOperation,
    ChangedSchema,
)
from api_contract_diff.models import ChangeType, MetadataChange, StructureChange
from .matcher import MatchResult

logger = logging.getLogger(__name__)

INDENT = "  "
GENERIC_DETAIL = "Structural changes detected"


class ClassifiedChanges(BaseModel):
    model_config = ConfigDict(frozen=True)

    structure_changes: tuple[StructureChange, ...] = ()
    metadata_changes: tuple[MetadataChange, ...] = ()
    is_different: bool = False


def classify(diff: ChangedOpenApi, match_result: MatchResult) -> ClassifiedChanges:
    """Classify every node of the diff tree.

    Reference operations the matcher could not resolve are reported as
    missing operations only; their REMOVED endpoint entries are dropped.
    """
    structure = structure_changes(diff, match_result)
    metadata = metadata_changes(diff)
    is_different = diff.is_different or bool(match_result.missing)
    logger.debug("Classified %d structure and %d metadata changes", len(structure), len(metadata))
    return ClassifiedChanges(
        structure_changes=tuple(structure),
        metadata_changes=tuple(metadata),
        is_different=is_different,
    )


# -- structure ----------------------------------------------------------------


def structure_changes(diff: ChangedOpenApi, match_result: MatchResult | None = None) -> list[StructureChange]:
    changes = []

    for endpoint in diff.new_endpoints:
        changes.append(StructureChange(
            method=endpoint.method.value,
            path=endpoint.path_url,
            change_type=ChangeType.NEW,
            details=("Endpoint added in generated contract",),
            is_breaking=False,
        ))

    for endpoint in diff.missing_endpoints:
        if match_result is not None:
            match = match_result.get(endpoint.path_url, endpoint.method)
            if match is not None and not match.is_matched:
                continue
        changes.append(StructureChange(
            method=endpoint.method.value,
            path=endpoint.path_url,
            change_type=ChangeType.REMOVED,
            details=("Endpoint missing from generated contract",),
            is_breaking=True,
        ))

    for op in diff.changed_operations:
        details = operation_details(op)
        if details or op.has_structural_changes or not op.is_compatible:
            changes.append(StructureChange(
                method=op.http_method.value,
                path=op.path_url,
                change_type=ChangeType.CHANGED,
                details=tuple(details) or (GENERIC_DETAIL,),
                is_breaking=not op.is_compatible,
            ))

    return changes


def operation_details(op: ChangedOperation) -> list[str]:
    """One human-readable line per structural delta of an operation."""
    lines: list[str] = []

    params = op.parameters
    if params is not None:
        lines.extend(f"Added parameter: {p.name}" for p in params.increased)
        lines.extend(f"Removed parameter: {p.name}" for p in params.missing)
        for p in params.changed:
            if not p.has_structural_changes:
                continue
            lines.append(f"Changed parameter: {p.name}")
            if p.changed_required:
                lines.append(f"{INDENT}Required: {_flag(p.changed_required[0])} -> {_flag(p.changed_required[1])}")
            if p.changed_deprecated:
                lines.append(f"{INDENT}Deprecation changed")
            if p.schema_ is not None:
                lines = schema_details(p.schema_, 1, lines)

    body = op.request_body
    if body is not None:
        if body.added:
            lines.append("Added request body")
        elif body.removed:
            lines.append("Removed request body")
        elif body.has_structural_changes:
            lines.append("Changed request body")
            if body.changed_required:
                lines.append(f"{INDENT}Required: {_flag(body.changed_required[0])} -> {_flag(body.changed_required[1])}")
            if body.content is not None:
                lines = content_details(body.content, 1, lines)

    responses = op.api_responses
    if responses is not None:
        lines.extend(f"Added response: {code}" for code in responses.increased)
        lines.extend(f"Removed response: {code}" for code in responses.missing)
        for code, resp in responses.changed.items():
            if not resp.has_structural_changes:
                continue
            lines.append(f"Changed response: {code}")
            if resp.content is not None:
                lines = content_details(resp.content, 1, lines)

    if op.changed_deprecated:
        lines.append("Deprecation changed")

    return lines


def content_details(content: ChangedContent, depth: int, lines: list[str]) -> list[str]:
    indent = INDENT * depth
    lines.extend(f"{indent}Added media type: {m}" for m in content.increased)
    lines.extend(f"{indent}Removed media type: {m}" for m in content.missing)
    for media_type, changed in content.changed.items():
        if not changed.has_structural_changes:
            continue
        lines.append(f"{indent}Media Type: {media_type}")
        lines = schema_details(changed.schema_, depth + 1, lines)
    return lines


def schema_details(schema: ChangedSchema, depth: int, lines: list[str], visited: frozenset = frozenset()) -> list[str]:
    """Append the structural deltas of a schema subtree to `lines` and return it.

    Each nesting level adds one indent step. `visited` holds the nodes on
    the current path.
    """
    if id(schema) in visited:
        return lines
    visited = visited | {id(schema)}
    indent = INDENT * depth

    if schema.changed_type:
        lines.append(f"{indent}Changed type: {schema.changed_type[0]} -> {schema.changed_type[1]}")
    if schema.changed_format:
        lines.append(f"{indent}Changed format: {schema.changed_format[0]} -> {schema.changed_format[1]}")
    lines.extend(f"{indent}Missing property: {name}" for name in schema.missing_properties)
    lines.extend(f"{indent}New property: {name}" for name in schema.increased_properties)
    lines.extend(f"{indent}Now required: {name}" for name in schema.increased_required)
    lines.extend(f"{indent}No longer required: {name}" for name in schema.missing_required)
    if schema.increased_enum:
        lines.append(f"{indent}Added enum values: {_join(schema.increased_enum)}")
    if schema.missing_enum:
        lines.append(f"{indent}Removed enum values: {_join(schema.missing_enum)}")

    for name, prop in schema.changed_properties.items():
        if not prop.has_structural_changes:
            continue
        lines.append(f"{indent}Changed property: {name}")
        lines = schema_details(prop, depth + 1, lines, visited)

    if schema.items is not None and schema.items.has_structural_changes:
        lines.append(f"{indent}Items changed:")
        lines = schema_details(schema.items, depth + 1, lines, visited)

    return lines


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _join(values: list) -> str:
    return ", ".join(str(v) for v in values)


# -- metadata -----------------------------------------------------------------


def metadata_changes(diff: ChangedOpenApi) -> list[MetadataChange]:
    """Text-only deltas of every changed operation and component schema.

    The same (path, method, field) is reported once, first occurrence wins.
    """
    changes = []
    seen: set[tuple[str, str, str]] = set()

    def candidates() -> Iterator[MetadataChange]:
        for op in diff.changed_operations:
            yield from _operation_metadata(op)
        for schema in diff.changed_schemas:
            yield from _schema_metadata("", "", f"Schema {schema.name}", schema, frozenset())

    for change in candidates():
        key = (change.path, change.method, change.field)
        if key in seen:
            continue
        seen.add(key)
        changes.append(change)
    return changes


def _operation_metadata(op: ChangedOperation) -> Iterator[MetadataChange]:
    path = op.path_url
    method = op.http_method.value

    def change(field: str, meta) -> MetadataChange:
        return MetadataChange(path=path, method=method, field=field, reference_value=meta.left, generated_value=meta.right)

    if op.summary is not None and op.summary.is_different:
        yield change("Summary", op.summary)
    if op.description is not None and op.description.is_different:
        yield change("Description", op.description)

    if op.parameters is not None:
        for param in op.parameters.changed:
            if param.description is not None and param.description.is_different:
                yield change(f"Param: {param.name}", param.description)
            if param.schema_ is not None:
                yield from _schema_metadata(path, method, f"Param: {param.name} Schema", param.schema_, frozenset())

    body = op.request_body
    if body is not None:
        if body.description is not None and body.description.is_different:
            yield change("Request Body Description", body.description)
        if body.content is not None:
            for media in body.content.changed.values():
                if media.schema_ is not None:
                    yield from _schema_metadata(path, method, "Request Body Schema", media.schema_, frozenset())

    if op.api_responses is not None:
        for code, resp in op.api_responses.changed.items():
            if resp.description is not None and resp.description.is_different:
                yield change(f"Response {code} Description", resp.description)
            if resp.content is not None:
                for media in resp.content.changed.values():
                    if media.schema_ is not None:
                        yield from _schema_metadata(path, method, f"Response {code} Schema", media.schema_, frozenset())


def _schema_metadata(path: str, method: str, label: str, schema: ChangedSchema, visited: frozenset) -> Iterator[MetadataChange]:
    if id(schema) in visited:
        return
    visited = visited | {id(schema)}

    if schema.description is not None and schema.description.is_different:
        yield MetadataChange(
            path=path,
            method=method,
            field=label,
            reference_value=schema.description.left,
            generated_value=schema.description.right,
        )
    for name, prop in schema.changed_properties.items():
        yield from _schema_metadata(path, method, f"{label} → {name}", prop, visited)
    if schema.items is not None:
        yield from _schema_metadata(path, method, f"{label} → items", schema.items, visited)
