"""Console and Markdown renderings of a raw diff tree."""

from .models import ChangedContent, ChangedOpenApi, ChangedOperation, Endpoint

WIDTH = 74
NO_DIFFERENCES = "No differences. Specifications are equivalents"


def render_console(diff: ChangedOpenApi) -> str:
    """Render the diff as a plain-text change log."""
    if not diff.is_different:
        return NO_DIFFERENCES + "\n"

    out = [
        "=" * WIDTH,
        _banner("API CHANGE LOG", "=="),
        "=" * WIDTH,
        diff.title.center(WIDTH).rstrip(),
    ]

    if diff.new_endpoints:
        out.extend(_section("What's New"))
        out.extend(_endpoint_line(e) for e in diff.new_endpoints)
        out.append("")
    if diff.missing_endpoints:
        out.extend(_section("What's Deleted"))
        out.extend(_endpoint_line(e) for e in diff.missing_endpoints)
        out.append("")
    if diff.changed_operations:
        out.extend(_section("What's Changed"))
        for op in diff.changed_operations:
            out.extend(_operation_lines(op))
    changed_schemas = [s for s in diff.changed_schemas if s.is_different]
    if changed_schemas:
        out.extend(_section("Changed Schemas"))
        for schema in changed_schemas:
            out.append(f"- {schema.name}: {_compat(schema.is_compatible)}")
        out.append("")

    out.extend(_section("Result"))
    result = "API changes are backward compatible" if diff.is_compatible else "API changes broke backward compatibility"
    out.append(result.center(WIDTH).rstrip())
    out.append("-" * WIDTH)
    return "\n".join(out) + "\n"


def render_markdown(diff: ChangedOpenApi) -> str:
    """Render the diff as a Markdown document."""
    if not diff.is_different:
        return f"### {NO_DIFFERENCES}\n"

    out = ["### API Changelog " + diff.title, ""]
    if diff.new_endpoints:
        out.append("#### What's New")
        out.append("---")
        out.extend(f"##### `{e.method.value}` {e.path_url}\n\n> {e.summary or ''}\n" for e in diff.new_endpoints)
    if diff.missing_endpoints:
        out.append("#### What's Deleted")
        out.append("---")
        out.extend(f"##### `{e.method.value}` {e.path_url}\n\n> {e.summary or ''}\n" for e in diff.missing_endpoints)
    if diff.changed_operations:
        out.append("#### What's Changed")
        out.append("---")
        for op in diff.changed_operations:
            out.append(f"##### `{op.http_method.value}` {op.path_url}\n")
            out.extend(_operation_lines(op)[1:])
            out.append("")
    out.append("#### Result")
    out.append("---")
    out.append("API changes are backward compatible" if diff.is_compatible else "API changes broke backward compatibility")
    return "\n".join(out) + "\n"


def _banner(title: str, edge: str) -> str:
    return edge + title.center(WIDTH - 2 * len(edge)) + edge


def _section(title: str) -> list[str]:
    return ["-" * WIDTH, _banner(title, "--"), "-" * WIDTH]


def _endpoint_line(endpoint: Endpoint) -> str:
    return f"- {endpoint.method.value:<6} {endpoint.path_url}"


def _compat(compatible: bool) -> str:
    return "Backward compatible" if compatible else "Broken compatibility"


def _operation_lines(op: ChangedOperation) -> list[str]:
    lines = [f"- {op.http_method.value:<6} {op.path_url}"]

    if op.parameters is not None:
        lines.append("  Parameter:")
        for p in op.parameters.increased:
            lines.append(f"    - Add {p.name} in {p.location}")
        for p in op.parameters.missing:
            lines.append(f"    - Delete {p.name} in {p.location}")
        for p in op.parameters.changed:
            lines.append(f"    - Changed {p.name} in {p.location}")

    body = op.request_body
    if body is not None:
        lines.append("  Request:")
        if body.added:
            lines.append("    - Added request body")
        elif body.removed:
            lines.append("    - Deleted request body")
        elif body.content is not None:
            lines.extend(_content_lines(body.content, "    "))

    if op.api_responses is not None:
        lines.append("  Return Type:")
        for code in op.api_responses.increased:
            lines.append(f"    - Add {code}")
        for code in op.api_responses.missing:
            lines.append(f"    - Deleted {code}")
        for code, resp in op.api_responses.changed.items():
            lines.append(f"    - Changed {code}")
            if resp.content is not None:
                lines.append("      Media types:")
                lines.extend(_content_lines(resp.content, "        "))

    return lines


def _content_lines(content: ChangedContent, indent: str) -> list[str]:
    lines = []
    for media_type in content.increased:
        lines.append(f"{indent}- Added {media_type}")
    for media_type in content.missing:
        lines.append(f"{indent}- Deleted {media_type}")
    for media_type, changed in content.changed.items():
        lines.append(f"{indent}- Changed {media_type}")
        lines.append(f"{indent}  Schema: {_compat(changed.is_compatible)}")
    return lines
