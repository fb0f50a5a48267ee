"""Report exporters — CSV and text renderings of a DiffResult."""

import csv
import io

from api_contract_diff.comparator.models import ChangedOpenApi
from api_contract_diff.comparator.render import render_markdown
from api_contract_diff.models import ChangeType, DiffResult, MetadataChange

CSV_HEADER = ["Category", "Path", "Method", "Element", "Reference", "Generated", "Is Breaking"]

PRESENT = "PRESENT"
ABSENT = "ABSENT"
STRUCTURAL_MATCH = "MATCH (Structural change)"


def export_to_csv(result: DiffResult) -> bytes:
    """Export a DiffResult as UTF-8 CSV.

    Rows: missing operations, then structure changes, then metadata
    changes, each in the order they were found.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)

    for label in result.missing_operations:
        writer.writerow(["Missing Operation", "", "", label, PRESENT, ABSENT, _bool(True)])

    for change in result.structure_changes:
        if change.change_type == ChangeType.REMOVED:
            reference, generated = PRESENT, ABSENT
        elif change.change_type == ChangeType.NEW:
            reference, generated = ABSENT, PRESENT
        else:
            reference, generated = STRUCTURAL_MATCH, "; ".join(change.details)
        writer.writerow([
            "Structure",
            change.path,
            change.method,
            change.change_type.value,
            reference,
            generated,
            _bool(change.is_breaking),
        ])

    for change in result.metadata_changes:
        writer.writerow([
            "Metadata",
            change.path,
            change.method,
            change.field,
            _text(change.reference_value),
            _text(change.generated_value),
            _bool(False),
        ])

    return buf.getvalue().encode("utf-8")


def render_metadata_section(changes: tuple[MetadataChange, ...] | list[MetadataChange]) -> str:
    """Render metadata changes grouped under their operation heading."""
    out = []
    heading = None
    for change in changes:
        if change.path or change.method:
            current = f"#### {change.method} `{change.path}`"
        else:
            current = "#### Component schemas"
        if current != heading:
            if heading is not None:
                out.append("")
            out.append(current)
            heading = current
        out.append(f"- **{change.field}**:")
        out.append(f"    - **Reference**: {_text(change.reference_value)}")
        out.append(f"    - **Generated**: {_text(change.generated_value)}")
    return "\n".join(out) + "\n" if out else ""


def render_markdown_report(diff: ChangedOpenApi, missing_operations: list[str], metadata_changes: list[MetadataChange]) -> str:
    """Markdown rendering of the raw diff plus missing operations and metadata."""
    report = render_markdown(diff)
    if missing_operations:
        report += "\n### Missing Operations\n"
        report += "".join(f"- `{label}`\n" for label in missing_operations)
    if metadata_changes:
        report += "\n### Metadata Changes\n" + render_metadata_section(metadata_changes)
    return report


def _bool(value: bool) -> str:
    return "TRUE" if value else "FALSE"


def _text(value: str | None) -> str:
    return "" if value is None else value
