"""CLI entry point for api-contract-diff."""

import logging
from pathlib import Path

import click

from api_contract_diff.config import Settings
from api_contract_diff.errors import ContractDiffError, RetrievalFailure
from api_contract_diff.models import DiffResult
from api_contract_diff.report.export import export_to_csv, render_metadata_section
from api_contract_diff.service import ContractDiffService

MATCH_MESSAGE = "✅ Match! The generated contract honors the reference contract."
RULE = "-" * 74


def _markdown_path(output: Path) -> Path:
    if output.suffix.lower() != ".md":
        output = output.with_name(output.name + ".md")
    return output


def _read_reference(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise RetrievalFailure(str(path), str(e)) from e


def _echo_differences(result: DiffResult) -> None:
    click.echo("\n--- Comparison Results (Filtered & Normalized) ---")
    click.echo(result.console_report)

    if result.missing_operations:
        click.echo(f"❌ Operations not found in the generated contract: {', '.join(result.missing_operations)}")

    if result.metadata_changes:
        click.echo(RULE)
        click.echo("--" + "Metadata Changes (Non-Breaking)".center(70) + "--")
        click.echo(RULE)
        click.echo(render_metadata_section(result.metadata_changes), nl=False)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """API Contract Diff — check a generated OpenAPI contract against a reference contract."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("reference_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("generated")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Write a Markdown report to this file.")
@click.option("--csv", "csv_path", default=None, type=click.Path(path_type=Path), help="Write a CSV export to this file.")
@click.option("--timeout", default=None, type=float, help="Timeout in seconds when GENERATED is a URL.")
def compare(reference_path: Path, generated: str, output: Path | None, csv_path: Path | None, timeout: float | None):
    """Compare REFERENCE_PATH with GENERATED (a file path or URL)."""
    try:
        settings = Settings.from_env()
        if timeout is not None:
            settings = settings.model_copy(update={"fetch_timeout": timeout})
        service = ContractDiffService(settings)
        result = service.compare(_read_reference(reference_path), generated)
    except ContractDiffError as e:
        raise click.ClickException(e.message) from e

    if not result.is_different:
        click.echo(MATCH_MESSAGE)
    else:
        _echo_differences(result)

    if output is not None and result.is_different:
        md_path = _markdown_path(output)
        md_path.parent.mkdir(parents=True, exist_ok=True)
        md_path.write_text(result.markdown_report, encoding="utf-8")
        click.echo(f"\nDetailed report generated: {md_path}")

    if csv_path is not None:
        csv_path.parent.mkdir(parents=True, exist_ok=True)
        csv_path.write_bytes(export_to_csv(result))
        click.echo(f"CSV export saved to {csv_path}")
