"""Contract diff service — the public comparison entry point.

Pipeline: parse -> normalize -> match -> filter -> compare -> classify.
A call either returns a complete DiffResult or raises; it never returns
a partial result.
"""

import logging

from api_contract_diff.comparator.compare import compare as compare_documents
from api_contract_diff.comparator.render import render_console
from api_contract_diff.config import Settings
from api_contract_diff.models import DiffResult
from api_contract_diff.parser.base import Document
from api_contract_diff.parser.detect import read_source
from api_contract_diff.parser.openapi import parse_openapi
from api_contract_diff.reconcile.classifier import classify
from api_contract_diff.reconcile.matcher import match_operations
from api_contract_diff.reconcile.normalizer import normalize_document
from api_contract_diff.reconcile.view import build_filtered_document
from api_contract_diff.report.export import export_to_csv, render_markdown_report

logger = logging.getLogger(__name__)


class ContractDiffService:
    """Compares a reference contract with a generated one."""

    def __init__(self, settings: Settings | None = None):
        # None means the environment is read when a URL is fetched
        self.settings = settings

    def compare(self, reference_content: str, generated_input: str) -> DiffResult:
        """Compare reference contract text with a generated contract.

        `generated_input` may be raw YAML/JSON, a file path, or an http(s) URL.
        Raises DocumentUnparseable, RetrievalFailure or ConfigurationError.
        """
        reference = parse_openapi(reference_content, source="reference")
        generated_text = read_source(generated_input, self.settings)
        generated = parse_openapi(generated_text, source="generated")
        return self.compare_documents(reference, generated)

    def compare_documents(self, reference: Document, generated: Document) -> DiffResult:
        """Compare two parsed documents. Both are normalized in place."""
        normalize_document(reference)
        normalize_document(generated)

        match_result = match_operations(reference, generated)
        filtered = build_filtered_document(generated, match_result)

        diff = compare_documents(reference, filtered)
        classified = classify(diff, match_result)
        missing = match_result.missing

        if missing:
            logger.info("%d reference operations have no generated counterpart", len(missing))

        return DiffResult(
            console_report=render_console(diff),
            structure_changes=classified.structure_changes,
            metadata_changes=classified.metadata_changes,
            is_different=classified.is_different,
            missing_operations=tuple(missing),
            markdown_report=render_markdown_report(diff, missing, list(classified.metadata_changes)),
        )

    def export_to_csv(self, result: DiffResult) -> bytes:
        return export_to_csv(result)


def compare(reference_content: str, generated_input: str, settings: Settings | None = None) -> DiffResult:
    """Convenience function to compare two contracts."""
    return ContractDiffService(settings).compare(reference_content, generated_input)
