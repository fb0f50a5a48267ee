"""Filtered view builder — the generated document restricted to matched operations."""

import logging

from api_contract_diff.parser.base import Document, PathItem
from .matcher import MatchResult

logger = logging.getLogger(__name__)


def build_filtered_document(generated: Document, match_result: MatchResult) -> Document:
    """Build a pruned copy of the generated document.

    Matched generated operations are placed under the reference path and
    method, so a comparator pairing by (path, method) sees them where the
    contract author put them. Info and components are shared with
    `generated`, not copied. Generated operations no reference operation
    points at are left out entirely.
    """
    paths: dict[str, PathItem] = {}
    for match in match_result.matches:
        if not match.is_matched:
            continue
        item = paths.setdefault(match.path, PathItem())
        item.operations[match.method] = match.generated

    logger.debug("Filtered generated contract down to %d paths", len(paths))
    return Document(
        openapi=generated.openapi,
        info=generated.info,
        paths=paths,
        components=generated.components,
    )
