"""Operation matcher — pairs reference operations with generated ones.

Resolution order for each reference operation:

1. by operation id, anywhere in the generated document (paths in document
   order, methods in declared order, first hit wins);
2. by the identical (path, method) pair.

Generated documents often come from code generators whose paths differ
from the contract, while the operation id is the key the contract author
assigned on purpose.
"""

import logging

from pydantic import BaseModel, ConfigDict

from api_contract_diff.parser.base import Document, HttpMethod, Operation

logger = logging.getLogger(__name__)


class OperationMatch(BaseModel):
    """Resolution of one reference operation."""

    model_config = ConfigDict(frozen=True)

    path: str
    method: HttpMethod
    reference: Operation
    generated: Operation | None = None
    matched_by: str | None = None  # "operation_id" / "path"

    @property
    def label(self) -> str:
        """Operation id, or "METHOD path" when the reference has none."""
        if self.reference.operation_id:
            return self.reference.operation_id
        return f"{self.method.value} {self.path}"

    @property
    def is_matched(self) -> bool:
        return self.generated is not None


class MatchResult(BaseModel):
    """Match results for every reference operation, in reference order."""

    model_config = ConfigDict(frozen=True)

    matches: tuple[OperationMatch, ...] = ()

    @property
    def missing(self) -> list[str]:
        return [m.label for m in self.matches if not m.is_matched]

    def get(self, path: str, method: HttpMethod) -> OperationMatch | None:
        for m in self.matches:
            if m.path == path and m.method == method:
                return m
        return None

    def is_matched(self, path: str, method: HttpMethod) -> bool:
        m = self.get(path, method)
        return m is not None and m.is_matched


def find_operation(doc: Document, path: str, method: HttpMethod, operation_id: str | None) -> tuple[Operation | None, str | None]:
    """Find the operation in `doc` for a reference operation.

    Returns (operation, how) where `how` is "operation_id", "path" or None.
    """
    if operation_id:
        for _, _, op in doc.iter_operations():
            if op.operation_id == operation_id:
                return op, "operation_id"

    item = doc.paths.get(path)
    if item is not None and method in item.operations:
        return item.operations[method], "path"
    return None, None


def match_operations(reference: Document, generated: Document) -> MatchResult:
    """Resolve every reference operation against the generated document."""
    matches = []
    for path, method, ref_op in reference.iter_operations():
        gen_op, how = find_operation(generated, path, method, ref_op.operation_id)
        match = OperationMatch(path=path, method=method, reference=ref_op, generated=gen_op, matched_by=how)
        if gen_op is None:
            logger.warning("No generated operation for %s", match.label)
        else:
            logger.debug("Matched %s %s by %s", method.value, path, how)
        matches.append(match)
    return MatchResult(matches=tuple(matches))
