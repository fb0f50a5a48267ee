"""Classified comparison results."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class ChangeType(str, Enum):
    NEW = "NEW"
    REMOVED = "REMOVED"
    CHANGED = "CHANGED"


class StructureChange(BaseModel):
    """A difference in shape or presence of an operation's elements."""

    model_config = ConfigDict(frozen=True)

    method: str
    path: str
    change_type: ChangeType
    details: tuple[str, ...] = ()
    is_breaking: bool = False


class MetadataChange(BaseModel):
    """A difference confined to human-readable text. Never breaking."""

    model_config = ConfigDict(frozen=True)

    path: str
    method: str
    field: str  # e.g. "Summary", "Param: id", "Response 200 Schema → items"
    reference_value: str | None = None
    generated_value: str | None = None


class DiffResult(BaseModel):
    """Outcome of one comparison run."""

    model_config = ConfigDict(frozen=True)

    console_report: str
    structure_changes: tuple[StructureChange, ...] = ()
    metadata_changes: tuple[MetadataChange, ...] = ()
    is_different: bool = False
    missing_operations: tuple[str, ...] = ()
    markdown_report: str = ""
