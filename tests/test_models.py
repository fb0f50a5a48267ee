import pytest
from pydantic import ValidationError

from api_contract_diff.models import ChangeType, DiffResult, MetadataChange, StructureChange
from api_contract_diff.parser.base import HttpMethod, Schema


class TestStructureChange:
    def test_create_changed_entry(self):
        c = StructureChange(
            method="GET",
            path="/pets",
            change_type=ChangeType.CHANGED,
            details=("Added parameter: limit",),
        )
        assert c.is_breaking is False
        assert c.change_type.value == "CHANGED"

    def test_is_immutable(self):
        c = StructureChange(method="GET", path="/pets", change_type=ChangeType.NEW)
        with pytest.raises(ValidationError):
            c.is_breaking = True


class TestMetadataChange:
    def test_values_default_to_none(self):
        c = MetadataChange(path="/pets", method="GET", field="Summary")
        assert c.reference_value is None
        assert c.generated_value is None


class TestDiffResult:
    def test_minimal_result(self):
        r = DiffResult(console_report="No differences.")
        assert r.is_different is False
        assert r.structure_changes == ()
        assert r.missing_operations == ()

    def test_serialization_roundtrip(self):
        r = DiffResult(
            console_report="report",
            structure_changes=(StructureChange(method="DELETE", path="/pets/{id}", change_type=ChangeType.REMOVED, is_breaking=True),),
            metadata_changes=(MetadataChange(path="/pets", method="GET", field="Summary", reference_value="a", generated_value="b"),),
            is_different=True,
            missing_operations=("deletePet",),
        )
        r2 = DiffResult(**r.model_dump())
        assert r2 == r


class TestHttpMethod:
    def test_parse_is_case_insensitive(self):
        assert HttpMethod.parse("get") is HttpMethod.GET

    def test_parse_non_method(self):
        assert HttpMethod.parse("parameters") is None


class TestSchema:
    def test_compares_by_identity(self):
        a = Schema(type="string")
        b = Schema(type="string")
        assert a != b
        assert a == a
        assert len({a, b}) == 2
