from pathlib import Path
from unittest.mock import patch, MagicMock

import pytest

from api_contract_diff.errors import DocumentUnparseable, RetrievalFailure
from api_contract_diff.models import ChangeType
from api_contract_diff.service import ContractDiffService, compare, export_to_csv

FIXTURES = Path(__file__).parent / "fixtures"
REFERENCE = (FIXTURES / "reference.yaml").read_text(encoding="utf-8")
GENERATED = (FIXTURES / "generated.yaml").read_text(encoding="utf-8")


class TestCompare:
    def test_missing_operation(self):
        result = compare(REFERENCE, GENERATED)
        assert result.missing_operations == ("deleteUser",)
        assert result.is_different is True

    def test_id_matched_operation_is_not_new_or_removed(self):
        result = compare(REFERENCE, GENERATED)
        assert all(c.change_type == ChangeType.CHANGED for c in result.structure_changes)
        assert all(c.path != "/v2/users/{id}" for c in result.structure_changes)

    def test_structure_changes(self):
        result = compare(REFERENCE, GENERATED)
        get_user, list_users = result.structure_changes
        assert (get_user.method, get_user.path) == ("GET", "/v1/users/{id}")
        assert get_user.is_breaking is False
        assert "    New property: createdAt" in get_user.details
        assert (list_users.method, list_users.path) == ("GET", "/v1/users")
        assert list_users.details[-2:] == ("    Items changed:", "      New property: createdAt")

    def test_metadata_changes(self):
        result = compare(REFERENCE, GENERATED)
        fields = [(m.path, m.field, m.reference_value, m.generated_value) for m in result.metadata_changes]
        assert fields == [
            ("/v1/users", "Summary", "List users", "List all users"),
            ("/v1/users", "Param: limit", "Maximum number of users", "Max users per page"),
        ]

    def test_whitespace_drift_is_ignored(self):
        result = compare(REFERENCE, GENERATED)
        assert all(m.field != "Description" for m in result.metadata_changes)

    def test_reports(self):
        result = compare(REFERENCE, GENERATED)
        assert "API CHANGE LOG" in result.console_report
        assert "What's Deleted" in result.console_report
        assert "### Metadata Changes" in result.markdown_report
        assert "- `deleteUser`" in result.markdown_report

    def test_identical_contracts(self):
        result = compare(REFERENCE, REFERENCE)
        assert result.is_different is False
        assert result.structure_changes == ()
        assert result.metadata_changes == ()
        assert result.missing_operations == ()

    def test_generated_from_file(self):
        result = compare(REFERENCE, str(FIXTURES / "generated.yaml"))
        assert result.missing_operations == ("deleteUser",)

    @patch("api_contract_diff.parser.detect.requests.get")
    def test_generated_from_url(self, mock_get):
        resp = MagicMock()
        resp.text = GENERATED
        mock_get.return_value = resp
        result = ContractDiffService().compare(REFERENCE, "https://users.example.com/v3/api-docs")
        assert result.missing_operations == ("deleteUser",)

    def test_export(self):
        data = export_to_csv(compare(REFERENCE, GENERATED))
        lines = data.decode("utf-8").splitlines()
        assert lines[1] == "Missing Operation,,,deleteUser,PRESENT,ABSENT,TRUE"
        assert len(lines) == 1 + 1 + 2 + 2


class TestCompareErrors:
    def test_unparseable_reference(self):
        with pytest.raises(DocumentUnparseable) as exc:
            compare("not: [valid", GENERATED)
        assert exc.value.source == "reference"

    def test_unparseable_generated(self):
        with pytest.raises(DocumentUnparseable) as exc:
            compare(REFERENCE, "just some text")
        assert exc.value.source == "generated"

    @patch("api_contract_diff.parser.detect.requests.get")
    def test_retrieval_failure(self, mock_get):
        import requests

        mock_get.side_effect = requests.Timeout("timed out")
        with pytest.raises(RetrievalFailure):
            compare(REFERENCE, "https://users.example.com/v3/api-docs")
