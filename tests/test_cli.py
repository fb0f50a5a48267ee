from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from api_contract_diff.cli import MATCH_MESSAGE, main
from api_contract_diff.errors import RetrievalFailure

FIXTURES = Path(__file__).parent / "fixtures"
REFERENCE = FIXTURES / "reference.yaml"
GENERATED = FIXTURES / "generated.yaml"


class TestCliCompare:
    def test_match(self):
        runner = CliRunner()
        result = runner.invoke(main, ["compare", str(REFERENCE), str(REFERENCE)])
        assert result.exit_code == 0
        assert MATCH_MESSAGE in result.output

    def test_differences_exit_zero(self):
        runner = CliRunner()
        result = runner.invoke(main, ["compare", str(REFERENCE), str(GENERATED)])
        assert result.exit_code == 0
        assert "API CHANGE LOG" in result.output
        assert "deleteUser" in result.output
        assert "Metadata Changes (Non-Breaking)" in result.output
        assert "**Param: limit**" in result.output

    def test_markdown_output_gets_md_suffix(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["compare", str(REFERENCE), str(GENERATED), "-o", str(tmp_path / "report")])
        assert result.exit_code == 0
        report = tmp_path / "report.md"
        assert report.exists()
        assert "### Metadata Changes" in report.read_text(encoding="utf-8")

    def test_no_markdown_output_on_match(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["compare", str(REFERENCE), str(REFERENCE), "-o", str(tmp_path / "report.md")])
        assert result.exit_code == 0
        assert not (tmp_path / "report.md").exists()

    def test_csv_export(self, tmp_path):
        csv_file = tmp_path / "out" / "diff.csv"
        runner = CliRunner()
        result = runner.invoke(main, ["compare", str(REFERENCE), str(GENERATED), "--csv", str(csv_file)])
        assert result.exit_code == 0
        assert csv_file.read_text(encoding="utf-8").startswith("Category,Path,Method,Element")

    def test_unparseable_generated(self, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("swagger: '2.0'\n", encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(main, ["compare", str(REFERENCE), str(bad)])
        assert result.exit_code == 1
        assert "Swagger 2.0" in result.output

    def test_missing_reference_file(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["compare", str(tmp_path / "nope.yaml"), str(GENERATED)])
        assert result.exit_code == 2

    @patch("api_contract_diff.cli.ContractDiffService")
    def test_timeout_option(self, mock_service_cls):
        mock_service_cls.return_value.compare.side_effect = RetrievalFailure("https://x.example.com", "timed out")
        runner = CliRunner()
        result = runner.invoke(main, ["compare", str(REFERENCE), "https://x.example.com", "--timeout", "3"])
        assert result.exit_code == 1
        assert "Could not retrieve https://x.example.com" in result.output
        settings = mock_service_cls.call_args[0][0]
        assert settings.fetch_timeout == 3.0

    def test_invalid_environment(self, monkeypatch):
        monkeypatch.setenv("API_CONTRACT_DIFF_FETCH_TIMEOUT", "thirty")
        runner = CliRunner()
        result = runner.invoke(main, ["compare", str(REFERENCE), str(GENERATED)])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_reference_not_utf8(self, tmp_path):
        reference = tmp_path / "reference.yaml"
        reference.write_bytes(b"openapi: 3.0.0\ninfo:\n  title: \xff\xfe\n")
        runner = CliRunner()
        result = runner.invoke(main, ["compare", str(reference), str(GENERATED)])
        assert result.exit_code == 1
        assert f"Could not retrieve {reference}" in result.output
