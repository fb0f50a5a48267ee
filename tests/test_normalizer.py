from pathlib import Path

import pytest

from api_contract_diff.parser.base import Document, HttpMethod, Schema
from api_contract_diff.parser.openapi import parse_openapi
from api_contract_diff.reconcile.normalizer import normalize_document, normalize_text

FIXTURES = Path(__file__).parent / "fixtures"


class TestNormalizeText:
    def test_none_stays_none(self):
        assert normalize_text(None) is None

    def test_collapses_whitespace_runs(self):
        assert normalize_text("Fetch   a\nuser") == "Fetch a user"

    def test_trims(self):
        assert normalize_text("\n\t  Fetch a user \n") == "Fetch a user"

    def test_keeps_case_and_markup(self):
        assert normalize_text("Line one<br>  Line <b>Two</b>") == "Line one<br> Line <b>Two</b>"

    def test_empty_string(self):
        assert normalize_text("   ") == ""

    @pytest.mark.parametrize("text", ["a  b", " x\n\ny ", "plain", "", "\t\r\n"])
    def test_idempotent(self, text):
        once = normalize_text(text)
        assert normalize_text(once) == once


class TestNormalizeDocument:
    def test_normalizes_operation_text(self):
        doc = parse_openapi((FIXTURES / "reference.yaml").read_text(encoding="utf-8"))
        normalize_document(doc)
        op = doc.paths["/v1/users/{id}"].operations[HttpMethod.GET]
        assert op.description == "Fetch a user"
        assert op.parameters[0].description == "User identifier"

    def test_handles_self_referencing_schema(self):
        node = Schema(name="Node", type="object", description="A\n  node")
        node.properties = {"next": node, "label": Schema(type="string", description=" label ")}
        node.items = node
        doc = Document()
        doc.components.schemas["Node"] = node

        normalize_document(doc)

        assert node.description == "A node"
        assert node.properties["label"].description == "label"

    def test_normalizes_nested_operation_schemas(self):
        doc = parse_openapi(
            "openapi: 3.0.0\n"
            "paths:\n"
            "  /pets:\n"
            "    post:\n"
            "      requestBody:\n"
            "        description: \"  The   pet \"\n"
            "        content:\n"
            "          application/json:\n"
            "            schema:\n"
            "              type: array\n"
            "              items:\n"
            "                type: object\n"
            "                properties:\n"
            "                  name: {type: string, description: \"pet\\n  name\"}\n"
            "      responses:\n"
            "        '200': {description: \"ok  \"}\n"
        )
        normalize_document(doc)
        op = doc.paths["/pets"].operations[HttpMethod.POST]
        assert op.request_body.description == "The pet"
        schema = op.request_body.content["application/json"].schema_
        assert schema.items.properties["name"].description == "pet name"
        assert op.responses["200"].description == "ok"
