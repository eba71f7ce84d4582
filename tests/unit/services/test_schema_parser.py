#!/usr/bin/env python3

import json
from unittest.mock import MagicMock

import pytest

from tests.fixtures.xsd_fixtures import ANIMALS_XSD, TEST_NS, make_xsd
from xsd2codemirror.core.exceptions import InvalidUsage, SchemaCompilationError
from xsd2codemirror.models.graph import QualifiedName
from xsd2codemirror.services.schema_parser import SchemaParser, convert_schema


@pytest.fixture
def animals_path(tmp_path):
    path = tmp_path / "animals.xsd"
    path.write_bytes(ANIMALS_XSD)
    return path


class TestSchemaParser:
    """Test suite for the compile-then-walk facade"""

    def test_get_xml_elements_before_compile_is_invalid_usage(self, animals_path):
        parser = SchemaParser(animals_path)
        with pytest.raises(InvalidUsage, match="not compiled"):
            parser.get_xml_elements()

    def test_compile_then_get_xml_elements(self, animals_path):
        parser = SchemaParser(animals_path)
        schema = parser.compile()

        assert parser.schema is schema
        graph = parser.get_xml_elements()
        assert set(graph) == {QualifiedName(n) for n in ("top", "animal", "plant", "wings", "feet", "leaves")}

    def test_failed_compile_leaves_parser_uncompiled(self, tmp_path):
        parser = SchemaParser(tmp_path / "missing.xsd")
        with pytest.raises(SchemaCompilationError, match="Could not read schema"):
            parser.compile()
        with pytest.raises(InvalidUsage):
            parser.get_xml_elements()

    def test_failed_compile_is_traced(self, tmp_path):
        path = tmp_path / "broken.xsd"
        path.write_bytes(b"<xs:schema xmlns:xs='http://www.w3.org/2001/XMLSchema'>")
        trace = MagicMock()

        with pytest.raises(SchemaCompilationError, match="Failed to parse"):
            SchemaParser(path, logger=trace).compile()

        template, error_type, _ = trace.write_line.call_args.args
        assert template == "Could not compile schema: %s: %s"
        assert error_type == "SchemaCompilationError"

    def test_logger_defaults_to_null_sink(self, animals_path):
        parser = SchemaParser(animals_path)
        parser.logger.write_line("dropped %s", 1)
        with parser.logger.indent():
            pass

    def test_trace_receives_walk_lines(self, animals_path):
        trace = MagicMock()
        parser = SchemaParser(animals_path, logger=trace)
        parser.compile()
        parser.get_xml_elements()

        templates = [call.args[0] for call in trace.write_line.call_args_list]
        assert templates[:2] == ["Schema read...", "Schema compiled..."]
        assert "Element %s%s" in templates

    def test_includes_resolve_relative_to_schema(self, tmp_path):
        (tmp_path / "types").mkdir()
        (tmp_path / "types" / "common.xsd").write_bytes(make_xsd('<xs:element name="shared" type="xs:string"/>'))
        main = tmp_path / "main.xsd"
        main.write_bytes(make_xsd("""
          <xs:include schemaLocation="types/common.xsd"/>
          <xs:element name="doc">
            <xs:complexType><xs:sequence><xs:element ref="t:shared"/></xs:sequence></xs:complexType>
          </xs:element>
        """))

        parser = SchemaParser(main)
        parser.compile()
        graph = parser.get_xml_elements()

        assert graph[QualifiedName("doc", TEST_NS)].children == {QualifiedName("shared", TEST_NS)}

    def test_target_namespace_mismatch(self, animals_path):
        with pytest.raises(SchemaCompilationError, match="does not match"):
            SchemaParser(animals_path, target_namespace="urn:other").compile()


class TestConvertSchema:
    """Tests for the one-call conversion helper"""

    def test_pretty_by_default(self, animals_path):
        text = convert_schema(animals_path)
        assert text.startswith('{\n  "!top": [')
        assert json.loads(text)["!top"] == ["animal", "plant", "top"]

    def test_compact(self, animals_path):
        text = convert_schema(animals_path, pretty=False)
        assert "\n" not in text
        assert text.startswith('{"!top":["animal","plant","top"],')

    def test_indent(self, animals_path):
        text = convert_schema(animals_path, indent=4)
        assert text.startswith('{\n    "!top": [')
