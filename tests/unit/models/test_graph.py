#!/usr/bin/env python3

import pytest

from xsd2codemirror.models.graph import QualifiedName, SimpleAttribute, SimpleElement


class TestQualifiedName:
    """Tests for qualified name rendering and ordering"""

    def test_str_without_namespace(self):
        assert str(QualifiedName("item")) == "item"

    def test_str_with_namespace_uses_clark_notation(self):
        name = QualifiedName("item", "http://example.com/test")
        assert str(name) == "{http://example.com/test}item"

    @pytest.mark.parametrize("value", ["item", "{http://example.com/test}item"])
    def test_parse_inverts_str(self, value):
        assert str(QualifiedName.parse(value)) == value

    def test_equality_and_hash_use_the_pair(self):
        assert QualifiedName("a", "ns") == QualifiedName("a", "ns")
        assert QualifiedName("a", "ns") != QualifiedName("a")
        assert len({QualifiedName("a", "ns"), QualifiedName("a", "ns"), QualifiedName("a")}) == 2

    def test_ordering_is_ordinal_on_string_form(self):
        names = [QualifiedName("zebra"), QualifiedName("Apple"), QualifiedName("banana")]
        assert [str(n) for n in sorted(names)] == ["Apple", "banana", "zebra"]

    def test_namespaced_names_sort_before_lowercase_local_names(self):
        # "{" (0x7B) sorts after lowercase letters
        names = [QualifiedName("b", "urn:x"), QualifiedName("a"), QualifiedName("Z")]
        assert [str(n) for n in sorted(names)] == ["Z", "a", "{urn:x}b"]


class TestSimpleAttribute:
    """Tests for enumerated value collection"""

    def test_add_possible_value_reports_new_values(self):
        attribute = SimpleAttribute(QualifiedName("lang"))
        assert attribute.add_possible_value("en") is True
        assert attribute.add_possible_value("en") is False
        assert attribute.possible_values == {"en"}

    def test_values_are_case_sensitive(self):
        attribute = SimpleAttribute(QualifiedName("flag"))
        attribute.add_possible_value("yes")
        attribute.add_possible_value("YES")
        assert attribute.possible_values == {"yes", "YES"}


class TestSimpleElement:
    """Tests for idempotent attribute and child insertion"""

    def test_add_attribute_twice_keeps_first(self):
        element = SimpleElement(QualifiedName("top"), is_top_level=True)
        first = SimpleAttribute(QualifiedName("lang"), {"en", "de"})
        second = SimpleAttribute(QualifiedName("lang"), {"fr"})

        assert element.add_attribute(first) is True
        assert element.add_attribute(second) is False

        assert len(element.attributes) == 1
        assert element.attributes[QualifiedName("lang")].possible_values == {"en", "de"}

    def test_add_child_collapses_duplicates(self):
        element = SimpleElement(QualifiedName("animal"))
        assert element.add_child(QualifiedName("wings")) is True
        assert element.add_child(QualifiedName("wings")) is False
        assert element.children == {QualifiedName("wings")}

    def test_defaults(self):
        element = SimpleElement(QualifiedName("leaf"))
        assert element.is_top_level is False
        assert element.attributes == {}
        assert element.children == set()
