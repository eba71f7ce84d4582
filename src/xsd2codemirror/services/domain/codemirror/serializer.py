#!/usr/bin/env python3
"""Serializer for CodeMirror's XML ``schemaInfo`` format.

    {
      "!top": ["top"],
      "top": {
        "attrs": {"lang": ["de", "en"], "freeform": null},
        "children": ["animal", "plant"]
      },
      "animal": {}
    }

Key order is part of the format: ``!top`` first, then elements by name.
Element names, ``!top`` and children sort by code point; attribute names and
enumerated values sort case-insensitively but keep their original casing.
"""

import json
from typing import Any, Iterable, Union

from ....models.graph import SchemaGraph, SimpleAttribute, SimpleElement

TOP_KEY = "!top"


def _ignore_case(value: str) -> tuple[str, str]:
    # Ties between values differing only in case fall back to code point order
    return value.casefold(), value


class CodeMirrorSchemaInfoSerializer:
    """Renders a completed graph as CodeMirror schema info."""

    def __init__(self, elements: Union[SchemaGraph, Iterable[SimpleElement]], pretty: bool = False, indent: int = 2):
        if isinstance(elements, dict):
            elements = elements.values()
        self.elements = sorted(elements, key=lambda element: str(element.name))
        self.pretty = pretty
        self.indent = indent

    def to_schema_info(self) -> dict[str, Any]:
        info: dict[str, Any] = {}
        top = [str(element.name) for element in self.elements if element.is_top_level]
        if top:
            info[TOP_KEY] = top
        for element in self.elements:
            info[str(element.name)] = self._element_info(element)
        return info

    def to_json_string(self) -> str:
        info = self.to_schema_info()
        if self.pretty:
            return json.dumps(info, indent=self.indent, ensure_ascii=False)
        return json.dumps(info, separators=(",", ":"), ensure_ascii=False)

    def _element_info(self, element: SimpleElement) -> dict[str, Any]:
        info: dict[str, Any] = {}
        if element.attributes:
            attributes = sorted(element.attributes.values(), key=lambda a: _ignore_case(str(a.name)))
            info["attrs"] = {str(attribute.name): self._attribute_values(attribute) for attribute in attributes}
        if element.children:
            info["children"] = sorted(str(child) for child in element.children)
        return info

    @staticmethod
    def _attribute_values(attribute: SimpleAttribute) -> list[str] | None:
        if not attribute.possible_values:
            return None
        return sorted(attribute.possible_values, key=_ignore_case)
