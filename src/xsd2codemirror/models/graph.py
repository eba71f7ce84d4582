#!/usr/bin/env python3
"""Simplified element/attribute graph handed to the CodeMirror serializer."""

from dataclasses import dataclass, field
from functools import total_ordering


@total_ordering
@dataclass(frozen=True)
class QualifiedName:
    """(local name, namespace URI) pair identifying an element or attribute."""
    local_name: str
    namespace: str = ""

    @classmethod
    def parse(cls, value: str) -> "QualifiedName":
        """Parse Clark notation (``{uri}local``) or a bare local name."""
        if value.startswith("{"):
            namespace, _, local_name = value[1:].partition("}")
            return cls(local_name, namespace)
        return cls(value)

    def __str__(self) -> str:
        if self.namespace:
            return f"{{{self.namespace}}}{self.local_name}"
        return self.local_name

    def __lt__(self, other: "QualifiedName") -> bool:
        if not isinstance(other, QualifiedName):
            return NotImplemented
        return str(self) < str(other)


@dataclass(eq=False)
class SimpleAttribute:
    """Attribute with its enumerated values; no values means free text."""
    name: QualifiedName
    possible_values: set[str] = field(default_factory=set)

    def add_possible_value(self, value: str) -> bool:
        if value in self.possible_values:
            return False
        self.possible_values.add(value)
        return True


@dataclass(eq=False)
class SimpleElement:
    """Element with its attributes and the names of its direct children."""
    name: QualifiedName
    is_top_level: bool = False
    attributes: dict[QualifiedName, SimpleAttribute] = field(default_factory=dict)
    children: set[QualifiedName] = field(default_factory=set)

    def add_attribute(self, attribute: SimpleAttribute) -> bool:
        """Insert an attribute unless one with the same name exists (first wins)."""
        if attribute.name in self.attributes:
            return False
        self.attributes[attribute.name] = attribute
        return True

    def add_child(self, name: QualifiedName) -> bool:
        if name in self.children:
            return False
        self.children.add(name)
        return True


# Completed graph: one SimpleElement per qualified name
SchemaGraph = dict[QualifiedName, SimpleElement]
