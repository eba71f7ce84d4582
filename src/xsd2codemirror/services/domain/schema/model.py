#!/usr/bin/env python3
"""Compiled XSD object model consumed by the CodeMirror graph builder.

Content models are a closed set of particle kinds:

    Sequence / All / Choice   model groups holding child particles
    GroupReference            reference to a named ``xs:group``
    ElementReference          leaf pointing at an ElementDefinition
    Wildcard                  ``xs:any``
    Empty                     no element content
    UnsupportedParticle       anything else found in a content model

Model groups compare by identity so that cyclic group graphs can be tracked
in sets while they are walked.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from ....models.graph import QualifiedName

XS_NS = "http://www.w3.org/2001/XMLSchema"
XML_NS = "http://www.w3.org/XML/1998/namespace"


class Particle:
    """Base class of every content model node."""

    source: Optional[str] = None


@dataclass(eq=False)
class ModelGroup(Particle):
    items: list[Particle] = field(default_factory=list)
    source: Optional[str] = None


class Sequence(ModelGroup):
    pass


class All(Sequence):
    """``xs:all``: a sequence whose children may appear in any order."""


class Choice(ModelGroup):
    pass


@dataclass(eq=False)
class NamedGroup:
    """Global ``xs:group name="..."`` definition."""
    name: QualifiedName
    particle: Optional[ModelGroup] = None
    source: Optional[str] = None


@dataclass(eq=False)
class GroupReference(Particle):
    ref: QualifiedName
    group: Optional[NamedGroup] = None       # Set when the schema is linked
    source: Optional[str] = None

    @property
    def particle(self) -> Optional[ModelGroup]:
        return self.group.particle if self.group else None


@dataclass(eq=False)
class ElementReference(Particle):
    ref: QualifiedName
    element: Optional["ElementDefinition"] = None   # Set when the schema is linked
    source: Optional[str] = None
    # Non-abstract members of the substitution group headed by ``element``;
    # None unless ``element`` heads a substitution group
    substitutes: Optional[list["ElementDefinition"]] = None

    def candidates(self) -> list["ElementDefinition"]:
        """Definitions this reference may stand for in an instance document."""
        if self.substitutes is None:
            return [self.element]
        return self.substitutes


@dataclass(eq=False)
class Wildcard(Particle):
    source: Optional[str] = None


@dataclass(eq=False)
class Empty(Particle):
    source: Optional[str] = None


@dataclass(eq=False)
class UnsupportedParticle(Particle):
    """Content model node of a kind the converter does not model."""
    kind: str
    source: Optional[str] = None


@dataclass(eq=False)
class SimpleType:
    name: Optional[QualifiedName]
    enumeration: Optional[list[str]] = None  # Direct xs:enumeration facets of a restriction
    source: Optional[str] = None


@dataclass(eq=False)
class AttributeDefinition:
    name: QualifiedName
    type_ref: Optional[QualifiedName] = None
    type: Optional[SimpleType] = None
    is_global: bool = False
    source: Optional[str] = None


@dataclass(eq=False)
class AttributeUse:
    """Attribute as written inside a complex type, before linking."""
    name: QualifiedName
    definition: Optional[AttributeDefinition] = None  # None for ref="..." until linked
    prohibited: bool = False


@dataclass(eq=False)
class ComplexType:
    name: Optional[QualifiedName]
    # Parsed form
    declared_attributes: list[AttributeUse] = field(default_factory=list)
    particle: Optional[Particle] = None
    base_ref: Optional[QualifiedName] = None
    derivation: Optional[str] = None          # "extension" or "restriction"
    simple_content: bool = False
    source: Optional[str] = None
    # Linked form
    attribute_uses: dict[QualifiedName, AttributeDefinition] = field(default_factory=dict)
    content: Particle = field(default_factory=Empty)
    linked: bool = False


SchemaType = Union[ComplexType, SimpleType]


@dataclass(eq=False)
class ElementDefinition:
    name: QualifiedName
    type_ref: Optional[QualifiedName] = None
    type: Optional[SchemaType] = None         # Inline type, or the resolved type_ref
    substitution_group: Optional[QualifiedName] = None
    is_global: bool = False
    is_abstract: bool = False
    source: Optional[str] = None

    @property
    def is_complex(self) -> bool:
        return isinstance(self.type, ComplexType)


@dataclass
class CompiledSchema:
    """Result of compiling a schema and everything it includes or imports."""
    target_namespace: str
    elements: dict[QualifiedName, ElementDefinition] = field(default_factory=dict)
    complex_types: dict[QualifiedName, ComplexType] = field(default_factory=dict)
    simple_types: dict[QualifiedName, SimpleType] = field(default_factory=dict)
    groups: dict[QualifiedName, NamedGroup] = field(default_factory=dict)
    attributes: dict[QualifiedName, AttributeDefinition] = field(default_factory=dict)
    documents: list[str] = field(default_factory=list)

    def global_elements(self) -> list[ElementDefinition]:
        """Global element declarations in document order."""
        return list(self.elements.values())


def describe_particle(particle: Particle) -> str:
    """Short human-readable description used in trace output."""
    desc = type(particle).__name__
    if isinstance(particle, ElementReference):
        desc += f"({particle.ref})"
    elif isinstance(particle, GroupReference):
        desc += f"({particle.ref})"
    elif isinstance(particle, UnsupportedParticle):
        desc += f"({particle.kind})"
    if particle.source:
        return f"{particle.source}:{desc}"
    return desc
