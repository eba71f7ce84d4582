#!/usr/bin/env python3
"""XSD compiler producing the object model in ``model.py``.

Parses the primary schema document and every document it reaches through
``xs:include``, ``xs:redefine`` and ``xs:import``, then links all references
(types, element refs, group refs, attribute refs) into a ``CompiledSchema``.

Included documents are resolved relative to the including document. A
document that cannot be read is skipped with a warning; it only becomes an
error when something it should have defined is referenced.
"""

import logging
import os
import posixpath
from io import BytesIO
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse
from xml.etree.ElementTree import Element

# Use defusedxml for secure XML parsing (prevents XXE attacks)
import defusedxml
import defusedxml.ElementTree as ET

from ....core.exceptions import SchemaCompilationError
from ....core.logging import NULL_TRACE_LOGGER, NullTraceLogger
from ....models.graph import QualifiedName
from .model import (
    XML_NS,
    XS_NS,
    All,
    AttributeDefinition,
    AttributeUse,
    Choice,
    CompiledSchema,
    ComplexType,
    ElementDefinition,
    ElementReference,
    Empty,
    GroupReference,
    NamedGroup,
    Particle,
    SchemaType,
    Sequence,
    SimpleType,
    UnsupportedParticle,
    Wildcard,
)

XS = f"{{{XS_NS}}}"

logger = logging.getLogger(__name__)

MODEL_GROUP_TAGS = {f"{XS}sequence": Sequence, f"{XS}choice": Choice, f"{XS}all": All}
ATTRIBUTE_TAGS = {f"{XS}attribute", f"{XS}attributeGroup", f"{XS}anyAttribute"}
IGNORED_TAGS = {f"{XS}annotation", f"{XS}assert", f"{XS}notation"}
INCLUDE_TAGS = {f"{XS}include", f"{XS}redefine", f"{XS}import", f"{XS}override"}

ANY_TYPE = QualifiedName("anyType", XS_NS)

# Attributes of the xml: namespace are available without importing xml.xsd
BUILTIN_XML_ATTRIBUTES = {
    "lang": None,
    "space": ["default", "preserve"],
    "base": None,
    "id": None,
}


class FileSystemLoader:
    """Reads schema documents from disk."""

    def resolve(self, base: Optional[str], location: str) -> str:
        path = Path(location) if base is None else Path(base).parent / location
        return os.path.normpath(str(path.absolute()))

    def read(self, location: str) -> bytes:
        return Path(location).read_bytes()


class InMemoryLoader:
    """Reads schema documents from a ``{relative path: content}`` mapping."""

    def __init__(self, files: dict[str, bytes]):
        self.files = {posixpath.normpath(name): content for name, content in files.items()}

    def resolve(self, base: Optional[str], location: str) -> str:
        if base is None:
            return posixpath.normpath(location)
        return posixpath.normpath(posixpath.join(posixpath.dirname(base), location))

    def read(self, location: str) -> bytes:
        try:
            return self.files[location]
        except KeyError:
            raise FileNotFoundError(location) from None


class _Document:
    """One parsed schema document and its namespace context."""

    def __init__(self, location: str, root: Element, ns_maps: dict, target_namespace: str):
        self.location = location
        self.root = root
        self.ns_maps = ns_maps
        self.target_namespace = target_namespace
        self.is_chameleon = not root.attrib.get("targetNamespace") and bool(target_namespace)
        self.element_form_qualified = root.attrib.get("elementFormDefault") == "qualified"
        self.attribute_form_qualified = root.attrib.get("attributeFormDefault") == "qualified"

    @property
    def name(self) -> str:
        return posixpath.basename(self.location.replace(os.sep, "/"))

    def qname(self, node: Element, attr: str) -> Optional[QualifiedName]:
        """Resolve a QName-valued attribute (``prefix:local``) of ``node``."""
        value = node.attrib.get(attr)
        if not value:
            return None
        value = value.strip()
        namespaces = self.ns_maps.get(node, {})
        if ":" in value:
            prefix, local = value.split(":", 1)
            if prefix not in namespaces:
                raise SchemaCompilationError(
                    f"Undeclared namespace prefix '{prefix}' in {attr}=\"{value}\" ({self.location})"
                )
            return QualifiedName(local, namespaces[prefix])
        namespace = namespaces.get("", "")
        if not namespace and self.is_chameleon:
            namespace = self.target_namespace
        return QualifiedName(value, namespace)

    def declared_name(self, node: Element) -> QualifiedName:
        return QualifiedName(self._name(node), self.target_namespace)

    def local_name(self, node: Element, qualified_by_default: bool) -> QualifiedName:
        form = node.attrib.get("form")
        qualified = form == "qualified" if form else qualified_by_default
        return QualifiedName(self._name(node), self.target_namespace if qualified else "")

    def _name(self, node: Element) -> str:
        name = node.attrib.get("name", "").strip()
        if not name:
            raise SchemaCompilationError(f"xs:{_local_tag(node.tag)} without name in {self.location}")
        return name


def _parse_xml(content: bytes) -> tuple[Element, dict]:
    """Parse a document, recording the in-scope namespace map of every element."""
    ns_maps = {}
    scopes = [{"xml": XML_NS}]
    pending = {}
    root = None
    for event, item in ET.iterparse(BytesIO(content), events=("start-ns", "start", "end")):
        if event == "start-ns":
            prefix, uri = item
            pending[prefix] = uri
        elif event == "start":
            scope = {**scopes[-1], **pending} if pending else scopes[-1]
            pending = {}
            scopes.append(scope)
            ns_maps[item] = scope
            if root is None:
                root = item
        else:
            scopes.pop()
    return root, ns_maps


class SchemaCompiler:
    """Compiles an XSD and its includes/imports into a ``CompiledSchema``."""

    def __init__(self, target_namespace: Optional[str] = None, logger: Optional[NullTraceLogger] = None):
        self.target_namespace = target_namespace
        self.log = logger or NULL_TRACE_LOGGER

    def compile(self, schema_path) -> CompiledSchema:
        """Compile the schema at ``schema_path`` on the filesystem."""
        return _Compilation(FileSystemLoader(), self.target_namespace, self.log).run(str(schema_path))

    def compile_files(self, primary_filename: str, xsd_files: dict[str, bytes]) -> CompiledSchema:
        """Compile from in-memory documents keyed by relative path."""
        return _Compilation(InMemoryLoader(xsd_files), self.target_namespace, self.log).run(primary_filename)


class _Compilation:
    """State of a single compile run."""

    def __init__(self, loader, target_namespace: Optional[str], log: NullTraceLogger):
        self.loader = loader
        self.expected_namespace = target_namespace
        self.log = log
        self.schema: Optional[CompiledSchema] = None
        self.loaded: set[tuple[str, str]] = set()
        self.element_definitions: list[ElementDefinition] = []
        self.element_refs: list[ElementReference] = []
        self.group_refs: list[GroupReference] = []
        self.complex_types: list[ComplexType] = []
        self.attribute_definitions: list[AttributeDefinition] = []

    def run(self, location: str) -> CompiledSchema:
        primary = self.loader.resolve(None, location)
        try:
            content = self.loader.read(primary)
        except OSError as e:
            raise SchemaCompilationError(f"Could not read schema '{location}': {e}") from e

        document = self._parse(primary, content, None)
        if self.expected_namespace is not None and document.target_namespace != self.expected_namespace:
            raise SchemaCompilationError(
                f"Schema targetNamespace '{document.target_namespace}' does not match "
                f"expected '{self.expected_namespace}'"
            )
        self.schema = CompiledSchema(target_namespace=document.target_namespace)
        self._load(document)
        self.log.write_line("Schema read...")
        self._link()
        self.log.write_line("Schema compiled...")
        logger.info(
            f"Compiled {location}: {len(self.schema.documents)} documents, "
            f"{len(self.schema.elements)} global elements"
        )
        return self.schema

    # Loading

    def _parse(self, location: str, content: bytes, include_namespace: Optional[str]) -> _Document:
        try:
            root, ns_maps = _parse_xml(content)
        except ET.ParseError as e:
            raise SchemaCompilationError(f"Failed to parse {location}: {e}") from e
        except defusedxml.DefusedXmlException as e:
            raise SchemaCompilationError(f"Refusing to parse {location}: {e}") from e

        if root is None or root.tag != f"{XS}schema":
            raise SchemaCompilationError(f"{location} is not an XML Schema document")

        target_namespace = root.attrib.get("targetNamespace", "")
        if not target_namespace and include_namespace:
            target_namespace = include_namespace
        return _Document(location, root, ns_maps, target_namespace)

    def _load(self, document: _Document):
        key = (document.location, document.target_namespace)
        if key in self.loaded:
            return
        self.loaded.add(key)
        self.schema.documents.append(document.location)
        logger.debug(f"Loading {document.location} (targetNamespace='{document.target_namespace}')")

        includes = []
        for node in document.root:
            if node.tag in INCLUDE_TAGS:
                includes.append(node)
            else:
                self._parse_top_level(node, document)

        for node in includes:
            if node.tag == f"{XS}redefine":
                # Redefinitions are not applied; the redefined document is included as-is
                for child in node:
                    if child.tag != f"{XS}annotation":
                        logger.debug(f"Ignoring redefinition of {child.attrib.get('name')} in {document.location}")
            self._load_included(node, document)

    def _load_included(self, node: Element, document: _Document):
        schema_location = node.attrib.get("schemaLocation")
        if not schema_location:
            logger.debug(f"{node.tag} without schemaLocation in {document.location} skipped")
            return
        if urlparse(schema_location).scheme in ("http", "https", "ftp"):
            logger.warning(f"Remote schema location '{schema_location}' in {document.location} is not fetched")
            return

        location = self.loader.resolve(document.location, schema_location)
        try:
            content = self.loader.read(location)
        except OSError as e:
            logger.warning(f"Could not read '{schema_location}' referenced from {document.location}: {e}")
            return

        is_import = node.tag == f"{XS}import"
        included = self._parse(location, content, None if is_import else document.target_namespace)
        if not is_import and included.target_namespace != document.target_namespace:
            raise SchemaCompilationError(
                f"Included schema {location} has targetNamespace '{included.target_namespace}', "
                f"expected '{document.target_namespace}'"
            )
        self._load(included)

    def _register(self, table: dict, name: QualifiedName, definition, kind: str, document: _Document):
        if name in table:
            raise SchemaCompilationError(f"Duplicate global {kind} '{name}' in {document.location}")
        table[name] = definition

    def _parse_top_level(self, node: Element, document: _Document):
        schema = self.schema
        if node.tag == f"{XS}element":
            definition = self._parse_element(node, document, is_global=True)
            self._register(schema.elements, definition.name, definition, "element", document)
        elif node.tag == f"{XS}complexType":
            complex_type = self._parse_complex_type(node, document, document.declared_name(node))
            self._register(schema.complex_types, complex_type.name, complex_type, "complexType", document)
        elif node.tag == f"{XS}simpleType":
            simple_type = self._parse_simple_type(node, document, document.declared_name(node))
            self._register(schema.simple_types, simple_type.name, simple_type, "simpleType", document)
        elif node.tag == f"{XS}group":
            group = NamedGroup(document.declared_name(node), source=document.name)
            for child in node:
                if child.tag in MODEL_GROUP_TAGS:
                    group.particle = self._parse_particle(child, document)
            self._register(schema.groups, group.name, group, "group", document)
        elif node.tag == f"{XS}attribute":
            attribute = self._parse_attribute_definition(node, document, document.declared_name(node))
            attribute.is_global = True
            self._register(schema.attributes, attribute.name, attribute, "attribute", document)

    # Declarations

    def _parse_element(self, node: Element, document: _Document, is_global: bool) -> ElementDefinition:
        if is_global:
            name = document.declared_name(node)
        else:
            name = document.local_name(node, document.element_form_qualified)
        definition = ElementDefinition(
            name=name,
            type_ref=document.qname(node, "type"),
            substitution_group=document.qname(node, "substitutionGroup"),
            is_global=is_global,
            is_abstract=node.attrib.get("abstract") in ("true", "1"),
            source=document.name,
        )
        for child in node:
            if child.tag == f"{XS}complexType":
                definition.type = self._parse_complex_type(child, document, None)
            elif child.tag == f"{XS}simpleType":
                definition.type = self._parse_simple_type(child, document, None)
        self.element_definitions.append(definition)
        return definition

    def _parse_simple_type(self, node: Element, document: _Document, name: Optional[QualifiedName]) -> SimpleType:
        simple_type = SimpleType(name, source=document.name)
        restriction = node.find(f"{XS}restriction")
        if restriction is not None:
            values = [facet.attrib.get("value", "") for facet in restriction.findall(f"{XS}enumeration")]
            if values:
                simple_type.enumeration = values
        return simple_type

    def _parse_attribute_definition(self, node: Element, document: _Document, name: QualifiedName) -> AttributeDefinition:
        attribute = AttributeDefinition(name, type_ref=document.qname(node, "type"), source=document.name)
        inline = node.find(f"{XS}simpleType")
        if inline is not None:
            attribute.type = self._parse_simple_type(inline, document, None)
        self.attribute_definitions.append(attribute)
        return attribute

    def _parse_attribute_use(self, node: Element, document: _Document) -> Optional[AttributeUse]:
        if node.tag != f"{XS}attribute":
            # Attribute groups and attribute wildcards are not represented
            return None
        prohibited = node.attrib.get("use") == "prohibited"
        ref = document.qname(node, "ref")
        if ref is not None:
            return AttributeUse(ref, None, prohibited)
        name = document.local_name(node, document.attribute_form_qualified)
        return AttributeUse(name, self._parse_attribute_definition(node, document, name), prohibited)

    def _parse_complex_type(self, node: Element, document: _Document, name: Optional[QualifiedName]) -> ComplexType:
        complex_type = ComplexType(name, source=document.name)
        self.complex_types.append(complex_type)
        self._parse_type_body(node, document, complex_type)
        return complex_type

    def _parse_type_body(self, node: Element, document: _Document, complex_type: ComplexType):
        """Read particle and attributes from a complexType, extension or restriction."""
        for child in node:
            tag = child.tag
            if tag in IGNORED_TAGS:
                continue
            if tag in ATTRIBUTE_TAGS:
                use = self._parse_attribute_use(child, document)
                if use is not None:
                    complex_type.declared_attributes.append(use)
            elif tag in (f"{XS}simpleContent", f"{XS}complexContent"):
                complex_type.simple_content = tag == f"{XS}simpleContent"
                for derivation in child:
                    if derivation.tag in (f"{XS}extension", f"{XS}restriction"):
                        complex_type.derivation = derivation.tag[len(XS):]
                        complex_type.base_ref = document.qname(derivation, "base")
                        self._parse_type_body(derivation, document, complex_type)
            elif tag == f"{XS}simpleType" or _is_facet(tag):
                # Restriction facets of simpleContent
                continue
            elif complex_type.particle is None:
                complex_type.particle = self._parse_particle(child, document)
            else:
                complex_type.particle = UnsupportedParticle(_local_tag(tag), source=document.name)

    def _parse_particle(self, node: Element, document: _Document) -> Optional[Particle]:
        if node.attrib.get("maxOccurs", "").strip() == "0":
            return None
        tag = node.tag
        group_class = MODEL_GROUP_TAGS.get(tag)
        if group_class is not None:
            items = []
            for child in node:
                if child.tag in IGNORED_TAGS:
                    continue
                particle = self._parse_particle(child, document)
                if particle is not None:
                    items.append(particle)
            return group_class(items, source=document.name)
        if tag == f"{XS}element":
            ref = document.qname(node, "ref")
            if ref is not None:
                reference = ElementReference(ref, source=document.name)
                self.element_refs.append(reference)
                return reference
            definition = self._parse_element(node, document, is_global=False)
            return ElementReference(definition.name, definition, source=document.name)
        if tag == f"{XS}group":
            reference = GroupReference(document.qname(node, "ref"), source=document.name)
            self.group_refs.append(reference)
            return reference
        if tag == f"{XS}any":
            return Wildcard(source=document.name)
        return UnsupportedParticle(_local_tag(tag), source=document.name)

    # Linking

    def _link(self):
        schema = self.schema
        self.substitution_members = self._substitution_index()

        for reference in self.group_refs:
            reference.group = self._lookup(schema.groups, reference.ref, "group")
        for reference in self.element_refs:
            reference.element = self._lookup(schema.elements, reference.ref, "element")
        for attribute in self.attribute_definitions:
            if attribute.type is None:
                attribute.type = self._resolve_simple_type(attribute.type_ref)
        for definition in self.element_definitions:
            self._resolve_element_type(definition, set())
        for complex_type in self.complex_types:
            self._link_complex_type(complex_type, set())
        for reference in self.element_refs:
            self._expand_substitution_group(reference)

    def _lookup(self, table: dict, name: Optional[QualifiedName], kind: str):
        if name is None:
            raise SchemaCompilationError(f"Missing {kind} reference")
        try:
            return table[name]
        except KeyError:
            raise SchemaCompilationError(f"The {kind} '{name}' is not declared") from None

    def _resolve_simple_type(self, name: Optional[QualifiedName]) -> SimpleType:
        if name is None or name.namespace == XS_NS:
            return SimpleType(name)
        return self._lookup(self.schema.simple_types, name, "simpleType")

    def _resolve_type(self, name: QualifiedName) -> SchemaType:
        if name == ANY_TYPE:
            return _any_type()
        if name.namespace == XS_NS:
            return SimpleType(name)
        if name in self.schema.complex_types:
            return self.schema.complex_types[name]
        if name in self.schema.simple_types:
            return self.schema.simple_types[name]
        raise SchemaCompilationError(f"The type '{name}' is not declared")

    def _resolve_element_type(self, definition: ElementDefinition, resolving: set) -> SchemaType:
        if definition.type is not None:
            return definition.type
        if definition.type_ref is not None:
            definition.type = self._resolve_type(definition.type_ref)
        elif definition.substitution_group is not None:
            if definition.name in resolving:
                raise SchemaCompilationError(f"Circular substitution group involving '{definition.name}'")
            head = self._lookup(self.schema.elements, definition.substitution_group, "element")
            definition.type = self._resolve_element_type(head, resolving | {definition.name})
        else:
            definition.type = _any_type()
        return definition.type

    def _link_complex_type(self, complex_type: ComplexType, resolving: set) -> ComplexType:
        if complex_type.linked:
            return complex_type
        if id(complex_type) in resolving:
            raise SchemaCompilationError(f"Circular type derivation involving '{complex_type.name}'")

        base = None
        if complex_type.base_ref is not None and complex_type.base_ref != ANY_TYPE:
            resolved = self._resolve_type(complex_type.base_ref)
            if isinstance(resolved, ComplexType):
                base = self._link_complex_type(resolved, resolving | {id(complex_type)})

        attribute_uses = dict(base.attribute_uses) if base is not None else {}
        for use in complex_type.declared_attributes:
            if use.prohibited:
                attribute_uses.pop(use.name, None)
                continue
            definition = use.definition or self._attribute_for_ref(use.name)
            attribute_uses[use.name] = definition
        complex_type.attribute_uses = attribute_uses

        own = complex_type.particle
        if complex_type.simple_content:
            complex_type.content = Empty(source=complex_type.source)
        elif complex_type.derivation == "extension" and base is not None and not isinstance(base.content, Empty):
            complex_type.content = base.content if own is None else Sequence([base.content, own], source=complex_type.source)
        else:
            complex_type.content = own if own is not None else Empty(source=complex_type.source)
        complex_type.linked = True
        return complex_type

    def _attribute_for_ref(self, name: QualifiedName) -> AttributeDefinition:
        if name in self.schema.attributes:
            return self.schema.attributes[name]
        if name.namespace == XML_NS and name.local_name in BUILTIN_XML_ATTRIBUTES:
            enumeration = BUILTIN_XML_ATTRIBUTES[name.local_name]
            return AttributeDefinition(name, type=SimpleType(None, enumeration), is_global=True)
        raise SchemaCompilationError(f"The attribute '{name}' is not declared")

    def _substitution_index(self) -> dict[QualifiedName, list[ElementDefinition]]:
        members = {}
        for definition in self.schema.elements.values():
            if definition.substitution_group is not None:
                members.setdefault(definition.substitution_group, []).append(definition)
        return members

    def _expand_substitution_group(self, reference: ElementReference):
        """Give a reference to a substitution group head the head's members.

        Abstract elements are never candidates, so a reference to an abstract
        head without instantiable members stands for nothing.
        """
        head = reference.element
        if head.name not in self.substitution_members and not head.is_abstract:
            return
        members = []
        pending = [head]
        seen = {head.name}
        while pending:
            current = pending.pop(0)
            if not current.is_abstract:
                members.append(current)
            for member in self.substitution_members.get(current.name, []):
                if member.name not in seen:
                    seen.add(member.name)
                    pending.append(member)
        reference.substitutes = members


def _any_type() -> ComplexType:
    content = Sequence([Wildcard()])
    return ComplexType(ANY_TYPE, content=content, linked=True)


def _local_tag(tag: str) -> str:
    return tag.split("}", 1)[-1]


def _is_facet(tag: str) -> bool:
    return tag.startswith(XS) and tag[len(XS):] in {
        "enumeration", "pattern", "length", "minLength", "maxLength", "minInclusive", "maxInclusive",
        "minExclusive", "maxExclusive", "totalDigits", "fractionDigits", "whiteSpace",
    }
