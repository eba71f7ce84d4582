#!/usr/bin/env python3
"""Builds simplified elements and attributes from compiled definitions."""

from ....core.logging import NULL_TRACE_LOGGER, NullTraceLogger
from ....models.graph import SimpleAttribute, SimpleElement
from ..schema.model import AttributeDefinition, ComplexType, ElementDefinition, describe_particle
from .walker import iter_element_references


def extract_attribute(definition: AttributeDefinition) -> SimpleAttribute:
    """Simplify an attribute; only enumeration facets survive as possible values."""
    attribute = SimpleAttribute(definition.name)
    simple_type = definition.type
    if simple_type is not None and simple_type.enumeration:
        for value in simple_type.enumeration:
            attribute.add_possible_value(value)
    return attribute


def extract_element(
    definition: ElementDefinition,
    is_top_level: bool,
    log: NullTraceLogger = NULL_TRACE_LOGGER,
) -> tuple[SimpleElement, list[ElementDefinition]]:
    """Simplify one element definition.

    Returns:
        Tuple of (element, child definitions still to be expanded). Each
        child name is surfaced once, with the first definition found for it.
    """
    element = SimpleElement(definition.name, is_top_level)
    discovered = []

    complex_type = definition.type
    if not isinstance(complex_type, ComplexType):
        return element, discovered

    with log.indent():
        log.write_line("Attributes")
        with log.indent():
            for attribute_definition in complex_type.attribute_uses.values():
                element.add_attribute(extract_attribute(attribute_definition))
                log.write_line("%s", attribute_definition.name.local_name)

        particle = complex_type.content
        log.write_line("Child Particle %s", describe_particle(particle))
        with log.indent():
            for child in iter_element_references(particle, log):
                if element.add_child(child.name):
                    discovered.append(child)

    return element, discovered
