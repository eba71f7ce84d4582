#!/usr/bin/env python3
"""Expansion of content model particles into their direct element references.

Model groups and group references are expanded recursively; element
references are leaves (their own content is explored later by the graph
builder). Every model group entered during one expansion is remembered, so
groups that reference each other, directly or through other groups, are
entered once and the walk terminates.
"""

import logging
from typing import Iterator, Optional

from ....core.exceptions import UnsupportedGrammarConstruct
from ....core.logging import NULL_TRACE_LOGGER, NullTraceLogger
from ..schema.model import (
    ElementDefinition,
    ElementReference,
    Empty,
    GroupReference,
    ModelGroup,
    Particle,
    UnsupportedParticle,
    Wildcard,
    describe_particle,
)

logger = logging.getLogger(__name__)


def iter_element_references(
    particle: Optional[Particle],
    log: NullTraceLogger = NULL_TRACE_LOGGER,
) -> Iterator[ElementDefinition]:
    """Yield the element definitions directly reachable through ``particle``.

    Args:
        particle: Root particle of a content model
        log: Trace sink for the walk

    Yields:
        ElementDefinition for every element reference reached, in document
        order; a reference to a substitution group head yields its members

    Raises:
        UnsupportedGrammarConstruct: If a particle kind is not modeled
    """
    if particle is None or isinstance(particle, (Empty, Wildcard)):
        return
    if isinstance(particle, ElementReference):
        yield from particle.candidates()
        return

    group = _model_group(particle)
    if group is None:
        return
    log.write_line("Parsing group %s", describe_particle(group))
    with log.indent():
        yield from _walk_group(group, set(), log)


def _model_group(particle: Particle) -> Optional[ModelGroup]:
    if isinstance(particle, ModelGroup):
        return particle
    if isinstance(particle, GroupReference):
        return particle.particle
    raise _unsupported(particle)


def _walk_group(group: ModelGroup, processed: set, log: NullTraceLogger) -> Iterator[ElementDefinition]:
    if group in processed:
        log.write_line("Skipping %s (already expanded)", describe_particle(group))
        return
    processed.add(group)

    with log.indent():
        for item in group.items:
            if isinstance(item, ModelGroup):
                yield from _walk_group(item, processed, log)
            elif isinstance(item, GroupReference):
                log.write_line("Parsing groupRef %s", item.ref)
                if item.particle is not None:
                    yield from _walk_group(item.particle, processed, log)
            elif isinstance(item, ElementReference):
                yield from item.candidates()
            elif isinstance(item, (Wildcard, Empty)):
                continue
            else:
                raise _unsupported(item)


def _unsupported(particle: Particle) -> UnsupportedGrammarConstruct:
    kind = particle.kind if isinstance(particle, UnsupportedParticle) else type(particle).__name__
    logger.error(f"Unsupported particle {describe_particle(particle)}")
    return UnsupportedGrammarConstruct(kind, particle.source)
