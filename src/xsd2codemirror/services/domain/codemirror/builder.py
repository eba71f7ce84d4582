#!/usr/bin/env python3
"""Breadth-first construction of the simplified element graph.

Starting from every global element declaration, each distinct element name
is materialized exactly once. When the same name is reachable with different
definitions, the definition dequeued first wins and later ones are dropped.
"""

import logging
from collections import deque
from typing import Optional

from ....core.exceptions import InvalidUsage
from ....core.logging import NULL_TRACE_LOGGER, NullTraceLogger
from ....models.graph import SchemaGraph
from ..schema.model import CompiledSchema
from .extractor import extract_element

logger = logging.getLogger(__name__)


class GraphBuilder:
    """Builds the graph for one compiled schema. Use a new builder per run."""

    def __init__(self, schema: Optional[CompiledSchema], logger: Optional[NullTraceLogger] = None):
        self.schema = schema
        self.log = logger or NULL_TRACE_LOGGER

    def build(self) -> SchemaGraph:
        """Materialize every element reachable from the global declarations.

        An element is flagged top-level while fewer elements than there are
        global declarations have been materialized.

        Raises:
            InvalidUsage: If no compiled schema was supplied
            UnsupportedGrammarConstruct: If a content model cannot be walked
        """
        if self.schema is None:
            raise InvalidUsage("Schema is not compiled yet.")

        graph: SchemaGraph = {}
        pending = deque(self.schema.global_elements())
        top_level_count = len(pending)

        while pending:
            definition = pending.popleft()
            if definition.name in graph:
                continue
            is_top_level = len(graph) < top_level_count
            self.log.write_line("Element %s%s", definition.name, " (top)" if is_top_level else "")
            element, discovered = extract_element(definition, is_top_level, self.log)
            pending.extend(discovered)
            graph[element.name] = element

        logger.info(f"Built graph with {len(graph)} elements ({top_level_count} global declarations)")
        return graph
