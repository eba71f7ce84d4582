#!/usr/bin/env python3
"""
Schema Parser Service

Parses a schema into simple element definitions: compiles the XSD, then
walks every global element and everything reachable from it.

An element used in several contexts is only described once; the first
occurrence found is kept and later ones are ignored.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..core.exceptions import InvalidUsage, SchemaCompilationError
from ..core.logging import NULL_TRACE_LOGGER, NullTraceLogger
from ..models.graph import SchemaGraph
from .domain.codemirror import CodeMirrorSchemaInfoSerializer, GraphBuilder
from .domain.schema import CompiledSchema, SchemaCompiler

logger = logging.getLogger(__name__)


class SchemaParser:
    """
    Compiles one schema and produces its simplified element graph.

    Includes are resolved relative to ``schema_path``. A missing include is
    only an error when something it should define is referenced.
    """

    def __init__(
        self,
        schema_path: Union[str, Path],
        target_namespace: Optional[str] = None,
        logger: Optional[NullTraceLogger] = None,
    ):
        self.schema_path = schema_path
        self.target_namespace = target_namespace
        self.logger = logger
        self.schema: Optional[CompiledSchema] = None

    @property
    def logger(self) -> NullTraceLogger:
        return self._log

    @logger.setter
    def logger(self, value: Optional[NullTraceLogger]):
        self._log = value or NULL_TRACE_LOGGER

    def compile(self) -> CompiledSchema:
        """Compile the schema.

        Raises:
            SchemaCompilationError: If the schema cannot be read, parsed or linked
        """
        try:
            self.schema = SchemaCompiler(self.target_namespace, self._log).compile(self.schema_path)
        except SchemaCompilationError as e:
            self._log.write_line("Could not compile schema: %s: %s", type(e).__name__, e)
            logger.error(f"Could not compile schema {self.schema_path}: {e}")
            raise
        return self.schema

    def get_xml_elements(self) -> SchemaGraph:
        """Build the element graph of the compiled schema.

        Raises:
            InvalidUsage: If ``compile()`` has not succeeded yet
        """
        if self.schema is None:
            raise InvalidUsage("Schema is not compiled yet.")
        return GraphBuilder(self.schema, self._log).build()


def convert_schema(
    schema_path: Union[str, Path],
    pretty: bool = True,
    indent: int = 2,
    target_namespace: Optional[str] = None,
    trace: Optional[NullTraceLogger] = None,
) -> str:
    """Compile ``schema_path`` and return its CodeMirror schema info as JSON."""
    parser = SchemaParser(schema_path, target_namespace, trace)
    parser.compile()
    elements = parser.get_xml_elements()
    return CodeMirrorSchemaInfoSerializer(elements, pretty=pretty, indent=indent).to_json_string()
