"""
XML Schema Domain

Compiles XSD documents (with their includes and imports) into the object
model the CodeMirror graph builder walks.
"""

from .compiler import SchemaCompiler
from .model import CompiledSchema

__all__ = [
    "SchemaCompiler",
    "CompiledSchema",
]
