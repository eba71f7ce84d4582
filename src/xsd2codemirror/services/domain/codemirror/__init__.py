"""
CodeMirror Schema Info Domain

Turns a compiled schema into CodeMirror XML autocomplete data:
- Particle walking (content model expansion with group cycle protection)
- Element/attribute extraction
- Breadth-first graph building
- Canonical schema info serialization
"""

from .builder import GraphBuilder
from .extractor import extract_attribute, extract_element
from .serializer import CodeMirrorSchemaInfoSerializer
from .walker import iter_element_references

__all__ = [
    # Graph building
    "GraphBuilder",
    "extract_element",
    "extract_attribute",
    "iter_element_references",
    # Serialization
    "CodeMirrorSchemaInfoSerializer",
]
