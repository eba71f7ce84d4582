from .graph import QualifiedName, SchemaGraph, SimpleAttribute, SimpleElement
from .models import ConversionOptions

__all__ = [
    "QualifiedName",
    "SchemaGraph",
    "SimpleAttribute",
    "SimpleElement",
    "ConversionOptions",
]
