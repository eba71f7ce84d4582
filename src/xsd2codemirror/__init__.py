"""Convert XML Schemas into CodeMirror XML autocomplete schema info."""

__version__ = "1.0.0"
