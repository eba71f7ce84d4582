#!/usr/bin/env python3
"""Error types raised while converting a schema into CodeMirror schema info."""


class SchemaConversionError(Exception):
    """Base class for every failure that aborts a conversion run."""


class SchemaCompilationError(SchemaConversionError):
    """The schema source could not be turned into a usable object model.

    Raised for malformed XML, a missing primary document, a primary document
    that is not an ``xs:schema``, or a reference that cannot be resolved.
    """


class UnsupportedGrammarConstruct(SchemaConversionError):
    """A content model uses a particle kind the walker does not model."""

    def __init__(self, kind: str, location: str | None = None):
        self.kind = kind
        self.location = location
        message = f"Unsupported grammar construct: {kind}"
        if location:
            message += f" ({location})"
        super().__init__(message)


class InvalidUsage(SchemaConversionError):
    """An API was called in the wrong order or with the wrong arguments."""
