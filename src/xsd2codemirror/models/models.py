#!/usr/bin/env python3

from typing import Literal

from pydantic import BaseModel

from ..core.config import ConverterConfig

# Pydantic Models


class ConversionOptions(BaseModel):
    """Options for one converter run (CLI arguments merged over config defaults)."""

    schema_path: str
    verbose: bool = False
    pretty: bool = True
    indent: int = 2
    target_namespace: str | None = None  # Expected targetNamespace of the primary schema
    log_level: str = "WARNING"  # Used when verbose is off
    log_format: Literal["text", "json"] = "text"

    @classmethod
    def from_config(cls, config: ConverterConfig, schema_path: str, **overrides) -> "ConversionOptions":
        """Build options from config defaults; ``None`` overrides are ignored."""
        values = {
            "schema_path": schema_path,
            "pretty": config.pretty,
            "indent": config.indent,
            "target_namespace": config.target_namespace,
            "log_level": config.log_level,
            "log_format": config.log_format,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.verbose else self.log_level
