#!/usr/bin/env python3
"""
Configuration defaults for the schema converter.

Every value can be overridden through an environment variable; command line
arguments take precedence over both (see ``models.ConversionOptions``).
"""

import logging

from .env_utils import getenv_bool, getenv_clean, getenv_int

logger = logging.getLogger(__name__)

LOG_FORMATS = ("text", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConverterConfig:
    """Converter defaults read from the environment.

    XSD2CM_LOG_LEVEL         level used when tracing is not requested (WARNING)
    XSD2CM_LOG_FORMAT        "text" or "json" (text)
    XSD2CM_PRETTY            indent the JSON output (true)
    XSD2CM_INDENT            spaces per indent level in pretty mode (2)
    XSD2CM_TARGET_NAMESPACE  expected targetNamespace of the primary schema (unset)
    """

    def __init__(self):
        self.log_level = self._choice("XSD2CM_LOG_LEVEL", "WARNING", LOG_LEVELS, upper=True)
        self.log_format = self._choice("XSD2CM_LOG_FORMAT", "text", LOG_FORMATS)
        self.pretty = getenv_bool("XSD2CM_PRETTY", True)
        self.indent = max(getenv_int("XSD2CM_INDENT", 2), 0)
        self.target_namespace = getenv_clean("XSD2CM_TARGET_NAMESPACE") or None

    @staticmethod
    def _choice(key: str, default: str, allowed: tuple[str, ...], upper: bool = False) -> str:
        value = getenv_clean(key, default)
        value = value.upper() if upper else value.lower()
        if value not in allowed:
            logger.warning(f"Environment variable {key}={value!r} is not one of {allowed}. Using default: {default}")
            return default
        return value


# Singleton instance
converter_config = ConverterConfig()
