#!/usr/bin/env python3

import logging
import logging.config
from contextlib import contextmanager
from typing import Iterator, Optional

from pythonjsonlogger import jsonlogger

TRACE_LOGGER_NAME = "xsd2codemirror.trace"
INDENT_UNIT = "  "


def setup_logging(level: str = "WARNING", log_format: str = "text"):
    """Setup logging on stderr; stdout carries the converter output"""
    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": jsonlogger.JsonFormatter,
                "fmt": "%(asctime)s %(name)s %(levelname)s %(message)s"
            },
            "text": {
                "format": "%(levelname)s %(name)s: %(message)s"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json" if log_format == "json" else "text",
                "stream": "ext://sys.stderr"
            }
        },
        "loggers": {
            "": {
                "handlers": ["console"],
                "level": level,
                "propagate": False
            }
        }
    }

    logging.config.dictConfig(logging_config)


class NullTraceLogger:
    """Trace sink that drops everything. Used unless tracing is requested."""

    def write_line(self, template: str, *args) -> None:
        pass

    @contextmanager
    def indent(self) -> Iterator[None]:
        yield


class TraceLogger(NullTraceLogger):
    """Writes an indented trace of the schema walk through a stdlib logger.

    ``write_line`` takes a %-style template; ``indent()`` nests every line
    written inside the ``with`` block one level deeper.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.DEBUG):
        self._logger = logger or logging.getLogger(TRACE_LOGGER_NAME)
        self._level = level
        self._depth = 0

    @property
    def depth(self) -> int:
        return self._depth

    def write_line(self, template: str, *args) -> None:
        if self._logger.isEnabledFor(self._level):
            self._logger.log(self._level, INDENT_UNIT * self._depth + template, *args)

    @contextmanager
    def indent(self) -> Iterator[None]:
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1


NULL_TRACE_LOGGER = NullTraceLogger()
