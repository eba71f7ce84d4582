#!/usr/bin/env python3

import argparse
import logging
import sys
from typing import Optional, Sequence

from .core.config import LOG_FORMATS, converter_config
from .core.exceptions import SchemaConversionError
from .core.logging import TraceLogger, setup_logging
from .models.models import ConversionOptions
from .services.schema_parser import convert_schema

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xsd2codemirror",
        description="Convert an XML Schema into CodeMirror XML autocomplete schema info (JSON on stdout)",
    )
    parser.add_argument("schema", help="Path to the XSD file")
    parser.add_argument("-v", "-verbose", "--verbose", dest="verbose", action="store_true",
                        help="Trace the schema walk on stderr")
    parser.add_argument("--compact", dest="pretty", action="store_const", const=False, default=None,
                        help="Write JSON without insignificant whitespace")
    parser.add_argument("--target-namespace", help="Fail unless the schema has this targetNamespace")
    parser.add_argument("--log-format", choices=LOG_FORMATS, help="Format of diagnostic output on stderr")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line interface for the XSD to CodeMirror converter."""
    args = build_arg_parser().parse_args(argv)
    options = ConversionOptions.from_config(
        converter_config,
        args.schema,
        verbose=args.verbose,
        pretty=args.pretty,
        target_namespace=args.target_namespace,
        log_format=args.log_format,
    )
    setup_logging(options.effective_log_level, options.log_format)
    trace = TraceLogger() if options.verbose else None

    try:
        output = convert_schema(
            options.schema_path,
            pretty=options.pretty,
            indent=options.indent,
            target_namespace=options.target_namespace,
            trace=trace,
        )
    except SchemaConversionError as e:
        logger.debug("Conversion failed", exc_info=True)
        print(type(e).__name__, file=sys.stderr)  # noqa: T201
        print(e, file=sys.stderr)  # noqa: T201
        return 1

    print(output)  # noqa: T201
    return 0


if __name__ == "__main__":
    sys.exit(main())
