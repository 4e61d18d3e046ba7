"""
PromQL Prettifier CLI
=====================

Command-line front end for the formatter service.

COMMANDS:
- format:    Print the formatted query
- validate:  Structural check; exit status 1 when invalid
- explain:   Print the explain result as JSON
- examples:  Print example queries as JSON

The query is read from the positional argument, or from stdin when the
argument is omitted or "-".

USAGE:
    promfmt format 'sum(rate(http_requests_total[5m])) by (job)'
    echo 'up' | promfmt --local validate
"""
import argparse
import asyncio
import dataclasses
import json
import sys
from typing import List, Optional

from .config import DelegateConfig, FormatterConfig
from .contracts import FormatOptions, FormatterMode
from .logging_utils import configure_logging
from .service import QueryFormatterService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="promfmt", description="PromQL formatter and validator")
    parser.add_argument("--local", action="store_true", help="Use the local engine only")
    parser.add_argument("--no-fallback", action="store_true",
                        help="Report delegate failures instead of falling back to the local engine")
    parser.add_argument("--delegate-url", default=None, help="Base URL of an HTTP delegate engine")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")

    subparsers = parser.add_subparsers(dest="command")

    for name, help_text in (
        ("format", "Format a query"),
        ("validate", "Validate a query"),
        ("explain", "Explain a query"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("query", nargs="?", default=None, help="Query text (default: stdin)")

    subparsers.add_parser("examples", help="List example queries")
    return parser


def _read_query(args) -> str:
    if args.query is None or args.query == "-":
        return sys.stdin.read()
    return args.query


def _build_service(args) -> QueryFormatterService:
    config = FormatterConfig.from_env()
    if args.delegate_url:
        current = config.delegate
        config = dataclasses.replace(
            config,
            delegate=DelegateConfig(
                kind="http",
                base_url=args.delegate_url,
                readiness_timeout=current.readiness_timeout,
                call_timeout=current.call_timeout
            )
        )
    return QueryFormatterService(config)


def _options(args) -> FormatOptions:
    mode = FormatterMode.LOCAL if args.local else FormatterMode.DELEGATE
    return FormatOptions(mode=mode, fallback_to_local=not args.no_fallback)


# =============================================================================
# COMMANDS
# =============================================================================

def cmd_format(service: QueryFormatterService, options: FormatOptions, query: str) -> int:
    formatted, error = asyncio.run(service.format_query(query, options)).as_tuple()
    if error is not None:
        print(f"[ERROR] {error}", file=sys.stderr)
        return 1
    print(formatted)
    return 0


def cmd_validate(service: QueryFormatterService, options: FormatOptions, query: str) -> int:
    result = asyncio.run(service.validate_query(query, options))
    is_valid, error = result.as_tuple()
    if not is_valid:
        location = f" at position {result.position}" if result.position is not None else ""
        print(f"[INVALID] {error}{location}")
        return 1
    print("[VALID]")
    return 0


def cmd_explain(service: QueryFormatterService, options: FormatOptions, query: str) -> int:
    result = asyncio.run(service.explain_query(query, options))
    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.success else 1


def cmd_examples(service: QueryFormatterService, options: FormatOptions) -> int:
    examples = asyncio.run(service.list_example_queries(options))
    print(json.dumps(list(examples), indent=2))
    return 0 if examples else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 2

    try:
        configure_logging(args.log_level)
        service = _build_service(args)
    except ValueError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 2

    options = _options(args)

    if args.command == "examples":
        return cmd_examples(service, options)

    query = _read_query(args)
    if args.command == "format":
        return cmd_format(service, options, query)
    if args.command == "validate":
        return cmd_validate(service, options, query)
    return cmd_explain(service, options, query)


if __name__ == "__main__":
    sys.exit(main())
