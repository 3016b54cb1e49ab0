"""Command-line interface for vc-conformance."""

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from typing import Optional

import structlog

from . import __version__
from .config import load_config
from .errors import ConfigurationError
from .reference_server import ReferenceServer
from .registry import load_registry
from .runner import FAILED, run_suites
from .suites import ALL_SUITES, get_suite


def configure_logging(level: str = "WARNING", json_output: bool = False) -> None:
    """Configure structlog for command-line runs."""
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level.upper())),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="vc-conformance",
        description="Conformance tests for Verifiable Credentials Data Model 2.0 implementations",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: WARNING)",
    )
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run subcommand
    run_parser = subparsers.add_parser("run", help="Run suites against a registry")
    run_parser.add_argument("--registry", "-r", required=True, help="Implementation registry (JSON)")
    run_parser.add_argument("--suite", "-s", action="append", help="Suite name to run (repeatable)")
    run_parser.add_argument("--output", "-o", help="Write the JSON report to this file")

    # Serve subcommand
    serve_parser = subparsers.add_parser("serve", help="Serve the reference implementation")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", "-p", type=int, default=0, help="Port (default: any free port)")
    serve_parser.add_argument("--enveloping", action="store_true", help="Issue JOSE-enveloped credentials")

    # Suites subcommand
    subparsers.add_parser("suites", help="List available suites")

    return parser


def _run(args: argparse.Namespace) -> int:
    config = load_config()
    registry = load_registry(args.registry, config)
    try:
        suites = [get_suite(name) for name in args.suite] if args.suite else ALL_SUITES
    except KeyError as e:
        raise ConfigurationError(f"Unknown suite {e.args[0]!r}") from None

    reports = run_suites(suites, registry, config=config)
    document = json.dumps([report.to_dict() for report in reports], indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(document)
    else:
        print(document)

    failures = sum(report.count(FAILED) for report in reports)
    return 1 if failures else 0


def _serve(args: argparse.Namespace) -> int:
    reference = ReferenceServer(enveloping=args.enveloping)
    server = reference.serve(args.host, args.port)
    print(f"Reference server listening on {reference.base_url}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    configure_logging(args.log_level, args.json_logs)

    if args.command == "suites":
        for suite in ALL_SUITES:
            print(f"{suite.name} [{suite.tag}] ({len(suite.scenarios)} scenarios)")
        return 0

    try:
        if args.command == "run":
            return _run(args)
        return _serve(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
