"""
kubesample command line.

    kubesample populate --source ksm --metrics-file ksm.txt --cluster-name prod
    kubesample queries --source api-server
"""

from __future__ import annotations

import argparse
from typing import Sequence

from kubesample.cli.populate import handle_populate_command, register_populate_parser
from kubesample.cli.queries import handle_queries_command, register_queries_parser
from kubesample.config.settings import get_settings
from kubesample.core.errors import main_with_error_handling
from kubesample.logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kubesample",
        description="Turn Kubernetes Prometheus metrics into entity samples",
    )
    parser.add_argument("--log-level", help="Log level (or set KUBESAMPLE_LOG_LEVEL)")
    parser.add_argument("--debug", action="store_true", help="Show tracebacks for unexpected errors")
    subparsers = parser.add_subparsers(dest="command")
    register_populate_parser(subparsers)
    register_queries_parser(subparsers)
    return parser


_HANDLERS = {
    "populate": handle_populate_command,
    "queries": handle_queries_command,
}


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(args.log_level or settings.log_level, json=settings.log_json)

    handler = _HANDLERS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    @main_with_error_handling(show_traceback=args.debug)
    def run() -> int:
        return handler(args)

    return run()


__all__ = ["build_parser", "main"]
