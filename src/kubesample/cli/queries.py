"""``kubesample queries``: list what a source scrapes."""

from __future__ import annotations

import argparse

from kubesample.cli.ux import print_table
from kubesample.core.errors import ExitCode
from kubesample.prometheus.query import Query
from kubesample.scrape import SOURCES, get_source


def register_queries_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``queries`` subcommand."""
    parser = subparsers.add_parser("queries", help="List the metric queries of a source")
    parser.add_argument("--source", required=True, choices=sorted(SOURCES), help="Data source")


def _describe(query: Query) -> list[str]:
    predicates = []
    if query.labels is not None and query.labels.labels:
        labels = ",".join(f"{k}={v}" for k, v in sorted(query.labels.labels.items()))
        predicates.append(f"{query.labels.operator.value}({labels})")
    if query.value is not None:
        predicates.append(f"{query.value.operator.value}(value={query.value.value})")
    return [query.metric_name, query.custom_name, " ".join(predicates)]


def queries_command(source_name: str) -> int:
    source = get_source(source_name)
    print_table(
        f"{source.name} queries",
        ["Metric", "Renamed to", "Predicates"],
        [_describe(query) for query in source.queries],
    )
    return ExitCode.SUCCESS


def handle_queries_command(args: argparse.Namespace) -> int:
    return queries_command(args.source)
