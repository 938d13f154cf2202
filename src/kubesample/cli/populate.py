"""
``kubesample populate``: run one scrape cycle over a saved exposition body.

Exit codes: 0 populated, 1 populated with errors, 12 nothing populated.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from kubesample.cli.ux import error, info, success, warning
from kubesample.config.loader import load_config
from kubesample.config.settings import get_settings
from kubesample.core.errors import ConfigurationError, ExitCode, format_error_message
from kubesample.integration.integration import Integration
from kubesample.integration.sink import HTTPSink
from kubesample.scrape import SOURCES, ScrapeCycle, get_source


def register_populate_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``populate`` subcommand."""
    parser = subparsers.add_parser(
        "populate",
        help="Turn a saved metrics exposition into an integration payload",
        description=(
            "Parse, filter, group and populate one exposition body. "
            "Exit codes: 0=populated, 1=populated with errors, 12=nothing populated."
        ),
    )
    parser.add_argument("--source", required=True, choices=sorted(SOURCES), help="Data source")
    parser.add_argument(
        "--metrics-file",
        required=True,
        help="Path to a Prometheus text exposition ('-' for stdin)",
    )
    parser.add_argument("--cluster-name", help="Cluster name (overrides config)")
    parser.add_argument("--k8s-version", help="Kubernetes server version (overrides config)")
    parser.add_argument("--entity-id", help="Entity ID for control plane sources")
    parser.add_argument("--config", help="Path to config YAML")
    parser.add_argument("--output", "-o", help="Write the payload to this file instead of stdout")
    parser.add_argument(
        "--sink-url",
        help="POST the payload to this URL (or set KUBESAMPLE_SINK_URL)",
    )


def _read_metrics(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    try:
        return Path(path).read_text()
    except OSError as e:
        raise ConfigurationError(f"cannot read metrics file: {e}", {"path": path}) from e


def populate_command(
    source_name: str,
    metrics_file: str,
    cluster_name: str | None = None,
    k8s_version: str | None = None,
    entity_id: str | None = None,
    config_path: str | None = None,
    output: str | None = None,
    sink_url: str | None = None,
) -> int:
    settings = get_settings()
    source = get_source(source_name)

    scrape_config = load_config(config_path)
    scrape_config.cluster_name = cluster_name or settings.cluster_name or scrape_config.cluster_name
    scrape_config.k8s_version = k8s_version or settings.k8s_version or scrape_config.k8s_version

    text = _read_metrics(metrics_file)
    integration = Integration(settings.integration_name, settings.integration_version)
    result = ScrapeCycle(source, scrape_config, entity_id=entity_id).run(text, integration)

    for err in result.errors:
        warning(format_error_message(err))

    if not result.populated:
        error(f"nothing populated from {metrics_file} ({source.name})")
        return ExitCode.NOT_POPULATED

    payload = integration.publish()
    sink_url = sink_url or settings.sink_url
    if sink_url:
        HTTPSink(sink_url, timeout=settings.http_timeout).write(integration)
        info(f"payload posted to {sink_url}")
    elif output:
        Path(output).write_text(payload)
        info(f"payload written to {output}")
    else:
        print(payload)

    if result.errors:
        warning(f"populated {len(integration.entities)} entities with {len(result.errors)} errors")
        return ExitCode.WARNING

    success(f"populated {len(integration.entities)} entities")
    return ExitCode.SUCCESS


def handle_populate_command(args: argparse.Namespace) -> int:
    return populate_command(
        source_name=args.source,
        metrics_file=args.metrics_file,
        cluster_name=getattr(args, "cluster_name", None),
        k8s_version=getattr(args, "k8s_version", None),
        entity_id=getattr(args, "entity_id", None),
        config_path=getattr(args, "config", None),
        output=getattr(args, "output", None),
        sink_url=getattr(args, "sink_url", None),
    )
