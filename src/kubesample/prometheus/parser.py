"""
Exposition-format adapter.

Turns a scraped HTTP body into `prometheus_client` metric families. Parsing
is best-effort: families parsed before a malformed line are still returned,
together with the error that stopped the parser.
"""

from __future__ import annotations

import structlog
from prometheus_client.metrics_core import Metric as ScrapedFamily
from prometheus_client.parser import text_string_to_metric_families

from kubesample.core.errors import ParseError

logger = structlog.get_logger()

# OpenMetrics 1.0 types the pipeline has no value model for.
UNSUPPORTED_METRIC_TYPES = frozenset({"info", "stateset"})


def filter_unsupported_metrics(text: str) -> tuple[str, list[str]]:
    """
    Drop metric families whose declared type is unsupported.

    Returns the filtered text and the names of the skipped families.
    """
    lines = text.splitlines()
    skipped: list[str] = []
    for line in lines:
        parts = line.split()
        if len(parts) >= 4 and parts[:2] == ["#", "TYPE"] and parts[3] in UNSUPPORTED_METRIC_TYPES:
            skipped.append(parts[2])
            logger.debug("skipping_unsupported_metric_type", metric=parts[2], type=parts[3])

    if not skipped:
        return text, skipped

    kept: list[str] = []
    skipping = False
    for line in lines:
        parts = line.split()
        is_descriptor = len(parts) >= 3 and parts[:2] in (["#", "TYPE"], ["#", "HELP"])
        if is_descriptor:
            skipping = parts[2] in skipped
        is_sample = bool(parts) and not parts[0].startswith("#")
        if skipping and (is_descriptor or is_sample):
            continue
        kept.append(line)

    return "\n".join(kept) + "\n", skipped


def parse_metric_families(text: str) -> tuple[list[ScrapedFamily], ParseError | None]:
    """
    Parse exposition text into metric families.

    Args:
        text: Body of a Prometheus /metrics response

    Returns:
        Tuple of (families parsed so far, error or None)
    """
    filtered, skipped = filter_unsupported_metrics(text)
    if skipped:
        logger.info("skipped_unsupported_metric_families", count=len(skipped), metrics=skipped)

    families: list[ScrapedFamily] = []
    try:
        for family in text_string_to_metric_families(filtered):
            families.append(family)
    except (ValueError, TypeError, IndexError) as e:
        error = ParseError(f"reading text format failed: {e}", {"parsed_families": len(families)})
        logger.warning("metrics_parse_failed", error=str(e), parsed_families=len(families))
        return families, error

    return families, None
