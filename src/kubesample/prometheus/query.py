"""
Query/filter engine for scraped metric families.

A `Query` selects the series of one metric name, optionally keeps or
excludes series by label and value predicates, and optionally renames the
resulting family. Families are the ones produced by the
`prometheus_client` exposition parser.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Mapping

from kubesample.prometheus.metric import (
    EMPTY_VALUE,
    CounterValue,
    GaugeValue,
    Metric,
    MetricFamily,
    MetricType,
    SummaryValue,
    UntypedValue,
    Value,
    labels_are_in,
)

if TYPE_CHECKING:
    from prometheus_client.metrics_core import Metric as ScrapedFamily

_FAMILY_TYPES = {
    "counter": MetricType.COUNTER,
    "gauge": MetricType.GAUGE,
    "summary": MetricType.SUMMARY,
    "histogram": MetricType.HISTOGRAM,
    "untyped": MetricType.UNTYPED,
    "unknown": MetricType.UNTYPED,
}


class QueryOperator(Enum):
    """How a predicate decides whether a series is kept."""

    AND = "and"  # all predicate labels/value must match
    NOR = "nor"  # keep only series that do NOT match


@dataclass(frozen=True)
class QueryLabels:
    """Label predicate of a query."""

    labels: Mapping[str, str] = field(default_factory=dict)
    operator: QueryOperator = QueryOperator.AND

    def accepts(self, labels: Mapping[str, str]) -> bool:
        if not self.labels:
            return True
        matches = labels_are_in(self.labels, labels)
        return matches if self.operator is QueryOperator.AND else not matches


@dataclass(frozen=True)
class QueryValue:
    """Value predicate of a query, compared on the rendered value string."""

    value: Value
    operator: QueryOperator = QueryOperator.AND

    def accepts(self, value: Value) -> bool:
        matches = str(self.value) == str(value)
        return matches if self.operator is QueryOperator.AND else not matches


@dataclass(frozen=True)
class Query:
    """Selects (and optionally renames) the series of one metric name."""

    metric_name: str
    labels: QueryLabels | None = None
    value: QueryValue | None = None
    custom_name: str = ""

    def execute(self, family: ScrapedFamily) -> MetricFamily:
        """
        Run the query against one scraped family.

        Returns an invalid (empty) family when the family does not carry
        this query's metric or when no series passes the predicates.
        """
        series = _series_for(family, self.metric_name)
        if not series:
            return MetricFamily(name="", type=None)

        matches = []
        for labels, value in series:
            if self.labels is not None and not self.labels.accepts(labels):
                continue
            if self.value is not None and not self.value.accepts(value):
                continue
            matches.append(Metric(labels=labels, value=value))

        return MetricFamily(
            name=self.custom_name or self.metric_name,
            type=_FAMILY_TYPES.get(family.type),
            metrics=tuple(matches),
        )


def filter_metric_families(
    families: Iterable[ScrapedFamily],
    queries: Iterable[Query],
) -> list[MetricFamily]:
    """Run every query against every family, keeping only valid results."""
    queries = list(queries)
    filtered: list[MetricFamily] = []
    for family in families:
        for query in queries:
            result = query.execute(family)
            if result.valid():
                filtered.append(result)
    return filtered


def _series_for(family: ScrapedFamily, metric_name: str) -> list[tuple[dict[str, str], Value]]:
    if family.type == "summary" and family.name == metric_name:
        return _summary_series(family)

    names = {metric_name}
    # The parser strips "_total" from counter family names.
    if family.type == "counter" and family.name == metric_name:
        names.add(f"{metric_name}_total")

    return [
        (dict(sample.labels), _value_from_sample(family.type, sample.value))
        for sample in family.samples
        if sample.name in names
    ]


def _value_from_sample(family_type: str, value: float) -> Value:
    if family_type == "counter":
        return CounterValue(value)
    if family_type == "gauge":
        return GaugeValue(value)
    if family_type in ("untyped", "unknown"):
        return UntypedValue(value)
    return EMPTY_VALUE


def _summary_series(family: ScrapedFamily) -> list[tuple[dict[str, str], Value]]:
    counts: dict[tuple, float] = {}
    sums: dict[tuple, float] = {}
    quantiles: dict[tuple, list[tuple[float, float]]] = defaultdict(list)
    order: list[tuple] = []

    for sample in family.samples:
        labels = {k: v for k, v in sample.labels.items() if k != "quantile"}
        key = tuple(sorted(labels.items()))
        if key not in order:
            order.append(key)
        if sample.name == f"{family.name}_count":
            counts[key] = sample.value
        elif sample.name == f"{family.name}_sum":
            sums[key] = sample.value
        elif sample.name == family.name and "quantile" in sample.labels:
            quantiles[key].append((float(sample.labels["quantile"]), sample.value))

    return [
        (
            dict(key),
            SummaryValue(
                sample_count=counts.get(key, 0.0),
                sample_sum=sums.get(key, 0.0),
                quantiles=tuple(sorted(quantiles[key])),
            ),
        )
        for key in order
    ]
