"""
Prometheus exposition handling: parsing, queries, grouping and fetchers.
"""

from kubesample.prometheus.metric import (
    EMPTY_VALUE,
    CounterValue,
    GaugeValue,
    Metric,
    MetricFamily,
    MetricType,
    SummaryValue,
    UntypedValue,
)
from kubesample.prometheus.query import (
    Query,
    QueryLabels,
    QueryOperator,
    QueryValue,
    filter_metric_families,
)
from kubesample.prometheus.parser import parse_metric_families
from kubesample.prometheus.grouping import (
    group_entity_metrics_by_spec,
    group_metrics_by_spec,
    raw_entity_id,
)

__all__ = [
    "EMPTY_VALUE",
    "CounterValue",
    "GaugeValue",
    "Metric",
    "MetricFamily",
    "MetricType",
    "SummaryValue",
    "UntypedValue",
    "Query",
    "QueryLabels",
    "QueryOperator",
    "QueryValue",
    "filter_metric_families",
    "parse_metric_families",
    "group_entity_metrics_by_spec",
    "group_metrics_by_spec",
    "raw_entity_id",
]
