"""
Fetch functions reading Prometheus series out of raw groups.

Single series (`Metric`) yield their value or a label; series lists yield
`FetchedValues` whose keys are the metric name suffixed with the series
labels, ``<name>_<label>_<value>_...`` in alphabetical order.

Label filters rewrite the labels used to build those keys. A filter may
also return None to drop the series altogether.
"""

from __future__ import annotations

import math
from typing import Callable, Mapping, Optional

from kubesample.core.errors import LabelMissingError, ShapeMismatchError
from kubesample.definition.fetch import from_raw
from kubesample.definition.spec import (
    FetchedTypedValues,
    FetchedValue,
    FetchedValues,
    FetchFunc,
    RawGroups,
    RawMetrics,
    TypedValue,
)
from kubesample.integration.metric import SourceType
from kubesample.prometheus.metric import (
    CounterValue,
    GaugeValue,
    Metric,
    SummaryValue,
    UntypedValue,
    _NumericValue,
    format_float,
    labels_are_in,
)

LabelsFilter = Callable[[Mapping[str, str]], Optional[dict]]


def ignore_labels_filter(*labels_to_ignore: str) -> LabelsFilter:
    """Filter out the given labels."""

    def labels_filter(labels: Mapping[str, str]) -> dict[str, str] | None:
        return {k: v for k, v in labels.items() if k not in labels_to_ignore}

    return labels_filter


def include_only_labels_filter(*labels_to_include: str) -> LabelsFilter:
    """Filter out every label but the given ones."""

    def labels_filter(labels: Mapping[str, str]) -> dict[str, str] | None:
        return {k: v for k, v in labels.items() if k in labels_to_include}

    return labels_filter


def include_only_when_label_match_filter(labels_to_match: Mapping[str, str]) -> LabelsFilter:
    """Keep only the series carrying every label in `labels_to_match`, dropping the rest."""

    def labels_filter(labels: Mapping[str, str]) -> dict[str, str] | None:
        if not labels_are_in(labels_to_match, labels):
            return None
        return dict(labels)

    return labels_filter


def suffix_labels_in_order(metric_name: str, labels: Mapping[str, str]) -> str:
    """Append ``_<key>_<value>`` for every label, sorted alphabetically."""
    suffixes = sorted(f"{key}_{value}" for key, value in labels.items())
    return "_".join([metric_name, *suffixes])


def filter_labels(labels: Mapping[str, str], *labels_filters: LabelsFilter) -> dict[str, str] | None:
    """Run `labels` through every filter; None when one of them drops the series."""
    filtered: dict[str, str] | None = dict(labels)
    for labels_filter in labels_filters:
        filtered = labels_filter(filtered)
        if filtered is None:
            return None
    return filtered


def attribute_name(
    metric_name: str,
    name_override: str,
    labels: Mapping[str, str],
    *labels_filters: LabelsFilter,
) -> str | None:
    filtered = filter_labels(labels, *labels_filters)
    if filtered is None:
        return None
    return suffix_labels_in_order(name_override or metric_name, filtered)


def _aggregate(metric_name: str, aggregated: FetchedValue, value: FetchedValue) -> FetchedValue:
    if not isinstance(value, _NumericValue):
        return aggregated
    if type(aggregated) is not type(value):
        raise ShapeMismatchError(
            f"incompatible metric type for {metric_name} aggregation. "
            f"Expected: {type(aggregated).__name__}. Got: {type(value).__name__}"
        )
    return aggregated + value


def fetched_values_from_raw_metrics(
    metric_name: str,
    name_override: str,
    metrics: list[Metric],
    *labels_filters: LabelsFilter,
) -> FetchedValues:
    """
    Map every series to an attribute named after its (filtered) labels.

    Series that collapse onto the same attribute name are summed; mixing
    counters and gauges under one name is an error.
    """
    values = FetchedValues()
    for metric in metrics:
        name = attribute_name(metric_name, name_override, metric.labels, *labels_filters)
        if name is None:
            continue
        if name not in values:
            values[name] = metric.value
            continue
        values[name] = _aggregate(metric_name, values[name], metric.value)
    return values


def _series(metric_name: str, value: FetchedValue) -> list[Metric]:
    if isinstance(value, Metric):
        return [value]
    if isinstance(value, list):
        return value
    raise ShapeMismatchError(
        f"incompatible metric type for {metric_name}. "
        f"Expected: Metric or list of Metric. Got: {type(value).__name__}"
    )


def from_value(metric_name: str, *labels_filters: LabelsFilter) -> FetchFunc:
    """Fetch the value of a series, or the per-label values of a series list."""
    return from_value_with_overridden_name(metric_name, "", *labels_filters)


def from_value_with_overridden_name(
    metric_name: str,
    name_override: str,
    *labels_filters: LabelsFilter,
) -> FetchFunc:
    """Like `from_value`, prefixing fanned-out names with `name_override` when set."""
    raw = from_raw(metric_name)

    def fetch(group_label: str, entity_id: str, groups: RawGroups) -> FetchedValue:
        value = raw(group_label, entity_id, groups)
        if isinstance(value, Metric):
            return value.value
        return fetched_values_from_raw_metrics(
            metric_name, name_override, _series(metric_name, value), *labels_filters
        )

    return fetch


def from_value_with_labels_filter(
    metric_name: str,
    name: str,
    *labels_filters: LabelsFilter,
) -> FetchFunc:
    """
    Sum the series kept by `labels_filters` into a single metric called `name`.

    Nothing is written when no series is kept.
    """
    raw = from_raw(metric_name)

    def fetch(group_label: str, entity_id: str, groups: RawGroups) -> FetchedValue:
        total = None
        for metric in _series(metric_name, raw(group_label, entity_id, groups)):
            if filter_labels(metric.labels, *labels_filters) is None:
                continue
            total = metric.value if total is None else _aggregate(metric_name, total, metric.value)
        if total is None:
            return None
        return FetchedValues({name: total})

    return fetch


def count_from_value_with_labels_filter(
    metric_name: str,
    name: str,
    *labels_filters: LabelsFilter,
) -> FetchFunc:
    """Count the series kept by `labels_filters` into a single metric called `name`."""
    raw = from_raw(metric_name)

    def fetch(group_label: str, entity_id: str, groups: RawGroups) -> FetchedValue:
        series = _series(metric_name, raw(group_label, entity_id, groups))
        count = sum(1 for m in series if filter_labels(m.labels, *labels_filters) is not None)
        return FetchedValues({name: float(count)})

    return fetch


def from_label_value(metric_key: str, label: str) -> FetchFunc:
    """
    Fetch the value of `label` on the series stored under `metric_key`.

    For a series list (a split sub-group) the first series is read; every
    series of a sub-group shares the split label.
    """
    raw = from_raw(metric_key)

    def fetch(group_label: str, entity_id: str, groups: RawGroups) -> FetchedValue:
        value = raw(group_label, entity_id, groups)
        if isinstance(value, list) and value:
            value = value[0]
        if not isinstance(value, Metric):
            raise ShapeMismatchError(
                f"incompatible metric type. Expected: Metric. Got: {type(value).__name__}"
            )
        if label not in value.labels:
            raise LabelMissingError(
                "label not found in prometheus metric", {"label": label, "metric": metric_key}
            )
        return value.labels[label]

    return fetch


def prefixed_labels(labels: Mapping[str, str], prefix: str) -> FetchedValues:
    """Rename ``<prefix>_<name>`` labels to ``<prefix>.<name>``, keeping the others."""
    values = FetchedValues()
    for key, value in labels.items():
        trimmed = key[len(prefix) + 1 :] if key.startswith(f"{prefix}_") else key
        values[f"{prefix}.{trimmed}"] = value
    return values


def from_metric_with_prefixed_labels(metric_key: str, prefix: str) -> FetchFunc:
    """
    Fetch the ``<prefix>_*`` labels of a series as ``<prefix>.*`` attributes.

    Used for the kube-state-metrics ``*_labels`` and ``*_annotations``
    series, whose object labels are exposed as ``label_<name>``.
    """
    raw = from_raw(metric_key)

    def fetch(group_label: str, entity_id: str, groups: RawGroups) -> FetchedValue:
        value = raw(group_label, entity_id, groups)
        if not isinstance(value, Metric):
            raise ShapeMismatchError(
                f"incompatible metric type. Expected: Metric. Got: {type(value).__name__}"
            )
        matching = {k: v for k, v in value.labels.items() if k.startswith(f"{prefix}_")}
        return prefixed_labels(matching, prefix)

    return fetch


def from_flattened_metrics(metric_key: str, key_label: str, *attribute_labels: str) -> FetchFunc:
    """
    Flatten a series list into one gauge per value of `key_label`.

    ``[{resource="pods",type="hard"} 10, {resource="pods",type="used"} 3]``
    with ``attribute_labels=("resource",)`` becomes ``hard=10`` and
    ``used=3`` gauges plus a ``resource="pods"`` attribute. Series without
    `key_label` are ignored; repeated keys are summed.
    """
    raw = from_raw(metric_key)

    def fetch(group_label: str, entity_id: str, groups: RawGroups) -> FetchedValue:
        values = FetchedTypedValues()
        for metric in _series(metric_key, raw(group_label, entity_id, groups)):
            for label in attribute_labels:
                if label in metric.labels:
                    values[label] = TypedValue(metric.labels[label], SourceType.ATTRIBUTE)

            name = metric.labels.get(key_label)
            if name is None:
                continue
            value = metric.value
            if name in values:
                value = _aggregate(metric_key, values[name].value, value)
            values[name] = TypedValue(value, SourceType.GAUGE)
        return values

    return fetch


def valid_value(value: float) -> bool:
    """Whether a float can be sent to the backend."""
    return not math.isinf(value) and not math.isnan(value)


def from_summary(metric_key: str) -> FetchFunc:
    """
    Fetch summaries as count, sum and one attribute per quantile.

    Expects a series list, as produced by `group_entity_metrics_by_spec`:

    - ``<name>_<labels>_count``
    - ``<name>_<labels>_sum``
    - ``<name>_<labels>_quantile_<q>``
    """
    raw = from_raw(metric_key)

    def fetch(group_label: str, entity_id: str, groups: RawGroups) -> FetchedValue:
        value = raw(group_label, entity_id, groups)
        if not isinstance(value, list):
            raise ShapeMismatchError(
                f"incompatible metric type for {metric_key}. "
                f"Expected: list of Metric. Got: {type(value).__name__}"
            )

        values = FetchedValues()
        for metric in value:
            summary = metric.value
            if not isinstance(summary, SummaryValue):
                raise ShapeMismatchError(
                    f"incompatible metric type for {metric_key}. "
                    f"Expected: Summary. Got: {type(summary).__name__}"
                )
            name = suffix_labels_in_order(metric_key, metric.labels)
            values[f"{name}_count"] = summary.sample_count
            if valid_value(summary.sample_sum):
                values[f"{name}_sum"] = summary.sample_sum
            for quantile, quantile_value in summary.quantiles:
                if valid_value(quantile_value):
                    values[f"{name}_quantile_{format_float(quantile)}"] = quantile_value
        return values

    return fetch


def from_label_get_namespace(raw_metrics: RawMetrics) -> str:
    """Namespace of an entity: the ``namespace`` label of any of its series."""
    for key in sorted(raw_metrics):
        value = raw_metrics[key]
        if isinstance(value, list):
            value = value[0] if value else None
        if isinstance(value, Metric) and "namespace" in value.labels:
            return value.labels["namespace"]
    return ""


def from_prometheus_numeric(value: FetchedValue) -> FetchedValue:
    """Unwrap a gauge or counter value into a plain float."""
    if isinstance(value, (GaugeValue, CounterValue, UntypedValue)):
        return float(value)
    raise ShapeMismatchError(
        f"invalid type value {value!r}. Expected 'gauge' or 'counter', got {type(value).__name__!r}"
    )
