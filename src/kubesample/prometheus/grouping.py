"""
Grouping engine: partitions filtered metric families into raw groups.

For every declared group label, each series carrying that label is stored
under a raw entity ID derived from its labels:

- ``namespace``, ``node``: the label value itself
- ``container``: ``"{namespace}_{pod}_{container}"``
- anything else: ``"{namespace}_{value}"``

The result maps ``group label -> raw entity ID -> metric name -> series``.
"""

from __future__ import annotations

from typing import Iterable

import structlog

from kubesample.core.errors import GroupEmptyError
from kubesample.definition.spec import RawGroups, SpecGroups
from kubesample.prometheus.metric import Metric, MetricFamily

logger = structlog.get_logger()


def raw_entity_id(group_label: str, metric: Metric) -> str | None:
    """
    Derive the raw entity ID a series belongs to within a group.

    Returns None when the series lacks a label the group requires.
    """
    labels = metric.labels
    if group_label not in labels:
        return None

    if group_label in ("namespace", "node"):
        return labels[group_label]

    if group_label == "container":
        if not metric.has_labels("namespace", "pod"):
            return None
        return f"{labels['namespace']}_{labels['pod']}_{labels[group_label]}"

    return f"{labels.get('namespace', '')}_{labels[group_label]}"


def group_metrics_by_spec(
    specs: SpecGroups,
    families: Iterable[MetricFamily],
) -> tuple[RawGroups, list[GroupEmptyError]]:
    """
    Group series by the object kinds declared in `specs`.

    Series with the same group, raw entity ID and family name overwrite
    each other (last write wins), except for the families a group declares
    as sliced, which are kept as series lists in arrival order. A group
    that matched nothing produces a `GroupEmptyError` and no entry in the
    result.

    Args:
        specs: Spec groups keyed by group label
        families: Filtered metric families

    Returns:
        Tuple of (raw groups, advisory errors)
    """
    families = list(families)
    groups: RawGroups = {}
    errors: list[GroupEmptyError] = []

    for group_label, spec_group in specs.items():
        sliced = spec_group.slice_metric_names(group_label)
        for family in families:
            for metric in family.metrics:
                entity_id = raw_entity_id(group_label, metric)
                if entity_id is None:
                    continue
                raw = groups.setdefault(group_label, {}).setdefault(entity_id, {})
                if family.name in sliced:
                    raw.setdefault(family.name, []).append(metric)
                else:
                    raw[family.name] = metric

        if not groups.get(group_label):
            logger.debug("group_without_data", group=group_label)
            errors.append(GroupEmptyError(group_label))

    return groups, errors


def group_entity_metrics_by_spec(
    specs: SpecGroups,
    families: Iterable[MetricFamily],
    entity_id: str,
) -> tuple[RawGroups, list[GroupEmptyError]]:
    """
    Group every series under one given entity, keeping series lists.

    Used when everything scraped from an endpoint belongs to a single
    entity that the labels cannot identify, e.g. a control plane
    component. Raw values are lists of all series of a family.
    """
    families = list(families)
    groups: RawGroups = {}
    errors: list[GroupEmptyError] = []

    for group_label in specs:
        for family in families:
            for metric in family.metrics:
                raw = groups.setdefault(group_label, {}).setdefault(entity_id, {})
                raw.setdefault(family.name, []).append(metric)

        if not groups.get(group_label):
            logger.debug("group_without_data", group=group_label)
            errors.append(GroupEmptyError(group_label))

    return groups, errors
