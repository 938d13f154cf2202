"""
Entity population engine.

Walks raw groups and writes one entity per raw entity into an
`Integration`, driven by the spec tables. Failures never stop the run:
they are collected per entity or per metric and returned to the caller,
together with whether anything at all was written.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from kubesample.core.errors import (
    GroupNotASliceError,
    KubeSampleError,
    PopulateError,
)
from kubesample.definition.guess import k8s_metric_set_type_guesser
from kubesample.definition.spec import (
    FetchedTypedValues,
    FetchedValues,
    MetricSetTypeGuesser,
    RawGroups,
    RawMetrics,
    Spec,
    SpecGroup,
    SpecGroups,
)
from kubesample.discovery.namespace_filter import NamespaceFilterer
from kubesample.integration.integration import Integration
from kubesample.integration.metric import MetricSet, SourceType

logger = structlog.get_logger()

NAMESPACE_GROUP = "namespace"
NAMESPACE_FILTERED_LABEL = "nrFiltered"
CLUSTER_ENTITY_TYPE = "k8s:cluster"
CLUSTER_EVENT_TYPE = "K8sClusterSample"


@dataclass
class PopulateConfig:
    """Everything one population run needs."""

    integration: Integration
    groups: RawGroups
    specs: SpecGroups
    cluster_name: str
    k8s_version: str = ""
    ms_type_guesser: MetricSetTypeGuesser = k8s_metric_set_type_guesser
    filterer: NamespaceFilterer | None = None
    logger: structlog.stdlib.BoundLogger | None = None

    def log(self) -> structlog.stdlib.BoundLogger:
        return self.logger if self.logger is not None else logger


@dataclass
class ProcessingUnit:
    """One entity to write.

    `raw_entity_id` is the key metrics are looked up with; `entity_id` names
    the written entity. They differ when an ID generator runs or a group is
    split by label.
    """

    raw_entity_id: str
    entity_id: str
    entity_type: str
    raw_metrics: RawMetrics = field(default_factory=dict)


def filter_group(
    config: PopulateConfig,
    spec_group: SpecGroup,
    group_label: str,
    raw_metrics: RawMetrics,
) -> tuple[dict[str, str], bool]:
    """
    Apply the namespace filter to one raw entity.

    Returns:
        Tuple of (extra entity attributes, skip). Namespace entities are
        never skipped; they carry ``nrFiltered`` instead.
    """
    if config.filterer is None or spec_group.namespace_getter is None:
        return {}, False

    namespace = spec_group.namespace_getter(raw_metrics)
    allowed = config.filterer.is_allowed(namespace)
    if group_label != NAMESPACE_GROUP:
        return {}, not allowed

    return {NAMESPACE_FILTERED_LABEL: "false" if allowed else "true"}, False


def split_group(
    raw_metrics: RawMetrics,
    slice_metric_name: str,
    group_label: str,
    split_by_label: str,
) -> dict[str, RawMetrics]:
    """
    Partition a raw entity by the value of `split_by_label`.

    Each sub-group gets its share of the slice metric plus every other raw
    metric copied verbatim. Series without the label are left out.

    Raises:
        GroupNotASliceError: if the slice metric is not a series list
    """
    slice_metric_name = slice_metric_name or group_label
    series = raw_metrics.get(slice_metric_name)
    if not isinstance(series, list):
        raise GroupNotASliceError(group_label, slice_metric_name)

    sub_groups: dict[str, RawMetrics] = {}
    for metric in series:
        split_value = metric.labels.get(split_by_label)
        if split_value is None:
            continue

        sub_group = sub_groups.get(split_value)
        if sub_group is None:
            sub_group = {k: v for k, v in raw_metrics.items() if k != slice_metric_name}
            sub_group[slice_metric_name] = []
            sub_groups[split_value] = sub_group
        sub_group[slice_metric_name].append(metric)

    return sub_groups


def prepare_processing_units(
    config: PopulateConfig,
    spec_group: SpecGroup,
    group_label: str,
    raw_entity_id: str,
    raw_metrics: RawMetrics,
) -> list[ProcessingUnit]:
    """
    Resolve the entities a raw entity turns into.

    A split group yields one unit per split value, all sharing the type
    generated for the parent; any other group yields exactly one unit.

    Raises:
        KubeSampleError: if the split, the ID or the type cannot be resolved
    """
    if spec_group.split_by_label:
        sub_groups = split_group(
            raw_metrics, spec_group.slice_metric_name, group_label, spec_group.split_by_label
        )
        entity_type = ""
        if spec_group.type_generator is not None:
            entity_type = spec_group.type_generator(
                group_label, raw_entity_id, config.groups, config.cluster_name
            )
        return [
            ProcessingUnit(
                raw_entity_id=raw_entity_id,
                entity_id=f"{raw_entity_id}_{split_value}",
                entity_type=entity_type,
                raw_metrics=sub_groups[split_value],
            )
            for split_value in sorted(sub_groups)
        ]

    entity_id = raw_entity_id
    if spec_group.id_generator is not None:
        entity_id = spec_group.id_generator(group_label, raw_entity_id, config.groups)

    entity_type = ""
    if spec_group.type_generator is not None:
        entity_type = spec_group.type_generator(
            group_label, raw_entity_id, config.groups, config.cluster_name
        )

    return [ProcessingUnit(raw_entity_id, entity_id, entity_type, raw_metrics)]


def populate_value(
    metric_set: MetricSet,
    spec: Spec,
    value: Any,
) -> tuple[bool, list[KubeSampleError]]:
    """
    Write a fetched value, fanning out multi-value results.

    Every key of a multi-value result is written independently; a rejected
    key does not prevent the others from being written.
    """
    if isinstance(value, FetchedTypedValues):
        writes = [(name, typed.value, typed.source_type) for name, typed in sorted(value.items())]
    elif isinstance(value, FetchedValues):
        writes = [(name, v, spec.type) for name, v in sorted(value.items())]
    else:
        writes = [(spec.name, value, spec.type)]

    populated = False
    errors: list[KubeSampleError] = []
    for name, v, source_type in writes:
        try:
            metric_set.set_metric(name, v, source_type)
        except KubeSampleError as e:
            errors.append(e)
            continue
        populated = True
    return populated, errors


def metric_set_populate(
    config: PopulateConfig,
    metric_set: MetricSet,
    spec_group: SpecGroup,
    group_label: str,
    unit: ProcessingUnit,
    groups: RawGroups,
) -> tuple[bool, list[PopulateError]]:
    """
    Run every spec of the group against one entity.

    - fetch fails: recorded, unless the spec is optional
    - fetch returns None: skipped silently
    - write fails: recorded, unless the spec is optional
    """
    log = config.log()
    populated = False
    errors: list[PopulateError] = []

    for spec in spec_group.specs:
        try:
            value = spec.value_func(group_label, unit.raw_entity_id, groups)
        except KubeSampleError as e:
            log.debug(
                "metric_fetch_failed",
                group=group_label,
                entity_id=unit.entity_id,
                metric=spec.name,
                optional=spec.optional,
                error=e.message,
            )
            if not spec.optional:
                errors.append(
                    PopulateError(unit.entity_id, e, group_label=group_label, metric_name=spec.name)
                )
            continue

        if value is None:
            continue

        written, write_errors = populate_value(metric_set, spec, value)
        populated = populated or written
        if spec.optional:
            continue
        for e in write_errors:
            log.debug(
                "metric_write_failed",
                group=group_label,
                entity_id=unit.entity_id,
                metric=spec.name,
                error=e.message,
            )
            errors.append(
                PopulateError(unit.entity_id, e, group_label=group_label, metric_name=spec.name)
            )

    return populated, errors


def process_entities(
    config: PopulateConfig,
    units: list[ProcessingUnit],
    spec_group: SpecGroup,
    group_label: str,
    extra_attributes: dict[str, str],
) -> tuple[bool, list[KubeSampleError]]:
    populated = False
    errors: list[KubeSampleError] = []
    ms_type_guesser = spec_group.ms_type_guesser or config.ms_type_guesser

    for unit in units:
        try:
            entity = config.integration.entity(unit.entity_id, unit.entity_type)
        except KubeSampleError as e:
            errors.append(PopulateError(unit.entity_id, e, group_label=group_label))
            continue

        entity.add_attributes(
            {**extra_attributes, "clusterName": config.cluster_name, "displayName": entity.name}
        )
        metric_set = entity.new_metric_set(ms_type_guesser(group_label))

        # Metrics are looked up under the raw ID; a split unit only sees its own share.
        groups = dict(config.groups)
        groups[group_label] = {unit.raw_entity_id: unit.raw_metrics}

        written, metric_errors = metric_set_populate(
            config, metric_set, spec_group, group_label, unit, groups
        )
        populated = populated or written
        errors.extend(metric_errors)

    return populated, errors


def populate_cluster(config: PopulateConfig) -> None:
    """
    Write the cluster entity.

    Raises:
        KubeSampleError: if the sink rejects the entity or one of its items
    """
    integration = config.integration
    entity = integration.entity(config.cluster_name, CLUSTER_ENTITY_TYPE)
    metric_set = entity.new_metric_set(CLUSTER_EVENT_TYPE)

    entity.inventory.set_item("cluster", "name", config.cluster_name)
    metric_set.set_metric("clusterName", config.cluster_name, SourceType.ATTRIBUTE)
    entity.inventory.set_item("cluster", "k8sVersion", config.k8s_version)
    entity.inventory.set_item("cluster", "newrelic.integrationVersion", integration.integration_version)
    entity.inventory.set_item("cluster", "newrelic.integrationName", integration.name)
    metric_set.set_metric("clusterK8sVersion", config.k8s_version, SourceType.ATTRIBUTE)


def integration_populator(config: PopulateConfig) -> tuple[bool, list[KubeSampleError]]:
    """
    Populate the integration with every raw entity that has a spec group.

    Groups and entities are visited in sorted order. When at least one
    metric was written, the cluster entity is added as well.

    Args:
        config: Raw groups, spec tables, sink and cluster identity

    Returns:
        Tuple of (anything populated, collected errors)
    """
    log = config.log()
    populated = False
    errors: list[KubeSampleError] = []

    for group_label in sorted(config.groups):
        spec_group = config.specs.get(group_label)
        if spec_group is None:
            continue

        entities = config.groups[group_label]
        for raw_entity_id in sorted(entities):
            raw_metrics = entities[raw_entity_id]

            extra_attributes, skip = filter_group(config, spec_group, group_label, raw_metrics)
            if skip:
                log.debug("entity_filtered_by_namespace", group=group_label, entity_id=raw_entity_id)
                continue

            try:
                units = prepare_processing_units(
                    config, spec_group, group_label, raw_entity_id, raw_metrics
                )
            except KubeSampleError as e:
                log.debug(
                    "entity_skipped", group=group_label, entity_id=raw_entity_id, error=e.message
                )
                errors.append(PopulateError(raw_entity_id, e, group_label=group_label))
                continue

            written, entity_errors = process_entities(
                config, units, spec_group, group_label, extra_attributes
            )
            populated = populated or written
            errors.extend(entity_errors)

    if populated:
        try:
            populate_cluster(config)
        except KubeSampleError as e:
            errors.append(e)

    log.debug("population_finished", populated=populated, errors=len(errors))
    return populated, errors
