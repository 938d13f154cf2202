"""
Entity ID, entity type and label inheritance strategies.

Each strategy is a small frozen dataclass so spec tables stay declarative
and comparable; calling one resolves the value for a raw entity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from kubesample.core.errors import (
    EntitySkippedError,
    FetchError,
    KubeSampleError,
    LabelMissingError,
    ShapeMismatchError,
)
from kubesample.definition.fetch import from_raw
from kubesample.definition.spec import FetchedValue, FetchedValues, RawGroups, RawMetrics
from kubesample.prometheus.fetch import from_label_value, prefixed_labels
from kubesample.prometheus.metric import Metric


def _label_values(
    group_label: str,
    raw_entity_id: str,
    metric_key: str,
    groups: RawGroups,
    *labels: str,
) -> list[str]:
    values = []
    for label in labels:
        try:
            value = from_label_value(metric_key, label)(group_label, raw_entity_id, groups)
        except KubeSampleError as e:
            raise LabelMissingError(
                f"cannot fetch label {label} for metric {metric_key}: {e.message}",
                {"label": label, "metric": metric_key, "entity_id": raw_entity_id},
            ) from e
        if not value:
            raise LabelMissingError(
                f"empty label {label} for metric {metric_key}",
                {"label": label, "metric": metric_key, "entity_id": raw_entity_id},
            )
        values.append(value)
    return values


@dataclass(frozen=True)
class RawEntityIDGenerator:
    """Use the raw entity ID as the final entity ID."""

    def __call__(self, group_label: str, raw_entity_id: str, groups: RawGroups) -> str:
        return raw_entity_id


@dataclass(frozen=True)
class LabelValueEntityIDGenerator:
    """Use the value of `label` on the `metric_key` series as the entity ID."""

    metric_key: str
    label: str

    def __call__(self, group_label: str, raw_entity_id: str, groups: RawGroups) -> str:
        (value,) = _label_values(group_label, raw_entity_id, self.metric_key, groups, self.label)
        return value


@dataclass(frozen=True)
class PendingPodEntityIDGenerator:
    """
    Pod name for pods that are not scheduled yet.

    Scheduled pods are reported by the kubelet, so they are refused here.
    """

    def __call__(self, group_label: str, raw_entity_id: str, groups: RawGroups) -> str:
        pod_name = LabelValueEntityIDGenerator("kube_pod_status_phase", "pod")(
            group_label, raw_entity_id, groups
        )
        scheduled = LabelValueEntityIDGenerator("kube_pod_status_scheduled", "condition")(
            group_label, raw_entity_id, groups
        )
        if scheduled != "false":
            raise EntitySkippedError(
                "ignoring pending pod, which is scheduled: reported from kubelet",
                {"pod": pod_name, "condition": scheduled},
            )
        return pod_name


@dataclass(frozen=True)
class LabelValueEntityTypeGenerator:
    """
    Hierarchical entity type built from the cluster name and object labels.

    - ``namespace``, ``node``: ``k8s:<cluster>:<group>``
    - ``container``: ``k8s:<cluster>:<namespace>:<pod>:<group>``
    - anything else: ``k8s:<cluster>:<namespace>:<group>``

    Labels are read from the `metric_key` series. `custom_group` replaces
    the group label in the generated type when set.
    """

    metric_key: str
    custom_group: str = ""

    def __call__(
        self, group_label: str, raw_entity_id: str, groups: RawGroups, cluster_name: str
    ) -> str:
        group = self.custom_group or group_label

        if group_label in ("namespace", "node"):
            return f"k8s:{cluster_name}:{group}"

        if group_label == "container":
            namespace, pod = _label_values(
                group_label, raw_entity_id, self.metric_key, groups, "namespace", "pod"
            )
            return f"k8s:{cluster_name}:{namespace}:{pod}:{group}"

        (namespace,) = _label_values(group_label, raw_entity_id, self.metric_key, groups, "namespace")
        return f"k8s:{cluster_name}:{namespace}:{group}"


@dataclass(frozen=True)
class ClusterScopedEntityTypeGenerator:
    """Entity type of an object living outside any namespace: ``k8s:<cluster>:<group>``."""

    custom_group: str = ""

    def __call__(
        self, group_label: str, raw_entity_id: str, groups: RawGroups, cluster_name: str
    ) -> str:
        return f"k8s:{cluster_name}:{self.custom_group or group_label}"


@dataclass(frozen=True)
class ControlPlaneComponentTypeGenerator:
    """Entity type of a control plane component: ``k8s:<cluster>:controlplane:<group>``."""

    def __call__(
        self, group_label: str, raw_entity_id: str, groups: RawGroups, cluster_name: str
    ) -> str:
        return f"k8s:{cluster_name}:controlplane:{group_label}"


def _first_metric(raw_metrics: RawMetrics, *labels: str) -> tuple[str, Metric] | None:
    for key in sorted(raw_metrics):
        value = raw_metrics[key]
        if isinstance(value, Metric) and value.has_labels(*labels):
            return key, value
    return None


def get_raw_entity_id(parent_group_label: str, group_label: str, entity_id: str, groups: RawGroups) -> str:
    """
    Raw ID, within `parent_group_label`, of the parent of an entity.

    Node and namespace parents are identified by their label alone; any
    other parent by ``<namespace>_<parent label>``.
    """
    raw_metrics = groups.get(group_label, {}).get(entity_id)
    if raw_metrics is None:
        raise FetchError(
            f"metrics not found for {group_label} with entity ID: {entity_id}",
            {"group": group_label, "entity_id": entity_id},
        )

    if parent_group_label in ("node", "namespace"):
        found = _first_metric(raw_metrics, parent_group_label)
        if found is None:
            raise LabelMissingError(
                f"label not found. Label: {parent_group_label!r}",
                {"label": parent_group_label, "entity_id": entity_id},
            )
        return found[1].labels[parent_group_label]

    found = _first_metric(raw_metrics, "namespace", parent_group_label)
    if found is None:
        raise LabelMissingError(
            f"metric with the labels ['namespace', {parent_group_label!r}] not found",
            {"label": parent_group_label, "entity_id": entity_id},
        )
    labels = found[1].labels
    return f"{labels['namespace']}_{labels[parent_group_label]}"


def _parent_metric(
    parent_group_label: str,
    related_metric_key: str,
    group_label: str,
    entity_id: str,
    groups: RawGroups,
) -> Metric:
    raw_entity_id = get_raw_entity_id(parent_group_label, group_label, entity_id, groups)
    try:
        parent = from_raw(related_metric_key)(parent_group_label, raw_entity_id, groups)
    except FetchError as e:
        raise FetchError(
            f"related metric not found. Metric: {related_metric_key} {parent_group_label}:{raw_entity_id}",
            {"metric": related_metric_key, "group": parent_group_label, "entity_id": raw_entity_id},
        ) from e
    if not isinstance(parent, Metric):
        raise ShapeMismatchError(
            f"incompatible metric type. Expected: Metric. Got: {type(parent).__name__}"
        )
    return parent


@dataclass(frozen=True)
class InheritAllLabels:
    """
    Copy every label of a parent series as ``<prefix>.<name>``.

    A ``<prefix>_`` at the start of a label name is dropped, so
    ``label_app`` on ``kube_pod_labels`` becomes ``label.app``.
    """

    parent_group_label: str
    related_metric_key: str
    prefix: str = "label"

    def __call__(self, group_label: str, entity_id: str, groups: RawGroups) -> FetchedValue:
        parent = _parent_metric(
            self.parent_group_label, self.related_metric_key, group_label, entity_id, groups
        )
        return prefixed_labels(parent.labels, self.prefix)


def inherit_all_labels_from(parent_group_label: str, related_metric_key: str) -> InheritAllLabels:
    return InheritAllLabels(parent_group_label, related_metric_key, "label")


def inherit_all_selectors_from(parent_group_label: str, related_metric_key: str) -> InheritAllLabels:
    return InheritAllLabels(parent_group_label, related_metric_key, "selector")


@dataclass(frozen=True)
class InheritLabelValues:
    """Copy chosen parent labels; `labels_to_retrieve` maps output name to label.

    Every requested label must exist on the parent series.
    """

    parent_group_label: str
    related_metric_key: str
    labels_to_retrieve: Mapping[str, str] = field(default_factory=dict)

    def __call__(self, group_label: str, entity_id: str, groups: RawGroups) -> FetchedValue:
        parent = _parent_metric(
            self.parent_group_label, self.related_metric_key, group_label, entity_id, groups
        )
        values = FetchedValues()
        for name, label in self.labels_to_retrieve.items():
            if label not in parent.labels:
                raise LabelMissingError(
                    f"label not found. Label: {label!r}, Metric: {self.related_metric_key}",
                    {"label": label, "metric": self.related_metric_key, "entity_id": entity_id},
                )
            values[name] = parent.labels[label]
        return values


def inherit_specific_label_values_from(
    parent_group_label: str, related_metric_key: str, labels_to_retrieve: Mapping[str, str]
) -> InheritLabelValues:
    return InheritLabelValues(parent_group_label, related_metric_key, dict(labels_to_retrieve))

