"""
Declarative spec tables.

A `SpecGroup` describes one object kind (pod, namespace, a control plane
component, ...): how its entities are identified and typed, and which
metrics (`Spec`) are fetched from its raw series.

Fetch functions follow a three-way contract:

- return a value: the metric is written
- return ``None``: the metric is skipped silently
- raise: the metric fails (reported unless the spec is optional)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol

from kubesample.integration.metric import SourceType

# A raw value is a single series (`Metric`) or, for sliceable metrics, a list of series.
RawValue = Any

# Raw values of one entity indexed by metric name.
RawMetrics = Dict[str, RawValue]

# group label -> raw entity ID -> raw metrics
RawGroups = Dict[str, Dict[str, RawMetrics]]

FetchedValue = Any


class FetchedValues(dict):
    """Several metrics fanned out from one spec; they share the spec's type."""


@dataclass(frozen=True)
class TypedValue:
    """A fanned-out value that carries its own source type."""

    value: Any
    source_type: SourceType


class FetchedTypedValues(dict):
    """Several metrics fanned out from one spec, each with its own `TypedValue`."""


FetchFunc = Callable[[str, str, RawGroups], FetchedValue]
NamespaceGetter = Callable[[RawMetrics], str]
MetricSetTypeGuesser = Callable[[str], str]


class EntityIDGenerator(Protocol):
    """Derives the final entity ID from a raw entity."""

    def __call__(self, group_label: str, raw_entity_id: str, groups: RawGroups) -> str: ...


class EntityTypeGenerator(Protocol):
    """Derives the hierarchical entity type from a raw entity."""

    def __call__(
        self, group_label: str, raw_entity_id: str, groups: RawGroups, cluster_name: str
    ) -> str: ...


@dataclass
class Spec:
    """Maps one output metric name to a fetch function."""

    name: str
    value_func: FetchFunc
    type: SourceType = SourceType.GAUGE
    optional: bool = False


@dataclass
class SpecGroup:
    """Specs of one object kind plus the logic shared by all of its entities."""

    specs: list[Spec] = field(default_factory=list)
    id_generator: Optional[EntityIDGenerator] = None
    type_generator: Optional[EntityTypeGenerator] = None
    namespace_getter: Optional[NamespaceGetter] = None
    ms_type_guesser: Optional[MetricSetTypeGuesser] = None
    split_by_label: str = ""
    slice_metric_name: str = ""
    # Families kept as series lists by the grouping engine instead of last-write-wins.
    sliced_metrics: tuple = ()

    def slice_metric_key(self, group_label: str) -> str:
        """Family holding the series a split partitions; defaults to the group label."""
        return self.slice_metric_name or group_label

    def slice_metric_names(self, group_label: str) -> frozenset:
        """Every family the grouping engine stores as a series list for this group."""
        names = set(self.sliced_metrics)
        if self.split_by_label:
            names.add(self.slice_metric_key(group_label))
        return frozenset(names)


SpecGroups = Dict[str, SpecGroup]
