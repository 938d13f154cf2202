"""
Value types for scraped Prometheus series.

A scraped series is a `Metric` (label set plus typed value) and all the
series sharing one name form a `MetricFamily`. Values render to the same
canonical decimal string regardless of their kind, which is what value
predicates in queries compare against.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Union


class MetricType(str, Enum):
    """Prometheus metric family types."""

    COUNTER = "counter"
    GAUGE = "gauge"
    UNTYPED = "untyped"
    SUMMARY = "summary"
    HISTOGRAM = "histogram"


def format_float(value: float) -> str:
    """Render a float as the shortest decimal string, without exponent."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    rendered = format(Decimal(repr(float(value))), "f")
    if "." in rendered:
        rendered = rendered.rstrip("0").rstrip(".")
    if rendered == "-0":
        return "0"
    return rendered


class _NumericValue(float):
    """Float that renders canonically and keeps its kind through arithmetic."""

    kind: MetricType

    def __str__(self) -> str:
        return format_float(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({format_float(self)})"

    def __add__(self, other: object) -> "_NumericValue":
        result = float.__add__(self, other)  # type: ignore[operator]
        if result is NotImplemented:
            return result
        return type(self)(result)


class CounterValue(_NumericValue):
    """Value of a counter series."""

    kind = MetricType.COUNTER


class GaugeValue(_NumericValue):
    """Value of a gauge series."""

    kind = MetricType.GAUGE


class UntypedValue(_NumericValue):
    """Value of an untyped series."""

    kind = MetricType.UNTYPED


class _NoValue:
    """Marker for series whose value could not be read."""

    _instance: "_NoValue | None" = None

    def __new__(cls) -> "_NoValue":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __str__(self) -> str:
        return "no_value"

    def __repr__(self) -> str:
        return "EMPTY_VALUE"

    def __bool__(self) -> bool:
        return False


EMPTY_VALUE = _NoValue()


@dataclass(frozen=True)
class SummaryValue:
    """Count, sum and quantiles of one summary series."""

    sample_count: float
    sample_sum: float
    quantiles: tuple[tuple[float, float], ...] = ()

    def __str__(self) -> str:
        parts = [f"count:{format_float(self.sample_count)}", f"sum:{format_float(self.sample_sum)}"]
        parts.extend(f"q{format_float(q)}:{format_float(v)}" for q, v in self.quantiles)
        return " ".join(parts)


Value = Union[CounterValue, GaugeValue, UntypedValue, SummaryValue, _NoValue]


def labels_are_in(expected: Mapping[str, str], labels: Mapping[str, str]) -> bool:
    """True when every expected label is present in `labels` with the same value."""
    return all(name in labels and labels[name] == value for name, value in expected.items())


@dataclass(frozen=True)
class Metric:
    """A single scraped series: its labels and its value."""

    labels: Mapping[str, str] = field(default_factory=dict)
    value: Value | None = EMPTY_VALUE

    def __post_init__(self) -> None:
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))

    def has_label(self, name: str) -> bool:
        return name in self.labels

    def has_labels(self, *names: str) -> bool:
        return all(name in self.labels for name in names)


@dataclass(frozen=True)
class MetricFamily:
    """Every series of one metric name that survived a query."""

    name: str
    type: MetricType | None
    metrics: tuple[Metric, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "metrics", tuple(self.metrics))

    def valid(self) -> bool:
        """A family is usable only when it has a name, a type and at least one series."""
        return bool(self.name) and self.type is not None and len(self.metrics) > 0
