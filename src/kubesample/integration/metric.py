"""
Metric sets: the named bags of metrics written for an entity.

Values are validated against the declared source type on write. Rate and
delta values are stored as sampled; deriving them over time is left to the
backend since nothing here keeps state between scrape cycles.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any

from kubesample.core.errors import MetricWriteError


class SourceType(str, Enum):
    """Semantic of a metric value."""

    GAUGE = "gauge"
    RATE = "rate"
    DELTA = "delta"
    ATTRIBUTE = "attribute"


def cast_to_float(value: Any) -> float:
    """Convert a fetched value into a finite float, or fail."""
    if isinstance(value, bool) or value is None:
        raise MetricWriteError(f"non-numeric value {value!r}")
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value)
        except ValueError:
            raise MetricWriteError(f"non-numeric value {value!r}") from None
    else:
        raise MetricWriteError(f"non-numeric value of type {type(value).__name__}")

    if math.isnan(result) or math.isinf(result):
        raise MetricWriteError(f"invalid metric value {value!r}")
    return result


class MetricSet:
    """Metrics of one event type written for one entity."""

    def __init__(self, event_type: str, attributes: dict[str, str] | None = None):
        self.event_type = event_type
        self.metrics: dict[str, Any] = {"event_type": event_type}
        for key, value in (attributes or {}).items():
            self.metrics[key] = value

    def set_metric(self, name: str, value: Any, source_type: SourceType) -> None:
        """
        Write a metric, validating it against its source type.

        Raises:
            MetricWriteError: if the name is empty or the value does not
                fit the source type
        """
        if not name:
            raise MetricWriteError("metric name cannot be empty")

        if source_type is SourceType.ATTRIBUTE:
            if not isinstance(value, str):
                raise MetricWriteError(
                    f"attribute {name!r} must be a string, got {type(value).__name__}"
                )
            self.metrics[name] = value
            return

        try:
            self.metrics[name] = cast_to_float(value)
        except MetricWriteError as e:
            raise MetricWriteError(f"metric {name!r}: {e.message}", {"metric": name}) from e

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return dict(self.metrics)
