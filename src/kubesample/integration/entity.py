"""
Entities and their inventory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from kubesample.core.errors import SinkError
from kubesample.integration.metric import MetricSet


@dataclass
class Inventory:
    """Inventory items grouped by category."""

    items: dict[str, dict[str, Any]] = field(default_factory=dict)

    def set_item(self, category: str, key: str, value: Any) -> None:
        if not category or not key:
            raise SinkError("inventory category and key are required", {"category": category, "key": key})
        self.items.setdefault(category, {})[key] = value


@dataclass
class Entity:
    """An output object: name, type, attributes, metric sets and inventory."""

    name: str
    type: str
    attributes: dict[str, str] = field(default_factory=dict)
    metrics: list[MetricSet] = field(default_factory=list)
    inventory: Inventory = field(default_factory=Inventory)

    def add_attributes(self, attributes: dict[str, str]) -> None:
        """Add attributes that every metric set created afterwards will carry."""
        self.attributes.update(attributes)

    def new_metric_set(self, event_type: str) -> MetricSet:
        metric_set = MetricSet(event_type, self.attributes)
        self.metrics.append(metric_set)
        return metric_set

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.type)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "entity": {"name": self.name, "type": self.type, "id_attributes": []},
            "metrics": [ms.to_dict() for ms in self.metrics],
            "inventory": self.inventory.items,
            "events": [],
        }
