"""
Append-only builder for the integration payload.

Population code only writes to it: entities are created (or looked up by
name and type), then metric sets and inventory items are attached.
"""

from __future__ import annotations

import json
from typing import Any

from kubesample.core.errors import SinkError
from kubesample.integration.entity import Entity

PROTOCOL_VERSION = "3"


class Integration:
    """Collects every entity emitted during one scrape cycle."""

    def __init__(self, name: str, version: str):
        self.name = name
        self.integration_version = version
        self._entities: dict[tuple[str, str], Entity] = {}

    def entity(self, name: str, entity_type: str) -> Entity:
        """
        Return the entity for (name, type), creating it on first use.

        Raises:
            SinkError: if name or type is empty
        """
        if not name or not entity_type:
            raise SinkError(
                "entity name and type are required when defining one",
                {"name": name, "type": entity_type},
            )

        key = (name, entity_type)
        if key not in self._entities:
            self._entities[key] = Entity(name=name, type=entity_type)
        return self._entities[key]

    @property
    def entities(self) -> list[Entity]:
        return list(self._entities.values())

    def find(self, name: str, entity_type: str) -> Entity | None:
        return self._entities.get((name, entity_type))

    def to_payload(self) -> dict[str, Any]:
        """Render the protocol payload."""
        return {
            "name": self.name,
            "protocol_version": PROTOCOL_VERSION,
            "integration_version": self.integration_version,
            "data": [entity.to_dict() for entity in self._entities.values()],
        }

    def publish(self) -> str:
        """Serialize the payload to JSON."""
        return json.dumps(self.to_payload(), sort_keys=True)
