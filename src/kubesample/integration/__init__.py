"""Entity sink: the builder population writes to and its HTTP transport."""

from kubesample.integration.entity import Entity, Inventory
from kubesample.integration.integration import Integration
from kubesample.integration.metric import MetricSet, SourceType
from kubesample.integration.sink import HTTPSink

__all__ = [
    "Entity",
    "HTTPSink",
    "Integration",
    "Inventory",
    "MetricSet",
    "SourceType",
]
