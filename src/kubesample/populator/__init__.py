"""
Entity population engine.
"""

from kubesample.populator.populator import (
    NAMESPACE_FILTERED_LABEL,
    NAMESPACE_GROUP,
    PopulateConfig,
    ProcessingUnit,
    integration_populator,
    split_group,
)

__all__ = [
    "NAMESPACE_FILTERED_LABEL",
    "NAMESPACE_GROUP",
    "PopulateConfig",
    "ProcessingUnit",
    "integration_populator",
    "split_group",
]
