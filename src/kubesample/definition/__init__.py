"""
Spec table definitions shared by every data source.

Declares the raw data model the grouping engine produces and the spec
tables the population engine interprets.
"""

from kubesample.definition.fetch import (
    fetch_if_missing,
    fetch_with_default,
    from_raw,
    subtract,
    to_numeric_boolean,
    transform,
)
from kubesample.definition.guess import (
    k8s_metric_set_type_guesser,
    metric_set_type_guesser_with_custom_group,
)
from kubesample.definition.spec import (
    FetchedTypedValues,
    FetchedValues,
    FetchFunc,
    RawGroups,
    RawMetrics,
    Spec,
    SpecGroup,
    SpecGroups,
    TypedValue,
)

__all__ = [
    "FetchFunc",
    "FetchedTypedValues",
    "FetchedValues",
    "RawGroups",
    "RawMetrics",
    "Spec",
    "SpecGroup",
    "SpecGroups",
    "TypedValue",
    "fetch_if_missing",
    "fetch_with_default",
    "from_raw",
    "subtract",
    "to_numeric_boolean",
    "transform",
    "k8s_metric_set_type_guesser",
    "metric_set_type_guesser_with_custom_group",
]
