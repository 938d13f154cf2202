"""
Generic fetch functions and value transforms.

These operate on raw groups without knowing anything about Prometheus;
the Prometheus-aware fetchers live in `kubesample.prometheus.fetch`.
"""

from __future__ import annotations

from typing import Callable

from kubesample.core.errors import FetchError, KubeSampleError, ShapeMismatchError
from kubesample.definition.spec import FetchedValue, FetchedValues, FetchFunc, RawGroups

TransformFunc = Callable[[FetchedValue], FetchedValue]


def from_raw(metric_key: str) -> FetchFunc:
    """Fetch the raw value stored under `metric_key` for the entity."""

    def fetch(group_label: str, entity_id: str, groups: RawGroups) -> FetchedValue:
        group = groups.get(group_label)
        if group is None:
            raise FetchError("group not found", {"group": group_label})

        entity = group.get(entity_id)
        if entity is None:
            raise FetchError("entity not found", {"group": group_label, "entity_id": entity_id})

        if metric_key not in entity:
            raise FetchError("metric not found", {"metric": metric_key, "entity_id": entity_id})

        return entity[metric_key]

    return fetch


def transform(fetch_func: FetchFunc, transform_func: TransformFunc) -> FetchFunc:
    """Apply `transform_func` to whatever `fetch_func` returns."""

    def fetch(group_label: str, entity_id: str, groups: RawGroups) -> FetchedValue:
        return transform_func(fetch_func(group_label, entity_id, groups))

    return fetch


def fetch_with_default(fetch_func: FetchFunc, default: FetchedValue) -> FetchFunc:
    """Return `default` whenever `fetch_func` fails."""

    def fetch(group_label: str, entity_id: str, groups: RawGroups) -> FetchedValue:
        try:
            return fetch_func(group_label, entity_id, groups)
        except KubeSampleError:
            return default

    return fetch


def fetch_if_missing(replacement: FetchFunc, main: FetchFunc) -> FetchFunc:
    """
    Fetch `replacement` only when `main` cannot be fetched.

    When `main` is present an empty `FetchedValues` is returned, so nothing
    is written for this spec.
    """

    def fetch(group_label: str, entity_id: str, groups: RawGroups) -> FetchedValue:
        try:
            main(group_label, entity_id, groups)
        except KubeSampleError:
            return replacement(group_label, entity_id, groups)
        return FetchedValues()

    return fetch


def subtract(left: FetchFunc, right: FetchFunc) -> FetchFunc:
    """Subtract two numeric fetched values."""

    def fetch(group_label: str, entity_id: str, groups: RawGroups) -> FetchedValue:
        left_value = left(group_label, entity_id, groups)
        right_value = right(group_label, entity_id, groups)
        if not isinstance(left_value, float) or not isinstance(right_value, float):
            raise ShapeMismatchError(
                f"cannot subtract {type(right_value).__name__} from {type(left_value).__name__}"
            )
        return float(left_value) - float(right_value)

    return fetch


def to_numeric_boolean(value: FetchedValue) -> FetchedValue:
    """Map "true"/"false"/"unknown" style values to 1/0/-1."""
    if value in ("true", "True", True) or (not isinstance(value, str) and value == 1):
        return 1
    if value in ("false", "False", False) or (not isinstance(value, str) and value == 0):
        return 0
    if value == "unknown":
        return -1
    raise ShapeMismatchError(f"value {value!r} can not be converted to numeric boolean")


def _single_number(value: FetchedValue) -> float:
    if isinstance(value, FetchedValues):
        if len(value) != 1:
            raise ShapeMismatchError(f"expected a single value, got {len(value)}")
        (value,) = value.values()
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ShapeMismatchError(f"type not supported {type(value).__name__}")
    return float(value)


def to_utilization(dividend: FetchFunc, divisor: FetchFunc) -> FetchFunc:
    """Percentage of `dividend` over `divisor`; a single fanned-out value counts as a number."""

    def fetch(group_label: str, entity_id: str, groups: RawGroups) -> FetchedValue:
        numerator = _single_number(dividend(group_label, entity_id, groups))
        denominator = _single_number(divisor(group_label, entity_id, groups))
        if denominator == 0:
            raise ShapeMismatchError("division by zero")
        return numerator / denominator * 100

    return fetch
