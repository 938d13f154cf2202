"""
Scrape configuration: cluster identity and namespace selection.

Loaded from the YAML config file (see `kubesample.config.loader`):

    cluster_name: prod-eu
    k8s_version: v1.29.2
    namespace_selector:
      match_expressions:
        - key: newrelic.com/scrape
          operator: NotIn
          values: ["false"]
    namespace_labels:
      kube-system:
        newrelic.com/scrape: "true"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Mapping

from kubesample.core.errors import ConfigurationError


class SelectorOperator(StrEnum):
    """Label selector requirement operators."""

    IN = "In"
    NOT_IN = "NotIn"
    EXISTS = "Exists"
    DOES_NOT_EXIST = "DoesNotExist"


def _string_values(values: Any, what: str) -> list[str]:
    if values is None:
        return []
    if not isinstance(values, list):
        raise ConfigurationError(f"invalid {what} value: {values!r}, type {type(values).__name__}")
    for value in values:
        if not isinstance(value, str):
            raise ConfigurationError(f"invalid {what} value: {value!r}, type {type(value).__name__}")
    return list(values)


@dataclass
class Expression:
    """One ``match_expressions`` requirement."""

    key: str
    operator: SelectorOperator
    values: list[str] = field(default_factory=list)

    def matches(self, labels: Mapping[str, str]) -> bool:
        if self.operator is SelectorOperator.IN:
            return self.key in labels and labels[self.key] in self.values
        if self.operator is SelectorOperator.NOT_IN:
            return self.key not in labels or labels[self.key] not in self.values
        if self.operator is SelectorOperator.EXISTS:
            return self.key in labels
        return self.key not in labels

    def __str__(self) -> str:
        return f"{self.key} {self.operator.value.lower()} ({','.join(self.values)})"

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "operator": self.operator.value, "values": list(self.values)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Expression:
        operator = data.get("operator", "")
        try:
            parsed = SelectorOperator(operator)
        except ValueError:
            raise ConfigurationError(
                f"unknown match_expressions operator {operator!r}",
                {"key": data.get("key"), "operator": operator},
            ) from None
        key = data.get("key")
        if not key or not isinstance(key, str):
            raise ConfigurationError("match_expressions entries need a key", {"operator": operator})
        return cls(key=key, operator=parsed, values=_string_values(data.get("values"), "match_expressions"))


@dataclass
class NamespaceSelector:
    """
    Selects the namespaces whose objects are reported.

    ``match_labels`` takes precedence over ``match_expressions`` when both
    are set. An empty selector allows every namespace.
    """

    match_labels: dict[str, str] | None = None
    match_expressions: list[Expression] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.match_labels is not None:
            data["match_labels"] = dict(self.match_labels)
        if self.match_expressions is not None:
            data["match_expressions"] = [e.to_dict() for e in self.match_expressions]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NamespaceSelector:
        match_labels = data.get("match_labels")
        if match_labels is not None:
            if not isinstance(match_labels, dict):
                raise ConfigurationError(f"invalid match_labels value: {match_labels!r}")
            for value in match_labels.values():
                if not isinstance(value, str):
                    raise ConfigurationError(
                        f"invalid match_labels value: {value!r}, type {type(value).__name__}"
                    )
            match_labels = dict(match_labels)

        expressions = data.get("match_expressions")
        if expressions is not None:
            expressions = [Expression.from_dict(e) for e in expressions]

        return cls(match_labels=match_labels, match_expressions=expressions)


@dataclass
class ScrapeConfig:
    """Everything a scrape cycle needs besides the exposition body."""

    cluster_name: str = "cluster"
    k8s_version: str = ""
    namespace_selector: NamespaceSelector | None = None
    # Namespace name -> labels; stands in for a live namespace lister.
    namespace_labels: dict[str, dict[str, str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "cluster_name": self.cluster_name,
            "k8s_version": self.k8s_version,
            "namespace_labels": {ns: dict(labels) for ns, labels in self.namespace_labels.items()},
        }
        if self.namespace_selector is not None:
            data["namespace_selector"] = self.namespace_selector.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScrapeConfig:
        selector = data.get("namespace_selector")
        namespace_labels = data.get("namespace_labels") or {}
        return cls(
            cluster_name=str(data.get("cluster_name", "cluster")),
            k8s_version=str(data.get("k8s_version", "")),
            namespace_selector=NamespaceSelector.from_dict(selector) if selector is not None else None,
            namespace_labels={
                str(ns): {str(k): str(v) for k, v in (labels or {}).items()}
                for ns, labels in namespace_labels.items()
            },
        )

    @classmethod
    def default(cls) -> ScrapeConfig:
        return cls()
