"""
Namespace filtering for the objects a scrape reports.

Namespace labels come from a lookup callable (in practice the static
``namespace_labels`` inventory of the config file). A namespace the lookup
does not know has no labels, so any label selector rejects it.
"""

from __future__ import annotations

from typing import Callable, Mapping, Protocol

import structlog

from kubesample.config.scrape_config import NamespaceSelector

logger = structlog.get_logger()

NamespaceLabelsLookup = Callable[[str], "Mapping[str, str] | None"]


class NamespaceFilterer(Protocol):
    """Decides whether objects of a namespace are reported."""

    def is_allowed(self, namespace: str) -> bool: ...


class NamespaceFilter:
    """Label selector based `NamespaceFilterer`."""

    def __init__(
        self,
        selector: NamespaceSelector | None,
        namespace_labels: Mapping[str, Mapping[str, str]] | NamespaceLabelsLookup,
    ):
        self.selector = selector
        if callable(namespace_labels):
            self._lookup = namespace_labels
        else:
            self._lookup = namespace_labels.get

    def is_allowed(self, namespace: str) -> bool:
        if self.selector is None:
            logger.debug("namespace_allowed_without_selector", namespace=namespace)
            return True

        if self.selector.match_labels is not None:
            labels = self._lookup(namespace)
            if labels is None:
                return False
            return all(labels.get(k) == v for k, v in self.selector.match_labels.items())

        if self.selector.match_expressions is not None:
            labels = self._lookup(namespace)
            if labels is None:
                return False
            return all(expression.matches(labels) for expression in self.selector.match_expressions)

        return True


class CachedNamespaceFilter:
    """Remembers the decisions of another filterer, one per namespace."""

    def __init__(self, filterer: NamespaceFilterer):
        self.filterer = filterer
        self._cache: dict[str, bool] = {}

    def is_allowed(self, namespace: str) -> bool:
        if namespace not in self._cache:
            self._cache[namespace] = self.filterer.is_allowed(namespace)
        return self._cache[namespace]
