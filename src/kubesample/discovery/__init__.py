"""
Namespace discovery and filtering.
"""

from kubesample.discovery.namespace_filter import (
    CachedNamespaceFilter,
    NamespaceFilter,
    NamespaceFilterer,
)

__all__ = [
    "CachedNamespaceFilter",
    "NamespaceFilter",
    "NamespaceFilterer",
]
