"""
Compiled-in spec tables and queries, one pair per data source.
"""

from kubesample.specs.controlplane import (
    API_SERVER_QUERIES,
    API_SERVER_SPECS,
    CONTROLLER_MANAGER_QUERIES,
    CONTROLLER_MANAGER_SPECS,
    ETCD_QUERIES,
    ETCD_SPECS,
    SCHEDULER_QUERIES,
    SCHEDULER_SPECS,
)
from kubesample.specs.ksm import KSM_QUERIES, KSM_SPECS

__all__ = [
    "API_SERVER_QUERIES",
    "API_SERVER_SPECS",
    "CONTROLLER_MANAGER_QUERIES",
    "CONTROLLER_MANAGER_SPECS",
    "ETCD_QUERIES",
    "ETCD_SPECS",
    "KSM_QUERIES",
    "KSM_SPECS",
    "SCHEDULER_QUERIES",
    "SCHEDULER_SPECS",
]
