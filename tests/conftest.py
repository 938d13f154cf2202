"""Root test configuration."""

import logging

import pytest
import structlog

from kubesample.prometheus.parser import parse_metric_families
from kubesample.prometheus.query import filter_metric_families


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


KSM_TEXT = """\
# TYPE kube_namespace_created gauge
kube_namespace_created{namespace="default"} 1.5e+09
# TYPE kube_namespace_labels gauge
kube_namespace_labels{namespace="default",label_team="core"} 1
# TYPE kube_namespace_status_phase gauge
kube_namespace_status_phase{namespace="default",phase="Active"} 1
kube_namespace_status_phase{namespace="default",phase="Terminating"} 0
# TYPE kube_pod_status_phase gauge
kube_pod_status_phase{namespace="default",pod="web-1",phase="Pending"} 1
kube_pod_status_phase{namespace="default",pod="web-1",phase="Running"} 0
# TYPE kube_pod_status_scheduled gauge
kube_pod_status_scheduled{namespace="default",pod="web-1",condition="false"} 1
kube_pod_status_scheduled{namespace="default",pod="web-1",condition="true"} 0
# TYPE kube_pod_info gauge
kube_pod_info{namespace="default",pod="web-1",created_by_kind="ReplicaSet",created_by_name="web-5d4f8c9b7",host_ip="10.0.0.1",node="node-a"} 1
# TYPE kube_pod_created gauge
kube_pod_created{namespace="default",pod="web-1"} 1.6e+09
# TYPE kube_pod_labels gauge
kube_pod_labels{namespace="default",pod="web-1",label_app="web"} 1
"""

API_SERVER_TEXT = """\
# TYPE apiserver_request_total counter
apiserver_request_total{verb="GET",code="200",resource="pods"} 10
apiserver_request_total{verb="GET",code="200",resource="nodes"} 5
apiserver_request_total{verb="POST",code="201",resource="pods"} 2
# TYPE apiserver_current_inflight_requests gauge
apiserver_current_inflight_requests{request_kind="mutating"} 3
apiserver_current_inflight_requests{request_kind="readOnly"} 7
# TYPE apiserver_storage_objects gauge
apiserver_storage_objects{resource="pods"} 42
# TYPE rest_client_requests_total counter
rest_client_requests_total{code="200",host="10.0.0.1",method="GET"} 4
# TYPE process_resident_memory_bytes gauge
process_resident_memory_bytes 1e+08
# TYPE process_cpu_seconds_total counter
process_cpu_seconds_total 12.5
# TYPE go_threads gauge
go_threads 9
# TYPE go_goroutines gauge
go_goroutines 120
"""


@pytest.fixture
def ksm_text():
    """Exposition body with one namespace and one pending pod."""
    return KSM_TEXT


@pytest.fixture
def api_server_text():
    """Exposition body of an API server."""
    return API_SERVER_TEXT


@pytest.fixture
def filtered_families():
    """Parse exposition text and run it through a list of queries."""

    def build(text, queries):
        families, error = parse_metric_families(text)
        assert error is None
        return filter_metric_families(families, queries)

    return build
