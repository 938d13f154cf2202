"""
Control plane component spec tables and queries.

Everything scraped from one component endpoint belongs to a single entity,
so these tables are grouped with `group_entity_metrics_by_spec` and their
raw values are series lists.
"""

from __future__ import annotations

from kubesample.definition.fetch import fetch_if_missing, to_utilization
from kubesample.definition.spec import Spec, SpecGroup, SpecGroups
from kubesample.integration.metric import SourceType
from kubesample.prometheus.fetch import (
    from_summary,
    from_value_with_labels_filter,
    from_value_with_overridden_name,
    ignore_labels_filter,
    include_only_labels_filter,
    include_only_when_label_match_filter,
)
from kubesample.prometheus.query import Query
from kubesample.prometheus.resolvers import ControlPlaneComponentTypeGenerator, RawEntityIDGenerator

GAUGE = SourceType.GAUGE
RATE = SourceType.RATE
DELTA = SourceType.DELTA


def _process_specs() -> list[Spec]:
    return [
        Spec(
            "processResidentMemoryBytes",
            from_value_with_overridden_name("process_resident_memory_bytes", "processResidentMemoryBytes"),
            GAUGE,
        ),
        Spec(
            "processCpuSecondsDelta",
            from_value_with_overridden_name("process_cpu_seconds_total", "processCpuSecondsDelta"),
            DELTA,
        ),
        Spec("goThreads", from_value_with_overridden_name("go_threads", "goThreads"), GAUGE),
        Spec("goGoroutines", from_value_with_overridden_name("go_goroutines", "goGoroutines"), GAUGE),
    ]


def _process_queries() -> list[Query]:
    return [
        Query("process_resident_memory_bytes"),
        Query("process_cpu_seconds_total"),
        Query("go_threads"),
        Query("go_goroutines"),
    ]


API_SERVER_SPECS: SpecGroups = {
    "api-server": SpecGroup(
        id_generator=RawEntityIDGenerator(),
        type_generator=ControlPlaneComponentTypeGenerator(),
        specs=[
            Spec(
                "apiserverRequestsDelta",
                from_value_with_overridden_name(
                    "apiserver_request_total",
                    "apiserverRequestsDelta",
                    include_only_labels_filter("verb", "code"),
                ),
                DELTA,
            ),
            Spec(
                "apiserverRequestsRate",
                from_value_with_overridden_name(
                    "apiserver_request_total",
                    "apiserverRequestsRate",
                    include_only_labels_filter("verb", "code"),
                ),
                RATE,
            ),
            Spec(
                "apiserverCurrentInflightRequestsMutating",
                from_value_with_labels_filter(
                    "apiserver_current_inflight_requests",
                    "apiserverCurrentInflightRequestsMutating",
                    include_only_when_label_match_filter({"request_kind": "mutating"}),
                ),
                GAUGE,
            ),
            Spec(
                "apiserverCurrentInflightRequestsReadOnly",
                from_value_with_labels_filter(
                    "apiserver_current_inflight_requests",
                    "apiserverCurrentInflightRequestsReadOnly",
                    include_only_when_label_match_filter({"request_kind": "readOnly"}),
                ),
                GAUGE,
            ),
            Spec(
                "restClientRequestsDelta",
                from_value_with_overridden_name(
                    "rest_client_requests_total",
                    "restClientRequestsDelta",
                    include_only_labels_filter("method", "code"),
                ),
                DELTA,
            ),
            Spec(
                "restClientRequestsRate",
                from_value_with_overridden_name(
                    "rest_client_requests_total",
                    "restClientRequestsRate",
                    include_only_labels_filter("method", "code"),
                ),
                RATE,
            ),
            # etcd_object_counts was removed in Kubernetes 1.23
            Spec(
                "etcdObjectCounts",
                from_value_with_overridden_name("etcd_object_counts", "etcdObjectCounts"),
                GAUGE,
                optional=True,
            ),
            # apiserver_storage_objects replaces etcd_object_counts since 1.21
            Spec(
                "apiserverStorageObjects",
                fetch_if_missing(
                    from_value_with_overridden_name("apiserver_storage_objects", "apiserverStorageObjects"),
                    from_value_with_overridden_name("etcd_object_counts", "etcdObjectCounts"),
                ),
                GAUGE,
            ),
            *_process_specs(),
        ],
    ),
}

API_SERVER_QUERIES: list[Query] = [
    Query("apiserver_request_total"),
    Query("rest_client_requests_total"),
    Query("etcd_object_counts"),
    Query("apiserver_storage_objects"),
    Query("apiserver_current_inflight_requests"),
    *_process_queries(),
]

SCHEDULER_SPECS: SpecGroups = {
    "scheduler": SpecGroup(
        id_generator=RawEntityIDGenerator(),
        type_generator=ControlPlaneComponentTypeGenerator(),
        specs=[
            Spec(
                "leaderElectionMasterStatus",
                from_value_with_overridden_name(
                    "leader_election_master_status",
                    "leaderElectionMasterStatus",
                    ignore_labels_filter("name"),
                ),
                GAUGE,
            ),
            Spec(
                "restClientRequestsDelta",
                from_value_with_overridden_name("rest_client_requests_total", "restClientRequestsDelta"),
                DELTA,
            ),
            Spec(
                "restClientRequestsRate",
                from_value_with_overridden_name("rest_client_requests_total", "restClientRequestsRate"),
                RATE,
            ),
            Spec(
                "schedulerScheduleAttemptsDelta",
                from_value_with_overridden_name(
                    "scheduler_schedule_attempts_total", "schedulerScheduleAttemptsDelta"
                ),
                DELTA,
            ),
            Spec(
                "schedulerSchedulingDurationSeconds",
                from_summary("scheduler_scheduling_duration_seconds"),
                GAUGE,
                optional=True,
            ),
            Spec(
                "schedulerPendingPodsActive",
                from_value_with_labels_filter(
                    "scheduler_pending_pods",
                    "schedulerPendingPodsActive",
                    include_only_when_label_match_filter({"queue": "active"}),
                ),
                GAUGE,
            ),
            Spec(
                "schedulerPendingPodsBackoff",
                from_value_with_labels_filter(
                    "scheduler_pending_pods",
                    "schedulerPendingPodsBackoff",
                    include_only_when_label_match_filter({"queue": "backoff"}),
                ),
                GAUGE,
            ),
            Spec(
                "schedulerPendingPodsUnschedulable",
                from_value_with_labels_filter(
                    "scheduler_pending_pods",
                    "schedulerPendingPodsUnschedulable",
                    include_only_when_label_match_filter({"queue": "unschedulable"}),
                ),
                GAUGE,
            ),
            *_process_specs(),
        ],
    ),
}

SCHEDULER_QUERIES: list[Query] = [
    Query("leader_election_master_status"),
    Query("rest_client_requests_total"),
    Query("scheduler_schedule_attempts_total"),
    Query("scheduler_scheduling_duration_seconds"),
    Query("scheduler_pending_pods"),
    *_process_queries(),
]

CONTROLLER_MANAGER_SPECS: SpecGroups = {
    "controller-manager": SpecGroup(
        id_generator=RawEntityIDGenerator(),
        type_generator=ControlPlaneComponentTypeGenerator(),
        specs=[
            Spec(
                "workqueueAddsDelta",
                from_value_with_overridden_name("workqueue_adds_total", "workqueueAddsDelta"),
                DELTA,
                optional=True,
            ),
            Spec(
                "workqueueDepth",
                from_value_with_overridden_name("workqueue_depth", "workqueueDepth"),
                GAUGE,
                optional=True,
            ),
            Spec(
                "workqueueRetriesDelta",
                from_value_with_overridden_name("workqueue_retries_total", "workqueueRetriesDelta"),
                DELTA,
                optional=True,
            ),
            Spec(
                "leaderElectionMasterStatus",
                from_value_with_overridden_name(
                    "leader_election_master_status",
                    "leaderElectionMasterStatus",
                    ignore_labels_filter("name"),
                ),
                GAUGE,
            ),
            *_process_specs(),
            # Evictions only show up once a node was lost.
            Spec(
                "nodeCollectorEvictionsDelta",
                from_value_with_overridden_name(
                    "node_collector_evictions_total",
                    "nodeCollectorEvictionsDelta",
                    ignore_labels_filter("zone"),
                ),
                DELTA,
                optional=True,
            ),
        ],
    ),
}

CONTROLLER_MANAGER_QUERIES: list[Query] = [
    Query("workqueue_adds_total"),
    Query("workqueue_depth"),
    Query("workqueue_retries_total"),
    Query("leader_election_master_status"),
    Query("node_collector_evictions_total"),
    *_process_queries(),
]

_process_open_fds = from_value_with_overridden_name("process_open_fds", "processOpenFds")
_process_max_fds = from_value_with_overridden_name("process_max_fds", "processMaxFds")


def _etcd_counter(metric_name: str, name: str, source_type: SourceType) -> Spec:
    return Spec(name, from_value_with_overridden_name(metric_name, name), source_type)


ETCD_SPECS: SpecGroups = {
    "etcd": SpecGroup(
        id_generator=RawEntityIDGenerator(),
        type_generator=ControlPlaneComponentTypeGenerator(),
        specs=[
            Spec(
                "etcdServerHasLeader",
                from_value_with_overridden_name("etcd_server_has_leader", "etcdServerHasLeader"),
                GAUGE,
            ),
            _etcd_counter("etcd_server_leader_changes_seen_total", "etcdServerLeaderChangesSeenDelta", DELTA),
            Spec(
                "etcdMvccDbTotalSizeInBytes",
                from_value_with_overridden_name("etcd_mvcc_db_total_size_in_bytes", "etcdMvccDbTotalSizeInBytes"),
                GAUGE,
            ),
            _etcd_counter("etcd_server_proposals_committed_total", "etcdServerProposalsCommittedRate", RATE),
            _etcd_counter("etcd_server_proposals_committed_total", "etcdServerProposalsCommittedDelta", DELTA),
            _etcd_counter("etcd_server_proposals_applied_total", "etcdServerProposalsAppliedRate", RATE),
            _etcd_counter("etcd_server_proposals_applied_total", "etcdServerProposalsAppliedDelta", DELTA),
            Spec(
                "etcdServerProposalsPending",
                from_value_with_overridden_name("etcd_server_proposals_pending", "etcdServerProposalsPending"),
                GAUGE,
            ),
            _etcd_counter("etcd_server_proposals_failed_total", "etcdServerProposalsFailedRate", RATE),
            _etcd_counter("etcd_server_proposals_failed_total", "etcdServerProposalsFailedDelta", DELTA),
            Spec("processOpenFds", _process_open_fds, GAUGE),
            Spec("processMaxFds", _process_max_fds, GAUGE),
            _etcd_counter(
                "etcd_network_client_grpc_received_bytes_total", "etcdNetworkClientGrpcReceivedBytesRate", RATE
            ),
            _etcd_counter("etcd_network_client_grpc_sent_bytes_total", "etcdNetworkClientGrpcSentBytesRate", RATE),
            *_process_specs(),
            Spec("processFdsUtilization", to_utilization(_process_open_fds, _process_max_fds), GAUGE),
        ],
    ),
}

ETCD_QUERIES: list[Query] = [
    Query("etcd_server_has_leader"),
    Query("etcd_server_leader_changes_seen_total"),
    Query("etcd_mvcc_db_total_size_in_bytes"),
    Query("etcd_server_proposals_committed_total"),
    Query("etcd_server_proposals_applied_total"),
    Query("etcd_server_proposals_pending"),
    Query("etcd_server_proposals_failed_total"),
    Query("process_open_fds"),
    Query("process_max_fds"),
    Query("etcd_network_client_grpc_received_bytes_total"),
    Query("etcd_network_client_grpc_sent_bytes_total"),
    *_process_queries(),
]
