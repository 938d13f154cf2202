"""Tests for prometheus/grouping.py."""

import itertools

from kubesample.core.errors import GroupEmptyError
from kubesample.definition.spec import SpecGroup
from kubesample.prometheus.grouping import (
    group_entity_metrics_by_spec,
    group_metrics_by_spec,
    raw_entity_id,
)
from kubesample.prometheus.metric import GaugeValue, Metric, MetricFamily, MetricType


def _family(name, *series):
    return MetricFamily(
        name=name,
        type=MetricType.GAUGE,
        metrics=[Metric(labels=labels, value=GaugeValue(value)) for labels, value in series],
    )


class TestRawEntityID:
    """Tests for raw_entity_id."""

    def test_namespace_and_node_use_label_value(self):
        """Test cluster-scoped groups are keyed by their own label."""
        metric = Metric(labels={"namespace": "default", "node": "node-a"})
        assert raw_entity_id("namespace", metric) == "default"
        assert raw_entity_id("node", metric) == "node-a"

    def test_container(self):
        """Test containers are keyed by namespace, pod and container."""
        metric = Metric(labels={"namespace": "default", "pod": "web-1", "container": "app"})
        assert raw_entity_id("container", metric) == "default_web-1_app"

    def test_container_without_pod(self):
        """Test a container series lacking its pod label is not grouped."""
        assert raw_entity_id("container", Metric(labels={"namespace": "default", "container": "app"})) is None

    def test_namespaced_object(self):
        """Test other groups are keyed by namespace and label value."""
        metric = Metric(labels={"namespace": "default", "deployment": "web"})
        assert raw_entity_id("deployment", metric) == "default_web"

    def test_missing_group_label(self):
        """Test series without the group label are skipped."""
        assert raw_entity_id("pod", Metric(labels={"namespace": "default"})) is None


class TestGroupMetricsBySpec:
    """Tests for group_metrics_by_spec."""

    def test_groups_series_by_entity(self):
        """Test every series lands under its group and raw entity."""
        families = [
            _family(
                "kube_pod_info",
                ({"namespace": "default", "pod": "a"}, 1),
                ({"namespace": "default", "pod": "b"}, 1),
            ),
            _family("kube_namespace_created", ({"namespace": "default"}, 100)),
        ]
        specs = {"pod": SpecGroup(), "namespace": SpecGroup()}

        groups, errors = group_metrics_by_spec(specs, families)

        assert errors == []
        assert sorted(groups["pod"]) == ["default_a", "default_b"]
        assert groups["pod"]["default_a"]["kube_pod_info"].labels["pod"] == "a"
        # Pod series carry a namespace label too.
        assert set(groups["namespace"]["default"]) == {"kube_pod_info", "kube_namespace_created"}

    def test_last_write_wins(self):
        """Test series of one family collapsing on one entity keep the last one."""
        families = [
            _family(
                "kube_pod_status_phase",
                ({"namespace": "default", "pod": "a", "phase": "Pending"}, 1),
                ({"namespace": "default", "pod": "a", "phase": "Running"}, 1),
            )
        ]

        groups, _ = group_metrics_by_spec({"pod": SpecGroup()}, families)

        assert groups["pod"]["default_a"]["kube_pod_status_phase"].labels["phase"] == "Running"

    def test_sliced_metrics_are_kept_as_lists(self):
        """Test families declared as sliced keep every series in order."""
        families = [
            _family(
                "kube_resourcequota",
                ({"namespace": "ns", "resourcequota": "q", "resource": "pods", "type": "hard"}, 10),
                ({"namespace": "ns", "resourcequota": "q", "resource": "pods", "type": "used"}, 3),
            )
        ]
        specs = {
            "resourcequota": SpecGroup(split_by_label="resource", slice_metric_name="kube_resourcequota")
        }

        groups, _ = group_metrics_by_spec(specs, families)

        series = groups["resourcequota"]["ns_q"]["kube_resourcequota"]
        assert [m.labels["type"] for m in series] == ["hard", "used"]

    def test_empty_group_reports_error(self):
        """Test a group without data is absent and reported."""
        families = [_family("kube_pod_info", ({"namespace": "default", "pod": "a"}, 1))]

        groups, errors = group_metrics_by_spec({"pod": SpecGroup(), "deployment": SpecGroup()}, families)

        assert "deployment" not in groups
        assert len(errors) == 1
        assert isinstance(errors[0], GroupEmptyError)
        assert errors[0].group_label == "deployment"

    def test_deterministic(self):
        """Test the order of the families does not change the grouping."""
        families = [
            _family(
                "kube_pod_info",
                ({"namespace": "a", "pod": "x"}, 1),
                ({"namespace": "b", "pod": "y"}, 1),
            ),
            _family("kube_pod_created", ({"namespace": "a", "pod": "x"}, 100)),
            _family("kube_namespace_created", ({"namespace": "a"}, 10), ({"namespace": "b"}, 20)),
        ]
        specs = {"pod": SpecGroup(), "namespace": SpecGroup()}
        expected = group_metrics_by_spec(specs, families)

        for ordering in itertools.permutations(families):
            assert group_metrics_by_spec(specs, list(ordering)) == expected

    def test_empty_input(self):
        """Test grouping nothing reports every group as empty."""
        groups, errors = group_metrics_by_spec({"pod": SpecGroup()}, [])

        assert groups == {}
        assert [e.message for e in errors] == ["no data found for pod object"]


class TestGroupEntityMetricsBySpec:
    """Tests for group_entity_metrics_by_spec."""

    def test_everything_under_one_entity(self):
        """Test all series become lists under the given entity."""
        families = [
            _family("go_threads", ({}, 9)),
            _family("apiserver_storage_objects", ({"resource": "pods"}, 1), ({"resource": "nodes"}, 2)),
        ]

        groups, errors = group_entity_metrics_by_spec({"api-server": SpecGroup()}, families, "kube-apiserver")

        assert errors == []
        raw = groups["api-server"]["kube-apiserver"]
        assert len(raw["go_threads"]) == 1
        assert len(raw["apiserver_storage_objects"]) == 2

    def test_no_families(self):
        """Test an empty scrape reports the group as empty."""
        groups, errors = group_entity_metrics_by_spec({"scheduler": SpecGroup()}, [], "kube-scheduler")

        assert groups == {}
        assert [e.group_label for e in errors] == ["scheduler"]
