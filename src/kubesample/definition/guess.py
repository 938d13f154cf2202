"""Metric set event type guessers."""

from __future__ import annotations

from kubesample.definition.spec import MetricSetTypeGuesser


def k8s_metric_set_type_guesser(group_label: str) -> str:
    """Compose the event type from the group label: "api-server" -> "K8sApiServerSample"."""
    sample_name = "".join(part[:1].upper() + part[1:] for part in group_label.split("-"))
    return f"K8s{sample_name}Sample"


def metric_set_type_guesser_with_custom_group(group: str) -> MetricSetTypeGuesser:
    """Guess the event type from a fixed group instead of the group label."""

    def guess(_group_label: str) -> str:
        return k8s_metric_set_type_guesser(group)

    return guess
