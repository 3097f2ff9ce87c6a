"""Tests for summary derivation."""

from clusterscope.aggregation.summary import (
    build_summary, deployment_summaries, is_node_ready, pod_phase_histogram, pod_statuses
)
from clusterscope.core.models import AgentPool, FetchError, ResourceSnapshot
from helpers import DEPLOYMENTS, NODES, PODS, deployment, node, pod


def ok(resource, payload):
    return ResourceSnapshot(resource=resource, payload=payload)


def failed(resource, path):
    return ResourceSnapshot(resource=resource, error=FetchError(path=path, status=403))


def test_node_readiness():
    assert is_node_ready(node("a", ready="True"))
    assert not is_node_ready(node("a", ready="False"))
    assert not is_node_ready(node("a", ready="Unknown"))
    assert not is_node_ready(node("a", ready=None))
    assert not is_node_ready({"metadata": {"name": "bare"}})


def test_pod_phase_histogram_defaults_to_unknown():
    histogram = pod_phase_histogram([pod("a"), pod("b"), pod("c", phase=None), pod("d", phase="Failed")])
    
    assert histogram == {"Failed": 1, "Running": 2, "Unknown": 1}


def test_deployment_summaries_default_to_zero_and_sort_by_name():
    summaries = deployment_summaries([
        deployment("web", "shop", 3, 2),
        deployment("api", "shop", None, None),
    ])
    
    assert [(s.name, s.desired, s.available) for s in summaries] == [("api", 0, 0), ("web", 3, 2)]


def test_deployment_sort_is_stable_for_equal_names():
    summaries = deployment_summaries([deployment("web", "b"), deployment("web", "a")])
    
    assert [s.namespace for s in summaries] == ["b", "a"]


def test_build_summary_from_all_snapshots():
    summary = build_summary(ok("nodes", NODES), ok("pods", PODS), ok("deployments", DEPLOYMENTS))
    
    assert summary.node_count == 2
    assert summary.ready_nodes == 1
    assert summary.pod_phases == {"Pending": 1, "Running": 2, "Succeeded": 1}
    assert summary.deployments == 2
    assert [p.name for p in summary.crashed_pods] == ["web-2"]
    assert summary.crashed_pods[0].phase == "Running"
    assert summary.namespaces == ["batch", "shop"]


def test_errored_snapshots_count_as_zero():
    summary = build_summary(failed("nodes", "/api/v1/nodes"), ok("pods", PODS),
                            failed("deployments", "/apis/apps/v1/deployments"))
    
    assert (summary.node_count, summary.ready_nodes, summary.deployments) == (0, 0, 0)
    assert sum(summary.pod_phases.values()) == 4


def test_agent_pools_sorted_by_name():
    summary = build_summary(None, None, None, [
        AgentPool(name="user", count=3),
        AgentPool(name="system", count=1),
    ])
    
    assert [p.name for p in summary.agent_pools] == ["system", "user"]


def test_pod_statuses_order_most_urgent_first():
    statuses = pod_statuses(PODS["items"])

    assert [(s.name, s.weight) for s in statuses] == [
        ("web-2", 0), ("api-1", 1), ("job-1", 2), ("web-1", 2)
    ]
    assert statuses[0].crash_reason == "CrashLoopBackOff"
