"""Pure derivation of the cluster summary from resource snapshots."""

from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Tuple

from clusterscope.core.models import (
    AgentPool, ClusterSummary, CrashedPod, DeploymentSummary, PodStatus, ResourceSnapshot
)
from clusterscope.core.utils import safe_get
from .crash_rules import crash_reason, pod_phase, pod_weight


def _name(item: Dict[str, Any]) -> str:
    return safe_get(item, "metadata.name", "") or ""


def by_name(items: Iterable[Any], key=None) -> List[Any]:
    """Stable sort by resource name ascending."""
    return sorted(items, key=key or _name)


def is_node_ready(node: Dict[str, Any]) -> bool:
    conditions = safe_get(node, "status.conditions", []) or []
    return any(
        condition.get("type") == "Ready" and condition.get("status") == "True"
        for condition in conditions
        if isinstance(condition, dict)
    )


def node_counts(nodes: Optional[ResourceSnapshot]) -> Tuple[int, int]:
    """``(node_count, ready_count)``; an errored or missing snapshot counts as zero."""
    items = nodes.items if nodes is not None else []
    return len(items), sum(1 for node in items if is_node_ready(node))


def pod_phase_histogram(pods: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    counts = Counter(pod_phase(pod) for pod in pods)
    return {phase: counts[phase] for phase in sorted(counts)}


def crashed_pods(pods: Iterable[Dict[str, Any]]) -> List[CrashedPod]:
    crashed = []
    for pod in by_name(pods):
        reason = crash_reason(pod)
        if reason:
            crashed.append(CrashedPod(
                namespace=safe_get(pod, "metadata.namespace"),
                name=safe_get(pod, "metadata.name"),
                phase=pod_phase(pod),
                reason=reason
            ))
    return crashed


def pod_statuses(pods: Iterable[Dict[str, Any]]) -> List[PodStatus]:
    """Per-pod display rows, most urgent first (weight, then name)."""
    statuses = [
        PodStatus(
            namespace=safe_get(pod, "metadata.namespace"),
            name=safe_get(pod, "metadata.name"),
            phase=pod_phase(pod),
            crash_reason=crash_reason(pod),
            weight=pod_weight(pod)
        )
        for pod in by_name(pods)
    ]
    return sorted(statuses, key=lambda status: status.weight)


def pod_namespaces(pods: Iterable[Dict[str, Any]]) -> List[str]:
    return sorted({ns for ns in (safe_get(pod, "metadata.namespace") for pod in pods) if ns})


def deployment_summaries(deployments: Iterable[Dict[str, Any]]) -> List[DeploymentSummary]:
    return [
        DeploymentSummary(
            name=safe_get(deployment, "metadata.name"),
            namespace=safe_get(deployment, "metadata.namespace"),
            desired=safe_get(deployment, "spec.replicas", 0),
            available=safe_get(deployment, "status.availableReplicas", 0)
        )
        for deployment in by_name(deployments)
    ]


def build_summary(nodes: Optional[ResourceSnapshot],
                  pods: Optional[ResourceSnapshot],
                  deployments: Optional[ResourceSnapshot],
                  agent_pools: Iterable[AgentPool] = ()) -> ClusterSummary:
    """Summarise whatever snapshots succeeded. Errors are reported by the caller."""
    pod_items = pods.items if pods is not None else []
    deployment_items = deployments.items if deployments is not None else []
    node_count, ready_nodes = node_counts(nodes)
    
    return ClusterSummary(
        node_count=node_count,
        ready_nodes=ready_nodes,
        pod_phases=pod_phase_histogram(pod_items),
        deployments=len(deployment_items),
        agent_pools=by_name(agent_pools, key=lambda pool: pool.name),
        crashed_pods=crashed_pods(pod_items),
        pods=pod_statuses(pod_items),
        namespaces=pod_namespaces(pod_items)
    )
