"""Crash classification of pods from their container statuses."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

from clusterscope.core.utils import safe_get

CRASHED = "crashed"


@dataclass(frozen=True)
class CrashRule:
    """Matches when ``state.<state>.reason`` contains any of ``reasons`` (case-insensitive)."""
    
    state: str
    reasons: Tuple[str, ...]
    tag: str = CRASHED
    
    def match(self, container_status: Dict[str, Any]) -> Optional[str]:
        reason = safe_get(container_status, f"state.{self.state}.reason", "")
        if not isinstance(reason, str) or not reason:
            return None
        lowered = reason.lower()
        if any(needle.lower() in lowered for needle in self.reasons):
            return reason
        return None


CRASH_RULES: Tuple[CrashRule, ...] = (
    CrashRule("waiting", ("CrashLoopBackOff", "Error", "ContainerCannotRun", "OOMKilled")),
    CrashRule("terminated", ("Error", "OOMKilled", "ContainerCannotRun")),
)


def classify_container(container_status: Dict[str, Any],
                       rules: Iterable[CrashRule] = CRASH_RULES) -> Optional[Tuple[str, str]]:
    """Return ``(tag, reason)`` of the first rule matching the container status."""
    for rule in rules:
        reason = rule.match(container_status)
        if reason:
            return rule.tag, reason
    return None


def crash_reason(pod: Dict[str, Any], rules: Iterable[CrashRule] = CRASH_RULES) -> Optional[str]:
    """Reason string of the first crashed container in the pod, if any."""
    rules = tuple(rules)
    for container_status in safe_get(pod, "status.containerStatuses", []) or []:
        classified = classify_container(container_status, rules)
        if classified and classified[0] == CRASHED:
            return classified[1]
    return None


def is_crashed(pod: Dict[str, Any]) -> bool:
    return crash_reason(pod) is not None


def pod_phase(pod: Dict[str, Any]) -> str:
    return safe_get(pod, "status.phase") or "Unknown"


def pod_weight(pod: Dict[str, Any]) -> int:
    """Display priority: crashed or failed first, then pending, then healthy, then the rest."""
    phase = pod_phase(pod)
    if is_crashed(pod) or phase == "Failed":
        return 0
    if phase == "Pending":
        return 1
    if phase in ("Running", "Succeeded"):
        return 2
    return 3
