"""Builders and doubles shared by the ClusterScope tests."""

from typing import Any, Callable, Dict, List, Optional

import httpx
import yaml

from clusterscope.auth.session import Session
from clusterscope.clients.kubernetes.k8s_client import ClusterDataFetcher
from clusterscope.core.models import AgentPool, ClusterIdentity, CredentialTier


def kubeconfig(server: str = "https://aks-user.example:443",
               token: Optional[str] = "user-token",
               user: Optional[Dict[str, Any]] = None) -> bytes:
    """A kubeconfig as returned by list_cluster_*_credentials."""
    if user is None:
        user = {"token": token}
    document = {
        "apiVersion": "v1",
        "kind": "Config",
        "clusters": [{"name": "aks", "cluster": {"server": server, "certificate-authority-data": "Zm9v"}}],
        "users": [{"name": "clusterUser_rg_aks", "user": user}],
        "contexts": [{"name": "aks", "context": {"cluster": "aks", "user": "clusterUser_rg_aks"}}],
        "current-context": "aks",
    }
    return yaml.safe_dump(document).encode("utf-8")


USER_BLOB = kubeconfig("https://aks-user.example:443", "user-token")
ADMIN_BLOB = kubeconfig("https://aks-admin.example:443", "admin-token")


class FakeControlPlane:
    """Control-plane double: per-tier blobs or failures, scripted agent pools."""
    
    def __init__(self,
                 blobs: Optional[Dict[CredentialTier, bytes]] = None,
                 failures: Optional[Dict[CredentialTier, Exception]] = None,
                 agent_pools: Optional[List[AgentPool]] = None,
                 agent_pool_error: Optional[Exception] = None,
                 clusters: Optional[List[ClusterIdentity]] = None,
                 list_error: Optional[Exception] = None):
        self.blobs = blobs or {CredentialTier.USER: USER_BLOB, CredentialTier.ADMIN: ADMIN_BLOB}
        self.failures = failures or {}
        self.agent_pools = agent_pools or []
        self.agent_pool_error = agent_pool_error
        self.clusters = clusters or []
        self.list_error = list_error
        self.mint_calls: List[CredentialTier] = []
        self.agent_pool_calls = 0
        self.sessions: List[Session] = []
    
    def __call__(self, session: Session) -> "FakeControlPlane":
        self.sessions.append(session)
        return self
    
    async def __aenter__(self):
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None
    
    async def list_clusters(self) -> List[ClusterIdentity]:
        if self.list_error:
            raise self.list_error
        return list(self.clusters)
    
    async def list_agent_pools(self, resource_group: str, cluster_name: str) -> List[AgentPool]:
        self.agent_pool_calls += 1
        if self.agent_pool_error:
            raise self.agent_pool_error
        return list(self.agent_pools)
    
    async def mint_cluster_access(self, resource_group: str, cluster_name: str,
                                  tier: CredentialTier = CredentialTier.USER) -> bytes:
        tier = CredentialTier(tier)
        self.mint_calls.append(tier)
        if tier in self.failures:
            raise self.failures[tier]
        return self.blobs[tier]


def node(name: str, ready: Optional[str] = "True") -> Dict[str, Any]:
    conditions = [{"type": "MemoryPressure", "status": "False"}]
    if ready is not None:
        conditions.append({"type": "Ready", "status": ready})
    return {"metadata": {"name": name}, "status": {"conditions": conditions}}


def pod(name: str, namespace: str = "default", phase: Optional[str] = "Running",
        waiting: Optional[str] = None, terminated: Optional[str] = None) -> Dict[str, Any]:
    state: Dict[str, Any] = {}
    if waiting:
        state["waiting"] = {"reason": waiting}
    if terminated:
        state["terminated"] = {"reason": terminated}
    status: Dict[str, Any] = {"containerStatuses": [{"name": "app", "state": state}]}
    if phase is not None:
        status["phase"] = phase
    return {"metadata": {"name": name, "namespace": namespace}, "status": status}


def deployment(name: str, namespace: str = "default",
               replicas: Optional[int] = 2, available: Optional[int] = 2) -> Dict[str, Any]:
    spec = {} if replicas is None else {"replicas": replicas}
    status = {} if available is None else {"availableReplicas": available}
    return {"metadata": {"name": name, "namespace": namespace}, "spec": spec, "status": status}


NODES = {"kind": "NodeList", "items": [node("aks-nodepool1-0"), node("aks-nodepool1-1", ready="False")]}
PODS = {"kind": "PodList", "items": [
    pod("web-1", "shop"),
    pod("web-2", "shop", waiting="CrashLoopBackOff"),
    pod("job-1", "batch", phase="Succeeded"),
    pod("api-1", "shop", phase="Pending"),
]}
DEPLOYMENTS = {"kind": "DeploymentList", "items": [
    deployment("web", "shop", 3, 2),
    deployment("api", "shop", 1, None),
]}


def cluster_api(routes: Optional[Dict[str, Any]] = None,
                seen: Optional[List[httpx.Request]] = None) -> httpx.MockTransport:
    """Serve ``routes[path]``: a dict (JSON 200), an httpx.Response, or an exception to raise."""
    if routes is None:
        routes = {
            "/api/v1/nodes": NODES,
            "/api/v1/pods": PODS,
            "/apis/apps/v1/deployments": DEPLOYMENTS,
        }
    
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"kind": "Status", "reason": "NotFound"})
        if isinstance(route, Exception):
            raise route
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)
    
    return httpx.MockTransport(handler)


def fetcher_factory(transport: httpx.MockTransport) -> Callable:
    def factory(access):
        return ClusterDataFetcher(access, transport=transport)
    return factory


