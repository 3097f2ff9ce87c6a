"""Cluster detail aggregation.

One request resolves access to the cluster API server (escalating from user
to admin credentials at most once), fans out the nodes, pods and deployments
reads concurrently, waits for all of them, falls back to agent pool metadata
when nodes are unavailable, and derives the summary from what succeeded.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import structlog

from clusterscope.auth.session import Session
from clusterscope.clients.azure.aks_client import ControlPlaneClient
from clusterscope.clients.azure.client_factory import control_plane_client_for
from clusterscope.clients.kubernetes.k8s_client import (
    DEPLOYMENTS_PATH, NODES_PATH, PODS_PATH, ClusterDataFetcher
)
from clusterscope.clients.kubernetes.kubeconfig import ClusterAccess, resolve_kubeconfig
from clusterscope.config.settings import ClusterAPISettings
from clusterscope.core.models import (
    AgentPool, ClusterDetail, ClusterIdentity, CredentialTier, FetchError,
    PartialError, PodLogs, ResourceSnapshot
)
from .summary import build_summary, deployment_summaries

logger = structlog.get_logger(__name__)

ControlPlaneFactory = Callable[[Session], ControlPlaneClient]
FetcherFactory = Callable[[ClusterAccess], ClusterDataFetcher]

FAN_OUT: Tuple[Tuple[str, str], ...] = (
    ("nodes", NODES_PATH),
    ("pods", PODS_PATH),
    ("deployments", DEPLOYMENTS_PATH),
)


def _partial_error(resource: str, error: FetchError) -> PartialError:
    return PartialError(resource=resource, detail=error.model_dump(by_alias=True, exclude_none=True))


def tail(text: str, tail_lines: Optional[int]) -> List[str]:
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    if tail_lines is not None and 0 < tail_lines < len(lines):
        lines = lines[-tail_lines:]
    return lines


class AggregationEngine:
    """Builds cluster detail, pod log and event views for a session."""
    
    def __init__(self,
                 settings: Optional[ClusterAPISettings] = None,
                 control_plane_factory: Optional[ControlPlaneFactory] = None,
                 fetcher_factory: Optional[FetcherFactory] = None):
        self.settings = settings or ClusterAPISettings()
        self.control_plane_factory = control_plane_factory or control_plane_client_for
        self.fetcher_factory = fetcher_factory or self._default_fetcher
        self.logger = logger.bind(component="aggregation")
    
    def _default_fetcher(self, access: ClusterAccess) -> ClusterDataFetcher:
        return ClusterDataFetcher(
            access,
            timeout=self.settings.timeout_seconds,
            verify_tls=self.settings.verify_tls
        )
    
    async def list_clusters(self, session: Session) -> List[ClusterIdentity]:
        async with self.control_plane_factory(session) as control_plane:
            return await control_plane.list_clusters()
    
    async def _mint(self, control_plane: ControlPlaneClient, resource_group: str,
                    cluster_name: str, tier: CredentialTier) -> ClusterAccess:
        blob = await control_plane.mint_cluster_access(resource_group, cluster_name, tier)
        return resolve_kubeconfig(blob, tier)
    
    async def resolve_access(self, control_plane: ControlPlaneClient, resource_group: str,
                             cluster_name: str, use_admin: bool = False) -> ClusterAccess:
        """Mint and decode cluster access.
        
        A failed user-tier attempt is retried once at admin tier and reported as
        ``admin-fallback``. An explicit admin request never falls back.
        """
        if use_admin:
            return await self._mint(control_plane, resource_group, cluster_name, CredentialTier.ADMIN)
        
        try:
            return await self._mint(control_plane, resource_group, cluster_name, CredentialTier.USER)
        except Exception as e:
            self.logger.warning(
                "User credentials failed, escalating to admin credentials",
                resource_group=resource_group, cluster=cluster_name, error=str(e)
            )
        access = await self._mint(control_plane, resource_group, cluster_name, CredentialTier.ADMIN)
        return access.with_tier(CredentialTier.ADMIN_FALLBACK)
    
    async def _fan_out(self, fetcher: ClusterDataFetcher) -> Dict[str, ResourceSnapshot]:
        results = await asyncio.gather(
            *(fetcher.fetch_resource(resource, path) for resource, path in FAN_OUT),
            return_exceptions=True
        )
        snapshots = {}
        for (resource, path), result in zip(FAN_OUT, results):
            if isinstance(result, BaseException):
                result = ResourceSnapshot(
                    resource=resource,
                    error=FetchError(path=path, message=str(result) or result.__class__.__name__)
                )
            snapshots[resource] = result
        return snapshots
    
    async def _agent_pool_fallback(self, control_plane: ControlPlaneClient, resource_group: str,
                                   cluster_name: str, errors: List[PartialError]) -> List[AgentPool]:
        self.logger.info("Node data unavailable, reading agent pools", cluster=cluster_name)
        try:
            return await control_plane.list_agent_pools(resource_group, cluster_name)
        except Exception as e:
            self.logger.warning("Agent pool fallback failed", cluster=cluster_name, error=str(e))
            errors.append(PartialError(resource="agentPools", detail={"message": str(e)}))
            return []
    
    async def cluster_detail(self, session: Session, resource_group: str,
                             cluster_name: str, use_admin: bool = False) -> ClusterDetail:
        """Aggregate nodes, pods and deployments of one cluster.
        
        Per-resource failures land in ``errors``; only access resolution
        failures propagate.
        """
        log = self.logger.bind(resource_group=resource_group, cluster=cluster_name)
        
        async with self.control_plane_factory(session) as control_plane:
            access = await self.resolve_access(control_plane, resource_group, cluster_name, use_admin)
            
            async with self.fetcher_factory(access) as fetcher:
                snapshots = await self._fan_out(fetcher)
            
            errors = [
                _partial_error(resource, snapshots[resource].error)
                for resource, _ in FAN_OUT
                if not snapshots[resource].ok
            ]
            
            agent_pools: List[AgentPool] = []
            if not snapshots["nodes"].ok:
                agent_pools = await self._agent_pool_fallback(
                    control_plane, resource_group, cluster_name, errors
                )
        
        nodes, pods, deployments = snapshots["nodes"], snapshots["pods"], snapshots["deployments"]
        summary = build_summary(nodes, pods, deployments, agent_pools)
        
        log.info(
            "Cluster detail aggregated",
            credential_tier=CredentialTier(access.tier).value,
            nodes=summary.node_count,
            ready_nodes=summary.ready_nodes,
            deployments=summary.deployments,
            errors=len(errors)
        )
        
        return ClusterDetail(
            server=access.server,
            summary=summary,
            nodes=nodes.payload,
            pods=pods.payload,
            deployments=deployments.payload,
            deployment_summaries=deployment_summaries(deployments.items),
            errors=errors,
            used_credential_type=access.tier
        )
    
    async def pod_logs(self, session: Session, resource_group: str, cluster_name: str,
                       namespace: str, pod: str, container: Optional[str] = None,
                       tail_lines: Optional[int] = None,
                       use_admin: bool = False) -> Union[PodLogs, FetchError]:
        """Snapshot of the last ``tail_lines`` log lines of a pod."""
        tail_lines = tail_lines or self.settings.default_tail_lines
        
        async with self.control_plane_factory(session) as control_plane:
            access = await self.resolve_access(control_plane, resource_group, cluster_name, use_admin)
        
        async with self.fetcher_factory(access) as fetcher:
            snapshot = await fetcher.fetch_pod_log(namespace, pod, container, tail_lines)
        
        if not snapshot.ok:
            return snapshot.error
        return PodLogs(
            namespace=namespace,
            pod=pod,
            container=container,
            lines=tail(snapshot.payload, tail_lines)
        )
    
    async def events(self, session: Session, resource_group: str, cluster_name: str,
                     use_admin: bool = False) -> Union[Any, FetchError]:
        """Raw cluster event list, or the FetchError that prevented reading it."""
        async with self.control_plane_factory(session) as control_plane:
            access = await self.resolve_access(control_plane, resource_group, cluster_name, use_admin)
        
        async with self.fetcher_factory(access) as fetcher:
            snapshot = await fetcher.fetch_events()
        return snapshot.payload if snapshot.ok else snapshot.error
