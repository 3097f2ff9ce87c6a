"""Control-plane client for Azure Kubernetes Service."""

import asyncio
from typing import Any, Dict, List, Optional
import structlog
from azure.mgmt.containerservice import ContainerServiceClient
from azure.core.exceptions import AzureError

from clusterscope.auth.session import Session
from clusterscope.core.base_client import BaseClient
from clusterscope.core.exceptions import UnresolvableAccessError
from clusterscope.core.models import AgentPool, ClusterIdentity, CredentialTier
from clusterscope.core.utils import parse_resource_id
from .credentials import service_principal_credential
from .errors import translate_azure_error

logger = structlog.get_logger(__name__)


class ControlPlaneClient(BaseClient):
    """Client for AKS management-plane operations.
    
    The Azure SDK is synchronous; every call runs in a worker thread and
    drains the paged iterator there, so callers always get a complete list.
    """
    
    def __init__(self, session: Session, config: Optional[Dict[str, Any]] = None, credential=None):
        super().__init__(config, "ControlPlaneClient")
        self.session = session
        self.subscription_id = session.subscription_id
        self.credential = credential
        self._client = None
    
    async def connect(self) -> None:
        """Connect to AKS service."""
        if self.credential is None:
            self.credential = service_principal_credential(self.session)
        self._client = ContainerServiceClient(
            credential=self.credential,
            subscription_id=self.subscription_id
        )
        self._connected = True
        self.logger.debug("AKS client connected", subscription_id=self.subscription_id)
    
    async def disconnect(self) -> None:
        """Disconnect from AKS service."""
        if self._client:
            self._client.close()
            self._client = None
        self._connected = False
    
    async def _call(self, operation: str, func, *args):
        await self.ensure_connected()
        try:
            return await asyncio.to_thread(func, *args)
        except AzureError as e:
            raise translate_azure_error(e, operation) from e
    
    async def list_clusters(self) -> List[ClusterIdentity]:
        """List every managed cluster in the subscription."""
        clusters = await self._call(
            "list_clusters", lambda: list(self._client.managed_clusters.list())
        )
        identities = [self._extract_cluster_identity(cluster) for cluster in clusters]
        self.logger.info(f"Discovered {len(identities)} AKS clusters")
        return identities
    
    async def list_agent_pools(self, resource_group: str, cluster_name: str) -> List[AgentPool]:
        """List the agent pools of a cluster."""
        pools = await self._call(
            "list_agent_pools",
            lambda: list(self._client.agent_pools.list(resource_group, cluster_name))
        )
        return [
            AgentPool(
                name=pool.name,
                count=pool.count,
                os_type=pool.os_type,
                provisioning_state=pool.provisioning_state
            )
            for pool in pools
        ]
    
    async def mint_cluster_access(self, resource_group: str, cluster_name: str,
                                  tier: CredentialTier = CredentialTier.USER) -> bytes:
        """Request a kubeconfig for the cluster at the given credential tier."""
        if CredentialTier(tier) == CredentialTier.USER:
            operation = "list_cluster_user_credentials"
            func = self._client_method("list_cluster_user_credentials")
        else:
            operation = "list_cluster_admin_credentials"
            func = self._client_method("list_cluster_admin_credentials")
        
        credentials = await self._call(operation, func, resource_group, cluster_name)
        kubeconfigs = getattr(credentials, "kubeconfigs", None) or []
        if not kubeconfigs or not kubeconfigs[0].value:
            raise UnresolvableAccessError(
                f"No kubeconfig returned for {resource_group}/{cluster_name}",
                {"tier": CredentialTier(tier).value}
            )
        return kubeconfigs[0].value
    
    def _client_method(self, name: str):
        def invoke(*args):
            return getattr(self._client.managed_clusters, name)(*args)
        return invoke
    
    @staticmethod
    def _extract_cluster_identity(cluster) -> ClusterIdentity:
        return ClusterIdentity(
            name=cluster.name,
            resource_group=parse_resource_id(cluster.id)['resource_group'],
            location=cluster.location,
            provisioning_state=cluster.provisioning_state,
            kubernetes_version=cluster.kubernetes_version,
            node_resource_group=cluster.node_resource_group,
            fqdn=cluster.fqdn
        )
