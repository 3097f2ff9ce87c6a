# src/clusterscope/clients/kubernetes/k8s_client.py
"""Direct HTTPS reads against a cluster's own API server."""

from typing import Any, Dict, Optional
from urllib.parse import quote
import httpx
import structlog

from clusterscope.core.base_client import BaseClient
from clusterscope.core.models import FetchError, ResourceSnapshot
from .kubeconfig import ClusterAccess

logger = structlog.get_logger(__name__)

NODES_PATH = "/api/v1/nodes"
PODS_PATH = "/api/v1/pods"
DEPLOYMENTS_PATH = "/apis/apps/v1/deployments"
EVENTS_PATH = "/api/v1/events"


def pod_log_path(namespace: str, pod: str) -> str:
    return f"/api/v1/namespaces/{quote(namespace, safe='')}/pods/{quote(pod, safe='')}/log"


class ClusterDataFetcher(BaseClient):
    """Bearer-token GETs against the cluster API server.
    
    Certificate verification is off by default: the API server certificate of
    a managed cluster is not checked. Every fetch returns a ResourceSnapshot;
    transport failures and non-2xx answers come back as a FetchError inside it
    and are never raised.
    """
    
    def __init__(self,
                 access: ClusterAccess,
                 timeout: float = 10.0,
                 verify_tls: bool = False,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__({"timeout": timeout, "verify_tls": verify_tls}, "ClusterDataFetcher")
        self.access = access
        self.timeout = timeout
        self.verify_tls = verify_tls
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self.logger = self.logger.bind(server=access.server)
    
    async def connect(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=self.access.server,
            headers={"Authorization": f"Bearer {self.access.token}"},
            verify=self.verify_tls,
            timeout=self.timeout,
            transport=self._transport
        )
        self._connected = True
    
    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._connected = False
    
    async def _get(self, resource: str, path: str, params: Optional[Dict[str, Any]] = None,
                   as_text: bool = False, lenient_json: bool = False) -> ResourceSnapshot:
        await self.ensure_connected()
        
        try:
            response = await self._client.get(path, params=params)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self.logger.warning("Cluster API call failed", path=path, error=str(e))
            return ResourceSnapshot(
                resource=resource,
                error=FetchError(path=path, message=str(e) or e.__class__.__name__)
            )
        
        if not response.is_success:
            self.logger.warning("Cluster API returned an error", path=path, status=response.status_code)
            return ResourceSnapshot(
                resource=resource,
                error=FetchError(
                    path=path,
                    status=response.status_code,
                    message=response.reason_phrase,
                    body=self._body(response)
                )
            )
        
        if as_text:
            return ResourceSnapshot(resource=resource, payload=response.text)
        try:
            payload = response.json()
        except ValueError as e:
            if lenient_json:
                return ResourceSnapshot(resource=resource, payload={"raw": response.text})
            return ResourceSnapshot(
                resource=resource,
                error=FetchError(path=path, status=response.status_code,
                                 message=f"Invalid JSON: {e}", body=response.text)
            )
        return ResourceSnapshot(resource=resource, payload=payload if payload is not None else {})
    
    @staticmethod
    def _body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text
    
    async def fetch_resource(self, resource: str, path: str,
                             params: Optional[Dict[str, Any]] = None) -> ResourceSnapshot:
        """GET ``path`` and decode the JSON payload."""
        return await self._get(resource, path, params)
    
    async def fetch_nodes(self) -> ResourceSnapshot:
        return await self.fetch_resource("nodes", NODES_PATH)
    
    async def fetch_pods(self) -> ResourceSnapshot:
        return await self.fetch_resource("pods", PODS_PATH)
    
    async def fetch_deployments(self) -> ResourceSnapshot:
        return await self.fetch_resource("deployments", DEPLOYMENTS_PATH)
    
    async def fetch_events(self) -> ResourceSnapshot:
        """Cluster events; a non-JSON body is kept as ``{"raw": text}``."""
        return await self._get("events", EVENTS_PATH, lenient_json=True)
    
    async def fetch_pod_log(self, namespace: str, pod: str,
                            container: Optional[str] = None,
                            tail_lines: Optional[int] = 200) -> ResourceSnapshot:
        """Snapshot of a pod's log as text."""
        params: Dict[str, Any] = {"timestamps": "true"}
        if container:
            params["container"] = container
        if tail_lines:
            params["tailLines"] = str(tail_lines)
        return await self._get("logs", pod_log_path(namespace, pod), params=params, as_text=True)
