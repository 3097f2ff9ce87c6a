"""Data models shared by the clients, the aggregation engine and the API."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CredentialTier(str, Enum):
    USER = "user"
    ADMIN = "admin"
    ADMIN_FALLBACK = "admin-fallback"


class ClusterScopeModel(BaseModel):
    """Base model; serialises with camelCase keys for the HTTP surface."""
    
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )
    
    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class ClusterIdentity(ClusterScopeModel):
    name: str
    resource_group: Optional[str] = None
    location: Optional[str] = None
    provisioning_state: Optional[str] = None
    kubernetes_version: Optional[str] = None
    node_resource_group: Optional[str] = None
    fqdn: Optional[str] = None


class AgentPool(ClusterScopeModel):
    name: str
    count: Optional[int] = None
    os_type: Optional[str] = None
    provisioning_state: Optional[str] = None


class FetchError(ClusterScopeModel):
    """Tagged failure of a single cluster API call. Returned, never raised."""
    
    error: bool = True
    path: str
    status: Optional[int] = None
    message: Optional[str] = None
    body: Optional[Any] = None


class ResourceSnapshot(ClusterScopeModel):
    """Either the payload of one cluster API call or the error it produced."""
    
    resource: str
    payload: Optional[Any] = None
    error: Optional[FetchError] = None
    
    @model_validator(mode="after")
    def _payload_xor_error(self) -> "ResourceSnapshot":
        if (self.payload is None) == (self.error is None):
            raise ValueError("a snapshot holds exactly one of payload or error")
        return self
    
    @property
    def ok(self) -> bool:
        return self.error is None
    
    @property
    def items(self) -> List[Dict[str, Any]]:
        if not self.ok or not isinstance(self.payload, dict):
            return []
        return self.payload.get("items") or []


class PartialError(ClusterScopeModel):
    resource: str
    detail: Dict[str, Any] = Field(default_factory=dict)


class DeploymentSummary(ClusterScopeModel):
    name: Optional[str] = None
    namespace: Optional[str] = None
    desired: int = 0
    available: int = 0


class CrashedPod(ClusterScopeModel):
    namespace: Optional[str] = None
    name: Optional[str] = None
    phase: str = "Unknown"
    reason: Optional[str] = None


class PodStatus(ClusterScopeModel):
    namespace: Optional[str] = None
    name: Optional[str] = None
    phase: str = "Unknown"
    crash_reason: Optional[str] = None
    weight: int = 3


class ClusterSummary(ClusterScopeModel):
    node_count: int = 0
    ready_nodes: int = 0
    pod_phases: Dict[str, int] = Field(default_factory=dict)
    deployments: int = 0
    agent_pools: List[AgentPool] = Field(default_factory=list)
    crashed_pods: List[CrashedPod] = Field(default_factory=list)
    pods: List[PodStatus] = Field(default_factory=list)
    namespaces: List[str] = Field(default_factory=list)


class ClusterDetail(ClusterScopeModel):
    server: str
    summary: ClusterSummary
    nodes: Optional[Any] = None
    pods: Optional[Any] = None
    deployments: Optional[Any] = None
    deployment_summaries: List[DeploymentSummary] = Field(default_factory=list)
    errors: List[PartialError] = Field(default_factory=list)
    used_credential_type: CredentialTier


class PodLogs(ClusterScopeModel):
    namespace: str
    pod: str
    container: Optional[str] = None
    lines: List[str] = Field(default_factory=list)


class CostItem(ClusterScopeModel):
    name: str
    meter_category: str
    cost: float = 0.0


class CostReport(ClusterScopeModel):
    range: str
    total: float = 0.0
    items: List[CostItem] = Field(default_factory=list)
