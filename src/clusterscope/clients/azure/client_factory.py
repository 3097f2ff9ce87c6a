# src/clusterscope/clients/azure/client_factory.py
"""Azure client factory bound to one session."""

from typing import Dict, Any, Optional
import structlog
from azure.identity import ClientSecretCredential

from clusterscope.auth.session import Session
from .aks_client import ControlPlaneClient
from .cost_client import CostClient
from .credentials import service_principal_credential

logger = structlog.get_logger(__name__)


class AzureClientFactory:
    """Factory for creating Azure service clients for a session's principal."""
    
    def __init__(self, session: Session, config: Optional[Dict[str, Any]] = None):
        self.session = session
        self.config = config or {}
        self._credential = None
        self.logger = logger.bind(factory="azure", principal_id=session.principal_id)
    
    def _get_credential(self) -> ClientSecretCredential:
        """Service principal credential for the session, created once per factory."""
        if self._credential is None:
            self._credential = service_principal_credential(self.session)
            self.logger.debug("Using service principal authentication")
        return self._credential
    
    def create_control_plane_client(self) -> ControlPlaneClient:
        """Create AKS control-plane client."""
        return ControlPlaneClient(
            session=self.session,
            config=self.config,
            credential=self._get_credential()
        )
    
    def create_cost_client(self) -> CostClient:
        """Create Cost Management client."""
        return CostClient(
            session=self.session,
            config=self.config,
            credential=self._get_credential()
        )


def control_plane_client_for(session: Session) -> ControlPlaneClient:
    return AzureClientFactory(session).create_control_plane_client()


def cost_client_for(session: Session, config: Optional[Dict[str, Any]] = None) -> CostClient:
    return AzureClientFactory(session, config).create_cost_client()
