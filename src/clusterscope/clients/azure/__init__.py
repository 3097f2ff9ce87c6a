from .client_factory import AzureClientFactory
from .aks_client import ControlPlaneClient
from .cost_client import CostClient


__all__ = [
    "AzureClientFactory",
    "ControlPlaneClient",
    "CostClient"
]
