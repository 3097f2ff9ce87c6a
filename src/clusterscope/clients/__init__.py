from .azure.client_factory import AzureClientFactory
from .kubernetes.k8s_client import ClusterDataFetcher

__all__ = ["AzureClientFactory", "ClusterDataFetcher"]
