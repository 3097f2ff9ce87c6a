from .k8s_client import ClusterDataFetcher
from .kubeconfig import ClusterAccess, resolve_kubeconfig

__all__ = ["ClusterDataFetcher", "ClusterAccess", "resolve_kubeconfig"]
