"""ClusterScope: on-demand AKS cluster health and cost aggregation."""

__version__ = "0.1.0"
