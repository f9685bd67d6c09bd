"""Validation, defaulting and rollout decisions for cluster network configuration."""

__version__ = "0.1.0"

__all__ = [
    "model",
    "cluster_config",
    "dhcp",
    "kube_proxy",
    "ovn_kubernetes",
    "ovn_rollout",
]