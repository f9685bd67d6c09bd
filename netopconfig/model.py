"""Data model for the cluster network configuration and its status."""

from __future__ import annotations

import copy as _copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ConfigError(ValueError):
    """Raised when a network configuration is invalid."""


class _StrEnum(str, Enum):
    def __str__(self) -> str:
        return str.__str__(self)


class NetworkType(_StrEnum):
    """Known network plugin types."""

    OPENSHIFT_SDN = "OpenShiftSDN"
    OVN_KUBERNETES = "OVNKubernetes"
    KURYR = "Kuryr"
    RAW = "Raw"
    SIMPLE_MACVLAN = "SimpleMacvlan"


class SDNMode(_StrEnum):
    """Isolation modes of the OpenShift SDN plugin."""

    SUBNET = "Subnet"
    MULTITENANT = "Multitenant"
    NETWORK_POLICY = "NetworkPolicy"


class IPAMType(_StrEnum):
    """IP address management types for simple macvlan networks."""

    DHCP = "DHCP"
    STATIC = "Static"


@dataclass
class ClusterNetworkEntry:
    """A pod network CIDR and the prefix length handed to each node."""

    cidr: str
    host_prefix: int = 0


@dataclass
class ProxyConfig:
    """Settings for kube-proxy."""

    bind_address: str = ""
    iptables_sync_period: str = ""
    proxy_arguments: dict[str, list[str]] | None = None


@dataclass
class OpenShiftSDNConfig:
    """Settings specific to the OpenShift SDN plugin."""

    mode: str = ""
    vxlan_port: int | None = None
    mtu: int | None = None
    enable_unidling: bool | None = None


@dataclass
class HybridOverlayConfig:
    """Settings for the OVN hybrid overlay network."""

    hybrid_cluster_network: list[ClusterNetworkEntry] = field(default_factory=list)
    hybrid_overlay_vxlan_port: int | None = None


@dataclass
class IPsecConfig:
    """Marks IPsec as enabled; it has no settings of its own."""


@dataclass
class PolicyAuditConfig:
    """Settings for network policy audit logging."""

    rate_limit: int | None = None
    max_file_size: int | None = None
    destination: str = ""
    syslog_facility: str = ""


@dataclass
class OVNKubernetesConfig:
    """Settings specific to the OVN-Kubernetes plugin."""

    mtu: int | None = None
    geneve_port: int | None = None
    hybrid_overlay_config: HybridOverlayConfig | None = None
    ipsec_config: IPsecConfig | None = None
    policy_audit_config: PolicyAuditConfig | None = None


@dataclass
class KuryrConfig:
    """Settings specific to the Kuryr plugin."""

    daemon_probes_port: int | None = None
    controller_probes_port: int | None = None
    openstack_service_network: str = ""
    enable_port_pools_prepopulation: bool = False
    pool_max_ports: int = 0
    pool_min_ports: int = 0
    pool_batch_ports: int | None = None
    mtu: int | None = None


@dataclass
class DefaultNetworkDefinition:
    """The default pod network and the settings of its plugin."""

    type: str = ""
    openshift_sdn_config: OpenShiftSDNConfig | None = None
    ovn_kubernetes_config: OVNKubernetesConfig | None = None
    kuryr_config: KuryrConfig | None = None


@dataclass
class IPAMConfig:
    """IP address management for a simple macvlan network."""

    type: str = ""
    static_ipam_config: Any = None


@dataclass
class SimpleMacvlanConfig:
    """Settings for a simple macvlan additional network."""

    master: str = ""
    ipam_config: IPAMConfig | None = None
    mode: str = ""
    mtu: int | None = None


@dataclass
class AdditionalNetworkDefinition:
    """A secondary network attached to pods."""

    type: str
    name: str
    namespace: str = ""
    raw_cni_config: str = ""
    simple_macvlan_config: SimpleMacvlanConfig | None = None


@dataclass
class NetworkMigration:
    """A network type migration in progress."""

    network_type: str = ""


@dataclass
class NetworkSpec:
    """The operator's network configuration."""

    management_state: str = ""
    cluster_network: list[ClusterNetworkEntry] = field(default_factory=list)
    service_network: list[str] = field(default_factory=list)
    default_network: DefaultNetworkDefinition = field(default_factory=DefaultNetworkDefinition)
    additional_networks: list[AdditionalNetworkDefinition] = field(default_factory=list)
    disable_multi_network: bool | None = None
    use_multi_network_policy: bool | None = None
    deploy_kube_proxy: bool | None = None
    kube_proxy_config: ProxyConfig | None = None
    log_level: str = ""
    migration: NetworkMigration | None = None

    def copy(self) -> NetworkSpec:
        """Return a deep copy."""
        return _copy.deepcopy(self)


@dataclass
class ClusterNetworkSpec:
    """The cluster-wide network configuration as set by the administrator."""

    cluster_network: list[ClusterNetworkEntry] = field(default_factory=list)
    service_network: list[str] = field(default_factory=list)
    network_type: str = ""

    def copy(self) -> ClusterNetworkSpec:
        """Return a deep copy."""
        return _copy.deepcopy(self)


@dataclass
class NetworkStatus:
    """The cluster-wide network status as published by the operator."""

    cluster_network: list[ClusterNetworkEntry] = field(default_factory=list)
    service_network: list[str] = field(default_factory=list)
    network_type: str = ""
    cluster_network_mtu: int = 0
    migration: NetworkMigration | None = None

    def copy(self) -> NetworkStatus:
        """Return a deep copy."""
        return _copy.deepcopy(self)