"""Validation and merging of the cluster-wide network configuration."""

from __future__ import annotations

import ipaddress

from .model import (
    ClusterNetworkEntry,
    ClusterNetworkSpec,
    ConfigError,
    NetworkMigration,
    NetworkSpec,
    NetworkStatus,
    NetworkType,
)

# Plugins that require hostPrefix to be set.
_PLUGINS_USING_HOST_PREFIX = frozenset(
    {str(NetworkType.OPENSHIFT_SDN), str(NetworkType.OVN_KUBERNETES)}
)

_KNOWN_NETWORK_TYPES = frozenset(
    {str(NetworkType.OPENSHIFT_SDN), str(NetworkType.OVN_KUBERNETES), str(NetworkType.KURYR)}
)

_Network = ipaddress.IPv4Network | ipaddress.IPv6Network


def _parse_cidr(text: str) -> _Network:
    """Parse an address/prefix string into its (masked) network."""
    addr, sep, prefix = text.partition("/")
    if not sep or not prefix.isascii() or not prefix.isdigit():
        raise ValueError(f"invalid CIDR address: {text}")
    ip = ipaddress.ip_address(addr)
    if int(prefix) > ip.max_prefixlen:
        raise ValueError(f"invalid CIDR address: {text}")
    return ipaddress.ip_network(f"{ip}/{int(prefix)}", strict=False)


class _IPPool:
    """A set of networks that must not overlap one another."""

    def __init__(self) -> None:
        self._networks: list[_Network] = []

    def add(self, network: _Network) -> None:
        for existing in self._networks:
            if existing.version == network.version and existing.overlaps(network):
                raise ConfigError(f"CIDRs {existing} and {network} overlap")
        self._networks.append(network)


def validate_cluster_config(cluster_config: ClusterNetworkSpec) -> None:
    """Raise ConfigError if the cluster network configuration is invalid."""
    pool = _IPPool()
    ipv4_service = ipv6_service = ipv4_cluster = ipv6_cluster = False

    for snet in cluster_config.service_network:
        try:
            network = _parse_cidr(snet)
        except ValueError as exc:
            raise ConfigError(f"could not parse spec.serviceNetwork {snet}: {exc}") from exc
        if network.version == 6:
            ipv6_service = True
        else:
            ipv4_service = True
        pool.add(network)

    count = len(cluster_config.service_network)
    if count == 0:
        raise ConfigError("spec.serviceNetwork must have at least 1 entry")
    if count > 2 or (count == 2 and not (ipv4_service and ipv6_service)):
        raise ConfigError("spec.serviceNetwork must contain at most one IPv4 and one IPv6 network")

    for cnet in cluster_config.cluster_network:
        try:
            network = _parse_cidr(cnet.cidr)
        except ValueError as exc:
            raise ConfigError(f"could not parse spec.clusterNetwork {cnet.cidr}") from exc
        if network.version == 6:
            ipv6_cluster = True
        else:
            ipv4_cluster = True
        # hostPrefix is ignored if the plugin does not use it and it is unset
        if cluster_config.network_type in _PLUGINS_USING_HOST_PREFIX or cnet.host_prefix != 0:
            ones, bits = network.prefixlen, network.max_prefixlen
            # A smaller prefix length is a larger block.
            if cnet.host_prefix < ones:
                raise ConfigError(
                    f"hostPrefix {cnet.host_prefix} is larger than its cidr {cnet.cidr}"
                )
            if cnet.host_prefix > bits - 2:
                raise ConfigError(
                    f"hostPrefix {cnet.host_prefix} is too small, must be a /{bits - 2} or larger"
                )
        pool.add(network)

    if not cluster_config.cluster_network:
        raise ConfigError("spec.clusterNetwork must have at least 1 entry")
    if ipv4_cluster != ipv4_service or ipv6_cluster != ipv6_service:
        raise ConfigError(
            "spec.clusterNetwork and spec.serviceNetwork must either both be IPv4-only, "
            "both be IPv6-only, or both be dual-stack"
        )
    if not cluster_config.network_type:
        raise ConfigError("spec.networkType is required")


def merge_cluster_config(oper_conf: NetworkSpec, cluster_conf: ClusterNetworkSpec) -> None:
    """Copy the cluster-wide configuration into the operator configuration."""
    oper_conf.service_network = list(cluster_conf.service_network)
    oper_conf.cluster_network = [
        ClusterNetworkEntry(cidr=cnet.cidr, host_prefix=cnet.host_prefix)
        for cnet in cluster_conf.cluster_network
    ]
    oper_conf.default_network.type = cluster_conf.network_type
    if not oper_conf.management_state:
        oper_conf.management_state = "Managed"


def _plugin_mtu(oper_conf: NetworkSpec) -> int | None:
    network = oper_conf.default_network
    plugin_config = {
        str(NetworkType.OPENSHIFT_SDN): network.openshift_sdn_config,
        str(NetworkType.OVN_KUBERNETES): network.ovn_kubernetes_config,
        str(NetworkType.KURYR): network.kuryr_config,
    }.get(str(network.type))
    if plugin_config is None or plugin_config.mtu is None:
        raise ConfigError(f"MTU of network type {network.type} is not set")
    return int(plugin_config.mtu)


def status_from_operator_config(
    oper_conf: NetworkSpec, old_status: NetworkStatus
) -> NetworkStatus:
    """Build the cluster network status from the applied operator configuration."""
    network_type = str(oper_conf.default_network.type)
    known = network_type in _KNOWN_NETWORK_TYPES
    # An unknown plugin may have set status fields itself; keep them.
    status = NetworkStatus() if known else old_status.copy()

    if not old_status.network_type or known:
        status.network_type = network_type
    if not old_status.service_network or known:
        status.service_network = list(oper_conf.service_network)
    if not old_status.cluster_network or known:
        status.cluster_network.extend(
            ClusterNetworkEntry(cidr=cnet.cidr, host_prefix=cnet.host_prefix)
            for cnet in oper_conf.cluster_network
        )

    if known:
        status.cluster_network_mtu = _plugin_mtu(oper_conf)

    if oper_conf.migration is not None:
        status.migration = NetworkMigration(network_type=str(oper_conf.migration.network_type))
    else:
        status.migration = None
    return status