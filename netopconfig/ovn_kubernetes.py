"""Validation and defaulting of the OVN-Kubernetes network plugin configuration."""

from __future__ import annotations

from collections.abc import Iterable

from .cluster_config import _parse_cidr
from .model import ConfigError, NetworkSpec, OVNKubernetesConfig, PolicyAuditConfig

OVN_NB_PORT = "9641"
OVN_SB_PORT = "9642"
OVN_NB_RAFT_PORT = "9643"
OVN_SB_RAFT_PORT = "9644"
CLUSTER_CONFIG_NAME = "cluster-config-v1"
CLUSTER_CONFIG_NAMESPACE = "kube-system"
OVN_CERT_CN = "ovn"

_IPSEC_OVERHEAD = 46  # transport mode, AES-GCM
_GENEVE_OVERHEAD = 100
_DEFAULT_GENEVE_PORT = 6081
_DEFAULT_AUDIT_RATE_LIMIT = 20
_DEFAULT_AUDIT_MAX_FILE_SIZE = 50
_DEFAULT_AUDIT_DESTINATION = "null"
_DEFAULT_AUDIT_SYSLOG_FACILITY = "local0"
_MIN_MTU = 576
_MAX_MTU = 65536


def _is_ipv6_cidr(text: str) -> bool:
    try:
        return _parse_cidr(text).version == 6
    except ValueError:
        return False


def _families(cidrs: Iterable[str]) -> tuple[bool, bool]:
    """Return (has IPv4, has IPv6) for the given CIDR strings."""
    has_v4 = has_v6 = False
    for cidr in cidrs:
        if _is_ipv6_cidr(cidr):
            has_v6 = True
        else:
            has_v4 = True
    return has_v4, has_v6


def validate_ovn_kubernetes(conf: NetworkSpec) -> list[ConfigError]:
    """Check that the OVN-Kubernetes configuration is sane; return the problems found."""
    errors: list[ConfigError] = []

    cn_v4, cn_v6 = _families(entry.cidr for entry in conf.cluster_network)
    if not cn_v4 and not cn_v6:
        errors.append(ConfigError("ClusterNetwork cannot be empty"))

    sn_v4, sn_v6 = _families(conf.service_network)
    if not sn_v4 and not sn_v6:
        errors.append(ConfigError("ServiceNetwork cannot be empty"))

    if cn_v4 != sn_v4 or cn_v6 != sn_v6:
        errors.append(ConfigError("ClusterNetwork and ServiceNetwork must have matching IP families"))

    count = len(conf.service_network)
    if count > 2 or (count == 2 and not (sn_v4 and sn_v6)):
        errors.append(
            ConfigError(
                "ServiceNetwork must have either a single CIDR or a dual-stack pair of CIDRs"
            )
        )

    oc = conf.default_network.ovn_kubernetes_config
    if oc is not None:
        if oc.mtu is not None and not _MIN_MTU <= oc.mtu <= _MAX_MTU:
            errors.append(ConfigError(f"invalid MTU {oc.mtu}"))
        if oc.geneve_port is not None and not 1 <= oc.geneve_port <= 65535:
            errors.append(ConfigError(f"invalid GenevePort {oc.geneve_port}"))

    return errors


def is_ovn_kubernetes_change_safe(prev: NetworkSpec, next_: NetworkSpec) -> list[ConfigError]:
    """Reject changes to fields of a running OVN-Kubernetes network that are immutable."""
    pn = prev.default_network.ovn_kubernetes_config or OVNKubernetesConfig()
    nn = next_.default_network.ovn_kubernetes_config or OVNKubernetesConfig()
    errors: list[ConfigError] = []

    if pn.mtu != nn.mtu:
        errors.append(ConfigError("cannot change ovn-kubernetes MTU"))
    if pn.geneve_port != nn.geneve_port:
        errors.append(ConfigError("cannot change ovn-kubernetes genevePort"))
    if pn.hybrid_overlay_config is None and nn.hybrid_overlay_config is not None:
        errors.append(ConfigError("cannot start a hybrid overlay network after install time"))
    if pn.hybrid_overlay_config is not None and pn.hybrid_overlay_config != nn.hybrid_overlay_config:
        errors.append(ConfigError("cannot edit a running hybrid overlay network"))
    if (
        pn.ipsec_config is not None
        and nn.ipsec_config is not None
        and pn.ipsec_config != nn.ipsec_config
    ):
        errors.append(ConfigError("cannot edit IPsec configuration at runtime"))

    return errors


def fill_ovn_kubernetes_defaults(
    conf: NetworkSpec, previous: NetworkSpec | None, host_mtu: int
) -> None:
    """Fill in defaults for the OVN-Kubernetes configuration."""
    if conf.default_network.ovn_kubernetes_config is None:
        conf.default_network.ovn_kubernetes_config = OVNKubernetesConfig()
    sc = conf.default_network.ovn_kubernetes_config

    encap_overhead = _GENEVE_OVERHEAD
    if sc.ipsec_config is not None:
        encap_overhead += _IPSEC_OVERHEAD

    # The MTU can never change, so the previous value always wins.
    if sc.mtu is None:
        mtu = host_mtu - encap_overhead
        if previous is not None:
            prev_oc = previous.default_network.ovn_kubernetes_config
            if prev_oc is not None and prev_oc.mtu is not None:
                mtu = prev_oc.mtu
        sc.mtu = mtu
    if sc.geneve_port is None:
        sc.geneve_port = _DEFAULT_GENEVE_PORT

    if sc.policy_audit_config is None:
        sc.policy_audit_config = PolicyAuditConfig()
    audit = sc.policy_audit_config
    if audit.rate_limit is None:
        audit.rate_limit = _DEFAULT_AUDIT_RATE_LIMIT
    if audit.max_file_size is None:
        audit.max_file_size = _DEFAULT_AUDIT_MAX_FILE_SIZE
    if not audit.destination:
        audit.destination = _DEFAULT_AUDIT_DESTINATION
    if not audit.syslog_facility:
        audit.syslog_facility = _DEFAULT_AUDIT_SYSLOG_FACILITY


def current_initiator_exists(master_ips: Iterable[str], initiator: str) -> bool:
    """Whether the configured RAFT cluster initiator is still among the masters."""
    return initiator in master_ips


def _join_host_port(host: str, port: str) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def db_list(master_ips: Iterable[str], port: str) -> str:
    """Build the comma-separated list of SSL database addresses on the masters."""
    return ",".join(f"ssl:{_join_host_port(ip, port)}" for ip in master_ips)


def listen_dual_stack(master_ip: str) -> str:
    """Listen suffix for the databases: dual-stack for IPv6 masters, none for IPv4."""
    if ":" in master_ip:
        return ":[::]"
    return ""