"""Validation and defaulting of the kube-proxy configuration."""

from __future__ import annotations

import ipaddress
import re

from .cluster_config import _parse_cidr
from .model import ConfigError, NetworkSpec, NetworkType, ProxyConfig

_UNIT_NANOSECONDS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_DURATION_COMPONENT = re.compile(r"([0-9]*)(?:\.([0-9]*))?(ns|us|\u00b5s|\u03bcs|ms|h|m|s)")

_MAX_DURATION = (1 << 63) - 1

# Network types that bring their own service handling and refuse kube-proxy options.
_REJECTS_KUBE_PROXY_CONFIG = frozenset(
    {str(NetworkType.OVN_KUBERNETES), str(NetworkType.KURYR)}
)

# Network types for which no standalone kube-proxy is deployed by default.
_NO_DEFAULT_KUBE_PROXY = frozenset(
    {str(NetworkType.OPENSHIFT_SDN), str(NetworkType.OVN_KUBERNETES), str(NetworkType.KURYR)}
)

# Port arguments that may be given only with their historical default value.
_FIXED_PORTS = (("metrics-port", "9101"), ("healthz-port", "10256"))


def parse_duration(text: str) -> int:
    """Parse a duration such as "1h30m" or "-2.5s" into nanoseconds.

    Raises ValueError if the text is not a valid duration.
    """
    invalid = ValueError(f'time: invalid duration "{text}"')
    rest = text
    sign = 1
    if rest[:1] in ("+", "-"):
        sign = -1 if rest[0] == "-" else 1
        rest = rest[1:]
    if rest == "0":
        return 0
    if not rest:
        raise invalid

    total = 0
    pos = 0
    while pos < len(rest):
        match = _DURATION_COMPONENT.match(rest, pos)
        if match is None:
            raise invalid
        whole, fraction, unit = match.groups()
        if not whole and not fraction:
            raise invalid
        scale = _UNIT_NANOSECONDS[unit]
        total += int(whole or 0) * scale
        if fraction:
            total += int(fraction) * scale // 10 ** len(fraction)
        if total > _MAX_DURATION + (1 if sign < 0 else 0):
            raise invalid
        pos = match.end()
    return sign * total


def _is_valid_ip(text: str) -> bool:
    if "%" in text:
        return False
    try:
        ipaddress.ip_address(text)
    except ValueError:
        return False
    return True


def accepts_kube_proxy_config(conf: NetworkSpec) -> bool:
    """Whether the default network type allows kube-proxy options to be set.

    OpenShift SDN deploys its own kube-proxy; OVN-Kubernetes and Kuryr do not
    use one. Every other type is assumed to use an external kube-proxy.
    """
    return str(conf.default_network.type) not in _REJECTS_KUBE_PROXY_CONFIG


def no_kube_proxy_config(conf: NetworkSpec) -> bool:
    """Whether the kube-proxy configuration is absent or holds only defaults."""
    proxy = conf.kube_proxy_config
    if proxy is None:
        return True
    if proxy.iptables_sync_period or proxy.proxy_arguments:
        return False
    # Accept either no value or the value filled in by fill_kube_proxy_defaults.
    return proxy.bind_address in ("", "0.0.0.0", "::")


def validate_kube_proxy(conf: NetworkSpec) -> list[ConfigError]:
    """Check that the kube-proxy configuration is sane; return the problems found."""
    errors: list[ConfigError] = []
    proxy = conf.kube_proxy_config
    if proxy is None:
        return errors

    if not accepts_kube_proxy_config(conf):
        if not no_kube_proxy_config(conf):
            errors.append(
                ConfigError(
                    f'network type "{conf.default_network.type}" does not allow '
                    "specifying kube-proxy options"
                )
            )
        return errors

    if proxy.iptables_sync_period:
        try:
            parse_duration(proxy.iptables_sync_period)
        except ValueError as exc:
            errors.append(ConfigError(f"IptablesSyncPeriod is not a valid duration ({exc})"))

    if proxy.bind_address and not _is_valid_ip(proxy.bind_address):
        errors.append(ConfigError("BindAddress must be a valid IP address"))

    # Ports cannot be overridden; for backward compatibility the old
    # default values may still be given explicitly.
    arguments = proxy.proxy_arguments or {}
    for name, allowed in _FIXED_PORTS:
        if name in arguments and list(arguments[name]) != [allowed]:
            errors.append(ConfigError(f"kube-proxy --{name} cannot be overridden"))
    if "feature-gates" in arguments:
        errors.append(ConfigError("kube-proxy --feature-gates cannot be overridden"))

    return errors


def default_deploy_kube_proxy(conf: NetworkSpec) -> bool:
    """Whether a standalone kube-proxy is deployed by default for the network type."""
    return str(conf.default_network.type) not in _NO_DEFAULT_KUBE_PROXY


def fill_kube_proxy_defaults(conf: NetworkSpec, previous: NetworkSpec | None) -> None:
    """Insert kube-proxy defaults when kube-proxy is deployed explicitly."""
    if conf.deploy_kube_proxy is None:
        conf.deploy_kube_proxy = default_deploy_kube_proxy(conf)
    if not conf.deploy_kube_proxy:
        return

    if conf.kube_proxy_config is None:
        conf.kube_proxy_config = ProxyConfig()
    if conf.kube_proxy_config.bind_address:
        return
    if not conf.cluster_network:
        return

    cidr = conf.cluster_network[0].cidr
    try:
        _parse_cidr(cidr)
        address = ipaddress.ip_address(cidr.partition("/")[0])
    except ValueError:
        return
    is_v4 = address.version == 4 or (
        isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None
    )
    conf.kube_proxy_config.bind_address = "0.0.0.0" if is_v4 else "::"


def is_kube_proxy_change_safe(prev: NetworkSpec, next_: NetworkSpec) -> list[ConfigError]:
    """Check whether a kube-proxy change may be rolled out; all changes are safe."""
    return []