import pytest

from netopconfig.kube_proxy import (
    accepts_kube_proxy_config,
    default_deploy_kube_proxy,
    fill_kube_proxy_defaults,
    is_kube_proxy_change_safe,
    no_kube_proxy_config,
    parse_duration,
    validate_kube_proxy,
)
from netopconfig.model import (
    ClusterNetworkEntry,
    ConfigError,
    DefaultNetworkDefinition,
    NetworkSpec,
    NetworkType,
    OpenShiftSDNConfig,
    ProxyConfig,
    SDNMode,
)

SECOND = 1_000_000_000


def _proxy_arguments():
    return {
        "proxy-mode": ["blah"],
        "iptables-min-sync-period": ["2m"],
        "iptables-masquerade-bit": ["14"],
        "conntrack-tcp-timeout-close-wait": ["10m"],
        "conntrack-max-per-core": ["5"],
    }


def _config():
    return NetworkSpec(
        cluster_network=[ClusterNetworkEntry(cidr="10.128.0.0/14", host_prefix=23)],
        kube_proxy_config=ProxyConfig(
            bind_address="0.0.0.0",
            iptables_sync_period="1m",
            proxy_arguments=_proxy_arguments(),
        ),
    )


def _config_ipv6():
    return NetworkSpec(
        cluster_network=[ClusterNetworkEntry(cidr="fd00:1234::/48", host_prefix=64)],
        kube_proxy_config=ProxyConfig(
            bind_address="::",
            iptables_sync_period="1m",
            proxy_arguments=_proxy_arguments(),
        ),
    )


def _openshift_sdn_spec():
    return NetworkSpec(
        service_network=["172.30.0.0/16"],
        cluster_network=[
            ClusterNetworkEntry(cidr="10.128.0.0/15", host_prefix=23),
            ClusterNetworkEntry(cidr="10.0.0.0/14", host_prefix=24),
        ],
        default_network=DefaultNetworkDefinition(
            type=NetworkType.OPENSHIFT_SDN,
            openshift_sdn_config=OpenShiftSDNConfig(mode=SDNMode.NETWORK_POLICY),
        ),
    )


def test_validate_kube_proxy_config():
    assert validate_kube_proxy(_config()) == []


def test_validate_kube_proxy_ipv6_config():
    assert validate_kube_proxy(_config_ipv6()) == []


def test_should_deploy_kube_proxy():
    c = NetworkSpec(default_network=DefaultNetworkDefinition(type=NetworkType.OPENSHIFT_SDN))
    assert accepts_kube_proxy_config(c) is True
    assert default_deploy_kube_proxy(c) is False

    c.default_network.type = NetworkType.OVN_KUBERNETES
    assert accepts_kube_proxy_config(c) is False
    assert default_deploy_kube_proxy(c) is False

    c.default_network.type = NetworkType.KURYR
    assert accepts_kube_proxy_config(c) is False
    assert default_deploy_kube_proxy(c) is False

    c.default_network.type = "Flannel"
    assert accepts_kube_proxy_config(c) is True
    assert default_deploy_kube_proxy(c) is True


def test_validate_kube_proxy():
    assert validate_kube_proxy(NetworkSpec()) == []
    assert validate_kube_proxy(_openshift_sdn_spec()) == []

    c = NetworkSpec(
        kube_proxy_config=ProxyConfig(
            bind_address="1.2.3.4",
            iptables_sync_period="30s",
            proxy_arguments={"foo": ["bar"]},
        )
    )
    assert validate_kube_proxy(c) == []

    c.kube_proxy_config.bind_address = "invalid"
    c.kube_proxy_config.iptables_sync_period = "asdf"
    c.kube_proxy_config.proxy_arguments["healthz-port"] = ["9102"]
    c.kube_proxy_config.proxy_arguments["metrics-port"] = ["10255"]
    c.kube_proxy_config.proxy_arguments["feature-gates"] = ["FGFoo=bar,FGBaz=bah"]
    errors = validate_kube_proxy(c)
    assert len(errors) == 5
    assert all(isinstance(err, ConfigError) for err in errors)
    messages = [str(err) for err in errors]
    assert any("IptablesSyncPeriod is not a valid duration" in m for m in messages)
    assert "BindAddress must be a valid IP address" in messages
    assert "kube-proxy --metrics-port cannot be overridden" in messages
    assert "kube-proxy --healthz-port cannot be overridden" in messages
    assert "kube-proxy --feature-gates cannot be overridden" in messages


def test_validate_kube_proxy_port_overrides():
    config = _openshift_sdn_spec()
    config.kube_proxy_config = ProxyConfig(proxy_arguments={"metrics-port": ["29101"]})
    assert len(validate_kube_proxy(config)) == 1

    config.kube_proxy_config.proxy_arguments = {"metrics-port": ["9101"]}
    assert validate_kube_proxy(config) == []

    config.kube_proxy_config.proxy_arguments = {"feature-gates": ["FGBar=baz"]}
    assert len(validate_kube_proxy(config)) == 1

    config.kube_proxy_config.proxy_arguments = {"healthz-port": ["10256"]}
    assert validate_kube_proxy(config) == []


def test_validate_rejecting_network_type():
    conf = NetworkSpec(
        default_network=DefaultNetworkDefinition(type=NetworkType.OVN_KUBERNETES),
        kube_proxy_config=ProxyConfig(bind_address="0.0.0.0"),
    )
    assert validate_kube_proxy(conf) == []

    conf.kube_proxy_config.iptables_sync_period = "10s"
    errors = validate_kube_proxy(conf)
    assert len(errors) == 1
    assert str(errors[0]) == (
        'network type "OVNKubernetes" does not allow specifying kube-proxy options'
    )


def test_no_kube_proxy_config():
    assert no_kube_proxy_config(NetworkSpec()) is True
    assert no_kube_proxy_config(NetworkSpec(kube_proxy_config=ProxyConfig())) is True
    assert no_kube_proxy_config(
        NetworkSpec(kube_proxy_config=ProxyConfig(bind_address="::"))
    ) is True
    assert no_kube_proxy_config(
        NetworkSpec(kube_proxy_config=ProxyConfig(bind_address="1.2.3.4"))
    ) is False
    assert no_kube_proxy_config(
        NetworkSpec(kube_proxy_config=ProxyConfig(iptables_sync_period="1m"))
    ) is False
    assert no_kube_proxy_config(
        NetworkSpec(kube_proxy_config=ProxyConfig(proxy_arguments={"a": ["b"]}))
    ) is False


@pytest.mark.parametrize(
    ("cidr", "deploy", "expected"),
    [
        ("192.168.0.0/14", True, ProxyConfig(bind_address="0.0.0.0")),
        ("fd00:1234::/64", True, ProxyConfig(bind_address="::")),
        ("fd00:1234::/64", False, None),
    ],
)
def test_fill_kube_proxy_defaults(cidr, deploy, expected):
    conf = NetworkSpec(
        cluster_network=[ClusterNetworkEntry(cidr=cidr, host_prefix=23)],
        deploy_kube_proxy=deploy,
    )
    fill_kube_proxy_defaults(conf, None)
    assert conf == NetworkSpec(
        cluster_network=[ClusterNetworkEntry(cidr=cidr, host_prefix=23)],
        deploy_kube_proxy=deploy,
        kube_proxy_config=expected,
    )


def test_fill_kube_proxy_defaults_by_network_type():
    conf = NetworkSpec(
        cluster_network=[ClusterNetworkEntry(cidr="192.168.0.0/14", host_prefix=23)],
        default_network=DefaultNetworkDefinition(type="Flannel"),
        kube_proxy_config=ProxyConfig(iptables_sync_period="42s"),
    )
    fill_kube_proxy_defaults(conf, None)
    assert conf.deploy_kube_proxy is True
    assert conf.kube_proxy_config == ProxyConfig(
        bind_address="0.0.0.0", iptables_sync_period="42s"
    )

    sdn = _openshift_sdn_spec()
    fill_kube_proxy_defaults(sdn, None)
    assert sdn.deploy_kube_proxy is False
    assert sdn.kube_proxy_config is None


def test_fill_kube_proxy_defaults_keeps_bind_address():
    conf = NetworkSpec(
        cluster_network=[ClusterNetworkEntry(cidr="fd00:1234::/64", host_prefix=23)],
        deploy_kube_proxy=True,
        kube_proxy_config=ProxyConfig(bind_address="1.2.3.4"),
    )
    fill_kube_proxy_defaults(conf, None)
    assert conf.kube_proxy_config.bind_address == "1.2.3.4"


def test_kube_proxy_change_is_always_safe():
    assert is_kube_proxy_change_safe(_config(), _config_ipv6()) == []


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("0", 0),
        ("1m", 60 * SECOND),
        ("2m0s", 120 * SECOND),
        ("42s", 42 * SECOND),
        ("1h30m", 5400 * SECOND),
        ("1.5h", 5400 * SECOND),
        ("-1.5h", -5400 * SECOND),
        ("300ms", 300_000_000),
        ("10us", 10_000),
        ("7ns", 7),
        (".5s", SECOND // 2),
    ],
)
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "asdf", "1", "-", ".s", "1x", "5s3"])
def test_parse_duration_invalid(text):
    with pytest.raises(ValueError, match="invalid duration"):
        parse_duration(text)