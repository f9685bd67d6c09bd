# netopconfig

Configuration logic for a cluster network operator: checking, merging and
defaulting the network settings of a Kubernetes cluster, and deciding how
the OVN-Kubernetes daemonsets should be rolled out. It is a plain library
with no dependencies outside the standard library.

## Modules

- **`netopconfig.model`**: dataclasses for the configuration and status,
  such as `NetworkSpec`, `ClusterNetworkSpec`, `NetworkStatus`,
  `ClusterNetworkEntry`, `ProxyConfig`, `OVNKubernetesConfig`,
  `PolicyAuditConfig`, `HybridOverlayConfig`, `AdditionalNetworkDefinition`
  and `SimpleMacvlanConfig`, plus the `NetworkType`, `SDNMode` and `IPAMType`
  enums. `NetworkSpec`, `ClusterNetworkSpec` and `NetworkStatus` have a
  `copy()` method that returns a deep copy. Invalid configuration is reported
  as `ConfigError`, a subclass of `ValueError`.
- **`netopconfig.cluster_config`**:
  - `validate_cluster_config(cluster_config)` raises `ConfigError` on the
    first problem: unparsable CIDRs, overlapping networks, missing entries,
    more than one service network per IP family, bad host prefixes,
    mismatched IP families between cluster and service networks, or a
    missing network type.
  - `merge_cluster_config(oper_conf, cluster_conf)` copies the cluster-level
    settings into a `NetworkSpec` and sets its management state to
    `"Managed"` if it is empty.
  - `status_from_operator_config(oper_conf, old_status)` builds a
    `NetworkStatus`. For an unknown network type, fields already set in the
    old status are kept. For a known type the plugin's MTU must be set,
    otherwise `ConfigError` is raised.
- **`netopconfig.dhcp`**: `use_dhcp(conf)` tells whether any additional
  network needs the DHCP daemon; `use_dhcp_raw` and `use_dhcp_simple_macvlan`
  decide this for a single raw CNI configuration or simple macvlan network.
- **`netopconfig.kube_proxy`**: `validate_kube_proxy` (returns a list of
  `ConfigError`), `fill_kube_proxy_defaults`, `accepts_kube_proxy_config`,
  `no_kube_proxy_config`, `default_deploy_kube_proxy`,
  `is_kube_proxy_change_safe`, and `parse_duration`, which turns strings
  such as `"1h30m"` into nanoseconds.
- **`netopconfig.ovn_kubernetes`**: `validate_ovn_kubernetes`,
  `fill_ovn_kubernetes_defaults`, `is_ovn_kubernetes_change_safe`, and the
  helpers `db_list`, `listen_dual_stack` and `current_initiator_exists`.
- **`netopconfig.ovn_rollout`**: the `DaemonSet` and `DaemonSetStatus`
  dataclasses, `ip_family_mode`, `daemonset_progressing`,
  `should_update_on_ip_family_change`, which returns a `(node, master)` pair
  of booleans, and `set_daemonset_annotation`, which annotates the
  `ovnkube-master` and `ovnkube-node` daemonsets given as plain dicts, along
  with their pod templates.

## Example

```python
from netopconfig.cluster_config import merge_cluster_config, validate_cluster_config
from netopconfig.model import ClusterNetworkEntry, ClusterNetworkSpec, ConfigError, NetworkSpec
from netopconfig.ovn_kubernetes import fill_ovn_kubernetes_defaults, validate_ovn_kubernetes

cluster = ClusterNetworkSpec(
    cluster_network=[ClusterNetworkEntry(cidr="10.128.0.0/14", host_prefix=23)],
    service_network=["172.30.0.0/16"],
    network_type="OVNKubernetes",
)

try:
    validate_cluster_config(cluster)
except ConfigError as err:
    print(f"invalid configuration: {err}")

spec = NetworkSpec()
merge_cluster_config(spec, cluster)
fill_ovn_kubernetes_defaults(spec, None, host_mtu=1500)
for problem in validate_ovn_kubernetes(spec):
    print(problem)
```

`validate_cluster_config` raises at the first problem. The plugin and
kube-proxy validators return a list of `ConfigError` so that every problem is
reported at once.

## What it does not do

- It does not render Kubernetes manifests and does not talk to a cluster.
  The caller reads and writes the objects. `set_daemonset_annotation` only
  changes dicts that are passed in.
- It does not detect the host MTU. `fill_ovn_kubernetes_defaults` takes it as
  an argument.
- Of the network plugins, only OVN-Kubernetes has its own validation and
  defaults. Other plugin types are covered only by the cluster-wide,
  kube-proxy and DHCP checks.
- There is no command-line tool.

## Running the tests

```
pip install -e .[test]
pytest
```