"""Rollout decisions for the OVN-Kubernetes master and node daemonsets."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, MutableMapping
from dataclasses import dataclass, field
from typing import Any

from .model import ConfigError, NetworkSpec

logger = logging.getLogger(__name__)

IP_FAMILY_SINGLE_STACK = "single-stack"
IP_FAMILY_DUAL_STACK = "dual-stack"
NETWORK_IP_FAMILY_MODE_ANNOTATION = "networkoperator.openshift.io/ip-family-mode"
ROLLOUT_HUNG_ANNOTATION = "networkoperator.openshift.io/rollout-hung"

_OVN_DAEMONSET_NAMES = frozenset({"ovnkube-master", "ovnkube-node"})


@dataclass
class DaemonSetStatus:
    """Rollout counters reported for a daemonset."""

    current_number_scheduled: int = 0
    desired_number_scheduled: int = 0
    number_available: int = 0
    number_unavailable: int = 0
    number_misscheduled: int = 0
    number_ready: int = 0
    observed_generation: int = 0
    updated_number_scheduled: int = 0


@dataclass
class DaemonSet:
    """The parts of an existing daemonset that rollout decisions look at."""

    name: str = ""
    namespace: str = ""
    annotations: dict[str, str] = field(default_factory=dict)
    generation: int = 0
    status: DaemonSetStatus = field(default_factory=DaemonSetStatus)


def ip_family_mode(conf: NetworkSpec) -> str:
    """The IP family mode implied by the service networks."""
    if len(conf.service_network) == 2:
        return IP_FAMILY_DUAL_STACK
    return IP_FAMILY_SINGLE_STACK


def should_update_on_ip_family_change(
    existing_node: DaemonSet | None,
    existing_master: DaemonSet | None,
    family_mode: str,
) -> tuple[bool, bool]:
    """Decide whether to update (node, master) on an IP family mode change.

    Masters are rolled out first; nodes follow once the master rollout is done.
    """
    if existing_node is None or existing_master is None:
        return True, True

    node_mode = (existing_node.annotations or {}).get(NETWORK_IP_FAMILY_MODE_ANNOTATION, "")
    master_mode = (existing_master.annotations or {}).get(NETWORK_IP_FAMILY_MODE_ANNOTATION, "")
    if not node_mode or not master_mode:
        return True, True
    if node_mode == family_mode and master_mode == family_mode:
        return True, True
    if master_mode != family_mode:
        logger.info(
            "IP family mode change detected to %s, updating OVN-Kubernetes master", family_mode
        )
        return False, True
    if daemonset_progressing(existing_master, False):
        logger.info(
            "Waiting for OVN-Kubernetes master daemonset IP family mode rollout "
            "before updating node"
        )
        return False, True
    logger.info(
        "OVN-Kubernetes master daemonset rollout complete, updating IP family mode "
        "on node daemonset"
    )
    return True, True


def daemonset_progressing(ds: DaemonSet, allow_hung: bool) -> bool:
    """Whether a daemonset is still rolling out a change.

    With allow_hung, a rollout marked as hung with at most max(10%, 1) of the
    pods behind counts as done.
    """
    status = ds.status
    progressing = (
        status.updated_number_scheduled < status.desired_number_scheduled
        or status.number_unavailable > 0
        or status.number_available == 0
        or ds.generation > status.observed_generation
    )
    logger.info(
        "daemonset %s/%s rollout %s; %d/%d scheduled; %d unavailable; %d available; "
        "generation %d -> %d",
        ds.namespace,
        ds.name,
        "progressing" if progressing else "complete",
        status.updated_number_scheduled,
        status.desired_number_scheduled,
        status.number_unavailable,
        status.number_available,
        ds.generation,
        status.observed_generation,
    )
    if not progressing:
        return False

    if allow_hung:
        hung = ROLLOUT_HUNG_ANNOTATION in (ds.annotations or {})
        max_behind = max(1, math.floor(status.desired_number_scheduled * 0.1))
        num_behind = status.desired_number_scheduled - status.updated_number_scheduled
        if hung and num_behind <= max_behind:
            logger.warning(
                "daemonset %s/%s rollout seems to have hung with %d/%d behind, force-continuing",
                ds.namespace,
                ds.name,
                num_behind,
                status.desired_number_scheduled,
            )
            return False
    return True


def _nested_map(obj: MutableMapping[str, Any], *path: str) -> MutableMapping[str, Any]:
    """Return the map at path, creating missing levels."""
    current = obj
    for key in path:
        child = current.get(key)
        if child is None:
            child = {}
            current[key] = child
        elif not isinstance(child, MutableMapping):
            raise ConfigError(
                f"{'.'.join(path)} accessor error: {key} is of type "
                f"{type(child).__name__}, expected a map"
            )
        current = child
    return current


def set_daemonset_annotation(
    objs: Iterable[MutableMapping[str, Any]], key: str, value: str
) -> None:
    """Annotate the OVN master and node daemonsets and their pod templates.

    Changing the template annotation forces the daemonset to roll out.
    """
    for obj in objs:
        metadata = obj.get("metadata") or {}
        if (
            obj.get("apiVersion") != "apps/v1"
            or obj.get("kind") != "DaemonSet"
            or metadata.get("name") not in _OVN_DAEMONSET_NAMES
        ):
            continue
        _nested_map(obj, "metadata", "annotations")[key] = value
        template_annotations = _nested_map(obj, "spec", "template", "metadata", "annotations")
        if any(not isinstance(v, str) for v in template_annotations.values()):
            raise ConfigError("spec.template.metadata.annotations must hold only strings")
        template_annotations[key] = value