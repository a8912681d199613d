"""Preflight checks run before a hub is initialised."""

from __future__ import annotations

import dataclasses
import ipaddress
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar
from urllib.parse import urlsplit

from ocmadm.kube import ConfigMap, NotFoundError, create_or_update_config_map
from ocmadm.kubeconfig import Cluster, KubeConfig, load_kubeconfig

BOOTSTRAP_CONFIG_MAP = "cluster-info"
NAMESPACE_PUBLIC = "kube-public"

_DNS_LABEL = re.compile(r"[a-z0-9]([-a-z0-9]*[a-z0-9])?")
_DNS_LABEL_TEXT = "`^[a-z0-9]([-a-z0-9]*[a-z0-9])?$`"
_DOMAIN_WARNING = "Hub Api Server is a domain name, maybe you should set HostAlias in klusterlet"


@dataclass
class CheckResult:
    """Warnings and errors reported by a preflight check."""

    warnings: list[str] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)


@dataclass
class SingletonControlplaneCheck:
    """The singleton control plane name must be a DNS label."""

    controlplane_name: str
    name: ClassVar[str] = "SingletonControlplane check"

    def check(self) -> CheckResult:
        if _DNS_LABEL.fullmatch(self.controlplane_name):
            return CheckResult()
        return CheckResult(
            errors=[ValueError(f"validate ControlplaneName failed: should match {_DNS_LABEL_TEXT}")]
        )


def _split_host_port(hostport: str) -> str | None:
    """Return the host part, or None when no port is present."""
    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0:
            raise ValueError(f"address {hostport}: missing ']' in address")
        rest = hostport[end + 1:]
        if not rest:
            return None
        if not rest.startswith(":"):
            raise ValueError(f"address {hostport}: unexpected characters after ']'")
        return hostport[1:end]
    colons = hostport.count(":")
    if colons == 0:
        return None
    if colons > 1:
        raise ValueError(f"address {hostport}: too many colons in address")
    return hostport.partition(":")[0]


def check_server(server: str) -> CheckResult:
    """Warn when the hub API server is addressed by a domain name."""
    try:
        netloc = urlsplit(server).netloc
        host_port = netloc.rpartition("@")[2]
        host = _split_host_port(host_port)
    except ValueError as exc:
        return CheckResult(errors=[exc])
    if host is None:
        host = host_port
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return CheckResult(warnings=[_DOMAIN_WARNING])
    return CheckResult()


@dataclass
class HubApiServerCheck:
    """Inspect the server of the current kubeconfig cluster."""

    config_path: str | Path
    name: ClassVar[str] = "HubApiServer check"

    def check(self) -> CheckResult:
        try:
            cluster = load_kubeconfig(self.config_path).current_cluster()
        except (OSError, ValueError) as exc:
            return CheckResult(errors=[exc])
        return check_server(cluster.server)


def _flatten(cluster: Cluster) -> Cluster:
    """Inline a CA file reference into the cluster's CA data."""
    if not cluster.certificate_authority:
        return cluster
    data = Path(cluster.certificate_authority).read_bytes()
    return dataclasses.replace(cluster, certificate_authority="", certificate_authority_data=data)


def create_cluster_info(client, cluster: Cluster) -> None:
    """Create or update the public cluster-info ConfigMap for a cluster."""
    kubeconfig = KubeConfig(clusters={"": _flatten(cluster)})
    config_map = ConfigMap(
        name=BOOTSTRAP_CONFIG_MAP,
        namespace=NAMESPACE_PUBLIC,
        data={"kubeconfig": kubeconfig.to_yaml()},
        immutable=True,
    )
    create_or_update_config_map(client, config_map)


@dataclass
class ClusterInfoCheck:
    """Ensure the cluster-info ConfigMap exists and holds a kubeconfig."""

    namespace: str
    resource_name: str
    config_path: str | Path
    client: object
    name: ClassVar[str] = "cluster-info check"

    def check(self) -> CheckResult:
        try:
            config_map = self.client.get(self.namespace, self.resource_name)
        except NotFoundError:
            return self._create_missing()
        except Exception as exc:
            return CheckResult(errors=[exc])
        if not config_map.data.get("kubeconfig"):
            return CheckResult(errors=[ValueError("empty kubeconfig data in cluster-info")])
        return CheckResult()

    def _create_missing(self) -> CheckResult:
        warning = (
            "no ConfigMap named cluster-info in the kube-public namespace, clusteradm will creates it"
        )
        try:
            cluster = load_kubeconfig(self.config_path).current_cluster()
        except (OSError, ValueError) as exc:
            return CheckResult(errors=[exc])
        try:
            create_cluster_info(self.client, cluster)
        except (RuntimeError, OSError) as exc:
            return CheckResult(warnings=[warning], errors=[exc])
        return CheckResult(warnings=[warning])