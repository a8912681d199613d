"""Preflight checks run before a cluster joins a hub."""

from __future__ import annotations

import json
import re
import ssl
import urllib.request
from dataclasses import dataclass
from typing import Callable, ClassVar, Sequence

from ocmadm.init_preflight import CheckResult
from ocmadm.kubeconfig import KubeConfig, load_kubeconfig

INSTALL_MODE_DEFAULT = "Default"
INSTALL_MODE_HOSTED = "Hosted"
CLUSTER_GROUP_VERSION = "cluster.open-cluster-management.io/v1"

_DNS_LABEL = re.compile(r"[a-z0-9]([-a-z0-9]*[a-z0-9])?")
_DNS_LABEL_TEXT = "`^[a-z0-9]([-a-z0-9]*[a-z0-9])?$`"


def valid_api_host(host: str) -> bool:
    """True when the address names an http or https scheme."""
    return host.startswith(("http://", "https://"))


def _discover_cluster_resources(config: KubeConfig) -> list[str]:
    """Ask the API server for its version and the cluster API resources."""
    cluster = next(iter(config.clusters.values()))
    context = config.contexts.get(config.current_context)
    auth = config.auth_infos.get(context.auth_info) if context else None

    cadata = cluster.certificate_authority_data.decode("ascii") if cluster.certificate_authority_data else None
    tls_context = ssl.create_default_context(cadata=cadata)
    if cluster.insecure_skip_tls_verify:
        tls_context.check_hostname = False
        tls_context.verify_mode = ssl.CERT_NONE

    headers = {"Accept": "application/json"}
    if auth is not None and auth.token:
        headers["Authorization"] = f"Bearer {auth.token}"
    base = cluster.server.rstrip("/")

    def fetch(path: str):
        request = urllib.request.Request(base + path, headers=headers)
        with urllib.request.urlopen(request, context=tls_context, timeout=30) as response:
            return json.load(response)

    fetch("/version")
    document = fetch(f"/apis/{CLUSTER_GROUP_VERSION}")
    return [resource["name"] for resource in document.get("resources") or []]


@dataclass
class HubKubeconfigCheck:
    """Validate the bootstrap kubeconfig built for the hub."""

    config: KubeConfig | None
    discovery: Callable[[KubeConfig], Sequence[str]] = _discover_cluster_resources
    name: ClassVar[str] = "HubKubeconfig check"

    def check(self) -> CheckResult:
        if self.config is None:
            return CheckResult(errors=[ValueError("no hubconfig found")])
        if len(self.config.clusters) != 1:
            return CheckResult(errors=[ValueError("error cluster length")])
        cluster = next(iter(self.config.clusters.values()))
        if not valid_api_host(cluster.server):
            return CheckResult(
                errors=[ValueError("--hub-apiserver should start with http:// or https://")]
            )
        if cluster.certificate_authority_data is None:
            return CheckResult(warnings=["no ca detected, creating hub kubeconfig without ca"])
        try:
            resources = self.discovery(self.config)
        except Exception as exc:
            return CheckResult(errors=[exc])
        if not resources:
            return CheckResult(
                errors=[ValueError(f"no apigroup {CLUSTER_GROUP_VERSION} detected")]
            )
        return CheckResult()


@dataclass
class DeployModeCheck:
    """Validate the deploy mode and the managed kubeconfig it requires."""

    mode: str
    internal_endpoint: bool = False
    managed_kubeconfig_file: str = ""
    name: ClassVar[str] = "DeployMode Check"

    def check(self) -> CheckResult:
        if self.mode not in (INSTALL_MODE_DEFAULT, INSTALL_MODE_HOSTED):
            return CheckResult(errors=[ValueError("deploy mode should be default or hosted")])
        if self.mode == INSTALL_MODE_DEFAULT:
            if self.managed_kubeconfig_file:
                return CheckResult(
                    errors=[ValueError("--managed-cluster-kubeconfig should not be set in default deploy mode")]
                )
            return CheckResult()
        if not self.managed_kubeconfig_file:
            return CheckResult(
                errors=[ValueError("--managed-cluster-kubeconfig should be set in hosted deploy mode")]
            )
        # An in-cluster kubeconfig cannot be reached from here, so it is not validated.
        if not self.internal_endpoint:
            try:
                load_kubeconfig(self.managed_kubeconfig_file).current_cluster()
            except (OSError, ValueError) as exc:
                return CheckResult(
                    errors=[ValueError(f"validate managed kubeconfig file failed: {exc}")]
                )
        return CheckResult()


@dataclass
class ClusterNameCheck:
    """The cluster name must be a DNS label."""

    cluster_name: str
    name: ClassVar[str] = "ClusterName Check"

    def check(self) -> CheckResult:
        if _DNS_LABEL.fullmatch(self.cluster_name):
            return CheckResult()
        return CheckResult(
            errors=[ValueError(f"validate ClusterName failed: should match {_DNS_LABEL_TEXT}")]
        )