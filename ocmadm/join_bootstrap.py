"""Bootstrap kubeconfigs and manifest selection for joining a cluster to a hub."""

from __future__ import annotations

import base64
import copy
from pathlib import Path

from ocmadm.certs import merge_certificate_data
from ocmadm.join_values import JoinOptions
from ocmadm.kubeconfig import AuthInfo, Cluster, Context, KubeConfig

HUB_CLUSTER_NAME = "hub"
BOOTSTRAP_NAME = "bootstrap"
BOOTSTRAP_NAMESPACE = "default"


def _first_cluster(config: KubeConfig) -> Cluster:
    try:
        return next(iter(config.clusters.values()))
    except StopIteration:
        raise ValueError("the hub kubeconfig holds no cluster") from None


def bootstrap_kubeconfig(server: str, token: str) -> KubeConfig:
    """Kubeconfig that reaches the hub with a token and without CA verification."""
    return KubeConfig(
        clusters={
            HUB_CLUSTER_NAME: Cluster(server=server, insecure_skip_tls_verify=True),
        },
        auth_infos={BOOTSTRAP_NAME: AuthInfo(token=token)},
        contexts={
            BOOTSTRAP_NAME: Context(
                cluster=HUB_CLUSTER_NAME,
                auth_info=BOOTSTRAP_NAME,
                namespace=BOOTSTRAP_NAMESPACE,
            ),
        },
        current_context=BOOTSTRAP_NAME,
    )


def hub_kubeconfig(bootstrap: KubeConfig, server: str, ca_data: bytes | None) -> KubeConfig:
    """Copy of the bootstrap kubeconfig that verifies the hub with the given CA."""
    config = copy.deepcopy(bootstrap)
    cluster = _first_cluster(config)
    cluster.insecure_skip_tls_verify = False
    cluster.server = server
    cluster.certificate_authority_data = ca_data
    return config


def apply_hub_settings(
    options: JoinOptions,
    config: KubeConfig,
    in_cluster_endpoint: str = "",
    proxy_ca_data: bytes | None = None,
) -> str:
    """Apply endpoint and proxy settings to the hub kubeconfig and encode it.

    The kubeconfig is changed in place. The base64 encoded YAML is returned
    and, when the options carry values, stored as the hub kubeconfig value.
    """
    cluster = _first_cluster(config)
    if options.force_hub_in_cluster_endpoint_lookup:
        cluster.server = in_cluster_endpoint

    if options.proxy_url:
        cluster.proxy_url = options.proxy_url
        if proxy_ca_data is None and options.proxy_ca_file:
            proxy_ca_data = Path(options.proxy_ca_file).read_bytes()
        if options.proxy_ca_file or proxy_ca_data:
            cluster.certificate_authority_data = merge_certificate_data(
                cluster.certificate_authority_data or b"", proxy_ca_data or b""
            )

    encoded = base64.b64encode(config.to_yaml().encode("utf-8")).decode("ascii")
    if options.values is not None:
        options.values.hub.kube_config = encoded
    return encoded


def klusterlet_files(options: JoinOptions, operator_available: bool) -> tuple[list[str], list[str]]:
    """Manifests to apply: the operator batch, then the klusterlet batch.

    The operator batch is empty when the registration operator is already
    available on the cluster.
    """
    operator: list[str] = []
    if not operator_available:
        if options.create_namespace:
            operator.append("join/namespace.yaml")
        operator.extend(
            [
                "join/klusterlets.crd.yaml",
                "join/service_account.yaml",
                "join/image-pull-secret.yaml",
                "join/cluster_role.yaml",
                "join/cluster_role_binding.yaml",
                "join/operator.yaml",
            ]
        )

    klusterlet: list[str] = []
    if options.create_namespace:
        # The bootstrap secret lives in the agent namespace, so it comes first.
        klusterlet.append("join/agent-namespace.yaml")
    klusterlet.append("bootstrap_hub_kubeconfig.yaml")
    if options.hosted:
        klusterlet.append("join/hosted/external_managed_kubeconfig.yaml")
    klusterlet.append("join/klusterlets.cr.yaml")
    return operator, klusterlet


def accept_hint(cluster_name: str, header: str) -> str:
    """Message telling the user how to accept the joining cluster on the hub."""
    return (
        "Please log onto the hub cluster and run the following command:\n\n"
        f"    {header} accept --clusters {cluster_name}\n\n"
        "This is not needed when the ManagedClusterAutoApproval feature is enabled\n"
    )