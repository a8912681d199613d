"""Kubeconfig model with YAML reading and writing."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class Cluster:
    """A cluster entry of a kubeconfig."""

    server: str = ""
    insecure_skip_tls_verify: bool = False
    certificate_authority: str = ""
    certificate_authority_data: bytes | None = None
    tls_server_name: str = ""
    proxy_url: str = ""
    location_of_origin: str = ""


@dataclass
class Context:
    """A context entry linking a cluster and a user."""

    cluster: str = ""
    auth_info: str = ""
    namespace: str = ""


@dataclass
class AuthInfo:
    """A user entry of a kubeconfig."""

    token: str = ""


@dataclass
class KubeConfig:
    """A kubeconfig with named clusters, contexts and users."""

    clusters: dict[str, Cluster] = field(default_factory=dict)
    contexts: dict[str, Context] = field(default_factory=dict)
    auth_infos: dict[str, AuthInfo] = field(default_factory=dict)
    current_context: str = ""

    def current_cluster(self) -> Cluster:
        """Return the cluster the current context points at."""
        context = self.contexts.get(self.current_context)
        if context is None:
            raise ValueError(
                "failed to find the given Current Context in Contexts of the kubeconfig"
            )
        cluster = self.clusters.get(context.cluster)
        if cluster is None:
            raise ValueError(
                "failed to find the given CurrentContext Cluster in Clusters of the kubeconfig"
            )
        return cluster

    def to_yaml(self) -> str:
        """Serialise to the v1 kubeconfig YAML layout."""
        document = {
            "apiVersion": "v1",
            "kind": "Config",
            "clusters": [
                {"name": name, "cluster": _cluster_to_dict(cluster)}
                for name, cluster in self.clusters.items()
            ],
            "contexts": [
                {"name": name, "context": _context_to_dict(context)}
                for name, context in self.contexts.items()
            ],
            "users": [
                {"name": name, "user": {"token": auth.token} if auth.token else {}}
                for name, auth in self.auth_infos.items()
            ],
            "current-context": self.current_context,
            "preferences": {},
        }
        return yaml.safe_dump(document, sort_keys=False, default_flow_style=False)


def _cluster_to_dict(cluster: Cluster) -> dict:
    out: dict = {"server": cluster.server}
    if cluster.certificate_authority:
        out["certificate-authority"] = cluster.certificate_authority
    if cluster.certificate_authority_data:
        out["certificate-authority-data"] = base64.b64encode(
            cluster.certificate_authority_data
        ).decode("ascii")
    if cluster.insecure_skip_tls_verify:
        out["insecure-skip-tls-verify"] = True
    if cluster.tls_server_name:
        out["tls-server-name"] = cluster.tls_server_name
    if cluster.proxy_url:
        out["proxy-url"] = cluster.proxy_url
    return out


def _context_to_dict(context: Context) -> dict:
    out = {"cluster": context.cluster, "user": context.auth_info}
    if context.namespace:
        out["namespace"] = context.namespace
    return out


def _named_entries(document: dict, key: str, inner: str):
    entries = document.get(key) or []
    if not isinstance(entries, list):
        raise ValueError(f"kubeconfig field {key!r} must be a list")
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError(f"kubeconfig field {key!r} holds a malformed entry")
        body = entry.get(inner) or {}
        if not isinstance(body, dict):
            raise ValueError(f"kubeconfig entry {inner!r} must be a mapping")
        yield str(entry.get("name") or ""), body


def parse_kubeconfig(text: str) -> KubeConfig:
    """Parse kubeconfig YAML text."""
    document = yaml.safe_load(text) or {}
    if not isinstance(document, dict):
        raise ValueError("kubeconfig must be a YAML mapping")

    clusters = {}
    for name, body in _named_entries(document, "clusters", "cluster"):
        ca_data = body.get("certificate-authority-data")
        clusters[name] = Cluster(
            server=str(body.get("server") or ""),
            insecure_skip_tls_verify=bool(body.get("insecure-skip-tls-verify", False)),
            certificate_authority=str(body.get("certificate-authority") or ""),
            certificate_authority_data=base64.b64decode(ca_data, validate=True) if ca_data else None,
            tls_server_name=str(body.get("tls-server-name") or ""),
            proxy_url=str(body.get("proxy-url") or ""),
        )
    contexts = {
        name: Context(
            cluster=str(body.get("cluster") or ""),
            auth_info=str(body.get("user") or ""),
            namespace=str(body.get("namespace") or ""),
        )
        for name, body in _named_entries(document, "contexts", "context")
    }
    auth_infos = {
        name: AuthInfo(token=str(body.get("token") or ""))
        for name, body in _named_entries(document, "users", "user")
    }
    return KubeConfig(
        clusters=clusters,
        contexts=contexts,
        auth_infos=auth_infos,
        current_context=str(document.get("current-context") or ""),
    )


def load_kubeconfig(path) -> KubeConfig:
    """Read a kubeconfig file, recording where each cluster came from."""
    path = Path(path)
    config = parse_kubeconfig(path.read_text())
    for cluster in config.clusters.values():
        cluster.location_of_origin = str(path)
        ca_path = cluster.certificate_authority
        if ca_path and not Path(ca_path).is_absolute():
            cluster.certificate_authority = str(path.parent / ca_path)
    return config


def proxy_kubeconfig(token: str) -> KubeConfig:
    """Kubeconfig pointing at the local proxy, authenticated with a token."""
    return KubeConfig(
        clusters={"cluster": Cluster(server="https://localhost:9090", insecure_skip_tls_verify=True)},
        contexts={"context": Context(cluster="cluster", auth_info="user")},
        auth_infos={"user": AuthInfo(token=token)},
        current_context="context",
    )