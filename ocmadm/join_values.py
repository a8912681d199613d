"""Options of the join command and the template values derived from them."""

from __future__ import annotations

import base64
import secrets
import string
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

AGENT_NAMESPACE_PREFIX = "open-cluster-management-"
OPERATOR_NAMESPACE = "open-cluster-management"
DEFAULT_OPERATOR_NAME = "klusterlet"

INSTALL_MODE_DEFAULT = "Default"
INSTALL_MODE_HOSTED = "Hosted"
INSTALL_MODE_SINGLETON = "Singleton"
INSTALL_MODE_SINGLETON_HOSTED = "SingletonHosted"

DEFAULT_REGISTRY = "quay.io/open-cluster-management"
# base64 of '{}'
EMPTY_IMAGE_PULL_CRED = "e30K"
DEFAULT_CLIENT_CERT_EXPIRATION_SECONDS = 31536000

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def format_mode(mode: str) -> str:
    """Capitalise the first letter of a mode and lower-case the rest."""
    if not mode:
        return ""
    return mode[:1].upper() + mode[1:].lower()


def _random_suffix(length: int) -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(length))


@dataclass
class Hub:
    """Hub information used by the templates."""

    api_server: str = ""
    kube_config: str = ""


@dataclass
class Klusterlet:
    """Klusterlet configuration used by the templates."""

    api_server: str = ""
    mode: str = ""
    name: str = ""
    klusterlet_namespace: str = ""


@dataclass
class BundleVersion:
    """Image versions of the deployed components."""

    registration_image_version: str = ""
    placement_image_version: str = ""
    work_image_version: str = ""
    operator_image_version: str = ""

    @classmethod
    def from_mapping(cls, bundle: Mapping[str, str]) -> "BundleVersion":
        return cls(
            registration_image_version=bundle.get("registration", ""),
            placement_image_version=bundle.get("placement", ""),
            work_image_version=bundle.get("work", ""),
            operator_image_version=bundle.get("operator", ""),
        )


@dataclass
class RegistrationConfiguration:
    """Registration agent settings."""

    registration_features: list = field(default_factory=list)
    client_cert_expiration_seconds: int = DEFAULT_CLIENT_CERT_EXPIRATION_SECONDS


@dataclass
class JoinValues:
    """Values filled into the join manifests."""

    cluster_name: str = ""
    agent_namespace: str = ""
    hub: Hub = field(default_factory=Hub)
    klusterlet: Klusterlet = field(default_factory=Klusterlet)
    registry: str = ""
    image_pull_cred: str = EMPTY_IMAGE_PULL_CRED
    bundle_version: BundleVersion = field(default_factory=BundleVersion)
    managed_kubeconfig: str = ""
    registration_configuration: RegistrationConfiguration = field(
        default_factory=RegistrationConfiguration
    )
    work_features: list = field(default_factory=list)
    resource_qos_class: str = "Default"
    resource_limits: dict[str, str] = field(default_factory=dict)
    resource_requests: dict[str, str] = field(default_factory=dict)
    enable_sync_labels: bool = False


@dataclass
class JoinOptions:
    """Command-line options of the join command."""

    token: str = ""
    hub_api_server: str = ""
    ca_file: str = ""
    cluster_name: str = ""
    mode: str = "default"
    managed_kubeconfig_file: str = ""
    registry: str = DEFAULT_REGISTRY
    image_pull_cred_file: str = ""
    bundle_version: str = "default"
    singleton: bool = False
    output_file: str = ""
    wait: bool = False
    force_hub_in_cluster_endpoint_lookup: bool = False
    force_managed_in_cluster_endpoint_lookup: bool = False
    hub_in_cluster_endpoint: str = ""
    proxy_url: str = ""
    proxy_ca_file: str = ""
    resource_qos_class: str = "Default"
    resource_limits: dict[str, str] = field(default_factory=dict)
    resource_requests: dict[str, str] = field(default_factory=dict)
    create_namespace: bool = True
    enable_sync_labels: bool = False
    client_cert_expiration_seconds: int = DEFAULT_CLIENT_CERT_EXPIRATION_SECONDS
    registration_features: list = field(default_factory=list)
    work_features: list = field(default_factory=list)
    hub_ca_data: bytes | None = None
    values: JoinValues | None = None

    @property
    def hosted(self) -> bool:
        return format_mode(self.mode) == INSTALL_MODE_HOSTED

    def validate_required(self) -> None:
        """Raise ValueError when a required option is missing."""
        if not self.token:
            raise ValueError("token is missing")
        if not self.hub_api_server:
            raise ValueError("hub-server is missing")
        if not self.cluster_name:
            raise ValueError("cluster-name is missing")
        if not self.registry:
            raise ValueError(
                "the OCM image registry should not be empty, like quay.io/open-cluster-management"
            )
        if not self.mode:
            raise ValueError("the mode should not be empty, like default")

    def build_values(self, bundle) -> JoinValues:
        """Check the options, normalise the mode and build the template values.

        ``bundle`` is a BundleVersion or a mapping with the keys
        registration, placement, work and operator.
        """
        self.validate_required()
        self.mode = format_mode(self.mode)

        agent_namespace = AGENT_NAMESPACE_PREFIX + "agent"
        values = JoinValues(
            cluster_name=self.cluster_name,
            hub=Hub(api_server=self.hub_api_server),
            registry=self.registry,
            agent_namespace=agent_namespace,
            enable_sync_labels=self.enable_sync_labels,
        )

        if self.image_pull_cred_file:
            try:
                data = Path(self.image_pull_cred_file).read_bytes()
            except OSError as exc:
                raise OSError(
                    f"failed read the image pull credential file {self.image_pull_cred_file}: {exc}"
                ) from exc
            values.image_pull_cred = base64.b64encode(data).decode("ascii")

        klusterlet_name = DEFAULT_OPERATOR_NAME
        klusterlet_namespace = agent_namespace
        if self.mode == INSTALL_MODE_HOSTED:
            klusterlet_name += "-hosted-" + _random_suffix(6)
            agent_namespace = klusterlet_name
            klusterlet_namespace = AGENT_NAMESPACE_PREFIX + agent_namespace
            values.agent_namespace = agent_namespace

        values.klusterlet = Klusterlet(name=klusterlet_name, klusterlet_namespace=klusterlet_namespace)

        values.resource_qos_class = self.resource_qos_class
        values.resource_limits = dict(self.resource_limits or {})
        values.resource_requests = dict(self.resource_requests or {})

        values.managed_kubeconfig = self.managed_kubeconfig_file
        values.registration_configuration = RegistrationConfiguration(
            registration_features=list(self.registration_features),
            client_cert_expiration_seconds=self.client_cert_expiration_seconds,
        )
        values.work_features = list(self.work_features)

        if self.mode == INSTALL_MODE_HOSTED and self.singleton:
            values.klusterlet.mode = INSTALL_MODE_SINGLETON_HOSTED
        elif self.singleton:
            values.klusterlet.mode = INSTALL_MODE_SINGLETON
        else:
            values.klusterlet.mode = self.mode

        if isinstance(bundle, BundleVersion):
            values.bundle_version = bundle
        elif isinstance(bundle, Mapping):
            values.bundle_version = BundleVersion.from_mapping(bundle)
        else:
            raise TypeError("bundle must be a BundleVersion or a mapping")

        if self.ca_file:
            self.hub_ca_data = Path(self.ca_file).read_bytes()

        self.values = values
        return values