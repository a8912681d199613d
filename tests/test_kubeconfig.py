import pytest

from ocmadm.kubeconfig import (
    AuthInfo,
    Cluster,
    Context,
    KubeConfig,
    load_kubeconfig,
    parse_kubeconfig,
    proxy_kubeconfig,
)

KUBECONFIG_TEXT = """\
apiVersion: v1
kind: Config
clusters:
- name: local
  cluster:
    server: https://localhost:8443
contexts:
- name: local
  context:
    cluster: local
    user: admin
current-context: local
users:
- name: admin
  user:
    token: token
"""


@pytest.fixture
def kubeconfig_file(tmp_path):
    path = tmp_path / "kubeconfig"
    path.write_text(KUBECONFIG_TEXT)
    return path


def test_load_current_cluster(kubeconfig_file):
    config = load_kubeconfig(kubeconfig_file)
    assert config.current_cluster() == Cluster(
        server="https://localhost:8443", location_of_origin=str(kubeconfig_file)
    )


def test_load_reads_users_and_contexts(kubeconfig_file):
    config = load_kubeconfig(kubeconfig_file)
    assert config.auth_infos["admin"].token == "token"
    assert config.contexts["local"] == Context(cluster="local", auth_info="admin")


def test_missing_current_context():
    config = KubeConfig(clusters={"a": Cluster(server="https://x")}, current_context="nope")
    with pytest.raises(ValueError, match="Current Context in Contexts"):
        config.current_cluster()


def test_missing_current_cluster():
    config = KubeConfig(contexts={"c": Context(cluster="gone")}, current_context="c")
    with pytest.raises(ValueError, match="CurrentContext Cluster in Clusters"):
        config.current_cluster()


def test_yaml_round_trip():
    config = KubeConfig(
        clusters={
            "hub": Cluster(
                server="https://1.2.3.4:6443",
                certificate_authority_data=b"-----BEGIN CERTIFICATE-----\n",
                proxy_url="http://proxy.example.com:3128",
            )
        },
        contexts={"ctx": Context(cluster="hub", auth_info="bootstrap", namespace="default")},
        auth_infos={"bootstrap": AuthInfo(token="token")},
        current_context="ctx",
    )
    assert parse_kubeconfig(config.to_yaml()) == config


def test_yaml_encodes_ca_as_base64():
    config = KubeConfig(clusters={"": Cluster(server="https://h", certificate_authority_data=b"abc")})
    assert "certificate-authority-data: YWJj" in config.to_yaml()


def test_parse_rejects_non_mapping():
    with pytest.raises(ValueError):
        parse_kubeconfig("- just\n- a list\n")


def test_load_missing_file():
    with pytest.raises(FileNotFoundError):
        load_kubeconfig("invalid_path")


def test_proxy_kubeconfig():
    config = proxy_kubeconfig("token")
    cluster = config.current_cluster()
    assert cluster.server == "https://localhost:9090"
    assert cluster.insecure_skip_tls_verify is True
    assert config.auth_infos["user"].token == "token"
    assert config.contexts["context"] == Context(cluster="cluster", auth_info="user")