import pytest

from ocmadm.join_preflight import (
    ClusterNameCheck,
    DeployModeCheck,
    HubKubeconfigCheck,
    valid_api_host,
)
from ocmadm.kubeconfig import AuthInfo, Cluster, Context, KubeConfig

VALID_KUBECONFIG = """\
apiVersion: v1
kind: Config
clusters:
- name: managed
  cluster:
    server: https://1.2.3.4:6443
contexts:
- name: managed
  context:
    cluster: managed
    user: admin
current-context: managed
users:
- name: admin
  user:
    token: token
"""


def _errors(result):
    return [str(e) for e in result.errors]


def _config_with_ca() -> KubeConfig:
    return KubeConfig(
        clusters={"hub": Cluster(server="https://1.2.3.4", certificate_authority_data=b"ca")},
        contexts={"bootstrap": Context(cluster="hub", auth_info="bootstrap")},
        auth_infos={"bootstrap": AuthInfo(token="token")},
        current_context="bootstrap",
    )


def test_hub_kubeconfig_none():
    result = HubKubeconfigCheck(config=None).check()
    assert result.warnings == []
    assert _errors(result) == ["no hubconfig found"]


def test_hub_kubeconfig_cluster_length():
    result = HubKubeconfigCheck(config=KubeConfig()).check()
    assert _errors(result) == ["error cluster length"]


def test_hub_kubeconfig_invalid_apiserver():
    config = KubeConfig(clusters={"": Cluster(server="1.2.3.4")})
    result = HubKubeconfigCheck(config=config).check()
    assert _errors(result) == ["--hub-apiserver should start with http:// or https://"]


def test_hub_kubeconfig_without_ca():
    config = KubeConfig(clusters={"": Cluster(server="https://1.2.3.4")})
    result = HubKubeconfigCheck(config=config).check()
    assert result.warnings == ["no ca detected, creating hub kubeconfig without ca"]
    assert result.errors == []


def test_hub_kubeconfig_no_cluster_api():
    result = HubKubeconfigCheck(config=_config_with_ca(), discovery=lambda config: []).check()
    assert _errors(result) == ["no apigroup cluster.open-cluster-management.io/v1 detected"]


def test_hub_kubeconfig_with_cluster_api():
    seen = []

    def discovery(config):
        seen.append(config)
        return ["managedclusters"]

    config = _config_with_ca()
    result = HubKubeconfigCheck(config=config, discovery=discovery).check()
    assert result.errors == []
    assert seen == [config]


def test_hub_kubeconfig_discovery_failure():
    def discovery(config):
        raise ConnectionError("connection refused")

    result = HubKubeconfigCheck(config=_config_with_ca(), discovery=discovery).check()
    assert _errors(result) == ["connection refused"]


def test_deploy_mode_invalid():
    result = DeployModeCheck(mode="Other").check()
    assert _errors(result) == ["deploy mode should be default or hosted"]


def test_deploy_mode_default_with_file():
    result = DeployModeCheck(mode="Default", managed_kubeconfig_file="kubeconfig").check()
    assert _errors(result) == ["--managed-cluster-kubeconfig should not be set in default deploy mode"]


def test_deploy_mode_default_ok():
    assert DeployModeCheck(mode="Default").check().errors == []


def test_deploy_mode_hosted_without_file():
    result = DeployModeCheck(mode="Hosted").check()
    assert _errors(result) == ["--managed-cluster-kubeconfig should be set in hosted deploy mode"]


def test_deploy_mode_hosted_bad_file(tmp_path):
    result = DeployModeCheck(mode="Hosted", managed_kubeconfig_file=str(tmp_path / "missing")).check()
    assert len(result.errors) == 1
    assert str(result.errors[0]).startswith("validate managed kubeconfig file failed:")


def test_deploy_mode_hosted_internal_skips_validation(tmp_path):
    result = DeployModeCheck(
        mode="Hosted", internal_endpoint=True, managed_kubeconfig_file=str(tmp_path / "missing")
    ).check()
    assert result.errors == []


def test_deploy_mode_hosted_valid_file(tmp_path):
    path = tmp_path / "managed"
    path.write_text(VALID_KUBECONFIG)
    assert DeployModeCheck(mode="Hosted", managed_kubeconfig_file=str(path)).check().errors == []


@pytest.mark.parametrize("name, ok", [("cluster1", True), ("my-cluster", True), ("Cluster1", False), ("bad-", False), ("", False)])
def test_cluster_name_check(name, ok):
    result = ClusterNameCheck(name).check()
    assert (result.errors == []) is ok


@pytest.mark.parametrize(
    "host, expected",
    [("http://a", True), ("https://1.2.3.4", True), ("1.2.3.4", False), ("ftp://a", False)],
)
def test_valid_api_host(host, expected):
    assert valid_api_host(host) is expected