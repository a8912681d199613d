# ocmadm

`ocmadm` is a library of building blocks for registering managed clusters
with an Open Cluster Management (OCM) hub. It holds the parts of that
workflow that are plain logic: preflight checks, kubeconfig reading and
writing, PEM certificate bundles and TLS settings, the template values and
manifest selection for joining a cluster, and the helpers behind the
cluster-proxy `health` table and `kubectl` runner.

It requires Python 3.10 or later and depends on `pyyaml` and `cryptography`.

## Modules

| Module | What it provides |
| --- | --- |
| `ocmadm.kube` | `ConfigMap`, `InMemoryConfigMapClient` (a ConfigMap store that records each `get`/`create`/`update` call in `actions`), `NotFoundError`, `AlreadyExistsError` and `create_or_update_config_map` |
| `ocmadm.kubeconfig` | `Cluster`, `Context`, `AuthInfo`, `KubeConfig` (with `current_cluster()` and `to_yaml()`), `parse_kubeconfig`, `load_kubeconfig` and `proxy_kubeconfig` |
| `ocmadm.init_preflight` | Hub preflight checks `SingletonControlplaneCheck`, `HubApiServerCheck` and `ClusterInfoCheck`, each returning a `CheckResult` of warnings and errors; plus `check_server` and `create_cluster_info` |
| `ocmadm.join_preflight` | Join preflight checks `HubKubeconfigCheck`, `DeployModeCheck` and `ClusterNameCheck`, and `valid_api_host` |
| `ocmadm.certs` | `merge_certificate_data`, `build_tls_context`, `ProxyCertificates` and `proxy_certificates_from_secrets` |
| `ocmadm.join_values` | `JoinOptions` with `validate_required()` and `build_values(bundle)`, the values it builds (`JoinValues`, `Hub`, `Klusterlet`, `BundleVersion`, `RegistrationConfiguration`), and `format_mode` |
| `ocmadm.join_bootstrap` | `bootstrap_kubeconfig`, `hub_kubeconfig`, `apply_hub_settings`, `klusterlet_files` and `accept_hint` |
| `ocmadm.health` | `HealthOptions` (`complete()`, `validate()`) and `HealthTableWriter`, which buffers rows and writes an aligned table on `flush()` |
| `ocmadm.kubectl_proxy` | `KubectlProxyOptions`, `write_temp_kubeconfig`, `run_kubectl_command` and `interactive_loop` |

## Examples

Checking a hub API server address:

```python
from ocmadm.join_preflight import valid_api_host

valid_api_host("https://hub.example.com:6443")  # True
valid_api_host("1.2.3.4")                       # False
```

Warning when the hub is addressed by a domain name rather than an IP:

```python
from ocmadm.init_preflight import check_server

check_server("https://1.2.3.4:8443").warnings    # []
check_server("https://example.com:8443").warnings
# ['Hub Api Server is a domain name, maybe you should set HostAlias in klusterlet']
```

Normalising a deploy mode the way the join values are built:

```python
from ocmadm.join_values import format_mode

format_mode("HOSTED")   # "Hosted"
format_mode("default")  # "Default"
```

Creating or updating a ConfigMap against the in-memory client:

```python
from ocmadm.kube import ConfigMap, InMemoryConfigMapClient, create_or_update_config_map

client = InMemoryConfigMapClient()
create_or_update_config_map(
    client,
    ConfigMap(name="cluster-info", namespace="kube-public", data={"kubeconfig": "..."}),
)
client.actions  # ['create']
```

Building the hub kubeconfig for a joining cluster and choosing its manifests:

```python
from ocmadm.join_bootstrap import bootstrap_kubeconfig, hub_kubeconfig, klusterlet_files
from ocmadm.join_values import JoinOptions

bootstrap = bootstrap_kubeconfig("https://hub.example.com:6443", "token")
hub = hub_kubeconfig(bootstrap, "https://hub.example.com:6443", ca_data=None)

options = JoinOptions(token="token", hub_api_server="https://hub.example.com:6443",
                      cluster_name="cluster1")
operator_files, klusterlet_files_ = klusterlet_files(options, operator_available=False)
```

Merging PEM certificate bundles, dropping duplicates while keeping order:

```python
from ocmadm.certs import merge_certificate_data

merged = merge_certificate_data(hub_ca_pem, proxy_ca_pem)
```

## Running kubectl through the proxy

`ocmadm.kubectl_proxy.write_temp_kubeconfig` writes a kubeconfig that points
at `https://localhost:9090` and carries a managed service account token.
`run_kubectl_command` runs the `kubectl` found on `PATH` with that kubeconfig
and returns stdout and stderr combined. `interactive_loop` prompts with
`kubectl> `, runs each line it reads, and stops at `exit`.

## What this package does not do

- It has no command-line program; everything is called from Python.
- It does not initialise a hub: it has no hub template values, no hub
  manifest list and no join-command output for a new hub.
- It does not install the built-in hub add-ons.
- It ships no manifest templates and applies nothing to a cluster;
  `klusterlet_files` only returns the names of the manifests to apply.
- It talks to a Kubernetes API server only in `HubKubeconfigCheck`, which by
  default queries `/version` and the `cluster.open-cluster-management.io/v1`
  API group. ConfigMaps are handled through a client object you pass in;
  the one provided is `InMemoryConfigMapClient`.
- It does not open the cluster-proxy tunnel or serve the local endpoint at
  port 9090, and it does not probe cluster health; `ocmadm.health` only
  holds the options and formats the result table.