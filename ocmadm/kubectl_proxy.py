"""Running kubectl against a managed cluster through the cluster-proxy tunnel."""

from __future__ import annotations

import os
import subprocess
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from ocmadm.kubeconfig import proxy_kubeconfig

LOCAL_PROXY_PORT = 8090
HTTP_PROXY_SERVER_PORT = 9090

_WELCOME = 'Please enter the kubectl command and use "exit" to quit the interactive mode\n'
_PROMPT = "kubectl> "
_GOODBYE = "Exit from interactive mode"


@dataclass
class KubectlProxyOptions:
    """Options of the proxy kubectl command."""

    cluster: str = ""
    managed_service_account: str = ""
    kubectl_args: str = ""
    interactive_mode: bool = False

    def validate(self) -> None:
        """Raise ValueError when the cluster or service account is missing."""
        if not self.cluster:
            raise ValueError("cluster is required")
        if not self.managed_service_account:
            raise ValueError("managedServiceAccount is required")


def write_temp_kubeconfig(cluster: str, token: str, directory=None) -> Path:
    """Write a kubeconfig for the local proxy to a uniquely named file."""
    base = Path(directory) if directory is not None else Path(tempfile.gettempdir())
    path = base / f"{cluster}-{uuid.uuid4()}.kubeconfig"
    path.write_text(proxy_kubeconfig(token).to_yaml())
    path.chmod(0o644)
    return path


def run_kubectl_command(kubeconfig_path, args: str) -> bytes:
    """Run kubectl with the given space separated arguments.

    Returns stdout and stderr combined; a failure to start kubectl yields
    empty output, as does any output of a failing command but its text.
    """
    env = dict(os.environ)
    env["KUBECONFIG"] = str(kubeconfig_path)
    try:
        completed = subprocess.run(
            ["kubectl", *args.split(" ")],
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=False,
        )
    except OSError:
        return b""
    return completed.stdout or b""


def interactive_loop(kubeconfig_path, stdin: TextIO, stdout: TextIO) -> None:
    """Read kubectl arguments line by line until "exit" and print each result."""
    stdout.write(_WELCOME)
    while True:
        stdout.write(_PROMPT)
        line = stdin.readline()
        if not line.endswith("\n"):
            raise EOFError("read input failed")
        command = line.rstrip("\n")
        if command == "exit":
            stdout.write(_GOODBYE)
            return
        result = run_kubectl_command(kubeconfig_path, command)
        stdout.write(result.decode("utf-8", errors="replace"))