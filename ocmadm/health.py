"""Options and table output of the cluster-proxy health probe."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TextIO

ADDR_LOCALHOST = "127.0.0.1"
DEFAULT_PROXY_SERVER_PORT = 8090

IN_CLUSTER_SECRET_PROXY_CA = "proxy-server-ca"
IN_CLUSTER_SECRET_CLIENT = "proxy-client"

HEADER = ("CLUSTER NAME", "INSTALLED", "AVAILABLE", "PROBED HEALTH", "LATENCY")

_MIN_WIDTH = 4
_PADDING = 4


@dataclass
class HealthOptions:
    """Command-line options of the proxy health command."""

    in_cluster_proxy_cert_lookup: bool = True
    proxy_client_ca_cert_path: str = ""
    proxy_client_cert_path: str = ""
    proxy_client_key_path: str = ""
    proxy_server_host: str = ADDR_LOCALHOST
    proxy_server_port: int = DEFAULT_PROXY_SERVER_PORT
    clusters: list[str] = field(default_factory=list)
    is_proxy_client_cert_provided: bool = False
    is_proxy_server_address_provided: bool = False

    def complete(self) -> None:
        """Work out whether an external proxy server address was given."""
        if (
            self.proxy_client_ca_cert_path
            and self.proxy_client_cert_path
            and self.proxy_client_key_path
        ):
            self.is_proxy_server_address_provided = True
        if self.proxy_server_host != ADDR_LOCALHOST:
            self.is_proxy_server_address_provided = True

    def validate(self) -> None:
        """Require local credentials when in-cluster lookup is disabled."""
        if self.in_cluster_proxy_cert_lookup:
            return
        if not self.proxy_client_ca_cert_path:
            raise ValueError("--proxy-ca-cert must be set when in-cluster lookup is disabled")
        if not self.proxy_client_cert_path:
            raise ValueError("--proxy-cert must be set when in-cluster lookup is disabled")
        if not self.proxy_client_key_path:
            raise ValueError("--proxy-key must be set when in-cluster lookup is disabled")


class HealthTableWriter:
    """Collects health rows and writes them as an aligned table on flush."""

    def __init__(self, out: TextIO) -> None:
        self._out = out
        self._rows: list[tuple[str, ...]] = [HEADER]

    def print(
        self, cluster_name: str, installed: str, available: str, health: str, latency: str
    ) -> None:
        self._rows.append((cluster_name, installed, available, health, latency))

    def flush(self) -> None:
        """Write the buffered rows, aligning every column but the last."""
        if not self._rows:
            return
        aligned = len(HEADER) - 1
        widths = [
            max(_MIN_WIDTH, max(len(row[column]) for row in self._rows) + _PADDING)
            for column in range(aligned)
        ]
        for row in self._rows:
            cells = "".join(cell.ljust(width) for cell, width in zip(row, widths))
            self._out.write(cells + row[aligned] + "\n")
        self._rows = []