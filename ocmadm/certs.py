"""PEM certificate bundles and TLS settings for the proxy tunnel."""

from __future__ import annotations

import base64
import binascii
import re
import ssl
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Mapping, Sequence

from cryptography import x509

_PEM_BLOCK = re.compile(
    rb"-----BEGIN ([A-Z0-9 ]+)-----\r?\n(.*?)-----END \1-----",
    re.DOTALL,
)
_CERTIFICATE = b"CERTIFICATE"
_NO_CERTIFICATES = "data does not contain any valid RSA or ECDSA certificates"


@dataclass(frozen=True)
class ProxyCertificates:
    """CA, server and client credentials of the proxy server."""

    ca: bytes = b""
    server_cert: bytes = b""
    server_key: bytes = b""
    client_cert: bytes = b""
    client_key: bytes = b""


def _pem_blocks(data: bytes) -> Iterator[tuple[bytes, bytes]]:
    """Yield (type, DER bytes) for every well-formed PEM block."""
    for match in _PEM_BLOCK.finditer(data):
        body = b"".join(
            line for line in match.group(2).split() if b":" not in line
        )
        try:
            yield match.group(1), base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError):
            continue


def _parse_certificates(bundle: bytes) -> list[bytes]:
    """Return the DER bytes of each certificate in a PEM bundle."""
    certificates = []
    for block_type, der in _pem_blocks(bundle):
        if block_type != _CERTIFICATE:
            continue
        try:
            x509.load_der_x509_certificate(der)
        except ValueError as exc:
            raise ValueError(f"invalid certificate in PEM data: {exc}") from exc
        certificates.append(der)
    if not certificates:
        raise ValueError(_NO_CERTIFICATES)
    return certificates


def _encode_pem(der: bytes) -> bytes:
    encoded = base64.b64encode(der)
    lines = [encoded[start:start + 64] for start in range(0, len(encoded), 64)]
    return b"".join(
        [b"-----BEGIN CERTIFICATE-----\n"]
        + [line + b"\n" for line in lines]
        + [b"-----END CERTIFICATE-----\n"]
    )


def merge_certificate_data(*args: bytes) -> bytes:
    """Merge PEM bundles into one, dropping duplicate certificates.

    Empty bundles are skipped; a non-empty bundle without a valid
    certificate raises ValueError.
    """
    merged: list[bytes] = []
    for bundle in args:
        if not bundle:
            continue
        for der in _parse_certificates(bundle):
            if der not in merged:
                merged.append(der)
    return b"".join(_encode_pem(der) for der in merged)


class _ClientTLSContext(ssl.SSLContext):
    """A client context that remembers the server name to verify."""

    server_name: str = ""

    def wrap_socket(self, sock, *args, server_hostname=None, **kwargs):
        return super().wrap_socket(
            sock, *args, server_hostname=server_hostname or self.server_name or None, **kwargs
        )

    def wrap_bio(self, incoming, outgoing, *args, server_hostname=None, **kwargs):
        return super().wrap_bio(
            incoming,
            outgoing,
            *args,
            server_hostname=server_hostname or self.server_name or None,
            **kwargs,
        )


def build_tls_context(
    ca_data: bytes,
    cert_data: bytes,
    key_data: bytes,
    server_name: str,
    protocols: Sequence[str] | None = None,
) -> ssl.SSLContext:
    """Build a TLS 1.2+ client context trusting only the given CA bundle.

    Unparsable CA entries are ignored; a certificate and key that do not
    form a valid pair raise ValueError.
    """
    context = _ClientTLSContext(ssl.PROTOCOL_TLS_CLIENT)
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.server_name = server_name

    trusted = b""
    for block_type, der in _pem_blocks(ca_data or b""):
        if block_type != _CERTIFICATE:
            continue
        try:
            x509.load_der_x509_certificate(der)
        except ValueError:
            continue
        trusted += der
    if trusted:
        context.load_verify_locations(cadata=trusted)

    with tempfile.TemporaryDirectory() as directory:
        cert_path = Path(directory) / "tls.crt"
        key_path = Path(directory) / "tls.key"
        cert_path.write_bytes(cert_data or b"")
        key_path.write_bytes(key_data or b"")
        try:
            context.load_cert_chain(str(cert_path), str(key_path))
        except ssl.SSLError as exc:
            raise ValueError(f"invalid client certificate or key: {exc}") from exc

    if protocols:
        context.set_alpn_protocols(list(protocols))
    return context


def proxy_certificates_from_secrets(
    ca_secret: Mapping[str, bytes],
    server_secret: Mapping[str, bytes],
    client_secret: Mapping[str, bytes],
) -> ProxyCertificates:
    """Collect proxy credentials from the data of the three proxy secrets."""
    return ProxyCertificates(
        ca=ca_secret.get("ca.crt", b""),
        server_cert=server_secret.get("tls.crt", b""),
        server_key=server_secret.get("tls.key", b""),
        client_cert=client_secret.get("tls.crt", b""),
        client_key=client_secret.get("tls.key", b""),
    )