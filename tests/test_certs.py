import datetime
import ssl

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from ocmadm.certs import (
    ProxyCertificates,
    build_tls_context,
    merge_certificate_data,
    proxy_certificates_from_secrets,
)


def _make_cert(common_name):
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )
    cert_pem = cert.public_bytes(serialization.Encoding.PEM)
    key_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    return cert_pem, key_pem


@pytest.fixture(scope="module")
def first():
    return _make_cert("first-ca")


@pytest.fixture(scope="module")
def second():
    return _make_cert("second-ca")


def test_merge_removes_duplicates_and_keeps_order(first, second):
    a, _ = first
    b, _ = second
    assert merge_certificate_data(a, a + b) == a + b


def test_merge_skips_empty_bundles(first):
    a, _ = first
    assert merge_certificate_data(b"", a, b"") == a


def test_merge_of_nothing_is_empty():
    assert merge_certificate_data() == b""


def test_merge_result_round_trips(first, second):
    a, _ = first
    b, _ = second
    merged = merge_certificate_data(b, a)
    assert merge_certificate_data(merged, merged) == merged
    loaded = x509.load_pem_x509_certificates(merged)
    assert [c.subject.rfc4514_string() for c in loaded] == ["CN=second-ca", "CN=first-ca"]


def test_merge_rejects_bundle_without_certificates():
    with pytest.raises(ValueError, match="does not contain any valid"):
        merge_certificate_data(b"not a pem bundle")


def test_merge_ignores_non_certificate_blocks_but_needs_one(first):
    a, key = first
    with pytest.raises(ValueError):
        merge_certificate_data(key)
    assert merge_certificate_data(key + a) == a


def test_merge_rejects_corrupt_certificate_block():
    corrupt = b"-----BEGIN CERTIFICATE-----\nAAAA\n-----END CERTIFICATE-----\n"
    with pytest.raises(ValueError):
        merge_certificate_data(corrupt)


def test_build_tls_context_settings(first, second):
    ca, _ = first
    cert, key = second
    context = build_tls_context(ca, cert, key, "localhost", None)
    assert context.minimum_version == ssl.TLSVersion.TLSv1_2
    assert context.verify_mode == ssl.CERT_REQUIRED
    assert context.server_name == "localhost"
    assert len(context.get_ca_certs()) == 1


def test_build_tls_context_ignores_bad_ca(second):
    cert, key = second
    context = build_tls_context(b"garbage", cert, key, "localhost", ["h2"])
    assert context.get_ca_certs() == []


def test_build_tls_context_rejects_mismatched_key(first, second):
    cert, _ = first
    _, other_key = second
    with pytest.raises(ValueError):
        build_tls_context(cert, cert, other_key, "localhost", None)


def test_proxy_certificates_from_secrets():
    result = proxy_certificates_from_secrets(
        {"ca.crt": b"ca"},
        {"tls.crt": b"server-cert", "tls.key": b"server-key"},
        {"tls.crt": b"client-cert", "tls.key": b"client-key"},
    )
    assert result == ProxyCertificates(
        ca=b"ca",
        server_cert=b"server-cert",
        server_key=b"server-key",
        client_cert=b"client-cert",
        client_key=b"client-key",
    )


def test_proxy_certificates_missing_keys_are_empty():
    result = proxy_certificates_from_secrets({}, {}, {"tls.crt": b"client-cert"})
    assert result.ca == b""
    assert result.server_key == b""
    assert result.client_cert == b"client-cert"