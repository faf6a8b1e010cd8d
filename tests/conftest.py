"""
Pytest Configuration and Fixtures
"""
import datetime

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from mpesa_gateway import MpesaClient


@pytest.fixture(scope='session')
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope='session')
def certificate(rsa_private_key):
    """Self-signed stand-in for the Daraja public certificate"""
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "apicrypt.safaricom.co.ke")])
    now = datetime.datetime.now(datetime.timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(rsa_private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .sign(rsa_private_key, hashes.SHA256())
    )


@pytest.fixture(scope='session')
def certificate_pem(certificate):
    return certificate.public_bytes(serialization.Encoding.PEM)


@pytest.fixture(scope='session')
def certificate_der(certificate):
    return certificate.public_bytes(serialization.Encoding.DER)


@pytest.fixture
def certificate_path(tmp_path, certificate_pem):
    path = tmp_path / "sandbox-cert.cer"
    path.write_bytes(certificate_pem)
    return str(path)


@pytest.fixture
def client():
    return MpesaClient(
        client_key="test_consumer_key",
        client_secret="test_consumer_secret",
        environment="sandbox",
    )


@pytest.fixture
def client_with_initiator(certificate_path):
    """Client able to derive a security credential from an initiator password."""
    return MpesaClient(
        client_key="test_consumer_key",
        client_secret="test_consumer_secret",
        environment="sandbox",
        initiator_password="Safaricom999!*!",
        certificate_path=certificate_path,
    )
