import base64
from datetime import datetime, timezone
from typing import Optional, Tuple, Union

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from mpesa_gateway.errors import ConfigurationError


def derive_timestamp(now: Optional[datetime] = None) -> str:
    """
    Format an instant as the Daraja timestamp YYYYMMDDHHmmss.

    Naive datetimes are taken as-is; aware ones are converted to UTC.
    Defaults to the current UTC instant.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y%m%d%H%M%S")


def derive_password(short_code: Union[int, str], pass_key: str, timestamp: str) -> str:
    """
    Generate the STK Push password.

    Password = Base64(BusinessShortCode + Passkey + Timestamp)
    """
    raw = f"{_short_code_str(short_code)}{pass_key}{timestamp}"
    return base64.b64encode(raw.encode("utf-8")).decode("utf-8")


def derive_timestamp_and_password(
    short_code: Union[int, str],
    pass_key: str,
    now: Optional[datetime] = None,
) -> Tuple[str, str]:
    timestamp = derive_timestamp(now)
    return timestamp, derive_password(short_code, pass_key, timestamp)


def _short_code_str(short_code: Union[int, str]) -> str:
    # plain decimal digits, no locale grouping
    if isinstance(short_code, bool):
        raise TypeError("short_code must be an int or str")
    if isinstance(short_code, int):
        return "%d" % short_code
    return str(short_code)


def load_certificate(path: str) -> bytes:
    """Read certificate bytes from disk."""
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as exc:
        raise ConfigurationError(f"Unable to read certificate at '{path}': {exc}") from exc


def _load_public_key(certificate: bytes) -> rsa.RSAPublicKey:
    loaders = (
        lambda data: x509.load_pem_x509_certificate(data).public_key(),
        lambda data: x509.load_der_x509_certificate(data).public_key(),
        serialization.load_pem_public_key,
        serialization.load_der_public_key,
    )
    for loader in loaders:
        try:
            key = loader(certificate)
        except (ValueError, UnsupportedAlgorithm):
            continue
        if not isinstance(key, rsa.RSAPublicKey):
            raise ConfigurationError("Certificate does not carry an RSA public key")
        return key
    raise ConfigurationError("Certificate could not be parsed as PEM or DER")


def derive_security_credential(password: str, certificate: bytes) -> str:
    """
    Generate the M-Pesa security credential by encrypting the initiator password.

    Args:
        password: Initiator password from the M-Pesa org portal
        certificate: Daraja public certificate (PEM/DER X.509, or a bare public key)

    Returns:
        Base64-encoded RSA PKCS#1 v1.5 ciphertext
    """
    if not certificate:
        raise ConfigurationError("Certificate is empty")
    public_key = _load_public_key(certificate)
    encrypted = public_key.encrypt(password.encode("utf-8"), padding.PKCS1v15())
    return base64.b64encode(encrypted).decode("utf-8")
