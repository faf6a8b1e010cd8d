"""
Utils Package
Credential derivation and logging helpers
"""

from mpesa_gateway.utils.encryption import (
    derive_timestamp,
    derive_password,
    derive_timestamp_and_password,
    derive_security_credential,
    load_certificate,
)
from mpesa_gateway.utils.logger import get_logger

__all__ = [
    'derive_timestamp',
    'derive_password',
    'derive_timestamp_and_password',
    'derive_security_credential',
    'load_certificate',
    'get_logger',
]
