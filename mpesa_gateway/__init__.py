"""
mpesa_gateway
Client library for the Safaricom M-Pesa (Daraja) API
"""

from mpesa_gateway.client import MpesaClient
from mpesa_gateway.errors import (
    MpesaError,
    ConfigurationError,
    AuthenticationError,
    TransportError,
)
from mpesa_gateway.schemas import ErrorResponse, SuccessResponse, parse_response

__all__ = [
    'MpesaClient',
    'MpesaError',
    'ConfigurationError',
    'AuthenticationError',
    'TransportError',
    'ErrorResponse',
    'SuccessResponse',
    'parse_response',
]
