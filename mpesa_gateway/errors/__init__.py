from mpesa_gateway.errors.exceptions import (
    MpesaError,
    ConfigurationError,
    AuthenticationError,
    TransportError,
)

__all__= [
    'MpesaError',
    'ConfigurationError',
    'AuthenticationError',
    'TransportError',
]
