"""
Schemas Package
Marshmallow schemas for credential validation and response decoding
"""

from mpesa_gateway.schemas.credentials_schema import CredentialsSchema
from mpesa_gateway.schemas.response_schema import (
    ErrorResponse,
    ErrorResponseSchema,
    MpesaResult,
    SuccessResponse,
    SuccessResponseSchema,
    parse_response,
)

__all__ = [
    'CredentialsSchema',
    'ErrorResponse',
    'ErrorResponseSchema',
    'MpesaResult',
    'SuccessResponse',
    'SuccessResponseSchema',
    'parse_response',
]
