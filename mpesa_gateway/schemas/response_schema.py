"""
Response Decoding
Tagged decoding of Daraja response envelopes
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from marshmallow import Schema, ValidationError, fields, post_load, INCLUDE

from mpesa_gateway.errors import TransportError


@dataclass
class SuccessResponse:
    success: Any
    status: Any
    response_code: Optional[Any] = None
    response_description: Optional[str] = None
    conversation_id: Optional[str] = None
    originator_conversation_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    is_error = False


@dataclass
class ErrorResponse:
    success: Any
    status: Any
    error_code: Any
    error_message: Optional[str] = None
    request_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    is_error = True


MpesaResult = Union[SuccessResponse, ErrorResponse]


# Remote fields are spread over success/status and may carry any JSON
# type, so every field is decoded as Raw.

class SuccessResponseSchema(Schema):
    """Accepted-for-processing envelope"""
    success = fields.Raw(required=True)
    status = fields.Raw(required=True)
    ResponseCode = fields.Raw(required=False, allow_none=True)
    ResponseDescription = fields.Raw(required=False, allow_none=True)
    ConversationID = fields.Raw(required=False, allow_none=True)
    OriginatorConversationID = fields.Raw(required=False, allow_none=True)

    class Meta:
        unknown = INCLUDE

    @post_load
    def make_response(self, data, **kwargs):
        return SuccessResponse(
            success=data["success"],
            status=data["status"],
            response_code=data.get("ResponseCode"),
            response_description=data.get("ResponseDescription"),
            conversation_id=data.get("ConversationID"),
            originator_conversation_id=data.get("OriginatorConversationID"),
            raw=dict(data),
        )


class ErrorResponseSchema(Schema):
    """Daraja error envelope (errorCode / errorMessage / requestId)"""
    success = fields.Raw(required=True)
    status = fields.Raw(required=True)
    errorCode = fields.Raw(required=True)
    errorMessage = fields.Raw(required=False, allow_none=True)
    requestId = fields.Raw(required=False, allow_none=True)

    class Meta:
        unknown = INCLUDE

    @post_load
    def make_response(self, data, **kwargs):
        return ErrorResponse(
            success=data["success"],
            status=data["status"],
            error_code=data["errorCode"],
            error_message=data.get("errorMessage"),
            request_id=data.get("requestId"),
            raw=dict(data),
        )


def parse_response(envelope: Dict[str, Any]) -> MpesaResult:
    """
    Decode a response envelope into a SuccessResponse or ErrorResponse.

    The variant is chosen by the presence of ``errorCode``. Business
    result codes (ResponseCode / ResultCode) are left for the caller.
    """
    schema = ErrorResponseSchema() if envelope.get("errorCode") is not None else SuccessResponseSchema()
    try:
        return schema.load(envelope)
    except ValidationError as exc:
        raise TransportError(
            f"Response envelope could not be decoded – {exc.messages}", response=envelope
        ) from exc
