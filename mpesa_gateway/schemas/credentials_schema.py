from marshmallow import Schema, fields, pre_load, validate

from mpesa_gateway.config import BASE_URLS


class CredentialsSchema(Schema):
    """Client credentials supplied at construction"""
    client_key = fields.Str(required=True, validate=validate.Length(min=1))
    client_secret = fields.Str(required=True, validate=validate.Length(min=1))
    initiator_password = fields.Str(required=False, allow_none=True)
    security_credential = fields.Str(required=False, allow_none=True)
    certificate_path = fields.Str(required=False, allow_none=True)
    environment = fields.Str(
        required=False,
        load_default="sandbox",
        validate=validate.OneOf(list(BASE_URLS)),
    )

    @pre_load
    def normalise_environment(self, data, **kwargs):
        environment = data.get("environment")
        if isinstance(environment, str):
            data = {**data, "environment": environment.strip().lower()}
        return data
