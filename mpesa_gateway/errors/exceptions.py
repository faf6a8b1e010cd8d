class MpesaError(Exception):
    error = "M-Pesa client error"

    def __init__(self, message=None, response=None):
        message = message or self.error
        super().__init__(message)
        self.message = message
        self.response = response


class ConfigurationError(MpesaError):
    """Fatal misconfiguration; not retryable."""
    error = "Configuration error"


class AuthenticationError(MpesaError):
    error = "Authentication failed"


class TransportError(MpesaError):
    error = "Transport error"
