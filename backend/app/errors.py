# backend/app/errors.py
from typing import Optional


class GatewayError(Exception):
    """Base class for errors that map onto an HTTP response."""
    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message}


class ValidationError(GatewayError):
    status_code = 400
    error = "Invalid request"


class InvalidCoordinatesError(ValidationError):
    error = "Invalid coordinates"


class InvalidInputError(ValidationError):
    error = "Invalid input"


class MissingConfigurationError(GatewayError):
    error = "Configuration error"

    def __init__(self, variable: str):
        super().__init__(f"{variable} is not configured. Set it in the environment or .env file.")
        self.variable = variable


class InvalidUpstreamResponseError(GatewayError):
    status_code = 502
    error = "Invalid upstream response"


class UpstreamUnavailableError(GatewayError):
    error = "Upstream unavailable"

    def __init__(self, description: str, attempts: int, last_error: Optional[BaseException] = None):
        cause = f"{type(last_error).__name__}: {last_error}" if last_error else "unknown error"
        super().__init__(f"{description} failed after {attempts} attempts (last error: {cause})")
        self.attempts = attempts
        self.last_error = last_error
