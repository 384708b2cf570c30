from typing import Any, Dict, Optional


class APIError(Exception):
    """Base error carrying an HTTP status and a JSON-serializable details payload."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": False,
            "error": self.message,
            "details": self.details
        }


class ConfigurationError(APIError):
    """Missing credential or template. Always fatal, never retried."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=500, details=details)


class PhoneBindingError(ConfigurationError):
    """A purchased number came back with neither an E.164 number nor an id to bind by."""


class ValidationError(APIError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=400, details=details)


class AuthenticationError(APIError):
    def __init__(self, message: str = "Unauthorized", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=401, details=details)


class UpstreamError(APIError):
    """A remote platform or notification sink failed or timed out."""

    def __init__(
        self,
        message: str,
        status_code: int = 502,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, status_code=status_code, details=details)


class RetellAPIError(UpstreamError):
    pass


class TwilioAPIError(UpstreamError):
    pass


class EmailAPIError(UpstreamError):
    pass


class CallLogAPIError(UpstreamError):
    pass


def handle_api_error(error: Exception) -> APIError:
    """Wrap any exception into an APIError so handlers can always serialize it."""
    if isinstance(error, APIError):
        return error
    return APIError(str(error) or error.__class__.__name__, status_code=500)
