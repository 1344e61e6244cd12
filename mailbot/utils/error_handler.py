"""Error taxonomy shared by every layer of the relay."""


class AppError(Exception):
    """Base application error class"""
    def __init__(self, message: str, error_code: str = "INTERNAL_ERROR"):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class ExtractionFailure(AppError):
    """Model output could not be turned into an email command"""
    def __init__(self, message: str = "Could not extract email details"):
        super().__init__(message, "EXTRACTION_ERROR")


class AuthError(AppError):
    """Missing or rejected OAuth token"""

    NO_REFRESH_TOKEN = "NO_REFRESH_TOKEN"
    REFRESH_REJECTED = "REFRESH_REJECTED"

    def __init__(self, reason: str, message: str = "Authentication failed"):
        self.reason = reason
        super().__init__(message, "AUTH_ERROR")


class TransportError(AppError):
    """Network or provider failure on an outbound HTTP call"""
    def __init__(self, message: str = "External service unavailable"):
        super().__init__(message, "TRANSPORT_ERROR")


class ConfigError(AppError):
    """Missing required startup configuration"""
    def __init__(self, message: str = "Invalid configuration"):
        super().__init__(message, "CONFIG_ERROR")


def format_error_response(error: Exception) -> str:
    """Short, log-safe description of an error."""
    if isinstance(error, AppError):
        return f"{error.error_code}: {error.message}"
    return f"{type(error).__name__}: {error}"
