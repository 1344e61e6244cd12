"""
Utility modules for the mail relay bot.

This package contains:
- error_handler: Error taxonomy shared by every layer
- validators: Syntax checks for outgoing mail headers
- logging_utils: Logging configuration
- oauth_utils: Google OAuth flow helpers
"""

from .error_handler import (
    AppError,
    ExtractionFailure,
    AuthError,
    TransportError,
    ConfigError,
    format_error_response
)

from .validators import InputValidator

__all__ = [
    'AppError',
    'ExtractionFailure',
    'AuthError',
    'TransportError',
    'ConfigError',
    'format_error_response',
    'InputValidator',
]
