"""
Custom domain exceptions for the proxy.
Every error has a name and an HTTP status it maps to.
"""
from typing import Any, Optional


class ProxyError(Exception):
    """Base class for all proxy errors."""
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Any = None):
        super().__init__(message)
        self.message = message
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class RequestValidationError(ProxyError):
    """Raised when the caller's request body is malformed or incomplete."""
    status_code = 400


class ConfigError(ProxyError):
    """Raised when required configuration is missing or invalid."""
    status_code = 500


class SigningError(ProxyError):
    """Raised when a request cannot be signed."""
    status_code = 500


class ExternalServiceError(ProxyError):
    """Raised when an upstream catalog API returns an error or unusable body."""
    status_code = 502


class NetworkError(ExternalServiceError):
    """Raised when an upstream call fails at the transport level."""
    status_code = 502
