"""
Book Search Proxy - normalized book search over Amazon PA-API and Rakuten Books.
"""

__version__ = "1.0.0"
__author__ = "Engineering Team"

# Export main components for easy import
from bookproxy.config import config, Config
from bookproxy.logger import logger
from bookproxy.errors import (
    ProxyError,
    RequestValidationError,
    ConfigError,
    SigningError,
    ExternalServiceError,
    NetworkError
)

__all__ = [
    'config',
    'Config',
    'logger',
    'ProxyError',
    'RequestValidationError',
    'ConfigError',
    'SigningError',
    'ExternalServiceError',
    'NetworkError'
]
