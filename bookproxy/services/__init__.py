"""
Services package initialization.
Centralizes service imports.
"""

from bookproxy.services.paapi_service import PaapiService
from bookproxy.services.rakuten_service import RakutenService, RakutenPage

__all__ = [
    'PaapiService',
    'RakutenService',
    'RakutenPage'
]
