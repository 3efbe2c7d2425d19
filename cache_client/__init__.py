"""
Client library for the HTTP/JSON key-value cache service.
"""

from .client import CacheClient
from .models import CacheValue
from .operations import OPERATIONS, VALUE_NOT_FOUND_CODE, ApiOperation

__version__ = "1.0.0"

__all__ = [
    "CacheClient",
    "CacheValue",
    "OPERATIONS",
    "VALUE_NOT_FOUND_CODE",
    "ApiOperation",
]
