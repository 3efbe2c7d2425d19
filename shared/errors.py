"""
Shared error handling for the cache client.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class CacheClientError(Exception):
    """Base exception for cache client failures."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id or self.details.get("request_id"),
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(CacheClientError):
    """Invalid arguments passed by the caller."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class OperationLookupError(CacheClientError):
    """Operation name missing from the operation table."""

    def __init__(self, operation: str, details: Optional[Dict[str, Any]] = None):
        self.operation = operation
        super().__init__("UNKNOWN_OPERATION", f"no operation info => {operation}", details)


class RequestEncodingError(CacheClientError):
    """Request envelope could not be serialized."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("REQUEST_ENCODING_ERROR", f"cannot encode request => {message}", details)


class TransportError(CacheClientError):
    """Connection level failure while talking to the cache service."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, code: str = "TRANSPORT_ERROR"):
        super().__init__(code, f"cannot make request => {message}", details)


class RequestTimeoutError(TransportError):
    """Request deadline expired before a response arrived."""

    def __init__(self, timeout: float, details: Optional[Dict[str, Any]] = None):
        self.timeout = timeout
        super().__init__(
            f"deadline of {timeout}s exceeded",
            details={"timeout": timeout, **(details or {})},
            code="REQUEST_TIMEOUT"
        )


class ResponseReadError(CacheClientError):
    """Response body could not be read."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("RESPONSE_READ_ERROR", f"cannot read response body => {message}", details)


class BadModelError(CacheClientError):
    """Response payload did not match the expected model."""


class BadResponseModelError(BadModelError):
    """Success payload could not be decoded."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("BAD_RESPONSE_MODEL", f"bad response model => {message}", details)


class BadErrorModelError(BadModelError):
    """Error payload could not be decoded."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("BAD_ERROR_MODEL", f"bad error model => {message}", details)


class CacheServiceError(CacheClientError):
    """Error declared by the cache service itself."""

    def __init__(self, reason: str, service_code: int, status_code: int, details: Optional[Dict[str, Any]] = None):
        self.reason = reason
        self.service_code = service_code
        self.status_code = status_code
        super().__init__(
            "CACHE_SERVICE_ERROR",
            f"cache error => {reason}",
            {"service_code": service_code, "status_code": status_code, **(details or {})}
        )
