"""
REST operation table of the cache service and response classification helpers.
"""

from types import MappingProxyType
from typing import Mapping, NamedTuple

import pydantic

from shared.errors import BadErrorModelError, OperationLookupError
from .models import ErrorEnvelope

# Service error code for a missing key, sub-key or sub-index
VALUE_NOT_FOUND_CODE = 21


class ApiOperation(NamedTuple):
    endpoint: str
    method: str


OPERATIONS: Mapping[str, ApiOperation] = MappingProxyType({
    "GetKey": ApiOperation(endpoint="item", method="GET"),
    "GetKeySubKey": ApiOperation(endpoint="item", method="GET"),
    "GetKeySubIndex": ApiOperation(endpoint="item", method="GET"),
    "SetKey": ApiOperation(endpoint="item", method="POST"),
    "RemoveKey": ApiOperation(endpoint="item", method="DELETE"),
    "GetStoredKeys": ApiOperation(endpoint="keys", method="GET"),
    "GetStoredKeysMask": ApiOperation(endpoint="keys", method="GET"),
})


def get_operation(name: str) -> ApiOperation:
    """Look up endpoint and HTTP method for a logical operation."""
    try:
        return OPERATIONS[name]
    except KeyError:
        raise OperationLookupError(name) from None


def build_url(base_url: str, endpoint: str) -> str:
    return f"{base_url}/{endpoint}"


def request_succeeded(status_code: int) -> bool:
    return 200 <= status_code < 300


def decode_error(body: bytes) -> ErrorEnvelope:
    """Decode an error payload; anything but {"code": int, "reason": str} is a bad model."""
    try:
        return ErrorEnvelope.model_validate_json(body)
    except pydantic.ValidationError as exc:
        raise BadErrorModelError(str(exc), details={"body": body[:512].decode("utf-8", "replace")}) from exc
