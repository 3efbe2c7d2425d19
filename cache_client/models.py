"""
Request and response envelopes exchanged with the cache service.

Field names follow the service's JSON; Python-side names that differ
(``sub_key``, ``sub_index``, ``stored_keys``) are mapped through aliases,
so models are dumped with ``by_alias=True``.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

# A stored value is a string, a string-keyed mapping or a sequence
CacheValue = Union[StrictStr, Dict[str, Any], List[Any]]


class CacheModel(BaseModel):
    """Base model for all cache service envelopes."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# Requests

class GetKeyRequest(CacheModel):
    key: StrictStr


class GetKeySubKeyRequest(CacheModel):
    key: StrictStr
    sub_key: StrictStr = Field(alias="subkey")


class GetKeySubIndexRequest(CacheModel):
    key: StrictStr
    sub_index: StrictInt = Field(alias="subindex")


class SetKeyRequest(CacheModel):
    key: StrictStr
    value: CacheValue
    ttl: StrictInt = Field(default=0, ge=0)


class RemoveKeyRequest(CacheModel):
    key: StrictStr


class GetStoredKeysRequest(CacheModel):
    mask: StrictStr


# Successful responses

class GetKeyResponse(CacheModel):
    key: str = ""
    value: CacheValue


class SetKeyResponse(CacheModel):
    key: str
    value: CacheValue
    ttl: int = 0


class GetKeySubResponse(CacheModel):
    """Element of a stored mapping or sequence; the element itself may be of any JSON type."""

    key: str = ""
    sub_key: Optional[str] = Field(default=None, alias="subkey")
    sub_index: Optional[int] = Field(default=None, alias="subindex")
    value: Any


class GetStoredKeysResponse(CacheModel):
    mask: str = ""
    stored_keys: List[str] = Field(default_factory=list, alias="keys")

    @field_validator("stored_keys", mode="before")
    @classmethod
    def _null_keys_as_empty(cls, value: Any) -> Any:
        # An empty listing may be encoded as null
        return [] if value is None else value


# Error response

class ErrorEnvelope(CacheModel):
    code: StrictInt
    reason: str
