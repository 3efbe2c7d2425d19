"""
Unit tests for cache service envelopes.
"""

import json
import pytest
from pydantic import ValidationError

from cache_client.models import (
    GetKeyResponse,
    GetKeySubIndexRequest,
    GetKeySubKeyRequest,
    GetKeySubResponse,
    GetStoredKeysResponse,
    SetKeyRequest,
)


class TestRequests:
    """Test cases for request serialization."""

    def test_sub_key_alias(self):
        request = GetKeySubKeyRequest(key="m", sub_key="b")

        assert json.loads(request.model_dump_json(by_alias=True)) == {"key": "m", "subkey": "b"}

    def test_sub_index_alias(self):
        request = GetKeySubIndexRequest(key="l", sub_index=3)

        assert json.loads(request.model_dump_json(by_alias=True)) == {"key": "l", "subindex": 3}

    def test_set_key_defaults_ttl(self):
        request = SetKeyRequest(key="k", value="v")

        assert request.ttl == 0

    @pytest.mark.parametrize("value", ["v", {"a": 1}, [1, "two", 3.0], []])
    def test_set_key_accepts_cache_values(self, value):
        assert SetKeyRequest(key="k", value=value, ttl=1).value == value

    @pytest.mark.parametrize("value", [1, 1.5, None, True, {2: "b"}])
    def test_set_key_rejects_other_values(self, value):
        with pytest.raises(ValidationError):
            SetKeyRequest(key="k", value=value, ttl=1)

    def test_key_must_be_string(self):
        with pytest.raises(ValidationError):
            SetKeyRequest(key=1, value="v", ttl=1)


class TestResponses:
    """Test cases for response decoding."""

    def test_get_key_response_ignores_extra_fields(self):
        response = GetKeyResponse.model_validate_json(b'{"key": "k", "value": "v", "ttl": 30}')

        assert response.value == "v"

    def test_sub_response_value_may_be_scalar(self):
        response = GetKeySubResponse.model_validate_json(b'{"key": "m", "subkey": "b", "value": 2}')

        assert response.value == 2
        assert response.sub_key == "b"
        assert response.sub_index is None

    def test_sub_response_requires_value(self):
        with pytest.raises(ValidationError):
            GetKeySubResponse.model_validate_json(b'{"key": "m", "subkey": "b"}')

    def test_stored_keys_alias(self):
        response = GetStoredKeysResponse.model_validate_json(b'{"mask": "*", "keys": ["a", "b"]}')

        assert response.stored_keys == ["a", "b"]
        assert response.model_dump(by_alias=True) == {"mask": "*", "keys": ["a", "b"]}
