"""
Mock cache service implementing the item/keys REST endpoints in memory.
"""

import fnmatch
import json
import time
from typing import Any, Callable, Dict, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.logging import get_logger
from cache_client.models import (
    GetKeyResponse,
    GetKeySubResponse,
    GetStoredKeysResponse,
    SetKeyRequest,
    SetKeyResponse,
)
from cache_client.operations import VALUE_NOT_FOUND_CODE

BAD_REQUEST_CODE = 10
TYPE_MISMATCH_CODE = 22


class MockCacheServer:
    """Mock cache service implementation."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self.logger = get_logger("mock.cache")
        self.app = FastAPI(title="Mock Cache", version="1.0.0")

        # key -> (value, expires_at or None)
        self.items: Dict[str, Tuple[Any, Optional[float]]] = {}

        self._setup_routes()

    def _setup_routes(self):
        """Set up mock cache routes."""

        @self.app.get("/item")
        async def get_item(request: Request):
            payload = await self._read_json(request)
            if payload is None or not isinstance(payload.get("key"), str):
                return self._error(400, BAD_REQUEST_CODE, "bad request: key is required")

            key = payload["key"]
            value = self._lookup(key)
            if value is None:
                return self._error(404, VALUE_NOT_FOUND_CODE, f"value not found for key {key}")

            if "subkey" in payload:
                sub_key = payload["subkey"]
                if not isinstance(value, dict):
                    return self._error(400, TYPE_MISMATCH_CODE, f"value at {key} is not a mapping")
                if sub_key not in value:
                    return self._error(404, VALUE_NOT_FOUND_CODE, f"value not found for sub-key {sub_key}")
                return GetKeySubResponse(key=key, sub_key=sub_key, value=value[sub_key]).model_dump(by_alias=True)

            if "subindex" in payload:
                sub_index = payload["subindex"]
                if not isinstance(value, list):
                    return self._error(400, TYPE_MISMATCH_CODE, f"value at {key} is not a list")
                if not isinstance(sub_index, int) or not 1 <= sub_index <= len(value):
                    return self._error(404, VALUE_NOT_FOUND_CODE, f"value not found for sub-index {sub_index}")
                return GetKeySubResponse(key=key, sub_index=sub_index, value=value[sub_index - 1]).model_dump(by_alias=True)

            return GetKeyResponse(key=key, value=value).model_dump(by_alias=True)

        @self.app.post("/item")
        async def set_item(request: Request):
            payload = await self._read_json(request)
            try:
                item = SetKeyRequest.model_validate(payload)
            except ValueError as exc:
                return self._error(400, BAD_REQUEST_CODE, f"bad request: {exc}")

            expires_at = self.clock() + item.ttl if item.ttl > 0 else None
            self.items[item.key] = (item.value, expires_at)
            self.logger.debug("Item stored", key=item.key, ttl=item.ttl)
            return SetKeyResponse(key=item.key, value=item.value, ttl=item.ttl).model_dump(by_alias=True)

        @self.app.delete("/item")
        async def remove_item(request: Request):
            payload = await self._read_json(request)
            if payload is None or not isinstance(payload.get("key"), str):
                return self._error(400, BAD_REQUEST_CODE, "bad request: key is required")

            self.items.pop(payload["key"], None)
            return {"key": payload["key"]}

        @self.app.get("/keys")
        async def list_keys(request: Request):
            payload = await self._read_json(request, allow_empty=True)
            if payload is None:
                return self._error(400, BAD_REQUEST_CODE, "bad request: malformed body")

            mask = payload.get("mask", "")
            keys = [key for key in list(self.items) if self._lookup(key) is not None]
            if mask:
                keys = [key for key in keys if fnmatch.fnmatchcase(key, mask)]
            return GetStoredKeysResponse(mask=mask, stored_keys=sorted(keys)).model_dump(by_alias=True)

    def _lookup(self, key: str) -> Any:
        """Return the live value for key, dropping it once expired."""
        entry = self.items.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self.clock() >= expires_at:
            del self.items[key]
            return None
        return value

    @staticmethod
    async def _read_json(request: Request, allow_empty: bool = False) -> Optional[Dict[str, Any]]:
        body = await request.body()
        if not body:
            return {} if allow_empty else None
        try:
            payload = json.loads(body)
        except ValueError:
            return None
        return payload if isinstance(payload, dict) else None

    @staticmethod
    def _error(status_code: int, code: int, reason: str) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"code": code, "reason": reason})


def create_app():
    """Create mock cache application."""
    server = MockCacheServer()
    return server.app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8080)
