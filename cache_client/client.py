"""
HTTP/JSON client for the remote key-value cache service.
"""

import asyncio
import time
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Tuple, Type

import httpx
import pydantic
from pydantic_core import PydanticSerializationError

from shared.config import CacheClientConfig, get_config
from shared.errors import (
    BadResponseModelError,
    CacheClientError,
    CacheServiceError,
    RequestEncodingError,
    RequestTimeoutError,
    ResponseReadError,
    TransportError,
    ValidationError,
)
from shared.logging import clear_context, get_logger, set_request_id
from shared.metrics import MetricsCollector, get_metrics_collector
from .models import (
    CacheModel,
    CacheValue,
    GetKeyRequest,
    GetKeyResponse,
    GetKeySubIndexRequest,
    GetKeySubKeyRequest,
    GetKeySubResponse,
    GetStoredKeysRequest,
    GetStoredKeysResponse,
    RemoveKeyRequest,
    SetKeyRequest,
)
from .operations import (
    VALUE_NOT_FOUND_CODE,
    build_url,
    decode_error,
    get_operation,
    request_succeeded,
)

# Anything shorter cannot hold a usable "http://host" location
MIN_BASE_URL_LENGTH = 8


class CacheClient:
    """Client for the cache service.

    Every public coroutine performs exactly one HTTP round trip. Failures are
    raised as ``CacheClientError`` subclasses and never retried; a value that
    the service reports as missing (code 21) is returned as ``(None, False)``.

    ``timeout`` is a wall-clock deadline in seconds for the single request;
    ``0`` disables it and ``None`` falls back to the configured default.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        config: Optional[CacheClientConfig] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.config = config or get_config()
        if base_url is None or len(base_url) < MIN_BASE_URL_LENGTH:
            base_url = self.config.base_url
        self._validate_base_url(base_url)
        self._base_url = base_url
        self.logger = get_logger("cache_client.client")

        # Deadlines are enforced per call, so an owned transport has none of its own
        self._owns_http_client = http_client is None
        self.http_client = http_client if http_client is not None else httpx.AsyncClient(timeout=None)

        if metrics is None and self.config.enable_metrics:
            metrics = get_metrics_collector()
        self.metrics = metrics

    @staticmethod
    def _validate_base_url(base_url: str) -> None:
        """Reject locations the transport cannot dial before any request is made."""
        try:
            url = httpx.URL(base_url)
        except httpx.InvalidURL as exc:
            raise ValidationError(f"invalid base URL {base_url!r}: {exc}", details={"base_url": base_url}) from exc

        if url.scheme not in ("http", "https") or not url.host:
            raise ValidationError(
                f"base URL must be an absolute http(s) URL, got {base_url!r}",
                details={"base_url": base_url}
            )
        if url.port is not None and not 0 < url.port < 65536:
            raise ValidationError(
                f"base URL port out of range: {url.port}",
                details={"base_url": base_url}
            )

    @property
    def base_url(self) -> str:
        return self._base_url

    def __str__(self) -> str:
        return f"client => cache location: {self._base_url}"

    async def __aenter__(self) -> "CacheClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_http_client:
            await self.http_client.aclose()

    # Public operations

    async def get(self, key: str, timeout: Optional[float] = None) -> Tuple[Optional[CacheValue], bool]:
        """Get the value stored under ``key``.

        Returns ``(value, True)`` when found and ``(None, False)`` when the
        service has no value for the key.
        """
        with self._track("GetKey") as result:
            request = self._build(GetKeyRequest, key=key)
            status, body = await self._make_request("GetKey", request, timeout)
            return self._process_value(status, body, GetKeyResponse, result)

    async def get_sub_key(self, key: str, sub_key: str, timeout: Optional[float] = None) -> Tuple[Any, bool]:
        """Get the element stored under ``sub_key`` of the mapping at ``key``."""
        with self._track("GetKeySubKey") as result:
            request = self._build(GetKeySubKeyRequest, key=key, sub_key=sub_key)
            status, body = await self._make_request("GetKeySubKey", request, timeout)
            return self._process_value(status, body, GetKeySubResponse, result)

    async def get_sub_index(self, key: str, sub_index: int, timeout: Optional[float] = None) -> Tuple[Any, bool]:
        """Get an element of the sequence stored at ``key``.

        Indexing starts from 1.
        """
        with self._track("GetKeySubIndex") as result:
            if isinstance(sub_index, bool) or not isinstance(sub_index, int) or sub_index < 1:
                raise ValidationError(
                    f"sub-index must be a positive integer, got {sub_index!r}",
                    details={"key": key, "sub_index": sub_index}
                )
            request = self._build(GetKeySubIndexRequest, key=key, sub_index=sub_index)
            status, body = await self._make_request("GetKeySubIndex", request, timeout)
            return self._process_value(status, body, GetKeySubResponse, result)

    async def set(self, key: str, value: CacheValue, ttl: int = 0, timeout: Optional[float] = None) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds.

        The value may be a string, a mapping with string keys or a list.
        """
        with self._track("SetKey") as result:
            request = self._build(SetKeyRequest, key=key, value=value, ttl=ttl)
            status, body = await self._make_request("SetKey", request, timeout)
            self._process_empty(status, body, result)

    async def remove(self, key: str, timeout: Optional[float] = None) -> None:
        """Remove ``key`` from the cache."""
        with self._track("RemoveKey") as result:
            request = self._build(RemoveKeyRequest, key=key)
            status, body = await self._make_request("RemoveKey", request, timeout)
            self._process_empty(status, body, result)

    async def keys(self, timeout: Optional[float] = None) -> List[str]:
        """Return all keys currently stored in the cache."""
        with self._track("GetStoredKeys") as result:
            status, body = await self._make_request("GetStoredKeys", None, timeout)
            return self._process_keys(status, body, result)

    async def keys_mask(self, mask: str, timeout: Optional[float] = None) -> List[str]:
        """Return stored keys matching the glob-style ``mask``."""
        with self._track("GetStoredKeysMask") as result:
            request = self._build(GetStoredKeysRequest, mask=mask)
            status, body = await self._make_request("GetStoredKeysMask", request, timeout)
            return self._process_keys(status, body, result)

    # Internals

    @contextmanager
    def _track(self, operation: str) -> Iterator[dict]:
        """Bind a request id, then log and count the outcome of one public call."""
        request_id = set_request_id()
        result = {"outcome": "error"}
        start_time = time.time()
        try:
            yield result
        except CacheClientError as exc:
            exc.details.setdefault("request_id", request_id)
            log = self.logger.error if isinstance(exc, (TransportError, ResponseReadError)) else self.logger.warning
            log(
                "Cache client call failed",
                operation=operation,
                error_code=exc.code,
                error=exc.message
            )
            if self.metrics is not None:
                self.metrics.record_error(operation, exc.code)
            raise
        finally:
            if self.metrics is not None:
                self.metrics.record_request(operation, result["outcome"], time.time() - start_time)
            clear_context()

    @staticmethod
    def _build(model_cls: Type[CacheModel], **fields: Any) -> CacheModel:
        try:
            return model_cls(**fields)
        except pydantic.ValidationError as exc:
            raise RequestEncodingError(str(exc), details={"model": model_cls.__name__}) from exc

    def _resolve_timeout(self, timeout: Optional[float]) -> float:
        if timeout is None:
            return self.config.default_timeout
        return timeout

    async def _make_request(
        self,
        op_name: str,
        request: Optional[CacheModel],
        timeout: Optional[float],
    ) -> Tuple[int, bytes]:
        """Send one request and return ``(status_code, raw_body)``."""
        operation = get_operation(op_name)
        url = build_url(self._base_url, operation.endpoint)

        headers = {"Accept": "application/json"}
        content = None
        if request is not None:
            try:
                content = request.model_dump_json(by_alias=True).encode("utf-8")
            except PydanticSerializationError as exc:
                raise RequestEncodingError(str(exc), details={"operation": op_name}) from exc
            headers["Content-Type"] = "application/json"

        timeout = self._resolve_timeout(timeout)
        self.logger.debug(
            "Dispatching cache request",
            operation=op_name,
            method=operation.method,
            url=url,
            timeout=timeout
        )

        http_request = self.http_client.build_request(operation.method, url, content=content, headers=headers)
        if timeout <= 0:
            return await self._round_trip(http_request)
        try:
            return await asyncio.wait_for(self._round_trip(http_request), timeout)
        except asyncio.TimeoutError as exc:
            raise RequestTimeoutError(timeout, details={"operation": op_name, "url": url}) from exc

    async def _round_trip(self, http_request: httpx.Request) -> Tuple[int, bytes]:
        try:
            response = await self.http_client.send(http_request, stream=True)
        except httpx.HTTPError as exc:
            raise TransportError(
                str(exc) or exc.__class__.__name__,
                details={"url": str(http_request.url)}
            ) from exc

        # Drain and close so the pooled connection can be reused
        try:
            body = await response.aread()
        except httpx.HTTPError as exc:
            raise ResponseReadError(
                str(exc) or exc.__class__.__name__,
                details={"url": str(http_request.url)}
            ) from exc
        finally:
            await response.aclose()
        return response.status_code, body

    def _process_value(
        self,
        status: int,
        body: bytes,
        model_cls: Type[CacheModel],
        result: dict,
    ) -> Tuple[Any, bool]:
        if request_succeeded(status):
            envelope = self._decode_success(body, model_cls)
            result["outcome"] = "hit"
            return envelope.value, True

        error = decode_error(body)
        if error.code == VALUE_NOT_FOUND_CODE:
            self.logger.debug("Cache value not found", status_code=status, reason=error.reason)
            result["outcome"] = "miss"
            return None, False
        raise CacheServiceError(error.reason, error.code, status)

    def _process_keys(self, status: int, body: bytes, result: dict) -> List[str]:
        if request_succeeded(status):
            envelope = self._decode_success(body, GetStoredKeysResponse)
            result["outcome"] = "ok"
            return envelope.stored_keys

        error = decode_error(body)
        raise CacheServiceError(error.reason, error.code, status)

    def _process_empty(self, status: int, body: bytes, result: dict) -> None:
        if request_succeeded(status):
            result["outcome"] = "ok"
            return

        error = decode_error(body)
        raise CacheServiceError(error.reason, error.code, status)

    @staticmethod
    def _decode_success(body: bytes, model_cls: Type[CacheModel]) -> Any:
        try:
            return model_cls.model_validate_json(body)
        except pydantic.ValidationError as exc:
            raise BadResponseModelError(str(exc), details={"model": model_cls.__name__}) from exc
