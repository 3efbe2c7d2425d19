"""
Shared utilities for the cache client.

This package aggregates common building blocks consumed by the client:

- config: Client configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses

Do not import from cache_client into shared/.
"""
