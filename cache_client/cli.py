#!/usr/bin/env python3
"""
Command line access to the cache service.

Examples:
    cache-client set greeting hello --ttl 60
    cache-client set scores '{"a": 1, "b": 2}' --json
    cache-client get scores --sub-key b
    cache-client keys --mask '*[23]'
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Optional, Sequence

from shared.config import get_config
from shared.errors import CacheClientError
from shared.logging import configure_logging
from .client import CacheClient

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_FOUND = 2
EXIT_INTERRUPTED = 130


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    config = get_config()
    parser = argparse.ArgumentParser(prog="cache-client", description="Talk to the key-value cache service.")
    parser.add_argument("--base-url", default=config.base_url, help="Cache service location")
    parser.add_argument("--timeout", type=float, default=config.default_timeout, help="Request deadline in seconds, 0 disables it")
    parser.add_argument("--log-level", default=config.log_level, help="Log level for client diagnostics")

    commands = parser.add_subparsers(dest="command", required=True)

    get_cmd = commands.add_parser("get", help="Read a value")
    get_cmd.add_argument("key")
    sub = get_cmd.add_mutually_exclusive_group()
    sub.add_argument("--sub-key", help="Read one entry of a stored mapping")
    sub.add_argument("--sub-index", type=int, help="Read one element of a stored list (1-based)")

    set_cmd = commands.add_parser("set", help="Store a value")
    set_cmd.add_argument("key")
    set_cmd.add_argument("value")
    set_cmd.add_argument("--ttl", type=int, default=0, help="Key lifetime in seconds")
    set_cmd.add_argument("--json", action="store_true", help="Parse VALUE as JSON (object or array)")

    remove_cmd = commands.add_parser("remove", help="Remove a key")
    remove_cmd.add_argument("key")

    keys_cmd = commands.add_parser("keys", help="List stored keys")
    keys_cmd.add_argument("--mask", default=None, help="Glob pattern to filter keys")

    return parser.parse_args(argv)


async def run(args: argparse.Namespace, client: CacheClient) -> int:
    """Execute one subcommand and print its JSON result."""
    output: Any
    if args.command == "get":
        if args.sub_key is not None:
            value, found = await client.get_sub_key(args.key, args.sub_key, args.timeout)
        elif args.sub_index is not None:
            value, found = await client.get_sub_index(args.key, args.sub_index, args.timeout)
        else:
            value, found = await client.get(args.key, args.timeout)
        if not found:
            print(json.dumps({"key": args.key, "found": False}))
            return EXIT_NOT_FOUND
        output = {"key": args.key, "found": True, "value": value}

    elif args.command == "set":
        value = json.loads(args.value) if args.json else args.value
        await client.set(args.key, value, args.ttl, args.timeout)
        output = {"key": args.key, "stored": True, "ttl": args.ttl}

    elif args.command == "remove":
        await client.remove(args.key, args.timeout)
        output = {"key": args.key, "removed": True}

    else:
        if args.mask is not None:
            keys = await client.keys_mask(args.mask, args.timeout)
        else:
            keys = await client.keys(args.timeout)
        output = {"mask": args.mask, "keys": keys}

    print(json.dumps(output, indent=2))
    return EXIT_OK


async def _main(args: argparse.Namespace) -> int:
    async with CacheClient(args.base_url) as client:
        return await run(args, client)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    configure_logging("cache_client", args.log_level)
    try:
        return asyncio.run(_main(args))
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    except json.JSONDecodeError as exc:
        print(f"[cache-client] invalid JSON value: {exc}", file=sys.stderr)
        return EXIT_ERROR
    except CacheClientError as exc:
        print(exc.to_response().model_dump_json(), file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
