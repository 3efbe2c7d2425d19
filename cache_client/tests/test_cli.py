"""
Unit tests for the cache-client command line.
"""

import json
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from cache_client import cli
from shared.errors import CacheServiceError


class TestCli:
    """Test cases for CLI subcommands."""

    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.get = AsyncMock(return_value=("v", True))
        client.get_sub_key = AsyncMock(return_value=(2, True))
        client.get_sub_index = AsyncMock(return_value=(2.02, True))
        client.set = AsyncMock(return_value=None)
        client.remove = AsyncMock(return_value=None)
        client.keys = AsyncMock(return_value=["a", "b"])
        client.keys_mask = AsyncMock(return_value=["testkey2"])
        return client

    @pytest.mark.asyncio
    async def test_get(self, client, capsys):
        args = cli._parse_args(["--timeout", "3", "get", "k"])

        assert await cli.run(args, client) == cli.EXIT_OK

        client.get.assert_awaited_once_with("k", 3.0)
        assert json.loads(capsys.readouterr().out) == {"key": "k", "found": True, "value": "v"}

    @pytest.mark.asyncio
    async def test_get_sub_key(self, client, capsys):
        args = cli._parse_args(["get", "m", "--sub-key", "b"])

        assert await cli.run(args, client) == cli.EXIT_OK

        client.get_sub_key.assert_awaited_once_with("m", "b", args.timeout)
        assert json.loads(capsys.readouterr().out)["value"] == 2

    @pytest.mark.asyncio
    async def test_get_sub_index(self, client):
        args = cli._parse_args(["get", "l", "--sub-index", "2"])

        assert await cli.run(args, client) == cli.EXIT_OK

        client.get_sub_index.assert_awaited_once_with("l", 2, args.timeout)

    @pytest.mark.asyncio
    async def test_get_not_found(self, client, capsys):
        client.get.return_value = (None, False)
        args = cli._parse_args(["get", "missing"])

        assert await cli.run(args, client) == cli.EXIT_NOT_FOUND
        assert json.loads(capsys.readouterr().out) == {"key": "missing", "found": False}

    @pytest.mark.asyncio
    async def test_set_json_value(self, client):
        args = cli._parse_args(["set", "scores", '{"a": 1, "b": 2}', "--json", "--ttl", "60"])

        assert await cli.run(args, client) == cli.EXIT_OK

        client.set.assert_awaited_once_with("scores", {"a": 1, "b": 2}, 60, args.timeout)

    @pytest.mark.asyncio
    async def test_set_plain_value(self, client):
        args = cli._parse_args(["set", "greeting", '{"not": "parsed"}'])

        await cli.run(args, client)

        client.set.assert_awaited_once_with("greeting", '{"not": "parsed"}', 0, args.timeout)

    @pytest.mark.asyncio
    async def test_remove(self, client, capsys):
        args = cli._parse_args(["remove", "k"])

        assert await cli.run(args, client) == cli.EXIT_OK

        client.remove.assert_awaited_once_with("k", args.timeout)
        assert json.loads(capsys.readouterr().out) == {"key": "k", "removed": True}

    @pytest.mark.asyncio
    async def test_keys(self, client, capsys):
        args = cli._parse_args(["keys"])

        await cli.run(args, client)

        client.keys.assert_awaited_once()
        client.keys_mask.assert_not_awaited()
        assert json.loads(capsys.readouterr().out) == {"mask": None, "keys": ["a", "b"]}

    @pytest.mark.asyncio
    async def test_keys_mask(self, client):
        args = cli._parse_args(["keys", "--mask", "*[23]"])

        await cli.run(args, client)

        client.keys_mask.assert_awaited_once_with("*[23]", args.timeout)

    def test_sub_key_and_sub_index_are_exclusive(self):
        with pytest.raises(SystemExit):
            cli._parse_args(["get", "k", "--sub-key", "a", "--sub-index", "1"])

    def test_main_reports_client_errors(self, client, capsys):
        client.get.side_effect = CacheServiceError("storage offline", 5, 500)
        instance = MagicMock()
        instance.__aenter__.return_value = client

        with patch("cache_client.cli.CacheClient", return_value=instance), \
                patch("cache_client.cli.configure_logging"):
            exit_code = cli.main(["--base-url", "http://cache:9000", "get", "k"])

        assert exit_code == cli.EXIT_ERROR
        error = json.loads(capsys.readouterr().err)
        assert error["code"] == "CACHE_SERVICE_ERROR"
        assert error["message"] == "cache error => storage offline"
        assert error["details"]["service_code"] == 5

    def test_main_rejects_invalid_json(self, client, capsys):
        instance = MagicMock()
        instance.__aenter__.return_value = client

        with patch("cache_client.cli.CacheClient", return_value=instance), \
                patch("cache_client.cli.configure_logging"):
            exit_code = cli.main(["set", "k", "{broken", "--json"])

        assert exit_code == cli.EXIT_ERROR
        client.set.assert_not_awaited()
