"""
Unit tests for the angorhub command line.

Tests:
- Argument parsing and defaults
- Command handlers printing JSON
- Exit codes for success, hub errors and interrupts
- Paging restarts when the best indexer changes mid-fetch
"""

import asyncio
import json
import time
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from angorhub.__main__ import (
    COMMANDS,
    DEFAULT_CONFIG,
    MAX_PAGE_RESTARTS,
    _load_yaml_dict,
    cmd_denylist,
    cmd_health,
    cmd_projects,
    main,
    parse_args,
)
from angorhub.core.exceptions import ConnectivityError
from angorhub.core.storage import MemoryStore
from angorhub.models import IndexerHealthStatus, NetworkId
from angorhub.services.denylist import Transport, TransportKind
from angorhub.services.denylist.resolver import DenyList
from angorhub.services.hub import Hub
from tests.conftest import FakeClock, ScriptedProbe, make_projects


CLIENT_FETCH_JSON = "angorhub.services.indexers.client.fetch_json"


def _mock_hub() -> MagicMock:
    hub = MagicMock()
    hub.__aenter__ = AsyncMock(return_value=hub)
    hub.__aexit__ = AsyncMock(return_value=False)
    hub.network.current = NetworkId.MAINNET
    return hub


# ============================================================================
# Arguments
# ============================================================================


class TestParseArgs:
    def test_defaults(self) -> None:
        args = parse_args(["health"])
        assert args.command == "health"
        assert args.config == DEFAULT_CONFIG
        assert args.network is None
        assert args.pages == 1
        assert args.log_level == "INFO"

    def test_all_options(self) -> None:
        args = parse_args(
            [
                "projects",
                "--config",
                "other.yaml",
                "--network",
                "testnet",
                "--pages",
                "3",
                "--log-level",
                "DEBUG",
            ]
        )
        assert args.config == Path("other.yaml")
        assert args.network == "testnet"
        assert args.pages == 3
        assert args.log_level == "DEBUG"

    @pytest.mark.parametrize("argv", [[], ["unknown"], ["health", "--network", "regtest"]])
    def test_invalid(self, argv: list[str]) -> None:
        with pytest.raises(SystemExit):
            parse_args(argv)

    def test_commands(self) -> None:
        assert set(COMMANDS) == {"health", "projects", "denylist", "price", "watch"}


class TestLoadYamlDict:
    def test_missing_file(self, tmp_path: Path) -> None:
        assert _load_yaml_dict(tmp_path / "missing.yaml") == {}

    def test_existing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "hub.yaml"
        path.write_text("default_network: testnet\n")
        assert _load_yaml_dict(path) == {"default_network": "testnet"}


# ============================================================================
# Handlers
# ============================================================================


class TestHandlers:
    async def test_health(self, capsys: pytest.CaptureFixture[str]) -> None:
        clock = FakeClock()
        result = await ScriptedProbe({"https://explorer.angor.io/": True}, clock=clock)(
            "https://explorer.angor.io/"
        )
        hub = _mock_hub()
        hub.monitor.test_all = AsyncMock(
            return_value=IndexerHealthStatus(NetworkId.MAINNET, (result,), clock())
        )
        hub.monitor.select_best.return_value = "https://explorer.angor.io/"

        assert await cmd_health(hub, parse_args(["health"])) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["network"] == "mainnet"
        assert output["health"] == "healthy"
        assert output["best"] == "https://explorer.angor.io/"
        assert output["results"][0]["reachable"] is True

    async def test_denylist(self, capsys: pytest.CaptureFixture[str]) -> None:
        hub = _mock_hub()
        hub.deny_list.resolve = AsyncMock(
            return_value=DenyList(("b", "a"), Transport(TransportKind.FALLBACK), 0.0)
        )

        assert await cmd_denylist(hub, parse_args(["denylist"])) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["ids"] == ["a", "b"]
        assert output["source"] == "fallback"


# ============================================================================
# main()
# ============================================================================


class TestMain:
    async def test_success_switches_network(self) -> None:
        hub = _mock_hub()
        handler = AsyncMock(return_value=0)
        with (
            patch("angorhub.__main__.setup_logging"),
            patch("angorhub.__main__.Hub.from_dict", return_value=hub),
            patch.dict("angorhub.__main__.HANDLERS", {"price": handler}),
        ):
            code = await main(["price", "--network", "testnet", "--config", "/nonexistent.yaml"])

        assert code == 0
        hub.switch_network.assert_called_once_with(NetworkId.TESTNET)
        handler.assert_awaited_once()

    async def test_hub_error_exit_code(self) -> None:
        handler = AsyncMock(side_effect=ConnectivityError("price unavailable"))
        with (
            patch("angorhub.__main__.setup_logging"),
            patch("angorhub.__main__.Hub.from_dict", return_value=_mock_hub()),
            patch.dict("angorhub.__main__.HANDLERS", {"price": handler}),
        ):
            assert await main(["price", "--config", "/nonexistent.yaml"]) == 1

    async def test_interrupt_exit_code(self) -> None:
        handler = AsyncMock(side_effect=KeyboardInterrupt)
        with (
            patch("angorhub.__main__.setup_logging"),
            patch("angorhub.__main__.Hub.from_dict", return_value=_mock_hub()),
            patch.dict("angorhub.__main__.HANDLERS", {"health": handler}),
        ):
            assert await main(["health", "--config", "/nonexistent.yaml"]) == 130


# ============================================================================
# Indexer failover during paging
# ============================================================================


class TestProjectsFailover:
    async def test_page_refetched_from_new_best_indexer(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        urls = [
            "https://explorer.angor.io/",
            "https://fulcrum.angor.online/",
            "https://electrs.angor.online/",
        ]
        probe = ScriptedProbe(
            {urls[0]: False, urls[1]: True},
            delays=dict.fromkeys(urls, 0.02),
            clock=time.time,
        )
        session = MagicMock(spec=aiohttp.ClientSession)
        session.close = AsyncMock()

        async def slow_fetch(*_args: Any, **_kwargs: Any) -> list[dict[str, Any]]:
            await asyncio.sleep(0.05)
            return make_projects(6)

        hub = Hub(store=MemoryStore(), session=session, probe=probe, transport=MagicMock())
        async with hub:
            with (
                patch.object(hub.deny_list, "load", AsyncMock()),
                patch(CLIENT_FETCH_JSON, new=AsyncMock(side_effect=slow_fetch)),
            ):
                assert await cmd_projects(hub, parse_args(["projects"])) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["indexer"] == urls[1]
        assert len(output["projects"]) == 6
        assert output["has_more"] is True

    async def test_gives_up_after_repeated_resets(self) -> None:
        hub = _mock_hub()
        hub.deny_list.load = AsyncMock()
        hub.aggregator.load_more = AsyncMock(return_value=None)
        hub.aggregator.has_more = True
        hub.aggregator.is_loading = False
        hub.aggregator.projects = []

        with patch("angorhub.__main__._emit"):
            assert await cmd_projects(hub, parse_args(["projects", "--pages", "2"])) == 0

        assert hub.aggregator.load_more.await_count == MAX_PAGE_RESTARTS + 1
