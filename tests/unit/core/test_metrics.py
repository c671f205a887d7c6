"""Unit tests for core.metrics module."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from angorhub.core.metrics import MetricsConfig, MetricsServer, start_metrics_server


class TestMetricsConfig:
    def test_defaults(self) -> None:
        config = MetricsConfig()
        assert config.enabled is False
        assert config.port == 8000
        assert config.host == "127.0.0.1"
        assert config.path == "/metrics"

    def test_rejects_privileged_port(self) -> None:
        with pytest.raises(ValueError):
            MetricsConfig(port=80)


class TestMetricsServer:
    async def test_disabled_does_not_bind(self) -> None:
        server = await start_metrics_server(MetricsConfig(enabled=False))
        assert server.is_running is False
        await server.stop()

    async def test_start_and_stop(self) -> None:
        runner = MagicMock()
        runner.setup = AsyncMock()
        runner.cleanup = AsyncMock()
        site = MagicMock()
        site.start = AsyncMock()

        with (
            patch("angorhub.core.metrics.web.AppRunner", return_value=runner),
            patch("angorhub.core.metrics.web.TCPSite", return_value=site),
        ):
            server = MetricsServer(MetricsConfig(enabled=True, port=9100))
            await server.start()
            assert server.is_running is True
            await server.stop()

        runner.cleanup.assert_awaited_once()
        assert server.is_running is False

    async def test_bind_failure_cleans_up(self) -> None:
        runner = MagicMock()
        runner.setup = AsyncMock()
        runner.cleanup = AsyncMock()
        site = MagicMock()
        site.start = AsyncMock(side_effect=OSError("address in use"))

        with (
            patch("angorhub.core.metrics.web.AppRunner", return_value=runner),
            patch("angorhub.core.metrics.web.TCPSite", return_value=site),
        ):
            server = MetricsServer(MetricsConfig(enabled=True, port=9100))
            with pytest.raises(OSError, match="address in use"):
                await server.start()

        runner.cleanup.assert_awaited_once()
        assert server.is_running is False

    async def test_handler_serves_exposition(self) -> None:
        response = await MetricsServer._handle_metrics(MagicMock())
        assert response.headers["Content-Type"].startswith("text/plain")
        assert b"angorhub_service" in response.body
