"""
Unit tests for core.logger module.

Tests:
- format_kv_pairs() quoting, escaping and truncation
- StructuredFormatter output
- Logger structured extras and JSON mode
"""

import json
import logging

import pytest

from angorhub.core.logger import Logger, StructuredFormatter, format_kv_pairs


class TestFormatKvPairs:
    def test_empty(self) -> None:
        assert format_kv_pairs({}) == ""

    def test_simple_values(self) -> None:
        assert format_kv_pairs({"network": "mainnet", "online": 2}) == " network=mainnet online=2"

    def test_quotes_values_with_spaces(self) -> None:
        assert format_kv_pairs({"error": "HTTP 503"}) == ' error="HTTP 503"'

    def test_escapes_quotes(self) -> None:
        assert format_kv_pairs({"e": 'say "hi"'}, prefix="") == 'e="say \\"hi\\""'

    def test_empty_value_quoted(self) -> None:
        assert format_kv_pairs({"e": ""}, prefix="") == 'e=""'

    def test_truncates_long_values(self) -> None:
        out = format_kv_pairs({"v": "x" * 20}, max_value_length=5, prefix="")
        assert out == 'v="xxxxx...<truncated 15 chars>"'


class TestStructuredFormatter:
    def test_appends_structured_kv(self) -> None:
        record = logging.LogRecord("indexers", logging.INFO, __file__, 1, "health_tested", (), None)
        record.structured_kv = {"online": 2, "total": 3}
        expected = "info indexers health_tested online=2 total=3"
        assert StructuredFormatter().format(record) == expected

    def test_plain_record(self) -> None:
        record = logging.LogRecord(
            "angorhub.utils.http", logging.DEBUG, __file__, 1, "probe_done url=%s", ("x",), None
        )
        assert StructuredFormatter().format(record) == "debug angorhub.utils.http probe_done url=x"


class TestLogger:
    def test_name(self) -> None:
        assert Logger("relays").name == "relays"

    def test_structured_extra(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="relays"):
            Logger("relays").info("event_published", success=1, total=5)

        record = caplog.records[-1]
        assert record.getMessage() == "event_published"
        assert record.structured_kv == {"success": 1, "total": 5}

    def test_string_values_truncated(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="t"):
            Logger("t", max_value_length=3).info("e", v="abcdef")
        assert caplog.records[-1].structured_kv["v"].startswith("abc...")

    def test_json_output(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="j"):
            Logger("j", json_output=True).warning("read_fallback_relay", relay="wss://r")

        payload = json.loads(caplog.records[-1].getMessage())
        assert payload["message"] == "read_fallback_relay"
        assert payload["level"] == "warning"
        assert payload["component"] == "j"
        assert payload["relay"] == "wss://r"

    def test_disabled_level_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        logging.getLogger("quiet").setLevel(logging.ERROR)
        try:
            Logger("quiet").info("ignored")
        finally:
            logging.getLogger("quiet").setLevel(logging.NOTSET)
        assert not [r for r in caplog.records if r.name == "quiet"]
