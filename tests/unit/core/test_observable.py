"""Unit tests for core.observable module."""

import logging

import pytest

from angorhub.core.observable import Observable


class TestObservable:
    def test_initial_value(self) -> None:
        assert Observable(3).value == 3

    def test_set_notifies_on_change(self) -> None:
        seen: list[int] = []
        obs = Observable(1)
        obs.subscribe(seen.append)

        assert obs.set(2) is True
        assert obs.value == 2
        assert seen == [2]

    def test_equal_value_does_not_notify(self) -> None:
        seen: list[dict] = []
        obs = Observable({"a": 1})
        obs.subscribe(seen.append)

        assert obs.set({"a": 1}) is False
        assert seen == []

    def test_listeners_called_in_subscription_order(self) -> None:
        order: list[str] = []
        obs = Observable(0)
        obs.subscribe(lambda _v: order.append("first"))
        obs.subscribe(lambda _v: order.append("second"))
        obs.set(1)
        assert order == ["first", "second"]

    def test_unsubscribe(self) -> None:
        seen: list[int] = []
        obs = Observable(0)
        unsubscribe = obs.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        obs.set(1)
        assert seen == []

    def test_failing_listener_isolated(self, caplog: pytest.LogCaptureFixture) -> None:
        seen: list[int] = []
        obs = Observable(0)

        def broken(_value: int) -> None:
            raise RuntimeError("boom")

        obs.subscribe(broken)
        obs.subscribe(seen.append)

        with caplog.at_level(logging.ERROR):
            obs.set(1)

        assert seen == [1]
        assert "observer_failed" in caplog.text
