"""Tests for the service container."""

from __future__ import annotations

import pytest

from inquiry_inbox.core.container import ServiceContainer


class Closable:
    def __init__(self, name: str, closed: list[str]) -> None:
        self.name = name
        self._closed = closed

    def close(self) -> None:
        self._closed.append(self.name)


def test_resolve_builds_singleton_once() -> None:
    container = ServiceContainer()
    built: list[object] = []

    def factory(c: ServiceContainer) -> object:
        built.append(object())
        return built[-1]

    container.register("value", factory)

    assert container.resolve("value") is container.resolve("value")
    assert len(built) == 1


def test_try_resolve_returns_none_for_unknown_key() -> None:
    container = ServiceContainer()
    assert container.try_resolve("missing") is None
    with pytest.raises(KeyError):
        container.resolve("missing")


def test_shutdown_closes_in_reverse_order() -> None:
    closed: list[str] = []
    container = ServiceContainer()
    container.register_instance("settings", {"debug": True})
    container.register("first", lambda c: Closable("first", closed))
    container.register("second", lambda c: Closable("second", closed))
    container.resolve("first")
    container.resolve("second")

    container.shutdown()

    assert closed == ["second", "first"]
