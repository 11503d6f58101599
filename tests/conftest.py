"""Shared test fixtures for all eventron tests."""

from typing import Any

import pytest

from eventron import EventManager, SharedEventManager

IDENTIFIERS = ["Foo", "Bar", "Baz"]


class CountingListener:
    """Callable listener that counts its invocations."""

    def __init__(self) -> None:
        self.count = 0

    def __call__(self, event: Any) -> None:
        self.count += 1


def returning(value: Any):
    """Build a listener returning *value*."""

    def listener(event: Any) -> Any:
        return value

    return listener


def accumulating(value: Any):
    """Build a listener appending *value* to the event's accumulator param."""

    def listener(event: Any) -> None:
        event.get_param("accumulator").append(value)

    return listener


@pytest.fixture
def shared() -> SharedEventManager:
    return SharedEventManager()


@pytest.fixture
def events(shared: SharedEventManager) -> EventManager:
    return EventManager(IDENTIFIERS, shared)
