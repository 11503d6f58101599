"""Ordered collection of listener return values."""

from collections.abc import Iterator
from typing import Any


class ResponseCollection:
    """Results of one trigger, in invocation order.

    ``stopped()`` reports whether dispatch was cut short, either by a
    listener stopping propagation or by a ``trigger_until`` predicate.
    """

    def __init__(self) -> None:
        self._responses: list[Any] = []
        self._stopped = False

    def push(self, value: Any) -> None:
        self._responses.append(value)

    def stopped(self) -> bool:
        return self._stopped

    def set_stopped(self, flag: bool) -> None:
        self._stopped = bool(flag)

    def first(self) -> Any:
        """Return the first result, or None when nothing ran."""
        return self._responses[0] if self._responses else None

    def last(self) -> Any:
        """Return the last result, or None when nothing ran."""
        return self._responses[-1] if self._responses else None

    def count(self) -> int:
        return len(self._responses)

    def contains(self, value: Any) -> bool:
        return value in self._responses

    def __len__(self) -> int:
        return len(self._responses)

    def __contains__(self, value: Any) -> bool:
        return self.contains(value)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._responses)

    def __repr__(self) -> str:
        return f"ResponseCollection({self._responses!r}, stopped={self._stopped})"
