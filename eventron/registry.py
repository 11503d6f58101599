"""Registries for local listener management.

This module provides PriorityRegistry, an ordered per-event collection of
registrations, and LocalEventRegistry, which owns one PriorityRegistry per
concrete event name plus the pending wildcard registrations that are
materialized into concrete events on demand.
"""

import bisect
from collections.abc import Collection, Iterator
from dataclasses import dataclass
from enum import IntEnum
from itertools import count
from typing import Any

from loguru import logger

from eventron._types import WILDCARD, Listener
from eventron.utils import callable_name, same_listener

log = logger.bind(source=__name__)


class Origin(IntEnum):
    """Where a registration came from.

    At equal priority, lower origins run first.
    """

    LOCAL = 0
    WILDCARD = 1
    SHARED = 2
    SHARED_WILDCARD = 3


LOCAL_ORIGINS = frozenset({Origin.LOCAL, Origin.WILDCARD})


@dataclass(frozen=True, eq=False)
class Registration:
    """One attachment of a listener.

    Registrations compare by identity: the object itself is the handle for
    the attachment, so the same listener attached twice yields two distinct
    registrations.

    Attributes:
        listener: The attached callable.
        priority: Priority value (higher = executed first).
        origin: Registration source, the first tie-breaker.
        sequence: Attach counter, FIFO tie-breaker within origin and group.
        group: Ordering bucket within an origin (shared registrations only).
    """

    listener: Listener
    priority: int
    origin: Origin = Origin.LOCAL
    sequence: int = 0
    group: int = 0

    @property
    def sort_key(self) -> tuple[int, int, int, int]:
        return (-self.priority, self.origin, self.group, self.sequence)


def _sort_key(registration: Registration) -> tuple[int, int, int, int]:
    return registration.sort_key


class PriorityRegistry:
    """Priority-ordered registrations for a single event.

    Iteration yields listeners by descending priority, then origin, group
    and attach order.  Every read returns a snapshot, so a listener that
    mutates the registry while the dispatcher walks it does not affect the
    walk in progress.
    """

    def __init__(self) -> None:
        self._entries: list[Registration] = []

    def insert(self, registration: Registration) -> Registration:
        """Insert a registration at its ordered position.

        Returns:
            The registration, for chaining.
        """
        bisect.insort(self._entries, registration, key=_sort_key)
        return registration

    def registrations(self) -> tuple[Registration, ...]:
        return tuple(self._entries)

    def listeners(self) -> tuple[Listener, ...]:
        return tuple(entry.listener for entry in self._entries)

    def contains(self, item: Any) -> bool:
        """Tell whether a registration handle or a listener is present."""
        if isinstance(item, Registration):
            return any(entry is item for entry in self._entries)
        return any(same_listener(entry.listener, item) for entry in self._entries)

    def remove(
        self,
        listener: Listener,
        origins: Collection[Origin] | None = None,
    ) -> list[Registration]:
        """Remove every registration of *listener*.

        Args:
            listener: Listener to remove, compared by identity.
            origins: Restrict removal to these origins, or None for all.

        Returns:
            The removed registrations (empty when nothing matched).
        """
        removed: list[Registration] = []
        kept: list[Registration] = []
        for entry in self._entries:
            if same_listener(entry.listener, listener) and (
                origins is None or entry.origin in origins
            ):
                removed.append(entry)
            else:
                kept.append(entry)
        if removed:
            self._entries = kept
        return removed

    def discard(self, registration: Registration) -> bool:
        """Remove one registration handle; False if it was not present."""
        for index, entry in enumerate(self._entries):
            if entry is registration:
                del self._entries[index]
                return True
        return False

    def clear(self) -> None:
        self._entries = []

    def count(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, item: Any) -> bool:
        return self.contains(item)

    def __iter__(self) -> Iterator[Listener]:
        return iter(self.listeners())


class LocalEventRegistry:
    """Per-dispatcher listener store.

    Holds one PriorityRegistry per concrete event name and a separate
    registry of wildcard registrations.  A wildcard registration is inserted
    into every concrete registry existing when it is attached, and into any
    registry created later the first time that event is resolved.  Each
    concrete registry remembers which wildcard registrations it already
    received, so a wildcard is materialized at most once per event.
    """

    def __init__(self) -> None:
        self._events: dict[str, PriorityRegistry] = {}
        self._wildcards = PriorityRegistry()
        self._materialized: dict[str, set[Registration]] = {}
        self._sequence = count()

    def attach(
        self, event_name: str, listener: Listener, priority: int
    ) -> Registration:
        """Register a local listener.

        Args:
            event_name: Concrete event name, or the wildcard token.
            listener: Listener callback.
            priority: Priority value (higher = executed first).

        Returns:
            The new registration.
        """
        if event_name == WILDCARD:
            registration = Registration(
                listener, priority, Origin.WILDCARD, next(self._sequence)
            )
            self._wildcards.insert(registration)
            for name, registry in self._events.items():
                registry.insert(registration)
                self._materialized[name].add(registration)
            return registration

        registration = Registration(
            listener, priority, Origin.LOCAL, next(self._sequence)
        )
        self.resolve(event_name).insert(registration)
        return registration

    def resolve(self, event_name: str) -> PriorityRegistry:
        """Return the registry for *event_name*, creating it on demand.

        Pending wildcard registrations not yet materialized for the event
        are inserted first.  Resolving the wildcard token returns the
        pending wildcard registry itself.
        """
        if event_name == WILDCARD:
            return self._wildcards

        registry = self._events.get(event_name)
        if registry is None:
            registry = self._events[event_name] = PriorityRegistry()
            self._materialized[event_name] = set()

        applied = self._materialized[event_name]
        for registration in self._wildcards.registrations():
            if registration not in applied:
                registry.insert(registration)
                applied.add(registration)
        return registry

    def snapshot(self, event_name: str) -> tuple[Listener, ...]:
        """Return the ordered listeners *event_name* would run right now.

        An unknown event is created only when pending wildcard registrations
        must be materialized into it; looking up names nobody listens to
        leaves the registry unchanged.
        """
        if event_name not in self._events and not self._wildcards:
            return ()
        return self.resolve(event_name).listeners()

    def insert(self, event_name: str, registration: Registration) -> Registration:
        """Insert a prebuilt registration into a concrete event's registry."""
        return self.resolve(event_name).insert(registration)

    def discard(self, event_name: str, registration: Registration) -> bool:
        registry = self._events.get(event_name)
        if registry is None:
            return False
        return registry.discard(registration)

    def detach(self, listener: Listener, event_name: str | None = None) -> None:
        """Remove local registrations of *listener*.

        With no event name (or the wildcard token) the listener is removed
        from every concrete event and from the pending wildcard list.  With
        a concrete name only that event's registry is touched; the pending
        wildcard list is left alone, so events created afterwards still
        pick a wildcard listener up.

        Registrations contributed by a shared registry are never removed
        here.  Detaching something that is not registered is a no-op.
        """
        if event_name is None or event_name == WILDCARD:
            dropped = set(self._wildcards.remove(listener))
            for name, registry in self._events.items():
                registry.remove(listener, LOCAL_ORIGINS)
                if dropped:
                    self._materialized[name] -= dropped
            log.debug("Detached {} from all events", callable_name(listener))
            return

        registry = self._events.get(event_name)
        if registry is None:
            return
        if registry.remove(listener, LOCAL_ORIGINS):
            log.debug("Detached {} from {!r}", callable_name(listener), event_name)

    def clear(self, event_name: str) -> None:
        """Forget every registration for *event_name*.

        Clearing the wildcard token drops the pending wildcard list and the
        wildcard registrations already materialized into concrete events.
        """
        if event_name == WILDCARD:
            for registration in self._wildcards.registrations():
                for registry in self._events.values():
                    registry.discard(registration)
            self._wildcards.clear()
            for applied in self._materialized.values():
                applied.clear()
            return

        self._events.pop(event_name, None)
        self._materialized.pop(event_name, None)

    def event_names(self) -> list[str]:
        return list(self._events)
