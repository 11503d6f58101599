"""Shared (cross-instance) listener registry.

A SharedEventManager lets code attach listeners to events of components it
has no instance of yet.  Listeners are keyed by component identifier and
event name; EventManager instances configured with identifiers pull the
matching listeners in when they trigger.  Either key may be the wildcard
token: a wildcard identifier matches every component, a wildcard event
matches every event of the identifier.
"""

from collections.abc import Callable, Iterable
from contextlib import nullcontext
from dataclasses import dataclass
from itertools import count
from threading import RLock
from typing import Any

from loguru import logger

from eventron._types import DEFAULT_PRIORITY, WILDCARD, Listener
from eventron.exceptions import InvalidArgumentError
from eventron.utils import as_priority, callable_name, same_listener, type_label, unique

log = logger.bind(source=__name__)


@dataclass(frozen=True, eq=False)
class SharedListener:
    """One shared attachment; compared by identity.

    Attributes:
        identifier: Component identifier, or the wildcard token.
        event_name: Event name, or the wildcard token.
        listener: The attached callable.
        priority: Priority value (higher = executed first).
        sequence: Attach counter across the whole shared registry.
    """

    identifier: str
    event_name: str
    listener: Listener
    priority: int
    sequence: int


def _is_name(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def _is_concrete_name(value: Any) -> bool:
    return _is_name(value) and value != WILDCARD


class SharedEventManager:
    """Listener store keyed by (identifier, event name).

    Independent of any EventManager lifetime; inject one instance into every
    EventManager that should see its listeners.  ``revision`` increases on
    every mutation so consumers can tell in O(1) whether anything changed.
    """

    def __init__(self, *, thread_safe: bool = True) -> None:
        self._identifiers: dict[str, dict[str, list[SharedListener]]] = {}
        self._sequence = count()
        self._revision = 0
        self._lock = RLock() if thread_safe else nullcontext()

    @property
    def revision(self) -> int:
        return self._revision

    def on(
        self,
        identifier: str,
        event_name: str,
        priority: int = DEFAULT_PRIORITY,
    ) -> Callable[[Listener], Listener]:
        """Decorator to attach a plain function as a shared listener.

        Returns:
            Decorator function that returns the original function unchanged.
        """

        def decorator(func: Listener) -> Listener:
            return self.attach(identifier, event_name, func, priority)

        return decorator

    def attach(
        self,
        identifier: str,
        event_name: str,
        listener: Listener,
        priority: int = DEFAULT_PRIORITY,
    ) -> Listener:
        """Attach a listener to an event of identified components.

        Args:
            identifier: Component identifier, or ``"*"`` for any component.
            event_name: Event name, or ``"*"`` for any event.
            listener: Listener callback.
            priority: Priority value (higher = executed first).

        Returns:
            The listener.

        Raises:
            InvalidArgumentError: If identifier or event_name is not a
                non-empty string, or listener is not callable.
        """
        if not _is_name(identifier):
            raise InvalidArgumentError(
                "Invalid identifier provided; must be a non-empty string; "
                f'received "{type_label(identifier)}"'
            )
        if not _is_name(event_name):
            raise InvalidArgumentError(
                "Invalid event provided; must be a non-empty string; "
                f'received "{type_label(event_name)}"'
            )
        if not callable(listener):
            raise InvalidArgumentError(
                f"listener must be callable; received {type_label(listener)}"
            )
        priority = as_priority(priority)

        with self._lock:
            record = SharedListener(
                identifier, event_name, listener, priority, next(self._sequence)
            )
            events = self._identifiers.setdefault(identifier, {})
            events.setdefault(event_name, []).append(record)
            self._revision += 1

        log.debug(
            "Shared attach {} to {!r}/{!r} at priority {}",
            callable_name(listener),
            identifier,
            event_name,
            priority,
        )
        return listener

    def detach(
        self,
        listener: Listener,
        identifier: str | None = None,
        event_name: str | None = None,
    ) -> None:
        """Detach a listener.

        ``None`` for identifier or event name means "every identifier" or
        "every event".  Unknown identifiers and events are ignored.

        Raises:
            InvalidArgumentError: If identifier or event_name is neither
                None nor a non-empty string.
        """
        if identifier is not None and not _is_name(identifier):
            raise InvalidArgumentError(
                "Invalid identifier provided; must be a non-empty string or None; "
                f'received "{type_label(identifier)}"'
            )
        if event_name is not None and not _is_name(event_name):
            raise InvalidArgumentError(
                "Invalid event name provided; must be a non-empty string or None; "
                f'received "{type_label(event_name)}"'
            )

        with self._lock:
            targets = list(self._identifiers) if identifier is None else [identifier]
            removed = 0
            for target in targets:
                events = self._identifiers.get(target)
                if events is None:
                    continue
                names = list(events) if event_name is None else [event_name]
                for name in names:
                    records = events.get(name)
                    if records is None:
                        continue
                    kept = [
                        r for r in records if not same_listener(r.listener, listener)
                    ]
                    removed += len(records) - len(kept)
                    if kept:
                        events[name] = kept
                    else:
                        del events[name]
                if not events:
                    del self._identifiers[target]
            if removed:
                self._revision += 1

        if removed:
            log.debug(
                "Shared detach {} ({} registration(s))",
                callable_name(listener),
                removed,
            )

    def get_listeners(
        self,
        identifiers: Iterable[str],
        event_name: str,
    ) -> list[SharedListener]:
        """Return the shared listeners for *event_name* on *identifiers*.

        Order: for each identifier, its exact-event records then its
        wildcard-event records; then the wildcard identifier's exact-event
        records and finally its wildcard-event records.  Each bucket is in
        attach order.  Priority ordering is left to the caller.

        Args:
            identifiers: Concrete component identifiers.
            event_name: Concrete event name.

        Returns:
            Ordered list of shared listener records.

        Raises:
            InvalidArgumentError: If event_name or any identifier is not a
                non-empty, non-wildcard string.
        """
        if not _is_concrete_name(event_name):
            raise InvalidArgumentError(
                "Event name passed to get_listeners must be a non-empty, "
                f'non-wildcard string; received "{type_label(event_name)}"'
            )
        if isinstance(identifiers, str):
            raise InvalidArgumentError(
                "identifiers must be a list of strings, not a single string"
            )
        identifiers = list(identifiers)
        for identifier in identifiers:
            if not _is_concrete_name(identifier):
                raise InvalidArgumentError(
                    "Identifiers passed to get_listeners must be non-empty, "
                    f'non-wildcard strings; received "{type_label(identifier)}"'
                )
        identifiers = unique(identifiers)

        listeners: list[SharedListener] = []
        with self._lock:
            for identifier in [*identifiers, WILDCARD]:
                events = self._identifiers.get(identifier)
                if not events:
                    continue
                listeners.extend(events.get(event_name, ()))
                listeners.extend(events.get(WILDCARD, ()))
        return listeners

    def clear_listeners(self, identifier: str, event_name: str | None = None) -> bool:
        """Remove every listener of *identifier*, optionally for one event.

        Clearing a concrete event leaves the identifier's wildcard-event
        listeners in place.

        Returns:
            False if the identifier has no listeners at all, True otherwise.
        """
        with self._lock:
            events = self._identifiers.get(identifier)
            if events is None:
                return False

            if event_name is None:
                del self._identifiers[identifier]
            elif event_name in events:
                del events[event_name]
                if not events:
                    del self._identifiers[identifier]
            else:
                return True
            self._revision += 1

        log.debug("Shared clear {!r}/{!r}", identifier, event_name)
        return True

    def identifiers(self) -> list[str]:
        """Return identifiers that currently hold listeners."""
        with self._lock:
            return list(self._identifiers)
