"""EventManager: per-instance notification system.

Listeners come from four sources, merged into one order per trigger:

1. listeners attached locally to the triggered event,
2. listeners attached locally to the wildcard event,
3. shared listeners attached for one of the manager's identifiers,
4. shared listeners attached for the wildcard identifier.

Higher priorities run first; at equal priority the sources run in the order
above, and each source runs in attach order.
"""

from collections.abc import Callable, Iterable
from contextlib import nullcontext
from threading import RLock
from typing import Any

from loguru import logger

from eventron._types import WILDCARD, Listener, Predicate
from eventron.aggregate import ListenerAggregate
from eventron.config import ManagerConfig
from eventron.event import Event
from eventron.exceptions import InvalidArgumentError, MissingEventNameError
from eventron.registry import LocalEventRegistry
from eventron.responses import ResponseCollection
from eventron.shared import SharedEventManager
from eventron.sync import SharedListenerSynchronizer
from eventron.utils import as_priority, callable_name, type_label, unique

log = logger.bind(source=__name__)


class EventManager:
    """Attach listeners to named events and trigger them.

    Example::

        events = EventManager(["app.Repository"], shared)
        events.attach("save", lambda e: e.get_param("id"))
        responses = events.trigger("save", repo, {"id": 42})
        responses.last()  # 42

    Warning:
        Listeners run synchronously on the caller's thread.  Exceptions
        raised by a listener propagate to the caller of ``trigger`` and
        abort the remaining listeners.
    """

    def __init__(
        self,
        identifiers: Iterable[str] | None = None,
        shared_manager: SharedEventManager | None = None,
        *,
        config: ManagerConfig | None = None,
    ) -> None:
        """Initialize manager.

        Args:
            identifiers: Identifiers used to pull listeners from the shared
                manager (defaults to ``config.identifiers``).
            shared_manager: Shared registry to pull listeners from, if any.
            config: Manager settings (defaults to ``ManagerConfig()``).

        Raises:
            InvalidArgumentError: If an identifier is invalid.
        """
        self._config = config or ManagerConfig()
        self._lock = RLock() if self._config.thread_safe else nullcontext()
        self._events = LocalEventRegistry()
        self._shared_manager = shared_manager
        self._synchronizer = (
            SharedListenerSynchronizer(shared_manager, self._events)
            if shared_manager is not None
            else None
        )
        self._identifiers: list[str] = []
        self._event_prototype = Event()
        self.set_identifiers(
            self._config.identifiers if identifiers is None else identifiers
        )

    # -- configuration --------------------------------------------------------

    @property
    def config(self) -> ManagerConfig:
        return self._config

    @property
    def shared_manager(self) -> SharedEventManager | None:
        return self._shared_manager

    @property
    def event_prototype(self) -> Event:
        return self._event_prototype

    def set_event_prototype(self, prototype: Event) -> None:
        """Use *prototype* (shallow-copied per call) for ``trigger`` events."""
        if not isinstance(prototype, Event):
            raise InvalidArgumentError(
                f"event prototype must be an Event; received {type_label(prototype)}"
            )
        self._event_prototype = prototype

    def get_identifiers(self) -> list[str]:
        return list(self._identifiers)

    def set_identifiers(self, identifiers: Iterable[str]) -> None:
        """Replace the identifiers (duplicates dropped, order kept).

        Raises:
            InvalidArgumentError: If an identifier is not a non-empty,
                non-wildcard string.
        """
        validated = self._validate_identifiers(identifiers)
        with self._lock:
            if validated == self._identifiers:
                return
            self._identifiers = validated
            if self._synchronizer is not None:
                self._synchronizer.reset()

    def add_identifiers(self, identifiers: Iterable[str]) -> None:
        """Merge identifiers after the current ones (duplicates dropped)."""
        added = self._validate_identifiers(identifiers)
        with self._lock:
            self.set_identifiers([*self._identifiers, *added])

    # -- registration ---------------------------------------------------------

    def on(
        self,
        event_name: str,
        priority: int | None = None,
    ) -> Callable[[Listener], Listener]:
        """Decorator to attach a plain function as listener.

        Returns:
            Decorator function that returns the original function unchanged.
        """

        def decorator(func: Listener) -> Listener:
            return self.attach(event_name, func, priority)

        return decorator

    def attach(
        self,
        event_name: str,
        listener: Listener,
        priority: int | None = None,
    ) -> Listener:
        """Attach a listener to an event.

        ``"*"`` attaches the listener to every event: it is added to each
        event already known to this manager, and to each event created
        later the first time that event is triggered.

        Args:
            event_name: Event to attach to, or ``"*"``.
            listener: Listener callback.
            priority: Priority value (higher = executed first); defaults to
                ``config.default_priority``.

        Returns:
            The listener.

        Raises:
            InvalidArgumentError: If event_name is not a string or listener
                is not callable.
        """
        if not isinstance(event_name, str):
            raise InvalidArgumentError(
                "attach expects a string for the event; "
                f"received {type_label(event_name)}"
            )
        if not callable(listener):
            raise InvalidArgumentError(
                f"listener must be callable; received {type_label(listener)}"
            )
        priority = (
            self._config.default_priority if priority is None else as_priority(priority)
        )

        with self._lock:
            self._events.attach(event_name, listener, priority)
        log.debug(
            "Attached {} to {!r} at priority {}",
            callable_name(listener),
            event_name,
            priority,
        )
        return listener

    def detach(self, listener: Listener, event_name: str | None = None) -> None:
        """Detach a listener.

        Without an event name (or with ``"*"``) the listener is removed from
        every event and from the wildcard list.  With a concrete name only
        that event is affected: a wildcard listener detached this way still
        reaches events first triggered afterwards.

        Raises:
            InvalidArgumentError: If event_name is neither None nor a string.
        """
        if event_name is not None and not isinstance(event_name, str):
            raise InvalidArgumentError(
                "detach expects a string for the event; "
                f"received {type_label(event_name)}"
            )
        with self._lock:
            self._events.detach(listener, event_name)

    def clear_listeners(self, event_name: str) -> None:
        """Forget every listener attached to *event_name*.

        Shared listeners for the event are pulled in again on the next
        trigger.  Clearing ``"*"`` removes the wildcard listeners.
        """
        with self._lock:
            self._events.clear(event_name)
            if self._synchronizer is not None:
                self._synchronizer.forget(event_name)

    def attach_aggregate(
        self,
        aggregate: ListenerAggregate,
        priority: int | None = None,
    ) -> None:
        """Let *aggregate* attach its listeners to this manager."""
        if priority is None:
            priority = self._config.default_priority
        aggregate.attach(self, as_priority(priority))

    def detach_aggregate(self, aggregate: ListenerAggregate) -> None:
        aggregate.detach(self)

    def get_listeners(self, event_name: str) -> list[Listener]:
        """Return the listeners ``trigger(event_name)`` would invoke, in order.

        Raises:
            MissingEventNameError: If event_name is empty.
        """
        if not event_name:
            raise MissingEventNameError("Event is missing a name; cannot resolve!")
        return list(self._resolve_listeners(event_name))

    # -- dispatch -------------------------------------------------------------

    def trigger(
        self,
        event_name: str,
        target: Any = None,
        params: Any = None,
    ) -> ResponseCollection:
        """Trigger all listeners for a given event.

        Args:
            event_name: Name of the event.
            target: Object triggering the event, or a symbol describing it.
            params: Mapping or object of event parameters.

        Returns:
            All listener return values.

        Raises:
            MissingEventNameError: If event_name is empty.
            InvalidArgumentError: If event_name is the wildcard token or
                params is not a mapping or object.
        """
        return self._trigger_listeners(self._prepare_event(event_name, target, params))

    def trigger_until(
        self,
        predicate: Predicate,
        event_name: str,
        target: Any = None,
        params: Any = None,
    ) -> ResponseCollection:
        """Trigger listeners until *predicate* returns True for a result.

        The result that satisfied the predicate is the last one collected,
        and the collection is marked stopped.
        """
        return self._trigger_listeners(
            self._prepare_event(event_name, target, params), predicate
        )

    def trigger_event(self, event: Event) -> ResponseCollection:
        """Trigger listeners with a caller-built event."""
        return self._trigger_listeners(event)

    def trigger_event_until(
        self,
        predicate: Predicate,
        event: Event,
    ) -> ResponseCollection:
        """Trigger a caller-built event until *predicate* returns True."""
        return self._trigger_listeners(event, predicate)

    def _prepare_event(self, event_name: str, target: Any, params: Any) -> Event:
        if not event_name:
            raise MissingEventNameError("Event is missing a name; cannot trigger!")
        event = self._event_prototype.model_copy()
        event.set_name(event_name)
        event.set_target(target)
        event.set_params(params)
        return event

    def _trigger_listeners(
        self,
        event: Event,
        predicate: Predicate | None = None,
    ) -> ResponseCollection:
        """Invoke listeners for *event* in merged order.

        After each listener, dispatch stops if the event's propagation was
        stopped or the predicate accepts the listener's result.

        Args:
            event: Event to dispatch.
            predicate: Optional short-circuit test applied to each result.

        Returns:
            Collected listener results.

        Raises:
            MissingEventNameError: If the event has no name.
        """
        name = event.get_name()
        if not name:
            raise MissingEventNameError("Event is missing a name; cannot trigger!")

        # Initial value of the stop propagation flag must be false
        event.stop_propagation(False)

        listeners = self._resolve_listeners(name)
        log.debug("Trigger {!r} ({} listener(s))", name, len(listeners))

        responses = ResponseCollection()
        for listener in listeners:
            response = listener(event)
            responses.push(response)
            if event.propagation_is_stopped():
                log.debug(
                    "Propagation of {!r} stopped by {}", name, callable_name(listener)
                )
                responses.set_stopped(True)
                break
            if predicate is not None and predicate(response):
                log.debug(
                    "Trigger {!r} short-circuited after {}",
                    name,
                    callable_name(listener),
                )
                responses.set_stopped(True)
                break
        return responses

    def _resolve_listeners(self, event_name: str) -> tuple[Listener, ...]:
        """Sync shared listeners and snapshot the merged order for an event."""
        if event_name == WILDCARD:
            raise InvalidArgumentError("the wildcard event cannot be triggered")
        with self._lock:
            if self._synchronizer is not None:
                self._synchronizer.synchronize(event_name, self._identifiers)
            return self._events.snapshot(event_name)

    @staticmethod
    def _validate_identifiers(identifiers: Iterable[str]) -> list[str]:
        if isinstance(identifiers, str):
            raise InvalidArgumentError(
                "identifiers must be a list of strings, not a single string"
            )
        candidates = list(identifiers)
        for identifier in candidates:
            if not isinstance(identifier, str) or identifier in ("", WILDCARD):
                raise InvalidArgumentError(
                    "identifiers must be non-empty, non-wildcard strings; "
                    f"received {identifier!r}"
                )
        return unique(candidates)
