"""Listener aggregates: objects that attach several listeners at once.

``ListenerAggregate`` is the protocol EventManager.attach_aggregate() and
detach_aggregate() talk to.  ``AbstractListenerAggregate`` tracks what it
attached so detaching is one call, and ``AutoListenerAggregate`` discovers
``@listens_to`` decorated methods and attaches them as bound methods.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from types import TracebackType
from typing import TYPE_CHECKING, Any, TypeVar

from loguru import logger

from eventron._types import DEFAULT_PRIORITY, Listener

if TYPE_CHECKING:
    from eventron.manager import EventManager

log = logger.bind(source=__name__)

_MARK = "_eventron_listens_to"

F = TypeVar("F", bound=Callable[..., Any])


def listens_to(
    event_name: str,
    priority: int | None = None,
) -> Callable[[F], F]:
    """Mark a method of an AutoListenerAggregate as a listener.

    May be stacked to listen to several events.  Does **not** attach
    anything; the aggregate attaches the bound method when it is itself
    attached to an EventManager.

    Args:
        event_name: Event to listen to (``"*"`` for every event).
        priority: Priority for this method, or None to use the priority
            the aggregate is attached with.

    Returns:
        Decorator function that returns the original function unchanged.
    """

    def decorator(func: F) -> F:
        marks = list(getattr(func, _MARK, []))
        marks.append((event_name, priority))
        setattr(func, _MARK, marks)
        return func

    return decorator


class ListenerAggregate(ABC):
    """An object that attaches one or more listeners to an EventManager."""

    @abstractmethod
    def attach(self, events: "EventManager", priority: int = DEFAULT_PRIORITY) -> None:
        raise NotImplementedError

    @abstractmethod
    def detach(self, events: "EventManager") -> None:
        raise NotImplementedError


class AbstractListenerAggregate(ListenerAggregate):
    """Aggregate that remembers the listeners it attached.

    Subclasses implement ``attach`` and append every listener they attach to
    ``self.listeners``::

        class Audit(AbstractListenerAggregate):
            def attach(self, events, priority=1):
                self.listeners.append(events.attach("save", self.on_save, priority))

    ``detach`` then removes them all.  No ``super().__init__()`` call is
    required.
    """

    @property
    def listeners(self) -> list[Listener]:
        return self.__dict__.setdefault("_listeners", [])

    def detach(self, events: "EventManager") -> None:
        for listener in self.listeners:
            events.detach(listener)
        self.listeners.clear()


class AutoListenerAggregate(AbstractListenerAggregate):
    """Aggregate whose ``@listens_to`` methods attach themselves.

    ``@staticmethod`` and ``@classmethod`` are supported; place them
    **outside** ``@listens_to()``.

    Listeners are tracked per manager, so detaching from one manager leaves
    the attachments on the others in place.  Supports the context manager
    protocol for a scoped lifetime: on exit the aggregate detaches from
    every manager it is still attached to::

        with Audit() as audit:
            events.attach_aggregate(audit)
            events.trigger("save")
        # listeners detached here
    """

    @property
    def listeners(self) -> list[Listener]:
        return [
            listener
            for _, attached in self._attachments().values()
            for listener in attached
        ]

    def attach(self, events: "EventManager", priority: int = DEFAULT_PRIORITY) -> None:
        marked = self._marked_methods()
        _, attached = self._attachments().setdefault(id(events), (events, []))
        for bound, event_name, own_priority in marked:
            attached.append(
                events.attach(
                    event_name,
                    bound,
                    priority if own_priority is None else own_priority,
                )
            )
        log.debug(
            "Attached {} listener(s) of {}", len(marked), type(self).__qualname__
        )

    def detach(self, events: "EventManager") -> None:
        entry = self._attachments().pop(id(events), None)
        if entry is None:
            return
        for listener in entry[1]:
            events.detach(listener)

    def detach_all(self) -> None:
        """Detach from every manager this aggregate is attached to."""
        for events, _ in list(self._attachments().values()):
            self.detach(events)

    def _attachments(self) -> dict[int, tuple["EventManager", list[Listener]]]:
        """Listeners attached per manager, keyed by manager identity."""
        return self.__dict__.setdefault("_attachments", {})

    def _marked_methods(self) -> list[tuple[Listener, str, int | None]]:
        """Scan the MRO for marked methods, child definitions first."""
        found: list[tuple[Listener, str, int | None]] = []
        seen: set[str] = set()
        for klass in type(self).__mro__:
            for name, attr in vars(klass).items():
                if name in seen:
                    continue
                # Unwrap staticmethod/classmethod to access inner function
                inner = attr
                if isinstance(attr, (staticmethod, classmethod)):
                    inner = attr.__func__
                if callable(inner) and hasattr(inner, _MARK):
                    seen.add(name)
                    bound = getattr(self, name)
                    for event_name, priority in getattr(inner, _MARK):
                        found.append((bound, event_name, priority))
        return found

    def __enter__(self) -> "AutoListenerAggregate":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.detach_all()
