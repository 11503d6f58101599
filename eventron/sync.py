"""Synchronization of shared listeners into a dispatcher's local registry.

The shared registry is mutated by third parties.  Rather than re-merging
every shared listener on each trigger, an EventManager keeps, per event, the
shared records it last attached and applies only the additions and removals
observed since.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from loguru import logger

from eventron._types import WILDCARD
from eventron.registry import LocalEventRegistry, Origin, Registration
from eventron.shared import SharedEventManager, SharedListener

log = logger.bind(source=__name__)


@dataclass
class SharedListenerCacheEntry:
    """Shared records last attached for one event.

    Attributes:
        revision: Shared registry revision the records were read at.
        identifiers: Dispatcher identifiers the records were read for.
        records: Ordered records returned by the shared registry.
        registrations: Local registration each record was attached as.
    """

    revision: int
    identifiers: tuple[str, ...]
    records: tuple[SharedListener, ...] = ()
    registrations: dict[SharedListener, Registration] = field(default_factory=dict)


class SharedListenerSynchronizer:
    """Keep a LocalEventRegistry's shared registrations current.

    Shared records become registrations with origin ``SHARED`` (named
    identifier) or ``SHARED_WILDCARD`` (wildcard identifier).  The group
    encodes the identifier's position and exact-vs-wildcard event, and the
    sequence is the record's shared attach counter, which reproduces the
    shared registry's lookup order among equal priorities.
    """

    def __init__(self, shared: SharedEventManager, local: LocalEventRegistry) -> None:
        self._shared = shared
        self._local = local
        self._cache: dict[str, SharedListenerCacheEntry] = {}

    def synchronize(self, event_name: str, identifiers: Sequence[str]) -> None:
        """Bring shared registrations for *event_name* up to date.

        Args:
            event_name: Concrete event about to be triggered.
            identifiers: The dispatcher's identifiers.

        Post:
            The local registry for event_name holds exactly one registration
            per shared record currently matching identifiers/event_name.

        Raises:
            InvalidArgumentError: If the shared registry rejects the lookup.
        """
        identifiers = tuple(identifiers)
        revision = self._shared.revision
        entry = self._cache.get(event_name)

        if entry is not None and entry.identifiers != identifiers:
            self._drop(event_name, entry)
            entry = None

        if entry is not None and entry.revision == revision:
            return

        current = tuple(self._shared.get_listeners(identifiers, event_name))

        if entry is None:
            # Nothing to track; names without shared listeners stay uncached
            if not current:
                return
            positions = {name: index for index, name in enumerate(identifiers)}
            self._cache[event_name] = SharedListenerCacheEntry(
                revision=revision,
                identifiers=identifiers,
                records=current,
                registrations={
                    record: self._attach(event_name, record, positions)
                    for record in current
                },
            )
            log.debug(
                "Attached {} shared listener(s) to {!r}", len(current), event_name
            )
            return

        if current == entry.records:
            entry.revision = revision
            return

        live = set(current)
        removed = 0
        for record, registration in entry.registrations.items():
            if record not in live:
                self._local.discard(event_name, registration)
                removed += 1

        positions = {name: index for index, name in enumerate(identifiers)}
        registrations: dict[SharedListener, Registration] = {}
        for record in current:
            registration = entry.registrations.get(record)
            if registration is None:
                registration = self._attach(event_name, record, positions)
            registrations[record] = registration

        log.debug(
            "Shared listeners for {!r}: +{} -{}",
            event_name,
            len(current) - (len(entry.records) - removed),
            removed,
        )
        entry.revision = revision
        entry.records = current
        entry.registrations = registrations

    def forget(self, event_name: str) -> None:
        """Drop the cache entry for an event whose local registry was cleared."""
        self._cache.pop(event_name, None)

    def reset(self) -> None:
        """Detach every synced registration and empty the cache."""
        for event_name, entry in self._cache.items():
            for registration in entry.registrations.values():
                self._local.discard(event_name, registration)
        self._cache.clear()

    def _drop(self, event_name: str, entry: SharedListenerCacheEntry) -> None:
        for registration in entry.registrations.values():
            self._local.discard(event_name, registration)
        del self._cache[event_name]

    def _attach(
        self,
        event_name: str,
        record: SharedListener,
        positions: dict[str, int],
    ) -> Registration:
        wildcard_event = 1 if record.event_name == WILDCARD else 0
        if record.identifier == WILDCARD:
            origin, group = Origin.SHARED_WILDCARD, wildcard_event
        else:
            origin = Origin.SHARED
            group = 2 * positions[record.identifier] + wildcard_event
        registration = Registration(
            listener=record.listener,
            priority=record.priority,
            origin=origin,
            sequence=record.sequence,
            group=group,
        )
        return self._local.insert(event_name, registration)
