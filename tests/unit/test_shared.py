"""Tests for SharedEventManager."""

import pytest

from eventron import InvalidArgumentError, SharedEventManager

INVALID_NAMES = {
    "none": None,
    "true": True,
    "false": False,
    "zero": 0,
    "int": 1,
    "zero-float": 0.0,
    "float": 1.1,
    "empty-string": "",
    "list": ["test", "foo"],
    "object": object(),
}

INVALID_NON_NULL = {k: v for k, v in INVALID_NAMES.items() if k != "none"}

INVALID_FOR_LOOKUP = {**INVALID_NAMES, "wildcard": "*"}


def make_listener():
    def listener(event):
        return None

    return listener


def listeners_of(manager, identifiers, event_name):
    records = manager.get_listeners(identifiers, event_name)
    return [record.listener for record in records]


@pytest.fixture
def manager() -> SharedEventManager:
    return SharedEventManager()


@pytest.fixture
def callback():
    return make_listener()


class TestSharedAttach:
    @pytest.mark.parametrize(
        "identifier", list(INVALID_NAMES.values()), ids=list(INVALID_NAMES.keys())
    )
    def test_attach_rejects_invalid_identifier(self, manager, callback, identifier):
        with pytest.raises(InvalidArgumentError, match="identifier"):
            manager.attach(identifier, "foo", callback)

    @pytest.mark.parametrize(
        "event", list(INVALID_NAMES.values()), ids=list(INVALID_NAMES.keys())
    )
    def test_attach_rejects_invalid_event(self, manager, callback, event):
        with pytest.raises(InvalidArgumentError, match="event"):
            manager.attach("foo", event, callback)

    def test_attach_rejects_non_callable(self, manager):
        with pytest.raises(InvalidArgumentError):
            manager.attach("IDENTIFIER", "EVENT", "not callable")

    def test_can_attach(self, manager, callback):
        assert manager.attach("IDENTIFIER", "EVENT", callback) is callback
        assert listeners_of(manager, ["IDENTIFIER"], "EVENT") == [callback]

    def test_attach_records_priority(self, manager, callback):
        manager.attach("IDENTIFIER", "EVENT", callback, 7)

        (record,) = manager.get_listeners(["IDENTIFIER"], "EVENT")
        assert record.priority == 7
        assert record.identifier == "IDENTIFIER"
        assert record.event_name == "EVENT"

    def test_on_decorator(self, manager):
        @manager.on("IDENTIFIER", "EVENT", priority=3)
        def handler(event):
            return "ok"

        (record,) = manager.get_listeners(["IDENTIFIER"], "EVENT")
        assert record.listener is handler
        assert record.priority == 3


class TestSharedDetach:
    @pytest.mark.parametrize(
        "identifier,event",
        [(None, None), ("IDENTIFIER", None), (None, "EVENT"), ("IDENTIFIER", "EVENT")],
    )
    def test_detach_using_identifier_and_event(
        self, manager, callback, identifier, event
    ):
        manager.attach("IDENTIFIER", "EVENT", callback)
        manager.detach(callback, identifier, event)

        assert listeners_of(manager, ["IDENTIFIER"], "EVENT") == []

    def test_detach_does_nothing_if_identifier_unknown(self, manager, callback):
        manager.attach("IDENTIFIER", "EVENT", callback)
        manager.detach(callback, "DIFFERENT-IDENTIFIER")

        assert listeners_of(manager, ["IDENTIFIER"], "EVENT") == [callback]

    def test_detach_does_nothing_if_event_unknown(self, manager, callback):
        manager.attach("IDENTIFIER", "EVENT", callback)
        manager.detach(callback, "IDENTIFIER", "DIFFERENT-EVENT")

        assert listeners_of(manager, ["IDENTIFIER"], "EVENT") == [callback]

    def test_detach_removes_every_occurrence(self, manager, callback):
        other = make_listener()
        manager.attach("IDENTIFIER", "EVENT", callback, 1)
        manager.attach("IDENTIFIER", "EVENT", other, 1)
        manager.attach("IDENTIFIER", "EVENT", callback, 5)

        manager.detach(callback)

        assert listeners_of(manager, ["IDENTIFIER"], "EVENT") == [other]

    @pytest.mark.parametrize(
        "identifier", list(INVALID_NON_NULL.values()), ids=list(INVALID_NON_NULL.keys())
    )
    def test_detach_rejects_invalid_identifier(self, manager, callback, identifier):
        with pytest.raises(InvalidArgumentError, match="Invalid identifier"):
            manager.detach(callback, identifier, "test")

    @pytest.mark.parametrize(
        "event", list(INVALID_NON_NULL.values()), ids=list(INVALID_NON_NULL.keys())
    )
    def test_detach_rejects_invalid_event(self, manager, callback, event):
        manager.attach("IDENTIFIER", "*", callback)
        with pytest.raises(InvalidArgumentError, match="Invalid event name"):
            manager.detach(callback, "IDENTIFIER", event)


class TestSharedGetListeners:
    def test_no_listeners_returns_empty_list(self, manager):
        assert manager.get_listeners(["IDENTIFIER"], "EVENT") == []

    def test_includes_wildcard_listeners_in_lookup_order(self, manager):
        """Exact event, then wildcard event, then wildcard identifier."""
        callback1, callback2, callback3, callback4 = (make_listener() for _ in range(4))
        manager.attach("IDENTIFIER", "EVENT", callback1)
        manager.attach("IDENTIFIER", "*", callback2)
        manager.attach("*", "EVENT", callback3)
        manager.attach("IDENTIFIER", "EVENT", callback4)

        assert listeners_of(manager, ["IDENTIFIER"], "EVENT") == [
            callback1,
            callback4,
            callback2,
            callback3,
        ]

    def test_identifiers_in_given_order_then_wildcard_identifier(self, manager):
        foo, foo_any, bar, any_event, any_any = (make_listener() for _ in range(5))
        manager.attach("*", "*", any_any)
        manager.attach("*", "EVENT", any_event)
        manager.attach("Bar", "EVENT", bar)
        manager.attach("Foo", "*", foo_any)
        manager.attach("Foo", "EVENT", foo)

        assert listeners_of(manager, ["Foo", "Bar"], "EVENT") == [
            foo,
            foo_any,
            bar,
            any_event,
            any_any,
        ]

    def test_duplicate_identifiers_do_not_duplicate_listeners(self, manager, callback):
        manager.attach("Foo", "EVENT", callback)

        assert listeners_of(manager, ["Foo", "Foo"], "EVENT") == [callback]

    @pytest.mark.parametrize(
        "event", list(INVALID_FOR_LOOKUP.values()), ids=list(INVALID_FOR_LOOKUP.keys())
    )
    def test_rejects_invalid_event_name(self, manager, event):
        with pytest.raises(InvalidArgumentError, match="non-empty, non-wildcard"):
            manager.get_listeners(["IDENTIFIER"], event)

    @pytest.mark.parametrize(
        "identifier",
        list(INVALID_FOR_LOOKUP.values()),
        ids=list(INVALID_FOR_LOOKUP.keys()),
    )
    def test_rejects_invalid_identifier(self, manager, identifier):
        with pytest.raises(InvalidArgumentError, match="non-empty, non-wildcard"):
            manager.get_listeners([identifier], "EVENT")

    def test_rejects_single_string_identifiers(self, manager):
        with pytest.raises(InvalidArgumentError):
            manager.get_listeners("IDENTIFIER", "EVENT")


class TestSharedClearListeners:
    def test_clear_without_event_removes_identifier(self, manager, callback):
        wildcard_identifier = make_listener()
        manager.attach("IDENTIFIER", "EVENT", callback)
        manager.attach("IDENTIFIER", "*", callback)
        manager.attach("*", "EVENT", wildcard_identifier)
        manager.attach("IDENTIFIER", "EVENT", callback)

        assert manager.clear_listeners("IDENTIFIER") is True

        assert listeners_of(manager, ["IDENTIFIER"], "EVENT") == [wildcard_identifier]

    def test_clear_event_removes_only_explicit_listeners(self, manager, callback):
        alternate, wildcard_event, wildcard = (make_listener() for _ in range(3))
        manager.attach("IDENTIFIER", "EVENT", callback)
        manager.attach("IDENTIFIER", "ALTERNATE", alternate)
        manager.attach("IDENTIFIER", "*", wildcard_event)
        manager.attach("*", "EVENT", wildcard)
        manager.attach("IDENTIFIER", "EVENT", callback)

        manager.clear_listeners("IDENTIFIER", "EVENT")

        assert listeners_of(manager, ["IDENTIFIER"], "EVENT") == [
            wildcard_event,
            wildcard,
        ]
        assert listeners_of(manager, ["IDENTIFIER"], "ALTERNATE") == [
            alternate,
            wildcard_event,
        ]

    def test_clear_unknown_identifier_returns_false(self, manager):
        assert manager.clear_listeners("foo") is False

    def test_clear_unknown_event_returns_true(self, manager, callback):
        manager.attach("IDENTIFIER", "NOTEVENT", callback)
        manager.attach("*", "EVENT", callback)

        assert manager.clear_listeners("IDENTIFIER", "EVENT") is True
        assert listeners_of(manager, ["IDENTIFIER"], "EVENT") == [callback]


class TestSharedRevision:
    def test_mutations_bump_revision(self, manager, callback):
        start = manager.revision

        manager.attach("IDENTIFIER", "EVENT", callback)
        after_attach = manager.revision
        manager.detach(callback)
        after_detach = manager.revision

        assert start < after_attach < after_detach

    def test_noop_operations_keep_revision(self, manager, callback):
        manager.attach("IDENTIFIER", "EVENT", callback)
        revision = manager.revision

        manager.detach(make_listener())
        manager.detach(callback, "OTHER")
        manager.clear_listeners("OTHER")
        manager.clear_listeners("IDENTIFIER", "OTHER")
        manager.get_listeners(["IDENTIFIER"], "EVENT")

        assert manager.revision == revision

    def test_identifiers(self, manager, callback):
        manager.attach("Foo", "EVENT", callback)
        manager.attach("*", "EVENT", callback)

        assert manager.identifiers() == ["Foo", "*"]
