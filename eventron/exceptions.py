"""Exception hierarchy for eventron.

All custom exceptions inherit from EventronError base class.
"""


class EventronError(Exception):
    """Base exception for all eventron errors.

    Lets callers catch every framework-specific error with a single except
    clause.  Exceptions raised by listeners are never wrapped in it.
    """


class InvalidArgumentError(EventronError, ValueError):
    """A call violated the argument contract.

    Raised when:
    - A non-string event name is passed to attach/detach
    - The shared registry receives an empty or non-string identifier or
      event name, or a wildcard where a concrete name is required
    - An Event receives a name or parameter bag of the wrong type

    Raised before any side effect takes place.
    """


class MissingEventNameError(EventronError, RuntimeError):
    """An event was triggered without a name.

    Raised before any listener is resolved or invoked.
    """
