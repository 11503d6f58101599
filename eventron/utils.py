import inspect
from collections.abc import Iterable
from typing import Any

from eventron.exceptions import InvalidArgumentError


def callable_name(cb: Any) -> str:
    """Return a human-readable name for a callable, safe for logging.

    Falls back through ``__qualname__``, ``__name__``, and ``repr()``
    so that ``functools.partial``, callable instances, and other exotic
    callables never raise ``AttributeError``.

    Args:
        cb: Any callable object.

    Returns:
        Display name string.
    """
    return (
        getattr(cb, "__qualname__", None) or getattr(cb, "__name__", None) or repr(cb)
    )


def same_listener(left: Any, right: Any) -> bool:
    """Tell whether two listener references denote the same listener.

    Comparison is by identity.  Bound methods are re-created on every
    attribute access, so two bound methods are the same listener when they
    wrap the same function on the same instance.  Value equality
    (``__eq__``) of callable objects is never consulted.

    Args:
        left: Listener reference.
        right: Listener reference.

    Returns:
        True if both refer to the same listener.
    """
    if left is right:
        return True
    if inspect.ismethod(left) and inspect.ismethod(right):
        return left.__self__ is right.__self__ and left.__func__ is right.__func__
    return False


def unique(items: Iterable[str]) -> list[str]:
    """Deduplicate strings, keeping first-seen order."""
    return list(dict.fromkeys(items))


def type_label(value: Any) -> str:
    """Name the type of an offending argument for error messages."""
    return type(value).__qualname__


def as_priority(value: Any) -> int:
    """Coerce a priority argument to ``int``.

    Raises:
        InvalidArgumentError: If the value has no integer interpretation.
    """
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(
            f"priority must be an integer; received {type_label(value)}: {value!r}"
        ) from exc
