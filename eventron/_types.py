"""Shared type definitions for eventron.

All type aliases use ``TypeAlias`` annotations.
"""

from collections.abc import Callable
from typing import Any, TypeAlias

WILDCARD = "*"
"""Reserved event name / identifier matching every event or component."""

DEFAULT_PRIORITY = 1
"""Priority used when a listener is attached without one."""

Listener: TypeAlias = Callable[[Any], Any]
"""A callable invoked with the triggered event; its return value is collected."""

Predicate: TypeAlias = Callable[[Any], bool]
"""Short-circuit test applied to each listener result by ``trigger_until``."""
