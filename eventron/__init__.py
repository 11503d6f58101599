"""eventron - In-process event manager with shared, wildcard and priority listeners.

This package provides per-instance event managers whose listeners can be
attached locally, to every event via a wildcard, or from a shared registry
keyed by component identifiers.
"""

__version__ = "0.1.0"

from loguru import logger

# Disable all eventron logging by default.  Users opt in with:
#     from loguru import logger
#     logger.enable("eventron")
logger.disable("eventron")

from eventron._types import DEFAULT_PRIORITY, WILDCARD
from eventron.aggregate import (
    AbstractListenerAggregate,
    AutoListenerAggregate,
    ListenerAggregate,
    listens_to,
)
from eventron.config import ManagerConfig, load_config
from eventron.event import Event
from eventron.exceptions import (
    EventronError,
    InvalidArgumentError,
    MissingEventNameError,
)
from eventron.manager import EventManager
from eventron.responses import ResponseCollection
from eventron.shared import SharedEventManager

# Opt-in process-wide shared registry; never injected implicitly
default_shared_manager = SharedEventManager()

__all__ = [
    # Version
    "__version__",
    # Constants
    "WILDCARD",
    "DEFAULT_PRIORITY",
    # Managers
    "EventManager",
    "SharedEventManager",
    "default_shared_manager",
    # Collaborators
    "Event",
    "ResponseCollection",
    "ListenerAggregate",
    "AbstractListenerAggregate",
    "AutoListenerAggregate",
    "listens_to",
    # Configuration
    "ManagerConfig",
    "load_config",
    # Exception classes
    "EventronError",
    "InvalidArgumentError",
    "MissingEventNameError",
]
