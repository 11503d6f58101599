"""Configuration for EventManager instances.

Settings can be built in code or read from the ``[tool.eventron]`` table of
a ``pyproject.toml``::

    [tool.eventron]
    identifiers = ["app.Repository"]
    default_priority = 1
    thread_safe = true
"""

import tomllib
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from eventron._types import DEFAULT_PRIORITY
from eventron.exceptions import InvalidArgumentError

log = logger.bind(source=__name__)

CONFIG_TABLE = "eventron"


class ManagerConfig(BaseModel):
    """Immutable EventManager settings.

    Attributes:
        identifiers: Identifiers used when the manager is built without any.
        default_priority: Priority for attach calls that omit one.
        thread_safe: Guard registries with a re-entrant lock.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    identifiers: list[str] = Field(default_factory=list)
    default_priority: int = DEFAULT_PRIORITY
    thread_safe: bool = True

    def __init__(self, **data: Any) -> None:
        """Wrap pydantic ValidationError into InvalidArgumentError."""
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise InvalidArgumentError(str(exc)) from exc


def load_config(pyproject_path: Path) -> ManagerConfig:
    """Read ManagerConfig from the ``[tool.eventron]`` table.

    Args:
        pyproject_path: Path to the ``pyproject.toml`` file.

    Returns:
        The parsed config; defaults when the table is absent.

    Raises:
        InvalidArgumentError: If the table holds unknown keys or bad values.
    """
    with open(pyproject_path, "rb") as fh:
        config = tomllib.load(fh)

    table = config.get("tool", {}).get(CONFIG_TABLE, {})
    if not table:
        log.info("No [tool.{}] table in {}", CONFIG_TABLE, pyproject_path)
        return ManagerConfig()

    log.debug("Loaded [tool.{}] from {}", CONFIG_TABLE, pyproject_path)
    return ManagerConfig(**table)
