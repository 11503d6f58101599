"""Event model for eventron.

An Event carries the name being triggered, an optional target (the object or
symbol that triggered it), a parameter bag, and the per-trigger propagation
flag listeners use to short-circuit dispatch.
"""

from collections.abc import Mapping, MutableMapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator
from pydantic import ValidationError as PydanticValidationError

from eventron.exceptions import InvalidArgumentError
from eventron.utils import type_label


class Event(BaseModel):
    """Mutable value object passed to every listener.

    ``params`` may be a mapping or any attribute-bearing object.  It is kept
    by reference, so a listener that alters the bag alters what the caller
    (and every later listener) sees.

    Example:
        >>> event = Event("save", target=document, params={"force": True})
        >>> event.get_param("force")
        True

    Raises:
        InvalidArgumentError: If a field fails validation.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        strict=True,
        arbitrary_types_allowed=True,
        extra="forbid",
    )

    name: str = ""
    target: Any = None
    params: Any = Field(default_factory=dict)

    _propagation_stopped: bool = PrivateAttr(default=False)

    def __init__(
        self,
        name: str = "",
        target: Any = None,
        params: Any = None,
        **data: Any,
    ) -> None:
        """Wrap pydantic ValidationError into InvalidArgumentError."""
        try:
            super().__init__(name=name, target=target, params=params, **data)
        except PydanticValidationError as exc:
            raise InvalidArgumentError(str(exc)) from exc

    @field_validator("params", mode="before")
    @classmethod
    def validate_params(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, Mapping) or hasattr(value, "__dict__"):
            return value
        raise ValueError(
            f"params must be a mapping or an object; received {type_label(value)}"
        )

    def _assign(self, field: str, value: Any) -> None:
        try:
            setattr(self, field, value)
        except PydanticValidationError as exc:
            raise InvalidArgumentError(str(exc)) from exc

    def get_name(self) -> str:
        return self.name

    def set_name(self, name: str) -> None:
        self._assign("name", name)

    def get_target(self) -> Any:
        return self.target

    def set_target(self, target: Any) -> None:
        self._assign("target", target)

    def get_params(self) -> Any:
        return self.params

    def set_params(self, params: Any) -> None:
        """Replace the parameter bag.

        Args:
            params: Mapping or attribute-bearing object; None means empty.

        Raises:
            InvalidArgumentError: If params is a scalar, string or sequence.
        """
        self._assign("params", params)

    def get_param(self, key: str, default: Any = None) -> Any:
        """Return a single parameter, or *default* when it is absent."""
        if isinstance(self.params, Mapping):
            return self.params.get(key, default)
        return getattr(self.params, key, default)

    def set_param(self, key: str, value: Any) -> None:
        if isinstance(self.params, MutableMapping):
            self.params[key] = value
        elif isinstance(self.params, Mapping):
            raise InvalidArgumentError(
                f"params mapping is read-only ({type_label(self.params)})"
            )
        else:
            setattr(self.params, key, value)

    def stop_propagation(self, flag: bool = True) -> None:
        """Ask the dispatcher to stop invoking listeners after this one."""
        self._propagation_stopped = bool(flag)

    def propagation_is_stopped(self) -> bool:
        return self._propagation_stopped
