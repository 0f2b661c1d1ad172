"""Ok/Err outcomes for lifecycle commands.

Pausing an idle session or resuming one that already ended is not an
error worth an exception; the controller reports it as ``Err`` and the
caller decides whether to log, ignore or surface it:

    result = controller.pause()
    if result.is_err():
        logger.debug("pause ignored: %s", result.error)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    @property
    def error(self) -> None:
        return None

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failure with a human-readable reason in ``error``."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    @property
    def value(self) -> None:
        return None

    def unwrap(self):
        """Raise, since there is no value; for call sites that cannot fail."""
        raise ValueError(f"unwrap() on Err: {self.error}")


Result = Union[Ok[T], Err[E]]
