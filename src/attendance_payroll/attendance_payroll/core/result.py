from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from .exceptions import DomainError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Typed result of a produced operation: a payload or a named failure kind."""

    value: Optional[T] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: str, message: str) -> "Outcome[T]":
        return cls(error_kind=kind, message=message)

    def to_dict(self) -> dict:
        if self.ok:
            return {"ok": True, "value": self.value}
        return {"ok": False, "error": self.message, "code": self.error_kind}


def capture(fn: Callable[..., T], *args: Any, **kwargs: Any) -> Outcome[T]:
    """Run a service operation and fold domain errors into an Outcome.

    Only ``DomainError`` is folded; anything else is a bug and propagates.
    """
    try:
        return Outcome.success(fn(*args, **kwargs))
    except DomainError as exc:
        logger.info("operation %s refused: %s (%s)", getattr(fn, "__name__", fn), exc.kind, exc)
        return Outcome.failure(exc.kind, str(exc))
