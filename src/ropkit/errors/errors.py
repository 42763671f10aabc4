"""Library exceptions and the stock fault-carrying error type.

Provides the exceptions ropkit itself raises plus ``Fault``, a ready-made
error payload that implements the ``from_exception`` capability.
"""

from __future__ import annotations

import traceback
from enum import StrEnum
from functools import lru_cache
from typing import Self

from pydantic import BaseModel, ConfigDict


class RopkitError(Exception):
    """Base class for exceptions raised by ropkit itself."""


class UnwrapError(RopkitError, RuntimeError):
    """Raised when a payload is extracted from the wrong variant."""

    def __init__(self, result: object, message: str) -> None:
        self.result = result
        super().__init__(message)


class ResultDecodeError(RopkitError, ValueError):
    """Raised when a wire document cannot be turned back into a Result."""


class FaultCode(StrEnum):
    """Coarse classification of captured faults."""
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    PARSE_ERROR = "PARSE_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    UNKNOWN = "UNKNOWN"


# Ordered: first matching pattern wins
_PATTERN_CODES: dict[str, FaultCode] = {
    "timeout": FaultCode.TIMEOUT,
    "connection": FaultCode.NETWORK_ERROR,
    "network": FaultCode.NETWORK_ERROR,
    "permission": FaultCode.PERMISSION_DENIED,
    "forbidden": FaultCode.PERMISSION_DENIED,
    "parse": FaultCode.PARSE_ERROR,
    "json": FaultCode.PARSE_ERROR,
    "decode": FaultCode.PARSE_ERROR,
    "notfound": FaultCode.NOT_FOUND,
    "not found": FaultCode.NOT_FOUND,
    "keyerror": FaultCode.NOT_FOUND,
    "validation": FaultCode.INVALID_INPUT,
    "valueerror": FaultCode.INVALID_INPUT,
    "typeerror": FaultCode.INVALID_INPUT,
}
_PATTERN_KEYS = tuple(_PATTERN_CODES.keys())


@lru_cache(maxsize=256)
def _classify_cached(exc_key: str) -> FaultCode:
    haystack = exc_key.lower()
    for pattern in _PATTERN_KEYS:
        if pattern in haystack:
            return _PATTERN_CODES[pattern]
    return FaultCode.UNKNOWN


def classify_exception(exc: BaseException) -> FaultCode:
    """Map exception to fault code via pattern matching on name/message."""
    return _classify_cached(f"{type(exc).__name__} {exc}")


class Fault(BaseModel):
    """Error payload describing a captured runtime fault.

    Implements the ``from_exception`` capability, so it can be used directly
    as the error type of an ``AsyncResult``:

        >>> AsyncResult.of(fetch_user("u-1"), Fault)
    """

    model_config = ConfigDict(frozen=True)

    message: str
    code: FaultCode = FaultCode.UNKNOWN
    exception_type: str | None = None
    details: str | None = None

    @classmethod
    def from_exception(cls, exc: Exception) -> Self:
        """Create from exception with auto-classification."""
        from ropkit.config import get_settings

        details = None
        if get_settings().capture.include_traceback:
            details = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return cls(
            message=str(exc) or type(exc).__name__,
            code=classify_exception(exc),
            exception_type=type(exc).__name__,
            details=details,
        )

    def render(self) -> str:
        """Human-readable one-line summary."""
        kind = f" ({self.exception_type})" if self.exception_type else ""
        return f"[{self.code}] {self.message}{kind}"

    __str__ = render
