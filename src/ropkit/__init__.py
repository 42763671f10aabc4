"""ropkit - Railway-oriented error handling for Python.

A closed two-variant Result type with law-abiding combinators that work the
same way over plain values and awaitables, plus a canonical JSON encoding.

Quick Start:
    >>> from ropkit import Ok, Err, Result, from_call
    >>>
    >>> def parse_age(raw: str) -> Result[int, str]:
    ...     return from_call(lambda: int(raw), lambda exc: f"not a number: {raw}")
    >>>
    >>> parse_age("42").and_then(lambda n: Ok(n) if n >= 0 else Err("negative")).match(
    ...     ok=lambda n: f"age {n}",
    ...     err=lambda e: f"rejected: {e}",
    ... )
    'age 42'

Async chains convert faults into your error type:
    >>> from ropkit import AsyncResult, Fault
    >>>
    >>> name = await (
    ...     AsyncResult.of(fetch_user("u-1"), Fault)   # fetch_user returns Result
    ...     .map(lambda user: user.name)
    ...     .match(ok=str.title, err=lambda f: f"unavailable: {f.message}")
    ... )

Wire format:
    >>> from ropkit.codec import get_codec
    >>> get_codec(Result[bool, str]).dumps(Ok(True))
    b'{"$result":"ok","value":true}'
"""

from __future__ import annotations

__version__ = "0.1.0"

# Core
from .core import (
    UNIT,
    AsyncResult,
    Err,
    FromException,
    Ok,
    Result,
    Unit,
    async_result,
    from_call,
    from_call_async,
    from_nullable,
    from_result_async,
    sequence,
    traverse,
)

# Errors
from .errors import Fault, FaultCode, ResultDecodeError, RopkitError, UnwrapError, classify_exception

# Codec
from .codec import ResultCodec, get_codec

# Configuration
from .config import RopkitSettings, get_settings

# Logging
from .observability import configure_logging, get_logger

__all__ = [
    "__version__",
    # Result
    "Result", "Ok", "Err", "Unit", "UNIT",
    "from_nullable", "from_call", "sequence", "traverse",
    # Async
    "AsyncResult", "FromException", "async_result", "from_call_async", "from_result_async",
    # Errors
    "RopkitError", "UnwrapError", "ResultDecodeError", "Fault", "FaultCode", "classify_exception",
    # Codec
    "ResultCodec", "get_codec",
    # Config & logging
    "RopkitSettings", "get_settings", "configure_logging", "get_logger",
]
