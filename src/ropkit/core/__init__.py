"""Result type, synchronous and asynchronous combinators."""

from .types import UNIT, FromException, JsonDict, JsonValue, Unit, supports_from_exception
from .result import Err, Ok, Result, from_call, from_nullable, sequence, traverse
from .aio import AsyncResult, async_result, from_call_async, from_result_async

__all__ = [
    "Result", "Ok", "Err", "Unit", "UNIT",
    "FromException", "supports_from_exception",
    "from_nullable", "from_call", "sequence", "traverse",
    "AsyncResult", "async_result", "from_call_async", "from_result_async",
    "JsonDict", "JsonValue",
]
