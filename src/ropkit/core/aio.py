"""Asynchronous Result combinators.

``AsyncResult`` wraps an awaitable that resolves to a ``Result`` together with
the error type used to convert faults. Every combinator is fault-capturing:
an exception raised while awaiting the source, or raised by the caller's
continuation, becomes ``Err(error_type.from_exception(exc))``.

Steps may be sync or async: a step whose return value is awaitable is awaited.

Example:
    >>> user = await (
    ...     AsyncResult.of(get_order(order_id), AppError)
    ...     .and_then(lambda order: get_user(order.user_id))   # async step
    ...     .map(lambda user: user.name.title())               # sync step
    ... )

Cancellation (``asyncio.CancelledError``) is not an ``Exception`` and is never
converted: it propagates out of the chain unchanged.
"""

from __future__ import annotations

import asyncio
import inspect
from functools import wraps
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Generator,
    Generic,
    ParamSpec,
    TypeVar,
    Union,
    overload,
)

from .result import Err, Ok, Result
from .types import supports_from_exception

if TYPE_CHECKING:
    from .types import FromException

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")
V = TypeVar("V")
F = TypeVar("F")
R = TypeVar("R")
P = ParamSpec("P")

MaybeAwaitable = Union[R, Awaitable[R]]

_PENDING: Any = object()


async def _ready(result: Result[T, E]) -> Result[T, E]:
    return result


async def _settle(value: MaybeAwaitable[R]) -> R:
    return await value if inspect.isawaitable(value) else value  # type: ignore[return-value]


def _type_name(error_type: object) -> str:
    return getattr(error_type, "__qualname__", None) or type(error_type).__name__


def _as_result(value: object, step: str) -> Result[Any, Any]:
    if not isinstance(value, Result):
        raise TypeError(f"{step} step must return a Result, got {type(value).__name__}")
    return value


class AsyncResult(Generic[T, E]):
    """Deferred Result with fault-capturing combinators.

    Combinators are lazy and return new ``AsyncResult`` instances; nothing
    runs until the chain is awaited, and steps run in the order written.
    Once a step yields Err, later ``map``/``and_then`` steps are skipped.
    Awaiting the same instance twice, or from concurrent branches, returns
    the same Result; the source is awaited once.
    """

    __slots__ = ("_source", "_error_type", "_result", "_task")

    def __init__(self, source: Awaitable[Result[T, E]], error_type: type[E] | FromException[E]) -> None:
        if not supports_from_exception(error_type):
            raise TypeError(f"{_type_name(error_type)} does not implement from_exception(exc)")
        self._source = source
        self._error_type = error_type
        self._result: Result[T, E] = _PENDING
        self._task: asyncio.Future[Result[T, E]] | None = None

    # ─── Constructors ──────────────────────────────────────────────────

    @classmethod
    def of(cls, source: Awaitable[Result[T, E]], error_type: type[E] | FromException[E]) -> AsyncResult[T, E]:
        """Lift an awaitable of Result."""
        return cls(source, error_type)

    @classmethod
    def ok(cls, value: T, error_type: type[E] | FromException[E]) -> AsyncResult[T, E]:
        return cls(_ready(Ok(value)), error_type)

    @classmethod
    def err(cls, error: E, error_type: type[E] | FromException[E]) -> AsyncResult[T, E]:
        return cls(_ready(Err(error)), error_type)

    @property
    def error_type(self) -> type[E] | FromException[E]:
        return self._error_type

    # ─── Resolution ────────────────────────────────────────────────────

    def __await__(self) -> Generator[Any, None, Result[T, E]]:
        return self._resolve().__await__()

    async def _resolve(self) -> Result[T, E]:
        if self._result is _PENDING:
            # The source is awaited by exactly one task; concurrent awaiters share it
            if self._task is None:
                self._task = asyncio.ensure_future(self._run())
            self._result = await self._task
        return self._result

    async def _run(self) -> Result[T, E]:
        try:
            return _as_result(await self._source, "source")
        except Exception as exc:
            return self._capture(exc, "await")

    def _capture(self, exc: Exception, site: str) -> Err[Any, E]:
        from ropkit.observability import log_fault

        log_fault(exc, site=f"AsyncResult.{site}", error_type=_type_name(self._error_type))
        return Err(self._error_type.from_exception(exc))

    def _chain(
        self,
        step: Callable[[Result[T, E]], Awaitable[Result[U, Any]]],
        site: str,
        error_type: Any = None,
    ) -> AsyncResult[U, Any]:
        target = error_type or self._error_type
        if not supports_from_exception(target):
            raise TypeError(f"{_type_name(target)} does not implement from_exception(exc)")

        async def run() -> Result[U, Any]:
            result = await self._resolve()
            try:
                return await step(result)
            except Exception as exc:
                from ropkit.observability import log_fault

                log_fault(exc, site=f"AsyncResult.{site}", error_type=_type_name(target))
                return Err(target.from_exception(exc))

        return AsyncResult(run(), target)

    # ─── Combinators ───────────────────────────────────────────────────

    def map(self, f: Callable[[T], MaybeAwaitable[U]]) -> AsyncResult[U, E]:
        """Transform the Ok value with a sync or async function."""
        async def step(result: Result[T, E]) -> Result[U, E]:
            if not result._is_ok:
                return result  # type: ignore[return-value]
            return Ok(await _settle(f(result._value)))

        return self._chain(step, "map")

    @overload
    def and_then(self, f: Callable[[T], MaybeAwaitable[Result[U, E]]]) -> AsyncResult[U, E]: ...
    @overload
    def and_then(
        self, f: Callable[[T], MaybeAwaitable[Result[U, E]]], project: Callable[[T, U], V]
    ) -> AsyncResult[V, E]: ...

    def and_then(
        self,
        f: Callable[[T], MaybeAwaitable[Result[Any, E]]],
        project: Callable[[T, Any], Any] | None = None,
    ) -> AsyncResult[Any, E]:
        """Bind a step returning a Result (or an awaitable of one).

        With ``project``, ``Ok(t)`` bound to ``Ok(u)`` becomes ``Ok(project(t, u))``.
        """
        async def step(result: Result[T, E]) -> Result[Any, E]:
            if not result._is_ok:
                return result
            bound = _as_result(await _settle(f(result._value)), "and_then")
            if project is None or not bound._is_ok:
                return bound
            return Ok(project(result._value, bound._value))

        return self._chain(step, "and_then")

    flat_map = and_then

    def map_err(
        self, f: Callable[[E], MaybeAwaitable[F]], *, error_type: type[F] | FromException[F] | None = None
    ) -> AsyncResult[T, F]:
        """Transform the Err value. Pass ``error_type`` when F differs from E."""
        async def step(result: Result[T, E]) -> Result[T, F]:
            if result._is_ok:
                return result  # type: ignore[return-value]
            return Err(await _settle(f(result._value)))

        return self._chain(step, "map_err", error_type)

    def or_else(
        self,
        f: Callable[[E], MaybeAwaitable[Result[T, F]]],
        *,
        error_type: type[F] | FromException[F] | None = None,
    ) -> AsyncResult[T, F]:
        """Recover from Err with a step returning a Result. Ok passes through."""
        async def step(result: Result[T, E]) -> Result[T, F]:
            if result._is_ok:
                return result  # type: ignore[return-value]
            return _as_result(await _settle(f(result._value)), "or_else")

        return self._chain(step, "or_else", error_type)

    async def match(self, *, ok: Callable[[T], MaybeAwaitable[R]], err: Callable[[E], MaybeAwaitable[R]]) -> R:
        """Await the Result and dispatch to ``ok`` or ``err``.

        A fault while awaiting, or raised by ``ok``, is handed to
        ``err(error_type.from_exception(exc))``. ``err`` runs at most once;
        its own exceptions propagate.
        """
        result = await self._resolve()
        if not result._is_ok:
            return await _settle(err(result._value))
        try:
            return await _settle(ok(result._value))
        except Exception as exc:
            return await _settle(err(self._capture(exc, "match")._value))

    def __repr__(self) -> str:
        state = "pending" if self._result is _PENDING else repr(self._result)
        return f"AsyncResult[{_type_name(self._error_type)}]({state})"


# ═══════════════════════════════════════════════════════════════════════════════
# Fault-capturing constructors
# ═══════════════════════════════════════════════════════════════════════════════


async def from_call_async(operation: Callable[[], Awaitable[T]], to_error: Callable[[Exception], E]) -> Result[T, E]:
    """Await a raw-value operation: Ok(value), or Err(to_error(exc)) if it raises."""
    try:
        return Ok(await operation())
    except Exception as exc:
        from ropkit.observability import log_fault

        log_fault(exc, site="from_call_async")
        return Err(to_error(exc))


async def from_result_async(
    operation: Callable[[], Awaitable[Result[T, E]]], to_error: Callable[[Exception], E]
) -> Result[T, E]:
    """Await a Result-producing operation: its Result as-is, or Err(to_error(exc)) if it raises."""
    try:
        return _as_result(await operation(), "from_result_async")
    except Exception as exc:
        from ropkit.observability import log_fault

        log_fault(exc, site="from_result_async")
        return Err(to_error(exc))


def async_result(
    error_type: type[E] | FromException[E],
) -> Callable[[Callable[P, Awaitable[Result[T, E]]]], Callable[P, AsyncResult[T, E]]]:
    """Decorator: calling the wrapped coroutine function returns an AsyncResult.

    Example:
        >>> @async_result(AppError)
        ... async def get_user(user_id: str) -> Result[User, AppError]:
        ...     ...
        >>> await get_user("u-1").map(lambda u: u.name)
    """
    if not supports_from_exception(error_type):
        raise TypeError(f"{_type_name(error_type)} does not implement from_exception(exc)")

    def decorator(func: Callable[P, Awaitable[Result[T, E]]]) -> Callable[P, AsyncResult[T, E]]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> AsyncResult[T, E]:
            async def run() -> Result[T, E]:
                return await func(*args, **kwargs)
            return AsyncResult(run(), error_type)
        return wrapper

    return decorator
