"""Result/Either monad for type-safe error handling.

A closed union of exactly two variants, ``Ok`` and ``Err``, with monadic
operations:
- Functor: map, map_err
- Monad: and_then (bind, with optional projection)
- Exhaustive elimination: match
- Boundary constructors: from_nullable, from_call

Synchronous combinators never intercept exceptions raised by the functions
passed to them; the only capture point on this side is ``from_call``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, ClassVar, Generic, NoReturn, TypeVar, overload

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from pydantic import GetCoreSchemaHandler
    from pydantic_core import core_schema

T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type
U = TypeVar("U")  # Mapped success type
V = TypeVar("V")  # Projected success type
F = TypeVar("F")  # Mapped error type

# Flipped once Ok and Err exist; any later subclass of Result is rejected
_sealed = False


class Result(Generic[T, E]):
    """Discriminated union representing success (Ok) or failure (Err).

    Sum type enforcing exhaustive error handling. The only concrete
    variants are ``Ok`` and ``Err``; subclassing is rejected, so a
    ``match`` over both is always exhaustive.

    Examples:
        >>> Ok(42).map(lambda x: x * 2)
        Ok(84)
        >>> Err("fail").map(lambda x: x * 2)
        Err('fail')
        >>> Ok(5).and_then(lambda x: Ok(x * 2) if x > 0 else Err("neg"))
        Ok(10)
        >>> match Ok(3):
        ...     case Ok(v): print(v)
        ...     case Err(e): print(e)
        3
    """

    __slots__ = ("_value",)
    _is_ok: ClassVar[bool]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        if _sealed:
            raise TypeError(f"Result is sealed: cannot subclass {cls.__bases__[0].__name__} as {cls.__name__}")
        super().__init_subclass__(**kwargs)

    def __new__(cls, *args: Any, **kwargs: Any) -> Result[T, E]:
        if cls is Result:
            raise TypeError("Result cannot be instantiated directly; use Ok(value) or Err(error)")
        return super().__new__(cls)

    def __setattr__(self, name: str, value: object) -> NoReturn:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> NoReturn:
        raise AttributeError(f"{type(self).__name__} is immutable")

    # ─── Type Checking ───────────────────────────────────────────────

    def is_ok(self) -> bool:
        return self._is_ok

    def is_err(self) -> bool:
        return not self._is_ok

    # ─── Value Extraction ──────────────────────────────────────────────

    def ok(self) -> T | None:
        """Value if Ok, None if Err."""
        return self._value if self._is_ok else None

    def err(self) -> E | None:
        """Error if Err, None if Ok."""
        return self._value if not self._is_ok else None

    def unwrap(self) -> T:
        """Extract Ok value. Raises UnwrapError on Err."""
        if self._is_ok:
            return self._value
        raise _unwrap_error(self, f"unwrap() on Err: {self._value!r}")

    def unwrap_err(self) -> E:
        """Extract Err value. Raises UnwrapError on Ok."""
        if not self._is_ok:
            return self._value
        raise _unwrap_error(self, f"unwrap_err() on Ok: {self._value!r}")

    def unwrap_or(self, default: T) -> T:
        return self._value if self._is_ok else default

    def unwrap_or_else(self, f: Callable[[E], T]) -> T:
        """Extract Ok value or compute one from the error."""
        return self._value if self._is_ok else f(self._value)

    def expect(self, msg: str) -> T:
        """Extract Ok value, raising UnwrapError with ``msg`` on Err."""
        if self._is_ok:
            return self._value
        raise _unwrap_error(self, f"{msg}: {self._value!r}")

    # ─── Pattern Matching ────────────────────────────────────────────────

    def match(self, *, ok: Callable[[T], U], err: Callable[[E], U]) -> U:
        """Exhaustive pattern match. Both branches are required.

        Example:
            >>> Ok(42).match(ok=lambda x: f"success: {x}", err=lambda e: f"failed: {e}")
            'success: 42'
        """
        return ok(self._value) if self._is_ok else err(self._value)

    # ─── Functor Operations ────────────────────────────────────────────

    def map(self, f: Callable[[T], U]) -> Result[U, E]:
        """Apply f to Ok value. Signature: Result[T,E] → (T→U) → Result[U,E]"""
        return Ok(f(self._value)) if self._is_ok else Err(self._value)

    def map_err(self, f: Callable[[E], F]) -> Result[T, F]:
        """Apply f to Err value. Signature: Result[T,E] → (E→F) → Result[T,F]"""
        return Err(f(self._value)) if not self._is_ok else Ok(self._value)

    # ─── Monad Operations ──────────────────────────────────────────────

    @overload
    def and_then(self, f: Callable[[T], Result[U, E]]) -> Result[U, E]: ...
    @overload
    def and_then(self, f: Callable[[T], Result[U, E]], project: Callable[[T, U], V]) -> Result[V, E]: ...

    def and_then(
        self,
        f: Callable[[T], Result[Any, E]],
        project: Callable[[T, Any], Any] | None = None,
    ) -> Result[Any, E]:
        """Monadic bind (>>=). Chain operations that can fail.

        With ``project``, the bound value is combined with the original one,
        so several intermediate values can flow into a single step:

            >>> Ok(2).and_then(lambda a: Ok(a * 10), lambda a, b: (a, b))
            Ok((2, 20))
        """
        if not self._is_ok:
            return Err(self._value)
        bound = f(self._value)
        if project is None:
            return bound
        return Ok(project(self._value, bound._value)) if bound._is_ok else Err(bound._value)

    flat_map = and_then

    def or_else(self, f: Callable[[E], Result[T, F]]) -> Result[T, F]:
        """On Err, apply f to recover. On Ok, pass through."""
        return f(self._value) if not self._is_ok else Ok(self._value)

    def flatten(self: Result[Result[T, E], E]) -> Result[T, E]:
        """Result[Result[T,E],E] → Result[T,E]"""
        return self._value if self._is_ok else Err(self._value)

    # ─── Side Effects ──────────────────────────────────────────────────

    def inspect(self, f: Callable[[T], object]) -> Result[T, E]:
        """Call f with Ok value for side effects, return self."""
        if self._is_ok:
            f(self._value)
        return self

    def inspect_err(self, f: Callable[[E], object]) -> Result[T, E]:
        """Call f with Err value for side effects, return self."""
        if not self._is_ok:
            f(self._value)
        return self

    # ─── Dunder Methods ──────────────────────────────────────────────────

    def __bool__(self) -> bool:
        return self._is_ok

    def __hash__(self) -> int:
        return hash((self._is_ok, self._value))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        return self._is_ok == other._is_ok and self._value == other._value

    def __iter__(self) -> Iterator[T]:
        """Yields the value if Ok, nothing if Err."""
        if self._is_ok:
            yield self._value

    def __reduce__(self) -> tuple[type[Result[T, E]], tuple[object]]:
        return (type(self), (self._value,))

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        from ropkit.codec.resolver import result_core_schema

        return result_core_schema(source if source is not None else cls)


class Ok(Result[T, E]):
    """Success variant."""

    __slots__ = ()
    __match_args__ = ("value",)
    _is_ok = True

    def __new__(cls, value: T) -> Ok[T, E]:
        self = super().__new__(cls)
        object.__setattr__(self, "_value", value)
        return self

    @property
    def value(self) -> T:
        return self._value


class Err(Result[T, E]):
    """Failure variant."""

    __slots__ = ()
    __match_args__ = ("error",)
    _is_ok = False

    def __new__(cls, error: E) -> Err[T, E]:
        self = super().__new__(cls)
        object.__setattr__(self, "_value", error)
        return self

    @property
    def error(self) -> E:
        return self._value


_sealed = True


def _unwrap_error(result: Result[Any, Any], message: str) -> Exception:
    from ropkit.errors import UnwrapError

    return UnwrapError(result, message)


# ═══════════════════════════════════════════════════════════════════════════════
# Boundary Constructors
# ═══════════════════════════════════════════════════════════════════════════════


def from_nullable(value: T | None, error_if_none: E) -> Result[T, E]:
    """Ok(value) when present, Err(error_if_none) when None. Falsy values count as present."""
    return Ok(value) if value is not None else Err(error_if_none)


def from_call(operation: Callable[[], T], to_error: Callable[[Exception], E]) -> Result[T, E]:
    """Run a raising operation, converting any exception into Err via to_error.

    Example:
        >>> from_call(lambda: int("42"), lambda exc: f"bad: {exc}")
        Ok(42)
        >>> from_call(lambda: int("x"), lambda exc: type(exc).__name__)
        Err('ValueError')
    """
    try:
        return Ok(operation())
    except Exception as exc:
        from ropkit.observability import log_fault

        log_fault(exc, site="from_call")
        return Err(to_error(exc))


# ═══════════════════════════════════════════════════════════════════════════════
# Collection Operations
# ═══════════════════════════════════════════════════════════════════════════════


def sequence(results: Iterable[Result[T, E]]) -> Result[list[T], E]:
    """Iterable[Result[T,E]] → Result[list[T], E]. Fail-fast on first Err."""
    values: list[T] = []
    for r in results:
        if not r._is_ok:
            return Err(r._value)
        values.append(r._value)
    return Ok(values)


def traverse(items: Iterable[T], f: Callable[[T], Result[U, E]]) -> Result[list[U], E]:
    """Map f over items, sequence results. Stops calling f at the first Err."""
    values: list[U] = []
    for item in items:
        r = f(item)
        if not r._is_ok:
            return Err(r._value)
        values.append(r._value)
    return Ok(values)
