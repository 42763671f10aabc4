"""Tests for AsyncResult combinators and async fault-capturing constructors."""

from __future__ import annotations

import asyncio

import pytest
from pydantic import BaseModel

from ropkit import (
    AsyncResult,
    Err,
    Fault,
    FaultCode,
    Ok,
    Result,
    async_result,
    from_call_async,
    from_nullable,
    from_result_async,
)


class DemoError(BaseModel):
    message: str

    model_config = {"frozen": True}

    @classmethod
    def from_exception(cls, exc: Exception) -> DemoError:
        return cls(message=f"Caught: {exc}")


async def get_number(should_fail: bool = False) -> Result[int, DemoError]:
    await asyncio.sleep(0)
    return Err(DemoError(message="DB unavailable")) if should_fail else Ok(42)


async def get_number_throws() -> Result[int, DemoError]:
    await asyncio.sleep(0)
    raise ConnectionError("Connection timeout!")


def number(should_fail: bool = False) -> AsyncResult[int, DemoError]:
    return AsyncResult.of(get_number(should_fail), DemoError)


def throwing_number() -> AsyncResult[int, DemoError]:
    return AsyncResult.of(get_number_throws(), DemoError)


# ═════════════════════════════════════════════════════════════════════════════
# Construction
# ═════════════════════════════════════════════════════════════════════════════


def test_error_type_must_support_from_exception() -> None:
    class PlainError(BaseModel):
        message: str

    async def source() -> Result[int, PlainError]:
        return Ok(1)

    coro = source()
    with pytest.raises(TypeError, match="from_exception"):
        AsyncResult.of(coro, PlainError)
    coro.close()


@pytest.mark.asyncio
async def test_await_resolves_to_result() -> None:
    assert await number() == Ok(42)
    assert await number(should_fail=True) == Err(DemoError(message="DB unavailable"))
    assert await AsyncResult.ok(1, DemoError) == Ok(1)
    assert await AsyncResult.err(DemoError(message="x"), DemoError) == Err(DemoError(message="x"))


@pytest.mark.asyncio
async def test_await_captures_source_fault() -> None:
    assert await throwing_number() == Err(DemoError(message="Caught: Connection timeout!"))


@pytest.mark.asyncio
async def test_source_must_resolve_to_result() -> None:
    async def raw() -> int:
        return 1

    result = await AsyncResult.of(raw(), DemoError)  # type: ignore[arg-type]
    assert result.is_err()
    assert "must return a Result" in result.unwrap_err().message


@pytest.mark.asyncio
async def test_awaiting_twice_returns_same_result() -> None:
    deferred = number()
    first = await deferred
    assert await deferred is first
    assert "Ok(42)" in repr(deferred)


@pytest.mark.asyncio
async def test_concurrent_branches_share_one_source() -> None:
    calls: list[str] = []

    async def slow_source() -> Result[int, DemoError]:
        calls.append("source")
        await asyncio.sleep(0.01)
        return Ok(1)

    base = AsyncResult.of(slow_source(), DemoError)
    left, right, direct = await asyncio.gather(base.map(lambda x: x + 1), base.map(lambda x: x + 2), base)

    assert (left, right, direct) == (Ok(2), Ok(3), Ok(1))
    assert calls == ["source"]
    assert await base is direct


# ═════════════════════════════════════════════════════════════════════════════
# map
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_map_sync_step() -> None:
    assert await number().map(lambda n: n * 2) == Ok(84)
    assert await number(should_fail=True).map(lambda n: n * 2) == Err(DemoError(message="DB unavailable"))
    assert await throwing_number().map(lambda n: n * 2) == Err(DemoError(message="Caught: Connection timeout!"))


@pytest.mark.asyncio
async def test_map_async_step() -> None:
    async def format_async(n: int) -> str:
        await asyncio.sleep(0)
        return f"Formatted: {n}"

    async def format_throws(n: int) -> str:
        await asyncio.sleep(0)
        raise RuntimeError("Formatter service down!")

    assert await number().map(format_async) == Ok("Formatted: 42")
    assert await number(should_fail=True).map(format_async) == Err(DemoError(message="DB unavailable"))
    assert await number().map(format_throws) == Err(DemoError(message="Caught: Formatter service down!"))
    assert await throwing_number().map(format_async) == Err(DemoError(message="Caught: Connection timeout!"))


@pytest.mark.asyncio
async def test_map_captures_sync_step_fault() -> None:
    def explode(_: int) -> int:
        raise ValueError("bad number")

    assert await number().map(explode) == Err(DemoError(message="Caught: bad number"))


# ═════════════════════════════════════════════════════════════════════════════
# and_then
# ═════════════════════════════════════════════════════════════════════════════


def validate_sync(n: int, should_fail: bool) -> Result[str, DemoError]:
    return Err(DemoError(message="Number too small")) if should_fail else Ok(f"Valid: {n}")


async def validate_async(n: int, should_fail: bool = False, should_throw: bool = False) -> Result[str, DemoError]:
    await asyncio.sleep(0)
    if should_throw:
        raise RuntimeError("Validation service crashed!")
    return validate_sync(n, should_fail)


@pytest.mark.asyncio
async def test_and_then_sync_step() -> None:
    assert await number().and_then(lambda n: validate_sync(n, False)) == Ok("Valid: 42")
    assert await number().and_then(lambda n: validate_sync(n, True)) == Err(DemoError(message="Number too small"))
    assert await number(True).and_then(lambda n: validate_sync(n, False)) == Err(DemoError(message="DB unavailable"))
    assert await throwing_number().and_then(lambda n: validate_sync(n, False)) == Err(
        DemoError(message="Caught: Connection timeout!")
    )


@pytest.mark.asyncio
async def test_and_then_async_step() -> None:
    assert await number().and_then(lambda n: validate_async(n)) == Ok("Valid: 42")
    assert await number().and_then(lambda n: validate_async(n, should_fail=True)) == Err(
        DemoError(message="Number too small")
    )
    assert await number().and_then(lambda n: validate_async(n, should_throw=True)) == Err(
        DemoError(message="Caught: Validation service crashed!")
    )


@pytest.mark.asyncio
async def test_and_then_accepts_async_result_step() -> None:
    result = await number().and_then(lambda n: AsyncResult.of(validate_async(n), DemoError))
    assert result == Ok("Valid: 42")


@pytest.mark.asyncio
async def test_and_then_non_result_step_becomes_err() -> None:
    result = await number().and_then(lambda n: n + 1)  # type: ignore[arg-type,return-value]
    assert result.is_err()
    assert "must return a Result" in result.unwrap_err().message


@pytest.mark.asyncio
async def test_and_then_with_projection() -> None:
    async def lookup(n: int) -> Result[str, DemoError]:
        return Ok(f"item-{n}")

    result = await number().and_then(lookup, lambda n, item: {"n": n, "item": item})
    assert result == Ok({"n": 42, "item": "item-42"})

    failed = await number().and_then(lambda n: validate_async(n, should_fail=True), lambda n, s: (n, s))
    assert failed == Err(DemoError(message="Number too small"))


@pytest.mark.asyncio
async def test_async_monad_laws() -> None:
    async def f(x: int) -> Result[int, DemoError]:
        return Ok(x + 1)

    def g(x: int) -> Result[int, DemoError]:
        return Ok(x * 3) if x < 100 else Err(DemoError(message="too big"))

    assert await AsyncResult.ok(5, DemoError).and_then(f) == await f(5)
    assert await number().and_then(Ok) == await number()
    left = await number().and_then(f).and_then(g)
    right = await number().and_then(lambda x: AsyncResult.of(f(x), DemoError).and_then(g))
    assert left == right == Ok(129)


# ═════════════════════════════════════════════════════════════════════════════
# Chaining semantics
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_chain_short_circuits_after_err() -> None:
    calls: list[int] = []

    def step(k: int, fail: bool = False):  # type: ignore[no-untyped-def]
        async def run(value: int) -> Result[int, DemoError]:
            calls.append(k)
            await asyncio.sleep(0)
            return Err(DemoError(message=f"step {k} failed")) if fail else Ok(value + 1)
        return run

    result = await (
        AsyncResult.ok(0, DemoError)
        .and_then(step(1))
        .and_then(step(2))
        .and_then(step(3, fail=True))
        .and_then(step(4))
        .map(lambda v: calls.append(99) or v)
        .and_then(step(5))
    )

    assert result == Err(DemoError(message="step 3 failed"))
    assert calls == [1, 2, 3]


@pytest.mark.asyncio
async def test_chain_is_lazy_and_ordered() -> None:
    events: list[str] = []

    async def source() -> Result[int, DemoError]:
        events.append("source")
        return Ok(1)

    async def slow(v: int) -> int:
        await asyncio.sleep(0.01)
        events.append("slow")
        return v + 1

    chain = AsyncResult.of(source(), DemoError).map(slow).map(lambda v: events.append("fast") or v)
    await asyncio.sleep(0)
    assert events == []

    assert await chain == Ok(2)
    assert events == ["source", "slow", "fast"]


@pytest.mark.asyncio
async def test_fault_mid_chain_is_converted_and_skips_rest() -> None:
    calls: list[str] = []

    def crash(_: int) -> Result[int, DemoError]:
        raise KeyError("order-9")

    result = await (
        number()
        .map(lambda n: calls.append("first") or n)
        .and_then(crash)
        .map(lambda n: calls.append("after") or n)
    )

    assert result == Err(DemoError(message="Caught: 'order-9'"))
    assert calls == ["first"]


@pytest.mark.asyncio
async def test_cancellation_propagates() -> None:
    started = asyncio.Event()

    async def hang() -> Result[int, DemoError]:
        started.set()
        await asyncio.sleep(10)
        return Ok(1)

    async def consume() -> Result[int, DemoError]:
        return await AsyncResult.of(hang(), DemoError).map(lambda n: n + 1)

    task = asyncio.create_task(consume())
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


# ═════════════════════════════════════════════════════════════════════════════
# Error side
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_map_err_changes_error_type() -> None:
    result = await number(True).map_err(lambda e: Fault(message=e.message), error_type=Fault)
    assert result == Err(Fault(message="DB unavailable"))

    def boom(_: DemoError) -> Fault:
        raise TimeoutError("timed out")

    crashed = await number(True).map_err(boom, error_type=Fault)
    assert crashed.is_err()
    assert crashed.unwrap_err().code is FaultCode.TIMEOUT


@pytest.mark.asyncio
async def test_or_else_recovers() -> None:
    assert await number(True).or_else(lambda _: Ok(0)) == Ok(0)
    assert await number().or_else(lambda _: Ok(0)) == Ok(42)


# ═════════════════════════════════════════════════════════════════════════════
# match
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_async_match() -> None:
    assert await number().match(ok=lambda n: f"Got {n}", err=lambda e: e.message) == "Got 42"
    assert await number(True).match(ok=lambda n: f"Got {n}", err=lambda e: e.message) == "DB unavailable"
    assert await throwing_number().match(ok=lambda n: f"Got {n}", err=lambda e: e.message) == (
        "Caught: Connection timeout!"
    )


@pytest.mark.asyncio
async def test_async_match_accepts_async_handlers() -> None:
    async def render(n: int) -> str:
        return f"<{n}>"

    assert await number().match(ok=render, err=lambda e: e.message) == "<42>"


@pytest.mark.asyncio
async def test_async_match_ok_handler_fault_goes_to_err() -> None:
    def explode(_: int) -> str:
        raise RuntimeError("renderer crashed")

    assert await number().match(ok=explode, err=lambda e: e.message) == "Caught: renderer crashed"


@pytest.mark.asyncio
async def test_async_match_err_handler_runs_once_and_propagates() -> None:
    seen: list[DemoError] = []

    def failing_err(error: DemoError) -> str:
        seen.append(error)
        raise LookupError("no fallback")

    with pytest.raises(LookupError, match="no fallback"):
        await number(True).match(ok=lambda n: f"Got {n}", err=failing_err)
    assert seen == [DemoError(message="DB unavailable")]


# ═════════════════════════════════════════════════════════════════════════════
# Fault-capturing constructors
# ═════════════════════════════════════════════════════════════════════════════


async def external_api(should_throw: bool) -> int:
    await asyncio.sleep(0)
    if should_throw:
        raise RuntimeError("Service unavailable!")
    return 100


@pytest.mark.asyncio
async def test_from_call_async() -> None:
    to_error = lambda exc: DemoError(message=str(exc))  # noqa: E731
    assert await from_call_async(lambda: external_api(False), to_error) == Ok(100)
    assert await from_call_async(lambda: external_api(True), to_error) == Err(DemoError(message="Service unavailable!"))


@pytest.mark.asyncio
async def test_from_result_async() -> None:
    async def query(mode: str) -> int | None:
        await asyncio.sleep(0)
        if mode == "crash":
            raise ConnectionError("DB connection lost!")
        return 42 if mode == "ok" else None

    async def query_result(mode: str) -> Result[int, str]:
        return from_nullable(await query(mode), "Number not found")

    def get_number_by(mode: str):  # type: ignore[no-untyped-def]
        return from_result_async(lambda: query_result(mode), lambda exc: f"DB crashed: {exc}")

    assert await get_number_by("ok") == Ok(42)
    assert await get_number_by("notfound") == Err("Number not found")
    assert await get_number_by("crash") == Err("DB crashed: DB connection lost!")


@pytest.mark.asyncio
async def test_constructors_work_without_from_exception() -> None:
    """Explicit converters mean plain str errors are fine here."""
    result: Result[int, str] = await from_call_async(lambda: external_api(True), lambda exc: "down")
    assert result == Err("down")


# ═════════════════════════════════════════════════════════════════════════════
# async_result decorator
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_async_result_decorator() -> None:
    @async_result(Fault)
    async def load(key: str) -> Result[int, Fault]:
        if key == "boom":
            raise PermissionError("forbidden key")
        return Ok(len(key))

    assert isinstance(load("abc"), AsyncResult)
    assert await load("abc").map(lambda n: n * 2) == Ok(6)

    crashed = await load("boom")
    assert crashed.is_err()
    assert crashed.unwrap_err().code is FaultCode.PERMISSION_DENIED
    assert load.__name__ == "load"


def test_async_result_decorator_rejects_plain_error_type() -> None:
    with pytest.raises(TypeError):
        async_result(str)
