"""Order fulfilment example: typed errors through an async Result pipeline.

Demonstrates:
- A closed family of domain errors with a from_exception fallback
- Wrapping crash-prone services with from_result_async
- Chaining async lookups with and_then (including projection)
- Handling every outcome once, at the final match

Run with ``python -m ropkit.examples`` or the ``ropkit-demo`` script.
"""

from __future__ import annotations

import asyncio
from typing import Literal

from pydantic import BaseModel, ConfigDict

from .core import AsyncResult, Err, Ok, Result, from_nullable, from_result_async
from .observability import get_logger

log = get_logger("ropkit.examples")


# ═════════════════════════════════════════════════════════════════════════════
# Domain
# ═════════════════════════════════════════════════════════════════════════════


class User(BaseModel):
    id: str
    name: str


class Order(BaseModel):
    id: str
    user_id: str
    product_id: str
    quantity: int


class AppError(BaseModel):
    """Every error the order flow can produce."""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_exception(cls, exc: Exception) -> AppError:
        return UnknownCrash(message=str(exc), exception_type=type(exc).__name__)


class UserNotFound(AppError):
    user_id: str


class OrderNotFound(AppError):
    order_id: str


class InsufficientStock(AppError):
    product_id: str
    requested: int
    available: int


class ServiceCrashed(AppError):
    service: Literal["user", "order", "inventory"]
    message: str


class UnknownCrash(AppError):
    message: str
    exception_type: str


def describe_error(error: AppError) -> str:
    match error:
        case UserNotFound(user_id=user_id):
            return f"User {user_id} not found"
        case OrderNotFound(order_id=order_id):
            return f"Order {order_id} not found"
        case InsufficientStock(product_id=product_id, requested=requested, available=available):
            return f"Not enough {product_id}: requested {requested}, only {available} left"
        case ServiceCrashed(service=service, message=message):
            return f"{service.title()} service crashed: {message}"
        case UnknownCrash(message=message, exception_type=exception_type):
            return f"Unexpected {exception_type}: {message}"
        case _:
            raise TypeError(f"unhandled error type {type(error).__name__}")


# ═════════════════════════════════════════════════════════════════════════════
# Fake external services
# ═════════════════════════════════════════════════════════════════════════════


class FakeServices:
    """In-memory stand-ins for the user, order and inventory services. Records every call."""

    USERS = {"user-1": User(id="user-1", name="Alice")}
    ORDERS = {
        "order-1": Order(id="order-1", user_id="user-1", product_id="product-1", quantity=5),
        "order-2": Order(id="order-2", user_id="user-1", product_id="product-1", quantity=100),
        "order-3": Order(id="order-3", user_id="user-missing", product_id="product-1", quantity=1),
        "order-4": Order(id="order-4", user_id="crash", product_id="product-1", quantity=1),
        "order-5": Order(id="order-5", user_id="user-1", product_id="product-missing", quantity=1),
    }
    STOCK = {"product-1": 10}

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def get_user(self, user_id: str) -> User | None:
        self.calls.append(f"user:{user_id}")
        await asyncio.sleep(0)
        if user_id == "crash":
            raise ConnectionError("User DB connection failed")
        return self.USERS.get(user_id)

    async def get_order(self, order_id: str) -> Order | None:
        self.calls.append(f"order:{order_id}")
        await asyncio.sleep(0)
        if order_id == "crash":
            raise TimeoutError("Order API timeout")
        return self.ORDERS.get(order_id)

    async def check_inventory(self, product_id: str) -> int:
        self.calls.append(f"inventory:{product_id}")
        await asyncio.sleep(0)
        if product_id not in self.STOCK:
            raise RuntimeError("Inventory service down")
        return self.STOCK[product_id]


# ═════════════════════════════════════════════════════════════════════════════
# Safe wrappers and pipeline
# ═════════════════════════════════════════════════════════════════════════════


class OrderFlow:
    """Fetch order → fetch user → check inventory → format confirmation → match."""

    def __init__(self, services: FakeServices | None = None) -> None:
        self.services = services or FakeServices()

    def get_order(self, order_id: str) -> AsyncResult[Order, AppError]:
        async def lookup() -> Result[Order, AppError]:
            return from_nullable(await self.services.get_order(order_id), OrderNotFound(order_id=order_id))

        return AsyncResult.of(
            from_result_async(lookup, lambda exc: ServiceCrashed(service="order", message=str(exc))), AppError
        )

    def get_user(self, user_id: str) -> AsyncResult[User, AppError]:
        async def lookup() -> Result[User, AppError]:
            return from_nullable(await self.services.get_user(user_id), UserNotFound(user_id=user_id))

        return AsyncResult.of(
            from_result_async(lookup, lambda exc: ServiceCrashed(service="user", message=str(exc))), AppError
        )

    def check_inventory(self, order: Order) -> AsyncResult[Order, AppError]:
        async def check() -> Result[Order, AppError]:
            available = await self.services.check_inventory(order.product_id)
            if available < order.quantity:
                return Err(InsufficientStock(product_id=order.product_id, requested=order.quantity, available=available))
            return Ok(order)

        return AsyncResult.of(
            from_result_async(check, lambda exc: ServiceCrashed(service="inventory", message=str(exc))), AppError
        )

    def place(self, order_id: str) -> AsyncResult[str, AppError]:
        return (
            self.get_order(order_id)
            .and_then(lambda order: self.get_user(order.user_id), lambda order, user: (order, user))
            .and_then(lambda pair: self.check_inventory(pair[0]).map(lambda _: pair))
            .map(lambda pair: format_confirmation(*pair))
        )

    async def process(self, order_id: str) -> str:
        message = await self.place(order_id).match(ok=lambda text: text, err=describe_error)
        log.bind(order_id=order_id).info("order processed", outcome=message)
        return message


def format_confirmation(order: Order, user: User) -> str:
    return f"Order {order.id} confirmed for {user.name}: {order.quantity} x {order.product_id}"


async def run_demo(order_ids: tuple[str, ...] = ("order-1", "order-2", "order-3", "order-4",
                                                  "order-5", "order-404", "crash")) -> list[str]:
    flow = OrderFlow()
    return [f"{order_id}: {await flow.process(order_id)}" for order_id in order_ids]


def main() -> None:
    for line in asyncio.run(run_demo()):
        print(line)


if __name__ == "__main__":
    main()
