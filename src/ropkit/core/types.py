"""Unit marker, the from_exception capability, and JSON type aliases."""

from __future__ import annotations

from typing import Any, ClassVar, Protocol, TypeVar, Union, runtime_checkable

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

E_co = TypeVar("E_co", covariant=True)

# JSON type aliases - Any for recursive slots
JsonPrimitive = Union[str, int, float, bool, None]
JsonValue = Union[JsonPrimitive, list[Any], dict[str, Any]]
JsonDict = dict[str, Any]


class Unit:
    """Zero-information success payload: ``Result[Unit, E]`` for operations that return nothing.

    There is exactly one instance, ``UNIT``; ``Unit()`` returns it.
    Serialises as JSON ``null``.
    """

    __slots__ = ()
    _instance: ClassVar[Unit | None] = None

    def __new__(cls) -> Unit:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "Unit"

    def __reduce__(self) -> tuple[type[Unit], tuple[()]]:
        return (Unit, ())

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            _validate_unit,
            serialization=core_schema.plain_serializer_function_ser_schema(lambda _: None),
        )


def _validate_unit(value: object) -> Unit:
    if value is None or isinstance(value, Unit):
        return UNIT
    raise ValueError(f"expected null for Unit, got {type(value).__name__}")


UNIT = Unit()


@runtime_checkable
class FromException(Protocol[E_co]):
    """Capability of an error type: build an instance of itself from a raised fault.

    Implemented as a classmethod (or staticmethod) so it can be called on the
    type without an existing instance::

        class AppError(BaseModel):
            message: str

            @classmethod
            def from_exception(cls, exc: Exception) -> AppError:
                return cls(message=f"Caught: {exc}")
    """

    def from_exception(self, exc: Exception, /) -> E_co: ...


def supports_from_exception(error_type: object) -> bool:
    """True when ``error_type.from_exception`` is callable."""
    return callable(getattr(error_type, "from_exception", None))
