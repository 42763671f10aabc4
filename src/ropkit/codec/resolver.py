"""Runtime type dispatch for the Result codec.

Given a type descriptor, decide whether it denotes a Result and, if so,
produce a codec specialised to its payload types. ``Result[X, Y]``,
``Ok[X, Y]`` and ``Err[X, Y]`` all resolve to the same cached codec; an
unparameterised variant resolves through its declared parent ``Result[T, E]``.

Also hosts the pydantic hook (so ``TypeAdapter(Result[int, str])`` and model
fields typed as Results speak the wire format) and generic ``dumps``/``loads``
for documents that contain Results anywhere.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, TypeVar, get_args, get_origin

import orjson
from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import core_schema

from ropkit.core.result import Err, Ok, Result
from ropkit.core.types import Unit
from ropkit.errors import ResultDecodeError

from .codec import ResultCodec


def _declared_parent(cls: type) -> Any:
    """The ``Result[...]`` entry among a class's declared generic bases, if any."""
    for base in getattr(cls, "__orig_bases__", ()):
        if get_origin(base) is Result:
            return base
    return None


def _concrete(arg: Any) -> Any:
    return Any if isinstance(arg, TypeVar) else arg


def resolve_result_args(tp: Any) -> tuple[Any, Any] | None:
    """Payload types ``(T, E)`` of a Result type descriptor, or None if ``tp`` is not a Result.

    Example:
        >>> resolve_result_args(Result[int, str])
        (<class 'int'>, <class 'str'>)
        >>> resolve_result_args(Err[int, str])
        (<class 'int'>, <class 'str'>)
        >>> resolve_result_args(dict[str, int]) is None
        True
    """
    origin = get_origin(tp) or tp
    if not isinstance(origin, type) or not issubclass(origin, Result):
        return None
    args = get_args(tp)
    if not args and origin is not Result:
        args = get_args(_declared_parent(origin))
    if len(args) != 2:
        return (Any, Any)
    return (_concrete(args[0]), _concrete(args[1]))


def can_convert(tp: Any) -> bool:
    return resolve_result_args(tp) is not None


def get_codec(tp: Any) -> ResultCodec[Any, Any]:
    """Codec for a Result type descriptor. Raises TypeError for anything else."""
    args = resolve_result_args(tp)
    if args is None:
        raise TypeError(f"Cannot create a Result codec for {tp!r}")
    return _codec_for(*args)


@lru_cache(maxsize=256)
def _codec_for(ok_type: Any, err_type: Any) -> ResultCodec[Any, Any]:
    return ResultCodec(ok_type, err_type)


# ═══════════════════════════════════════════════════════════════════════════════
# pydantic integration
# ═══════════════════════════════════════════════════════════════════════════════


def result_core_schema(source: Any) -> core_schema.CoreSchema:
    """Core schema for a Result type: validates wire documents, serialises to them."""
    codec = get_codec(source)
    origin = get_origin(source) or source
    variant = origin if origin in (Ok, Err) else None

    def validate(value: object) -> Result[Any, Any]:
        result = codec.validate(value) if isinstance(value, Result) else codec.decode(value)
        if variant is not None and not isinstance(result, variant):
            raise ValueError(f"expected {variant.__name__}, got {type(result).__name__}")
        return result

    def serialize(value: Result[Any, Any], info: core_schema.SerializationInfo) -> Any:
        return codec.encode(value, mode="json" if info.mode_is_json() else "python")

    return core_schema.no_info_plain_validator_function(
        validate,
        serialization=core_schema.plain_serializer_function_ser_schema(serialize, info_arg=True),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Generic documents
# ═══════════════════════════════════════════════════════════════════════════════


def _default(obj: Any) -> Any:
    """orjson hook: encode Results (and other pydantic-known values) by runtime type."""
    if isinstance(obj, Result):
        return get_codec(type(obj)).encode(obj)
    if isinstance(obj, Unit):
        return None
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def dumps(obj: Any) -> bytes:
    """Encode any document to JSON bytes; Results anywhere inside use the wire format.

    Example:
        >>> dumps({"a": Ok(1), "b": [Err("x")]})
        b'{"a":{"$result":"ok","value":1},"b":[{"$result":"err","error":"x"}]}'
    """
    return orjson.dumps(obj, default=_default)


@lru_cache(maxsize=256)
def _adapter(tp: Any) -> TypeAdapter[Any]:
    return TypeAdapter(tp)


def loads(data: bytes | str, tp: Any = Any) -> Any:
    """Decode JSON bytes into ``tp`` (any type pydantic understands, Results included)."""
    try:
        return _adapter(tp).validate_json(data)
    except ValidationError as exc:
        raise ResultDecodeError(str(exc)) from exc
