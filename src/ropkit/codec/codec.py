"""Canonical wire codec for Result values.

Wire format:
    Ok:  {"$result": "ok",  "value": <payload>}
    Err: {"$result": "err", "error": <payload>}

The discriminator is always written first, followed by the single payload
field. Decoding accepts fields in any order and ignores unknown keys.
Payloads are (de)serialised with pydantic TypeAdapters, so models,
dataclasses, enums, datetimes and nested Results all round-trip.

Usage:
    >>> codec = ResultCodec(bool, str)
    >>> codec.dumps(Ok(True))
    b'{"$result":"ok","value":true}'
    >>> codec.loads(b'{"$result":"err","error":"boom"}')
    Err('boom')
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any, Generic, Literal, TypeVar

import msgpack
import orjson
from pydantic import TypeAdapter, ValidationError

from ropkit.core.result import Err, Ok, Result
from ropkit.core.types import Unit
from ropkit.errors import ResultDecodeError

T = TypeVar("T")
E = TypeVar("E")

DISCRIMINATOR = "$result"
OK_TAG = "ok"
ERR_TAG = "err"
VALUE_FIELD = "value"
ERROR_FIELD = "error"

_EXPECTED = '{"$result":"ok","value":...} or {"$result":"err","error":...}'


class CodecType(StrEnum):
    """Byte-level renderings of the wire document."""
    JSON = "json"
    MSGPACK = "msgpack"


class ResultCodec(Generic[T, E]):
    """Encoder/decoder for ``Result[T, E]`` specialised to its two payload types.

    Instances are usually obtained from ``get_codec(Result[T, E])``, which
    caches one codec per payload pair.
    """

    __slots__ = ("ok_type", "err_type", "_ok_adapter", "_err_adapter")

    def __init__(self, ok_type: Any = Any, err_type: Any = Any) -> None:
        self.ok_type = ok_type
        self.err_type = err_type
        self._ok_adapter: TypeAdapter[T] = TypeAdapter(ok_type)
        self._err_adapter: TypeAdapter[E] = TypeAdapter(err_type)

    # ─── Document level ──────────────────────────────────────────────

    def encode(self, result: Result[T, E], *, mode: Literal["json", "python"] = "json") -> dict[str, Any]:
        """Result → wire document (discriminator first)."""
        if not isinstance(result, Result):
            raise TypeError(f"expected Ok or Err, got {type(result).__name__}")
        if result.is_ok():
            return {DISCRIMINATOR: OK_TAG,
                    VALUE_FIELD: self._ok_adapter.dump_python(result.unwrap(), mode=mode, fallback=_fallback)}
        return {DISCRIMINATOR: ERR_TAG,
                ERROR_FIELD: self._err_adapter.dump_python(result.unwrap_err(), mode=mode, fallback=_fallback)}

    def decode(self, document: object) -> Result[T, E]:
        """Wire document → Result. Raises ResultDecodeError on malformed input."""
        if not isinstance(document, Mapping):
            raise ResultDecodeError(f"Expected a JSON object, got {type(document).__name__}. Expected format: {_EXPECTED}")
        tag = document.get(DISCRIMINATOR)
        if tag is None:
            raise ResultDecodeError(f"Missing '{DISCRIMINATOR}' property. Expected format: {_EXPECTED}")
        if tag == OK_TAG:
            return Ok(self._validate(self._ok_adapter, document.get(VALUE_FIELD), VALUE_FIELD))
        if tag == ERR_TAG:
            return Err(self._validate(self._err_adapter, document.get(ERROR_FIELD), ERROR_FIELD))
        raise ResultDecodeError(f"Unknown result type: {tag!r}. Expected '{OK_TAG}' or '{ERR_TAG}'.")

    def validate(self, result: Result[T, E]) -> Result[T, E]:
        """Check an existing Result's payload against T or E, rewrapping the validated value."""
        if result.is_ok():
            return Ok(self._validate(self._ok_adapter, result.unwrap(), VALUE_FIELD))
        return Err(self._validate(self._err_adapter, result.unwrap_err(), ERROR_FIELD))

    @staticmethod
    def _validate(adapter: TypeAdapter[Any], payload: object, field: str) -> Any:
        try:
            return adapter.validate_python(payload)
        except ValidationError as exc:
            raise ResultDecodeError(f"Invalid '{field}' payload: {exc}") from exc

    # ─── Byte level ──────────────────────────────────────────────────

    def dumps(self, result: Result[T, E], *, format: CodecType | str | None = None) -> bytes:  # noqa: A002
        """Encode to JSON (orjson) or msgpack bytes. Default format comes from settings."""
        document = self.encode(result, mode="json")
        if _resolve_format(format) is CodecType.MSGPACK:
            return msgpack.packb(document, use_bin_type=True)
        return orjson.dumps(document)

    def loads(self, data: bytes | str, *, format: CodecType | str | None = None) -> Result[T, E]:  # noqa: A002
        """Decode from JSON or msgpack bytes."""
        try:
            if _resolve_format(format) is CodecType.MSGPACK:
                document = msgpack.unpackb(data, raw=False, strict_map_key=False)
            else:
                document = orjson.loads(data)
        except (ValueError, TypeError, msgpack.UnpackException) as exc:
            raise ResultDecodeError(f"Malformed document: {exc}") from exc
        return self.decode(document)

    def __repr__(self) -> str:
        return f"ResultCodec({_type_repr(self.ok_type)}, {_type_repr(self.err_type)})"


def _resolve_format(format: CodecType | str | None) -> CodecType:  # noqa: A002
    if format is None:
        from ropkit.config import get_settings

        format = get_settings().codec.format  # noqa: A001
    return CodecType(format)


def _fallback(obj: Any) -> Any:
    """Serialise values the payload schema does not know (payloads typed Any)."""
    if isinstance(obj, Result):
        from .resolver import get_codec

        return get_codec(Result).encode(obj)
    if isinstance(obj, Unit):
        return None
    raise TypeError(f"Object of type {type(obj).__name__} is not serializable")


def _type_repr(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)
