"""Wire codec for Result values: orjson/msgpack bytes, pydantic integration, runtime dispatch.

Usage:
    >>> from ropkit.codec import get_codec, dumps
    >>> get_codec(Result[bool, str]).dumps(Ok(True))
    b'{"$result":"ok","value":true}'
    >>> dumps({"status": Err("timeout")})
    b'{"status":{"$result":"err","error":"timeout"}}'
"""

from .codec import (
    DISCRIMINATOR,
    ERR_TAG,
    ERROR_FIELD,
    OK_TAG,
    VALUE_FIELD,
    CodecType,
    ResultCodec,
)
from .resolver import can_convert, dumps, get_codec, loads, resolve_result_args, result_core_schema

__all__ = [
    "DISCRIMINATOR", "OK_TAG", "ERR_TAG", "VALUE_FIELD", "ERROR_FIELD",
    "CodecType", "ResultCodec",
    "resolve_result_args", "can_convert", "get_codec", "result_core_schema",
    "dumps", "loads",
]
