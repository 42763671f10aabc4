"""Error types for ropkit.

- RopkitError/UnwrapError/ResultDecodeError: exceptions raised by the library
- FaultCode/classify_exception: coarse classification of captured faults
- Fault: stock error payload implementing the from_exception capability
"""

from .errors import (
    Fault,
    FaultCode,
    ResultDecodeError,
    RopkitError,
    UnwrapError,
    classify_exception,
)

__all__ = [
    "RopkitError", "UnwrapError", "ResultDecodeError",
    "FaultCode", "classify_exception", "Fault",
]
