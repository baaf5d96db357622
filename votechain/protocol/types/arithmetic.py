# MIT License
# Copyright (c) 2025 Hashborn

"""
Fixed-width weight arithmetic.

Python integers never overflow, so every bound the ledger relies on is
checked here explicitly. Nothing in this module wraps or truncates.
"""

from .common import WeightOverflowError, WeightUnderflowError, RangeError

UINT32_MAX = 2**32 - 1
UINT96_MAX = 2**96 - 1


def add_checked(a: int, b: int, context: str = "weight overflows") -> int:
    """Returns a + b, raising WeightOverflowError outside the 96-bit domain."""
    result = a + b
    if result > UINT96_MAX:
        raise WeightOverflowError(f"{context}: {a} + {b} exceeds 96 bits")
    return result


def sub_checked(a: int, b: int, context: str = "weight underflows") -> int:
    """Returns a - b, raising WeightUnderflowError when b > a."""
    if b > a:
        raise WeightUnderflowError(f"{context}: {a} - {b} is negative")
    return a - b


def narrow_to_32(n: int, context: str = "value exceeds 32 bits") -> int:
    if n < 0 or n > UINT32_MAX:
        raise RangeError(f"{context}: {n}")
    return n


def narrow_to_96(n: int, context: str = "value exceeds 96 bits") -> int:
    if n < 0 or n > UINT96_MAX:
        raise RangeError(f"{context}: {n}")
    return n
