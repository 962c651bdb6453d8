"""
hex_codec.py - Ethereum quantity encoding

JSON-RPC encodes integers ("quantities") as 0x-prefixed, lowercase base-16
strings without leading zeros, e.g. 16 -> "0x10", 0 -> "0x0".
"""

import re
from typing import Any, Optional

from ethhealth.errors import FormatError

UINT64_MAX = 2 ** 64 - 1

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")


def hex_to_uint(value: Any, field_name: Optional[str] = None) -> int:
    """
    Decode a hex quantity into an unsigned 64-bit integer.

    The 0x prefix is optional. Signs, whitespace and underscores are rejected
    even though int(..., 16) would accept them.

    Args:
        value: Raw value from a JSON-RPC result
        field_name: Name of the field being decoded, used in error messages

    Returns:
        int: Decoded value

    Raises:
        FormatError: If the value is not a base-16 string or overflows uint64
    """
    if not isinstance(value, str):
        raise FormatError(f"expected hex string, got {type(value).__name__}: {value!r}", field_name)

    digits = value[2:] if value[:2] in ("0x", "0X") else value
    if not _HEX_DIGITS.fullmatch(digits):
        raise FormatError(f"invalid hex value {value!r}", field_name)

    number = int(digits, 16)
    if number > UINT64_MAX:
        raise FormatError(f"value {value!r} exceeds uint64", field_name)
    return number


def uint_to_hex(number: int) -> str:
    """Encode an unsigned 64-bit integer as a minimal 0x-prefixed hex quantity."""
    if isinstance(number, bool) or not isinstance(number, int):
        raise FormatError(f"expected integer, got {type(number).__name__}: {number!r}")
    if number < 0 or number > UINT64_MAX:
        raise FormatError(f"value {number} outside uint64 range")
    return f"0x{number:x}"
