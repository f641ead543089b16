"""
Hex Codec

Conversion between ASCII hex strings (as found in NIST vector files)
and raw bytes.
"""

import string

from ..errors import MalformedHex


HEX_DIGITS = frozenset(string.hexdigits)


def hex_to_bytes(text: str) -> bytes:
    """
    Decode a hex string into bytes, two characters per byte, in order.

    Args:
        text: Even-length string of hex digits (either case)

    Returns:
        Decoded bytes

    Raises:
        MalformedHex: If the length is odd or a non-hex character is present
    """
    if len(text) % 2 != 0:
        raise MalformedHex(f"Odd-length hex string ({len(text)} characters)")
    bad = [c for c in text if c not in HEX_DIGITS]
    if bad:
        raise MalformedHex(f"Invalid hex character {bad[0]!r}")
    return bytes.fromhex(text)


def bytes_to_hex(data: bytes) -> str:
    """Encode bytes as a lowercase hex string."""
    return data.hex()
