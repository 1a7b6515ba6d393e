"""
Byte-level helpers shared by the LIONESS round functions.

This module provides XOR helpers, secure memory wiping for transient key
material, random byte generation and hex formatting used throughout the
package.
"""

import secrets
from typing import Union

Buffer = Union[bytes, bytearray, memoryview]


def secure_zero(data: Union[bytes, bytearray, memoryview]) -> None:
    """
    Securely zero out sensitive data in memory.

    Args:
        data: Bytes, bytearray, or memoryview to zero out
    """
    if isinstance(data, (bytearray, memoryview)):
        for i in range(len(data)):
            data[i] = 0
    elif isinstance(data, bytes):
        # Immutable bytes cannot be wiped; callers hold key material in bytearrays
        pass
    else:
        raise TypeError("Data must be bytes, bytearray, or memoryview")


def generate_random_bytes(length: int) -> bytes:
    """
    Generate cryptographically secure random bytes.

    Args:
        length: Number of random bytes to generate

    Returns:
        Cryptographically secure random bytes
    """
    return secrets.token_bytes(length)


def xor_bytes(a: Buffer, b: Buffer) -> bytearray:
    """
    XOR two byte sequences, truncating to the shorter one.

    Only the first ``min(len(a), len(b))`` bytes take part; the rest of the
    longer input is ignored.

    Args:
        a: First byte sequence
        b: Second byte sequence

    Returns:
        XOR result as a new bytearray (so callers can wipe it)
    """
    return bytearray(x ^ y for x, y in zip(a, b))


def xor_in_place(target: Union[bytearray, memoryview], data: Buffer) -> None:
    """
    XOR ``data`` into ``target`` in place.

    Args:
        target: Mutable buffer to update
        data: Bytes to combine with target

    Raises:
        ValueError: If the sequences have different lengths
    """
    if len(target) != len(data):
        raise ValueError("Byte sequences must have equal length")

    target[:] = bytes(x ^ y for x, y in zip(target, data))


def is_mutable_buffer(block) -> bool:
    """Check whether ``block`` is a writable byte buffer."""
    if isinstance(block, bytearray):
        return True
    if isinstance(block, memoryview):
        return not block.readonly and block.format == 'B' and block.ndim == 1
    return False


def format_hex(data: bytes, separator: str = " ") -> str:
    """
    Format bytes as hexadecimal string.

    Args:
        data: Bytes to format
        separator: Separator between hex bytes

    Returns:
        Formatted hex string
    """
    return separator.join(f"{b:02x}" for b in data)


def parse_hex(hex_string: str) -> bytes:
    """
    Parse hexadecimal string to bytes.

    Args:
        hex_string: Hex string (with or without separators)

    Returns:
        Parsed bytes
    """
    cleaned = hex_string.strip().replace(" ", "").replace(":", "").replace("-", "")
    return bytes.fromhex(cleaned)
