"""
Cryptographic building blocks for LIONESS.

This module provides:
- Stream cipher adapters (ChaCha20, AES-CTR)
- Keyed MAC adapters (BLAKE3, HMAC-SHA2, BLAKE2b)
- The master key schedule and key file helpers
"""

from .kdf import (
    KeyScheduleError,
    LionessKeys,
    derive_master_key,
    required_key_size,
    split_master_key,
)
from .mac import MAC, MACS, Blake2bMAC, Blake3MAC, HMACSHA256, HMACSHA512, get_mac
from .stream import (
    STREAM_CIPHERS,
    AES128CTRStream,
    AES256CTRStream,
    ChaCha20Stream,
    StreamCipher,
    UnknownPrimitiveError,
    get_stream_cipher,
)

__all__ = [
    'KeyScheduleError',
    'LionessKeys',
    'derive_master_key',
    'required_key_size',
    'split_master_key',
    'MAC',
    'MACS',
    'Blake2bMAC',
    'Blake3MAC',
    'HMACSHA256',
    'HMACSHA512',
    'get_mac',
    'STREAM_CIPHERS',
    'AES128CTRStream',
    'AES256CTRStream',
    'ChaCha20Stream',
    'StreamCipher',
    'UnknownPrimitiveError',
    'get_stream_cipher',
]
