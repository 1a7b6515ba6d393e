"""
LIONESS wide-block cipher.

Builds a block cipher over blocks of almost any length from a keyed stream
cipher and a keyed MAC, using the four-round unbalanced Feistel construction
of Anderson and Biham. Changing any ciphertext bit scrambles the whole
decrypted block, which is what mix-network packet formats rely on.

Key Features:
- Pluggable stream ciphers (ChaCha20, AES-CTR) and MACs (BLAKE3, HMAC-SHA2, BLAKE2b)
- In-place encryption of bytearray / memoryview blocks
- Fixed block size adapter for block-cipher shaped callers
- Key file handling, HKDF key expansion and a small CLI

Basic Usage:
    >>> from lioness import Lioness
    >>> from lioness.crypto.utils import generate_random_bytes
    >>>
    >>> cipher = Lioness(generate_random_bytes(128))   # ChaCha20 + BLAKE3
    >>> block = bytearray(b"A packet longer than the 32-byte BLAKE3 digest")
    >>> cipher.encrypt_block(block)
    >>> cipher.decrypt_block(block)
    >>> bytes(block)
    b'A packet longer than the 32-byte BLAKE3 digest'
"""

__version__ = "0.1.0"
__author__ = "LIONESS Project"

from .cipher import (
    InvalidBlockLength,
    Lioness,
    left_xor_assign_digest,
    right_xor_assign_stream,
)
from .block import BlockLioness
from .config import ConfigError, LionessConfig
from .crypto.kdf import (
    KeyScheduleError,
    LionessKeys,
    derive_master_key,
    generate_master_key,
    required_key_size,
    split_master_key,
)
from .crypto.mac import MAC, Blake2bMAC, Blake3MAC, HMACSHA256, HMACSHA512, get_mac
from .crypto.stream import (
    AES128CTRStream,
    AES256CTRStream,
    ChaCha20Stream,
    StreamCipher,
    UnknownPrimitiveError,
    get_stream_cipher,
)


def create_lioness(master_key: bytes, stream: str = "chacha20", mac: str = "blake3") -> Lioness:
    """
    Create a cipher from primitive names.

    Args:
        master_key: Master key sized for the chosen pair
        stream: Stream cipher registry name
        mac: MAC registry name

    Returns:
        Keyed Lioness instance
    """
    return Lioness(master_key, get_stream_cipher(stream), get_mac(mac))


__all__ = [
    '__version__',

    # Cipher
    'Lioness',
    'BlockLioness',
    'InvalidBlockLength',
    'create_lioness',
    'left_xor_assign_digest',
    'right_xor_assign_stream',

    # Key schedule
    'KeyScheduleError',
    'LionessKeys',
    'derive_master_key',
    'generate_master_key',
    'required_key_size',
    'split_master_key',

    # Primitives
    'StreamCipher',
    'ChaCha20Stream',
    'AES256CTRStream',
    'AES128CTRStream',
    'MAC',
    'Blake3MAC',
    'HMACSHA256',
    'HMACSHA512',
    'Blake2bMAC',
    'get_stream_cipher',
    'get_mac',
    'UnknownPrimitiveError',

    # Configuration
    'LionessConfig',
    'ConfigError',
]
