"""
LIONESS wide-block cipher.

LIONESS (Anderson & Biham) builds a block cipher over blocks of any length
greater than the MAC digest size from a keyed stream cipher S and a keyed
MAC H. A block is split into a left half L of ``H.OUTPUT_SIZE`` bytes and a
right half R holding the rest, then run through a four-round unbalanced
Feistel network:

    R ^= S(L ^ K1)
    L ^= H(K2, R)
    R ^= S(L ^ K3)
    L ^= H(K4, R)

Decryption runs the same rounds in reverse order. Each round XORs a value
computed from the half it does not modify, so every round is its own inverse.
"""

import logging
from contextlib import contextmanager
from typing import Optional, Type, Union

from .crypto.kdf import (
    LionessKeys,
    check_primitive_pair,
    derive_master_key,
    required_key_size,
    split_master_key,
)
from .crypto.mac import MAC, Blake3MAC
from .crypto.stream import ChaCha20Stream, StreamCipher
from .crypto.utils import is_mutable_buffer, secure_zero, xor_bytes, xor_in_place

logger = logging.getLogger(__name__)

Block = Union[bytearray, memoryview]


class InvalidBlockLength(ValueError):
    """Raised when a block is too short (or, for fixed-size ciphers, the wrong size)."""

    def __init__(self, length: int, minimum: int, exact: Optional[int] = None):
        self.length = length
        self.minimum = minimum
        self.exact = exact
        if exact is not None:
            message = f"Invalid block length {length}: expected exactly {exact} bytes"
        else:
            message = f"Invalid block length {length}: must be at least {minimum} bytes"
        super().__init__(message)


def left_xor_assign_digest(left: Block, right: Block, digest_key: bytes,
                           mac: Type[MAC]) -> None:
    """
    Digest round: ``left ^= MAC(digest_key, right)``.

    Args:
        left: Left half, exactly ``mac.OUTPUT_SIZE`` bytes, updated in place
        right: Right half, read only
        digest_key: ``mac.KEY_SIZE`` byte round key
        mac: MAC subclass
    """
    xor_in_place(left, mac.digest(digest_key, right))


def right_xor_assign_stream(left: Block, right: Block, stream_key_half: bytes,
                            stream: Type[StreamCipher],
                            iv: Optional[bytes] = None) -> None:
    """
    Stream round: ``right ^= S(left ^ stream_key_half)``.

    The per-call stream key is the XOR of ``left`` and ``stream_key_half``
    truncated to the shorter of the two, i.e. ``stream.KEY_SIZE`` bytes. Bytes
    of ``left`` past the stream key size do not influence this round.

    Args:
        left: Left half, read only
        right: Right half, updated in place
        stream_key_half: ``stream.KEY_SIZE`` byte round key (k1 or k3)
        stream: StreamCipher subclass
        iv: IV for the stream cipher, all-zero when omitted
    """
    stream_key = xor_bytes(left, stream_key_half)
    try:
        stream(stream_key, iv).apply_keystream(right)
    finally:
        secure_zero(stream_key)


class Lioness:
    """
    LIONESS cipher keyed with one master key.

    The instance only holds immutable subkeys and primitive classes; it can
    be shared between threads and reused for any number of blocks.
    """

    __slots__ = ('_keys', '_stream', '_mac', '_iv')

    def __init__(self, master_key: bytes,
                 stream: Type[StreamCipher] = ChaCha20Stream,
                 mac: Type[MAC] = Blake3MAC,
                 iv: Optional[bytes] = None):
        """
        Run the key schedule.

        Args:
            master_key: ``2 * (stream.KEY_SIZE + mac.KEY_SIZE)`` byte key
            stream: Stream cipher used by rounds 1 and 3
            mac: MAC used by rounds 2 and 4
            iv: Stream cipher IV for every stream round, all-zero when omitted

        Raises:
            KeyScheduleError: If the master key length is wrong or the MAC
                output is shorter than the stream cipher key
        """
        check_primitive_pair(stream, mac)
        if iv is None:
            iv = stream.default_iv()
        elif len(iv) != stream.IV_SIZE:
            raise ValueError(f"{stream.name} requires {stream.IV_SIZE}-byte IV")

        self._keys = split_master_key(master_key, stream.KEY_SIZE, mac.KEY_SIZE)
        self._stream = stream
        self._mac = mac
        self._iv = bytes(iv)

        logger.debug(f"Keyed LIONESS with {stream.name}/{mac.name}")

    @classmethod
    def from_secret(cls, secret: bytes,
                    stream: Type[StreamCipher] = ChaCha20Stream,
                    mac: Type[MAC] = Blake3MAC,
                    salt: Optional[bytes] = None) -> "Lioness":
        """Key a cipher from a short shared secret expanded with HKDF."""
        return cls(derive_master_key(secret, stream, mac, salt=salt), stream, mac)

    @property
    def keys(self) -> LionessKeys:
        return self._keys

    @property
    def stream(self) -> Type[StreamCipher]:
        return self._stream

    @property
    def mac(self) -> Type[MAC]:
        return self._mac

    @property
    def key_size(self) -> int:
        """Master key length in bytes."""
        return required_key_size(self._stream, self._mac)

    @property
    def min_block_size(self) -> int:
        """Smallest block length accepted."""
        return self._mac.OUTPUT_SIZE + 1

    @property
    def algorithm_name(self) -> str:
        return f"LIONESS-{self._stream.name}-{self._mac.name}"

    def _check_block(self, block) -> None:
        if not is_mutable_buffer(block):
            raise TypeError("Block must be a bytearray or writable byte memoryview")
        if len(block) <= self._mac.OUTPUT_SIZE:
            raise InvalidBlockLength(len(block), self.min_block_size)

    @contextmanager
    def _halves(self, block: Block):
        split = self._mac.OUTPUT_SIZE
        with memoryview(block) as view, view[:split] as left, view[split:] as right:
            yield left, right

    def encrypt_block(self, block: Block) -> None:
        """
        Encrypt ``block`` in place.

        Raises:
            InvalidBlockLength: If ``len(block) <= mac.OUTPUT_SIZE``; the block
                is left untouched
            TypeError: If block is not a mutable buffer
        """
        self._check_block(block)

        with self._halves(block) as (left, right):
            # R = R ^ S(L ^ K1)
            right_xor_assign_stream(left, right, self._keys.k1, self._stream, self._iv)
            # L = L ^ H(K2, R)
            left_xor_assign_digest(left, right, self._keys.k2, self._mac)
            # R = R ^ S(L ^ K3)
            right_xor_assign_stream(left, right, self._keys.k3, self._stream, self._iv)
            # L = L ^ H(K4, R)
            left_xor_assign_digest(left, right, self._keys.k4, self._mac)

    def decrypt_block(self, block: Block) -> None:
        """
        Decrypt ``block`` in place.

        Raises:
            InvalidBlockLength: If ``len(block) <= mac.OUTPUT_SIZE``; the block
                is left untouched
            TypeError: If block is not a mutable buffer
        """
        self._check_block(block)

        with self._halves(block) as (left, right):
            # L = L ^ H(K4, R)
            left_xor_assign_digest(left, right, self._keys.k4, self._mac)
            # R = R ^ S(L ^ K3)
            right_xor_assign_stream(left, right, self._keys.k3, self._stream, self._iv)
            # L = L ^ H(K2, R)
            left_xor_assign_digest(left, right, self._keys.k2, self._mac)
            # R = R ^ S(L ^ K1)
            right_xor_assign_stream(left, right, self._keys.k1, self._stream, self._iv)

    def encrypt(self, plaintext: bytes) -> bytes:
        """Encrypt a copy of ``plaintext`` and return the ciphertext."""
        block = bytearray(plaintext)
        self.encrypt_block(block)
        return bytes(block)

    def decrypt(self, ciphertext: bytes) -> bytes:
        """Decrypt a copy of ``ciphertext`` and return the plaintext."""
        block = bytearray(ciphertext)
        self.decrypt_block(block)
        return bytes(block)

    def get_info(self) -> dict:
        """Sizes and primitive names for this cipher."""
        return {
            'algorithm': self.algorithm_name,
            'stream_cipher': self._stream.name,
            'mac': self._mac.name,
            'key_size': self.key_size,
            'stream_key_size': self._stream.KEY_SIZE,
            'mac_key_size': self._mac.KEY_SIZE,
            'mac_output_size': self._mac.OUTPUT_SIZE,
            'min_block_size': self.min_block_size,
        }

    def __repr__(self) -> str:
        return f"Lioness({self._stream.name}, {self._mac.name})"
