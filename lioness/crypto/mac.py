"""
Keyed MAC adapters used by the digest-driven LIONESS round.

The MAC is used purely as a keyed pseudorandom function: its digest is XORed
into the left half of the block, so ``OUTPUT_SIZE`` fixes the left-half
length of every block the cipher handles.
"""

import hashlib
from typing import Dict, Type, Union

from blake3 import blake3
from cryptography.hazmat.primitives import hashes, hmac

from .stream import UnknownPrimitiveError, normalize_name


class MAC:
    """
    Base class for keyed MACs.

    Subclasses set ``name``, ``KEY_SIZE`` and ``OUTPUT_SIZE`` and implement
    ``_new``, ``update`` and ``finalize``.
    """

    name = "abstract"
    KEY_SIZE = 0
    OUTPUT_SIZE = 0

    def __init__(self, key: bytes):
        """
        Key the MAC.

        Args:
            key: ``KEY_SIZE`` byte key

        Raises:
            ValueError: If key has the wrong length
        """
        if len(key) != self.KEY_SIZE:
            raise ValueError(f"{self.name} requires {self.KEY_SIZE}-byte key")
        self._state = self._new(bytes(key))

    def _new(self, key: bytes):
        raise NotImplementedError

    def update(self, message: Union[bytes, bytearray, memoryview]) -> None:
        """Absorb more message bytes."""
        self._state.update(message)

    def finalize(self) -> bytes:
        """Return the ``OUTPUT_SIZE`` byte digest."""
        raise NotImplementedError

    @classmethod
    def digest(cls, key: bytes, message: Union[bytes, bytearray, memoryview]) -> bytes:
        """One-shot ``MAC(key, message)``."""
        mac = cls(key)
        mac.update(message)
        return mac.finalize()


class Blake3MAC(MAC):
    """BLAKE3 in keyed-hash mode."""

    name = "BLAKE3"
    KEY_SIZE = blake3.key_size
    OUTPUT_SIZE = blake3.digest_size

    def _new(self, key: bytes):
        return blake3(key=key)

    def finalize(self) -> bytes:
        return self._state.digest(self.OUTPUT_SIZE)


class HMACSHA256(MAC):
    """HMAC-SHA256 with a 32-byte key."""

    name = "HMAC-SHA256"
    KEY_SIZE = 32
    OUTPUT_SIZE = 32
    _algorithm = hashes.SHA256

    def _new(self, key: bytes):
        return hmac.HMAC(key, self._algorithm())

    def finalize(self) -> bytes:
        return self._state.finalize()


class HMACSHA512(HMACSHA256):
    """HMAC-SHA512 with a 64-byte key."""

    name = "HMAC-SHA512"
    KEY_SIZE = 64
    OUTPUT_SIZE = 64
    _algorithm = hashes.SHA512


class Blake2bMAC(MAC):
    """BLAKE2b keyed mode, full 64-byte key and digest."""

    name = "BLAKE2b"
    KEY_SIZE = 64
    OUTPUT_SIZE = 64

    def _new(self, key: bytes):
        return hashlib.blake2b(key=key, digest_size=self.OUTPUT_SIZE)

    def finalize(self) -> bytes:
        return self._state.digest()


MACS: Dict[str, Type[MAC]] = {
    "blake3": Blake3MAC,
    "hmac-sha256": HMACSHA256,
    "hmac-sha512": HMACSHA512,
    "blake2b": Blake2bMAC,
}


def get_mac(name: str) -> Type[MAC]:
    """
    Look up a MAC class by name.

    Raises:
        UnknownPrimitiveError: If no MAC is registered under name
    """
    try:
        return MACS[normalize_name(name)]
    except KeyError:
        available = ", ".join(sorted(MACS))
        raise UnknownPrimitiveError(
            f"Unknown MAC '{name}' (available: {available})"
        ) from None
