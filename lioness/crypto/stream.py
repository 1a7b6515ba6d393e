"""
Stream cipher adapters used by the stream-driven LIONESS round.

Each adapter wraps a keystream generator from the ``cryptography`` package
behind a small uniform interface: construct with a key and an IV, then XOR
keystream into a mutable buffer with ``apply_keystream``. Key and IV sizes
are class attributes so the key schedule can size master keys without
instantiating anything.
"""

from typing import Dict, Optional, Type, Union

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes


class UnknownPrimitiveError(KeyError):
    """Raised when a stream cipher or MAC name is not registered."""
    pass


class StreamCipher:
    """
    Base class for keyed stream ciphers.

    Subclasses set ``name``, ``KEY_SIZE`` and ``IV_SIZE`` and implement
    ``_build_cipher``.
    """

    name = "abstract"
    KEY_SIZE = 0
    IV_SIZE = 0

    def __init__(self, key: bytes, iv: Optional[bytes] = None):
        """
        Key the stream cipher.

        Args:
            key: ``KEY_SIZE`` byte key
            iv: ``IV_SIZE`` byte IV, all-zero when omitted

        Raises:
            ValueError: If key or IV has the wrong length
        """
        if len(key) != self.KEY_SIZE:
            raise ValueError(f"{self.name} requires {self.KEY_SIZE}-byte key")
        if iv is None:
            iv = self.default_iv()
        if len(iv) != self.IV_SIZE:
            raise ValueError(f"{self.name} requires {self.IV_SIZE}-byte IV")

        self._encryptor = self._build_cipher(bytes(key), bytes(iv)).encryptor()

    @classmethod
    def default_iv(cls) -> bytes:
        """The fixed all-zero IV every LIONESS round uses unless told otherwise."""
        return b'\x00' * cls.IV_SIZE

    def _build_cipher(self, key: bytes, iv: bytes) -> Cipher:
        raise NotImplementedError

    def apply_keystream(self, buffer: Union[bytearray, memoryview]) -> None:
        """
        XOR the next ``len(buffer)`` keystream bytes into ``buffer``.

        Successive calls continue the same keystream.
        """
        buffer[:] = self._encryptor.update(buffer)

    @classmethod
    def keystream(cls, key: bytes, length: int, iv: Optional[bytes] = None) -> bytes:
        """Return ``length`` raw keystream bytes for ``key``."""
        out = bytearray(length)
        cls(key, iv).apply_keystream(out)
        return bytes(out)


class ChaCha20Stream(StreamCipher):
    """
    ChaCha20 (RFC 7539 block function).

    ``cryptography`` takes a 16-byte nonce made of a 4-byte little-endian
    block counter followed by the 12-byte IETF nonce; an all-zero value is
    counter 0 with a zero nonce.
    """

    name = "ChaCha20"
    KEY_SIZE = 32
    IV_SIZE = 16

    def _build_cipher(self, key: bytes, iv: bytes) -> Cipher:
        return Cipher(algorithms.ChaCha20(key, iv), mode=None)


class AES256CTRStream(StreamCipher):
    """AES-256 in CTR mode with a 128-bit big-endian counter block."""

    name = "AES-256-CTR"
    KEY_SIZE = 32
    IV_SIZE = 16

    def _build_cipher(self, key: bytes, iv: bytes) -> Cipher:
        return Cipher(algorithms.AES(key), modes.CTR(iv))


class AES128CTRStream(AES256CTRStream):
    """AES-128 in CTR mode."""

    name = "AES-128-CTR"
    KEY_SIZE = 16


STREAM_CIPHERS: Dict[str, Type[StreamCipher]] = {
    "chacha20": ChaCha20Stream,
    "aes256-ctr": AES256CTRStream,
    "aes128-ctr": AES128CTRStream,
}


def normalize_name(name: str) -> str:
    """Normalize a primitive name for registry lookup."""
    return name.strip().lower().replace("_", "-")


def get_stream_cipher(name: str) -> Type[StreamCipher]:
    """
    Look up a stream cipher class by name.

    Args:
        name: Registry name, e.g. ``"chacha20"`` or ``"AES256_CTR"``

    Returns:
        StreamCipher subclass

    Raises:
        UnknownPrimitiveError: If no stream cipher is registered under name
    """
    try:
        return STREAM_CIPHERS[normalize_name(name)]
    except KeyError:
        available = ", ".join(sorted(STREAM_CIPHERS))
        raise UnknownPrimitiveError(
            f"Unknown stream cipher '{name}' (available: {available})"
        ) from None
