"""
Fixed block size LIONESS.

``BlockLioness`` exposes the construction as a conventional block cipher with
one constant block size, for callers (packet formats, mode-of-operation code)
that expect a ``block_size`` attribute.
"""

from typing import Optional, Type

from .cipher import Block, InvalidBlockLength, Lioness
from .crypto.kdf import KeyScheduleError
from .crypto.mac import MAC, Blake3MAC
from .crypto.stream import ChaCha20Stream, StreamCipher


class BlockLioness:
    """
    LIONESS restricted to blocks of exactly ``block_size`` bytes.
    """

    def __init__(self, master_key: bytes, block_size: int,
                 stream: Type[StreamCipher] = ChaCha20Stream,
                 mac: Type[MAC] = Blake3MAC,
                 iv: Optional[bytes] = None):
        """
        Args:
            master_key: Master key for the underlying Lioness
            block_size: Block length, must exceed ``mac.OUTPUT_SIZE``
            stream: Stream cipher class
            mac: MAC class
            iv: Stream cipher IV, all-zero when omitted

        Raises:
            KeyScheduleError: If block_size is not larger than the MAC output
                or the master key is invalid
        """
        if block_size <= mac.OUTPUT_SIZE:
            raise KeyScheduleError(
                f"Block size {block_size} must exceed {mac.name} output size "
                f"({mac.OUTPUT_SIZE} bytes)"
            )

        self.block_size = block_size
        self.inner = Lioness(master_key, stream, mac, iv)

    @property
    def key_size(self) -> int:
        return self.inner.key_size

    @property
    def algorithm_name(self) -> str:
        return f"{self.inner.algorithm_name}-{self.block_size}"

    def _check_size(self, block: Block) -> None:
        if len(block) != self.block_size:
            raise InvalidBlockLength(len(block), self.block_size, exact=self.block_size)

    def encrypt_block(self, block: Block) -> None:
        """Encrypt one ``block_size`` byte block in place."""
        self._check_size(block)
        self.inner.encrypt_block(block)

    def decrypt_block(self, block: Block) -> None:
        """Decrypt one ``block_size`` byte block in place."""
        self._check_size(block)
        self.inner.decrypt_block(block)

    def encrypt(self, plaintext: bytes) -> bytes:
        block = bytearray(plaintext)
        self.encrypt_block(block)
        return bytes(block)

    def decrypt(self, ciphertext: bytes) -> bytes:
        block = bytearray(ciphertext)
        self.decrypt_block(block)
        return bytes(block)

    def get_info(self) -> dict:
        info = self.inner.get_info()
        info['algorithm'] = self.algorithm_name
        info['block_size'] = self.block_size
        return info
