"""
Key schedule for the LIONESS construction.

A master key of exactly ``2 * (StreamKeySize + MacKeySize)`` bytes is split
by contiguous slicing into four round subkeys:

    k1 | k2 | k3 | k4
    S    M    S    M      (S = stream key size, M = MAC key size)

k1 and k3 key the stream rounds, k2 and k4 key the digest rounds. This
module also loads, stores and generates master keys, and can expand a short
secret into a full master key with HKDF.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional, Type

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from .mac import MAC
from .stream import StreamCipher

logger = logging.getLogger(__name__)


class KeyScheduleError(ValueError):
    """Raised when a master key or primitive pairing cannot be scheduled."""
    pass


LIONESS_KDF_CONTEXT = b"LIONESS_MASTER_KEY_V1"


@dataclass(frozen=True)
class LionessKeys:
    """The four round subkeys derived from one master key."""
    k1: bytes
    k2: bytes
    k3: bytes
    k4: bytes

    def __repr__(self) -> str:
        return (f"LionessKeys(k1=<{len(self.k1)} bytes>, k2=<{len(self.k2)} bytes>, "
                f"k3=<{len(self.k3)} bytes>, k4=<{len(self.k4)} bytes>)")


def master_key_size(stream_key_size: int, mac_key_size: int) -> int:
    """Total master key length for the given subkey sizes."""
    return 2 * (stream_key_size + mac_key_size)


def required_key_size(stream: Type[StreamCipher], mac: Type[MAC]) -> int:
    """
    Master key length required by a stream cipher / MAC pair.

    Args:
        stream: StreamCipher subclass
        mac: MAC subclass

    Returns:
        Number of bytes the master key must have
    """
    return master_key_size(stream.KEY_SIZE, mac.KEY_SIZE)


def check_primitive_pair(stream: Type[StreamCipher], mac: Type[MAC]) -> None:
    """
    Verify the MAC digest is wide enough to derive a stream key from.

    Raises:
        KeyScheduleError: If ``mac.OUTPUT_SIZE < stream.KEY_SIZE``
    """
    if mac.OUTPUT_SIZE < stream.KEY_SIZE:
        raise KeyScheduleError(
            f"{mac.name} output ({mac.OUTPUT_SIZE} bytes) is shorter than "
            f"{stream.name} key ({stream.KEY_SIZE} bytes)"
        )


def split_master_key(master_key: bytes, stream_key_size: int,
                     mac_key_size: int) -> LionessKeys:
    """
    Split a master key into the four round subkeys.

    Args:
        master_key: Master key of ``2 * (stream_key_size + mac_key_size)`` bytes
        stream_key_size: Stream cipher key length
        mac_key_size: MAC key length

    Returns:
        LionessKeys with k1..k4 in slicing order

    Raises:
        KeyScheduleError: If master key length is wrong
    """
    expected = master_key_size(stream_key_size, mac_key_size)
    if master_key is None or len(master_key) != expected:
        got = "None" if master_key is None else f"{len(master_key)} bytes"
        raise KeyScheduleError(f"Master key must be {expected} bytes, got {got}")

    key = bytes(master_key)
    s, m = stream_key_size, mac_key_size
    return LionessKeys(
        k1=key[:s],
        k2=key[s:s + m],
        k3=key[s + m:2 * s + m],
        k4=key[2 * s + m:],
    )


def derive_master_key(secret: bytes, stream: Type[StreamCipher], mac: Type[MAC],
                      salt: Optional[bytes] = None,
                      info: bytes = LIONESS_KDF_CONTEXT) -> bytes:
    """
    Expand a shared secret into a master key for a primitive pair.

    Args:
        secret: Input keying material (any length, at least 16 bytes)
        stream: StreamCipher subclass the key is for
        mac: MAC subclass the key is for
        salt: Optional HKDF salt
        info: HKDF context string

    Returns:
        Master key of ``required_key_size(stream, mac)`` bytes

    Raises:
        KeyScheduleError: If the secret is too short
    """
    if secret is None or len(secret) < 16:
        raise KeyScheduleError("Secret must be at least 16 bytes")

    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=required_key_size(stream, mac),
        salt=salt,
        info=info + b"|" + stream.name.encode() + b"|" + mac.name.encode(),
    )
    return hkdf.derive(secret)


def load_master_key(key_file_path: str, expected_size: Optional[int] = None) -> bytes:
    """
    Load a master key from a file.

    Accepts raw binary keys and hex-encoded keys (optionally followed by a
    newline).

    Args:
        key_file_path: Path to the key file
        expected_size: Required key length in bytes, if known

    Returns:
        The master key bytes

    Raises:
        FileNotFoundError: If the key file doesn't exist
        KeyScheduleError: If the file content is not a key of the right size
    """
    if not os.path.exists(key_file_path):
        raise FileNotFoundError(f"Master key file not found: {key_file_path}")

    with open(key_file_path, 'rb') as f:
        key_data = f.read()

    # Anything that parses as hex is a hex key file
    try:
        key = bytes.fromhex(key_data.decode('ascii').strip())
    except (ValueError, UnicodeDecodeError):
        key = key_data

    if expected_size is not None and len(key) != expected_size:
        raise KeyScheduleError(
            f"Master key in {key_file_path} is {len(key)} bytes, expected {expected_size}"
        )
    return key


def create_master_key_file(key_file_path: str, size: int,
                           master_key: Optional[bytes] = None) -> bytes:
    """
    Write a master key file, generating a fresh key if none is given.

    Args:
        key_file_path: Path where to save the key file
        size: Master key length in bytes
        master_key: Optional pre-existing key

    Returns:
        The master key that was saved
    """
    if master_key is None:
        master_key = generate_master_key(size)
    elif len(master_key) != size:
        raise KeyScheduleError(f"Master key must be {size} bytes, got {len(master_key)}")

    with open(key_file_path, 'w') as f:
        f.write(master_key.hex())

    try:
        os.chmod(key_file_path, 0o600)
    except (OSError, AttributeError):
        logger.warning(f"Could not set restrictive permissions on {key_file_path}")

    return master_key


def generate_master_key(size: int) -> bytes:
    """Generate a cryptographically secure master key of ``size`` bytes."""
    return os.urandom(size)
