"""
Correctness tests for LIONESS.

Tests the key schedule, round-trip encryption/decryption, block length
rejection and agreement with a direct composition of the primitives.
"""

import hashlib
import hmac as std_hmac
import struct

import pytest
from blake3 import blake3
from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms

from lioness import Lioness, create_lioness
from lioness.cipher import InvalidBlockLength, left_xor_assign_digest, right_xor_assign_stream
from lioness.crypto.kdf import (
    KeyScheduleError,
    derive_master_key,
    master_key_size,
    required_key_size,
    split_master_key,
)
from lioness.crypto.mac import MAC, Blake2bMAC, Blake3MAC, HMACSHA256, HMACSHA512
from lioness.crypto.stream import AES128CTRStream, AES256CTRStream, ChaCha20Stream
from lioness.crypto.utils import generate_random_bytes

REFERENCE_KEY = (b"my-awesome-key-that-is-perfect-length-to-work-with-chacha20-and-"
                 b"blake3-lioness-cipher-after-adding-a-little-bit-of-extra-padding")
REFERENCE_DATA = (b"Hello there! This is some test data that has length at least as "
                  b"long as the digest size of Blake3.")

PRIMITIVE_PAIRS = [
    (ChaCha20Stream, Blake3MAC),
    (ChaCha20Stream, HMACSHA256),
    (ChaCha20Stream, HMACSHA512),
    (ChaCha20Stream, Blake2bMAC),
    (AES256CTRStream, Blake3MAC),
    (AES128CTRStream, HMACSHA256),
]


def _xor(a: bytes, b: bytes) -> bytes:
    return bytes(x ^ y for x, y in zip(a, b))


def _chacha20(key: bytes, length: int) -> bytes:
    encryptor = Cipher(algorithms.ChaCha20(key, b'\x00' * 16), mode=None).encryptor()
    return encryptor.update(b'\x00' * length)


def _reference_encrypt_chacha20_blake3(key: bytes, data: bytes) -> bytes:
    k1, k2, k3, k4 = key[:32], key[32:64], key[64:96], key[96:]
    left, right = data[:32], data[32:]
    right = _xor(right, _chacha20(_xor(left, k1), len(right)))
    left = _xor(left, blake3(right, key=k2).digest())
    right = _xor(right, _chacha20(_xor(left, k3), len(right)))
    left = _xor(left, blake3(right, key=k4).digest())
    return left + right


def _hmac_sha512(key: bytes, data: bytes) -> bytes:
    h = hmac.HMAC(key, hashes.SHA512())
    h.update(data)
    return h.finalize()


def _reference_encrypt_chacha20_hmac512(key: bytes, data: bytes) -> bytes:
    # 64-byte left half, only its first 32 bytes feed the ChaCha20 key
    k1, k2, k3, k4 = key[:32], key[32:96], key[96:128], key[128:]
    left, right = data[:64], data[64:]
    right = _xor(right, _chacha20(_xor(left[:32], k1), len(right)))
    left = _xor(left, _hmac_sha512(k2, right))
    right = _xor(right, _chacha20(_xor(left[:32], k3), len(right)))
    left = _xor(left, _hmac_sha512(k4, right))
    return left + right


def _rotl32(value: int, shift: int) -> int:
    return ((value << shift) | (value >> (32 - shift))) & 0xffffffff


def _quarter_round(state, a, b, c, d):
    state[a] = (state[a] + state[b]) & 0xffffffff
    state[d] = _rotl32(state[d] ^ state[a], 16)
    state[c] = (state[c] + state[d]) & 0xffffffff
    state[b] = _rotl32(state[b] ^ state[c], 12)
    state[a] = (state[a] + state[b]) & 0xffffffff
    state[d] = _rotl32(state[d] ^ state[a], 8)
    state[c] = (state[c] + state[d]) & 0xffffffff
    state[b] = _rotl32(state[b] ^ state[c], 7)


def _pure_chacha20(key: bytes, length: int) -> bytes:
    """RFC 7539 ChaCha20 keystream with a zero counter and nonce, no library involved."""
    out = bytearray()
    counter = 0
    while len(out) < length:
        initial = ([0x61707865, 0x3320646e, 0x79622d32, 0x6b206574]
                   + list(struct.unpack('<8I', key))
                   + [counter, 0, 0, 0])
        state = list(initial)
        for _ in range(10):
            _quarter_round(state, 0, 4, 8, 12)
            _quarter_round(state, 1, 5, 9, 13)
            _quarter_round(state, 2, 6, 10, 14)
            _quarter_round(state, 3, 7, 11, 15)
            _quarter_round(state, 0, 5, 10, 15)
            _quarter_round(state, 1, 6, 11, 12)
            _quarter_round(state, 2, 7, 8, 13)
            _quarter_round(state, 3, 4, 9, 14)
        out += struct.pack('<16I', *((s + i) & 0xffffffff for s, i in zip(state, initial)))
        counter += 1
    return bytes(out[:length])


def _independent_encrypt_chacha20_hmac256(key: bytes, data: bytes) -> bytes:
    k1, k2, k3, k4 = key[:32], key[32:64], key[64:96], key[96:]
    left, right = data[:32], data[32:]
    right = _xor(right, _pure_chacha20(_xor(left, k1), len(right)))
    left = _xor(left, std_hmac.new(k2, right, hashlib.sha256).digest())
    right = _xor(right, _pure_chacha20(_xor(left, k3), len(right)))
    left = _xor(left, std_hmac.new(k4, right, hashlib.sha256).digest())
    return left + right


class TestKeySchedule:
    """Test master key splitting."""

    def test_master_key_size(self):
        """Test the master key size formula."""
        assert master_key_size(32, 32) == 128
        assert required_key_size(ChaCha20Stream, Blake3MAC) == 128
        assert required_key_size(ChaCha20Stream, HMACSHA512) == 192
        assert required_key_size(AES128CTRStream, HMACSHA256) == 96

    def test_split_order(self):
        """Test that subkeys are contiguous slices in k1, k2, k3, k4 order."""
        master_key = bytes(range(128))
        keys = split_master_key(master_key, 32, 32)

        assert keys.k1 == bytes(range(0, 32))
        assert keys.k2 == bytes(range(32, 64))
        assert keys.k3 == bytes(range(64, 96))
        assert keys.k4 == bytes(range(96, 128))

    def test_split_unequal_sizes(self):
        """Test slicing when stream and MAC key sizes differ."""
        master_key = bytes(range(96))
        keys = split_master_key(master_key, 16, 32)

        assert keys.k1 == bytes(range(0, 16))
        assert keys.k2 == bytes(range(16, 48))
        assert keys.k3 == bytes(range(48, 64))
        assert keys.k4 == bytes(range(64, 96))

    def test_cipher_holds_reference_subkeys(self):
        """Test the subkeys of the reference ChaCha20/BLAKE3 key."""
        cipher = Lioness(REFERENCE_KEY)

        assert cipher.keys.k1 == REFERENCE_KEY[:32]
        assert cipher.keys.k2 == REFERENCE_KEY[32:64]
        assert cipher.keys.k3 == REFERENCE_KEY[64:96]
        assert cipher.keys.k4 == REFERENCE_KEY[96:]

    @pytest.mark.parametrize("length", [0, 1, 127, 129, 256])
    def test_wrong_master_key_length(self, length):
        """Test that construction rejects master keys of the wrong length."""
        with pytest.raises(KeyScheduleError):
            Lioness(bytes(length))

    def test_zero_key_construction(self):
        """Test that an all-zero key of the right length is accepted."""
        Lioness(bytes(128))

    def test_mac_output_shorter_than_stream_key(self):
        """Test that a MAC narrower than the stream key is rejected."""

        class NarrowMAC(MAC):
            name = "narrow"
            KEY_SIZE = 16
            OUTPUT_SIZE = 16

        with pytest.raises(KeyScheduleError):
            Lioness(bytes(2 * (32 + 16)), ChaCha20Stream, NarrowMAC)

    def test_derive_master_key(self):
        """Test HKDF expansion of a short secret."""
        secret = generate_random_bytes(32)

        key1 = derive_master_key(secret, ChaCha20Stream, Blake3MAC)
        key2 = derive_master_key(secret, ChaCha20Stream, Blake3MAC)
        key3 = derive_master_key(secret, ChaCha20Stream, HMACSHA512)

        assert key1 == key2
        assert len(key1) == 128
        assert len(key3) == 192
        assert key3[:128] != key1

    def test_derive_master_key_short_secret(self):
        """Test that secrets under 16 bytes are refused."""
        with pytest.raises(KeyScheduleError):
            derive_master_key(b"short", ChaCha20Stream, Blake3MAC)


class TestRoundTrip:
    """Test encryption/decryption roundtrip."""

    def test_reference_scenario(self):
        """Test the ChaCha20/BLAKE3 scenario with the reference key and data."""
        cipher = Lioness(REFERENCE_KEY, ChaCha20Stream, Blake3MAC)
        block = bytearray(REFERENCE_DATA)

        cipher.encrypt_block(block)
        assert bytes(block) != REFERENCE_DATA

        cipher.decrypt_block(block)
        assert bytes(block) == REFERENCE_DATA

    @pytest.mark.parametrize("stream,mac", PRIMITIVE_PAIRS)
    @pytest.mark.parametrize("extra", [1, 2, 31, 100, 1500])
    def test_roundtrip(self, stream, mac, extra):
        """Test roundtrip for every primitive pair across block sizes."""
        cipher = Lioness(generate_random_bytes(required_key_size(stream, mac)), stream, mac)
        plaintext = generate_random_bytes(mac.OUTPUT_SIZE + extra)
        block = bytearray(plaintext)

        cipher.encrypt_block(block)
        assert bytes(block) != plaintext

        cipher.decrypt_block(block)
        assert bytes(block) == plaintext

    def test_minimum_block(self):
        """Test a block exactly one byte longer than the MAC output."""
        cipher = Lioness(REFERENCE_KEY)
        plaintext = bytes(33)

        ciphertext = cipher.encrypt(plaintext)
        assert len(ciphertext) == 33
        assert ciphertext != plaintext
        assert cipher.decrypt(ciphertext) == plaintext

    def test_memoryview_block(self):
        """Test in-place transformation through a writable memoryview."""
        cipher = Lioness(REFERENCE_KEY)
        buffer = bytearray(b"header" + REFERENCE_DATA)

        view = memoryview(buffer)[6:]
        cipher.encrypt_block(view)
        assert buffer[:6] == b"header"
        assert bytes(buffer[6:]) != REFERENCE_DATA

        cipher.decrypt_block(view)
        assert bytes(buffer[6:]) == REFERENCE_DATA
        view.release()

    def test_encrypt_returns_copy(self):
        """Test that encrypt() leaves its input alone."""
        cipher = Lioness(REFERENCE_KEY)
        plaintext = bytearray(REFERENCE_DATA)

        ciphertext = cipher.encrypt(plaintext)
        assert plaintext == REFERENCE_DATA
        assert isinstance(ciphertext, bytes)
        assert cipher.encrypt_block(bytearray(REFERENCE_DATA)) is None

    def test_deterministic(self):
        """Test that the same key and block always give the same ciphertext."""
        assert Lioness(REFERENCE_KEY).encrypt(REFERENCE_DATA) == \
            Lioness(REFERENCE_KEY).encrypt(REFERENCE_DATA)

    def test_instance_reuse(self):
        """Test that one keyed instance handles many independent blocks."""
        cipher = Lioness(REFERENCE_KEY)
        blocks = [generate_random_bytes(64 + i) for i in range(20)]

        ciphertexts = [cipher.encrypt(b) for b in blocks]
        assert [cipher.decrypt(c) for c in ciphertexts] == blocks
        assert cipher.encrypt(blocks[0]) == ciphertexts[0]

    def test_create_lioness_by_name(self):
        """Test the name-based factory."""
        cipher = create_lioness(bytes(192), "chacha20", "hmac-sha512")
        assert cipher.mac is HMACSHA512
        assert cipher.decrypt(cipher.encrypt(bytes(100))) == bytes(100)


class TestReferenceComposition:
    """Test agreement with a direct composition of the underlying primitives."""

    def test_chacha20_blake3_matches_reference(self):
        """Test ChaCha20/BLAKE3 ciphertext against a hand-built composition."""
        cipher = Lioness(REFERENCE_KEY, ChaCha20Stream, Blake3MAC)

        expected = _reference_encrypt_chacha20_blake3(REFERENCE_KEY, REFERENCE_DATA)
        assert cipher.encrypt(REFERENCE_DATA) == expected

    def test_pure_chacha20_matches_rfc7539(self):
        """Test the library-free ChaCha20 against the RFC 7539 zero-key block."""
        assert _pure_chacha20(bytes(32), 64).hex() == (
            "76b8e0ada0f13d90405d6ae55386bd28bdd219b8a08ded1aa836efcc8b770dc7"
            "da41597c5157488d7724e03fb8d84a376a43b8f41518a11cc387b669b2ee6586"
        )

    def test_chacha20_hmac_sha256_matches_independent_implementation(self):
        """Test ciphertext against a composition that shares no code with the package."""
        cipher = Lioness(REFERENCE_KEY, ChaCha20Stream, HMACSHA256)

        expected = _independent_encrypt_chacha20_hmac256(REFERENCE_KEY, REFERENCE_DATA)
        assert cipher.encrypt(REFERENCE_DATA) == expected
        assert cipher.decrypt(expected) == REFERENCE_DATA

    def test_multi_block_keystream_matches_independent_implementation(self):
        """Test a right half longer than one ChaCha20 block."""
        key = bytes(range(128))
        data = bytes(range(256)) * 2
        cipher = Lioness(key, ChaCha20Stream, HMACSHA256)

        assert cipher.encrypt(data) == _independent_encrypt_chacha20_hmac256(key, data)

    def test_truncated_stream_key_matches_reference(self):
        """Test that only the first stream-key-size bytes of the left half key the stream."""
        key = bytes(range(192))
        data = generate_random_bytes(200)
        cipher = Lioness(key, ChaCha20Stream, HMACSHA512)

        assert cipher.encrypt(data) == _reference_encrypt_chacha20_hmac512(key, data)

    def test_stream_round_ignores_excess_left_bytes(self):
        """Test that left bytes past the stream key size do not affect the stream round."""
        k1 = generate_random_bytes(32)
        left_a = bytearray(generate_random_bytes(64))
        left_b = bytearray(left_a[:32] + generate_random_bytes(32))
        right_a = bytearray(100)
        right_b = bytearray(100)

        right_xor_assign_stream(left_a, right_a, k1, ChaCha20Stream)
        right_xor_assign_stream(left_b, right_b, k1, ChaCha20Stream)

        assert right_a == right_b
        assert right_a != bytearray(100)

    def test_digest_round_is_involution(self):
        """Test that applying the digest round twice restores the left half."""
        key = generate_random_bytes(32)
        left = bytearray(generate_random_bytes(32))
        right = generate_random_bytes(50)
        original = bytes(left)

        left_xor_assign_digest(left, right, key, Blake3MAC)
        assert bytes(left) == _xor(original, blake3(right, key=key).digest())

        left_xor_assign_digest(left, right, key, Blake3MAC)
        assert bytes(left) == original


class TestBlockLength:
    """Test rejection of blocks that are too short."""

    @pytest.mark.parametrize("length", [0, 1, 16, 31, 32])
    def test_encrypt_rejects_short_blocks(self, length):
        """Test that encryption rejects blocks not longer than the digest."""
        cipher = Lioness(REFERENCE_KEY)
        original = bytes(range(length))
        block = bytearray(original)

        with pytest.raises(InvalidBlockLength) as exc_info:
            cipher.encrypt_block(block)

        assert bytes(block) == original
        assert exc_info.value.length == length
        assert exc_info.value.minimum == 33

    @pytest.mark.parametrize("length", [0, 1, 16, 31, 32])
    def test_decrypt_rejects_short_blocks(self, length):
        """Test that decryption validates length exactly like encryption."""
        cipher = Lioness(REFERENCE_KEY)
        original = bytes(range(length))
        block = bytearray(original)

        with pytest.raises(InvalidBlockLength):
            cipher.decrypt_block(block)

        assert bytes(block) == original

    def test_wider_mac_raises_threshold(self):
        """Test that a 64-byte MAC needs blocks of at least 65 bytes."""
        cipher = Lioness(bytes(192), ChaCha20Stream, HMACSHA512)
        block = bytearray(64)

        with pytest.raises(InvalidBlockLength):
            cipher.encrypt_block(block)
        assert block == bytearray(64)

        cipher.encrypt_block(bytearray(65))

    def test_invalid_block_length_is_value_error(self):
        """Test that callers can catch the length error as ValueError."""
        with pytest.raises(ValueError):
            Lioness(REFERENCE_KEY).decrypt(b"too short")

    @pytest.mark.parametrize("block", [REFERENCE_DATA, memoryview(REFERENCE_DATA), "text" * 20])
    def test_immutable_blocks_rejected(self, block):
        """Test that in-place methods refuse buffers they cannot modify."""
        with pytest.raises(TypeError):
            Lioness(REFERENCE_KEY).encrypt_block(block)
