"""
Tests for configuration handling and master key files.
"""

import json
import os

import pytest

from lioness import BlockLioness, Lioness
from lioness.config import CONFIG_DIR_ENV, ConfigError, LionessConfig
from lioness.crypto.kdf import (
    KeyScheduleError,
    create_master_key_file,
    generate_master_key,
    load_master_key,
)
from lioness.crypto.mac import HMACSHA512
from lioness.crypto.stream import AES128CTRStream


class TestKeyFiles:
    """Test master key loading and saving."""

    def test_generate_master_key(self):
        key = generate_master_key(128)
        assert len(key) == 128
        assert key != generate_master_key(128)

    def test_hex_roundtrip(self, tmp_path):
        """Test that a written key file loads back unchanged."""
        path = str(tmp_path / "key.hex")
        key = create_master_key_file(path, 128)

        assert load_master_key(path, 128) == key
        assert load_master_key(path) == key

    def test_hex_with_newline(self, tmp_path):
        path = tmp_path / "key.hex"
        key = bytes(range(128))
        path.write_text(key.hex() + "\n")

        assert load_master_key(str(path), 128) == key

    def test_raw_binary(self, tmp_path):
        path = tmp_path / "key.bin"
        key = bytes(range(128))
        path.write_bytes(key)

        assert load_master_key(str(path), 128) == key

    def test_wrong_size(self, tmp_path):
        path = tmp_path / "key.hex"
        path.write_text(bytes(64).hex())

        with pytest.raises(KeyScheduleError):
            load_master_key(str(path), 128)

    def test_garbage(self, tmp_path):
        path = tmp_path / "key.bin"
        path.write_bytes(b"\xff" * 50)

        with pytest.raises(KeyScheduleError):
            load_master_key(str(path), 128)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_master_key(str(tmp_path / "missing.hex"), 128)

    def test_provided_key_size_checked(self, tmp_path):
        with pytest.raises(KeyScheduleError):
            create_master_key_file(str(tmp_path / "key.hex"), 128, bytes(10))

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions only")
    def test_restrictive_permissions(self, tmp_path):
        path = str(tmp_path / "key.hex")
        create_master_key_file(path, 128)
        assert os.stat(path).st_mode & 0o777 == 0o600


class TestLionessConfig:
    """Test the configuration manager."""

    def test_defaults(self, tmp_path):
        config = LionessConfig(str(tmp_path))
        settings = config.load_settings()

        assert settings['stream_cipher'] == 'chacha20'
        assert settings['mac'] == 'blake3'
        assert settings['block_size'] is None
        assert config.master_key_size() == 128
        assert not config.key_exists()

    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_DIR_ENV, str(tmp_path / "from-env"))
        config = LionessConfig()

        assert config.config_dir == str(tmp_path / "from-env")
        assert os.path.isdir(config.config_dir)

    def test_create_cipher(self, tmp_path):
        config = LionessConfig(str(tmp_path))
        key = config.create_new_master_key()

        cipher = config.create_cipher()
        assert isinstance(cipher, Lioness)
        assert cipher.encrypt(b"x" * 40) == Lioness(key).encrypt(b"x" * 40)

    def test_settings_select_primitives(self, tmp_path):
        config = LionessConfig(str(tmp_path))
        config.save_settings(stream_cipher='aes128-ctr', mac='hmac-sha512', block_size=128)

        assert config.master_key_size() == 160
        config.create_new_master_key()
        cipher = config.create_cipher()

        assert isinstance(cipher, BlockLioness)
        assert cipher.block_size == 128
        assert cipher.inner.stream is AES128CTRStream
        assert cipher.inner.mac is HMACSHA512

        with open(config.settings_path, encoding='utf-8') as f:
            assert json.load(f)['mac'] == 'hmac-sha512'

    def test_set_master_key(self, tmp_path):
        config = LionessConfig(str(tmp_path))
        config.set_master_key(bytes(range(128)).hex())

        assert config.key_exists()
        assert config.get_master_key() == bytes(range(128))

    def test_set_master_key_wrong_length(self, tmp_path):
        config = LionessConfig(str(tmp_path))
        with pytest.raises(ConfigError):
            config.set_master_key("00" * 32)

    def test_set_master_key_bad_hex(self, tmp_path):
        config = LionessConfig(str(tmp_path))
        with pytest.raises(ConfigError):
            config.set_master_key("zz" * 128)

    def test_missing_master_key(self, tmp_path):
        with pytest.raises(ConfigError):
            LionessConfig(str(tmp_path)).get_master_key()

    def test_key_no_longer_matches_primitives(self, tmp_path):
        """Test that a stored key is rechecked after the MAC changes."""
        config = LionessConfig(str(tmp_path))
        config.create_new_master_key()
        config.save_settings(mac='hmac-sha512')

        with pytest.raises(ConfigError):
            config.get_master_key()

    def test_unknown_primitive(self, tmp_path):
        config = LionessConfig(str(tmp_path))
        with pytest.raises(ConfigError):
            config.save_settings(stream_cipher='rc4')

    def test_block_size_too_small(self, tmp_path):
        config = LionessConfig(str(tmp_path))
        with pytest.raises(ConfigError):
            config.save_settings(block_size=32)

    @pytest.mark.parametrize("field", ['stream_cipher', 'mac'])
    @pytest.mark.parametrize("value", [None, 5, ["chacha20"]])
    def test_non_string_primitive_name(self, tmp_path, field, value):
        """Test that non-string primitive names in settings.json raise ConfigError."""
        config = LionessConfig(str(tmp_path))
        with open(config.settings_path, 'w', encoding='utf-8') as f:
            json.dump({field: value}, f)

        with pytest.raises(ConfigError):
            config.load_settings()

    def test_missing_primitive_setting(self, tmp_path):
        config = LionessConfig(str(tmp_path))
        with pytest.raises(ConfigError):
            config._validate({'mac': 'blake3'})

    def test_corrupt_settings(self, tmp_path):
        config = LionessConfig(str(tmp_path))
        with open(config.settings_path, 'w', encoding='utf-8') as f:
            f.write("{not json")

        with pytest.raises(ConfigError):
            config.load_settings()
