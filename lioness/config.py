"""
Configuration management for LIONESS.

Keeps the primitive selection (stream cipher, MAC, optional fixed block size)
in a small JSON settings file and the master key in a hex key file, both under
one configuration directory. Cryptographic file handling is delegated to the
kdf module; this module only resolves paths, validates settings and builds
ready-to-use ciphers.
"""

import json
import logging
import os
from typing import Any, Dict, Optional, Union

from .block import BlockLioness
from .cipher import Lioness
from .crypto.kdf import (
    KeyScheduleError,
    create_master_key_file,
    load_master_key,
    required_key_size,
)
from .crypto.mac import get_mac
from .crypto.stream import UnknownPrimitiveError, get_stream_cipher

CONFIG_DIR_ENV = "LIONESS_CONFIG_DIR"

DEFAULT_SETTINGS: Dict[str, Any] = {
    'stream_cipher': 'chacha20',
    'mac': 'blake3',
    'block_size': None,
}


class ConfigError(Exception):
    """Raised when configuration operations fail."""
    pass


class LionessConfig:
    """
    Configuration manager for LIONESS.

    Handles the primitive selection and the pre-provisioned master key.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_dir: Directory for configuration files. Defaults to
                ``$LIONESS_CONFIG_DIR`` or ``~/.lioness/``
        """
        if config_dir is None:
            config_dir = os.environ.get(CONFIG_DIR_ENV) or os.path.expanduser("~/.lioness")

        self.config_dir = config_dir
        self.key_file_path = os.path.join(config_dir, "master_key.hex")
        self.settings_path = os.path.join(config_dir, "settings.json")
        self.logger = logging.getLogger(__name__)

        os.makedirs(config_dir, exist_ok=True)

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings, falling back to defaults for missing entries.

        Raises:
            ConfigError: If the settings file is unreadable or names unknown
                primitives
        """
        settings = dict(DEFAULT_SETTINGS)
        if os.path.exists(self.settings_path):
            try:
                with open(self.settings_path, 'r', encoding='utf-8') as f:
                    stored = json.load(f)
            except (OSError, ValueError) as e:
                raise ConfigError(f"Failed to read settings: {e}")
            if not isinstance(stored, dict):
                raise ConfigError("Settings file must contain a JSON object")
            settings.update(stored)

        self._validate(settings)
        return settings

    def save_settings(self, stream_cipher: Optional[str] = None, mac: Optional[str] = None,
                      block_size: Optional[int] = None) -> Dict[str, Any]:
        """
        Update and persist settings. Arguments left as None keep their value.

        Returns:
            The settings that were written
        """
        settings = self.load_settings()
        if stream_cipher is not None:
            settings['stream_cipher'] = stream_cipher
        if mac is not None:
            settings['mac'] = mac
        if block_size is not None:
            settings['block_size'] = block_size

        self._validate(settings)

        try:
            with open(self.settings_path, 'w', encoding='utf-8') as f:
                json.dump(settings, f, indent=2)
        except OSError as e:
            raise ConfigError(f"Failed to save settings: {e}")

        self.logger.info(f"Settings saved to: {self.settings_path}")
        return settings

    def _validate(self, settings: Dict[str, Any]) -> None:
        for field in ('stream_cipher', 'mac'):
            if field not in settings:
                raise ConfigError(f"Missing setting: {field}")
            if not isinstance(settings[field], str):
                raise ConfigError(f"{field} must be a primitive name, got {settings[field]!r}")

        try:
            stream = get_stream_cipher(settings['stream_cipher'])
            mac = get_mac(settings['mac'])
        except UnknownPrimitiveError as e:
            raise ConfigError(str(e.args[0]))

        block_size = settings.get('block_size')
        if block_size is not None:
            if not isinstance(block_size, int) or block_size <= mac.OUTPUT_SIZE:
                raise ConfigError(
                    f"block_size must be an integer greater than {mac.OUTPUT_SIZE} for {mac.name}"
                )
        if mac.OUTPUT_SIZE < stream.KEY_SIZE:
            raise ConfigError(f"{mac.name} cannot be paired with {stream.name}")

    def master_key_size(self) -> int:
        """Master key length required by the configured primitives."""
        settings = self.load_settings()
        return required_key_size(get_stream_cipher(settings['stream_cipher']),
                                 get_mac(settings['mac']))

    def get_master_key(self) -> bytes:
        """
        Load the master key, checking its length against the configured primitives.

        Raises:
            ConfigError: If the master key cannot be loaded
        """
        if not os.path.exists(self.key_file_path):
            raise ConfigError(f"Master key file not found: {self.key_file_path}")

        try:
            return load_master_key(self.key_file_path, self.master_key_size())
        except KeyScheduleError as e:
            raise ConfigError(f"Invalid master key: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to load master key: {e}")

    def set_master_key(self, hex_key: str) -> None:
        """
        Set the master key from a hex string.

        Raises:
            ConfigError: If key format or length is invalid
        """
        try:
            key = bytes.fromhex(hex_key.strip())
        except ValueError:
            raise ConfigError("Invalid hex characters in master key")

        size = self.master_key_size()
        if len(key) != size:
            raise ConfigError(f"Master key must be {size} bytes ({2 * size} hex characters)")

        try:
            create_master_key_file(self.key_file_path, size, key)
        except OSError as e:
            raise ConfigError(f"Failed to save master key: {e}")
        self.logger.info(f"Master key saved to: {self.key_file_path}")

    def create_new_master_key(self) -> bytes:
        """
        Generate and store a new master key for the configured primitives.

        Raises:
            ConfigError: If saving fails
        """
        try:
            key = create_master_key_file(self.key_file_path, self.master_key_size())
        except OSError as e:
            raise ConfigError(f"Failed to create new master key: {e}")
        self.logger.info(f"Generated new master key, saved to: {self.key_file_path}")
        return key

    def key_exists(self) -> bool:
        """Check if a master key file exists."""
        return os.path.exists(self.key_file_path)

    def create_cipher(self) -> Union[Lioness, BlockLioness]:
        """
        Build a cipher from the stored settings and master key.

        Returns:
            BlockLioness if a block size is configured, otherwise Lioness
        """
        settings = self.load_settings()
        stream = get_stream_cipher(settings['stream_cipher'])
        mac = get_mac(settings['mac'])
        key = self.get_master_key()

        if settings.get('block_size') is not None:
            return BlockLioness(key, settings['block_size'], stream, mac)
        return Lioness(key, stream, mac)
