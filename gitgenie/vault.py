"""Credential vault for the AI API key.

The key is looked up through an ordered list of resolvers: the environment
variable, then the system keyring, then an encrypted JSON file in the user's
config directory. Saving prefers the keyring and falls back to the file.

The file is encrypted with AES-256-CBC. Its key is 32 random bytes kept in
the keyring; when the keyring is unavailable the key is derived from the
home directory, hostname and username. The derived key is only as secret as
those values, so it is a degraded mode and is reported as such.
"""

import getpass
import hashlib
import json
import logging
import os
import socket
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

import keyring
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from keyring.errors import KeyringError
from rich.console import Console

from gitgenie.config import Config, default_config
from gitgenie.exceptions import CorruptedDataError, DecryptionError, ValidationError, VaultError
from gitgenie.utils import console as default_console

logger = logging.getLogger(__name__)

IV_LENGTH = 16
KEY_LENGTH = 32
BLOCK_SIZE_BITS = 128

# JSON field of the encrypted config file.
CONFIG_FIELD = "GEMINI_API_KEY"


class KeyMode(Enum):
    RANDOM = "random"
    DERIVED = "derived"


class StorageLocation(Enum):
    KEYRING = "keyring"
    FILE = "file"


@dataclass(frozen=True)
class EncryptionKey:
    material: bytes
    mode: KeyMode
    key_id: str

    @property
    def is_degraded(self) -> bool:
        return self.mode is KeyMode.DERIVED


@dataclass(frozen=True)
class VaultEntry:
    """An encrypted secret and the id of the key that sealed it."""
    key_material: str
    encryption_key_id: str

    def to_json(self) -> str:
        return json.dumps({CONFIG_FIELD: self.key_material}, indent=2)


def derive_machine_key() -> EncryptionKey:
    """Derive a key from stable machine and user identifiers (degraded mode)."""
    try:
        username = getpass.getuser()
    except (OSError, KeyError):
        username = ""
    unique_data = f"{Path.home()}{socket.gethostname()}{username}"
    material = hashlib.sha256(unique_data.encode("utf-8")).digest()
    return EncryptionKey(material, KeyMode.DERIVED, "derived:sha256")


def encrypt(plaintext: str, key: EncryptionKey) -> str:
    """Encrypt ``plaintext`` into ``ivHex:cipherHex`` with a fresh IV."""
    if not isinstance(plaintext, str) or not plaintext:
        raise ValidationError("Text to encrypt must be a non-empty string")

    iv = os.urandom(IV_LENGTH)
    padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key.material), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return f"{iv.hex()}:{ciphertext.hex()}"


def _parse_blob(blob: str):
    if not isinstance(blob, str) or not blob:
        raise CorruptedDataError("Encrypted data must be a non-empty string")

    parts = blob.split(":")
    if len(parts) != 2:
        raise CorruptedDataError("Invalid encrypted data format")

    iv_hex, cipher_hex = parts
    if len(iv_hex) != IV_LENGTH * 2 or not cipher_hex:
        raise CorruptedDataError("Invalid encrypted data structure")

    try:
        iv = bytes.fromhex(iv_hex)
        ciphertext = bytes.fromhex(cipher_hex)
    except ValueError as e:
        raise CorruptedDataError(f"Encrypted data is not valid hex: {e}") from e

    if len(ciphertext) % IV_LENGTH:
        raise CorruptedDataError("Ciphertext length is not a whole number of blocks")
    return iv, ciphertext


def decrypt(blob: str, key: EncryptionKey) -> str:
    """Decrypt an ``ivHex:cipherHex`` blob.

    Raises:
        CorruptedDataError: The blob does not have the expected shape.
        DecryptionError: The shape is right but the key does not open it.
    """
    iv, ciphertext = _parse_blob(blob)
    decryptor = Cipher(algorithms.AES(key.material), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()
    try:
        unpadder = padding.PKCS7(BLOCK_SIZE_BITS).unpadder()
        data = unpadder.update(padded) + unpadder.finalize()
        return data.decode("utf-8")
    except (ValueError, UnicodeDecodeError) as e:
        raise DecryptionError("Decryption failed: wrong key or tampered data") from e


class EnvironmentResolver:
    name = "environment"

    def __init__(self, env_var: str) -> None:
        self.env_var = env_var

    def resolve(self) -> Optional[str]:
        value = os.environ.get(self.env_var)
        return value if value and value.strip() else None


class KeyringResolver:
    name = "keyring"

    def __init__(self, vault: "CredentialVault") -> None:
        self.vault = vault

    def resolve(self) -> Optional[str]:
        config = self.vault.config
        try:
            value = self.vault.backend.get_password(config.service_name, config.api_key_account)
        except KeyringError as e:
            logger.debug("Keyring lookup failed: %s", e)
            return None
        return value if value and value.strip() else None


class EncryptedFileResolver:
    name = "encrypted file"

    def __init__(self, vault: "CredentialVault") -> None:
        self.vault = vault

    def resolve(self) -> Optional[str]:
        config_file = self.vault.config.config_file
        if not config_file.exists():
            return None

        try:
            data = json.loads(config_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.debug("Unreadable config file %s: %s", config_file, e)
            return None

        blob = data.get(CONFIG_FIELD) if isinstance(data, dict) else None
        if not blob:
            return None

        try:
            return decrypt(blob, self.vault.encryption_key())
        except VaultError as e:
            logger.debug("Could not decrypt %s: %s", config_file, e)
            self.vault.console.print(
                "[yellow]⚠ Config file appears corrupted. Please reconfigure your API key.[/yellow]"
            )
            return None


class CredentialVault:
    """Owns the AI API key: lookup, persistence and encryption at rest."""

    def __init__(self, config: Config = default_config, backend=keyring,
                 console: Optional[Console] = None) -> None:
        """Initialize the vault.

        Args:
            config: Names of the keyring entries, env var and config file.
            backend: Object with keyring's ``get_password``/``set_password``.
            console: Console for operator-facing warnings.
        """
        self.config = config
        self.backend = backend
        self.console = console or default_console

    @property
    def resolvers(self) -> List:
        return [
            EnvironmentResolver(self.config.env_var),
            KeyringResolver(self),
            EncryptedFileResolver(self),
        ]

    def resolve_key(self) -> Optional[str]:
        """Return the first key found, or None. Never raises."""
        for resolver in self.resolvers:
            try:
                secret = resolver.resolve()
            except Exception as e:  # a failing tier falls through to the next
                logger.debug("%s resolver failed: %s", resolver.name, e)
                continue
            if secret:
                logger.debug("API key resolved from %s", resolver.name)
                return secret
        return None

    def persist_key(self, secret: str) -> StorageLocation:
        """Store the key in the keyring, or in the encrypted file as fallback.

        Raises:
            ValidationError: If ``secret`` is empty or whitespace.
            VaultError: If both stores fail.
        """
        if not isinstance(secret, str) or not secret.strip():
            raise ValidationError("API key must be a non-empty string")
        secret = secret.strip()

        try:
            self.backend.set_password(self.config.service_name, self.config.api_key_account, secret)
            return StorageLocation.KEYRING
        except Exception as e:  # any keyring backend failure falls back to the file
            logger.debug("Keyring unavailable, using encrypted file: %s", e)

        try:
            entry = self.seal(secret)
            config_file = self.config.config_file
            config_file.parent.mkdir(parents=True, exist_ok=True)
            config_file.write_text(entry.to_json(), encoding="utf-8")
        except (OSError, VaultError) as e:
            raise VaultError(f"Failed to save API key: {e}") from e
        return StorageLocation.FILE

    def seal(self, secret: str) -> VaultEntry:
        key = self.encryption_key()
        return VaultEntry(encrypt(secret, key), key.key_id)

    def encryption_key(self) -> EncryptionKey:
        """Return the per-user file encryption key, creating it on first use."""
        service, account = self.config.service_name, self.config.encryption_key_account
        try:
            stored = self.backend.get_password(service, account)
            if not stored:
                stored = os.urandom(KEY_LENGTH).hex()
                self.backend.set_password(service, account, stored)
            material = bytes.fromhex(stored)
        except Exception as e:  # includes a malformed stored key
            logger.warning("Keyring unavailable (%s); using a key derived from machine identifiers", e)
            return derive_machine_key()

        if len(material) != KEY_LENGTH:
            logger.warning("Stored encryption key has the wrong length; using a derived key")
            return derive_machine_key()
        return EncryptionKey(material, KeyMode.RANDOM, f"keyring:{account}")
