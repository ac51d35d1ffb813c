"""Tests for the credential vault and its encryption."""

import json
import re
from unittest.mock import MagicMock, patch

import pytest

from gitgenie.exceptions import CorruptedDataError, DecryptionError, ValidationError, VaultError
from gitgenie.vault import (
    CONFIG_FIELD,
    CredentialVault,
    EncryptionKey,
    KeyMode,
    StorageLocation,
    decrypt,
    derive_machine_key,
    encrypt,
)

BLOB_PATTERN = re.compile(r"^[0-9a-f]{32}:[0-9a-f]+$")


@pytest.fixture
def random_key():
    return EncryptionKey(bytes(range(32)), KeyMode.RANDOM, "test")


@pytest.fixture
def vault(config, fake_keyring, record_console):
    return CredentialVault(config, backend=fake_keyring, console=record_console)


@pytest.fixture
def file_vault(config, broken_keyring, record_console):
    """Vault whose keyring is unavailable, so everything goes through the file."""
    return CredentialVault(config, backend=broken_keyring, console=record_console)


class TestEncryption:

    def test_round_trip(self, random_key):
        blob = encrypt("AIza-secret-key", random_key)
        assert BLOB_PATTERN.match(blob)
        assert decrypt(blob, random_key) == "AIza-secret-key"

    def test_fresh_iv_per_call(self, random_key):
        assert encrypt("same", random_key) != encrypt("same", random_key)

    def test_unicode_round_trip(self, random_key):
        assert decrypt(encrypt("clé✨", random_key), random_key) == "clé✨"

    @pytest.mark.parametrize("plaintext", ["", None])
    def test_encrypt_rejects_empty(self, plaintext, random_key):
        with pytest.raises(ValidationError):
            encrypt(plaintext, random_key)

    @pytest.mark.parametrize(
        "blob",
        [
            "",
            "abc",
            "a:b:c",
            "abcd:00112233445566778899aabbccddeeff",
            "00112233445566778899aabbccddeeff:",
            "zz112233445566778899aabbccddeeff:00112233445566778899aabbccddeeff",
            "00112233445566778899aabbccddeeff:0011",
        ],
    )
    def test_malformed_blob_is_corrupted(self, blob, random_key):
        with pytest.raises(CorruptedDataError) as excinfo:
            decrypt(blob, random_key)
        assert not isinstance(excinfo.value, DecryptionError)

    def test_wrong_key_is_decryption_error(self, random_key):
        other = EncryptionKey(bytes(32), KeyMode.RANDOM, "other")
        blob = encrypt("AIza-secret-key", random_key)
        with pytest.raises(DecryptionError):
            decrypt(blob, other)

    def test_derived_key_is_stable(self):
        first, second = derive_machine_key(), derive_machine_key()
        assert first.material == second.material
        assert len(first.material) == 32
        assert first.mode is KeyMode.DERIVED
        assert first.is_degraded

    def test_derived_key_survives_missing_username(self):
        with patch("gitgenie.vault.getpass.getuser", side_effect=OSError("no user")):
            assert len(derive_machine_key().material) == 32


class TestEncryptionKey:

    def test_random_key_created_once(self, vault, fake_keyring, config):
        first = vault.encryption_key()
        second = vault.encryption_key()
        assert first.mode is KeyMode.RANDOM
        assert not first.is_degraded
        assert first.material == second.material
        stored = fake_keyring.store[(config.service_name, config.encryption_key_account)]
        assert bytes.fromhex(stored) == first.material

    def test_degraded_when_keyring_unavailable(self, file_vault):
        key = file_vault.encryption_key()
        assert key.mode is KeyMode.DERIVED
        assert key.material == derive_machine_key().material

    @pytest.mark.parametrize("stored", ["not-hex", "abcd"])
    def test_degraded_when_stored_key_unusable(self, vault, fake_keyring, config, stored):
        fake_keyring.store[(config.service_name, config.encryption_key_account)] = stored
        assert vault.encryption_key().mode is KeyMode.DERIVED


class TestPersistKey:

    def test_keyring_preferred(self, vault, fake_keyring, config):
        assert vault.persist_key("  AIza-secret  ") is StorageLocation.KEYRING
        assert fake_keyring.store[(config.service_name, config.api_key_account)] == "AIza-secret"
        assert not config.config_file.exists()

    def test_file_fallback_creates_directory(self, file_vault, config):
        assert not config.config_dir.exists()
        assert file_vault.persist_key("AIza-secret") is StorageLocation.FILE

        data = json.loads(config.config_file.read_text(encoding="utf-8"))
        assert list(data) == [CONFIG_FIELD]
        assert BLOB_PATTERN.match(data[CONFIG_FIELD])
        assert "AIza-secret" not in config.config_file.read_text(encoding="utf-8")

    @pytest.mark.parametrize("secret", ["", "   ", None])
    def test_rejects_blank_key_without_side_effects(self, config, secret):
        backend = MagicMock()
        vault = CredentialVault(config, backend=backend)
        with pytest.raises(ValidationError, match="API key must be a non-empty string"):
            vault.persist_key(secret)
        backend.set_password.assert_not_called()
        assert not config.config_file.exists()

    def test_backend_runtime_error_falls_back_to_file(self, config, record_console):
        backend = MagicMock()
        backend.set_password.side_effect = RuntimeError("dbus exploded")
        backend.get_password.side_effect = RuntimeError("dbus exploded")
        vault = CredentialVault(config, backend=backend, console=record_console)

        assert vault.persist_key("AIza-secret") is StorageLocation.FILE
        assert config.config_file.exists()
        assert vault.encryption_key().mode is KeyMode.DERIVED
        assert vault.resolve_key() == "AIza-secret"

    def test_file_write_failure_is_vault_error(self, file_vault, config):
        config.config_dir.parent.mkdir(parents=True, exist_ok=True)
        config.config_dir.write_text("not a directory")
        with pytest.raises(VaultError, match="Failed to save API key"):
            file_vault.persist_key("AIza-secret")

    def test_seal_records_key_id(self, vault, config):
        entry = vault.seal("AIza-secret")
        assert entry.encryption_key_id == f"keyring:{config.encryption_key_account}"
        assert json.loads(entry.to_json()) == {CONFIG_FIELD: entry.key_material}


class TestResolveKey:

    def test_nothing_configured(self, vault):
        assert vault.resolve_key() is None

    def test_environment_wins(self, config, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "from-env")
        backend = MagicMock()
        backend.get_password.return_value = "from-keyring"
        vault = CredentialVault(config, backend=backend)
        assert vault.resolve_key() == "from-env"
        backend.get_password.assert_not_called()

    def test_blank_environment_is_ignored(self, vault, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "   ")
        vault.persist_key("from-keyring")
        assert vault.resolve_key() == "from-keyring"

    def test_keyring_round_trip(self, vault):
        vault.persist_key("AIza-secret")
        assert vault.resolve_key() == "AIza-secret"

    def test_file_round_trip(self, file_vault):
        file_vault.persist_key("AIza-secret")
        assert file_vault.resolve_key() == "AIza-secret"

    def test_file_round_trip_with_random_key(self, config, fake_keyring, record_console):
        writer = CredentialVault(config, backend=fake_keyring, console=record_console)
        config.config_dir.mkdir(parents=True)
        config.config_file.write_text(writer.seal("AIza-secret").to_json(), encoding="utf-8")
        assert writer.resolve_key() == "AIza-secret"

    def test_corrupted_file_warns_and_returns_none(self, file_vault, config, record_console):
        config.config_dir.mkdir(parents=True)
        config.config_file.write_text(json.dumps({CONFIG_FIELD: "garbage"}), encoding="utf-8")
        assert file_vault.resolve_key() is None
        assert "Config file appears corrupted" in record_console.file.getvalue()

    def test_unreadable_json_returns_none(self, file_vault, config):
        config.config_dir.mkdir(parents=True)
        config.config_file.write_text("{not json", encoding="utf-8")
        assert file_vault.resolve_key() is None

    def test_unexpected_resolver_error_falls_through(self, config, record_console):
        backend = MagicMock()
        backend.get_password.side_effect = RuntimeError("dbus exploded")
        vault = CredentialVault(config, backend=backend, console=record_console)
        assert vault.resolve_key() is None
