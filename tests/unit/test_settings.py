"""
Unit tests for settings loading and conversion.

Settings are loaded from the environment; conversion into the
immutable StorageAccountConfig is where configuration errors surface.
"""

import pytest

from blobgate.config.settings import Settings, get_settings
from blobgate.core.models import (
    ConfigurationError,
    ManagedIdentityAuth,
    PublicAccessLevel,
    SharedKeyAuth,
)


def make_settings(**overrides) -> Settings:
    values = dict(
        azure_account="acct",
        azure_account_key="a2V5",
        azure_container_name="assets",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestAuthConversion:
    """Tests for mapping the auth type string to a variant."""

    def test_default_auth_builds_shared_key(self):
        config = make_settings(azure_sas_token="?sv=1&sig=x").to_account_config()
        assert config.auth == SharedKeyAuth(account_key="a2V5", sas_token="?sv=1&sig=x")

    def test_empty_sas_token_is_none(self):
        config = make_settings().to_account_config()
        assert config.auth.sas_token is None

    def test_msi_keeps_account_key_for_signing_only(self):
        config = make_settings(azure_auth_type="msi").to_account_config()
        assert config.auth == ManagedIdentityAuth(client_id=None, signing_key="a2V5")

    def test_msi_without_account_key_cannot_sign(self):
        config = make_settings(azure_auth_type="msi", azure_account_key="").to_account_config()
        assert config.auth.signing_key is None

    def test_msi_with_client_id(self):
        config = make_settings(azure_auth_type="msi", azure_client_id="1111-2222").to_account_config()
        assert config.auth == ManagedIdentityAuth(client_id="1111-2222", signing_key="a2V5")

    def test_msi_does_not_require_account_key(self):
        settings = make_settings(azure_auth_type="msi", azure_account_key="")
        assert settings.validate_required_fields() == []

    def test_unknown_auth_type_is_rejected(self):
        with pytest.raises(ConfigurationError, match="Unknown auth type"):
            make_settings(azure_auth_type="oauth").to_account_config()

    def test_default_auth_requires_account_key(self):
        settings = make_settings(azure_account_key="")
        assert settings.validate_required_fields() == ["AZURE_ACCOUNT_KEY"]
        with pytest.raises(ConfigurationError, match="AZURE_ACCOUNT_KEY"):
            settings.to_account_config()

    def test_account_and_container_required(self):
        settings = make_settings(azure_account="", azure_container_name="")
        assert settings.validate_required_fields() == ["AZURE_ACCOUNT", "AZURE_CONTAINER_NAME"]


class TestStorageOptions:
    """Tests for the remaining storage options."""

    def test_defaults(self):
        config = make_settings().to_account_config()

        assert config.endpoint == "https://acct.blob.core.windows.net"
        assert config.default_path == "assets"
        assert config.cdn_base_url is None
        assert config.default_cache_control is None
        assert not config.create_container_if_missing
        assert config.public_access_level is PublicAccessLevel.NONE
        assert not config.strip_container_name
        assert config.transfer.chunk_size_bytes == 4 * 1024 * 1024
        assert config.transfer.max_concurrent_chunks == 20

    def test_values_are_trimmed(self):
        config = make_settings(
            azure_account="  acct  ",
            azure_container_name=" assets ",
            azure_default_path=" uploads ",
        ).to_account_config()

        assert config.account == "acct"
        assert config.container_name == "assets"
        assert config.default_path == "uploads"

    def test_unknown_public_access_falls_back_to_private(self):
        config = make_settings(azure_public_access_type="everyone").to_account_config()
        assert config.public_access_level is PublicAccessLevel.NONE

    def test_invalid_transfer_tuning_is_rejected(self):
        with pytest.raises(ConfigurationError, match="chunk size"):
            make_settings(azure_upload_buffer_size=0).to_account_config()


class TestEnvironmentLoading:
    """Tests for reading settings from environment variables."""

    def test_settings_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("AZURE_AUTH_TYPE", "msi")
        monkeypatch.setenv("AZURE_ACCOUNT", "envacct")
        monkeypatch.setenv("AZURE_CONTAINER_NAME", "media")
        monkeypatch.setenv("AZURE_CREATE_CONTAINER_IF_NOT_EXIST", "true")
        monkeypatch.setenv("AZURE_PUBLIC_ACCESS_TYPE", "blob")
        monkeypatch.setenv("AZURE_REMOVE_CN", "true")
        monkeypatch.setenv("AZURE_CDN_BASE_URL", "https://cdn.example.com")

        get_settings.cache_clear()
        try:
            config = get_settings().to_account_config()
        finally:
            get_settings.cache_clear()

        assert config.account == "envacct"
        assert config.container_name == "media"
        assert config.create_container_if_missing
        assert config.public_access_level is PublicAccessLevel.BLOB
        assert config.strip_container_name
        assert config.cdn_base_url == "https://cdn.example.com"
        assert isinstance(config.auth, ManagedIdentityAuth)

    def test_api_keys_list(self):
        settings = make_settings(api_keys=" key-a, ,key-b ")
        assert settings.api_keys_list == ["key-a", "key-b"]
