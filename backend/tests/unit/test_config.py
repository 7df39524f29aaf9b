"""Unit tests for application settings."""

import os

import pytest
from pydantic import ValidationError

os.environ.setdefault("APP_SECRET_KEY", "test-secret-key-for-encryption-32chars")

from finsight.config import Settings, get_settings


class TestSettingsDefaults:
    def test_chat_engine_defaults(self):
        settings = Settings(app_secret_key="x" * 32)

        assert settings.chat_max_steps == 10
        assert settings.chat_request_timeout_seconds == 60.0
        assert settings.chat_stream_close_delay_seconds == 0.0
        assert settings.chat_free_message_limit == 3
        assert settings.sse_ping_seconds == 15
        assert settings.default_model_id == "gpt-4o-mini"

    def test_cors_origins_comma_separated(self):
        settings = Settings(app_secret_key="x" * 32, cors_origins="https://a.test, https://b.test")

        assert settings.cors_origins == ["https://a.test", "https://b.test"]

    def test_cors_origins_json_list(self):
        settings = Settings(app_secret_key="x" * 32, cors_origins='["https://a.test"]')

        assert settings.cors_origins == ["https://a.test"]

    def test_max_steps_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(app_secret_key="x" * 32, chat_max_steps=0)


class TestProductionValidation:
    def _production(self, **overrides):
        values = {
            "app_env": "production",
            "app_secret_key": "p" * 40,
            "database_url": "postgresql+asyncpg://prod:prod@db:5432/finsight",
            "cors_origins": "https://finsight.example",
        }
        values.update(overrides)
        return Settings(**values)

    def test_valid_production_settings(self):
        settings = self._production()

        assert settings.is_production

    def test_dev_auth_rejected_in_production(self):
        with pytest.raises(ValidationError, match="AUTH_PROVIDER=dev"):
            self._production(auth_provider="dev")

    def test_short_secret_rejected_in_production(self):
        with pytest.raises(ValidationError, match="APP_SECRET_KEY"):
            self._production(app_secret_key="short")

    def test_default_database_rejected_in_production(self):
        with pytest.raises(ValidationError, match="DATABASE_URL"):
            self._production(database_url=Settings.model_fields["database_url"].default)


class TestSecretFiles:
    def test_secret_loaded_from_file(self, tmp_path, monkeypatch):
        secret_file = tmp_path / "openai_key"
        secret_file.write_text("sk-from-file\n", encoding="utf-8")
        monkeypatch.setenv("OPENAI_API_KEY_FILE", str(secret_file))
        monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")

        get_settings.cache_clear()
        try:
            assert get_settings().openai_api_key == "sk-from-file"
        finally:
            get_settings.cache_clear()
