"""Settings validation tests.

Usage:
    pytest tests/test_config.py -v
"""

import pytest

from agent_api.core.config import Settings, validate_settings
from agent_api.core.enums import NotificationChannel


def _settings(**values) -> Settings:
    return Settings(_env_file=None, **values)


class TestDefaults:
    def test_booking_defaults(self):
        settings = _settings()
        assert settings.booking_columns[5:8] == ["fecha", "hora", "servicio"]
        assert settings.long_services == ["cita"]
        assert settings.notification_channel == NotificationChannel.NONE
        assert settings.rate_limit == "100 per 15 minutes"
        assert settings.sheets_configured is False

    def test_default_settings_are_valid(self):
        validate_settings(_settings())

    def test_cors_origins(self):
        assert _settings(ALLOWED_ORIGINS=["https://a.com", "https://b.com"]).cors_origins == [
            "https://a.com",
            "https://b.com",
        ]


class TestValidateSettings:
    def test_booking_columns_need_date_time_service(self):
        with pytest.raises(ValueError, match="BOOKING_COLUMNS must include 'hora'"):
            validate_settings(_settings(BOOKING_COLUMNS=["nombre", "fecha", "servicio"]))

    def test_smtp_needs_addresses(self):
        with pytest.raises(ValueError) as exc_info:
            validate_settings(_settings(NOTIFICATION_CHANNEL="smtp"))
        assert "EMAIL_FROM" in str(exc_info.value)
        assert "EMAIL_TO" in str(exc_info.value)

    def test_smtp_complete(self):
        validate_settings(
            _settings(NOTIFICATION_CHANNEL="smtp_template", EMAIL_FROM="a@x.com", EMAIL_TO="b@x.com")
        )

    def test_whatsapp_needs_credentials(self):
        with pytest.raises(ValueError) as exc_info:
            validate_settings(_settings(NOTIFICATION_CHANNEL="whatsapp", WHATSAPP_TOKEN="t"))
        assert "WHATSAPP_PHONE_NUMBER_ID" in str(exc_info.value)
        assert "WHATSAPP_NOTIFY_TO" in str(exc_info.value)
        assert "WHATSAPP_TOKEN" not in str(exc_info.value)
