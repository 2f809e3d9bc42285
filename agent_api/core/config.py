"""Application configuration with environment variable validation."""

from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from agent_api.core.enums import NotificationChannel

# Resolve .env relative to the project root (2 levels up from this file)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"

DEFAULT_BOOKING_COLUMNS = [
    "nombre",
    "telefono",
    "industria",
    "solicitudes",
    "empleados",
    "fecha",
    "hora",
    "servicio",
    "notas",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # Price list spreadsheet
    price_list_path: str = Field(
        default="datafiles/lista_precios.xlsx", validation_alias="PRICE_LIST_PATH"
    )
    price_list_sheet: str = Field(default="", validation_alias="PRICE_LIST_SHEET")
    column_code: str = Field(default="CODIGO", validation_alias="COLUMN_CODE")
    column_name: str = Field(default="PRODUCTO", validation_alias="COLUMN_NAME")
    column_unit: str = Field(default="UM", validation_alias="COLUMN_UNIT")
    column_unit_cost: str = Field(default="COSTO", validation_alias="COLUMN_UNIT_COST")
    column_stock: str = Field(default="STOCK", validation_alias="COLUMN_STOCK")
    column_cost_with_tax: str = Field(
        default="COSTO_IVA", validation_alias="COLUMN_COST_WITH_TAX"
    )
    column_price: str = Field(default="PRECIO", validation_alias="COLUMN_PRICE")

    # Google Sheets (service account)
    google_project_id: str = Field(default="", validation_alias="GOOGLE_PROJECT_ID")
    google_private_key_id: str = Field(
        default="", validation_alias="GOOGLE_PRIVATE_KEY_ID"
    )
    google_private_key: str = Field(default="", validation_alias="GOOGLE_PRIVATE_KEY")
    google_client_email: str = Field(default="", validation_alias="GOOGLE_CLIENT_EMAIL")
    google_client_id: str = Field(default="", validation_alias="GOOGLE_CLIENT_ID")
    google_client_x509_cert_url: str = Field(
        default="", validation_alias="GOOGLE_CLIENT_X509_CERT_URL"
    )
    sheet_id_citas: str = Field(default="", validation_alias="SHEET_ID_CITAS")
    sheet_name_citas: str = Field(default="Citas", validation_alias="SHEET_NAME_CITAS")
    booking_columns: list[str] = Field(
        default=DEFAULT_BOOKING_COLUMNS, validation_alias="BOOKING_COLUMNS"
    )

    # Scheduling rules
    long_services: list[str] = Field(default=["cita"], validation_alias="LONG_SERVICES")
    long_service_minutes: int = Field(default=60, validation_alias="LONG_SERVICE_MINUTES")
    default_service_minutes: int = Field(
        default=30, validation_alias="DEFAULT_SERVICE_MINUTES"
    )
    business_day_start: str = Field(default="09:00", validation_alias="BUSINESS_DAY_START")
    business_day_end: str = Field(default="18:00", validation_alias="BUSINESS_DAY_END")
    slot_step_minutes: int = Field(default=30, validation_alias="SLOT_STEP_MINUTES")
    max_suggestions: int = Field(default=5, validation_alias="MAX_SUGGESTIONS")

    # Notifications
    notification_channel: NotificationChannel = Field(
        default=NotificationChannel.NONE, validation_alias="NOTIFICATION_CHANNEL"
    )
    smtp_host: str = Field(default="smtp.gmail.com", validation_alias="SMTP_HOST")
    smtp_port: int = Field(default=587, validation_alias="SMTP_PORT")
    smtp_use_tls: bool = Field(default=True, validation_alias="SMTP_USE_TLS")
    smtp_user: str = Field(default="", validation_alias="SMTP_USER")
    smtp_password: str = Field(default="", validation_alias="SMTP_PASSWORD")
    email_from: str = Field(default="", validation_alias="EMAIL_FROM")
    email_to: str = Field(default="", validation_alias="EMAIL_TO")
    business_name: str = Field(default="", validation_alias="BUSINESS_NAME")
    whatsapp_api_base_url: str = Field(
        default="https://graph.facebook.com/v19.0",
        validation_alias="WHATSAPP_API_BASE_URL",
    )
    whatsapp_token: str = Field(default="", validation_alias="WHATSAPP_TOKEN")
    whatsapp_phone_number_id: str = Field(
        default="", validation_alias="WHATSAPP_PHONE_NUMBER_ID"
    )
    whatsapp_template_name: str = Field(
        default="confirmacion_cita", validation_alias="WHATSAPP_TEMPLATE_NAME"
    )
    whatsapp_language: str = Field(default="es_MX", validation_alias="WHATSAPP_LANGUAGE")
    whatsapp_notify_to: str = Field(default="", validation_alias="WHATSAPP_NOTIFY_TO")

    # API settings
    allowed_origins: list[str] = Field(default=["*"], validation_alias="ALLOWED_ORIGINS")
    rate_limit_enabled: bool = Field(default=True, validation_alias="RATE_LIMIT_ENABLED")
    rate_limit: str = Field(default="100 per 15 minutes", validation_alias="RATE_LIMIT")

    @property
    def cors_origins(self) -> list[str]:
        """Parse ALLOWED_ORIGINS from comma-separated string or return list."""
        if isinstance(self.allowed_origins, str):
            return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        return self.allowed_origins

    @property
    def google_credentials_info(self) -> dict[str, Any]:
        """Service account info in the layout google-auth expects."""
        return {
            "type": "service_account",
            "project_id": self.google_project_id,
            "private_key_id": self.google_private_key_id,
            # Keys pasted into env files carry literal "\n" sequences
            "private_key": self.google_private_key.replace("\\n", "\n"),
            "client_email": self.google_client_email,
            "client_id": self.google_client_id,
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
            "client_x509_cert_url": self.google_client_x509_cert_url,
            "universe_domain": "googleapis.com",
        }

    @property
    def sheets_configured(self) -> bool:
        return bool(
            self.sheet_id_citas and self.google_private_key and self.google_client_email
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


def validate_settings(settings: Settings | None = None) -> None:
    """Validate that the selected notification channel has what it needs."""
    settings = settings or get_settings()
    errors = []

    for field_name in ("fecha", "hora", "servicio"):
        if field_name not in settings.booking_columns:
            errors.append(f"BOOKING_COLUMNS must include '{field_name}'")

    channel = settings.notification_channel
    if channel in (NotificationChannel.SMTP, NotificationChannel.SMTP_TEMPLATE):
        if not settings.smtp_host:
            errors.append("SMTP_HOST is required for email notifications")
        if not settings.email_from:
            errors.append("EMAIL_FROM is required for email notifications")
        if not settings.email_to:
            errors.append("EMAIL_TO is required for email notifications")
    elif channel == NotificationChannel.WHATSAPP:
        if not settings.whatsapp_token:
            errors.append("WHATSAPP_TOKEN is required for WhatsApp notifications")
        if not settings.whatsapp_phone_number_id:
            errors.append("WHATSAPP_PHONE_NUMBER_ID is required for WhatsApp notifications")
        if not settings.whatsapp_notify_to:
            errors.append("WHATSAPP_NOTIFY_TO is required for WhatsApp notifications")

    if errors:
        raise ValueError(f"Configuration errors: {'; '.join(errors)}")
