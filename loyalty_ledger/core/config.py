from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # SQLite by default; any SQLAlchemy URL works.
    DATABASE_URL: str = "sqlite:///./loyalty_ledger.db"

    # memory | sql
    LEDGER_BACKEND: str = "sql"

    DEFAULT_BUSINESS_NAME: str = "Our Store"

    # Optimistic-concurrency retries for one transaction commit
    LEDGER_MAX_RETRIES: int = 3

    # --- SMS (Twilio) ---
    TWILIO_ACCOUNT_SID: str | None = None
    TWILIO_AUTH_TOKEN: str | None = None
    TWILIO_PHONE_NUMBER: str | None = None
    TWILIO_BASE_URL: str = "https://api.twilio.com"
    SMS_TIMEOUT_SECONDS: float = 15.0

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
