import functools

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_settings_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', env_ignore_empty=True,
                                      extra='ignore')


class DatabaseSettings(BaseSettings):
    DATABASE_URL: str = Field(...)
    POOL_SIZE: int = Field(default=5)
    POOL_TIMEOUT: int = Field(default=30)

    model_config = _settings_config

    @field_validator('DATABASE_URL')
    @classmethod
    def normalise_scheme(cls, value: str) -> str:
        """hosted postgres providers hand out postgres:// urls which SQLAlchemy no longer accepts"""
        if value.startswith('postgres://'):
            return f"postgresql://{value[len('postgres://'):]}"
        return value


class EmailSettings(BaseSettings):
    """
        Primary provider is SendGrid, Secondary is a plain SMTP relay,
        a provider is only used when every value it needs is present
    """
    SENDGRID_API_KEY: str | None = Field(default=None)
    SENDGRID_FROM: str = Field(default="noreply@contact-form.local")
    SMTP_HOST: str | None = Field(default=None)
    SMTP_PORT: int = Field(default=587)
    SMTP_SECURE: bool = Field(default=False)
    SMTP_USER: str | None = Field(default=None)
    SMTP_PASS: str | None = Field(default=None)
    SMTP_FROM: str | None = Field(default=None)
    SMTP_TIMEOUT: float = Field(default=30.0)
    SEND_TO: str | None = Field(default=None)

    model_config = _settings_config

    @property
    def sendgrid_configured(self) -> bool:
        return bool(self.SENDGRID_API_KEY and self.SEND_TO)

    @property
    def smtp_configured(self) -> bool:
        return bool(self.SMTP_HOST and self.SMTP_USER and self.SMTP_PASS and self.SEND_TO)

    @property
    def is_configured(self) -> bool:
        return self.sendgrid_configured or self.smtp_configured

    @property
    def smtp_sender(self) -> str | None:
        return self.SMTP_FROM or self.SMTP_USER

    def configured_flags(self) -> dict[str, bool]:
        """configuration state only, credential values are never exposed"""
        return {
            'sendgrid_configured': self.sendgrid_configured,
            'smtp_configured': self.smtp_configured,
            'send_to': bool(self.SEND_TO)}


class LoggingSettings(BaseSettings):
    LOG_FILENAME: str | None = Field(default=None)
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FERNET_KEY: str | None = Field(default=None)

    model_config = _settings_config


class Settings(BaseSettings):
    ENVIRONMENT: str = Field(default="production")
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=4000)
    DATABASE_SETTINGS: DatabaseSettings = Field(default_factory=DatabaseSettings)
    EMAIL_SETTINGS: EmailSettings = Field(default_factory=EmailSettings)

    model_config = _settings_config

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.casefold() == "production"


@functools.lru_cache
def config_instance() -> Settings:
    return Settings()


@functools.lru_cache
def logging_settings() -> LoggingSettings:
    # loggers are created at import time, before the database url is known to be valid
    return LoggingSettings()
