from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Read env from container + optionally from files
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.docker"),
        extra="ignore",
        case_sensitive=False,
    )

    # App
    ENVIRONMENT: str = Field(default="local", validation_alias=AliasChoices("ENVIRONMENT", "environment"))
    APP_NAME: str = Field(default="gst_reporting", validation_alias=AliasChoices("APP_NAME", "app_name"))
    LOG_LEVEL: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))
    DEBUG: bool = Field(default=False, validation_alias=AliasChoices("DEBUG", "debug"))

    # Infrastructure
    DATABASE_URL: str = Field(
        default="postgresql+asyncpg://postgres:postgres@db:5432/gst_reporting",
        validation_alias=AliasChoices("DATABASE_URL", "database_url"),
    )

    # Business rules
    OVERDUE_AFTER_DAYS: int = Field(default=15, validation_alias=AliasChoices("OVERDUE_AFTER_DAYS", "overdue_after_days"))
    DEADLINE_WARNING_DAYS: int = Field(default=5, validation_alias=AliasChoices("DEADLINE_WARNING_DAYS", "deadline_warning_days"))
    HSN_DEFAULT_UQC: str = Field(default="NOS", validation_alias=AliasChoices("HSN_DEFAULT_UQC", "hsn_default_uqc"))
    B2CL_THRESHOLD: int = Field(default=250000, validation_alias=AliasChoices("B2CL_THRESHOLD", "b2cl_threshold"))
    DEFAULT_INVOICE_PREFIX: str = Field(
        default="INV/",
        validation_alias=AliasChoices("DEFAULT_INVOICE_PREFIX", "default_invoice_prefix"),
    )


settings = Settings()
