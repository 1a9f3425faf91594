"""
Configuration Management for SplitSync

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Each external collaborator (storage backend, Gemini) gets its own
settings section so a missing API key only disables that feature
instead of stopping the whole app.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Where the ledger vault is persisted."""

    model_config = SettingsConfigDict(
        env_prefix="SPLITSYNC_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="json_file",
        pattern="^(memory|json_file|google_sheets)$",
        description="Storage backend: memory, json_file or google_sheets"
    )
    data_dir: str = Field(
        default=".splitsync",
        description="Directory for the JSON vault file"
    )
    storage_key: str = Field(
        default="pentsplit_vault",
        min_length=1,
        description="Key the whole Group collection is stored under"
    )

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser()


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    vault_sheet_name: str = Field(
        default="Vault",
        description="Name of the sheet holding the ledger blob"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration (spending insights)."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-2.0-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Ledger behaviour
    settled_epsilon: float = Field(
        default=0.01,
        gt=0.0,
        le=1.0,
        description="Net positions closer to zero than this count as settled"
    )
    default_group_name: str = Field(
        default="Main Squad",
        min_length=1,
        description="Name of the Group created on first run or after a reset"
    )

    # Insights
    insight_window: int = Field(
        default=50,
        ge=1,
        le=500,
        description="How many of the most recent expenses are sent for insights"
    )

    # Display
    currency_code: str = Field(
        default="INR",
        description="ISO currency code used in reports and prompts"
    )
    currency_symbol: str = Field(
        default="₹",
        description="Symbol used when formatting amounts"
    )

    def format_currency(self, value: float) -> str:
        """Format an amount for display (2 decimal places, grouped thousands)."""
        return f"{self.currency_symbol}{value:,.2f}"


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are built on access so a partially configured
    # environment still loads.

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for every section that failed.
    Google Sheets is only checked when it is the selected backend.
    """
    results = {}

    settings = get_settings()

    sections = ["storage", "gemini", "app"]
    try:
        if settings.storage.backend == "google_sheets":
            sections.insert(1, "google_sheets")
    except Exception:
        pass

    for name in sections:
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
