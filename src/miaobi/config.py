"""Configuration management for Miaobi."""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Provider(str, Enum):
    """Supported AI providers."""

    GEMINI = "gemini"
    OPENAI = "openai"


DEFAULT_MODELS = {
    Provider.GEMINI: "gemini-2.5-flash",
    Provider.OPENAI: "gpt-4o-mini",
}


class AISettings(BaseModel):
    """Provider configuration for one analysis request.

    This is the explicit configuration object handed to the analysis
    client. Callers build it (usually from ``Settings.default_ai_settings``
    or the persisted settings file); the client never reads the
    environment itself.
    """

    provider: Provider = Provider.GEMINI
    api_key: str = ""
    model: str = ""
    base_url: str = ""

    @field_validator("api_key", "model", "base_url", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @property
    def resolved_model(self) -> str:
        """Model name, falling back to the provider default when blank."""
        return self.model.strip() or DEFAULT_MODELS[self.provider]


class Settings(BaseSettings):
    """Application configuration via environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # AI provider defaults
    provider: Provider = Field(default=Provider.GEMINI, alias="MIAOBI_PROVIDER")
    model: Optional[str] = Field(default=None, alias="MIAOBI_MODEL")
    base_url: str = Field(default="", alias="MIAOBI_BASE_URL")

    # API keys; API_KEY is the generic fallback used for either provider
    api_key: Optional[str] = Field(default=None, alias="API_KEY")
    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")

    # Persisted provider settings
    settings_path: Path = Field(
        default=Path.home() / ".miaobi" / "settings.json",
        alias="MIAOBI_SETTINGS_PATH",
    )

    # Word export
    image_max_width: int = Field(default=550, alias="MIAOBI_IMAGE_MAX_WIDTH", gt=0)
    image_fetch_timeout: Optional[float] = Field(
        default=None,
        alias="MIAOBI_IMAGE_FETCH_TIMEOUT",
    )
    image_concurrency: int = Field(default=8, alias="MIAOBI_IMAGE_CONCURRENCY", gt=0)

    # Logic-structure tree
    structure_max_depth: int = Field(
        default=8,
        alias="MIAOBI_STRUCTURE_MAX_DEPTH",
        gt=0,
    )

    def key_for(self, provider: Provider) -> str:
        """Return the API key configured for a provider, or an empty string."""
        specific = (
            self.gemini_api_key if provider == Provider.GEMINI else self.openai_api_key
        )
        return specific or self.api_key or ""

    def default_ai_settings(self) -> AISettings:
        """Build the default provider configuration from the environment."""
        return AISettings(
            provider=self.provider,
            api_key=self.key_for(self.provider),
            model=self.model or DEFAULT_MODELS[self.provider],
            base_url=self.base_url,
        )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, creating it if needed."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Load settings from an optional specific .env file."""
    global _settings
    if env_file:
        _settings = Settings(_env_file=env_file)
    else:
        _settings = Settings()
    return _settings
