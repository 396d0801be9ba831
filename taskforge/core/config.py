"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from taskforge.core.errors import ConfigurationError

LLMProvider = Literal["anthropic", "openai", "gemini", "ollama", "custom"]
EmbeddingProvider = Literal["openai", "gemini", "ollama"]

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    # Provider selection
    llm_provider: LLMProvider = Field(
        default="anthropic",
        description="Chat completion provider",
    )
    embedding_provider: EmbeddingProvider = Field(
        default="openai",
        description="Embedding provider",
    )

    # Anthropic API
    anthropic_api_key: SecretStr | None = Field(
        default=None,
        description="Anthropic API key for Claude access",
    )
    anthropic_model: str = Field(default="claude-sonnet-4-20250514")

    # OpenAI API
    openai_api_key: SecretStr | None = Field(default=None)
    openai_base_url: str | None = Field(
        default=None,
        description="Override for OpenAI-compatible gateways",
    )
    openai_model: str = Field(default="gpt-4o-mini")

    # Gemini (OpenAI-compatible endpoint)
    gemini_api_key: SecretStr | None = Field(default=None)
    gemini_model: str = Field(default="gemini-2.0-flash")

    # Ollama
    ollama_base_url: str = Field(default=DEFAULT_OLLAMA_BASE_URL)
    ollama_model: str = Field(default="llama3.2")

    # Any other OpenAI-compatible service
    custom_api_key: SecretStr | None = Field(default=None)
    custom_base_url: str | None = Field(default=None)
    custom_model: str | None = Field(default=None)

    # Embeddings
    embedding_model: str | None = Field(
        default=None,
        description="Embedding model (defaults depend on the provider)",
    )

    # TaskForge Configuration
    taskforge_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    taskforge_debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    taskforge_max_iterations: int = Field(
        default=5,
        ge=1,
        description="Default refinement budget for optimization runs",
    )
    taskforge_target_tdq: float = Field(
        default=0.75,
        ge=0.0,
        le=1.0,
        description="Default TDQ score at which optimization stops",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings instance loaded from environment.

    Example:
        >>> settings = get_settings()
        >>> settings.taskforge_max_iterations
        5
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()


# =============================================================================
# RESOLVED PROVIDER CONFIGURATION
# =============================================================================


class LLMConfig(BaseModel):
    """Everything needed to build a chat client."""

    model_config = ConfigDict(frozen=True)

    provider: LLMProvider
    api_key: SecretStr = SecretStr("")
    base_url: str | None = None
    model: str


class EmbeddingConfig(BaseModel):
    """Everything needed to build an embedding client."""

    model_config = ConfigDict(frozen=True)

    provider: EmbeddingProvider
    api_key: SecretStr = SecretStr("")
    base_url: str | None = None
    model: str


def _require(value: SecretStr | str | None, env_var: str) -> SecretStr:
    if value is None:
        raise ConfigurationError(f"Environment variable {env_var} is required but not set")
    secret = value if isinstance(value, SecretStr) else SecretStr(value)
    if not secret.get_secret_value():
        raise ConfigurationError(f"Environment variable {env_var} is required but not set")
    return secret


def _ollama_v1(base_url: str) -> str:
    return base_url.rstrip("/") + "/v1"


def get_llm_config(settings: Settings | None = None) -> LLMConfig:
    """Resolve the chat provider configuration.

    Args:
        settings: Optional settings override. Uses cached settings if not provided.

    Returns:
        LLMConfig for the selected provider.

    Raises:
        ConfigurationError: If a variable the provider needs is not set.
    """
    settings = settings or get_settings()
    provider = settings.llm_provider

    if provider == "anthropic":
        return LLMConfig(
            provider=provider,
            api_key=_require(settings.anthropic_api_key, "ANTHROPIC_API_KEY"),
            model=settings.anthropic_model,
        )
    if provider == "openai":
        return LLMConfig(
            provider=provider,
            api_key=_require(settings.openai_api_key, "OPENAI_API_KEY"),
            base_url=settings.openai_base_url,
            model=settings.openai_model,
        )
    if provider == "gemini":
        return LLMConfig(
            provider=provider,
            api_key=_require(settings.gemini_api_key, "GEMINI_API_KEY"),
            base_url=GEMINI_OPENAI_BASE_URL,
            model=settings.gemini_model,
        )
    if provider == "ollama":
        # Ollama needs no key, but the OpenAI SDK refuses an empty one
        return LLMConfig(
            provider=provider,
            api_key=SecretStr("ollama"),
            base_url=_ollama_v1(settings.ollama_base_url),
            model=settings.ollama_model,
        )
    if provider == "custom":
        return LLMConfig(
            provider=provider,
            api_key=_require(settings.custom_api_key, "CUSTOM_API_KEY"),
            base_url=_require(settings.custom_base_url, "CUSTOM_BASE_URL").get_secret_value(),
            model=_require(settings.custom_model, "CUSTOM_MODEL").get_secret_value(),
        )

    raise ConfigurationError(f"Unknown LLM provider: {provider}")


def get_embedding_config(settings: Settings | None = None) -> EmbeddingConfig:
    """Resolve the embedding provider configuration.

    Args:
        settings: Optional settings override. Uses cached settings if not provided.

    Returns:
        EmbeddingConfig for the selected provider.

    Raises:
        ConfigurationError: If a variable the provider needs is not set.
    """
    settings = settings or get_settings()
    provider = settings.embedding_provider

    if provider == "openai":
        return EmbeddingConfig(
            provider=provider,
            api_key=_require(settings.openai_api_key, "OPENAI_API_KEY"),
            base_url=settings.openai_base_url,
            model=settings.embedding_model or "text-embedding-3-small",
        )
    if provider == "gemini":
        return EmbeddingConfig(
            provider=provider,
            api_key=_require(settings.gemini_api_key, "GEMINI_API_KEY"),
            base_url=GEMINI_OPENAI_BASE_URL,
            model=settings.embedding_model or "text-embedding-004",
        )
    if provider == "ollama":
        return EmbeddingConfig(
            provider=provider,
            api_key=SecretStr("ollama"),
            base_url=_ollama_v1(settings.ollama_base_url),
            model=settings.embedding_model or "nomic-embed-text",
        )

    raise ConfigurationError(f"Unknown embedding provider: {provider}")
