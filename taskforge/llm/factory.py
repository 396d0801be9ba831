"""Build provider clients from resolved configuration."""

from loguru import logger

from taskforge.core.config import EmbeddingConfig, LLMConfig
from taskforge.core.errors import ConfigurationError
from taskforge.llm.client import EmbeddingClient, LLMClient
from taskforge.llm.providers import (
    AnthropicLLMClient,
    OpenAIEmbeddingClient,
    OpenAILLMClient,
)

_OPENAI_COMPATIBLE = ("openai", "gemini", "ollama", "custom")


def create_llm_client(config: LLMConfig) -> LLMClient:
    """Create a chat client for the configured provider.

    Raises:
        ConfigurationError: If the provider is not supported.
    """
    logger.info(f"Using LLM provider {config.provider} ({config.model})")
    api_key = config.api_key.get_secret_value()

    if config.provider == "anthropic":
        return AnthropicLLMClient(api_key=api_key, model=config.model)
    if config.provider in _OPENAI_COMPATIBLE:
        return OpenAILLMClient(api_key=api_key, model=config.model, base_url=config.base_url)

    raise ConfigurationError(f"Unsupported LLM provider: {config.provider}")


def create_embedding_client(config: EmbeddingConfig) -> EmbeddingClient:
    """Create an embedding client for the configured provider.

    Raises:
        ConfigurationError: If the provider is not supported.
    """
    logger.info(f"Using embedding provider {config.provider} ({config.model})")

    if config.provider in ("openai", "gemini", "ollama"):
        return OpenAIEmbeddingClient(
            api_key=config.api_key.get_secret_value(),
            model=config.model,
            base_url=config.base_url,
        )

    raise ConfigurationError(f"Unsupported embedding provider: {config.provider}")
