"""Provider adapters for chat and embedding services.

Anthropic goes through its own SDK. OpenAI, Gemini, Ollama and custom
gateways all speak the OpenAI wire protocol, so they share the OpenAI SDK with
a different base URL. Calls are fail-fast: SDK errors propagate unchanged.
"""

from typing import Any

from anthropic import AsyncAnthropic
from loguru import logger
from openai import AsyncOpenAI

from taskforge.core.errors import MalformedResponseError
from taskforge.llm.client import LLMMessage


class AnthropicLLMClient:
    """
    Chat client backed by the Anthropic Messages API.

    System messages are lifted into the ``system`` parameter since the
    Messages API does not accept them inline.

    Example:
        >>> client = AnthropicLLMClient(api_key="sk-ant-...", model="claude-sonnet-4-20250514")
        >>> text = await client.chat([LLMMessage(role="user", content="Hi")])
    """

    def __init__(self, api_key: str, model: str, max_tokens: int = 4096) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self._api_key = api_key
        self._client: Any = None

    def _get_client(self) -> AsyncAnthropic:
        if self._client is None:
            self._client = AsyncAnthropic(api_key=self._api_key)
        return self._client

    async def chat(self, messages: list[LLMMessage]) -> str:
        system = "\n\n".join(m.content for m in messages if m.role == "system")
        conversation = [
            {"role": m.role, "content": m.content}
            for m in messages
            if m.role != "system"
        ]

        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": conversation,
        }
        if system:
            kwargs["system"] = system

        logger.debug(f"Anthropic chat request ({self.model}, {len(conversation)} messages)")
        response = await self._get_client().messages.create(**kwargs)

        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )


class OpenAILLMClient:
    """
    Chat client for any OpenAI-compatible chat completions endpoint.

    Used for the openai, gemini, ollama and custom providers.
    """

    def __init__(self, api_key: str, model: str, base_url: str | None = None) -> None:
        self.model = model
        self.base_url = base_url
        self._api_key = api_key
        self._client: Any = None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, base_url=self.base_url)
        return self._client

    async def chat(self, messages: list[LLMMessage]) -> str:
        logger.debug(f"OpenAI-compatible chat request ({self.model}, {len(messages)} messages)")
        response = await self._get_client().chat.completions.create(
            model=self.model,
            messages=[{"role": m.role, "content": m.content} for m in messages],
        )

        if not response.choices:
            raise MalformedResponseError("Chat completion returned no choices")
        return response.choices[0].message.content or ""


class OpenAIEmbeddingClient:
    """Embedding client for any OpenAI-compatible embeddings endpoint."""

    def __init__(self, api_key: str, model: str, base_url: str | None = None) -> None:
        self.model = model
        self.base_url = base_url
        self._api_key = api_key
        self._client: Any = None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, base_url=self.base_url)
        return self._client

    async def embed(self, text: str) -> list[float]:
        response = await self._get_client().embeddings.create(model=self.model, input=text)
        if not response.data:
            raise MalformedResponseError("Embedding response contained no vectors")
        return list(response.data[0].embedding)
