"""Client protocols for the chat and embedding collaborators."""

from typing import Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict


class LLMMessage(BaseModel):
    """A single role-tagged chat message."""

    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


@runtime_checkable
class LLMClient(Protocol):
    """Anything that turns a list of messages into one text response."""

    async def chat(self, messages: list[LLMMessage]) -> str:
        """Send a chat completion request and return the assistant's text."""
        ...


@runtime_checkable
class EmbeddingClient(Protocol):
    """Anything that maps a text to a fixed-length vector."""

    async def embed(self, text: str) -> list[float]:
        """Return the embedding vector for ``text``."""
        ...


def user_message(content: str) -> list[LLMMessage]:
    """Wrap a prompt as a single user message."""
    return [LLMMessage(role="user", content=content)]
