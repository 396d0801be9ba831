"""Chat and embedding collaborators, prompts and response parsing."""

from taskforge.llm.client import EmbeddingClient, LLMClient, LLMMessage
from taskforge.llm.extraction import extract_json_payload, parse_subtasks, parse_task_tree
from taskforge.llm.factory import create_embedding_client, create_llm_client

__all__ = [
    "EmbeddingClient",
    "LLMClient",
    "LLMMessage",
    "create_embedding_client",
    "create_llm_client",
    "extract_json_payload",
    "parse_subtasks",
    "parse_task_tree",
]
