"""Pytest configuration and shared fixtures."""

import os
import re
from collections.abc import Callable, Generator

import pytest
from loguru import logger

from taskforge.core.models import TaskNode
from taskforge.llm.client import LLMMessage

# Set test environment
os.environ.setdefault("ANTHROPIC_API_KEY", "sk-ant-REDACTED")
os.environ.setdefault("OPENAI_API_KEY", "sk-test-key-for-testing")
os.environ.setdefault("TASKFORGE_LOG_LEVEL", "DEBUG")


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================


_TITLE_LINE = re.compile(r"^Title: (.*)$", re.MULTILINE)


class ScriptedLLM:
    """LLM stand-in that answers by prompt kind.

    Effort and rating answers are looked up by the task title found in the
    prompt, falling back to ``default_effort`` / ``default_rating``. Tree
    responses are returned in order: ``generated`` once, then each entry of
    ``refined``.
    """

    def __init__(
        self,
        generated: str = "",
        refined: list[str] | None = None,
        subtasks: str = "[]",
        efforts: dict[str, str] | None = None,
        ratings: dict[str, str] | None = None,
        default_effort: str = "4",
        default_rating: str = "5",
    ) -> None:
        self.generated = generated
        self.refined = list(refined or [])
        self.subtasks = subtasks
        self.efforts = efforts or {}
        self.ratings = ratings or {}
        self.default_effort = default_effort
        self.default_rating = default_rating
        self.calls: list[tuple[str, str]] = []

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.calls]

    def prompts(self, kind: str) -> list[str]:
        return [prompt for k, prompt in self.calls if k == kind]

    async def chat(self, messages: list[LLMMessage]) -> str:
        prompt = messages[-1].content

        if "Your estimate (hours):" in prompt:
            self.calls.append(("effort", prompt))
            return self.efforts.get(_title_of(prompt), self.default_effort)
        if "Your rating:" in prompt:
            self.calls.append(("rating", prompt))
            return self.ratings.get(_title_of(prompt), self.default_rating)
        if "quality issues that need to be fixed" in prompt:
            self.calls.append(("refine", prompt))
            return self.refined.pop(0)
        if "detailed task tree" in prompt:
            self.calls.append(("generate", prompt))
            return self.generated
        if "more detailed subtasks" in prompt:
            self.calls.append(("decompose", prompt))
            return self.subtasks

        raise AssertionError(f"Unexpected prompt: {prompt[:80]}")


def _title_of(prompt: str) -> str:
    match = _TITLE_LINE.search(prompt)
    return match.group(1) if match else ""


class OneHotEmbedder:
    """Embedding stand-in: each distinct text gets its own unit vector.

    Identical texts map to identical vectors, so only exact duplicates look
    redundant.
    """

    def __init__(self, dimensions: int = 64) -> None:
        self.dimensions = dimensions
        self.index: dict[str, int] = {}
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        position = self.index.setdefault(text, len(self.index))
        vector = [0.0] * self.dimensions
        vector[position % self.dimensions] = 1.0
        return vector


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_logging() -> Generator:
    """Drop sinks added by a test so log files do not outlive it."""
    yield
    logger.remove()


@pytest.fixture
def mock_settings() -> Generator:
    """Clear cached settings around a test."""
    from taskforge.core.config import clear_settings_cache

    clear_settings_cache()

    yield

    clear_settings_cache()


@pytest.fixture
def simple_tree() -> TaskNode:
    """Root with two leaves and one dependency between them."""
    return TaskNode(
        id="root",
        title="Launch blog",
        description="Ship a personal blog",
        children=[
            TaskNode(id="db", title="Create posts table", effort_estimate=2),
            TaskNode(id="api", title="Implement posts API", dependencies=["db"]),
        ],
    )


@pytest.fixture
def nested_tree() -> TaskNode:
    """Three-level tree with a cross-branch dependency."""
    return TaskNode(
        id="root",
        title="Build online course platform",
        children=[
            TaskNode(
                id="backend",
                title="Backend",
                children=[
                    TaskNode(id="models", title="Define course and lesson models"),
                    TaskNode(
                        id="endpoints",
                        title="Implement course REST endpoints",
                        dependencies=["models"],
                    ),
                ],
            ),
            TaskNode(
                id="frontend",
                title="Frontend",
                children=[
                    TaskNode(
                        id="catalog",
                        title="Build course catalog page",
                        dependencies=["endpoints"],
                    ),
                    TaskNode(id="player", title="Build lesson video player"),
                ],
            ),
        ],
    )


@pytest.fixture
def scripted_llm() -> Callable[..., ScriptedLLM]:
    """Factory for ScriptedLLM instances."""
    return ScriptedLLM


@pytest.fixture
def embedder() -> OneHotEmbedder:
    """Provide an embedder that returns orthogonal vectors per distinct text."""
    return OneHotEmbedder()


# Markers
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
