"""Core module - Tree model, configuration, errors and logging."""

from taskforge.core.config import (
    EmbeddingConfig,
    LLMConfig,
    Settings,
    get_embedding_config,
    get_llm_config,
    get_settings,
)
from taskforge.core.errors import (
    ConfigurationError,
    DimensionMismatchError,
    MalformedResponseError,
    TaskForgeError,
)
from taskforge.core.models import (
    EvaluationConfig,
    EvaluationResult,
    IdealRange,
    Priority,
    TaskNode,
    TDQWeights,
)
from taskforge.core.tree import (
    TaskGraph,
    build_task_graph,
    collect_all_nodes,
    collect_depths,
    collect_leaves,
)

__all__ = [
    # Config
    "EmbeddingConfig",
    "LLMConfig",
    "Settings",
    "get_embedding_config",
    "get_llm_config",
    "get_settings",
    # Errors
    "ConfigurationError",
    "DimensionMismatchError",
    "MalformedResponseError",
    "TaskForgeError",
    # Models
    "EvaluationConfig",
    "EvaluationResult",
    "IdealRange",
    "Priority",
    "TaskNode",
    "TDQWeights",
    # Tree
    "TaskGraph",
    "build_task_graph",
    "collect_all_nodes",
    "collect_depths",
    "collect_leaves",
]
