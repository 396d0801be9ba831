"""Pydantic models for task decomposition trees and their evaluation.

This module defines the task tree itself, the per-metric evaluation result,
and the configuration values that drive scoring and optimization.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class Priority(str, Enum):
    """Priority of a task."""

    P0 = "P0"  # Critical
    P1 = "P1"  # High
    P2 = "P2"  # Normal


# =============================================================================
# TASK TREE
# =============================================================================


class TaskNode(BaseModel):
    """A node in a hierarchical task decomposition.

    Ids are expected to be unique across the whole tree. Nothing enforces
    this; when an id repeats, indices built from the tree keep the node
    encountered last in pre-order.

    Example:
        >>> tree = TaskNode(
        ...     id="root",
        ...     title="Launch blog",
        ...     children=[
        ...         TaskNode(id="db", title="Create posts table"),
        ...         TaskNode(id="api", title="Posts API", dependencies=["db"]),
        ...     ],
        ... )
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(..., description="Identifier, unique within the tree")
    title: str = Field(..., description="Short task title")
    description: str | None = Field(
        default=None,
        description="Optional longer description",
    )
    priority: Priority | None = Field(
        default=None,
        description="Optional priority (P0=Critical, P1=High, P2=Normal)",
    )
    effort_estimate: float | None = Field(
        default=None,
        ge=0,
        description="Estimated effort in hours",
    )
    children: list["TaskNode"] = Field(
        default_factory=list,
        description="Ordered subtasks, owned by this node",
    )
    dependencies: list[str] = Field(
        default_factory=list,
        description="Ids of other tasks in the tree that must precede this one",
    )

    @property
    def is_leaf(self) -> bool:
        """Check if the node has no children."""
        return not self.children

    @property
    def text(self) -> str:
        """Title and description joined, as used for embeddings."""
        return f"{self.title} {self.description or ''}".strip()


# =============================================================================
# EVALUATION
# =============================================================================


class EvaluationResult(BaseModel):
    """Score produced by a single metric.

    ``details`` carries metric-specific diagnostics for reporting only.
    """

    model_config = ConfigDict(frozen=True)

    score: float = Field(..., ge=0.0, le=1.0)
    details: dict[str, Any] = Field(default_factory=dict)


class TDQWeights(BaseModel):
    """Weights of the six metrics in the composite TDQ score.

    Weights are not required to sum to 1.0 (the defaults sum to 0.90).
    """

    model_config = ConfigDict(frozen=True)

    acyclicity: float = Field(default=0.10, ge=0.0)
    hierarchy: float = Field(default=0.15, ge=0.0)
    balance: float = Field(default=0.10, ge=0.0)
    granularity: float = Field(default=0.20, ge=0.0)
    redundancy: float = Field(default=0.10, ge=0.0)
    executability: float = Field(default=0.25, ge=0.0)


class IdealRange(BaseModel):
    """Ideal effort range for a leaf task, in hours."""

    model_config = ConfigDict(frozen=True)

    min: float = Field(default=1.0, ge=0.0)
    max: float = Field(default=8.0, ge=0.0)

    @model_validator(mode="after")
    def check_bounds(self) -> "IdealRange":
        """Require min <= max and a positive midpoint."""
        if self.min > self.max:
            raise ValueError(f"min ({self.min}) must not exceed max ({self.max})")
        if self.midpoint <= 0:
            raise ValueError("ideal range midpoint must be positive")
        return self

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2

    def contains(self, hours: float) -> bool:
        return self.min <= hours <= self.max


class EvaluationConfig(BaseModel):
    """Everything the TDQ aggregator needs besides the tree and clients.

    Example:
        >>> config = EvaluationConfig(
        ...     weights=TDQWeights(executability=0.5, granularity=0.1),
        ...     redundancy_threshold=0.85,
        ... )
    """

    model_config = ConfigDict(frozen=True)

    weights: TDQWeights = Field(default_factory=TDQWeights)
    redundancy_threshold: float = Field(
        default=0.8,
        ge=-1.0,
        le=1.0,
        description="Cosine similarity above which two tasks count as redundant",
    )
    ideal_range: IdealRange = Field(default_factory=IdealRange)
    alpha: float = Field(
        default=1.0,
        ge=0.0,
        description="Decay rate of the granularity score outside the ideal range",
    )


DEFAULT_EVALUATION_CONFIG = EvaluationConfig()
