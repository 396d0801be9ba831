"""
TaskForge - Task decomposition quality scoring and optimization.

Scores hierarchical task trees on six structural and semantic metrics and
iteratively refines them with a language model until a target quality is met.
"""

__version__ = "0.1.0"
__author__ = "TaskForge Team"

from taskforge.core.models import TaskNode
from taskforge.metrics.tdq import TDQResult, compute_tdq
from taskforge.service.optimizer import (
    OptimizationConfig,
    OptimizationResult,
    optimize_task_decomposition,
)

__all__ = [
    "OptimizationConfig",
    "OptimizationResult",
    "TDQResult",
    "TaskNode",
    "__version__",
    "compute_tdq",
    "optimize_task_decomposition",
]
