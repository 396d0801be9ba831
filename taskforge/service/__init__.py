"""Optimization loop and tree export."""

from taskforge.service.export import save_task_tree, to_json, to_markdown
from taskforge.service.optimizer import (
    HistoryEntry,
    OptimizationConfig,
    OptimizationResult,
    OptimizationState,
    TaskDecompositionOptimizer,
    decompose_task,
    generate_task_tree,
    optimize_task_decomposition,
    refine_task_tree,
)

__all__ = [
    "HistoryEntry",
    "OptimizationConfig",
    "OptimizationResult",
    "OptimizationState",
    "TaskDecompositionOptimizer",
    "decompose_task",
    "generate_task_tree",
    "optimize_task_decomposition",
    "refine_task_tree",
    "save_task_tree",
    "to_json",
    "to_markdown",
]
