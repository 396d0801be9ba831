"""Generate-evaluate-refine loop for task decomposition.

The loop is an explicit state machine:

    GENERATING -> EVALUATING -> (DONE | REFINING -> EVALUATING -> ...)

It stops when the TDQ score reaches the target or the iteration budget runs
out. Nothing is retried; the first failing call aborts the run.
"""

from enum import Enum

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from taskforge.core.models import (
    DEFAULT_EVALUATION_CONFIG,
    EvaluationConfig,
    TaskNode,
)
from taskforge.llm.client import EmbeddingClient, LLMClient, user_message
from taskforge.llm.extraction import parse_subtasks, parse_task_tree
from taskforge.llm.templates import (
    build_decompose_task_prompt,
    build_generate_tree_prompt,
    build_refine_tree_prompt,
)
from taskforge.metrics.tdq import TDQResult, compute_tdq


class OptimizationState(str, Enum):
    """State of an optimization run."""

    GENERATING = "generating"
    EVALUATING = "evaluating"
    REFINING = "refining"
    DONE = "done"


class OptimizationConfig(BaseModel):
    """Termination settings for an optimization run."""

    model_config = ConfigDict(frozen=True)

    max_iterations: int = Field(default=5, ge=1)
    target_tdq: float = Field(default=0.75, ge=0.0, le=1.0)


class HistoryEntry(BaseModel):
    """Outcome of one evaluation."""

    model_config = ConfigDict(frozen=True)

    iteration: int = Field(ge=1)
    score: float
    issues: list[str] = Field(default_factory=list)


class OptimizationResult(BaseModel):
    """Final tree and score plus the per-iteration history."""

    model_config = ConfigDict(frozen=True)

    final_tree: TaskNode
    final_tdq: TDQResult
    iterations: int
    history: list[HistoryEntry] = Field(default_factory=list)


# =============================================================================
# SINGLE STAGES
# =============================================================================


async def generate_task_tree(user_input: str, llm_client: LLMClient) -> TaskNode:
    """
    Generate an initial task tree from a free-text request.

    Raises:
        MalformedResponseError: If the response holds no valid task tree.
    """
    logger.info("Generating initial task tree")
    logger.debug(f"Request: {user_input[:200]}...")

    response = await llm_client.chat(user_message(build_generate_tree_prompt(user_input)))
    return parse_task_tree(response)


async def refine_task_tree(
    current_tree: TaskNode,
    tdq_result: TDQResult,
    llm_client: LLMClient,
) -> TaskNode:
    """
    Ask for a revised tree given the last evaluation.

    The prompt carries the current tree, the issue list and the
    granularity, executability and redundancy scores.

    Raises:
        MalformedResponseError: If the response holds no valid task tree.
    """
    scores = {
        "granularity": tdq_result.breakdown.granularity.score,
        "executability": tdq_result.breakdown.executability.score,
        "redundancy": tdq_result.breakdown.redundancy.score,
    }
    prompt = build_refine_tree_prompt(current_tree, tdq_result.issues, scores)

    response = await llm_client.chat(user_message(prompt))
    return parse_task_tree(response)


async def decompose_task(task: TaskNode, llm_client: LLMClient) -> list[TaskNode]:
    """
    Break a single task into subtasks.

    Raises:
        MalformedResponseError: If the response holds no valid array of tasks.
    """
    logger.info(f"Decomposing task {task.id!r}")
    response = await llm_client.chat(user_message(build_decompose_task_prompt(task)))
    subtasks = parse_subtasks(response)
    logger.debug(f"Task {task.id!r} split into {len(subtasks)} subtasks")
    return subtasks


# =============================================================================
# OPTIMIZER
# =============================================================================


class TaskDecompositionOptimizer:
    """
    Drive a task tree toward a target TDQ score.

    ``history`` and ``state`` stay readable when a run fails part way, so a
    caller can see how far it got.

    Example:
        >>> optimizer = TaskDecompositionOptimizer(llm, embedder)
        >>> result = await optimizer.optimize("Build an online course platform")
        >>> result.iterations, result.final_tdq.score
        (2, 0.81)
    """

    def __init__(
        self,
        llm_client: LLMClient,
        embedding_client: EmbeddingClient,
        config: OptimizationConfig | None = None,
        evaluation_config: EvaluationConfig = DEFAULT_EVALUATION_CONFIG,
    ) -> None:
        """
        Initialize the optimizer.

        Args:
            llm_client: Generation and judgment collaborator.
            embedding_client: Embedding collaborator.
            config: Termination settings. Uses defaults if not provided.
            evaluation_config: Weights and metric parameters for each evaluation.
        """
        self.llm_client = llm_client
        self.embedding_client = embedding_client
        self.config = config or OptimizationConfig()
        self.evaluation_config = evaluation_config

        self.state = OptimizationState.GENERATING
        self.iteration = 0
        self.history: list[HistoryEntry] = []

    async def optimize(self, user_input: str) -> OptimizationResult:
        """
        Run the full loop for a free-text request.

        Args:
            user_input: Description of the work to decompose.

        Returns:
            OptimizationResult with the last evaluated tree.

        Raises:
            MalformedResponseError: If generation or refinement output is unusable.
            DimensionMismatchError: If embeddings of different sizes come back.
        """
        self.state = OptimizationState.GENERATING
        self.iteration = 0
        self.history = []

        logger.info(
            f"Starting optimization (target={self.config.target_tdq}, "
            f"max_iterations={self.config.max_iterations})"
        )

        tree = await generate_task_tree(user_input, self.llm_client)
        self.iteration = 1
        self.state = OptimizationState.EVALUATING

        while True:
            logger.info(f"Iteration {self.iteration}: evaluating task tree")
            tdq = await compute_tdq(
                tree,
                self.llm_client,
                self.embedding_client,
                self.evaluation_config,
            )
            self.history.append(
                HistoryEntry(iteration=self.iteration, score=tdq.score, issues=tdq.issues)
            )
            for issue in tdq.issues:
                logger.info(f"  {issue}")

            if tdq.score >= self.config.target_tdq:
                logger.info(
                    f"Target TDQ reached ({tdq.score:.3f} >= {self.config.target_tdq}) "
                    f"after {self.iteration} iterations"
                )
                break

            if self.iteration >= self.config.max_iterations:
                logger.warning(
                    f"Max iterations reached ({self.config.max_iterations}), "
                    f"final TDQ {tdq.score:.3f}"
                )
                break

            self.state = OptimizationState.REFINING
            logger.info("Refining task tree based on feedback")
            tree = await refine_task_tree(tree, tdq, self.llm_client)
            self.iteration += 1
            self.state = OptimizationState.EVALUATING

        self.state = OptimizationState.DONE
        return OptimizationResult(
            final_tree=tree,
            final_tdq=tdq,
            iterations=self.iteration,
            history=list(self.history),
        )


async def optimize_task_decomposition(
    user_input: str,
    llm_client: LLMClient,
    embedding_client: EmbeddingClient,
    config: OptimizationConfig | None = None,
    evaluation_config: EvaluationConfig = DEFAULT_EVALUATION_CONFIG,
) -> OptimizationResult:
    """Convenience function to run one optimization.

    Args:
        user_input: Description of the work to decompose.
        llm_client: Generation and judgment collaborator.
        embedding_client: Embedding collaborator.
        config: Termination settings.
        evaluation_config: Weights and metric parameters.

    Returns:
        OptimizationResult.
    """
    optimizer = TaskDecompositionOptimizer(
        llm_client,
        embedding_client,
        config=config,
        evaluation_config=evaluation_config,
    )
    return await optimizer.optimize(user_input)
