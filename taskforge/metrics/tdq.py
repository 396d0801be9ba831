"""Task Decomposition Quality (TDQ) aggregation.

TDQ is the weighted sum of the six metric scores. Issue messages come from
fixed per-metric thresholds and never feed back into the score.
"""

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from taskforge.core.models import (
    DEFAULT_EVALUATION_CONFIG,
    EvaluationConfig,
    EvaluationResult,
    TaskNode,
    TDQWeights,
)
from taskforge.llm.client import EmbeddingClient, LLMClient
from taskforge.metrics.semantic import (
    compute_executability,
    compute_granularity,
    compute_redundancy,
)
from taskforge.metrics.structural import (
    compute_acyclicity,
    compute_hierarchy_balance,
    compute_hierarchy_consistency,
)

# Warning cutoffs; a metric scoring below its cutoff produces an issue
HIERARCHY_WARNING = 0.7
BALANCE_WARNING = 0.5
GRANULARITY_WARNING = 0.6
REDUNDANCY_WARNING = 0.8
EXECUTABILITY_WARNING = 0.6


class TDQBreakdown(BaseModel):
    """The six metric results behind one TDQ score."""

    model_config = ConfigDict(frozen=True)

    acyclicity: EvaluationResult
    hierarchy: EvaluationResult
    balance: EvaluationResult
    granularity: EvaluationResult
    redundancy: EvaluationResult
    executability: EvaluationResult


class TDQResult(BaseModel):
    """Composite score, its breakdown, the weights used and issues found."""

    model_config = ConfigDict(frozen=True)

    score: float
    breakdown: TDQBreakdown
    weights: TDQWeights
    issues: list[str] = Field(default_factory=list)


def weighted_score(breakdown: TDQBreakdown, weights: TDQWeights) -> float:
    """Weighted sum of the six metric scores."""
    return (
        weights.acyclicity * breakdown.acyclicity.score
        + weights.hierarchy * breakdown.hierarchy.score
        + weights.balance * breakdown.balance.score
        + weights.granularity * breakdown.granularity.score
        + weights.redundancy * breakdown.redundancy.score
        + weights.executability * breakdown.executability.score
    )


def identify_issues(breakdown: TDQBreakdown) -> list[str]:
    """Human-readable issues for every metric below its warning cutoff."""
    issues: list[str] = []

    if breakdown.acyclicity.score == 0:
        issues.append("Cyclic task dependencies detected, must fix")

    if breakdown.hierarchy.score < HIERARCHY_WARNING:
        issues.append(
            f"Low hierarchy consistency ({breakdown.hierarchy.score:.2f}), "
            "some dependencies point at siblings or ancestors"
        )

    if breakdown.balance.score < BALANCE_WARNING:
        issues.append(
            f"Unbalanced task distribution ({breakdown.balance.score:.2f}), "
            "some tasks have too many or too few subtasks"
        )

    if breakdown.granularity.score < GRANULARITY_WARNING:
        issues.append(
            f"Unreasonable task granularity ({breakdown.granularity.score:.2f}), "
            "some tasks are too large or too small"
        )

    if breakdown.redundancy.score < REDUNDANCY_WARNING:
        issues.append(f"Duplicate tasks present ({breakdown.redundancy.score:.2f})")

    if breakdown.executability.score < EXECUTABILITY_WARNING:
        issues.append(
            f"Low task executability ({breakdown.executability.score:.2f}), "
            "descriptions are not specific enough"
        )

    return issues


def aggregate(breakdown: TDQBreakdown, weights: TDQWeights | None = None) -> TDQResult:
    """
    Combine six metric results into a TDQResult.

    Pure and deterministic: the same breakdown and weights always give the
    same score.

    Args:
        breakdown: The six metric results.
        weights: Metric weights (defaults to TDQWeights()).

    Returns:
        TDQResult with score and issues.
    """
    weights = weights or TDQWeights()
    return TDQResult(
        score=weighted_score(breakdown, weights),
        breakdown=breakdown,
        weights=weights,
        issues=identify_issues(breakdown),
    )


async def compute_tdq(
    tree: TaskNode,
    llm_client: LLMClient,
    embedding_client: EmbeddingClient,
    config: EvaluationConfig = DEFAULT_EVALUATION_CONFIG,
) -> TDQResult:
    """
    Compute the TDQ score of a task tree.

    Structural metrics run first, then redundancy, granularity and
    executability, each awaiting its external calls one at a time.

    Args:
        tree: Task tree to evaluate.
        llm_client: Judgment collaborator for granularity and executability.
        embedding_client: Embedding collaborator for redundancy.
        config: Weights and metric parameters.

    Returns:
        TDQResult for the tree.

    Example:
        >>> result = await compute_tdq(tree, llm, embedder)
        >>> result.score
        0.82
    """
    logger.info(f"Evaluating task tree rooted at {tree.id!r}")

    acyclicity = compute_acyclicity(tree)
    hierarchy = compute_hierarchy_consistency(tree)
    balance = compute_hierarchy_balance(tree)

    redundancy = await compute_redundancy(
        tree, embedding_client, threshold=config.redundancy_threshold
    )
    granularity = await compute_granularity(
        tree, llm_client, ideal_range=config.ideal_range, alpha=config.alpha
    )
    executability = await compute_executability(tree, llm_client)

    result = aggregate(
        TDQBreakdown(
            acyclicity=acyclicity,
            hierarchy=hierarchy,
            balance=balance,
            granularity=granularity,
            redundancy=redundancy,
            executability=executability,
        ),
        config.weights,
    )

    logger.info(f"TDQ score {result.score:.3f} with {len(result.issues)} issues")
    return result


def grade(score: float) -> str:
    """Coarse label for a TDQ score."""
    if score >= 0.8:
        return "Excellent"
    if score >= 0.6:
        return "Good"
    return "Needs Improvement"


def analyze_tdq_issues(result: TDQResult) -> str:
    """Render a Markdown analysis of a TDQ result."""
    b = result.breakdown
    lines = [
        "## Task Decomposition Quality Analysis",
        "",
        f"**Composite score (TDQ): {result.score:.3f}** ({grade(result.score)})",
        "",
        "### Metrics",
        "",
        f"- **Acyclicity (A)**: {b.acyclicity.score:.2f}",
        f"- **Hierarchy Consistency (H)**: {b.hierarchy.score:.2f}",
        f"- **Balance (B)**: {b.balance.score:.2f}",
        f"- **Granularity (G)**: {b.granularity.score:.2f}",
        f"- **Redundancy (R)**: {b.redundancy.score:.2f}",
        f"- **Executability (E)**: {b.executability.score:.2f}",
        "",
    ]

    if result.issues:
        lines += ["### Issues", ""]
        lines += [f"- {issue}" for issue in result.issues]
    else:
        lines.append("### No significant issues found")

    return "\n".join(lines) + "\n"
