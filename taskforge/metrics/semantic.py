"""Semantic metrics - scores that need an external model.

- Redundancy (R): embedding similarity between every pair of tasks.
- Granularity (G): judged effort of each leaf against an ideal range.
- Executability (E): judged actionability of each leaf on a 1-5 scale.

Calls are made one at a time in pre-order. A judgment that cannot be parsed
gets a neutral fallback score instead of failing the evaluation.
"""

import math
import re
from collections.abc import Sequence
from typing import Any

from loguru import logger

from taskforge.core.errors import DimensionMismatchError
from taskforge.core.models import EvaluationResult, IdealRange, TaskNode
from taskforge.core.tree import collect_leaves, iter_nodes
from taskforge.llm.client import EmbeddingClient, LLMClient, user_message
from taskforge.llm.templates import (
    build_estimate_effort_prompt,
    build_judge_executability_prompt,
)

GRANULARITY_FALLBACK_SCORE = 0.5
EXECUTABILITY_FALLBACK_RATING = 3
MAX_REPORTED_PAIRS = 5

_LEADING_NUMBER = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")
_LEADING_INTEGER = re.compile(r"^\s*([-+]?\d+)")


def parse_leading_number(text: str) -> float | None:
    """Parse the numeric prefix of a response, e.g. ``"6 hours"`` -> 6.0."""
    match = _LEADING_NUMBER.match(text)
    if not match:
        return None
    return float(match.group(1))


def parse_leading_integer(text: str) -> int | None:
    """Parse the integer prefix of a response, e.g. ``"4/5"`` -> 4."""
    match = _LEADING_INTEGER.match(text)
    if not match:
        return None
    return int(match.group(1))


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    A zero vector has no direction and is treated as dissimilar to
    everything (similarity 0.0).

    Raises:
        DimensionMismatchError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(
            f"Vectors must have the same length ({len(a)} != {len(b)})"
        )

    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


# =============================================================================
# REDUNDANCY
# =============================================================================


async def compute_redundancy(
    root: TaskNode,
    embedding_client: EmbeddingClient,
    threshold: float = 0.8,
) -> EvaluationResult:
    """
    Redundancy (R) = 1 - redundant_pairs / total_pairs.

    Every node is embedded from its title and description. A pair is
    redundant when its cosine similarity exceeds ``threshold``.

    Args:
        root: Root of the task tree.
        embedding_client: Embedding collaborator, called once per node.
        threshold: Similarity above which a pair counts as redundant.

    Returns:
        EvaluationResult with the first few redundant pairs in details.
    """
    nodes = list(iter_nodes(root))

    if len(nodes) < 2:
        return EvaluationResult(
            score=1.0,
            details={"redundant_pairs": 0, "total_pairs": 0, "threshold": threshold},
        )

    logger.debug(f"Embedding {len(nodes)} tasks for redundancy check")
    embeddings = [await embedding_client.embed(node.text) for node in nodes]

    redundant_pairs = 0
    total_pairs = 0
    similar_pairs: list[dict[str, Any]] = []

    for i in range(len(nodes)):
        for j in range(i + 1, len(nodes)):
            total_pairs += 1
            similarity = cosine_similarity(embeddings[i], embeddings[j])
            if similarity > threshold:
                redundant_pairs += 1
                if len(similar_pairs) < MAX_REPORTED_PAIRS:
                    similar_pairs.append({"i": i, "j": j, "similarity": similarity})

    score = 1.0 - redundant_pairs / total_pairs

    return EvaluationResult(
        score=score,
        details={
            "redundant_pairs": redundant_pairs,
            "total_pairs": total_pairs,
            "threshold": threshold,
            "similar_pairs": similar_pairs,
        },
    )


# =============================================================================
# GRANULARITY
# =============================================================================


def score_effort(effort: float, ideal_range: IdealRange, alpha: float = 1.0) -> float:
    """
    Score one effort estimate.

    1.0 inside the ideal range, otherwise exp(-alpha * |effort - mid| / mid).
    """
    if ideal_range.contains(effort):
        return 1.0
    mid = ideal_range.midpoint
    return math.exp(-alpha * abs(effort - mid) / mid)


async def compute_granularity(
    root: TaskNode,
    llm_client: LLMClient,
    ideal_range: IdealRange | None = None,
    alpha: float = 1.0,
) -> EvaluationResult:
    """
    Granularity (G): mean effort score over the leaf tasks.

    Args:
        root: Root of the task tree.
        llm_client: Judgment collaborator, asked once per leaf.
        ideal_range: Ideal effort range in hours (defaults to 1-8).
        alpha: Decay rate outside the ideal range.

    Returns:
        EvaluationResult with the per-leaf estimates in details.
    """
    ideal_range = ideal_range or IdealRange()
    leaves = collect_leaves(root)

    if not leaves:
        return EvaluationResult(score=1.0, details={"leaf_count": 0})

    scores: list[float] = []
    efforts: list[dict[str, Any]] = []

    for leaf in leaves:
        response = await llm_client.chat(user_message(build_estimate_effort_prompt(leaf)))
        effort = parse_leading_number(response)

        if effort is None or not math.isfinite(effort):
            logger.warning(f"Unparseable effort estimate for {leaf.id!r}: {response[:50]!r}")
            scores.append(GRANULARITY_FALLBACK_SCORE)
            efforts.append({"task": leaf.title, "effort": -1, "score": GRANULARITY_FALLBACK_SCORE})
            continue

        score = score_effort(effort, ideal_range, alpha)
        scores.append(score)
        efforts.append({"task": leaf.title, "effort": effort, "score": score})

    return EvaluationResult(
        score=sum(scores) / len(scores),
        details={
            "leaf_count": len(leaves),
            "ideal_range": {"min": ideal_range.min, "max": ideal_range.max},
            "efforts": efforts,
        },
    )


# =============================================================================
# EXECUTABILITY
# =============================================================================


async def compute_executability(
    root: TaskNode,
    llm_client: LLMClient,
) -> EvaluationResult:
    """
    Executability (E): mean of (rating - 1) / 4 over the leaf tasks.

    Args:
        root: Root of the task tree.
        llm_client: Judgment collaborator, asked once per leaf.

    Returns:
        EvaluationResult with the per-leaf ratings in details.
    """
    leaves = collect_leaves(root)

    if not leaves:
        return EvaluationResult(score=1.0, details={"leaf_count": 0})

    ratings: list[dict[str, Any]] = []

    for leaf in leaves:
        response = await llm_client.chat(user_message(build_judge_executability_prompt(leaf)))
        rating = parse_leading_integer(response)

        if rating is None or not 1 <= rating <= 5:
            logger.warning(f"Unusable executability rating for {leaf.id!r}: {response[:50]!r}")
            rating = EXECUTABILITY_FALLBACK_RATING

        ratings.append({"task": leaf.title, "rating": rating, "normalized": (rating - 1) / 4})

    score = sum(r["normalized"] for r in ratings) / len(ratings)

    return EvaluationResult(
        score=score,
        details={"leaf_count": len(leaves), "ratings": ratings},
    )
