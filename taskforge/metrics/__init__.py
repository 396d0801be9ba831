"""Decomposition quality metrics.

Structural (no external calls):
- Acyclicity (A), Hierarchy Consistency (H), Hierarchy Balance (B)

Semantic (one model call per node or leaf):
- Redundancy (R), Granularity (G), Executability (E)

Aggregation:
- TDQ, the weighted sum of all six, with issue flags
"""

from taskforge.metrics.semantic import (
    compute_executability,
    compute_granularity,
    compute_redundancy,
    cosine_similarity,
)
from taskforge.metrics.structural import (
    compute_acyclicity,
    compute_hierarchy_balance,
    compute_hierarchy_consistency,
)
from taskforge.metrics.tdq import (
    TDQBreakdown,
    TDQResult,
    aggregate,
    analyze_tdq_issues,
    compute_tdq,
)

__all__ = [
    # Structural
    "compute_acyclicity",
    "compute_hierarchy_balance",
    "compute_hierarchy_consistency",
    # Semantic
    "compute_executability",
    "compute_granularity",
    "compute_redundancy",
    "cosine_similarity",
    # Aggregation
    "TDQBreakdown",
    "TDQResult",
    "aggregate",
    "analyze_tdq_issues",
    "compute_tdq",
]
