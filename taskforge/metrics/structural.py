"""Structural metrics - pure functions of the task tree.

- Acyclicity (A): is the merged decomposition/dependency graph a DAG?
- Hierarchy Consistency (H): share of edges pointing strictly deeper.
- Hierarchy Balance (B): how evenly children are spread over non-leaf nodes.

None of these make external calls and none of them raise.
"""

from loguru import logger

from taskforge.core.models import EvaluationResult, TaskNode
from taskforge.core.tree import (
    TaskGraph,
    build_task_graph,
    collect_all_nodes,
    collect_depths,
)

# Variance of child counts at which balance bottoms out at 0.0
VAR_MAX = 5.0


def has_cycle(graph: TaskGraph) -> bool:
    """
    Detect a cycle in the graph using an iterative DFS.

    An edge to a node still on the DFS stack closes a cycle; an edge to a
    finished node does not. Roots are scanned in ``graph.nodes`` order and
    the scan stops at the first cycle.

    Args:
        graph: Merged task graph.

    Returns:
        True if at least one cycle exists.

    Example:
        >>> has_cycle(TaskGraph(nodes=["a", "b"], edges={"a": ["b"], "b": ["a"]}))
        True
    """
    visited: set[str] = set()
    on_stack: set[str] = set()

    for start in graph.nodes:
        if start in visited:
            continue

        visited.add(start)
        on_stack.add(start)
        stack = [(start, iter(graph.edges.get(start, [])))]

        while stack:
            node, neighbors = stack[-1]
            for neighbor in neighbors:
                if neighbor in on_stack:
                    return True
                if neighbor not in visited:
                    visited.add(neighbor)
                    on_stack.add(neighbor)
                    stack.append((neighbor, iter(graph.edges.get(neighbor, []))))
                    break
            else:
                stack.pop()
                on_stack.discard(node)

    return False


def compute_acyclicity(root: TaskNode) -> EvaluationResult:
    """
    Acyclicity (A): 1.0 for an acyclic merged graph, 0.0 otherwise.

    A dependency from a child back to its ancestor forms a cycle together
    with the decomposition edges, as does any loop among dependencies.
    """
    cyclic = has_cycle(build_task_graph(root))
    if cyclic:
        logger.debug(f"Cycle detected in task tree rooted at {root.id!r}")

    return EvaluationResult(
        score=0.0 if cyclic else 1.0,
        details={"has_cycle": cyclic},
    )


def compute_hierarchy_consistency(root: TaskNode) -> EvaluationResult:
    """
    Hierarchy Consistency (H) = consistent_edges / total_edges.

    An edge u -> v is consistent when depth(v) > depth(u). Decomposition
    edges always are; dependencies on siblings or shallower nodes are not.
    A graph without edges scores 1.0.
    """
    graph = build_task_graph(root)
    depths = collect_depths(root)

    total_edges = 0
    consistent_edges = 0
    for source, target in graph.iter_edges():
        total_edges += 1
        if depths[target] > depths[source]:
            consistent_edges += 1

    if total_edges == 0:
        return EvaluationResult(
            score=1.0,
            details={"total_edges": 0, "consistent_edges": 0},
        )

    return EvaluationResult(
        score=consistent_edges / total_edges,
        details={"total_edges": total_edges, "consistent_edges": consistent_edges},
    )


def compute_hierarchy_balance(root: TaskNode) -> EvaluationResult:
    """
    Hierarchy Balance (B) = 1 - min(1, Var(deg) / VAR_MAX).

    deg(v) is the child count of each non-leaf node; leaves are left out.
    With fewer than two non-leaf nodes the variance is taken as 0.
    """
    child_counts = [
        len(node.children)
        for node in collect_all_nodes(root).values()
        if node.children
    ]

    if len(child_counts) < 2:
        return EvaluationResult(
            score=1.0,
            details={"variance": 0.0, "child_counts": child_counts},
        )

    mean = sum(child_counts) / len(child_counts)
    variance = sum((count - mean) ** 2 for count in child_counts) / len(child_counts)
    score = 1.0 - min(1.0, variance / VAR_MAX)

    return EvaluationResult(
        score=score,
        details={"variance": variance, "child_counts": child_counts},
    )
