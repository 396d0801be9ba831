"""Tree indices and the merged task graph.

Every metric works on indices derived from a ``TaskNode`` tree. Traversal is
always pre-order. Id-keyed indices keep the node seen last when an id repeats.
"""

from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict, Field

from taskforge.core.models import TaskNode


def iter_nodes(root: TaskNode) -> Iterator[TaskNode]:
    """Yield every node in pre-order, duplicates included."""
    yield root
    for child in root.children:
        yield from iter_nodes(child)


def collect_all_nodes(root: TaskNode) -> dict[str, TaskNode]:
    """Map each id to its node.

    Args:
        root: Root of the task tree.

    Returns:
        Id -> node mapping in traversal order. A later node with an
        already-seen id replaces the earlier one.
    """
    nodes: dict[str, TaskNode] = {}
    for node in iter_nodes(root):
        nodes[node.id] = node
    return nodes


def collect_depths(root: TaskNode) -> dict[str, int]:
    """Map each id to its depth (root is 0).

    Args:
        root: Root of the task tree.

    Returns:
        Id -> depth mapping in traversal order, last occurrence wins.
    """
    depths: dict[str, int] = {}

    def visit(node: TaskNode, depth: int) -> None:
        depths[node.id] = depth
        for child in node.children:
            visit(child, depth + 1)

    visit(root, 0)
    return depths


def collect_leaves(root: TaskNode) -> list[TaskNode]:
    """Get the leaf nodes in pre-order."""
    return [node for node in iter_nodes(root) if node.is_leaf]


# =============================================================================
# MERGED GRAPH
# =============================================================================


class TaskGraph(BaseModel):
    """Directed graph over task ids.

    Decomposition edges (parent -> child) and dependency edges
    (task -> dependency) share one adjacency relation. Dependencies that do
    not resolve to a node in the tree are left out.

    Example:
        >>> graph = build_task_graph(tree)
        >>> graph.edges["api"]
        ['db']
    """

    model_config = ConfigDict(frozen=True)

    nodes: list[str] = Field(
        default_factory=list,
        description="Task ids in traversal order",
    )
    edges: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Task ID -> list of successor IDs",
    )

    def iter_edges(self) -> Iterator[tuple[str, str]]:
        """Yield every (source, target) pair."""
        for source in self.nodes:
            for target in self.edges.get(source, []):
                yield source, target

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self.edges.values())


def build_task_graph(root: TaskNode) -> TaskGraph:
    """Build the merged decomposition/dependency graph of a tree.

    Args:
        root: Root of the task tree.

    Returns:
        TaskGraph keyed by the ids of ``collect_all_nodes``.
    """
    nodes = collect_all_nodes(root)
    edges: dict[str, list[str]] = {task_id: [] for task_id in nodes}

    for node in nodes.values():
        for child in node.children:
            edges[node.id].append(child.id)
        for dep_id in node.dependencies:
            if dep_id in nodes:
                edges[node.id].append(dep_id)

    return TaskGraph(nodes=list(nodes), edges=edges)
