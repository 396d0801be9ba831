"""Export task trees as JSON or Markdown."""

from pathlib import Path
from typing import Literal

from loguru import logger

from taskforge.core.models import TaskNode
from taskforge.metrics.tdq import TDQResult, grade


def to_json(tree: TaskNode, pretty: bool = True) -> str:
    """Serialize a tree to JSON, leaving out unset optional fields."""
    return tree.model_dump_json(indent=2 if pretty else None, exclude_none=True)


def _render_node(node: TaskNode, depth: int) -> list[str]:
    indent = "  " * depth
    marker = "#" if depth == 0 else "-"
    lines = [f"{indent}{marker} {node.title}"]

    if node.description:
        lines.append(f"{indent}  > {node.description}")
    if node.priority:
        lines.append(f"{indent}  **Priority:** {node.priority.value}")
    if node.effort_estimate is not None:
        lines.append(f"{indent}  **Effort:** {node.effort_estimate:g}h")
    if node.dependencies:
        lines.append(f"{indent}  **Depends on:** {', '.join(node.dependencies)}")
    lines.append("")

    for child in node.children:
        lines += _render_node(child, depth + 1)
    return lines


def to_markdown(tree: TaskNode, tdq: TDQResult | None = None) -> str:
    """
    Render a tree as Markdown, optionally preceded by a TDQ report.

    Args:
        tree: Task tree to render.
        tdq: Optional evaluation to include as a metrics table and issue list.

    Returns:
        Markdown document.
    """
    lines: list[str] = []

    if tdq is not None:
        b, w = tdq.breakdown, tdq.weights
        lines += [
            "# Task Decomposition Report",
            "",
            f"**TDQ Score: {tdq.score:.3f}** ({grade(tdq.score)})",
            "",
            "## Metrics Breakdown",
            "",
            "| Metric | Score | Weight |",
            "|--------|-------|--------|",
            f"| Acyclicity (A) | {b.acyclicity.score:.2f} | {w.acyclicity:g} |",
            f"| Hierarchy (H) | {b.hierarchy.score:.2f} | {w.hierarchy:g} |",
            f"| Balance (B) | {b.balance.score:.2f} | {w.balance:g} |",
            f"| Granularity (G) | {b.granularity.score:.2f} | {w.granularity:g} |",
            f"| Redundancy (R) | {b.redundancy.score:.2f} | {w.redundancy:g} |",
            f"| Executability (E) | {b.executability.score:.2f} | {w.executability:g} |",
            "",
        ]
        if tdq.issues:
            lines += ["## Issues Found", ""]
            lines += [f"- {issue}" for issue in tdq.issues]
            lines.append("")
        lines += ["---", ""]

    lines += ["# Task Tree", ""]
    lines += _render_node(tree, 0)
    return "\n".join(lines)


def save_task_tree(
    tree: TaskNode,
    filepath: str | Path,
    format: Literal["json", "markdown"] = "json",
    tdq: TDQResult | None = None,
) -> Path:
    """
    Write a tree to disk.

    Args:
        tree: Task tree to save.
        filepath: Destination file.
        format: "json" for the plain tree, "markdown" for the report.
        tdq: Optional evaluation, used by the Markdown format.

    Returns:
        The path written.
    """
    if format == "json":
        content = to_json(tree)
    elif format == "markdown":
        content = to_markdown(tree, tdq)
    else:
        raise ValueError(f"Unknown format: {format}")

    path = Path(filepath)
    path.write_text(content, encoding="utf-8")
    logger.info(f"Saved task tree to {path}")
    return path
