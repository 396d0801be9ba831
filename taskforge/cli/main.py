"""Main CLI entry point using Typer."""

import json
from pathlib import Path

import anyio
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from taskforge import __version__
from taskforge.core.config import get_embedding_config, get_llm_config, get_settings
from taskforge.core.errors import TaskForgeError
from taskforge.core.log import configure_logging
from taskforge.core.models import TaskNode
from taskforge.core.tree import collect_all_nodes
from taskforge.llm.factory import create_embedding_client, create_llm_client
from taskforge.metrics.tdq import TDQResult, analyze_tdq_issues, compute_tdq
from taskforge.service.export import save_task_tree, to_json
from taskforge.service.optimizer import (
    OptimizationConfig,
    decompose_task,
    optimize_task_decomposition,
)

app = typer.Typer(
    name="taskforge",
    help="TaskForge - Task decomposition quality scoring and optimization",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]TaskForge[/bold blue] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    log_dir: Path = typer.Option(
        Path("logs"),
        "--log-dir",
        help="Directory for log files",
    ),
) -> None:
    """
    TaskForge - Score and improve hierarchical task decompositions.
    """
    configure_logging(log_dir=log_dir)


def _load_tree(path: Path) -> TaskNode:
    try:
        return TaskNode.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        console.print(f"[red]Could not load task tree from {path}:[/red] {e}")
        raise typer.Exit(1)


def _metrics_table(result: TDQResult) -> Table:
    table = Table(title=f"TDQ Score: {result.score:.3f}")
    table.add_column("Metric", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Weight", justify="right", style="dim")

    b, w = result.breakdown, result.weights
    rows = [
        ("Acyclicity (A)", b.acyclicity.score, w.acyclicity),
        ("Hierarchy (H)", b.hierarchy.score, w.hierarchy),
        ("Balance (B)", b.balance.score, w.balance),
        ("Granularity (G)", b.granularity.score, w.granularity),
        ("Redundancy (R)", b.redundancy.score, w.redundancy),
        ("Executability (E)", b.executability.score, w.executability),
    ]
    for name, score, weight in rows:
        table.add_row(name, f"{score:.2f}", f"{weight:g}")
    return table


def _print_issues(issues: list[str]) -> None:
    if not issues:
        console.print("[green]No significant issues found[/green]")
        return
    console.print("[bold yellow]Issues:[/bold yellow]")
    for issue in issues:
        console.print(f"  - {issue}")


@app.command()
def evaluate(
    tree_path: Path = typer.Argument(..., help="Path to a task tree JSON file"),
    report: Path | None = typer.Option(
        None,
        "--report",
        "-r",
        help="Write a Markdown analysis to this file",
    ),
) -> None:
    """
    Evaluate a task tree and print its TDQ breakdown.

    Example:
        taskforge evaluate plan.json --report plan_report.md
    """
    tree = _load_tree(tree_path)

    async def execute() -> TDQResult:
        llm_client = create_llm_client(get_llm_config())
        embedding_client = create_embedding_client(get_embedding_config())
        return await compute_tdq(tree, llm_client, embedding_client)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Evaluating task tree...", total=None)
            result = anyio.run(execute)
    except TaskForgeError as e:
        console.print(f"[red]Evaluation failed:[/red] {e}")
        raise typer.Exit(1)

    console.print(_metrics_table(result))
    _print_issues(result.issues)

    if report:
        report.write_text(analyze_tdq_issues(result), encoding="utf-8")
        console.print(f"[dim]Analysis written to {report}[/dim]")


@app.command()
def optimize(
    request: str = typer.Argument(..., help="Task description or path to a text file"),
    max_iterations: int | None = typer.Option(
        None,
        "--max-iterations",
        "-i",
        min=1,
        help="Refinement budget (defaults to TASKFORGE_MAX_ITERATIONS)",
    ),
    target: float | None = typer.Option(
        None,
        "--target",
        "-t",
        min=0.0,
        max=1.0,
        help="TDQ score to stop at (defaults to TASKFORGE_TARGET_TDQ)",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Save the final tree to this file",
    ),
    output_format: str = typer.Option(
        "json",
        "--format",
        "-f",
        help="Output format: json or markdown",
    ),
) -> None:
    """
    Generate a task tree and refine it until it reaches the target score.

    Example:
        taskforge optimize "Build an online course platform" -o plan.json
    """
    if output_format not in ("json", "markdown"):
        console.print(f"[red]Unknown format: {output_format}[/red]")
        raise typer.Exit(1)

    request_path = Path(request)
    try:
        is_file = request_path.is_file()
    except OSError:
        # Long or unusual text is not a usable path; treat it as the request
        is_file = False
    if is_file:
        request = request_path.read_text(encoding="utf-8")
        console.print(f"[dim]Loaded request from {request_path}[/dim]")

    settings = get_settings()
    config = OptimizationConfig(
        max_iterations=max_iterations or settings.taskforge_max_iterations,
        target_tdq=target if target is not None else settings.taskforge_target_tdq,
    )

    console.print(
        Panel(
            f"[bold]Request:[/bold]\n{request[:200]}{'...' if len(request) > 200 else ''}\n\n"
            f"Target TDQ: {config.target_tdq}  Max iterations: {config.max_iterations}",
            title="[bold blue]TaskForge[/bold blue]",
            border_style="blue",
        )
    )

    async def execute():
        llm_client = create_llm_client(get_llm_config())
        embedding_client = create_embedding_client(get_embedding_config())
        return await optimize_task_decomposition(request, llm_client, embedding_client, config)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Optimizing task decomposition...", total=None)
            result = anyio.run(execute)
    except TaskForgeError as e:
        console.print(f"[red]Optimization failed:[/red] {e}")
        raise typer.Exit(1)

    history = Table(title="Optimization History")
    history.add_column("Iteration", justify="right")
    history.add_column("TDQ", justify="right")
    history.add_column("Issues", justify="right")
    for entry in result.history:
        history.add_row(str(entry.iteration), f"{entry.score:.3f}", str(len(entry.issues)))

    console.print(history)
    console.print(_metrics_table(result.final_tdq))
    _print_issues(result.final_tdq.issues)

    if output:
        save_task_tree(result.final_tree, output, format=output_format, tdq=result.final_tdq)
        console.print(f"[dim]Saved final tree to {output}[/dim]")
    else:
        console.print_json(to_json(result.final_tree))


@app.command()
def decompose(
    tree_path: Path = typer.Argument(..., help="Path to a task tree JSON file"),
    task_id: str = typer.Argument(..., help="Id of the task to break down"),
) -> None:
    """
    Propose subtasks for one task of a tree.
    """
    tree = _load_tree(tree_path)

    task = collect_all_nodes(tree).get(task_id)
    if task is None:
        console.print(f"[red]Task not found: {task_id}[/red]")
        raise typer.Exit(1)

    async def execute() -> list[TaskNode]:
        return await decompose_task(task, create_llm_client(get_llm_config()))

    try:
        subtasks = anyio.run(execute)
    except TaskForgeError as e:
        console.print(f"[red]Decomposition failed:[/red] {e}")
        raise typer.Exit(1)

    payload = [subtask.model_dump(mode="json", exclude_none=True) for subtask in subtasks]
    console.print_json(json.dumps(payload))


if __name__ == "__main__":
    app()
