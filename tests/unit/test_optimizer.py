"""Unit tests for the optimization loop."""

import json

import pytest
from pydantic import ValidationError

from taskforge.core.errors import MalformedResponseError
from taskforge.core.models import TaskNode
from taskforge.metrics.tdq import compute_tdq
from taskforge.service.optimizer import (
    OptimizationConfig,
    OptimizationState,
    TaskDecompositionOptimizer,
    decompose_task,
    generate_task_tree,
    optimize_task_decomposition,
    refine_task_tree,
)


def _tree_json(*leaf_titles: str) -> str:
    return json.dumps(
        {
            "id": "root",
            "title": "Build login",
            "children": [
                {"id": f"t{i}", "title": title} for i, title in enumerate(leaf_titles)
            ],
        }
    )


VAGUE_TREE = _tree_json("Do auth stuff", "Make it nice")
CLEAR_TREE = _tree_json("Add email field validation", "Write login API handler")
VAGUE_RATINGS = {"Do auth stuff": "1", "Make it nice": "1"}


class TestOptimizationConfig:
    """Tests for OptimizationConfig."""

    def test_defaults(self):
        config = OptimizationConfig()

        assert config.max_iterations == 5
        assert config.target_tdq == 0.75

    def test_max_iterations_must_be_positive(self):
        with pytest.raises(ValidationError):
            OptimizationConfig(max_iterations=0)


class TestStages:
    """Tests for the single-call stages."""

    @pytest.mark.asyncio
    async def test_generate(self, scripted_llm):
        llm = scripted_llm(generated=f"Sure!\n```json\n{CLEAR_TREE}\n```")

        tree = await generate_task_tree("Build a login page", llm)

        assert [c.title for c in tree.children] == [
            "Add email field validation",
            "Write login API handler",
        ]
        assert "Build a login page" in llm.prompts("generate")[0]

    @pytest.mark.asyncio
    async def test_generate_malformed(self, scripted_llm):
        llm = scripted_llm(generated="I would start with a database.")

        with pytest.raises(MalformedResponseError):
            await generate_task_tree("Build a login page", llm)

    @pytest.mark.asyncio
    async def test_refine_prompt_carries_feedback(self, scripted_llm, embedder):
        llm = scripted_llm(
            generated=VAGUE_TREE, refined=[CLEAR_TREE], ratings=VAGUE_RATINGS
        )
        tree = TaskNode.model_validate_json(VAGUE_TREE)
        tdq = await compute_tdq(tree, llm, embedder)

        refined = await refine_task_tree(tree, tdq, llm)

        prompt = llm.prompts("refine")[0]
        assert refined.children[0].title == "Add email field validation"
        assert '"title": "Do auth stuff"' in prompt
        assert "Executability: 0.00" in prompt
        assert "1. Low task executability (0.00)" in prompt

    @pytest.mark.asyncio
    async def test_decompose(self, scripted_llm):
        llm = scripted_llm(
            subtasks='[{"id": "s1", "title": "Create users table"},'
            ' {"id": "s2", "title": "Hash passwords", "dependencies": ["s1"]}]'
        )
        task = TaskNode(id="auth", title="Implement authentication")

        subtasks = await decompose_task(task, llm)

        assert [s.id for s in subtasks] == ["s1", "s2"]
        assert "Implement authentication" in llm.prompts("decompose")[0]

    @pytest.mark.asyncio
    async def test_decompose_requires_array(self, scripted_llm):
        llm = scripted_llm(subtasks=CLEAR_TREE)

        with pytest.raises(MalformedResponseError):
            await decompose_task(TaskNode(id="auth", title="Auth"), llm)


class TestTaskDecompositionOptimizer:
    """Tests for the optimize loop."""

    @pytest.mark.asyncio
    async def test_stops_on_first_evaluation(self, scripted_llm, embedder):
        """Test a good first tree needs no refinement."""
        llm = scripted_llm(generated=CLEAR_TREE)

        result = await optimize_task_decomposition("Build login", llm, embedder)

        assert result.iterations == 1
        assert len(result.history) == 1
        assert result.final_tdq.score == pytest.approx(0.90)
        assert "refine" not in llm.kinds()

    @pytest.mark.asyncio
    async def test_refines_until_target(self, scripted_llm, embedder):
        """Test a vague tree gets one refinement and then passes."""
        llm = scripted_llm(
            generated=VAGUE_TREE, refined=[CLEAR_TREE], ratings=VAGUE_RATINGS
        )
        optimizer = TaskDecompositionOptimizer(llm, embedder)

        result = await optimizer.optimize("Build login")

        assert result.iterations == 2
        assert [entry.iteration for entry in result.history] == [1, 2]
        assert result.history[0].score == pytest.approx(0.65)
        assert result.history[1].score == pytest.approx(0.90)
        assert result.history[0].issues
        assert result.history[1].issues == []
        assert result.final_tree.children[1].title == "Write login API handler"
        assert result.final_tdq.score == result.history[-1].score
        assert optimizer.state == OptimizationState.DONE
        assert llm.kinds().count("refine") == 1

    @pytest.mark.asyncio
    async def test_stops_at_max_iterations(self, scripted_llm, embedder):
        llm = scripted_llm(
            generated=VAGUE_TREE,
            refined=[VAGUE_TREE, VAGUE_TREE],
            ratings=VAGUE_RATINGS,
        )
        config = OptimizationConfig(max_iterations=3, target_tdq=0.75)

        result = await optimize_task_decomposition("Build login", llm, embedder, config)

        assert result.iterations == 3
        assert len(result.history) == 3
        assert result.final_tdq.score == pytest.approx(0.65)
        assert llm.kinds().count("generate") == 1
        assert llm.kinds().count("refine") == 2

    @pytest.mark.asyncio
    async def test_single_iteration_budget(self, scripted_llm, embedder):
        llm = scripted_llm(generated=VAGUE_TREE, ratings=VAGUE_RATINGS)
        config = OptimizationConfig(max_iterations=1)

        result = await optimize_task_decomposition("Build login", llm, embedder, config)

        assert result.iterations == 1
        assert "refine" not in llm.kinds()

    @pytest.mark.asyncio
    async def test_zero_target_always_stops_immediately(self, scripted_llm, embedder):
        llm = scripted_llm(generated=VAGUE_TREE, ratings=VAGUE_RATINGS)
        config = OptimizationConfig(target_tdq=0.0)

        result = await optimize_task_decomposition("Build login", llm, embedder, config)

        assert result.iterations == 1

    @pytest.mark.asyncio
    async def test_failure_keeps_history(self, scripted_llm, embedder):
        """Test a malformed refinement aborts the run but leaves history readable."""
        llm = scripted_llm(
            generated=VAGUE_TREE,
            refined=["Sorry, I can't do that."],
            ratings=VAGUE_RATINGS,
        )
        optimizer = TaskDecompositionOptimizer(llm, embedder)

        with pytest.raises(MalformedResponseError):
            await optimizer.optimize("Build login")

        assert len(optimizer.history) == 1
        assert optimizer.history[0].score == pytest.approx(0.65)
        assert optimizer.state == OptimizationState.REFINING

    @pytest.mark.asyncio
    async def test_generation_failure(self, scripted_llm, embedder):
        llm = scripted_llm(generated="no tree")
        optimizer = TaskDecompositionOptimizer(llm, embedder)

        with pytest.raises(MalformedResponseError):
            await optimizer.optimize("Build login")

        assert optimizer.history == []
        assert optimizer.state == OptimizationState.GENERATING
