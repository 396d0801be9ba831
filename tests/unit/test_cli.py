"""Unit tests for the command line interface."""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from taskforge import __version__
from taskforge.cli.main import app
from taskforge.core.errors import ConfigurationError

runner = CliRunner()

TREE = {
    "id": "root",
    "title": "Launch blog",
    "children": [
        {"id": "db", "title": "Create posts table"},
        {"id": "api", "title": "Implement posts API", "dependencies": ["db"]},
    ],
}


@pytest.fixture
def tree_file(tmp_path):
    path = tmp_path / "plan.json"
    path.write_text(json.dumps(TREE), encoding="utf-8")
    return path


@pytest.fixture
def patched_clients(scripted_llm, embedder):
    """Route the CLI to in-memory collaborators."""
    llm = scripted_llm(
        generated=json.dumps(TREE),
        subtasks='[{"id": "s1", "title": "Write migration"}]',
    )
    with (
        patch("taskforge.cli.main.get_llm_config"),
        patch("taskforge.cli.main.get_embedding_config"),
        patch("taskforge.cli.main.create_llm_client", return_value=llm),
        patch("taskforge.cli.main.create_embedding_client", return_value=embedder),
    ):
        yield llm


def _invoke(tmp_path, *args: str):
    return runner.invoke(app, ["--log-dir", str(tmp_path / "logs"), *args])


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestEvaluateCommand:
    """Tests for `taskforge evaluate`."""

    def test_prints_breakdown(self, tmp_path, tree_file, patched_clients):
        result = _invoke(tmp_path, "evaluate", str(tree_file))

        assert result.exit_code == 0, result.output
        assert "TDQ Score" in result.output
        assert "Hierarchy (H)" in result.output

    def test_writes_report(self, tmp_path, tree_file, patched_clients):
        report = tmp_path / "report.md"

        result = _invoke(tmp_path, "evaluate", str(tree_file), "--report", str(report))

        assert result.exit_code == 0, result.output
        assert "## Task Decomposition Quality Analysis" in report.read_text(encoding="utf-8")

    def test_missing_file(self, tmp_path, patched_clients):
        result = _invoke(tmp_path, "evaluate", str(tmp_path / "nope.json"))

        assert result.exit_code == 1

    def test_invalid_tree(self, tmp_path, patched_clients):
        path = tmp_path / "bad.json"
        path.write_text('{"id": "root"}', encoding="utf-8")

        result = _invoke(tmp_path, "evaluate", str(path))

        assert result.exit_code == 1

    def test_configuration_error(self, tmp_path, tree_file):
        with patch(
            "taskforge.cli.main.get_llm_config",
            side_effect=ConfigurationError("Environment variable ANTHROPIC_API_KEY is required but not set"),
        ):
            result = _invoke(tmp_path, "evaluate", str(tree_file))

        assert result.exit_code == 1
        assert "ANTHROPIC_API_KEY" in result.output


class TestOptimizeCommand:
    """Tests for `taskforge optimize`."""

    def test_prints_tree(self, tmp_path, patched_clients):
        result = _invoke(tmp_path, "optimize", "Launch a blog", "--target", "0.5")

        assert result.exit_code == 0, result.output
        assert "Optimization History" in result.output
        assert "Implement posts API" in result.output

    def test_saves_markdown(self, tmp_path, patched_clients):
        output = tmp_path / "plan.md"

        result = _invoke(
            tmp_path,
            "optimize",
            "Launch a blog",
            "--target",
            "0.5",
            "--output",
            str(output),
            "--format",
            "markdown",
        )

        assert result.exit_code == 0, result.output
        content = output.read_text(encoding="utf-8")
        assert "# Task Decomposition Report" in content
        assert "- Create posts table" in content

    def test_reads_request_from_file(self, tmp_path, patched_clients):
        request = tmp_path / "request.txt"
        request.write_text("Launch a blog with comments", encoding="utf-8")

        result = _invoke(tmp_path, "optimize", str(request), "-t", "0.5")

        assert result.exit_code == 0, result.output
        assert "Launch a blog with comments" in patched_clients.prompts("generate")[0]

    def test_long_request_is_not_a_path(self, tmp_path, patched_clients):
        """Test a request longer than a file name limit is used as text."""
        request = "Launch a blog with comments, tags and search. " * 8

        result = _invoke(tmp_path, "optimize", request, "-t", "0.5")

        assert result.exit_code == 0, result.output
        assert request.strip() in patched_clients.prompts("generate")[0]

    def test_unknown_format(self, tmp_path, patched_clients):
        result = _invoke(tmp_path, "optimize", "Launch a blog", "--format", "yaml")

        assert result.exit_code == 1
        assert patched_clients.calls == []


class TestDecomposeCommand:
    """Tests for `taskforge decompose`."""

    def test_prints_subtasks(self, tmp_path, tree_file, patched_clients):
        result = _invoke(tmp_path, "decompose", str(tree_file), "db")

        assert result.exit_code == 0, result.output
        assert "Write migration" in result.output
        assert "Create posts table" in patched_clients.prompts("decompose")[0]

    def test_unknown_task(self, tmp_path, tree_file, patched_clients):
        result = _invoke(tmp_path, "decompose", str(tree_file), "ghost")

        assert result.exit_code == 1
        assert "ghost" in result.output
