"""
Prompt templates for TaskForge model calls.

One template per external call: effort estimation, executability judgment,
tree generation, tree refinement, and single-task decomposition.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from taskforge.core.models import TaskNode


# =============================================================================
# TEMPLATE MODEL
# =============================================================================


class PromptTemplate(BaseModel):
    """A reusable prompt template."""

    model_config = ConfigDict(frozen=True)

    name: str
    template: str
    description: str = ""
    variables: list[str] = Field(default_factory=list)

    def format(self, **kwargs: Any) -> str:
        """Format the template with provided values.

        Args:
            **kwargs: Template variable values.

        Returns:
            Formatted prompt string.
        """
        return self.template.format(**kwargs)

    def get_missing_variables(self, **kwargs: Any) -> list[str]:
        """Get list of variables not provided."""
        return [v for v in self.variables if v not in kwargs]


# =============================================================================
# JUDGMENT PROMPTS
# =============================================================================


ESTIMATE_EFFORT_PROMPT = PromptTemplate(
    name="estimate_effort",
    description="Ask for an hours estimate for one task",
    template="""You are an expert software project estimator.

Task:
Title: {title}
Description: {description}

Please estimate how many hours of work this task would take for an average developer.
Respond with ONLY a single number (the estimated hours).
If the task is too vague or large to estimate, respond with a number greater than 20.

Examples:
- "Fix typo in README" -> 0.5
- "Implement user authentication" -> 8
- "Build entire e-commerce platform" -> 100

Your estimate (hours):""",
    variables=["title", "description"],
)


JUDGE_EXECUTABILITY_PROMPT = PromptTemplate(
    name="judge_executability",
    description="Ask for a 1-5 actionability rating for one task",
    template="""You are evaluating whether a task is specific and actionable enough to be executed directly.

Task:
Title: {title}
Description: {description}

Rate this task's executability on a scale of 1-5:
1 = Extremely vague, impossible to execute (e.g., "Improve the system")
2 = Very vague, needs significant clarification (e.g., "Add features")
3 = Somewhat clear, but missing important details (e.g., "Implement login")
4 = Clear and actionable with minor ambiguity (e.g., "Add email validation to login form")
5 = Perfectly clear and immediately actionable (e.g., "Add email regex validation to login form's email input field")

Respond with ONLY a single number from 1 to 5.

Your rating:""",
    variables=["title", "description"],
)


# =============================================================================
# TREE PROMPTS
# =============================================================================


GENERATE_TREE_PROMPT = PromptTemplate(
    name="generate_tree",
    description="Decompose a free-text request into a task tree",
    template="""You are an expert project manager. Please decompose the following task into a detailed task tree.

**User Task:**
{user_input}

**Requirements:**
1. Create a hierarchical task tree with 2-3 levels minimum
2. Each task must be specific and actionable
3. Include task descriptions where helpful
4. Suggest effort estimates (in hours) for leaf tasks
5. Identify dependencies where applicable
6. Assign priorities (P0=Critical, P1=High, P2=Normal)

**Output Format:**
Return ONLY a valid JSON object following this schema:
{{
  "id": "root",
  "title": "Main task title",
  "description": "Optional description",
  "priority": "P0",
  "children": [
    {{
      "id": "task_1",
      "title": "Subtask 1",
      "description": "Details...",
      "effort_estimate": 5,
      "priority": "P1",
      "children": [],
      "dependencies": []
    }}
  ],
  "dependencies": []
}}

**Important:**
- Use descriptive IDs (e.g., "auth_login", "db_setup"), unique across the tree
- Be specific in task titles (e.g., "Implement JWT-based login API" instead of "Do authentication")
- Ensure leaf tasks are small enough to complete in 1-8 hours
- Only return the JSON, no additional text""",
    variables=["user_input"],
)


REFINE_TREE_PROMPT = PromptTemplate(
    name="refine_tree",
    description="Revise a task tree using TDQ feedback",
    template="""You are an expert project manager. The current task decomposition has quality issues that need to be fixed.

**Current Task Tree:**
```json
{tree_json}
```

**Quality Scores:**
- Granularity: {granularity:.2f} (target: >= 0.7)
- Executability: {executability:.2f} (target: >= 0.7)
- Redundancy: {redundancy:.2f} (target: >= 0.8)

**Issues Found:**
{issues}

**Your Task:**
Improve the task tree to address these issues:

1. **If Granularity is low:** Break down overly large tasks into smaller, manageable pieces (1-8 hours each)
2. **If Executability is low:** Make task descriptions more specific and actionable
3. **If Redundancy is low:** Merge or remove duplicate tasks

**Requirements:**
- Keep the same overall goal and structure
- Make tasks more specific and actionable
- Ensure proper granularity (1-8 hours for leaf tasks)
- Eliminate redundancy
- Maintain valid JSON structure

**Output Format:**
Return ONLY the improved task tree as a valid JSON object. No additional text or explanation.""",
    variables=["tree_json", "granularity", "executability", "redundancy", "issues"],
)


DECOMPOSE_TASK_PROMPT = PromptTemplate(
    name="decompose_task",
    description="Break one task into subtasks",
    template="""You are an expert project manager. Please break down the following task into more detailed subtasks.

**Task to Decompose:**
- **Title:** {title}
- **Description:** {description}
- **Estimated Effort:** {effort} hours

**Requirements:**
1. Create 2-5 specific subtasks
2. Each subtask should be clear and actionable
3. Provide effort estimates (in hours)
4. Identify any dependencies between subtasks
5. Keep each subtask small (1-8 hours)

**Output Format:**
Return ONLY a JSON array of subtasks:
[
  {{
    "id": "subtask_1",
    "title": "Specific subtask title",
    "description": "Details...",
    "effort_estimate": 3,
    "priority": "P1",
    "children": [],
    "dependencies": []
  }}
]

Only return the JSON array, no additional text.""",
    variables=["title", "description", "effort"],
)


# =============================================================================
# BUILDERS
# =============================================================================


def build_estimate_effort_prompt(task: TaskNode) -> str:
    return ESTIMATE_EFFORT_PROMPT.format(
        title=task.title,
        description=task.description or "No description provided",
    )


def build_judge_executability_prompt(task: TaskNode) -> str:
    return JUDGE_EXECUTABILITY_PROMPT.format(
        title=task.title,
        description=task.description or "No description provided",
    )


def build_generate_tree_prompt(user_input: str) -> str:
    return GENERATE_TREE_PROMPT.format(user_input=user_input.strip())


def build_refine_tree_prompt(
    tree: TaskNode,
    issues: list[str],
    scores: dict[str, float],
) -> str:
    """Build the refinement prompt.

    Args:
        tree: Current task tree.
        issues: Issue messages from the last evaluation.
        scores: Granularity, executability and redundancy scores.

    Returns:
        Formatted prompt string.
    """
    numbered = "\n".join(f"{i}. {issue}" for i, issue in enumerate(issues, start=1))
    return REFINE_TREE_PROMPT.format(
        tree_json=tree.model_dump_json(indent=2, exclude_none=True),
        granularity=scores["granularity"],
        executability=scores["executability"],
        redundancy=scores["redundancy"],
        issues=numbered or "(none reported)",
    )


def build_decompose_task_prompt(task: TaskNode) -> str:
    effort = task.effort_estimate if task.effort_estimate else "Unknown"
    return DECOMPOSE_TASK_PROMPT.format(
        title=task.title,
        description=task.description or "N/A",
        effort=effort,
    )
