"""Allow ``python -m taskforge``."""

from taskforge.cli.main import app

app(prog_name="taskforge")
