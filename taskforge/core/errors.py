"""Exception hierarchy for TaskForge.

Structural metrics never raise. Everything that can abort an evaluation or an
optimization run derives from ``TaskForgeError``.
"""


# =============================================================================
# EXCEPTIONS
# =============================================================================


class TaskForgeError(Exception):
    """Base exception for TaskForge errors."""

    pass


class ConfigurationError(TaskForgeError):
    """Required provider configuration is missing or unknown."""

    pass


class MalformedResponseError(TaskForgeError):
    """A model response could not be turned into the expected structure.

    The raw response text is kept on the exception for diagnosis.
    """

    def __init__(self, message: str, raw_response: str = "") -> None:
        super().__init__(message)
        self.raw_response = raw_response

    def __str__(self) -> str:
        base = super().__str__()
        if not self.raw_response:
            return base
        snippet = self.raw_response[:200]
        return f"{base} (response started with: {snippet!r})"


class DimensionMismatchError(TaskForgeError):
    """Two embedding vectors of different length were compared."""

    pass
