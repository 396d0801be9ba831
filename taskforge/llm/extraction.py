"""Pull structured JSON out of free-form model responses.

Models wrap JSON in prose or code fences, and the prose itself may contain
stray brackets. Every ``{`` or ``[`` in the response is tried in order as the
start of a JSON value; the first one that decodes (and has the type the
caller asked for) wins. A decoded value of the wrong type is skipped as a
whole, so values nested inside it are never picked. Anything that does not
survive decoding and validation raises ``MalformedResponseError``; there is
no best-effort partial result.
"""

import json
from typing import Any

from pydantic import TypeAdapter, ValidationError

from taskforge.core.errors import MalformedResponseError
from taskforge.core.models import TaskNode

_OPENERS = ("{", "[")

_JSON_KINDS = {dict: "object", list: "array"}

_DECODER = json.JSONDecoder()

_SUBTASKS_ADAPTER = TypeAdapter(list[TaskNode])


def _next_opener(response: str, pos: int) -> int:
    starts = [p for p in (response.find(o, pos) for o in _OPENERS) if p != -1]
    return min(starts) if starts else -1


def extract_json_payload(response: str, expected: type | None = None) -> Any:
    """
    Extract the first well-formed JSON object or array embedded in a response.

    Args:
        response: Raw model response text.
        expected: ``dict`` or ``list`` to accept only that kind of value.

    Returns:
        The decoded JSON value.

    Raises:
        MalformedResponseError: If no value of the expected kind decodes.

    Example:
        >>> extract_json_payload('Sure! ```json\\n{"id": "root"}\\n```')
        {'id': 'root'}
    """
    skipped: Any = None
    pos = _next_opener(response, 0)

    while pos != -1:
        try:
            value, end = _DECODER.raw_decode(response, pos)
        except json.JSONDecodeError:
            pos = _next_opener(response, pos + 1)
            continue

        if expected is None or isinstance(value, expected):
            return value

        skipped = value
        pos = _next_opener(response, end)

    if skipped is not None:
        raise MalformedResponseError(
            f"Expected a JSON {_JSON_KINDS[expected]}, got {type(skipped).__name__}",
            response,
        )
    raise MalformedResponseError("Response contains no valid JSON payload", response)


def parse_task_tree(response: str) -> TaskNode:
    """Parse a response that must contain a single task tree object.

    Raises:
        MalformedResponseError: If no object is found or it does not
            validate as a TaskNode.
    """
    payload = extract_json_payload(response, dict)

    try:
        return TaskNode.model_validate(payload)
    except ValidationError as e:
        raise MalformedResponseError(f"Task tree failed validation: {e}", response) from e


def parse_subtasks(response: str) -> list[TaskNode]:
    """Parse a response that must contain a JSON array of tasks.

    Raises:
        MalformedResponseError: If no array is found or any element does not
            validate as a TaskNode.
    """
    payload = extract_json_payload(response, list)

    try:
        return _SUBTASKS_ADAPTER.validate_python(payload)
    except ValidationError as e:
        raise MalformedResponseError(f"Subtasks failed validation: {e}", response) from e
