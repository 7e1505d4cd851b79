"""JSON extraction from LLM text.

Models often wrap JSON in code fences or surround it with prose. These
helpers dig the first JSON object out of a response.
"""

import json
import re
from typing import Any, Dict

_FENCE = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?```")


class StructuredOutputError(Exception):
    """The LLM response did not contain a usable JSON object."""

    def __init__(self, message: str, original_text: str):
        super().__init__(message)
        self.original_text = original_text


def extract_json(text: str) -> str:
    """Extract a JSON document from LLM response text.

    Handles:
    - ```json ... ``` and ``` ... ``` fences
    - Text that is itself JSON
    - JSON embedded in prose

    Raises:
        ValueError: If no JSON is found.
    """
    text = text.strip()

    for match in _FENCE.findall(text):
        match = match.strip()
        if match.startswith(("{", "[")):
            return match

    if text.startswith(("{", "[")):
        return _extract_balanced(text)

    for i, char in enumerate(text):
        if char in "{[":
            candidate = _extract_balanced(text[i:])
            try:
                json.loads(candidate)
            except json.JSONDecodeError:
                continue
            return candidate

    raise ValueError(f"No valid JSON found in text: {text[:200]}...")


def _extract_balanced(text: str) -> str:
    """Return the prefix of ``text`` up to its matching closing bracket."""
    open_bracket = text[0]
    close_bracket = "}" if open_bracket == "{" else "]"

    depth = 0
    in_string = False
    escape_next = False

    for i, char in enumerate(text):
        if escape_next:
            escape_next = False
            continue
        if char == "\\":
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == open_bracket:
            depth += 1
        elif char == close_bracket:
            depth -= 1
            if depth == 0:
                return text[: i + 1]

    # Unbalanced; let the JSON parser report it
    return text


def parse_json_object(text: str) -> Dict[str, Any]:
    """Extract and decode a JSON object.

    Raises:
        StructuredOutputError: If no JSON object can be decoded.
    """
    try:
        data = json.loads(extract_json(text))
    except ValueError as e:
        # json.JSONDecodeError is a ValueError
        raise StructuredOutputError(f"Could not parse JSON: {e}", original_text=text) from e
    if not isinstance(data, dict):
        raise StructuredOutputError(
            f"Expected a JSON object, got {type(data).__name__}", original_text=text
        )
    return data
