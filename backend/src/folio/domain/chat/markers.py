"""Text-marker grammar for backends without native tool calling.

A model that cannot emit structured tool calls is prompted to answer with
one of two markers::

    TOOL_CALL: {"tool": "get_project", "args": {"slug": "..."}}
    FINAL: <answer text>

``scan_tool_call`` reports why a marker could not be used instead of
guessing, so callers can log the failure and fall through to the next rule.
"""

import json
import re
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ValidationError

from folio.domain.chat.types import ToolCall

TOOL_CALL_MARKER = "TOOL_CALL:"
FINAL_MARKER_PATTERN = re.compile(r"FINAL:\s*(.+)$", re.DOTALL)


class MarkerFailure(str, Enum):
    NO_MARKER = "no_marker"
    NO_OPENING_BRACE = "no_opening_brace"
    UNBALANCED_BRACES = "unbalanced_braces"
    INVALID_JSON = "invalid_json"
    SCHEMA_MISMATCH = "schema_mismatch"


class MarkerPayload(BaseModel):
    """Shape of the JSON object that follows ``TOOL_CALL:``."""

    tool: str
    args: dict[str, Any]


@dataclass(frozen=True)
class MarkerScan:
    tool_call: ToolCall | None = None
    failure: MarkerFailure | None = None


def find_balanced_object(text: str, start: int) -> int | None:
    """Return the index just past the ``}`` closing the ``{`` at ``start``.

    Braces inside JSON string literals are ignored. Returns None when the
    object never closes.
    """
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
    return None


def scan_tool_call(content: str) -> MarkerScan:
    """Look for a ``TOOL_CALL:`` marker and parse the object after it."""
    marker_index = content.find(TOOL_CALL_MARKER)
    if marker_index == -1:
        return MarkerScan(failure=MarkerFailure.NO_MARKER)

    start = content.find("{", marker_index)
    if start == -1:
        return MarkerScan(failure=MarkerFailure.NO_OPENING_BRACE)

    end = find_balanced_object(content, start)
    if end is None:
        return MarkerScan(failure=MarkerFailure.UNBALANCED_BRACES)

    try:
        raw = json.loads(content[start:end])
    except json.JSONDecodeError:
        return MarkerScan(failure=MarkerFailure.INVALID_JSON)

    try:
        payload = MarkerPayload.model_validate(raw)
    except ValidationError:
        return MarkerScan(failure=MarkerFailure.SCHEMA_MISMATCH)

    return MarkerScan(
        tool_call=ToolCall(
            id=f"call_{uuid.uuid4().hex[:24]}",
            name=payload.tool,
            arguments=json.dumps(payload.args),
        )
    )


def parse_fallback_tool_call(content: str) -> ToolCall | None:
    return scan_tool_call(content).tool_call


def parse_final_answer(content: str) -> str | None:
    """Return the text after the first ``FINAL:`` marker, or None."""
    match = FINAL_MARKER_PATTERN.search(content)
    if match is None:
        return None
    answer = match.group(1).strip()
    return answer or None


def render_tool_call_marker(tool_call: ToolCall) -> str:
    """Render a tool call back into marker form for text-only transcripts."""
    try:
        args = json.loads(tool_call.arguments) if tool_call.arguments else {}
    except json.JSONDecodeError:
        args = {}
    return f"{TOOL_CALL_MARKER} {json.dumps({'tool': tool_call.name, 'args': args})}"
