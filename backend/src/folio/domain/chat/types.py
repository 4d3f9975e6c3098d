"""Shared chat domain types.

Keep these types small and provider-agnostic so the gateway, the backends and
the orchestrator can reuse them without circular imports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

Role = Literal["system", "user", "assistant", "tool"]
FinishReason = Literal["stop", "tool_calls", "length", "error"]


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A model-emitted request to run one tool. ``arguments`` is JSON text."""

    id: str
    name: str
    arguments: str


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """A message in the chat transcript."""

    role: Role
    content: str
    tool_call_id: str | None = None
    tool_calls: tuple[ToolCall, ...] | None = None


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """A tool the model may call: name, description and JSON-schema input."""

    name: str
    description: str
    input_schema: dict[str, Any]


@dataclass(frozen=True, slots=True)
class ChatResponse:
    """Normalized reply of one model turn.

    When ``tool_calls`` is non-empty it takes priority over ``content``.
    """

    content: str | None
    tool_calls: list[ToolCall] | None
    finish_reason: FinishReason

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


@dataclass(frozen=True, slots=True)
class BackendReply:
    """Raw reply of a model backend before marker-grammar normalization.

    ``finish_reason`` is the backend's own signal mapped onto the normalized
    vocabulary, or None when the backend did not say.
    """

    text: str | None
    tool_calls: list[ToolCall] = field(default_factory=list)
    finish_reason: FinishReason | None = None


@dataclass(frozen=True)
class ProjectCard:
    """Structured project summary shown next to a chat answer."""

    title: str
    description: str
    url: str
    metrics: dict[str, str] | None = None
    tags: list[str] | None = None
    github_url: str | None = None
    demo_url: str | None = None


@dataclass(frozen=True)
class ChatResult:
    """Outcome of one orchestrated chat request."""

    answer: str
    cards: list[ProjectCard] = field(default_factory=list)
    iterations: int = 0
    exhausted: bool = False
