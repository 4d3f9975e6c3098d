"""Chat domain module.

This module provides the portfolio assistant: a bounded tool-calling loop
over the site's content.

Modules:
- orchestrator: ChatOrchestrator, the model <-> tool loop
- gateway: ModelGateway and reply normalization
- markers: TOOL_CALL:/FINAL: text grammar
- tool_registry: the six content tools
- cards: project card extraction
"""

from folio.domain.chat.gateway import ChatBackend, ModelGateway
from folio.domain.chat.orchestrator import FALLBACK_ANSWER, ChatOrchestrator
from folio.domain.chat.tool_registry import ToolRegistry
from folio.domain.chat.types import ChatMessage, ChatResponse, ChatResult, ProjectCard, ToolCall

__all__ = [
    "ChatBackend",
    "ChatMessage",
    "ChatOrchestrator",
    "ChatResponse",
    "ChatResult",
    "FALLBACK_ANSWER",
    "ModelGateway",
    "ProjectCard",
    "ToolCall",
    "ToolRegistry",
]
