"""Model gateway: one chat contract over interchangeable model backends.

The backend is chosen once per process (see ``infrastructure.ai.factory``)
and injected here. Every reply, whatever backend produced it, is normalized
by the same rules, in order:

1. native tool calls from the backend are used as-is;
2. otherwise a ``TOOL_CALL:`` marker in the text becomes a tool call;
3. otherwise a ``FINAL:`` marker yields the answer;
4. otherwise the raw text is the answer, finishing with the backend's own
   stop signal (``length`` when it gave none or anything else).
"""

from collections.abc import Sequence
from typing import Protocol

from folio.domain.chat.markers import MarkerFailure, parse_final_answer, scan_tool_call
from folio.domain.chat.types import BackendReply, ChatMessage, ChatResponse, ToolDefinition
from folio.observability.metrics import MODEL_TURNS
from folio.shared.logging import get_logger

logger = get_logger(__name__)


class ChatBackend(Protocol):
    """A hosted language model reachable over the network."""

    name: str
    supports_native_tools: bool

    async def complete(
        self,
        transcript: Sequence[ChatMessage],
        tools: Sequence[ToolDefinition] | None = None,
    ) -> BackendReply: ...

    async def close(self) -> None: ...


def normalize_reply(reply: BackendReply) -> ChatResponse:
    """Collapse a raw backend reply into the normalized response shape."""
    if reply.tool_calls:
        return ChatResponse(
            content=reply.text,
            tool_calls=list(reply.tool_calls),
            finish_reason="tool_calls",
        )

    text = reply.text or ""

    scan = scan_tool_call(text)
    if scan.tool_call is not None:
        return ChatResponse(content=None, tool_calls=[scan.tool_call], finish_reason="tool_calls")
    if scan.failure is not None and scan.failure is not MarkerFailure.NO_MARKER:
        logger.warning("tool_call_marker_unusable", reason=scan.failure.value)

    final_answer = parse_final_answer(text)
    if final_answer is not None:
        return ChatResponse(content=final_answer, tool_calls=None, finish_reason="stop")

    return ChatResponse(
        content=text or None,
        tool_calls=None,
        finish_reason="stop" if reply.finish_reason == "stop" else "length",
    )


class ModelGateway:
    """Send a transcript to the configured backend and normalize the reply."""

    def __init__(self, backend: ChatBackend) -> None:
        self.backend = backend

    @property
    def provider(self) -> str:
        return self.backend.name

    async def chat(
        self,
        transcript: Sequence[ChatMessage],
        tools: Sequence[ToolDefinition] | None = None,
    ) -> ChatResponse:
        """Run one model turn.

        Tool declarations are only forwarded to backends with native tool
        calling; text-only backends learn about tools from the system prompt.

        Raises:
            BackendError: Non-success status or transport failure
            ProtocolError: Response without a usable choice/content
        """
        declared = tools if tools and self.backend.supports_native_tools else None
        reply = await self.backend.complete(transcript, declared)
        MODEL_TURNS.labels(provider=self.backend.name).inc()

        response = normalize_reply(reply)
        logger.debug(
            "model_turn_completed",
            provider=self.backend.name,
            finish_reason=response.finish_reason,
            tool_calls=[call.name for call in response.tool_calls or []],
        )
        return response

    async def close(self) -> None:
        await self.backend.close()
