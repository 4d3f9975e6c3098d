"""Chat orchestrator: the bounded model <-> tool loop behind POST /chat.

One request runs at most ``max_iterations`` model turns:

1. Seed the transcript with the system prompt and the caller's history.
2. Call the model. If it asks for tools, run them one at a time in the
   order given, append an assistant message carrying the call and a tool
   message carrying the result, then go around again.
3. The first turn that answers with text ends the loop; project cards are
   extracted from every tool result seen so far.
4. A turn with neither text nor tool calls, or running out of iterations,
   yields a fixed apology instead of an error.

The transcript is append-only for the lifetime of the request. Backend
errors are not caught here; they abandon the request.
"""

import json
from collections.abc import Sequence
from typing import Any

from folio.domain.chat.cards import extract_project_cards
from folio.domain.chat.gateway import ModelGateway
from folio.domain.chat.tool_registry import ToolRegistry
from folio.domain.chat.types import ChatMessage, ChatResult, ToolCall
from folio.infrastructure.ai.prompts import build_system_prompt
from folio.observability.metrics import CHAT_ITERATIONS, CHAT_OUTCOMES, TOOL_INVOCATIONS
from folio.shared.logging import get_logger

logger = get_logger(__name__)

MAX_TOOL_ITERATIONS = 5
MAX_CARDS = 5
FALLBACK_ANSWER = (
    "I apologize, but I'm having trouble processing your request. "
    "Could you try rephrasing your question?"
)


def parse_tool_arguments(arguments: str) -> dict[str, Any]:
    """Parse a tool call's argument text, treating anything unusable as ``{}``."""
    try:
        parsed = json.loads(arguments) if arguments else {}
    except json.JSONDecodeError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


class ChatOrchestrator:
    """Drives the model/tool negotiation for one chat request at a time.

    Holds no per-request state; concurrent requests can share an instance.
    """

    def __init__(
        self,
        gateway: ModelGateway,
        registry: ToolRegistry,
        max_iterations: int = MAX_TOOL_ITERATIONS,
        max_cards: int = MAX_CARDS,
    ) -> None:
        self.gateway = gateway
        self.registry = registry
        self.max_iterations = max_iterations
        self.max_cards = max_cards
        self.system_prompt = build_system_prompt(registry.definitions())

    async def run(self, history: Sequence[ChatMessage]) -> ChatResult:
        """Answer the latest user message in ``history``.

        Args:
            history: Caller-supplied user/assistant messages, oldest first

        Returns:
            ChatResult with the answer and up to ``max_cards`` project cards
        """
        transcript: list[ChatMessage] = [
            ChatMessage(role="system", content=self.system_prompt),
            *history,
        ]
        tools = self.registry.definitions()
        tool_results: list[str] = []
        iteration = 0

        for iteration in range(1, self.max_iterations + 1):
            response = await self.gateway.chat(transcript, tools)
            logger.info(
                "chat_iteration",
                iteration=iteration,
                finish_reason=response.finish_reason,
                tool_calls=len(response.tool_calls or []),
            )

            if response.tool_calls:
                for call in response.tool_calls:
                    result = await self._run_tool(call)
                    tool_results.append(result)
                    transcript.append(
                        ChatMessage(
                            role="assistant",
                            content=response.content or "",
                            tool_calls=(call,),
                        )
                    )
                    transcript.append(
                        ChatMessage(role="tool", content=result, tool_call_id=call.id)
                    )
                continue

            if response.content:
                cards = extract_project_cards(tool_results)
                CHAT_OUTCOMES.labels(outcome="answer").inc()
                CHAT_ITERATIONS.observe(iteration)
                return ChatResult(
                    answer=response.content,
                    cards=cards[: self.max_cards],
                    iterations=iteration,
                )

            logger.warning("chat_empty_model_turn", iteration=iteration)
            break
        else:
            logger.warning("chat_iterations_exhausted", max_iterations=self.max_iterations)

        CHAT_OUTCOMES.labels(outcome="fallback").inc()
        CHAT_ITERATIONS.observe(iteration)
        return ChatResult(answer=FALLBACK_ANSWER, cards=[], iterations=iteration, exhausted=True)

    async def _run_tool(self, call: ToolCall) -> str:
        """Invoke one tool; handler faults become an error payload for the model."""
        args = parse_tool_arguments(call.arguments)
        metric_name = call.name if call.name in self.registry.names() else "unknown"
        try:
            result = await self.registry.invoke(call.name, args)
        except Exception as exc:
            logger.exception("tool_failed", tool=call.name)
            TOOL_INVOCATIONS.labels(tool=metric_name, outcome="error").inc()
            return json.dumps({"error": str(exc) or "Tool execution failed"})

        TOOL_INVOCATIONS.labels(tool=metric_name, outcome="ok").inc()
        logger.debug("tool_invoked", tool=call.name, args=args)
        return result
