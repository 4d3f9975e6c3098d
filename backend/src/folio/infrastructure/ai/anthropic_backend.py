"""Anthropic Messages API backend."""

import json
from collections.abc import Sequence
from typing import Any

import anthropic
from anthropic.types import Message, MessageParam, ToolParam
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from folio.domain.chat.types import BackendReply, ChatMessage, FinishReason, ToolCall, ToolDefinition
from folio.shared.exceptions import BackendError, ConfigurationError, ProtocolError
from folio.shared.logging import get_logger

logger = get_logger(__name__)

_STOP_REASONS: dict[str, FinishReason] = {
    "end_turn": "stop",
    "stop_sequence": "stop",
    "tool_use": "tool_calls",
    "max_tokens": "length",
}


def _tool_input(arguments: str) -> dict[str, Any]:
    try:
        parsed = json.loads(arguments) if arguments else {}
    except json.JSONDecodeError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


def to_anthropic_messages(
    transcript: Sequence[ChatMessage],
) -> tuple[str, list[MessageParam]]:
    """Split out the system prompt and convert the rest into content blocks.

    Tool results travel as ``tool_result`` blocks in a user turn. Consecutive
    turns of the same role are merged, since the API expects alternation.
    """
    system_parts: list[str] = []
    messages: list[dict[str, Any]] = []

    for message in transcript:
        if message.role == "system":
            system_parts.append(message.content)
            continue

        blocks: list[dict[str, Any]] = []
        if message.role == "tool":
            role = "user"
            blocks.append(
                {
                    "type": "tool_result",
                    "tool_use_id": message.tool_call_id or "",
                    "content": message.content,
                }
            )
        else:
            role = message.role
            if message.content:
                blocks.append({"type": "text", "text": message.content})
            for call in message.tool_calls or ():
                blocks.append(
                    {
                        "type": "tool_use",
                        "id": call.id,
                        "name": call.name,
                        "input": _tool_input(call.arguments),
                    }
                )

        if not blocks:
            continue
        if messages and messages[-1]["role"] == role:
            messages[-1]["content"].extend(blocks)
        else:
            messages.append({"role": role, "content": blocks})

    return "\n\n".join(system_parts), messages  # type: ignore[return-value]


def to_anthropic_tools(tools: Sequence[ToolDefinition]) -> list[ToolParam]:
    return [
        {"name": tool.name, "description": tool.description, "input_schema": tool.input_schema}
        for tool in tools
    ]


class AnthropicBackend:
    """Claude through the ``anthropic`` SDK with native tool use."""

    name = "anthropic"
    supports_native_tools = True

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 2048,
        temperature: float = 0.7,
        timeout: float = 30.0,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY is not configured")
        if not model:
            raise ConfigurationError("ANTHROPIC_MODEL is not configured")

        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.client = client or anthropic.AsyncAnthropic(
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type((anthropic.APITimeoutError, anthropic.APIConnectionError)),
        reraise=True,
    )
    async def _create(self, **kwargs: Any) -> Message:
        return await self.client.messages.create(**kwargs)

    async def complete(
        self,
        transcript: Sequence[ChatMessage],
        tools: Sequence[ToolDefinition] | None = None,
    ) -> BackendReply:
        """Run one Messages API call.

        Raises:
            BackendError: Non-success status, or connection failure after retries
            ProtocolError: Response without a content list
        """
        system, messages = to_anthropic_messages(transcript)
        request: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": messages,
        }
        if system:
            request["system"] = system
        if tools:
            request["tools"] = to_anthropic_tools(tools)

        try:
            response = await self._create(**request)
        except anthropic.APIStatusError as e:
            logger.error("llm_api_error", provider=self.name, status=e.status_code)
            raise BackendError(self.name, e.status_code, e.response.text) from e
        except anthropic.APIConnectionError as e:
            logger.error("llm_connection_error", provider=self.name, error=str(e))
            raise BackendError(self.name, None, str(e)) from e

        if response.content is None:
            raise ProtocolError(f"No response from {self.name} API")

        texts: list[str] = []
        tool_calls: list[ToolCall] = []
        for block in response.content:
            if block.type == "text":
                texts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCall(id=block.id, name=block.name, arguments=json.dumps(block.input))
                )

        return BackendReply(
            text="".join(texts) or None,
            tool_calls=tool_calls,
            finish_reason=_STOP_REASONS.get(response.stop_reason or ""),
        )

    async def close(self) -> None:
        await self.client.close()
