"""OpenAI-compatible chat completions backend.

Works against api.openai.com or any endpoint speaking the same protocol
(vLLM, TGI, OpenRouter, ...) through ``openai_base_url``.
"""

from collections.abc import Sequence
from typing import Any

import openai
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion, ChatCompletionMessageParam, ChatCompletionToolParam
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from folio.domain.chat.types import BackendReply, ChatMessage, FinishReason, ToolCall, ToolDefinition
from folio.shared.exceptions import BackendError, ConfigurationError, ProtocolError
from folio.shared.logging import get_logger

logger = get_logger(__name__)

_FINISH_REASONS: dict[str, FinishReason] = {
    "stop": "stop",
    "tool_calls": "tool_calls",
    "function_call": "tool_calls",
    "length": "length",
}


def to_openai_messages(transcript: Sequence[ChatMessage]) -> list[ChatCompletionMessageParam]:
    """Convert transcript messages into chat completions message params."""
    messages: list[dict[str, Any]] = []
    for message in transcript:
        if message.role == "tool":
            messages.append(
                {
                    "role": "tool",
                    "tool_call_id": message.tool_call_id or "",
                    "content": message.content,
                }
            )
        elif message.role == "assistant" and message.tool_calls:
            messages.append(
                {
                    "role": "assistant",
                    "content": message.content or None,
                    "tool_calls": [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {"name": call.name, "arguments": call.arguments},
                        }
                        for call in message.tool_calls
                    ],
                }
            )
        else:
            messages.append({"role": message.role, "content": message.content})
    return messages  # type: ignore[return-value]


def to_openai_tools(tools: Sequence[ToolDefinition]) -> list[ChatCompletionToolParam]:
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.input_schema,
            },
        }
        for tool in tools
    ]


class OpenAIBackend:
    """Chat completions over the ``openai`` SDK with native tool calling."""

    name = "openai"
    supports_native_tools = True

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.7,
        timeout: float = 30.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY is not configured")
        if not model:
            raise ConfigurationError("OPENAI_MODEL is not configured")

        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        # Retries are owned by tenacity below
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url or None,
            timeout=timeout,
            max_retries=0,
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type((openai.APITimeoutError, openai.APIConnectionError)),
        reraise=True,
    )
    async def _create(self, **kwargs: Any) -> ChatCompletion:
        return await self.client.chat.completions.create(**kwargs)

    async def complete(
        self,
        transcript: Sequence[ChatMessage],
        tools: Sequence[ToolDefinition] | None = None,
    ) -> BackendReply:
        """Run one chat completion.

        Raises:
            BackendError: Non-success status, or connection failure after retries
            ProtocolError: Response without choices
        """
        request: dict[str, Any] = {
            "model": self.model,
            "messages": to_openai_messages(transcript),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        if tools:
            request["tools"] = to_openai_tools(tools)
            request["tool_choice"] = "auto"

        try:
            response = await self._create(**request)
        except openai.APIStatusError as e:
            logger.error("llm_api_error", provider=self.name, status=e.status_code)
            raise BackendError(self.name, e.status_code, e.response.text) from e
        except openai.APIConnectionError as e:
            logger.error("llm_connection_error", provider=self.name, error=str(e))
            raise BackendError(self.name, None, str(e)) from e

        if not response.choices:
            raise ProtocolError(f"No response from {self.name} API")

        choice = response.choices[0]
        message = choice.message
        tool_calls = [
            ToolCall(id=tc.id, name=tc.function.name, arguments=tc.function.arguments or "")
            for tc in message.tool_calls or []
            if getattr(tc, "function", None) is not None
        ]
        return BackendReply(
            text=message.content,
            tool_calls=tool_calls,
            finish_reason=_FINISH_REASONS.get(choice.finish_reason or ""),
        )

    async def close(self) -> None:
        await self.client.close()
