"""Hugging Face text-only chat backend over httpx.

Tool declarations are never sent: the free router rejects them for many
models. The model learns the tool catalog from the system prompt and
answers with ``TOOL_CALL:`` / ``FINAL:`` markers, so earlier tool calls and
results are replayed to it as plain text.
"""

from collections.abc import Sequence
from typing import Any

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from folio import __version__
from folio.domain.chat.markers import render_tool_call_marker
from folio.domain.chat.types import BackendReply, ChatMessage, FinishReason, ToolDefinition
from folio.shared.exceptions import BackendError, ConfigurationError, ProtocolError
from folio.shared.logging import get_logger

logger = get_logger(__name__)

HF_ROUTER_URL = "https://router.huggingface.co/v1/chat/completions"
TOOL_RESULT_PREFIX = "TOOL_RESULT:"

# TGI-backed endpoints report "eos_token" for a natural stop
_FINISH_REASONS: dict[str, FinishReason] = {
    "stop": "stop",
    "eos_token": "stop",
    "stop_sequence": "stop",
    "length": "length",
}


def to_text_messages(transcript: Sequence[ChatMessage]) -> list[dict[str, str]]:
    """Flatten a transcript into role/content pairs a text-only model understands."""
    messages: list[dict[str, str]] = []
    for message in transcript:
        if message.role == "tool":
            messages.append({"role": "user", "content": f"{TOOL_RESULT_PREFIX} {message.content}"})
        elif message.role == "assistant" and message.tool_calls:
            parts = [message.content] if message.content else []
            parts.extend(render_tool_call_marker(call) for call in message.tool_calls)
            messages.append({"role": "assistant", "content": "\n".join(parts)})
        else:
            messages.append({"role": message.role, "content": message.content})
    return messages


def _finish_reason(value: Any) -> FinishReason | None:
    """Map the endpoint's finish signal; None when absent or unrecognised."""
    return _FINISH_REASONS.get(value) if isinstance(value, str) else None


class HuggingFaceBackend:
    """Chat completions against the Hugging Face router or a dedicated endpoint."""

    name = "huggingface"
    supports_native_tools = False

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 2048,
        temperature: float = 0.7,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("HF_API_KEY is not configured")
        if not model:
            raise ConfigurationError("HF_MODEL is not configured")

        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._client = client

    @property
    def url(self) -> str:
        """A model id starting with https:// is a dedicated inference endpoint."""
        return self.model if self.model.startswith("https://") else HF_ROUTER_URL

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={
                    "Accept": "application/json",
                    "User-Agent": f"Folio/{__version__}",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        client = await self._get_client()
        return await client.post(
            self.url,
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )

    async def complete(
        self,
        transcript: Sequence[ChatMessage],
        tools: Sequence[ToolDefinition] | None = None,
    ) -> BackendReply:
        """Run one text completion. ``tools`` is ignored.

        Raises:
            BackendError: Non-2xx status, or transport failure after retries
            ProtocolError: Body matches neither the ``choices`` nor the
                ``generated_text`` shape
        """
        payload = {
            "model": self.model,
            "messages": to_text_messages(transcript),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "stream": False,
        }

        try:
            response = await self._post(payload)
        except httpx.TransportError as e:
            logger.error("llm_connection_error", provider=self.name, error=str(e))
            raise BackendError(self.name, None, str(e)) from e

        if not response.is_success:
            logger.error("llm_api_error", provider=self.name, status=response.status_code)
            raise BackendError(self.name, response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise ProtocolError(f"Unexpected {self.name} API response format") from e

        return self._parse(data)

    def _parse(self, data: Any) -> BackendReply:
        # Legacy text-generation endpoints answer with a list of generations
        if isinstance(data, list) and data and isinstance(data[0], dict):
            data = data[0]
        if not isinstance(data, dict):
            raise ProtocolError(f"Unexpected {self.name} API response format")

        choices = data.get("choices")
        if isinstance(choices, list):
            if not choices or not isinstance(choices[0], dict):
                raise ProtocolError(f"No response from {self.name} API")
            choice = choices[0]
            message = choice.get("message")
            if message is None:
                message = {}
            if not isinstance(message, dict):
                raise ProtocolError(f"Unexpected {self.name} API response format")
            content = message.get("content")
            return BackendReply(
                text=content if isinstance(content, str) else None,
                finish_reason=_finish_reason(choice.get("finish_reason")),
            )

        generated = data.get("generated_text")
        if isinstance(generated, str):
            return BackendReply(text=generated)

        raise ProtocolError(f"Unexpected {self.name} API response format")
