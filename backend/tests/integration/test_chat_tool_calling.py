"""Integration tests for the chat tool-calling flow through real backends.

The SDK clients are mocked; everything from the HTTP route down to the
backend's request/response mapping runs for real.
"""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from conftest import StubBackend
from folio.domain.chat.gateway import ModelGateway
from folio.domain.chat.orchestrator import ChatOrchestrator
from folio.domain.chat.tool_registry import ToolRegistry
from folio.domain.chat.types import ChatMessage
from folio.infrastructure.ai.anthropic_backend import AnthropicBackend
from folio.infrastructure.ai.openai_backend import OpenAIBackend


def _install(app: FastAPI, backend) -> None:
    app.state.orchestrator = ChatOrchestrator(
        ModelGateway(backend), ToolRegistry(app.state.content_store)
    )


def test_chat_tool_calling_openai(app: FastAPI, client: TestClient):
    tool_call = SimpleNamespace(
        id="call_1",
        function=SimpleNamespace(name="get_project", arguments='{"slug": "feature-store"}'),
    )
    first_response = SimpleNamespace(
        choices=[
            SimpleNamespace(
                finish_reason="tool_calls",
                message=SimpleNamespace(content=None, tool_calls=[tool_call]),
            )
        ]
    )
    second_response = SimpleNamespace(
        choices=[
            SimpleNamespace(
                finish_reason="stop",
                message=SimpleNamespace(
                    content="The feature store serves 30 teams.", tool_calls=None
                ),
            )
        ]
    )
    sdk = MagicMock()
    sdk.chat.completions.create = AsyncMock(side_effect=[first_response, second_response])
    _install(app, OpenAIBackend(api_key="sk-test", model="gpt-4o-mini", client=sdk))

    response = client.post(
        "/api/chat",
        json={"messages": [{"role": "user", "content": "Tell me about the feature store"}]},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["answer"] == "The feature store serves 30 teams."
    assert body["cards"][0]["title"] == "Feature Store"

    second_call = sdk.chat.completions.create.call_args_list[1].kwargs
    messages = second_call["messages"]
    assert messages[0]["role"] == "system"
    assert messages[-2]["tool_calls"][0]["id"] == "call_1"
    assert messages[-1]["role"] == "tool"
    assert messages[-1]["tool_call_id"] == "call_1"
    assert json.loads(messages[-1]["content"])["url"] == "/projects/feature-store"


def test_chat_tool_calling_anthropic(app: FastAPI, client: TestClient):
    first_response = SimpleNamespace(
        content=[
            SimpleNamespace(type="text", text="Let me check the resume."),
            SimpleNamespace(
                type="tool_use",
                id="toolu_1",
                name="get_resume_section",
                input={"section": "experience"},
            ),
        ],
        stop_reason="tool_use",
    )
    second_response = SimpleNamespace(
        content=[SimpleNamespace(type="text", text="I work at Acme Analytics.")],
        stop_reason="end_turn",
    )
    sdk = MagicMock()
    sdk.messages.create = AsyncMock(side_effect=[first_response, second_response])
    _install(app, AnthropicBackend(api_key="sk-ant", model="claude-sonnet-4-20250514", client=sdk))

    response = client.post(
        "/api/chat",
        json={"messages": [{"role": "user", "content": "Where do you work?"}]},
    )

    assert response.status_code == 200
    assert response.json() == {"answer": "I work at Acme Analytics."}

    second_call = sdk.messages.create.call_args_list[1].kwargs
    assistant, tool_result = second_call["messages"][-2], second_call["messages"][-1]
    assert assistant["role"] == "assistant"
    assert assistant["content"][0] == {"type": "text", "text": "Let me check the resume."}
    assert assistant["content"][1]["type"] == "tool_use"
    assert tool_result["content"][0]["tool_use_id"] == "toolu_1"
    assert "system" in second_call


@pytest.mark.asyncio
async def test_orchestrator_with_text_only_backend_replays_markers(registry):
    backend = StubBackend(
        [
            'TOOL_CALL: {"tool":"search_site","args":{"query":"python"}}',
            "FINAL: I use Python daily.",
        ],
        supports_native_tools=False,
    )
    orchestrator = ChatOrchestrator(ModelGateway(backend), registry)

    result = await orchestrator.run([ChatMessage(role="user", content="Do you know Python?")])

    assert result.answer == "I use Python daily."
    assert [card.url for card in result.cards] == ["/projects/search-ranker"]
