"""Portfolio assistant chat API.

The assistant answers questions about the site owner using six read-only
content tools (search, projects, skills, resume, contact).
"""

from typing import Any

from fastapi import APIRouter, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from folio.api.deps import ChatRateLimitDep, ToolRegistryDep, get_orchestrator
from folio.api.ratelimit import rate_limit_headers
from folio.api.schemas import (
    ChatRequest,
    ChatResponse,
    ProjectCardOut,
    ToolCatalogResponse,
    ToolInfo,
)
from folio.shared.exceptions import ConfigurationError
from folio.shared.logging import bind_request_context, clear_request_context, get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

GENERIC_ERROR = "An error occurred while processing your request."


async def _parse_chat_request(request: Request) -> ChatRequest:
    """Validate the body after the rate limit has been counted.

    Raises:
        RequestValidationError: Body is not JSON or does not match ChatRequest
    """
    try:
        body: Any = await request.json()
    except ValueError as e:
        raise RequestValidationError(
            [{"type": "json_invalid", "loc": ("body",), "msg": "Invalid JSON", "input": None}],
        ) from e

    try:
        return ChatRequest.model_validate(body)
    except ValidationError as e:
        errors = [
            {**error, "loc": ("body", *error["loc"])}
            for error in e.errors(include_url=False, include_context=False)
        ]
        raise RequestValidationError(errors, body=body) from e


@router.post("", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(
    request: Request,
    response: Response,
    rate_limit: ChatRateLimitDep,
) -> ChatResponse | JSONResponse:
    """Answer the latest user message.

    Example messages:
    - "What projects have you built with Python?"
    - "Where did you work before?"
    - "How can I contact you?"
    """
    headers = rate_limit_headers(rate_limit)
    chat_request = await _parse_chat_request(request)

    try:
        orchestrator = await get_orchestrator(request)
    except ConfigurationError as e:
        logger.error("chat_unconfigured", error=e.message)
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})

    if chat_request.session_id:
        bind_request_context(session_id=chat_request.session_id)
    try:
        result = await orchestrator.run([msg.to_domain() for msg in chat_request.messages])
    except Exception:
        logger.exception("chat_failed")
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})
    finally:
        clear_request_context()

    response.headers.update(headers)
    return ChatResponse(
        answer=result.answer,
        cards=[ProjectCardOut.from_card(card) for card in result.cards] or None,
    )


@router.get("/tools", response_model=ToolCatalogResponse)
async def list_tools(registry: ToolRegistryDep) -> ToolCatalogResponse:
    """List the tools the assistant can use."""
    return ToolCatalogResponse(
        tools=[
            ToolInfo(name=tool.name, description=tool.description)
            for tool in registry.definitions()
        ]
    )
