"""FastAPI dependencies for API routes.

Long-lived collaborators hang off ``app.state``. The lifespan creates them at
startup; the getters fill in anything missing (apps driven without a
lifespan, or a chat orchestrator whose configuration was absent at startup).
The getters are coroutines so they run on the event loop, where a
check-then-set on ``app.state`` cannot interleave with another request.
"""

from typing import Annotated

from fastapi import Depends, Request

from folio.api.ratelimit import (
    ChatRateLimiter,
    RateLimitDecision,
    get_client_identifier,
)
from folio.config import Settings, get_settings
from folio.content.store import ContentStore
from folio.domain.chat.orchestrator import ChatOrchestrator
from folio.domain.chat.tool_registry import ToolRegistry
from folio.infrastructure.ai.factory import build_model_gateway
from folio.shared.exceptions import RateLimitExceededError


def build_orchestrator(settings: Settings, store: ContentStore) -> ChatOrchestrator:
    """Wire the configured model backend to the content tools.

    Raises:
        ConfigurationError: No usable model backend is configured
    """
    return ChatOrchestrator(
        gateway=build_model_gateway(settings),
        registry=ToolRegistry(store),
        max_iterations=settings.chat_max_iterations,
        max_cards=settings.chat_max_cards,
    )


async def get_content_store(request: Request) -> ContentStore:
    store: ContentStore | None = getattr(request.app.state, "content_store", None)
    if store is None:
        settings = get_settings()
        store = ContentStore(settings.content_dir, base_url=settings.site_base_url)
        request.app.state.content_store = store
    return store


async def get_tool_registry(
    store: Annotated[ContentStore, Depends(get_content_store)],
) -> ToolRegistry:
    return ToolRegistry(store)


async def get_rate_limiter(request: Request) -> ChatRateLimiter:
    limiter: ChatRateLimiter | None = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        settings = get_settings()
        limiter = ChatRateLimiter(settings.rate_limit_chat, settings.rate_limit_storage_uri)
        request.app.state.rate_limiter = limiter
    return limiter


async def get_orchestrator(request: Request) -> ChatOrchestrator:
    """Return the app's orchestrator, building it on first use.

    Called from the chat route after the body is validated, so a missing
    model configuration never masks a 400.

    Raises:
        ConfigurationError: No usable model backend is configured
    """
    orchestrator: ChatOrchestrator | None = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        store = await get_content_store(request)
        orchestrator = build_orchestrator(get_settings(), store)
        request.app.state.orchestrator = orchestrator
    return orchestrator


async def enforce_chat_rate_limit(
    request: Request,
    limiter: Annotated[ChatRateLimiter, Depends(get_rate_limiter)],
) -> RateLimitDecision:
    """Count the request against the caller's budget.

    Raises:
        RateLimitExceededError: Budget for the current window is spent
    """
    decision = limiter.check(get_client_identifier(request))
    if not decision.allowed:
        raise RateLimitExceededError(decision)
    return decision


ToolRegistryDep = Annotated[ToolRegistry, Depends(get_tool_registry)]
ChatRateLimitDep = Annotated[RateLimitDecision, Depends(enforce_chat_rate_limit)]

__all__ = [
    "ChatRateLimitDep",
    "ToolRegistryDep",
    "build_orchestrator",
    "enforce_chat_rate_limit",
    "get_content_store",
    "get_orchestrator",
    "get_rate_limiter",
    "get_tool_registry",
]
