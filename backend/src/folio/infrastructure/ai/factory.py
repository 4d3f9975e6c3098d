"""Model backend factory - returns the configured backend."""

from folio.config import Settings
from folio.domain.chat.gateway import ChatBackend, ModelGateway
from folio.infrastructure.ai.anthropic_backend import AnthropicBackend
from folio.infrastructure.ai.huggingface_backend import HuggingFaceBackend
from folio.infrastructure.ai.openai_backend import OpenAIBackend
from folio.shared.exceptions import ConfigurationError
from folio.shared.logging import get_logger

logger = get_logger(__name__)


def build_chat_backend(settings: Settings) -> ChatBackend:
    """Build the backend selected by ``LLM_PROVIDER``.

    ``auto`` picks the first backend with credentials, in the order openai,
    anthropic, huggingface.

    Raises:
        ConfigurationError: No backend configured, or the selected one is
            missing its key or model id
    """
    provider = settings.resolve_llm_provider()
    common = {
        "max_tokens": settings.llm_max_tokens,
        "temperature": settings.llm_temperature,
        "timeout": settings.llm_timeout_seconds,
    }

    backend: ChatBackend
    if provider == "openai":
        backend = OpenAIBackend(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            **common,
        )
        model = settings.openai_model
    elif provider == "anthropic":
        backend = AnthropicBackend(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
            **common,
        )
        model = settings.anthropic_model
    elif provider == "huggingface":
        backend = HuggingFaceBackend(
            api_key=settings.hf_api_key,
            model=settings.hf_model,
            **common,
        )
        model = settings.hf_model
    else:
        raise ConfigurationError(
            "No model backend configured. Set OPENAI_API_KEY, ANTHROPIC_API_KEY or HF_API_KEY"
        )

    logger.info("model_backend_selected", provider=provider, model=model)
    return backend


def build_model_gateway(settings: Settings) -> ModelGateway:
    return ModelGateway(build_chat_backend(settings))
