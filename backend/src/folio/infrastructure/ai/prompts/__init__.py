"""Versioned AI prompts.

Prompts are versioned as code so a change to the assistant's behaviour is
reviewable and can be rolled back.
"""

from folio.infrastructure.ai.prompts.portfolio_assistant_v1 import (
    PROMPT_VERSION,
    build_system_prompt,
)

__all__ = ["PROMPT_VERSION", "build_system_prompt"]
