"""Model backends and prompt templates."""
