"""Restaurant query agent package."""

from .config import AgentConfig, LLMConfig, RateLimitConfig

__all__ = ["AgentConfig", "LLMConfig", "RateLimitConfig"]
